from typing import Annotated
import logging

from fastapi import APIRouter, HTTPException, Query, Request

from epg_scraper.schemas import EPGResponse, ErrorDetail


logger = logging.getLogger(__name__)

main_router = APIRouter()


@main_router.get("/")
async def root(request: Request) -> dict:
    """Root endpoint with service information"""
    return {
        "service": "EPG Scraper",
        "version": "0.1.0",
        "sources": request.app.state.registry.keys,
        "endpoints": {
            "epg": "/epg?query=... - Scrape schedules for a source query",
            "sources": "/sources - Registered sources in match order",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check(request: Request) -> dict:
    """Health check endpoint"""
    return {
        "status": "ok",
        "providers": len(request.app.state.registry),
    }


@main_router.get("/sources")
async def list_sources(request: Request) -> list[str]:
    """Registered source keys, in the order queries are matched"""
    return request.app.state.registry.keys


@main_router.get("/epg", response_model=EPGResponse, response_model_exclude_none=True)
async def get_epg(
    request: Request,
    query: Annotated[str, Query(min_length=1, description="Source query, e.g. 'cntv:2,CCTV1:cctv1'")]
) -> EPGResponse:
    """
    Scrape and normalize schedules for a source query

    Args:
        query: Provider query string

    Returns:
        DIYP schedules keyed by channel id
    """
    registry = request.app.state.registry
    source = registry.match(query)
    if source is None:
        logger.info(f"Rejected query with no matching source: {query}")
        raise HTTPException(
            status_code=404,
            detail=ErrorDetail(
                code="NO_PROVIDER_MATCH",
                message=f"No source accepts query '{query}'",
            ).model_dump(),
        )

    result = await registry.dispatch(query, request.app.state.http_client)
    return EPGResponse.from_result(source.key, result)
