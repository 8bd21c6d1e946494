from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from epg_scraper.config import setup_logging
from epg_scraper.routers import main_router
from epg_scraper.services.source_registry import ExternalProviders, build_registry
from epg_scraper.utils.http_client import create_http_client


setup_logging()
logger = logging.getLogger(__name__)


def create_app(external_providers: ExternalProviders = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        external_providers: Extra sources merged after the built-in ones
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup and shutdown events"""
        logger.info("Starting EPG Scraper...")

        try:
            app.state.registry = build_registry(external_providers)
            http_client = create_http_client()
            app.state.http_client = http_client
            logger.info("EPG Scraper started with %s source(s)", len(app.state.registry))
        except Exception as e:
            logger.error(f"Failed to start EPG Scraper: {e}", exc_info=True)
            raise

        yield

        logger.info("Shutting down EPG Scraper...")
        await http_client.aclose()
        logger.info("EPG Scraper stopped")

    app = FastAPI(
        title="EPG Scraper",
        version="0.1.0",
        lifespan=lifespan
    )

    app.include_router(main_router)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Log validation errors with details"""
        logger.error(f"Validation error for {request.method} {request.url.path}")
        logger.error(f"Validation details: {exc.errors()}")

        errors = []
        for error in exc.errors():
            error_dict = {
                "type": error.get("type"),
                "loc": error.get("loc"),
                "msg": error.get("msg"),
                "input": str(error.get("input", ""))[:100]
            }
            errors.append(error_dict)

        return JSONResponse(
            status_code=422,
            content={
                "detail": errors
            }
        )

    return app


app = create_app()
