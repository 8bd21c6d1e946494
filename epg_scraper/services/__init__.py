"""
Services package for EPG Scraper

This package contains the source registry, providers and normalization logic.
"""
from epg_scraper.services.source_registry import (
    SourceHandler,
    SourceRegistry,
    build_registry,
    dispatch,
    get_source_registry,
    register_external_providers,
)

__all__ = [
    'SourceHandler',
    'SourceRegistry',
    'build_registry',
    'dispatch',
    'get_source_registry',
    'register_external_providers',
]
