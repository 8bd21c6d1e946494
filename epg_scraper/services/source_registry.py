"""
Source Registry

Ordered mapping from provider key to (match predicate, handler). A query is
dispatched to the first provider whose predicate accepts it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable, Iterable

import httpx

from epg_scraper.services.providers import BUILTIN_PROVIDERS
from epg_scraper.services.providers.base import ScrapeContext
from epg_scraper.services.scrape_types import AggregateResult
from epg_scraper.utils.http_client import create_http_client
from epg_scraper.utils.logging_helpers import log_dispatch_end, log_dispatch_start, log_no_match
from epg_scraper.utils.timezone import ensure_local


logger = logging.getLogger(__name__)

Handler = Callable[[str, ScrapeContext], Awaitable[AggregateResult]]


@dataclass(frozen=True, slots=True)
class SourceHandler:
    """A provider: key, query predicate and async handler."""
    key: str
    match: Callable[[str], bool]
    handler: Handler


ExternalProviders = Iterable[SourceHandler] | Callable[[], Iterable[SourceHandler] | None] | None


class SourceRegistry:
    """
    Ordered provider registry.

    Registering an existing key replaces that provider in place. The registry
    is frozen by the first dispatch, after which it is read-only and safe to
    share between concurrent dispatches.
    """

    def __init__(self):
        self._sources: dict[str, SourceHandler] = {}
        self._frozen = False

    def register(self, source: SourceHandler) -> None:
        """
        Register a provider

        Raises:
            RuntimeError: If the registry has already served a dispatch
        """
        if self._frozen:
            raise RuntimeError("Source registry is frozen; register providers before dispatching")
        if source.key in self._sources:
            logger.info(f"Overriding source '{source.key}'")
        else:
            logger.debug(f"Registered source '{source.key}'")
        self._sources[source.key] = source

    def extend(self, sources: Iterable[SourceHandler]) -> None:
        for source in sources:
            self.register(source)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def keys(self) -> list[str]:
        return list(self._sources)

    def __len__(self) -> int:
        return len(self._sources)

    def match(self, query: str) -> SourceHandler | None:
        """Return the first provider accepting the query, or None"""
        for source in self._sources.values():
            if source.match(query):
                return source
        return None

    async def dispatch(
        self,
        query: str,
        client: httpx.AsyncClient | None = None,
        *,
        now: datetime | None = None
    ) -> AggregateResult:
        """
        Run the matching provider for a query

        Args:
            query: Raw query string
            client: Shared HTTP client; a short-lived one is created if omitted
            now: Reference time, defaults to the current local time

        Returns:
            Channel id -> channel result, empty when no provider matches
        """
        self.freeze()

        source = self.match(query)
        if source is None:
            log_no_match(logger, query)
            return {}

        log_dispatch_start(logger, source.key, query)
        moment = ensure_local(now)

        if client is None:
            async with create_http_client() as owned_client:
                result = await source.handler(query, ScrapeContext(client=owned_client, now=moment))
        else:
            result = await source.handler(query, ScrapeContext(client=client, now=moment))

        log_dispatch_end(logger, source.key, len(result))
        return result


def builtin_sources() -> list[SourceHandler]:
    """Built-in providers in registration order"""
    return [
        SourceHandler(key=module.SOURCE_KEY, match=module.match, handler=module.handle)
        for module in BUILTIN_PROVIDERS
    ]


def build_registry(external_providers: ExternalProviders = None) -> SourceRegistry:
    """
    Build the registry: built-in providers first, then external ones

    Args:
        external_providers: SourceHandlers, or a zero-argument loader
            returning them (or None)

    Returns:
        Registry ready for dispatch
    """
    registry = SourceRegistry()
    registry.extend(builtin_sources())

    if callable(external_providers):
        external_providers = external_providers()
    if external_providers:
        registry.extend(external_providers)

    logger.info(f"Source registry ready: {', '.join(registry.keys)}")
    return registry


# Global registry instance, built on first use
_registry: SourceRegistry | None = None


def get_source_registry() -> SourceRegistry:
    """
    Get or build the global source registry.

    Returns:
        The global SourceRegistry (built-in providers only unless
        register_external_providers() ran first)
    """
    global _registry
    if _registry is None:
        _registry = build_registry()
    return _registry


def register_external_providers(external_providers: ExternalProviders) -> SourceRegistry:
    """
    Rebuild the global registry with additional providers.

    Must be called by the host before the first dispatch.
    """
    global _registry
    if _registry is not None and _registry.frozen:
        raise RuntimeError("Source registry already in use; register providers at startup")
    _registry = build_registry(external_providers)
    return _registry


def reset_source_registry() -> None:
    """
    Reset the global registry (mainly for testing).

    WARNING: Only use this in test environments!
    """
    global _registry
    _registry = None


async def dispatch(
    query: str,
    client: httpx.AsyncClient | None = None,
    *,
    now: datetime | None = None
) -> AggregateResult:
    """Dispatch a query through the global source registry"""
    return await get_source_registry().dispatch(query, client, now=now)
