"""
Provider plumbing shared by every source handler.

A handler splits its work into fetch units (one request pattern per channel
and date). Units run concurrently, a failed unit contributes nothing, and
each channel's units are merged back in planned order.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Awaitable, Callable, Sequence

import httpx

from epg_scraper.config import settings
from epg_scraper.exceptions import ScraperError
from epg_scraper.services.scrape_types import AggregateResult, ChannelResult, ProgramEntry
from epg_scraper.utils.channel_names import clean_channel_name
from epg_scraper.utils.logging_helpers import log_channel_summary, log_unit_failure


logger = logging.getLogger(__name__)

FiledEntries = list[tuple[str, ProgramEntry]]
UnitResult = tuple[FiledEntries, int]
UnitFetch = Callable[[], Awaitable[UnitResult]]


@dataclass(slots=True)
class ScrapeContext:
    """Per-dispatch state handed to a source handler."""
    client: httpx.AsyncClient
    now: datetime
    semaphore: asyncio.Semaphore = field(
        default_factory=lambda: asyncio.Semaphore(settings.max_concurrent_requests)
    )


async def run_unit(
    ctx: ScrapeContext,
    source_key: str,
    channel_id: str,
    unit_label: str,
    fetch: UnitFetch
) -> UnitResult:
    """
    Run one fetch unit, turning scraper failures into an empty contribution

    Args:
        ctx: Scrape context
        source_key: Provider key (for logging)
        channel_id: Channel identifier (for logging)
        unit_label: Date or range the unit covers (for logging)
        fetch: Coroutine factory performing the request and normalization

    Returns:
        Tuple of (entries filed by date, raw records consumed)
    """
    async with ctx.semaphore:
        try:
            return await fetch()
        except ScraperError as e:
            log_unit_failure(logger, source_key, channel_id, unit_label, e)
            return [], 0


async def collect_channel(
    ctx: ScrapeContext,
    source_key: str,
    channel_id: str,
    channel_name: str | None,
    units: Sequence[tuple[str, UnitFetch]]
) -> ChannelResult:
    """
    Run a channel's fetch units and merge them in the given order

    Args:
        units: (unit_label, fetch) pairs in planned order

    Returns:
        Channel result, present even when every unit failed
    """
    results = await asyncio.gather(
        *(run_unit(ctx, source_key, channel_id, label, fetch) for label, fetch in units)
    )

    channel = ChannelResult(channel_name=clean_channel_name(channel_name))
    for filed, record_count in results:
        for date, entry in filed:
            channel.add_entry(date, entry)
        channel.process_count += record_count
    return channel


async def collect_channels(
    source_key: str,
    channels: Sequence[tuple[str, str | None]],
    build_channel: Callable[[str, str | None], Awaitable[ChannelResult]]
) -> AggregateResult:
    """
    Build every channel concurrently, keyed in query order

    Args:
        source_key: Provider key (for logging)
        channels: (channel_id, channel_name) pairs, already normalized
        build_channel: Coroutine building one channel's result

    Returns:
        Aggregate result with one entry per distinct channel id
    """
    unique: dict[str, str | None] = {}
    for channel_id, name in channels:
        unique.setdefault(channel_id, name)

    built = await asyncio.gather(
        *(build_channel(channel_id, name) for channel_id, name in unique.items())
    )

    result: AggregateResult = {}
    for channel_id, channel in zip(unique, built):
        result[channel_id] = channel
        log_channel_summary(
            logger, source_key, channel_id, channel.entry_count, channel.process_count
        )
    return result


def require_text(record: dict, key: str) -> str:
    """Return record[key] trimmed, '' when missing or null"""
    value = record.get(key)
    return str(value).strip() if value is not None else ""
