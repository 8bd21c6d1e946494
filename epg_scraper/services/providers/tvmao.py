"""
tvmao source (Baidu TV schedule API)

Query: "tvmao,<name>:<id>,...". The API returns a rolling window of programs
with start times only, GBK encoded; end times are inferred by gap filling.
"""
from datetime import datetime
import logging

from epg_scraper.config import settings
from epg_scraper.exceptions import DecodeError
from epg_scraper.services.gap_filler import first_day_threshold, stitch_schedule
from epg_scraper.services.providers.base import (
    ScrapeContext,
    UnitResult,
    collect_channel,
    collect_channels,
    require_text,
)
from epg_scraper.services.query_parser import parse_channel_list, strip_prefix
from epg_scraper.services.scrape_types import AggregateResult, ChannelResult, ProgramEntry
from epg_scraper.utils.http_client import fetch_json
from epg_scraper.utils.timezone import (
    CLOCK_FORMAT,
    DIYP_DATE_FORMAT,
    DateFormatError,
    parse_local_time,
)


logger = logging.getLogger(__name__)

SOURCE_KEY = "tvmao"
API_URL = "https://sp0.baidu.com/8aQDcjqpAAV3otqbppnN2DJv/api.php"
RESOURCE_ID = "12520"
TIME_FORMAT = "%Y/%m/%d %H:%M"


def match(query: str) -> bool:
    return query.lower().startswith(SOURCE_KEY)


def normalize_records(records: list, now: datetime) -> UnitResult:
    """
    File start-time-only records by date, dropping stale leftovers

    The first timed record decides the threshold (see first_day_threshold);
    records starting before it belong to a day the window has rolled past.

    Args:
        records: Raw records, each {"times": "YYYY/MM/DD HH:MM", "title": ...}
        now: Current local time

    Returns:
        Tuple of (entries filed by date with empty ends, raw record count)
    """
    filed = []
    threshold: datetime | None = None

    for record in records:
        if not isinstance(record, dict):
            continue
        time_str = require_text(record, "times")
        if not time_str:
            continue

        try:
            start = parse_local_time(time_str, TIME_FORMAT)
        except DateFormatError as e:
            logger.warning(f"Skipping tvmao record: {e}")
            continue

        if threshold is None:
            threshold = first_day_threshold(start, now)
        if start < threshold:
            logger.debug(f"Dropping stale tvmao record at {time_str}")
            continue

        filed.append((
            start.strftime(DIYP_DATE_FORMAT),
            ProgramEntry(
                start=start.strftime(CLOCK_FORMAT),
                end="",
                title=require_text(record, "title"),
            ),
        ))

    return filed, len(records)


async def _fetch_window(ctx: ScrapeContext, channel_id: str) -> UnitResult:
    payload = await fetch_json(
        ctx.client,
        API_URL,
        params={"query": channel_id, "resource_id": RESOURCE_ID, "format": "json"},
        source_encoding=settings.tvmao_source_encoding,
    )
    if not isinstance(payload, dict) or not payload.get("data"):
        # No schedule for this channel
        return [], 0

    try:
        records = payload["data"][0]["data"]
    except (KeyError, IndexError, TypeError) as e:
        raise DecodeError(f"Unexpected tvmao payload for {channel_id}") from e
    if not isinstance(records, list):
        raise DecodeError(f"Unexpected tvmao record list for {channel_id}")

    return normalize_records(records, ctx.now)


async def handle(query: str, ctx: ScrapeContext) -> AggregateResult:
    specs = parse_channel_list(strip_prefix(query, SOURCE_KEY))

    async def build_channel(channel_id: str, name: str | None) -> ChannelResult:
        channel = await collect_channel(
            ctx,
            SOURCE_KEY,
            channel_id,
            name,
            [("window", lambda: _fetch_window(ctx, channel_id))],
        )
        stitch_schedule(channel.diyp_data)
        return channel

    return await collect_channels(
        SOURCE_KEY,
        [(spec.channel_id, spec.name) for spec in specs],
        build_channel,
    )
