"""
cntv source (CCTV EPG API)

Query: "cntv,<name>:<id>,..." or "cntv:<days>,<name>:<id>,...".
Start and end times come as epoch seconds.
"""
import logging

from epg_scraper.exceptions import DecodeError
from epg_scraper.services.providers.base import (
    ScrapeContext,
    UnitResult,
    collect_channel,
    collect_channels,
    require_text,
)
from epg_scraper.services.query_parser import parse_channel_list, parse_optional_days
from epg_scraper.services.scrape_types import AggregateResult, ChannelResult, ProgramEntry
from epg_scraper.utils.http_client import fetch_json
from epg_scraper.utils.timezone import (
    CLOCK_FORMAT,
    COMPACT_DATE_FORMAT,
    DIYP_DATE_FORMAT,
    DateFormatError,
    epoch_to_local,
    plan_dates,
)


logger = logging.getLogger(__name__)

SOURCE_KEY = "cntv"
API_URL = "https://api.cntv.cn/epg/getEpgInfoByChannelNew"
SERVICE_ID = "tvcctv"


def match(query: str) -> bool:
    return query.lower().startswith(SOURCE_KEY)


def normalize_records(records: list) -> UnitResult:
    """
    Convert epoch-timed records, filing each under its local start date

    Returns:
        Tuple of (entries filed by date, raw record count)
    """
    filed = []
    for record in records:
        if not isinstance(record, dict):
            continue
        try:
            start = epoch_to_local(record.get("startTime"))
            end = epoch_to_local(record.get("endTime"))
        except DateFormatError as e:
            logger.warning(f"Skipping cntv record: {e}")
            continue

        filed.append((
            start.strftime(DIYP_DATE_FORMAT),
            ProgramEntry(
                start=start.strftime(CLOCK_FORMAT),
                end=end.strftime(CLOCK_FORMAT),
                title=require_text(record, "title"),
            ),
        ))
    return filed, len(records)


async def _fetch_day(ctx: ScrapeContext, channel_id: str, day: str) -> UnitResult:
    payload = await fetch_json(
        ctx.client,
        API_URL,
        params={"c": channel_id, "serviceId": SERVICE_ID, "d": day},
    )
    try:
        records = payload["data"][channel_id]["list"]
    except (KeyError, TypeError) as e:
        raise DecodeError(f"No program list for {channel_id} on {day}") from e
    if not isinstance(records, list):
        raise DecodeError(f"Unexpected cntv program list for {channel_id} on {day}")

    return normalize_records(records)


async def handle(query: str, ctx: ScrapeContext) -> AggregateResult:
    day_count, channels_str = parse_optional_days(query, SOURCE_KEY)
    days = plan_dates(day_count, COMPACT_DATE_FORMAT, now=ctx.now)
    specs = parse_channel_list(channels_str)

    async def build_channel(channel_id: str, name: str | None) -> ChannelResult:
        return await collect_channel(
            ctx,
            SOURCE_KEY,
            channel_id,
            name,
            [(day, lambda day=day: _fetch_day(ctx, channel_id, day)) for day in days],
        )

    return await collect_channels(
        SOURCE_KEY,
        [(spec.channel_id.lower(), spec.name) for spec in specs],
        build_channel,
    )
