"""
chuan source (Sichuan IPTV EPG API)

Query: "chuan:<days>,<name>:<id>,...". The day count is mandatory; requests
carry a bearer token.
"""
import logging

from epg_scraper.config import settings
from epg_scraper.exceptions import DecodeError, MalformedQueryError
from epg_scraper.services.providers.base import (
    ScrapeContext,
    UnitResult,
    collect_channel,
    collect_channels,
    require_text,
)
from epg_scraper.services.query_parser import parse_channel_list, parse_required_days
from epg_scraper.services.scrape_types import AggregateResult, ChannelResult, ProgramEntry
from epg_scraper.utils.http_client import fetch_json
from epg_scraper.utils.timezone import (
    CLOCK_FORMAT,
    DIYP_DATE_FORMAT,
    DateFormatError,
    parse_local_iso,
    plan_dates,
)


logger = logging.getLogger(__name__)

SOURCE_KEY = "chuan"
API_URL = "http://epg.iqy.sc96655.com/v1/getPrograms"
REQUIRED_FIELDS = ("begin_time", "end_time", "name")


def match(query: str) -> bool:
    return query.lower().startswith(SOURCE_KEY)


def normalize_records(records: list) -> UnitResult:
    """
    Convert records carrying begin/end datetimes

    Records missing a required field are not counted.

    Returns:
        Tuple of (entries filed by date, accepted record count)
    """
    filed = []
    for record in records:
        if not isinstance(record, dict) or any(record.get(key) is None for key in REQUIRED_FIELDS):
            continue
        try:
            start = parse_local_iso(record["begin_time"])
            end = parse_local_iso(record["end_time"])
        except DateFormatError as e:
            logger.warning(f"Skipping chuan record: {e}")
            continue

        filed.append((
            start.strftime(DIYP_DATE_FORMAT),
            ProgramEntry(
                start=start.strftime(CLOCK_FORMAT),
                end=end.strftime(CLOCK_FORMAT),
                title=require_text(record, "name"),
                desc=require_text(record, "desc"),
            ),
        ))
    return filed, len(filed)


async def _fetch_day(ctx: ScrapeContext, channel_id: str, day: str) -> UnitResult:
    payload = await fetch_json(
        ctx.client,
        API_URL,
        params={
            "channel": channel_id,
            "begin_time": f"{day} 00:00:00",
            "end_time": f"{day} 23:59:59",
        },
        headers={"Authorization": f"Bearer {settings.chuan_bearer_token}"},
    )
    if not isinstance(payload, dict) or payload.get("ret_status") != 0:
        raise DecodeError(f"chuan API rejected {channel_id} on {day}")

    records = payload.get("ret_data")
    if not isinstance(records, list):
        raise DecodeError(f"Unexpected chuan program list for {channel_id} on {day}")

    return normalize_records(records)


async def handle(query: str, ctx: ScrapeContext) -> AggregateResult:
    try:
        day_count, channels_str = parse_required_days(query, SOURCE_KEY)
    except MalformedQueryError as e:
        logger.warning(str(e))
        return {}

    days = plan_dates(day_count, DIYP_DATE_FORMAT, now=ctx.now)
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
        [(spec.channel_id, spec.name) for spec in specs],
        build_channel,
    )
