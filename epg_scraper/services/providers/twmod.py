"""
twmod source (Chunghwa Telecom MOD)

Query: "twmod:<days>,<name>:<id>,..." or "twmod:<name>:<id>,...". Three-digit
channel numbers are expanded to MOD content keys. Times and status come
verbatim from the payload.

A leading bare number is always read as the day count: "twmod:005,006"
means five days of channel 006. Name the first channel ("twmod:x:005,006")
or give the day count explicitly to avoid it.
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
from epg_scraper.services.query_parser import (
    normalize_twmod_id,
    parse_channel_list,
    parse_optional_days,
)
from epg_scraper.services.scrape_types import AggregateResult, ChannelResult, ProgramEntry
from epg_scraper.utils.http_client import fetch_json
from epg_scraper.utils.timezone import DIYP_DATE_FORMAT, plan_dates


logger = logging.getLogger(__name__)

SOURCE_KEY = "twmod"
API_URL = "https://mod.cht.com.tw/channel/epg.do"


def match(query: str) -> bool:
    return query.lower().startswith(f"{SOURCE_KEY}:")


def normalize_records(records: list, day: str) -> UnitResult:
    """
    File records under the requested day

    Returns:
        Tuple of (entries, raw record count)
    """
    filed = [
        (
            day,
            ProgramEntry(
                start=require_text(record, "startTimeVal"),
                end=require_text(record, "endTimeVal"),
                title=require_text(record, "programName"),
                status=require_text(record, "timeClass"),
            ),
        )
        for record in records
        if isinstance(record, dict)
    ]
    return filed, len(records)


async def _fetch_day(ctx: ScrapeContext, content_pk: str, day: str) -> UnitResult:
    payload = await fetch_json(
        ctx.client,
        API_URL,
        method="POST",
        data={"contentPk": content_pk, "date": day},
    )
    if not isinstance(payload, list):
        raise DecodeError(f"Unexpected twmod payload for {content_pk} on {day}")

    return normalize_records(payload, day)


async def handle(query: str, ctx: ScrapeContext) -> AggregateResult:
    day_count, channels_str = parse_optional_days(query, SOURCE_KEY, separators=":,")
    days = plan_dates(day_count, DIYP_DATE_FORMAT, now=ctx.now)
    specs = parse_channel_list(channels_str)

    async def build_channel(content_pk: str, name: str | None) -> ChannelResult:
        return await collect_channel(
            ctx,
            SOURCE_KEY,
            content_pk,
            name,
            [(day, lambda day=day: _fetch_day(ctx, content_pk, day)) for day in days],
        )

    return await collect_channels(
        SOURCE_KEY,
        [(normalize_twmod_id(spec.channel_id), spec.name) for spec in specs],
        build_channel,
    )
