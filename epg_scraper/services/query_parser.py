"""
Query Parsing

Splits provider query strings into a day count and channel clauses.
Query shapes: "<prefix>,<name>:<id>,..." or "<prefix>:<days>,<name>:<id>,...".
"""
import logging
import re

from epg_scraper.exceptions import MalformedQueryError
from epg_scraper.services.scrape_types import ChannelSpec


logger = logging.getLogger(__name__)

TWMOD_ID_PREFIX = "MOD_LIVE_"
_THREE_DIGIT_ID = re.compile(r"^\d{3}$")


def parse_channel_list(channels_str: str) -> list[ChannelSpec]:
    """
    Parse comma-separated channel clauses

    Each clause is "name:id", or a bare "id" with no name. Empty clauses
    are skipped and a repeated id keeps its first position.

    Args:
        channels_str: Channel part of the query, after the provider prefix

    Returns:
        Channel specs in query order
    """
    specs: dict[str, ChannelSpec] = {}

    for clause in channels_str.split(","):
        clause = clause.strip()
        if not clause:
            continue

        if ":" in clause:
            name, channel_id = (part.strip() for part in clause.split(":", 2)[:2])
        else:
            name, channel_id = None, clause

        if not channel_id:
            logger.debug(f"Skipping channel clause without id: '{clause}'")
            continue
        if channel_id in specs:
            logger.debug(f"Skipping duplicate channel id: {channel_id}")
            continue
        specs[channel_id] = ChannelSpec(channel_id=channel_id, name=name or None)

    return list(specs.values())


def strip_prefix(query: str, prefix: str) -> str:
    """Remove a leading "<prefix>," (case-insensitive) from the query"""
    return re.sub(rf"^\s*{re.escape(prefix)},", "", query, count=1, flags=re.IGNORECASE)


def split_day_count(query: str, prefix: str) -> tuple[int, str] | None:
    """
    Extract the "<prefix>:<days>," argument

    Args:
        query: Raw query string
        prefix: Provider prefix

    Returns:
        (day_count, channels_str), or None if the query carries no day count
    """
    match = re.match(
        rf"^\s*{re.escape(prefix)}:(\d+),\s*(.*)$",
        query,
        flags=re.IGNORECASE | re.DOTALL,
    )
    if not match:
        return None
    return int(match.group(1)), match.group(2).strip()


def parse_optional_days(query: str, prefix: str, separators: str = ",") -> tuple[int, str]:
    """
    Parse a query whose day count is optional

    Without a day count the channel list follows "<prefix>" plus one of
    separators, and the day count defaults to 1.
    """
    parsed = split_day_count(query, prefix)
    if parsed is not None:
        return parsed

    channels_str = re.sub(
        rf"^\s*{re.escape(prefix)}[{re.escape(separators)}]",
        "",
        query,
        count=1,
        flags=re.IGNORECASE,
    )
    return 1, channels_str


def parse_required_days(query: str, prefix: str) -> tuple[int, str]:
    """
    Parse a query that must carry "<prefix>:<days>,"

    Raises:
        MalformedQueryError: If the day count argument is missing
    """
    parsed = split_day_count(query, prefix)
    if parsed is None:
        raise MalformedQueryError(f"Expected '{prefix}:<days>,<channels>', got: {query}")
    return parsed


def normalize_twmod_id(channel_id: str) -> str:
    """
    Expand a 3-digit channel number into a MOD content key

    "005" becomes "MOD_LIVE_0000000005"; any other id passes through.
    """
    if _THREE_DIGIT_ID.match(channel_id):
        return f"{TWMOD_ID_PREFIX}{int(channel_id):010d}"
    return channel_id
