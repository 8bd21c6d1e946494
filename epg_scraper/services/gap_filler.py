"""
Gap Filling

End-time inference for providers that only report program start times.
Each program ends when the next one starts; the last program of a date runs
to midnight and is carried into the next date as a continuation entry.
"""
from datetime import datetime
import logging

from epg_scraper.services.scrape_types import DateSchedule, ProgramEntry
from epg_scraper.utils.timezone import next_date, start_of_day


logger = logging.getLogger(__name__)

MIDNIGHT = "00:00"

# tvmao quirk: a rolling window whose first program starts before this hour
# still covers all of today.
TVMAO_COMPLETE_DAY_CUTOFF_HOUR = 2


def first_day_threshold(first_start: datetime, now: datetime) -> datetime:
    """
    Classify a start-time-only batch by its first record

    Args:
        first_start: Start time of the first raw record in the batch
        now: Current local time

    Returns:
        Today 00:00 when the batch already covers all of today, otherwise
        tomorrow 00:00; records starting before the threshold are stale
    """
    if first_start < start_of_day(now, hour=TVMAO_COMPLETE_DAY_CUTOFF_HOUR):
        return start_of_day(now)
    return start_of_day(now, days_ahead=1)


def fill_end_times(entries: list[ProgramEntry]) -> None:
    """Set each entry's end to the next entry's start, the last one to midnight"""
    next_start = MIDNIGHT
    for entry in reversed(entries):
        entry.end = next_start
        next_start = entry.start


def stitch_schedule(schedule: DateSchedule) -> int:
    """
    Infer end times and carry programs across midnight

    First every date is end-filled on its own. Then dates are walked in
    calendar order: when a date's last program runs to midnight and the
    following date has programs that do not start at 00:00, a continuation
    of that program is prepended to the following date, which is end-filled
    again.

    Args:
        schedule: Date-keyed entries, modified in place

    Returns:
        Number of continuation entries inserted
    """
    for entries in schedule.values():
        fill_end_times(entries)

    inserted = 0
    for date in sorted(schedule):
        entries = schedule[date]
        if not entries or entries[-1].end != MIDNIGHT:
            continue

        following = schedule.get(next_date(date))
        if not following or following[0].start == MIDNIGHT:
            continue

        following.insert(0, ProgramEntry(start=MIDNIGHT, end="", title=entries[-1].title))
        fill_end_times(following)
        inserted += 1
        logger.debug(f"Carried '{entries[-1].title}' from {date} into {next_date(date)}")

    return inserted
