"""
Shared dataclasses used across the scraping pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class ProgramEntry:
    """One program filed under the date it begins on."""
    start: str
    end: str
    title: str
    desc: str = ""
    status: str | None = None

    def to_dict(self) -> dict:
        payload = {
            "start": self.start,
            "end": self.end,
            "title": self.title,
            "desc": self.desc,
        }
        if self.status is not None:
            payload["status"] = self.status
        return payload


DateSchedule = dict[str, list[ProgramEntry]]


@dataclass(slots=True)
class ChannelSpec:
    """A channel clause parsed out of a query string."""
    channel_id: str
    name: str | None = None


@dataclass(slots=True)
class ChannelResult:
    """Normalized schedule for a single channel."""
    channel_name: str
    diyp_data: DateSchedule = field(default_factory=dict)
    process_count: int = 0

    @property
    def entry_count(self) -> int:
        return sum(len(entries) for entries in self.diyp_data.values())

    def add_entry(self, date: str, entry: ProgramEntry) -> None:
        self.diyp_data.setdefault(date, []).append(entry)

    def to_dict(self) -> dict:
        return {
            "channel_name": self.channel_name,
            "diyp_data": {
                date: [entry.to_dict() for entry in entries]
                for date, entries in self.diyp_data.items()
            },
            "process_count": self.process_count,
        }


AggregateResult = dict[str, ChannelResult]


__all__ = [
    "AggregateResult",
    "ChannelResult",
    "ChannelSpec",
    "DateSchedule",
    "ProgramEntry",
]
