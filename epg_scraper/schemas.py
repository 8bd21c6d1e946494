from pydantic import BaseModel, Field

from epg_scraper.services.scrape_types import AggregateResult


class ProgramEntry(BaseModel):
    """Single program in DIYP shape"""
    start: str = Field(..., description="Local start time, HH:MM")
    end: str = Field(..., description="Local end time, HH:MM ('00:00' runs to midnight)")
    title: str
    desc: str = ""
    status: str | None = Field(None, description="Provider status code, when the provider reports one")


class ChannelResult(BaseModel):
    """Normalized schedule for one channel"""
    channel_name: str
    diyp_data: dict[str, list[ProgramEntry]] = Field(..., description="Programs keyed by YYYY-MM-DD")
    process_count: int = Field(..., description="Raw provider records consumed")


class ErrorDetail(BaseModel):
    """Standard error detail"""
    code: str = Field(..., description="Error code (e.g., 'NO_PROVIDER_MATCH')")
    message: str = Field(..., description="Human-readable error message")


class EPGResponse(BaseModel):
    """Scrape result for one query"""
    source: str = Field(..., description="Key of the provider that handled the query")
    channels_count: int
    total_programs: int
    channels: dict[str, ChannelResult] = Field(..., description="Schedules keyed by channel id, in query order")

    @classmethod
    def from_result(cls, source: str, result: AggregateResult) -> "EPGResponse":
        return cls(
            source=source,
            channels_count=len(result),
            total_programs=sum(channel.entry_count for channel in result.values()),
            channels={
                channel_id: ChannelResult.model_validate(channel.to_dict())
                for channel_id, channel in result.items()
            },
        )
