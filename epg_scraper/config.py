import codecs
import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)


class ScraperSettings(BaseSettings):
    """Scraper settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    epg_timezone: str = "Asia/Shanghai"
    http_timeout_sec: float = 15.0
    http_max_retries: int = 2
    http_backoff_factor: float = 1.0
    max_concurrent_requests: int = 8
    user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    )
    chuan_bearer_token: str = (
        "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
        "eyJpc3MiOiI5ODQwODlhNjc1OGU0ZjJlOTViMjk4NWM4YjA1MDNmYiIsImNvbXBhbnkiOiJxaXlpIiwibmFtZSI6InRlcm1pbmFsIn0."
        "1gDPpBcHJIE8dLiq7UekUlPWMtJOYymI8zoIYlsVgc4"
    )
    tvmao_source_encoding: str = "gbk"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("epg_timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Validate the local timezone is a known IANA name."""
        try:
            ZoneInfo(value)
            return value
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Invalid timezone '{value}': {exc}") from exc

    @field_validator("http_timeout_sec")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Validate HTTP timeout (seconds)."""
        if value <= 0:
            raise ValueError("http_timeout_sec must be > 0")
        return value

    @field_validator("http_max_retries", "max_concurrent_requests")
    @classmethod
    def validate_positive_ints(cls, value: int, info) -> int:
        """Ensure integer settings are positive."""
        if value <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return value

    @field_validator("http_backoff_factor")
    @classmethod
    def validate_backoff(cls, value: float) -> float:
        if value < 0:
            raise ValueError("http_backoff_factor must be >= 0")
        return value

    @field_validator("tvmao_source_encoding")
    @classmethod
    def validate_encoding(cls, value: str) -> str:
        """Validate the tvmao payload encoding is a known codec."""
        try:
            codecs.lookup(value)
            return value
        except LookupError as exc:
            raise ValueError(f"Unknown encoding '{value}'") from exc

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  Timezone: %s", self.epg_timezone)
        logger.info("  HTTP Timeout: %ss", self.http_timeout_sec)
        logger.info(
            "  HTTP Retries: %s (backoff factor %.1f)",
            self.http_max_retries,
            self.http_backoff_factor,
        )
        logger.info("  Max Concurrent Requests: %s", self.max_concurrent_requests)
        logger.info("  tvmao Encoding: %s", self.tvmao_source_encoding)
        logger.info(
            "  chuan Token: %s",
            "configured" if self.chuan_bearer_token else "missing",
        )


settings = ScraperSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
