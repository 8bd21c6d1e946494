"""
Structured logging helpers for consistent log formatting.
"""
import logging


def log_dispatch_start(logger: logging.Logger, source_key: str, query: str) -> None:
    """
    Log the start of a dispatch call.

    Args:
        logger: Logger instance
        source_key: Key of the matched provider
        query: Raw query string
    """
    logger.info(f"Dispatching query to source '{source_key}': {query}")


def log_dispatch_end(logger: logging.Logger, source_key: str, channels_count: int) -> None:
    """Log the end of a dispatch call."""
    logger.info(f"Source '{source_key}' returned {channels_count} channel(s)")


def log_no_match(logger: logging.Logger, query: str) -> None:
    """Log a query that no registered source accepts."""
    logger.info(f"No source matches query: {query}")


def log_channel_summary(
    logger: logging.Logger,
    source_key: str,
    channel_id: str,
    entries_count: int,
    process_count: int
) -> None:
    """
    Log per-channel normalization summary.

    Args:
        logger: Logger instance
        source_key: Provider key
        channel_id: Channel identifier
        entries_count: Program entries emitted
        process_count: Raw provider records consumed
    """
    logger.info(
        f"  [{source_key}] {channel_id}: {entries_count} entries from {process_count} records"
    )


def log_unit_failure(
    logger: logging.Logger,
    source_key: str,
    channel_id: str,
    unit: str,
    error: Exception
) -> None:
    """Log a fetch unit that contributed nothing."""
    logger.warning(
        f"  [{source_key}] {channel_id} @ {unit}: skipped ({type(error).__name__}: {error})"
    )
