"""
HTTP transport utilities

This module issues provider requests with retry logic and turns the raw
response bytes into text or JSON.
"""
import asyncio
import json
import logging
from typing import Any

import httpx

from epg_scraper.config import settings
from epg_scraper.exceptions import DecodeError, FetchError


logger = logging.getLogger(__name__)


def create_http_client(timeout: float | None = None) -> httpx.AsyncClient:
    """
    Build the shared async HTTP client

    Args:
        timeout: HTTP timeout in seconds, defaults to settings.http_timeout_sec

    Returns:
        Configured httpx.AsyncClient (caller owns closing it)
    """
    return httpx.AsyncClient(
        timeout=timeout or settings.http_timeout_sec,
        headers={"User-Agent": settings.user_agent},
        follow_redirects=True,
    )


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: str,
    *,
    method: str = "GET",
    params: dict | None = None,
    headers: dict | None = None,
    data: dict | None = None,
    max_retries: int | None = None,
    backoff_factor: float | None = None
) -> bytes | None:
    """
    Fetch a URL with exponential backoff retry logic

    Retries on transient network errors (timeouts, connection errors) and 5xx.
    Any other non-2xx status, redirect loops and undecodable bodies fail
    without retrying.

    Args:
        client: HTTP client to issue the request with
        url: URL to fetch
        method: HTTP method
        params: Query string parameters
        headers: Extra request headers
        data: Form fields, sent url-encoded
        max_retries: Maximum number of attempts
        backoff_factor: Exponential backoff multiplier (wait = backoff_factor ^ attempt)

    Returns:
        Response body, or None if the request failed
    """
    attempts = max_retries or settings.http_max_retries
    backoff = settings.http_backoff_factor if backoff_factor is None else backoff_factor

    for attempt in range(attempts):
        try:
            logger.debug(f"{method} {url} params={params} (attempt {attempt + 1}/{attempts})")
            response = await client.request(method, url, params=params, headers=headers, data=data)
            response.raise_for_status()
            return response.content

        except httpx.TransportError as e:
            # Transient network errors - retry
            reason = type(e).__name__

        except httpx.HTTPStatusError as e:
            if e.response.status_code < 500:
                logger.warning(f"HTTP {e.response.status_code} (not retried) from {url}")
                return None
            reason = f"HTTP {e.response.status_code} server error"

        except httpx.RequestError as e:
            # Redirect loops, corrupt content encodings
            logger.warning(f"Request to {url} failed ({type(e).__name__}: {e})")
            return None

        if attempt < attempts - 1:
            wait_time = backoff ** attempt if backoff else 0.0
            logger.warning(
                f"Request attempt {attempt + 1}/{attempts} to {url} failed ({reason}). "
                f"Retrying in {wait_time:.1f}s..."
            )
            await asyncio.sleep(wait_time)
        else:
            logger.warning(f"Request to {url} failed after {attempts} attempts ({reason})")

    return None


def decode_text(raw: bytes, source_encoding: str = "utf-8") -> str:
    """
    Decode a payload from the provider's encoding

    Undecodable byte sequences are replaced rather than rejected.
    """
    return raw.decode(source_encoding, errors="replace")


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    source_encoding: str = "utf-8",
    **request_kwargs
) -> Any:
    """
    Fetch a URL and decode its JSON body

    Raises:
        FetchError: If the request failed
        DecodeError: If the body is not valid JSON
    """
    raw = await fetch_bytes(client, url, **request_kwargs)
    if not raw:
        raise FetchError(f"No response from {url}")

    try:
        return json.loads(decode_text(raw, source_encoding))
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON from {url}: {e}") from e
