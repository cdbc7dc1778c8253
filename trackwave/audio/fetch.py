"""Fetch remote audio files into memory."""

import logging
from urllib.parse import urlparse

import httpx

from trackwave.analysis.errors import AudioDecodeError
from trackwave.config import settings

logger = logging.getLogger(__name__)


async def fetch_audio(url: str, timeout: float | None = None) -> bytes:
    """Download *url* and return the raw file bytes.

    Raises
    ------
    AudioDecodeError
        If the URL is malformed, the request fails or returns a non-2xx
        status, or the body exceeds the configured upload size.
    """
    timeout = timeout if timeout is not None else settings.fetch_timeout
    max_bytes = settings.max_upload_mb * 1024 * 1024

    logger.debug(f"Fetching audio from {url}")
    try:
        target = httpx.URL(url)
        if target.scheme not in ("http", "https"):
            raise AudioDecodeError(f"Unsupported URL scheme: {target.scheme or '<none>'}")
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as client:
            async with client.stream("GET", target, follow_redirects=True) as response:
                response.raise_for_status()
                chunks = []
                received = 0
                async for chunk in response.aiter_bytes():
                    received += len(chunk)
                    if received > max_bytes:
                        raise AudioDecodeError(
                            f"Audio file too large (max {settings.max_upload_mb} MB)"
                        )
                    chunks.append(chunk)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise AudioDecodeError(f"Failed to load audio file: {e}") from e

    data = b"".join(chunks)
    logger.info(f"Fetched {len(data)} bytes from {url}")
    return data


def url_suffix(url: str) -> str:
    """Extension of the URL path (``.mp3`` for ``https://x/a.mp3?t=1``)."""
    path = urlparse(url).path
    name = path.rsplit("/", 1)[-1]
    if "." in name:
        return "." + name.rsplit(".", 1)[-1].lower()
    return ""
