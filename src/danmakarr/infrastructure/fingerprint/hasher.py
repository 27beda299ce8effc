"""MD5 fingerprint over the leading window of a local file or HTTP stream."""

from __future__ import annotations

import asyncio
import hashlib

import httpx
import structlog

from danmakarr.domain.entities.episode import PlaybackSource
from danmakarr.domain.exceptions import FetchFailed, InsufficientContent

log = structlog.get_logger(__name__)

# Only the first 16 MiB of the media take part in the digest.
FINGERPRINT_WINDOW = 16 * 1024 * 1024


def _read_window(path: str, window: int) -> bytes:
    with open(path, "rb") as fh:
        return fh.read(window)


class Fingerprinter:
    """Computes the content hash used for provider matching.

    Implements ``FingerprinterPort``. Remote sources are fetched with a
    plain GET (no Range header) and the body is consumed only until the
    window is full.
    """

    def __init__(
        self, http_client: httpx.AsyncClient, window: int = FINGERPRINT_WINDOW
    ) -> None:
        self._http = http_client
        self._window = window

    async def fingerprint(self, source: PlaybackSource) -> str:
        if source.is_remote:
            digest = await self._hash_stream(source.path)
        else:
            digest = await self._hash_file(source.path)
        log.info("fingerprint_computed", remote=source.is_remote, digest=digest)
        return digest

    async def _hash_file(self, path: str) -> str:
        try:
            data = await asyncio.to_thread(_read_window, path, self._window)
        except OSError as e:
            log.error("fingerprint_read_failed", path=path, error=str(e))
            raise FetchFailed(f"cannot read {path}: {e}") from e

        if len(data) < self._window:
            log.error("fingerprint_file_too_small", path=path, size=len(data))
            raise InsufficientContent("file too small")
        return hashlib.md5(data).hexdigest()

    async def _hash_stream(self, url: str) -> str:
        hasher = hashlib.md5()
        downloaded = 0

        try:
            async with self._http.stream("GET", url) as resp:
                if not resp.is_success:
                    log.error("fingerprint_stream_status", status=resp.status_code)
                    raise FetchFailed(
                        f"failed to fetch stream, status: {resp.status_code}"
                    )

                async for chunk in resp.aiter_bytes():
                    remaining = self._window - downloaded
                    hasher.update(chunk[:remaining])
                    downloaded += min(len(chunk), remaining)
                    if downloaded >= self._window:
                        break
        except httpx.HTTPError as e:
            log.error("fingerprint_stream_failed", error=str(e))
            raise FetchFailed(f"failed to fetch stream: {e}") from e

        if downloaded < self._window:
            log.error("fingerprint_stream_too_small", size=downloaded)
            raise InsufficientContent("file too small")
        return hasher.hexdigest()
