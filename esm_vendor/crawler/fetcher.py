# esm_vendor/crawler/fetcher.py
"""
Fetcher module: loads module source text over HTTP(S) or from ``file://`` URLs.

Every failure (network error, timeout, non-2xx status, unreadable file,
unsupported scheme) is reported as :class:`~esm_vendor.exceptions.FetchError`
so that the crawler can apply its ``on_fetch_error`` policy.  There is no
retry/backoff here; one attempt per URL.
"""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit
from urllib.request import url2pathname

from aiohttp import ClientError, ClientSession, ClientTimeout

from esm_vendor import __version__
from esm_vendor.exceptions import FetchError
from esm_vendor.logger import logger

__all__ = ("BaseFetcher", "HttpFetcher", "DEFAULT_USER_AGENT")

DEFAULT_USER_AGENT = f"esm-vendor/{__version__}"


class BaseFetcher(ABC):
    """Interface of a content loader; usable as an async context manager."""

    async def __aenter__(self) -> BaseFetcher:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    @abstractmethod
    async def fetch(self, url: str) -> str:
        """Return the text content of *url*; failures are raised as FetchError."""


class HttpFetcher(BaseFetcher):
    """Handles HTTP fetching through one shared ClientSession, plus local files."""

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        session: Optional[ClientSession] = None,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> HttpFetcher:
        if self.session is None or self.session.closed:
            self.session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers={"User-Agent": self.user_agent},
                raise_for_status=False,
            )
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()

    async def fetch(self, url: str) -> str:
        """Return the text content of *url* or raise FetchError."""
        scheme = urlsplit(url).scheme
        logger.debug("Fetching %s", url)
        try:
            if scheme == "file":
                return await asyncio.to_thread(self._read_file, url)
            if scheme in ("http", "https"):
                return await self._get(url)
            raise ValueError(f"unsupported URL scheme {scheme!r}")
        except (ClientError, asyncio.TimeoutError, OSError, UnicodeDecodeError, ValueError) as exc:
            raise FetchError(url, exc) from exc

    async def _get(self, url: str) -> str:
        if not self.session:
            raise RuntimeError("Session not initialized")
        async with self.session.get(url) as resp:
            resp.raise_for_status()
            return await resp.text()

    @staticmethod
    def _read_file(url: str) -> str:
        parts = urlsplit(url)
        if parts.netloc not in ("", "localhost"):
            raise ValueError(f"file URL with a remote host: {url}")
        path = Path(url2pathname(parts.path))
        return path.read_text(encoding="utf-8")
