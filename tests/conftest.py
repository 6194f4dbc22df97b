# File: tests/conftest.py
import asyncio
import logging
from typing import Dict, List, Optional, Union

import pytest

from esm_vendor.crawler.fetcher import BaseFetcher
from esm_vendor.exceptions import FetchError
from esm_vendor.logger import LOGGER_NAME


class MockFetcher(BaseFetcher):
    """
    In-memory fetcher: maps URL -> source text or an exception to fail with.
    Records every fetch and how often the context was entered/exited.
    """

    def __init__(
        self,
        responses: Dict[str, Union[str, BaseException]],
        delays: Optional[Dict[str, float]] = None,
    ) -> None:
        self.responses = responses
        self.delays = delays or {}
        self.calls: List[str] = []
        self.entered = 0
        self.exited = 0

    async def __aenter__(self) -> "MockFetcher":
        self.entered += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.exited += 1

    async def fetch(self, url: str) -> str:
        self.calls.append(url)
        await asyncio.sleep(self.delays.get(url, 0))
        if url not in self.responses:
            raise FetchError(url, LookupError(f"no mock response for {url}"))
        value = self.responses[url]
        if isinstance(value, BaseException):
            raise FetchError(url, value)
        return value


async def collect(stream) -> list:
    """Drain an async iterator into a list."""
    return [item async for item in stream]


@pytest.fixture()
def make_fetcher():
    """Factory fixture for MockFetcher."""
    return MockFetcher


@pytest.fixture(autouse=True)
def reset_logger():
    """CLI tests reconfigure the project logger; restore propagation for caplog."""
    yield
    lg = logging.getLogger(LOGGER_NAME)
    lg.handlers.clear()
    lg.propagate = True
    lg.setLevel(logging.NOTSET)
