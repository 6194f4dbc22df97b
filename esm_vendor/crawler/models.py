# esm_vendor/crawler/models.py
"""
Data models for the dependency crawler.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Literal, Union

from esm_vendor.exceptions import FetchError

__all__ = ("FetchedResource", "FetchErrorPolicy", "FetchErrorHandler")


@dataclass(frozen=True, slots=True)
class FetchedResource:
    """Holds the absolute URL and text content of one fetched module."""

    url: str
    content: str

    def as_dict(self) -> Dict[str, str]:
        return {"url": self.url, "content": self.content}


FetchErrorHandler = Callable[[FetchError], None]
FetchErrorPolicy = Union[Literal["error", "none"], FetchErrorHandler]
