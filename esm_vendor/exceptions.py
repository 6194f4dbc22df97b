# File: esm_vendor/exceptions.py
"""esm_vendor.exceptions: иерархия ошибок обхода графа модулей."""

from __future__ import annotations

from typing import Optional

__all__ = (
    "VendorError",
    "ResolutionError",
    "ParseError",
    "FetchError",
    "ChannelProtocolError",
    "ImportMapError",
)


class VendorError(Exception):
    """Base class for every error raised by esm_vendor."""


class ResolutionError(VendorError):
    """Specifier could not be resolved against the base URL and import map."""

    def __init__(self, specifier: str, base_url: str, reason: str = "") -> None:
        self.specifier = specifier
        self.base_url = base_url
        self.reason = reason
        msg = f'Unable to resolve "{specifier}" from {base_url}'
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ParseError(VendorError):
    """Source text could not be tokenized as a module."""

    def __init__(self, message: str, line: int = 0, column: int = 0, url: Optional[str] = None) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.url = url
        where = f"{url}:" if url else ""
        super().__init__(f"{where}{line}:{column}: {message}")


class FetchError(VendorError):
    """Loading one locator failed.

    Instances double as the failure descriptor handed to a callback
    ``on_fetch_error`` policy: ``locator`` is the URL, ``cause`` the
    original exception (also chained as ``__cause__``).
    """

    def __init__(self, locator: str, cause: BaseException) -> None:
        self.locator = locator
        self.cause = cause
        super().__init__(f"Failed to fetch {locator}: {cause}")
        self.__cause__ = cause


class ChannelProtocolError(VendorError):
    """Internal invariant of the result channel was violated."""


class ImportMapError(VendorError, ValueError):
    """Raw import map has an invalid shape."""
