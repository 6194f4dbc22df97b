# === FILE: esm_vendor/parser/html_parser.py ===
"""HTML entry discovery for esm_vendor.

A page that boots an application with ``<script type="module">`` tags and an
inline ``<script type="importmap">`` already describes everything a crawl
needs: this module turns such a page into entry points plus an import map.

* entry_points: absolute URLs of module scripts with a ``src`` attribute,
  in document order.
* import_map: parsed JSON of the first inline import map, or ``{}``.
"""
from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from esm_vendor.exceptions import ImportMapError

__all__: Sequence[str] = ("HtmlEntries", "parse_module_entries")


@dataclass(slots=True)
class HtmlEntries:
    """Module scripts and import map found on one HTML page."""

    page_url: str
    entry_points: list[str] = field(default_factory=list)
    import_map: dict[str, Any] = field(default_factory=dict)


def _script_type(tag: Tag) -> str:
    value = tag.get("type")
    return value.strip().lower() if isinstance(value, str) else ""


def parse_module_entries(html: str, page_url: str) -> HtmlEntries:
    """Collect module script URLs and the inline import map from *html*."""
    soup = BeautifulSoup(html, "html.parser")
    entries = HtmlEntries(page_url)
    import_map_found = False
    for tag in soup.find_all("script"):
        if not isinstance(tag, Tag):
            continue
        kind = _script_type(tag)
        if kind == "module":
            src = tag.get("src")
            if isinstance(src, str) and src.strip():
                entries.entry_points.append(urljoin(page_url, src.strip()))
        elif kind == "importmap" and not import_map_found:
            import_map_found = True
            try:
                data = json.loads(tag.string or "{}")
            except json.JSONDecodeError as exc:
                raise ImportMapError(f"Inline import map in {page_url} is not valid JSON: {exc}") from exc
            if not isinstance(data, dict):
                raise ImportMapError(f"Inline import map in {page_url} must be a JSON object")
            entries.import_map = data
    return entries
