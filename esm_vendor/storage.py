# File: esm_vendor/storage.py
"""esm_vendor.storage: сохранение загруженных модулей на диск.

Each URL maps to ``<out_dir>/<authority>/<path>``; characters that are not
allowed in Windows file names are replaced with ``_``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union
from urllib.parse import urlsplit

from esm_vendor.crawler.crawler import fetch_dependencies
from esm_vendor.crawler.models import FetchedResource
from esm_vendor.logger import logger

__all__: Sequence[str] = ("WrittenFile", "local_path", "save_resource", "vendor")

_UNSAFE_CHARS_RE = re.compile(r'[<>:"|?*]')
# file name for URLs whose last path segment is not a module file name (`/react@18.2.0`)
INDEX_NAME = "__index__.js"
_MODULE_SUFFIXES = (".js", ".mjs", ".cjs", ".jsx", ".ts", ".mts", ".cts", ".tsx", ".json", ".css", ".wasm")


@dataclass(frozen=True, slots=True)
class WrittenFile:
    """One materialized module: its URL and where it was written."""

    url: str
    path: Path

    def as_dict(self) -> Dict[str, str]:
        return {"url": self.url, "path": str(self.path)}


def _sanitize(part: str) -> str:
    return _UNSAFE_CHARS_RE.sub("_", part)


def local_path(url: str, out_dir: Union[str, Path]) -> Path:
    """Map *url* to a file below *out_dir*."""
    parts = urlsplit(url)
    authority = _sanitize(parts.netloc)
    path = _sanitize(parts.path).lstrip("/")
    segments = [s for s in path.split("/") if s not in ("", ".", "..")]
    if not segments or parts.path.endswith("/") or not segments[-1].lower().endswith(_MODULE_SUFFIXES):
        segments.append(INDEX_NAME)
    return Path(out_dir, authority, *segments)


def save_resource(resource: FetchedResource, out_dir: Union[str, Path]) -> WrittenFile:
    """Write *resource* as UTF-8 text, creating parent directories."""
    target = local_path(resource.url, out_dir)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(resource.content, encoding="utf-8")
    logger.debug("Saved %s → %s (%d chars)", resource.url, target, len(resource.content))
    return WrittenFile(resource.url, target)


async def vendor(
    entry_points: Sequence[str],
    out_dir: Union[str, Path] = "vendor",
    **crawl_options: Any,
) -> List[WrittenFile]:
    """Crawl *entry_points* and write every module below *out_dir* as it arrives.

    *crawl_options* are passed on to :func:`fetch_dependencies`.
    """
    written: List[WrittenFile] = []
    async for resource in fetch_dependencies(entry_points, **crawl_options):
        written.append(save_resource(resource, out_dir))
    logger.info("Vendored %d file(s) into %s", len(written), out_dir)
    return written
