# File: esm_vendor/parser/import_map.py
"""esm_vendor.parser.import_map: разбор import map и разрешение спецификаторов в абсолютные URL.

Implements the resolution rules of the WHATWG import maps proposal:
URL-like specifiers (``/``, ``./``, ``../`` and absolute URLs) are parsed
against the base URL, bare specifiers must be mapped by ``imports`` or a
matching entry in ``scopes``.  Keys ending in ``/`` map whole prefixes.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Union
from urllib.parse import urljoin, urlsplit, urlunsplit

from esm_vendor.exceptions import ImportMapError, ResolutionError
from esm_vendor.logger import logger

__all__: Sequence[str] = (
    "ImportMap",
    "parse_import_map",
    "resolve_module_specifier",
    "normalize_url",
    "cwd_base_url",
    "is_absolute_url",
)

SpecifierMap = Mapping[str, Optional[str]]

_SCHEME_RE = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*")
_SPECIAL_SCHEMES = frozenset({"ftp", "file", "http", "https", "ws", "wss"})
_EMPTY: SpecifierMap = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ImportMap:
    """Parsed import map; keys are sorted most specific first."""

    imports: SpecifierMap = field(default_factory=lambda: _EMPTY)
    scopes: Mapping[str, SpecifierMap] = field(default_factory=lambda: MappingProxyType({}))


# --------------------------------------------------------------------------- #
# URL helpers                                                                 #
# --------------------------------------------------------------------------- #


def normalize_url(url: str) -> str:
    """Lower-case scheme and host, give authority-only URLs an explicit ``/`` path."""
    parts = urlsplit(url)
    path = parts.path
    if parts.netloc and not path:
        path = "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, parts.fragment))


def cwd_base_url() -> str:
    """``file://`` URL of the current working directory, ending with ``/``."""
    return Path.cwd().resolve().as_uri().rstrip("/") + "/"


def is_absolute_url(value: str) -> bool:
    scheme, sep, _ = value.partition(":")
    return bool(sep) and bool(_SCHEME_RE.fullmatch(scheme))


def _parse_url_like(specifier: str, base_url: str) -> Optional[str]:
    try:
        if specifier.startswith(("/", "./", "../")):
            return normalize_url(urljoin(base_url, specifier))
        if is_absolute_url(specifier):
            return normalize_url(specifier)
    except ValueError:
        return None
    return None


def _is_special(url: str) -> bool:
    return urlsplit(url).scheme in _SPECIAL_SCHEMES


# --------------------------------------------------------------------------- #
# Parsing                                                                     #
# --------------------------------------------------------------------------- #


def _sort_and_normalize(raw: Mapping[str, Any], base_url: str) -> SpecifierMap:
    normalized: Dict[str, Optional[str]] = {}
    for key, value in raw.items():
        if not isinstance(key, str) or key == "":
            logger.warning("Import map: ignoring invalid specifier key %r", key)
            continue
        norm_key = _parse_url_like(key, base_url) or key
        if not isinstance(value, str):
            logger.warning("Import map: address for %r must be a string, got %r", key, value)
            normalized[norm_key] = None
            continue
        address = _parse_url_like(value, base_url)
        if address is None:
            logger.warning("Import map: address %r for %r is not a valid URL", value, key)
            normalized[norm_key] = None
            continue
        if key.endswith("/") and not address.endswith("/"):
            logger.warning("Import map: address %r for prefix %r must end with '/'", value, key)
            normalized[norm_key] = None
            continue
        normalized[norm_key] = address
    return MappingProxyType(dict(sorted(normalized.items(), reverse=True)))


def parse_import_map(raw: Union[Mapping[str, Any], str, None], base_url: str) -> ImportMap:
    """Validate and normalise a raw import map (mapping or JSON text) against *base_url*."""
    if raw is None:
        return ImportMap()
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ImportMapError(f"Import map is not valid JSON: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ImportMapError(f"Import map must be a JSON object, got {type(raw).__name__}")

    base_url = normalize_url(base_url)
    imports = raw.get("imports", {})
    if not isinstance(imports, Mapping):
        raise ImportMapError('"imports" top-level key must be a JSON object')
    scopes_raw = raw.get("scopes", {})
    if not isinstance(scopes_raw, Mapping):
        raise ImportMapError('"scopes" top-level key must be a JSON object')

    scopes: Dict[str, SpecifierMap] = {}
    for prefix, scope_imports in scopes_raw.items():
        if not isinstance(scope_imports, Mapping):
            raise ImportMapError(f'The value for the "{prefix}" scope prefix must be an object')
        try:
            scope_url = normalize_url(urljoin(base_url, prefix))
        except ValueError:
            logger.warning("Import map: ignoring scope with invalid prefix %r", prefix)
            continue
        scopes[scope_url] = _sort_and_normalize(scope_imports, base_url)

    for key in raw:
        if key not in ("imports", "scopes", "integrity"):
            logger.warning("Import map: unknown top-level key %r", key)

    return ImportMap(
        imports=_sort_and_normalize(imports, base_url),
        scopes=MappingProxyType(dict(sorted(scopes.items(), reverse=True))),
    )


# --------------------------------------------------------------------------- #
# Resolution                                                                  #
# --------------------------------------------------------------------------- #


def _resolve_imports_match(
    specifier: str, normalized: str, as_url: Optional[str], base_url: str, mapping: SpecifierMap
) -> Optional[str]:
    for key, address in mapping.items():
        if key == normalized:
            if address is None:
                raise ResolutionError(specifier, base_url, f'blocked by a null entry for "{key}"')
            return address
        if key.endswith("/") and normalized.startswith(key) and (as_url is None or _is_special(as_url)):
            if address is None:
                raise ResolutionError(specifier, base_url, f'blocked by a null entry for "{key}"')
            after_prefix = normalized[len(key):]
            try:
                url = normalize_url(urljoin(address, after_prefix))
            except ValueError:
                raise ResolutionError(specifier, base_url, f'"{after_prefix}" is not a valid URL suffix') from None
            if not url.startswith(address):
                raise ResolutionError(specifier, base_url, f'backtracks above its prefix "{key}"')
            return url
    return None


def resolve_module_specifier(import_map: ImportMap, base_url: str, specifier: str) -> str:
    """Resolve *specifier* imported from *base_url* into an absolute URL.

    Raises :class:`ResolutionError` for bare specifiers the map does not
    cover and for blocked mappings.
    """
    base_url = normalize_url(base_url)
    as_url = _parse_url_like(specifier, base_url)
    normalized = as_url or specifier

    for scope_prefix, scope_imports in import_map.scopes.items():
        if scope_prefix == base_url or (scope_prefix.endswith("/") and base_url.startswith(scope_prefix)):
            resolved = _resolve_imports_match(specifier, normalized, as_url, base_url, scope_imports)
            if resolved is not None:
                return resolved

    resolved = _resolve_imports_match(specifier, normalized, as_url, base_url, import_map.imports)
    if resolved is not None:
        return resolved
    if as_url is not None:
        return as_url
    raise ResolutionError(
        specifier,
        base_url,
        'relative references must start with "/", "./" or "../" and bare specifiers must be mapped',
    )
