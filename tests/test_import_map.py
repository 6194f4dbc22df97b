# File: tests/test_import_map.py
import json
import logging
from pathlib import Path

import pytest

from esm_vendor.exceptions import ImportMapError, ResolutionError
from esm_vendor.parser.import_map import (
    ImportMap,
    cwd_base_url,
    normalize_url,
    parse_import_map,
    resolve_module_specifier,
)

BASE = "https://example.com/app/main.js"


def resolve(raw, specifier, base=BASE, map_base="https://example.com/"):
    return resolve_module_specifier(parse_import_map(raw, map_base), base, specifier)


@pytest.mark.parametrize(
    "specifier,expected",
    [
        ("./dep.js", "https://example.com/app/dep.js"),
        ("../lib/dep.js", "https://example.com/lib/dep.js"),
        ("/root.js", "https://example.com/root.js"),
        ("https://cdn.example.org/x.js", "https://cdn.example.org/x.js"),
        ("HTTPS://CDN.Example.org/y.js", "https://cdn.example.org/y.js"),
    ],
)
def test_url_like_specifiers_without_map(specifier, expected):
    assert resolve_module_specifier(ImportMap(), BASE, specifier) == expected


def test_authority_only_base_gets_root_path():
    assert resolve_module_specifier(ImportMap(), "https://example.com", "/foo.js") == "https://example.com/foo.js"
    assert normalize_url("https://Example.com") == "https://example.com/"


@pytest.mark.parametrize("specifier", ["lodash", "@scope/pkg", "dep.js"])
def test_unmapped_bare_specifier_fails(specifier):
    with pytest.raises(ResolutionError) as exc_info:
        resolve_module_specifier(ImportMap(), BASE, specifier)
    assert exc_info.value.specifier == specifier
    assert exc_info.value.base_url == BASE


def test_exact_match():
    raw = {"imports": {"lodash": "https://cdn.example.org/lodash.js"}}
    assert resolve(raw, "lodash") == "https://cdn.example.org/lodash.js"


def test_address_is_resolved_against_map_base():
    raw = {"imports": {"utils": "./shared/utils.js"}}
    assert resolve(raw, "utils") == "https://example.com/shared/utils.js"


def test_prefix_match_and_most_specific_wins():
    raw = {
        "imports": {
            "lib/": "https://cdn.example.org/lib/",
            "lib/special/": "https://other.example.org/special/",
        }
    }
    assert resolve(raw, "lib/a.js") == "https://cdn.example.org/lib/a.js"
    assert resolve(raw, "lib/special/b.js") == "https://other.example.org/special/b.js"


def test_url_like_key_remaps_relative_import():
    raw = {"imports": {"/app/old.js": "/app/new.js"}}
    assert resolve(raw, "./old.js") == "https://example.com/app/new.js"


def test_scopes_take_precedence_for_matching_base():
    raw = {
        "imports": {"dep": "/dep-v1.js"},
        "scopes": {"/vendor/": {"dep": "/dep-v2.js"}},
    }
    assert resolve(raw, "dep", base="https://example.com/vendor/x.js") == "https://example.com/dep-v2.js"
    assert resolve(raw, "dep", base="https://example.com/main.js") == "https://example.com/dep-v1.js"


def test_scope_falls_back_to_top_level_imports():
    raw = {
        "imports": {"other": "/other.js"},
        "scopes": {"/vendor/": {"dep": "/dep-v2.js"}},
    }
    assert resolve(raw, "other", base="https://example.com/vendor/x.js") == "https://example.com/other.js"


def test_null_entry_blocks_resolution(caplog):
    raw = {"imports": {"blocked": None}}
    with caplog.at_level(logging.WARNING, logger="esm_vendor"):
        import_map = parse_import_map(raw, "https://example.com/")
    assert "blocked" in caplog.text
    with pytest.raises(ResolutionError, match="blocked"):
        resolve_module_specifier(import_map, BASE, "blocked")


def test_prefix_key_with_non_slash_address_is_invalid():
    raw = {"imports": {"lib/": "https://cdn.example.org/lib"}}
    with pytest.raises(ResolutionError):
        resolve(raw, "lib/a.js")


def test_backtracking_above_prefix_fails():
    raw = {"imports": {"lib/": "https://cdn.example.org/lib/"}}
    with pytest.raises(ResolutionError, match="backtracks"):
        resolve(raw, "lib/../../secret.js")


def test_parse_accepts_json_text():
    import_map = parse_import_map(json.dumps({"imports": {"a": "/a.js"}}), "https://example.com/")
    assert dict(import_map.imports) == {"a": "https://example.com/a.js"}


def test_parsed_map_is_sorted_and_read_only():
    import_map = parse_import_map({"imports": {"a/": "/a/", "a/b/": "/b/", "z": "/z.js"}}, "https://example.com/")
    assert list(import_map.imports) == ["z", "a/b/", "a/"]
    with pytest.raises(TypeError):
        import_map.imports["new"] = "/x.js"  # type: ignore[index]


@pytest.mark.parametrize(
    "raw",
    [
        ["not", "an", "object"],
        {"imports": ["x"]},
        {"scopes": {"/s/": "x"}},
        "{not json",
    ],
)
def test_invalid_import_map_shapes(raw):
    with pytest.raises(ImportMapError):
        parse_import_map(raw, "https://example.com/")


def test_cwd_base_url(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    url = cwd_base_url()
    assert url.startswith("file://")
    assert url.endswith("/")
    assert url == tmp_path.resolve().as_uri() + "/"
    assert resolve_module_specifier(ImportMap(), url, "./a.js") == (tmp_path.resolve() / "a.js").as_uri()


def test_file_urls_resolve_relative_paths():
    base = Path("/srv/project/src/main.js").as_uri()
    assert resolve_module_specifier(ImportMap(), base, "../lib/x.js") == "file:///srv/project/lib/x.js"
