# File: tests/test_specifiers.py
import pytest

from esm_vendor.exceptions import ParseError
from esm_vendor.parser.specifiers import extract_specifiers, iter_specifiers, tokenize

SOURCE = '''
import "foo1.js";
import "foo2.ts";
import a from "foo3.js";
import b from "foo4.ts";
import {c} from "foo5.js";
import {d} from "foo6.ts";
export * from "foo7.js";
export * from "foo8.ts";

{
\timport "foo9.js";
\timport {e} from "foo10.ts";
}

import f from "./foo11.css" assert {type: "css"};

import type {typeA} from "type1.js";
import type * as typeB from "type2.js";

/** @typedef {import("type3.js").typeC} h */

/**
 * @param {import("type4.js").typeD} i
 */
function myFn(i) {}
'''

EXPECTED = [
    "foo1.js",
    "foo2.ts",
    "foo3.js",
    "foo4.ts",
    "foo5.js",
    "foo6.ts",
    "foo7.js",
    "foo8.ts",
    "foo9.js",
    "foo10.ts",
    "./foo11.css",
    "type1.js",
    "type2.js",
    "type3.js",
    "type4.js",
]


def test_collects_including_type_imports():
    assert extract_specifiers(SOURCE, True) == EXPECTED


def test_collects_excluding_type_imports():
    expected = [s for s in EXPECTED if not s.startswith("type")]
    assert extract_specifiers(SOURCE) == expected


def test_iter_specifiers_is_lazy_generator():
    gen = iter_specifiers('import "./a.js";')
    assert next(gen) == "./a.js"


@pytest.mark.parametrize(
    "source,expected",
    [
        ('import * as ns from "./ns.js";', ["./ns.js"]),
        ('import def, {a as b} from "./mixed.js";', ["./mixed.js"]),
        ('export * as ns from "./re.js";', ["./re.js"]),
        ('export {a, b as c} from "./named.js";', ["./named.js"]),
        ("export { a as default };", []),
        ("export const x = 1; export default function () {}", []),
        ('import type from "./default-named-type.js";', ["./default-named-type.js"]),
        ('import type, {x} from "./type-and-more.js";', ["./type-and-more.js"]),
        ('import {type T, value} from "./inline-type.js";', ["./inline-type.js"]),
        ('import data from "./data.json" with {type: "json"};', ["./data.json"]),
        ("import './single-quoted.js'", ["./single-quoted.js"]),
        ('import {from} from "./from.js";', ["./from.js"]),
    ],
)
def test_declaration_forms(source, expected):
    assert extract_specifiers(source) == expected


@pytest.mark.parametrize(
    "source",
    [
        'const m = await import("./dynamic.js");',
        "console.log(import.meta.url);",
        'const s = "import \'./in-string.js\'";',
        "// import './in-line-comment.js'",
        "/* import './in-block-comment.js' */",
        "const t = `import ${name} from './in-template.js'`;",
        'const r = /import "x"/g;',
        "const o = { import: 1, export: 2 }; o.import;",
        'import fs = require("fs");',
        "class A { import() {} export() {} }",
    ],
)
def test_non_declarations_are_ignored(source):
    assert extract_specifiers(source, True) == []


def test_type_only_export_is_filtered():
    source = 'export type {T} from "./types.js";\nexport type * from "./all-types.js";'
    assert extract_specifiers(source) == []
    assert extract_specifiers(source, True) == ["./types.js", "./all-types.js"]


def test_duplicates_are_kept():
    source = 'import "./a.js";\nimport {x} from "./a.js";\nexport * from "./a.js";'
    assert extract_specifiers(source) == ["./a.js", "./a.js", "./a.js"]


def test_escapes_in_specifier_are_decoded():
    assert extract_specifiers(r'import "\x2e/a.js";') == ["./a.js"]


@pytest.mark.parametrize(
    "expression",
    [
        "total / 2",
        "(a) / (b)",
        "i++ / 2",
        "a-- / b",
        "arr[i]++ / 2",
        "`t` / 2",
    ],
)
def test_division_is_not_mistaken_for_regex(expression):
    source = f'let i = 0;\nconst half = {expression}; const q = 1 / 2;\nimport "./after-division.js";'
    assert extract_specifiers(source) == ["./after-division.js"]


def test_regex_after_prefix_increment_and_template_substitution():
    source = 'x = a\n++/re/.lastIndex;\nconst s = `${/b}/.source}`;\nimport "./after-regex.js";'
    assert extract_specifiers(source) == ["./after-regex.js"]


def test_increment_tokens():
    tokens = tokenize("a++ + --b")
    assert [t.value for t in tokens] == ["a", "++", "+", "--", "b"]


def test_nested_template_expressions():
    source = 'const s = `a ${`b ${c}`} d`;\nimport "./after-template.js";'
    assert extract_specifiers(source) == ["./after-template.js"]


def test_hashbang_line_is_skipped():
    assert extract_specifiers('#!/usr/bin/env node\nimport "./cli.js";') == ["./cli.js"]


@pytest.mark.parametrize(
    "source",
    [
        'const a = /** @type {import("./cast.js").T} */ (b);',
        'import "./a.js";\nconst v =\n  /** @type {import("./cast.js").T} */ (x);\n',
        'call(a,\n  /** @type {import("./cast.js").T} */ (x));\n',
        'const s = a +\n  /** @type {import("./cast.js").T} */ (x);\n',
    ],
)
def test_jsdoc_cast_inside_expression_is_not_attached(source):
    assert "./cast.js" not in extract_specifiers(source, True)


def test_jsdoc_after_statement_without_semicolon_is_attached():
    source = 'const a = 1\n/** @type {import("./doc.js").T} */\nexport const b = a\n'
    assert extract_specifiers(source, True) == ["./doc.js"]


def test_jsdoc_at_end_of_file_is_not_attached():
    source = 'import "./a.js";\n/** @type {import("./trailing.js").T} */\n'
    assert extract_specifiers(source, True) == ["./a.js"]


def test_jsdoc_inside_function_body_is_not_attached():
    source = 'function f() {\n  /** @type {import("./inner.js").T} */\n  const x = 1;\n}\n'
    assert extract_specifiers(source, True) == []


def test_jsdoc_description_text_is_not_a_type_expression():
    source = '/** Loads import("./prose.js") lazily. @param {import("./param.js").P} p */\nfunction f(p) {}'
    assert extract_specifiers(source, True) == ["./param.js"]


def test_jsdoc_specifiers_follow_declarations():
    source = '/** @type {import("./doc.js").T} */\nexport const x = 1;\nimport "./runtime.js";'
    assert extract_specifiers(source, True) == ["./runtime.js", "./doc.js"]
    assert extract_specifiers(source, False) == ["./runtime.js"]


@pytest.mark.parametrize(
    "source,message",
    [
        ('import "./unterminated.js;\n', "Unterminated string"),
        ("/* never closed", "Unterminated block comment"),
        ("const t = `open ${x", "Unterminated template"),
        ("function f() {", "never closed"),
        ("const a = 1; }", "Unexpected '}'"),
        ("const r = /abc\n/;", "Unterminated regular expression"),
    ],
)
def test_parse_errors(source, message):
    with pytest.raises(ParseError, match=message):
        extract_specifiers(source)


def test_parse_error_position():
    with pytest.raises(ParseError) as exc_info:
        extract_specifiers('import "./ok.js";\nimport "broken')
    assert exc_info.value.line == 2
    assert exc_info.value.column == 8


def test_tokenize_drops_comments():
    tokens = tokenize("a /* b */ // c\n'd'")
    assert [(t.kind, t.value) for t in tokens] == [("name", "a"), ("string", "d")]
