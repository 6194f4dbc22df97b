# File: esm_vendor/parser/specifiers.py
"""esm_vendor.parser.specifiers: извлечение спецификаторов модулей из исходного текста JS/TS.

The extractor is a small tokenizer plus a declaration recognizer.  It does not
build a syntax tree; it only needs to know where strings, comments, template
literals and regular expressions begin and end so that ``import``/``export``
declarations are recognised reliably.

Example:
```python
from esm_vendor.parser.specifiers import extract_specifiers

extract_specifiers('import a from "./a.js"; export * from "./b.js";')
# ['./a.js', './b.js']
```
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator, List, NamedTuple, Optional, Sequence

from esm_vendor.exceptions import ParseError

__all__: Sequence[str] = ("extract_specifiers", "iter_specifiers", "tokenize")


class Token(NamedTuple):
    kind: str  # name | string | number | punct | template | regex
    value: str
    pos: int
    newline_before: bool


@dataclass(slots=True)
class _DocComment:
    text: str
    depth: int
    next_token: int
    newline_before: bool


_OPENERS = {"(": ")", "[": "]", "{": "}"}
_CLOSERS = {")": "(", "]": "[", "}": "{"}
_TEMPLATE_FRAME = "${"
_INCREMENTS = ("++", "--")

# keywords after which a "/" starts a regular expression rather than a division
_REGEX_KEYWORDS = frozenset(
    {
        "return", "typeof", "instanceof", "in", "of", "new", "delete", "void",
        "throw", "case", "do", "else", "yield", "await",
    }
)

_IDENT_RE = re.compile(r"[\w$\u200c\u200d]+")
_NUMBER_RE = re.compile(r"\.?\d(?:[eE][+-]\d|[\w.])*")
_SIMPLE_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v", "0": "\0"}
_LINE_TERMINATORS = "\n\r\u2028\u2029"
_JSDOC_IMPORT_RE = re.compile(r"""import\s*\(\s*(['"])(.*?)\1\s*\)""", re.S)


# --------------------------------------------------------------------------- #
# Tokenizer                                                                   #
# --------------------------------------------------------------------------- #


def _position(source: str, pos: int) -> tuple[int, int]:
    line = source.count("\n", 0, pos) + 1
    column = pos - (source.rfind("\n", 0, pos) + 1) + 1
    return line, column


def _error(source: str, pos: int, message: str) -> ParseError:
    line, column = _position(source, pos)
    return ParseError(message, line, column)


def _decode_escape(source: str, i: int) -> tuple[str, int]:
    """Decode the escape sequence whose backslash is at *i*; return (text, next index)."""
    c = source[i + 1] if i + 1 < len(source) else ""
    if c in _SIMPLE_ESCAPES and not (c == "0" and source[i + 2 : i + 3].isdigit()):
        return _SIMPLE_ESCAPES[c], i + 2
    if c == "x":
        digits = source[i + 2 : i + 4]
        if len(digits) == 2 and all(d in "0123456789abcdefABCDEF" for d in digits):
            return chr(int(digits, 16)), i + 4
        raise _error(source, i, "Invalid hexadecimal escape sequence")
    if c == "u":
        if source[i + 2 : i + 3] == "{":
            end = source.find("}", i + 3)
            if end == -1:
                raise _error(source, i, "Invalid Unicode escape sequence")
            try:
                return chr(int(source[i + 3 : end], 16)), end + 1
            except ValueError:
                raise _error(source, i, "Invalid Unicode escape sequence") from None
        digits = source[i + 2 : i + 6]
        try:
            return chr(int(digits, 16)), i + 6
        except ValueError:
            raise _error(source, i, "Invalid Unicode escape sequence") from None
    if c == "\r" and source[i + 2 : i + 3] == "\n":
        return "", i + 3
    if c in _LINE_TERMINATORS:
        return "", i + 2
    return c, i + 2


def _read_string(source: str, start: int) -> tuple[str, int]:
    quote = source[start]
    i = start + 1
    n = len(source)
    parts: List[str] = []
    while i < n:
        c = source[i]
        if c == quote:
            return "".join(parts), i + 1
        if c == "\\":
            text, i = _decode_escape(source, i)
            parts.append(text)
            continue
        if c in "\n\r":
            break
        parts.append(c)
        i += 1
    raise _error(source, start, "Unterminated string literal")


def _read_template_chunk(source: str, i: int, start: int) -> tuple[int, bool]:
    """Scan template text from *i*; return (next index, reached ``${``)."""
    n = len(source)
    while i < n:
        c = source[i]
        if c == "\\":
            i += 2
        elif c == "`":
            return i + 1, False
        elif c == "$" and source[i + 1 : i + 2] == "{":
            return i + 2, True
        else:
            i += 1
    raise _error(source, start, "Unterminated template literal")


def _read_regex(source: str, start: int) -> int:
    i = start + 1
    n = len(source)
    in_class = False
    while i < n:
        c = source[i]
        if c in _LINE_TERMINATORS:
            break
        if c == "\\":
            i += 2
            continue
        if c == "[":
            in_class = True
        elif c == "]":
            in_class = False
        elif c == "/" and not in_class:
            m = _IDENT_RE.match(source, i + 1)
            return m.end() if m else i + 1
        i += 1
    raise _error(source, start, "Unterminated regular expression literal")


def _ends_operand(tok: Optional[Token]) -> bool:
    """True if *tok* can be the last token of an operand."""
    if tok is None:
        return False
    if tok.kind == "punct":
        return tok.value in (")", "]")
    if tok.kind == "name":
        return tok.value not in _REGEX_KEYWORDS
    if tok.kind == "template":
        return tok.value.endswith("`")
    return True


def _regex_allowed(tokens: List[Token]) -> bool:
    prev = tokens[-1] if tokens else None
    if prev is None:
        return True
    if prev.kind == "punct" and prev.value in _INCREMENTS:
        # a postfix ++/-- hugs its operand on the same line; "/" after it divides
        return prev.newline_before or not _ends_operand(_at(tokens, len(tokens) - 2))
    return not _ends_operand(prev)


def _scan(source: str) -> tuple[List[Token], List[_DocComment]]:
    tokens: List[Token] = []
    docs: List[_DocComment] = []
    stack: List[tuple[str, int]] = []
    n = len(source)
    i = 0
    newline = True

    if source.startswith("#!"):
        i = source.find("\n")
        i = n if i == -1 else i

    def emit(kind: str, value: str, pos: int) -> None:
        nonlocal newline
        tokens.append(Token(kind, value, pos, newline))
        newline = False

    while i < n:
        c = source[i]
        if c in _LINE_TERMINATORS:
            newline = True
            i += 1
        elif c.isspace() or c == "\ufeff":
            i += 1
        elif source.startswith("//", i):
            end = source.find("\n", i)
            i = n if end == -1 else end
        elif source.startswith("/*", i):
            end = source.find("*/", i + 2)
            if end == -1:
                raise _error(source, i, "Unterminated block comment")
            text = source[i : end + 2]
            if text.startswith("/**") and text != "/**/":
                docs.append(_DocComment(text, len(stack), len(tokens), newline))
            if any(ch in _LINE_TERMINATORS for ch in text):
                newline = True
            i = end + 2
        elif c in "'\"":
            value, end = _read_string(source, i)
            emit("string", value, i)
            i = end
        elif c == "`":
            end, opened = _read_template_chunk(source, i + 1, i)
            emit("template", source[i:end], i)
            if opened:
                stack.append((_TEMPLATE_FRAME, i))
            i = end
        elif c == "}" and stack and stack[-1][0] == _TEMPLATE_FRAME:
            _, start = stack.pop()
            end, opened = _read_template_chunk(source, i + 1, start)
            emit("template", source[i:end], i)
            if opened:
                stack.append((_TEMPLATE_FRAME, start))
            i = end
        elif c.isdigit() or (c == "." and source[i + 1 : i + 2].isdigit()):
            m = _NUMBER_RE.match(source, i)
            emit("number", m.group(), i)
            i = m.end()
        elif c == "$" or c == "_" or c.isalpha() or c == "\\":
            if c == "\\":
                # identifier starting with a unicode escape
                value, i2 = _decode_escape(source, i)
                m = _IDENT_RE.match(source, i2)
                end = m.end() if m else i2
                emit("name", value + source[i2:end], i)
                i = end
            else:
                m = _IDENT_RE.match(source, i)
                emit("name", m.group(), i)
                i = m.end()
        elif c == "/" and _regex_allowed(tokens):
            end = _read_regex(source, i)
            emit("regex", source[i:end], i)
            i = end
        elif c in _OPENERS:
            stack.append((c, i))
            emit("punct", c, i)
            i += 1
        elif c in _CLOSERS:
            if not stack or stack[-1][0] != _CLOSERS[c]:
                raise _error(source, i, f"Unexpected '{c}'")
            stack.pop()
            emit("punct", c, i)
            i += 1
        elif source.startswith(_INCREMENTS, i):
            emit("punct", source[i : i + 2], i)
            i += 2
        else:
            emit("punct", c, i)
            i += 1

    if stack:
        opener, pos = stack[-1]
        if opener == _TEMPLATE_FRAME:
            raise _error(source, pos, "Unterminated template literal")
        raise _error(source, pos, f"'{opener}' was never closed")
    return tokens, docs


def tokenize(source: str) -> List[Token]:
    """Split *source* into tokens; comments and whitespace are dropped."""
    return _scan(source)[0]


# --------------------------------------------------------------------------- #
# Declaration recognizer                                                      #
# --------------------------------------------------------------------------- #


def _is(tok: Optional[Token], kind: str, value: Optional[str] = None) -> bool:
    return tok is not None and tok.kind == kind and (value is None or tok.value == value)


def _at(tokens: List[Token], k: int) -> Optional[Token]:
    return tokens[k] if 0 <= k < len(tokens) else None


def _find_from_clause(tokens: List[Token], k: int) -> Optional[str]:
    """Walk an import/export clause starting at *k* up to ``from "x"``."""
    depth = 0
    while k < len(tokens):
        tok = tokens[k]
        if _is(tok, "punct", ";"):
            return None
        if _is(tok, "punct", "{"):
            depth += 1
        elif _is(tok, "punct", "}"):
            depth -= 1
            if depth < 0:
                return None
        elif depth == 0:
            if _is(tok, "name", "from") and _is(_at(tokens, k + 1), "string"):
                return tokens[k + 1].value
            if not (tok.kind == "name" or _is(tok, "punct", ",") or _is(tok, "punct", "*")):
                return None
        k += 1
    return None


def _import_declaration(tokens: List[Token], idx: int) -> tuple[Optional[str], bool]:
    """Return (specifier, type_only) for the ``import`` keyword at *idx*."""
    nxt = _at(tokens, idx + 1)
    if _is(nxt, "string"):
        return nxt.value, False
    if nxt is None or not (nxt.kind == "name" or (nxt.kind == "punct" and nxt.value in "{*")):
        return None, False
    type_only = False
    if _is(nxt, "name", "type"):
        after = _at(tokens, idx + 2)
        default_named_type = _is(after, "name", "from") and _is(_at(tokens, idx + 3), "string")
        if not default_named_type and (
            _is(after, "name") or _is(after, "punct", "{") or _is(after, "punct", "*")
        ):
            type_only = True
    return _find_from_clause(tokens, idx + 1), type_only


def _export_declaration(tokens: List[Token], idx: int) -> tuple[Optional[str], bool]:
    nxt = _at(tokens, idx + 1)
    type_only = False
    start = idx + 1
    if _is(nxt, "name", "type"):
        after = _at(tokens, idx + 2)
        if not (_is(after, "punct", "{") or _is(after, "punct", "*")):
            return None, False
        type_only = True
        start = idx + 2
    elif not (_is(nxt, "punct", "{") or _is(nxt, "punct", "*")):
        return None, False
    return _find_from_clause(tokens, start), type_only


def _declaration_specifiers(tokens: List[Token], include_type_imports: bool) -> Iterator[str]:
    for idx, tok in enumerate(tokens):
        if tok.kind != "name" or tok.value not in ("import", "export"):
            continue
        prev = _at(tokens, idx - 1)
        if _is(prev, "punct", "."):
            continue
        if tok.value == "import":
            specifier, type_only = _import_declaration(tokens, idx)
        else:
            specifier, type_only = _export_declaration(tokens, idx)
        if specifier is None or (type_only and not include_type_imports):
            continue
        yield specifier


# --------------------------------------------------------------------------- #
# JSDoc type references                                                       #
# --------------------------------------------------------------------------- #


def _type_expressions(comment: str) -> Iterator[str]:
    depth = 0
    start = 0
    for i, c in enumerate(comment):
        if c == "{":
            if depth == 0:
                start = i + 1
            depth += 1
        elif c == "}" and depth:
            depth -= 1
            if depth == 0:
                yield comment[start:i]
    if depth:
        yield comment[start:]


def _is_attached(doc: _DocComment, tokens: List[Token]) -> bool:
    if doc.depth != 0 or doc.next_token >= len(tokens):
        return False
    prev = _at(tokens, doc.next_token - 1)
    if prev is None or _is(prev, "punct", ";") or _is(prev, "punct", "}"):
        return True
    # automatic semicolon: the line break ends a statement only after a complete operand
    return doc.newline_before and (_ends_operand(prev) or (prev.kind == "punct" and prev.value in _INCREMENTS))


def _jsdoc_specifiers(tokens: List[Token], docs: List[_DocComment]) -> Iterator[str]:
    for doc in docs:
        if not _is_attached(doc, tokens):
            continue
        for expression in _type_expressions(doc.text):
            for m in _JSDOC_IMPORT_RE.finditer(expression):
                yield m.group(2)


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #


def iter_specifiers(source: str, include_type_imports: bool = False) -> Iterator[str]:
    """Yield module specifiers referenced by *source* in document order.

    Declaration-level specifiers come first; with *include_type_imports*
    the ``import("…")`` references of JSDoc type expressions follow.
    Duplicates are kept.  Raises :class:`ParseError` on malformed text
    before anything is yielded.
    """
    tokens, docs = _scan(source)
    yield from _declaration_specifiers(tokens, include_type_imports)
    if include_type_imports:
        yield from _jsdoc_specifiers(tokens, docs)


def extract_specifiers(source: str, include_type_imports: bool = False) -> List[str]:
    """List form of :func:`iter_specifiers`."""
    return list(iter_specifiers(source, include_type_imports))
