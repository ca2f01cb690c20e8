# semantics/generics/usages.py
"""
Usage discovery and rewriting.

find_generic_usages() walks a buffer left to right and records every
`Identifier<...>` occurrence that parses as a generic reference, together
with every generic sub-expression nested inside it. Comparison operators are
told apart by the character after '<': `x < y` and `x <= y` never start a
generic. Comments and string literals are opaque.

replace_usages() is the matching rewrite: longest literal first, identifier
boundary on the left, comments and strings left untouched.
"""
from __future__ import annotations

from typing import Dict, Mapping

from peak_lang.internals.errors import PeakSyntaxError
from peak_lang.internals.generic_parser import GenericParser
from peak_lang.internals.scanner import IDENTIFIER_CHARS, IDENTIFIER_START, Scanner, is_identifier_char
from peak_lang.semantics.generics.types import GenericExpression, is_builtin_generic


def find_generic_usages(source: str, filename: str | None = None) -> Dict[str, GenericExpression]:
    """Find all non-built-in generic expressions in `source`.

    Returns:
        Mapping from the literal source text of each usage (e.g. "Queue<Integer>")
        to its parsed expression. Nested usages are recorded under their own
        literal text and, when spacing differs, under their canonical rendering.
        Built-in collections (List, Set, Map) are never recorded, but usages
        nested inside them are.
    """
    parser = GenericParser(source, filename)
    usages: Dict[str, GenericExpression] = {}

    while not parser.at_end:
        if parser.skip_comments() or parser.skip_string_literal():
            continue

        ch = parser.current()
        if ch not in IDENTIFIER_CHARS:
            parser.advance(1)
            continue

        start = parser.pos
        identifier = parser.parse_identifier()
        if identifier[0] not in IDENTIFIER_START:
            # Numeric literal such as 10 or 3e5
            continue

        parser.skip_whitespace()
        if parser.current() != "<":
            continue
        following = parser.peek(1)
        if following == "=" or following.isspace():
            continue

        # Speculative parse; on failure resume just past the rejected '<'
        saved_pos = parser.pos
        try:
            expr = parser.parse_generic(identifier, start)
        except PeakSyntaxError:
            parser.pos = saved_pos + 1
            continue

        if not is_builtin_generic(expr.base_name):
            usages[source[start:parser.pos]] = expr
        _collect_nested(source, expr, usages)

    return usages


def _collect_nested(source: str, expr: GenericExpression, usages: Dict[str, GenericExpression]) -> None:
    for arg in expr.nested():
        if arg.is_simple or is_builtin_generic(arg.base_name):
            continue
        canonical = str(arg)
        usages[canonical] = arg
        if arg.span is not None:
            literal = source[arg.span[0]:arg.span[1]]
            if literal != canonical:
                usages[literal] = arg


def replace_usages(source: str, replacements: Mapping[str, str]) -> str:
    """Replace literal usages with concrete names.

    Keys are tried longest first so `Dict<String, Queue<Integer>>` wins over
    the `Queue<Integer>` inside it. A key only matches where the preceding
    character is not part of an identifier (`MyQueue<Integer>` is not a
    `Queue<Integer>`). Comments and string literals are copied verbatim.
    """
    if not replacements:
        return source

    keys = sorted(replacements, key=len, reverse=True)
    scanner = Scanner(source)
    out = []
    copied = 0

    while not scanner.at_end:
        if scanner.skip_comments() or scanner.skip_string_literal():
            continue

        pos = scanner.pos
        if scanner.current() in IDENTIFIER_START and (pos == 0 or not is_identifier_char(source[pos - 1])):
            match = next((key for key in keys if source.startswith(key, pos)), None)
            if match is not None:
                out.append(source[copied:pos])
                out.append(replacements[match])
                scanner.advance(len(match))
                copied = scanner.pos
                continue

        scanner.advance(1)

    out.append(source[copied:])
    return "".join(out)
