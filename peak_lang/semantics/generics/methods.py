# semantics/generics/methods.py
"""
Generic method discovery.

Finds methods declared as

    [modifiers] <T, U> ReturnType methodName(params) { body }

where the `<...>` follows one of the Apex method modifiers. The return type
is not parsed. It is skipped heuristically: angle-bracket depth is tracked,
and each identifier at depth zero is tried as the method name until one is
directly followed by '('. This is best effort against an unparsed grammar.
Known failure mode: a candidate that never reaches '(' before ';', '{' or
'=' is silently not a method (field declarations, abstract methods).

The owning class is supplied by the caller; one owner per scan.
"""
from __future__ import annotations

from typing import Dict, Optional

from peak_lang.internals.generic_parser import GenericParser
from peak_lang.internals.scanner import IDENTIFIER_CHARS, IDENTIFIER_START
from peak_lang.semantics.generics.types import GenericMethodDefinition

METHOD_MODIFIERS = frozenset({
    "public", "private", "protected", "global",
    "static", "final", "override", "virtual", "abstract",
})


def find_generic_methods(source: str, owner_class_name: str, filename: Optional[str] = None,
                         start: int = 0, end: Optional[int] = None) -> Dict[str, GenericMethodDefinition]:
    """Scan `source[start:end]` for generic methods of `owner_class_name`.

    Args:
        source: Full file text; spans in the result are offsets into it.
        owner_class_name: Class the methods are keyed under ("Owner.method").
        filename: Used in diagnostics.
        start: First offset to scan.
        end: Offset to stop at (default: end of source).

    Returns:
        Mapping from "Owner.method" to its GenericMethodDefinition.

    Raises:
        PeakSyntaxError: A method type-parameter list is malformed
            (multi-letter, duplicate, `<<` / `>>`).
    """
    limit = len(source) if end is None else min(end, len(source))
    parser = GenericParser(source, filename, pos=start)
    methods: Dict[str, GenericMethodDefinition] = {}
    run_start: Optional[int] = None

    while parser.pos < limit:
        if parser.skip_comments() or parser.skip_string_literal():
            continue

        ch = parser.current()
        if ch.isspace():
            parser.advance(1)
            continue
        if ch not in IDENTIFIER_CHARS:
            run_start = None
            parser.advance(1)
            continue

        token_start = parser.pos
        word = parser.parse_identifier()
        if word not in METHOD_MODIFIERS:
            run_start = None
            continue
        if run_start is None:
            run_start = token_start

        parser.skip_whitespace()
        if parser.current() != "<":
            continue

        bracket_start = parser.pos
        params = parser.parse_type_parameter_list()
        bracket_end = parser.pos

        method_name = _skip_return_type(parser, limit)
        if method_name is None:
            run_start = None
            continue

        if not parser.skip_balanced("(", ")"):
            break
        signature_end = parser.pos

        parser.skip_whitespace_and_comments()
        if parser.current() != "{":
            run_start = None
            continue

        body_start = parser.pos
        parser.skip_balanced("{", "}")

        method = GenericMethodDefinition(
            owner_class_name=owner_class_name,
            method_name=method_name,
            type_parameters=tuple(params),
            signature_text=source[run_start:signature_end],
            body_text=source[body_start:parser.pos],
            type_parameter_text=source[bracket_start:bracket_end],
            source_span=(run_start, parser.pos),
        )
        methods[method.key] = method
        run_start = None

    return methods


def _skip_return_type(parser: GenericParser, limit: int) -> Optional[str]:
    """Skip the return type; return the method name with the cursor on '('."""
    depth = 0
    while parser.pos < limit:
        parser.skip_whitespace_and_comments()
        ch = parser.current()
        if ch == "<":
            depth += 1
            parser.advance(1)
        elif ch == ">":
            depth = max(0, depth - 1)
            parser.advance(1)
        elif ch in ",.[]":
            parser.advance(1)
        elif ch in IDENTIFIER_START:
            name = parser.parse_identifier()
            if depth == 0:
                parser.skip_whitespace()
                if parser.current() == "(":
                    return name
        else:
            return None
    return None
