# semantics/generics/templates.py
"""
Template (generic class) discovery.

Finds declarations of the form

    [annotations] [modifiers] class Name<T, U> [extends ...] [implements ...] { body }

Modifiers are whatever identifier tokens directly precede `class`. Apex
sharing modes get a small check of their own: `sharing` is only valid right
after `with`, `without` or `inherited`, and one of those three must be
followed by `sharing`. A run that breaks the rule is dropped and the
offending token starts a new run.

Type-parameter lists are parsed strictly (single letters, no duplicates,
no `<<` / `>>`); any violation aborts the scan with a PeakSyntaxError.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from peak_lang.internals.generic_parser import GenericParser
from peak_lang.internals.scanner import IDENTIFIER_CHARS, IDENTIFIER_START, Scanner
from peak_lang.semantics.generics.types import TemplateDefinition

SHARING_KEYWORD = "sharing"
SHARING_PREFIXES = frozenset({"with", "without", "inherited"})


def find_class_templates(source: str, filename: Optional[str] = None) -> Dict[str, TemplateDefinition]:
    """Scan `source` for generic class declarations.

    Returns:
        Mapping from class name to its TemplateDefinition; empty when the
        buffer declares no generic class.

    Raises:
        PeakSyntaxError: A `class Name<...>` declaration has a malformed
            type-parameter list.
    """
    parser = GenericParser(source, filename)
    templates: Dict[str, TemplateDefinition] = {}
    run: List[int] = []         # start offsets of the current modifier tokens
    awaiting_sharing = False    # saw with/without/inherited

    while not parser.at_end:
        if parser.skip_comments() or parser.skip_string_literal():
            continue

        ch = parser.current()
        if ch.isspace():
            parser.advance(1)
            continue

        if ch == "@":
            # Annotations stay part of the modifier run: @IsTest private class ...
            if awaiting_sharing:
                run.clear()
                awaiting_sharing = False
            run.append(parser.pos)
            parser.advance(1)
            parser.parse_identifier()
            parser.skip_whitespace()
            if parser.current() == "(":
                parser.skip_balanced("(", ")")
            continue

        if ch not in IDENTIFIER_START:
            if ch in IDENTIFIER_CHARS:
                parser.parse_identifier()
            else:
                parser.advance(1)
            run.clear()
            awaiting_sharing = False
            continue

        token_start = parser.pos
        word = parser.parse_identifier()

        if word == SHARING_KEYWORD:
            if awaiting_sharing:
                run.append(token_start)
            else:
                run.clear()
            awaiting_sharing = False
            continue

        if awaiting_sharing:
            run.clear()
            awaiting_sharing = False

        if word != "class" or source[token_start - 1:token_start] == ".":
            run.append(token_start)
            awaiting_sharing = word in SHARING_PREFIXES
            continue

        declaration_start = run[0] if run else token_start
        run.clear()
        template = _parse_class_declaration(parser, source, declaration_start, token_start)
        if template is not None:
            templates[template.class_name] = template

    return templates


def _parse_class_declaration(parser: GenericParser, source: str, declaration_start: int,
                             keyword_start: int) -> Optional[TemplateDefinition]:
    """Continue after the `class` keyword; None for a non-generic class."""
    parser.skip_whitespace_and_comments()
    class_name = parser.parse_identifier()
    if not class_name or class_name[0] not in IDENTIFIER_START:
        return None

    parser.skip_whitespace()
    if parser.current() != "<":
        return None

    bracket_start = parser.pos
    params = parser.parse_type_parameter_list()
    bracket_end = parser.pos

    # Body starts at the first '{' outside comments and strings
    while not parser.at_end and parser.current() != "{":
        if parser.skip_comments() or parser.skip_string_literal():
            continue
        parser.advance(1)

    body_start = parser.pos
    parser.skip_balanced("{", "}")
    body_end = parser.pos

    return TemplateDefinition(
        class_name=class_name,
        type_parameters=tuple(params),
        body_text=source[body_start:body_end],
        modifiers_text=source[declaration_start:keyword_start].strip(),
        declaration_text=source[declaration_start:bracket_end],
        type_parameter_text=source[bracket_start:bracket_end],
        header_text=source[bracket_end:body_start],
        source_span=(declaration_start, body_end),
        body_start=body_start,
    )


def find_first_class_name(source: str) -> str:
    """Name following the first `class` keyword, "" if there is none.

    Owner heuristic for generic methods in files without a class template.
    """
    scanner = Scanner(source)
    while not scanner.at_end:
        if scanner.skip_comments() or scanner.skip_string_literal():
            continue
        if scanner.current() not in IDENTIFIER_CHARS:
            scanner.advance(1)
            continue
        word = scanner.parse_identifier()
        if word == "class":
            scanner.skip_whitespace_and_comments()
            name = scanner.parse_identifier()
            if name and name[0] in IDENTIFIER_START:
                return name
    return ""
