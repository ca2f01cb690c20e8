"""Lark parser for type-argument strings in peakconfig.json."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Tuple

from lark import Lark, Transformer, UnexpectedInput
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedToken

from peak_lang.semantics.generics.types import GenericExpression

GRAMMAR_PATH = Path(__file__).parent.parent / "type_args.lark"


class TypeArgBuilder(Transformer):
    """Build GenericExpression trees bottom-up from the parse tree."""

    def start(self, items):
        return tuple(items)

    def type_expr(self, items):
        name, *rest = items
        args = rest[0] if rest else ()
        return GenericExpression(str(name), tuple(args))

    def type_args(self, items):
        return tuple(items)


@lru_cache(maxsize=1)
def get_type_args_parser() -> Lark:
    return Lark.open(
        str(GRAMMAR_PATH),
        parser="lalr",
        lexer="basic",
        maybe_placeholders=False,
    )


def parse_type_arguments(text: str) -> Tuple[GenericExpression, ...]:
    """Parse `"String, Queue<Integer>"` into one expression per argument.

    Raises:
        UnexpectedInput: `text` is not a comma-separated list of type names.
    """
    tree = get_type_args_parser().parse(text)
    return TypeArgBuilder().transform(tree)


def describe_parse_error(e: UnexpectedInput) -> str:
    """Short, single-line reason for a failed type-argument parse."""
    if isinstance(e, UnexpectedEOF):
        return "unexpected end of type arguments"
    if isinstance(e, UnexpectedToken):
        if e.token.type == "$END":
            return "unexpected end of type arguments"
        return f"unexpected '{e.token}' at column {e.column}"
    if isinstance(e, UnexpectedCharacters):
        return f"unexpected character '{e.char}' at column {e.column}"
    return str(e).splitlines()[0]
