# internals/generic_parser.py
"""
Recursive descent parser for generic syntax.

Two entry points, both called with the cursor exactly on '<':

- parse_generic(base_name): the argument list of a generic *reference*,
  e.g. the `<String, Queue<Integer>>` of `Dict<String, Queue<Integer>>`.
  Each argument is an identifier optionally followed by its own `<...>`,
  so nesting is handled by recursion.

- parse_type_parameter_list(): the parameter list of a *declaration*,
  e.g. the `<K, V>` of `class Dict<K, V>`. Parameters must be single
  letters, may not repeat, and the doubled brackets `<<` / `>>` are
  rejected outright.

Both raise PeakSyntaxError with the offending position.
"""
from __future__ import annotations

from typing import List, Optional

from peak_lang.internals.errors import ERR
from peak_lang.internals.scanner import IDENTIFIER_START, Scanner
from peak_lang.semantics.generics.types import GenericExpression


class GenericParser(Scanner):
    """Scanner that also understands `<...>` type argument and parameter lists."""

    def parse_generic(self, base_name: str, start: Optional[int] = None) -> GenericExpression:
        """Parse `<Arg, Arg, ...>` following an already consumed `base_name`.

        Args:
            base_name: Identifier the argument list belongs to.
            start: Offset of `base_name` in the source, recorded as the span start.

        Returns:
            The compound GenericExpression, cursor just past the closing '>'.
        """
        if start is None:
            start = self.pos - len(base_name)
        if self.current() != "<":
            raise self.error(self.pos, ERR.PE1001)
        self.advance(1)

        args: List[GenericExpression] = []
        while True:
            self.skip_whitespace()
            args.append(self.parse_type_argument())
            self.skip_whitespace()

            if self.current() == ">":
                self.advance(1)
                break
            if self.current() == ",":
                self.advance(1)
                continue
            got = self.current() if not self.at_end else "end of input"
            raise self.error(self.pos, ERR.PE1003, got=got)

        return GenericExpression(base_name, tuple(args), span=(start, self.pos))

    def parse_type_argument(self) -> GenericExpression:
        """Parse one type argument: `Integer` or a nested `List<String>`."""
        self.skip_whitespace()
        start = self.pos
        if self.current() not in IDENTIFIER_START:
            raise self.error(self.pos, ERR.PE1002)
        name = self.parse_identifier()
        end = self.pos

        self.skip_whitespace()
        if self.current() == "<":
            return self.parse_generic(name, start)

        return GenericExpression(name, span=(start, end))

    def parse_type_parameter_list(self, check_duplicates: bool = True) -> List[str]:
        """Parse a declaration's `<T>` / `<K, V>` list.

        Args:
            check_duplicates: Reject a repeated parameter letter.

        Returns:
            Parameter names in order, cursor just past the closing '>'.
        """
        if self.current() != "<":
            raise self.error(self.pos, ERR.PE1001)
        if self.peek(1) == "<":
            raise self.error(self.pos, ERR.PE1004)
        self.advance(1)

        params: List[str] = []
        while True:
            self.skip_whitespace()
            if self.current() == ">" and self.peek(1) == ">":
                raise self.error(self.pos, ERR.PE1005)

            param_start = self.pos
            param = self.parse_identifier()
            if not param:
                raise self.error(self.pos, ERR.PE1006)
            if len(param) != 1:
                raise self.error(param_start, ERR.PE1007, name=param)
            if not param.isalpha():
                raise self.error(param_start, ERR.PE1008, name=param)
            if check_duplicates and param in params:
                raise self.error(param_start, ERR.PE1009, name=param)
            params.append(param)

            self.skip_whitespace()
            if self.current() == ">":
                if self.peek(1) == ">":
                    raise self.error(self.pos, ERR.PE1005)
                self.advance(1)
                break
            if self.current() == ",":
                self.advance(1)
                continue
            raise self.error(self.pos, ERR.PE1010)

        return params
