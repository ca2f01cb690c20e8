"""
Generic definitions and references for Peak.

This module contains the data model shared by the scanners and the
instantiation engine:
- GenericExpression: a (possibly nested) reference such as Dict<String, Queue<Integer>>
- TemplateDefinition: a generic class declaration such as class Queue<T> { ... }
- GenericMethodDefinition: a generic method such as public <K> Map<K, V> groupBy(...) { ... }
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple

# Host-language collections; never templates, never instantiated
BUILTIN_GENERICS = frozenset({"List", "Set", "Map"})


def is_builtin_generic(name: str) -> bool:
    return name in BUILTIN_GENERICS


@dataclass(frozen=True)
class GenericExpression:
    """A node of a generic reference tree.

    `Integer` is a simple expression (no type arguments); `Queue<Integer>`
    has one simple argument. Equality and hashing only look at the base name
    and the arguments, so two expressions are equal exactly when their
    canonical renderings are equal. `span` remembers where the parser found
    the expression (start, end offsets) and takes no part in comparisons.
    """
    base_name: str
    type_arguments: Tuple[GenericExpression, ...] = ()
    span: Optional[Tuple[int, int]] = field(default=None, compare=False, repr=False)

    @property
    def is_simple(self) -> bool:
        return not self.type_arguments

    def __str__(self) -> str:
        if self.is_simple:
            return self.base_name
        args = ", ".join(str(arg) for arg in self.type_arguments)
        return f"{self.base_name}<{args}>"

    def nested(self) -> Iterator[GenericExpression]:
        """Yield every argument sub-expression, depth first, outermost first."""
        for arg in self.type_arguments:
            yield arg
            yield from arg.nested()

    def names(self) -> Iterator[str]:
        """Yield every base name in the tree, this node's included."""
        yield self.base_name
        for arg in self.nested():
            yield arg.base_name


@dataclass(frozen=True)
class TemplateDefinition:
    """A generic class declaration.

    Example: `public with sharing class Queue<T> implements Iterable<T> { ... }`
    - class_name: "Queue"
    - type_parameters: ("T",)
    - modifiers_text: "public with sharing"
    - declaration_text: "public with sharing class Queue<T>"
    - type_parameter_text: "<T>" (the literal bracket, spacing preserved)
    - header_text: " implements Iterable<T> " (between the bracket and "{")
    - body_text: "{ ... }" including both braces
    """
    class_name: str
    type_parameters: Tuple[str, ...]
    body_text: str
    modifiers_text: str = ""
    declaration_text: str = ""
    type_parameter_text: str = ""
    header_text: str = " "
    source_span: Tuple[int, int] = (0, 0)
    body_start: int = 0

    def __str__(self) -> str:
        params = ", ".join(self.type_parameters)
        return f"{self.class_name}<{params}>"


@dataclass(frozen=True)
class GenericMethodDefinition:
    """A generic method scoped to an owning class.

    Example: `public <K> Map<K, List<SObject>> groupBy(String field) { ... }`
    - signature_text: everything before the body, `<K>` still present
    - body_text: "{ ... }" including both braces
    - source_span: offsets of the whole method in its file
    """
    owner_class_name: str
    method_name: str
    type_parameters: Tuple[str, ...]
    signature_text: str
    body_text: str
    type_parameter_text: str = ""
    source_span: Tuple[int, int] = (0, 0)

    @property
    def key(self) -> str:
        return f"{self.owner_class_name}.{self.method_name}"

    def __str__(self) -> str:
        params = ", ".join(self.type_parameters)
        return f"{self.key}<{params}>"
