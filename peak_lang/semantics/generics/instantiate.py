# semantics/generics/instantiate.py
"""
Template instantiation.

Turns a TemplateDefinition plus concrete type arguments into the source of a
concrete Apex class, in three order-sensitive passes:

1. Parameter substitution. Every standalone parameter letter becomes the
   canonical rendering of its argument (`List<Integer>`, never `ListInteger`),
   so built-in wrappers in the body such as `List<T>` come out as
   `List<List<Integer>>`.
2. Nested-usage flattening. Usages of known templates left in the substituted
   text (`Queue<String>` inside `Dict<String, Integer>`) are replaced by their
   mangled names and remembered, so the caller can instantiate them too.
3. Declaration finalization. The `<T, ...>` bracket is dropped from the
   declaration and the bare class name is replaced by the mangled name outside
   comments and string literals, which also renames every constructor.

Generic methods go through the same substitution with the method's own
parameters and are renamed with mangle_method_name().
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from peak_lang.internals.errors import ERR, render
from peak_lang.internals.scanner import Scanner
from peak_lang.semantics.generics.name_mangling import mangle, mangle_method_name
from peak_lang.semantics.generics.types import GenericExpression, GenericMethodDefinition, TemplateDefinition
from peak_lang.semantics.generics.usages import find_generic_usages, replace_usages

_IDENT = "A-Za-z0-9_"

METHOD_MARKER = "// Generated concrete method: {name}"


def replace_identifier(text: str, name: str, replacement: str) -> str:
    """Replace every standalone occurrence of `name` in `text`.

    `T` in `(T)`, `<T>` or `T;` is replaced; `T` in `String` or `Tuple` is not.
    """
    pattern = rf"(?<![{_IDENT}]){re.escape(name)}(?![{_IDENT}])"
    return re.sub(pattern, lambda _m: replacement, text)


def code_segments(text: str) -> Iterator[Tuple[int, int, bool]]:
    """Split `text` into (start, end, is_code) runs.

    Comments and string literals are the non-code runs.
    """
    scanner = Scanner(text)
    code_start = 0
    while not scanner.at_end:
        start = scanner.pos
        if scanner.skip_comments() or scanner.skip_string_literal():
            if start > code_start:
                yield code_start, start, True
            yield start, scanner.pos, False
            code_start = scanner.pos
        else:
            scanner.advance(1)
    if code_start < len(text):
        yield code_start, len(text), True


def replace_identifier_in_code(text: str, name: str, replacement: str) -> str:
    """replace_identifier() outside comments and string literals."""
    return "".join(
        replace_identifier(text[start:end], name, replacement) if is_code else text[start:end]
        for start, end, is_code in code_segments(text)
    )


def substitute_parameters(text: str, substitutions: Mapping[str, str]) -> str:
    """Replace every parameter in one pass.

    All names are matched by a single pattern so an argument that happens to
    be another parameter's letter (`Pair<V, K>` instantiated as `<K, V>`) is
    never substituted twice.
    """
    if not substitutions:
        return text
    names = "|".join(re.escape(name) for name in sorted(substitutions, key=len, reverse=True))
    pattern = rf"(?<![{_IDENT}])(?:{names})(?![{_IDENT}])"
    return re.sub(pattern, lambda m: substitutions[m.group(0)], text)


def mentions_any(expr: GenericExpression, names: Iterable[str]) -> bool:
    """Report whether any base name in `expr` is one of `names`."""
    wanted = set(names)
    return any(name in wanted for name in expr.names())


def cut_spans(text: str, spans: Iterable[Tuple[int, int]], offset: int = 0) -> str:
    """Remove `spans` (offsets relative to `offset`) from `text`.

    Indentation before a removed span and the line break after it go with it,
    so stripping a method leaves no blank line behind.
    """
    out = []
    copied = 0
    for start, end in sorted(spans):
        start -= offset
        end -= offset
        if start < copied or end > len(text):
            continue

        line_start = text.rfind("\n", 0, start) + 1
        if not text[line_start:start].strip():
            start = line_start
        while end < len(text) and text[end] in " \t":
            end += 1
        if text.startswith("\r\n", end):
            end += 2
        elif text.startswith("\n", end):
            end += 1

        out.append(text[copied:start])
        copied = end
    out.append(text[copied:])
    return "".join(out)


def insert_methods(content: str, methods: Sequence[Tuple[str, str]]) -> str:
    """Splice generated methods in front of the last closing brace of `content`.

    Braces inside comments and string literals do not count.

    Args:
        content: Class source.
        methods: (concrete method name, method text) pairs, in output order.

    Returns:
        The class with a marker comment and the method text per entry. Content
        without a closing brace is returned unchanged.
    """
    if not methods:
        return content
    brace = max((content.rfind("}", start, end) for start, end, is_code in code_segments(content) if is_code),
                default=-1)
    if brace == -1:
        return content

    head = content[:brace]
    trimmed = head.rstrip()
    tail = head[len(trimmed):]
    brace_indent = tail.rsplit("\n", 1)[-1] if "\n" in tail else ""

    blocks = []
    for name, text in methods:
        lines = ["    " + METHOD_MARKER.format(name=name)]
        first, *rest = text.split("\n")
        lines.append("    " + first)
        lines.extend(rest)
        blocks.append("\n".join(lines))

    return trimmed + "\n\n" + "\n\n".join(blocks) + "\n" + brace_indent + content[brace:]


def arity_error_comment(name: str, expected: int, actual: int) -> str:
    """Marked comment emitted instead of a class or method with the wrong arity."""
    return "// ERROR: " + render(ERR.CE3001, name=name, expected=expected, actual=actual)


@dataclass
class Instantiator:
    """Instantiates templates and generic methods against a template table.

    Usages of known templates met while flattening are collected in
    `discovered` (canonical text -> expression), in discovery order.
    """
    templates: Mapping[str, TemplateDefinition]
    discovered: Dict[str, GenericExpression] = field(default_factory=dict)

    def flatten_usages(self, text: str) -> str:
        """Replace usages of known templates in `text` with their mangled names."""
        replacements: Dict[str, str] = {}
        for literal, expr in find_generic_usages(text).items():
            if expr.base_name not in self.templates:
                continue
            replacements[literal] = mangle(expr)
            self.discovered.setdefault(str(expr), expr)
        return replace_usages(text, replacements)

    def instantiate(self, template: TemplateDefinition, type_arguments: Sequence[GenericExpression],
                    body: Optional[str] = None) -> str:
        """Generate the concrete class for `template` with `type_arguments`.

        Args:
            template: The generic class.
            type_arguments: One expression per type parameter.
            body: Replacement for `template.body_text`, e.g. with concrete
                methods already spliced in.

        Returns:
            The class source, or a `// ERROR:` comment on an arity mismatch.
        """
        if len(type_arguments) != len(template.type_parameters):
            return arity_error_comment(template.class_name, len(template.type_parameters), len(type_arguments))

        substitutions = {
            param: str(arg) for param, arg in zip(template.type_parameters, type_arguments)
        }
        concrete_name = mangle(GenericExpression(template.class_name, tuple(type_arguments)))

        # Pass 1
        rest = template.header_text + (template.body_text if body is None else body)
        rest = substitute_parameters(rest, substitutions)

        # Pass 2
        rest = self.flatten_usages(rest)

        # Pass 3
        declaration = template.declaration_text
        if template.type_parameter_text and declaration.endswith(template.type_parameter_text):
            declaration = declaration[:-len(template.type_parameter_text)]
        if not declaration:
            declaration = f"public class {template.class_name}"
        return replace_identifier_in_code(declaration + rest, template.class_name, concrete_name)

    def instantiate_method(self, method: GenericMethodDefinition, type_arguments: Sequence[GenericExpression],
                           flatten: bool = True) -> str:
        """Generate one concrete method.

        The `<K>` bracket is removed from the signature first, then parameters
        are substituted in signature and body, and the method is renamed in
        the signature only.

        Args:
            flatten: Also replace known template usages in the result. Off
                when the method is spliced into a template body that is
                flattened as a whole later.
        """
        if len(type_arguments) != len(method.type_parameters):
            return arity_error_comment(method.method_name, len(method.type_parameters), len(type_arguments))

        substitutions = {
            param: str(arg) for param, arg in zip(method.type_parameters, type_arguments)
        }

        signature = method.signature_text
        if method.type_parameter_text:
            at = signature.find(method.type_parameter_text)
            if at != -1:
                after = at + len(method.type_parameter_text)
                while after < len(signature) and signature[after].isspace():
                    after += 1
                signature = signature[:at] + signature[after:]

        signature = substitute_parameters(signature, substitutions)
        signature = replace_identifier(signature, method.method_name,
                                       mangle_method_name(method.method_name, type_arguments))
        body = substitute_parameters(method.body_text, substitutions)

        text = signature + " " + body
        if flatten:
            text = self.flatten_usages(text)
        return text

    def take_discovered(self) -> List[GenericExpression]:
        """Return and forget the usages collected so far."""
        found = list(self.discovered.values())
        self.discovered.clear()
        return found
