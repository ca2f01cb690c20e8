# semantics/transpiler.py
"""
Directory-level transpilation of Peak sources to Apex.

Transpiler.transpile() runs over an in-memory snapshot {path: content} and
never touches the disk or prints. Phases, in order:

1. Collect class templates from every file.
2. Collect generic methods, owned by the file's templates (or by the first
   class of a file without templates).
3. Merge forced class and method instantiations, validating that every name
   refers to a known template or generic method.
4. Collect usages of known templates. Template files are scanned body by
   body, skipping usages that still mention the template's own parameters.
5. Stop with the collected errors if any phase above produced one.
6. Rewrite every non-template file: generic method definitions are cut,
   usages are replaced by mangled names, concrete methods are spliced in.
7. Instantiate every distinct closed usage. Usages found while instantiating
   go on a work-list until none are left (bounded by MAX_INSTANTIATION_DEPTH).

Output order: discovery errors, then one outcome per input file in sorted
path order, then the concrete classes in the order they were reached.
"""
from __future__ import annotations

import os
from collections import deque
from typing import Callable, Deque, Dict, List, Mapping, Optional, Sequence, Set, Tuple

from lark import UnexpectedInput

from peak_lang.internals import errors as er
from peak_lang.internals.errors import ERR, PeakSyntaxError
from peak_lang.internals.parser import describe_parse_error, parse_type_arguments
from peak_lang.semantics.generics.instantiate import (
    Instantiator,
    cut_spans,
    insert_methods,
    mentions_any,
)
from peak_lang.semantics.generics.methods import find_generic_methods
from peak_lang.semantics.generics.name_mangling import mangle, mangle_method_name
from peak_lang.semantics.generics.templates import find_class_templates, find_first_class_name
from peak_lang.semantics.generics.types import GenericExpression, GenericMethodDefinition, TemplateDefinition
from peak_lang.semantics.generics.usages import find_generic_usages, replace_usages
from peak_lang.semantics.units import CompilationUnit, FileOutcome

# Synthetic source location for forced-instantiation errors
CONFIG_SOURCE = "peakconfig.json"

SOURCE_EXTENSION = ".peak"
OUTPUT_EXTENSION = ".cls"

# Nesting levels a template may reach through its own body before expansion stops
MAX_INSTANTIATION_DEPTH = 16

OutputPathFn = Callable[[str], str]


def default_output_path(source_path: str) -> str:
    """Co-located output: `dir/Name.peak` -> `dir/Name.cls`."""
    base = source_path[:-len(SOURCE_EXTENSION)] if source_path.endswith(SOURCE_EXTENSION) else source_path
    return base + OUTPUT_EXTENSION


class Transpiler:
    """Transpiles a snapshot of Peak files.

    Args:
        output_path_fn: Maps a source path (real, or a virtual
            `<template dir>/<ConcreteName>.peak` path for generated classes)
            to its output path. Defaults to co-located `.cls` files.
        forced_classes: Template name -> list of type-argument strings, e.g.
            {"Queue": ["Integer", "String"], "Dict": ["String, Integer"]}.
        forced_methods: "Owner.method" -> list of type-argument strings.
        output_extension: Used when `output_path_fn` fails for a concrete class.
    """

    def __init__(self, output_path_fn: Optional[OutputPathFn] = None,
                 forced_classes: Optional[Mapping[str, Sequence[str]]] = None,
                 forced_methods: Optional[Mapping[str, Sequence[str]]] = None,
                 output_extension: str = OUTPUT_EXTENSION) -> None:
        self.output_path_fn = output_path_fn or default_output_path
        self.forced_classes = dict(forced_classes or {})
        self.forced_methods = dict(forced_methods or {})
        self.output_extension = output_extension

    def transpile(self, files: Mapping[str, str]) -> List[FileOutcome]:
        """Run all phases over `files` ({path: content})."""
        unit = CompilationUnit()
        errors: List[FileOutcome] = []
        paths = sorted(files)

        failed = self._collect_templates(unit, files, paths, errors)
        self._collect_methods(unit, files, paths, failed, errors)
        self._merge_forced_classes(unit, errors)
        self._merge_forced_methods(unit, errors)
        self._collect_usages(unit, files, paths, failed)

        if errors:
            return errors

        instantiator = Instantiator(unit.templates)
        outcomes = [self._transpile_file(unit, instantiator, path, files[path]) for path in paths]
        outcomes.extend(self._generate_concrete_classes(unit, instantiator))
        return outcomes

    # ------------------------------------------------------------------
    # Phases 1-4: discovery
    # ------------------------------------------------------------------

    def _collect_templates(self, unit: CompilationUnit, files: Mapping[str, str], paths: List[str],
                           errors: List[FileOutcome]) -> Set[str]:
        failed: Set[str] = set()
        for path in paths:
            try:
                found = find_class_templates(files[path], path)
            except PeakSyntaxError as e:
                errors.append(FileOutcome(original_path=path, error=e.diagnostic))
                failed.add(path)
                continue

            unit.file_templates[path] = list(found.values())
            for name, template in found.items():
                unit.templates[name] = template
                unit.template_paths[name] = path
        return failed

    def _collect_methods(self, unit: CompilationUnit, files: Mapping[str, str], paths: List[str],
                         failed: Set[str], errors: List[FileOutcome]) -> None:
        for path in paths:
            if path in failed:
                continue
            source = files[path]
            try:
                if unit.is_template_file(path):
                    found: Dict[str, GenericMethodDefinition] = {}
                    for template in unit.file_templates[path]:
                        found.update(find_generic_methods(source, template.class_name, path,
                                                          start=template.body_start,
                                                          end=template.source_span[1]))
                else:
                    owner = find_first_class_name(source)
                    found = find_generic_methods(source, owner, path) if owner else {}
            except PeakSyntaxError as e:
                errors.append(FileOutcome(original_path=path, error=e.diagnostic))
                failed.add(path)
                continue

            methods = sorted(found.values(), key=lambda m: m.source_span[0])
            unit.file_methods[path] = methods
            for method in methods:
                unit.method_templates[method.key] = method

    def _merge_forced_classes(self, unit: CompilationUnit, errors: List[FileOutcome]) -> None:
        for name, arg_list in self.forced_classes.items():
            if name not in unit.templates:
                text = f"{name}<{arg_list[0]}>" if arg_list else name
                errors.append(_config_error(ERR.CE2001, text=text, name=name))
                continue
            for args_text in arg_list:
                type_arguments = self._parse_forced(f"{name}<{args_text}>", args_text, errors)
                if type_arguments is None:
                    continue
                expr = GenericExpression(name, type_arguments)
                unit.add_usage(str(expr), expr)

    def _merge_forced_methods(self, unit: CompilationUnit, errors: List[FileOutcome]) -> None:
        for key, arg_list in self.forced_methods.items():
            if key not in unit.method_templates:
                errors.append(_config_error(ERR.CE2002, key=key))
                continue
            for args_text in arg_list:
                type_arguments = self._parse_forced(f"{key}<{args_text}>", args_text, errors)
                if type_arguments is not None:
                    unit.add_method_usage(key, type_arguments)

    @staticmethod
    def _parse_forced(text: str, args_text: str,
                      errors: List[FileOutcome]) -> Optional[Tuple[GenericExpression, ...]]:
        try:
            return parse_type_arguments(args_text)
        except UnexpectedInput as e:
            errors.append(_config_error(ERR.CE2003, text=text, reason=describe_parse_error(e)))
            return None

    def _collect_usages(self, unit: CompilationUnit, files: Mapping[str, str], paths: List[str],
                        failed: Set[str]) -> None:
        for path in paths:
            if path in failed:
                continue
            source = files[path]
            methods = unit.file_methods.get(path, [])

            if unit.is_template_file(path):
                # Bodies only: the declaration `class Queue<T>` is not a usage
                for template in unit.file_templates[path]:
                    spans = [m.source_span for m in methods if m.owner_class_name == template.class_name]
                    body = cut_spans(template.body_text, spans, offset=template.body_start)
                    for literal, expr in find_generic_usages(body, path).items():
                        if expr.base_name in unit.templates and not mentions_any(expr, template.type_parameters):
                            unit.add_usage(literal, expr)
                continue

            body = cut_spans(source, [m.source_span for m in methods])
            file_usages = {
                literal: expr for literal, expr in find_generic_usages(body, path).items()
                if expr.base_name in unit.templates
            }
            unit.file_usages[path] = file_usages
            for literal, expr in file_usages.items():
                unit.add_usage(literal, expr)

    # ------------------------------------------------------------------
    # Phases 6-7: output
    # ------------------------------------------------------------------

    def _transpile_file(self, unit: CompilationUnit, instantiator: Instantiator, path: str,
                        source: str) -> FileOutcome:
        if unit.is_template_file(path):
            return FileOutcome(original_path=path, is_template=True)

        methods = unit.file_methods.get(path, [])
        output = cut_spans(source, [m.source_span for m in methods])
        replacements = {literal: mangle(expr) for literal, expr in unit.file_usages.get(path, {}).items()}
        output = replace_usages(output, replacements)
        output = insert_methods(output, self._concrete_methods(unit, instantiator, methods, flatten=True))

        try:
            output_path = self.output_path_fn(path)
        except (OSError, ValueError) as e:
            diag = er.diagnostic(ERR.CE4005, None, filename=path, path=path, reason=str(e))
            return FileOutcome(original_path=path, error=diag)

        return FileOutcome(original_path=path, output_path=output_path, content=output)

    def _concrete_methods(self, unit: CompilationUnit, instantiator: Instantiator,
                          methods: Sequence[GenericMethodDefinition], flatten: bool) -> List[Tuple[str, str]]:
        concrete: List[Tuple[str, str]] = []
        for method in methods:
            for type_arguments in unit.method_usages.get(method.key, {}).values():
                text = instantiator.instantiate_method(method, type_arguments, flatten=flatten)
                if len(type_arguments) == len(method.type_parameters):
                    name = mangle_method_name(method.method_name, type_arguments)
                else:
                    name = method.method_name
                concrete.append((name, text))
        return concrete

    def _generate_concrete_classes(self, unit: CompilationUnit, instantiator: Instantiator) -> List[FileOutcome]:
        outcomes: List[FileOutcome] = []
        pending: Deque[Tuple[GenericExpression, int]] = deque()
        for expr in unit.usages.values():
            pending.append((expr, 0))
        # Usages met while rewriting files (e.g. in concrete methods)
        for expr in instantiator.take_discovered():
            pending.append((expr, 0))

        seen: Set[str] = set()
        while pending:
            expr, depth = pending.popleft()
            key = str(expr)
            template = unit.templates.get(expr.base_name)
            if template is None or key in seen:
                continue
            seen.add(key)

            if depth > MAX_INSTANTIATION_DEPTH:
                content = "// ERROR: " + er.render(ERR.CE3002, name=key, depth=MAX_INSTANTIATION_DEPTH)
            else:
                content = self._instantiate_class(unit, instantiator, template, expr)
                for found in instantiator.take_discovered():
                    pending.append((found, depth + 1))

            outcomes.append(FileOutcome(
                output_path=self._concrete_output_path(unit, template, mangle(expr)),
                content=content,
            ))
        return outcomes

    def _instantiate_class(self, unit: CompilationUnit, instantiator: Instantiator,
                           template: TemplateDefinition, expr: GenericExpression) -> str:
        path = unit.template_paths[template.class_name]
        methods = [m for m in unit.file_methods.get(path, []) if m.owner_class_name == template.class_name]
        if not methods:
            return instantiator.instantiate(template, expr.type_arguments)

        # Concrete methods join the body first so class parameters in them get substituted too
        body = cut_spans(template.body_text, [m.source_span for m in methods], offset=template.body_start)
        body = insert_methods(body, self._concrete_methods(unit, instantiator, methods, flatten=False))
        return instantiator.instantiate(template, expr.type_arguments, body=body)

    def _concrete_output_path(self, unit: CompilationUnit, template: TemplateDefinition, concrete_name: str) -> str:
        template_dir = os.path.dirname(unit.template_paths[template.class_name])
        virtual_path = os.path.join(template_dir, concrete_name + SOURCE_EXTENSION)
        try:
            return self.output_path_fn(virtual_path)
        except (OSError, ValueError):
            return os.path.join(template_dir, concrete_name + self.output_extension)


def _config_error(em: er.ErrorMessage, **kwargs) -> FileOutcome:
    return FileOutcome(original_path=CONFIG_SOURCE, error=er.diagnostic(em, None, filename=CONFIG_SOURCE, **kwargs))

