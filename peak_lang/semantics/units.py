# semantics/units.py
"""Per-run tables and per-file results of a Peak compilation."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from peak_lang.internals.report import Diagnostic
from peak_lang.semantics.generics.types import GenericExpression, GenericMethodDefinition, TemplateDefinition


@dataclass
class CompilationUnit:
    """Everything discovered about one directory snapshot.

    Built fresh by every Transpiler.transpile() call and threaded through its
    phases; nothing here outlives the run.
    """
    # Class templates by name, and the file each was declared in
    templates: Dict[str, TemplateDefinition] = field(default_factory=dict)
    template_paths: Dict[str, str] = field(default_factory=dict)

    # Generic methods by "Owner.method"
    method_templates: Dict[str, GenericMethodDefinition] = field(default_factory=dict)

    # Per-file discovery results
    file_templates: Dict[str, List[TemplateDefinition]] = field(default_factory=dict)
    file_methods: Dict[str, List[GenericMethodDefinition]] = field(default_factory=dict)
    file_usages: Dict[str, Dict[str, GenericExpression]] = field(default_factory=dict)

    # Literal text -> expression, for every closed usage of a known template
    usages: Dict[str, GenericExpression] = field(default_factory=dict)

    # "Owner.method" -> canonical type arguments -> parsed type arguments
    method_usages: Dict[str, Dict[str, Tuple[GenericExpression, ...]]] = field(default_factory=dict)

    def is_template_file(self, path: str) -> bool:
        return bool(self.file_templates.get(path))

    def add_usage(self, literal: str, expr: GenericExpression) -> None:
        self.usages.setdefault(literal, expr)

    def add_method_usage(self, key: str, type_arguments: Tuple[GenericExpression, ...]) -> None:
        rendered = ", ".join(str(arg) for arg in type_arguments)
        self.method_usages.setdefault(key, {}).setdefault(rendered, type_arguments)


@dataclass
class FileOutcome:
    """Result for one input file or one generated concrete class.

    Exactly one of three shapes:
    - error: `error` is set, nothing is written
    - template: `is_template` is True, the source produces no output
    - output: `output_path` and `content` are set
    """
    original_path: Optional[str] = None
    output_path: Optional[str] = None
    content: str = ""
    is_template: bool = False
    error: Optional[Diagnostic] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_output(self) -> bool:
        return self.ok and not self.is_template and self.output_path is not None
