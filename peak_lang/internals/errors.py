# internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from peak_lang.internals.report import Diagnostic, Span


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    SYNTAX    = "syntax"
    CONFIG    = "configuration"
    INSTANCE  = "instantiation"
    IO        = "io"


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.SYNTAX
    doc: str = ""


REGISTRY: Dict[str, ErrorMessage] = {}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]


ERR = _ErrorCatalog(REGISTRY)


class PeakSyntaxError(Exception):
    """Malformed generic syntax, positioned for caret-style display."""

    def __init__(self, diagnostic: Diagnostic) -> None:
        super().__init__(str(diagnostic))
        self.diagnostic = diagnostic


class ConfigError(Exception):
    """peakconfig.json could not be read or has the wrong shape."""


def diagnostic(em: ErrorMessage, span: Optional[Span], filename: Optional[str] = None,
               source_line: str = "", **kwargs) -> Diagnostic:
    return Diagnostic(em.severity.value, em.code, _fmt(em.code, **kwargs), span,
                      filename, source_line)

def render(em: ErrorMessage, **kwargs) -> str:
    """Message text of `em` with its placeholders filled in."""
    return _fmt(em.code, **kwargs)


#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {msg.code}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError as e:
        raise KeyError(f"unknown error code {code}") from e

def _fmt(code: str, **kwargs) -> str:
    return _get(code).text.format(**kwargs)


#
# --- Syntax errors (generic expressions and type-parameter lists)
#

_add(ErrorMessage("PE1001", Severity.ERROR,
    "expected '<'",
    Category.SYNTAX, "A generic expression or type-parameter list must start with '<'."))

_add(ErrorMessage("PE1002", Severity.ERROR,
    "expected type name",
    Category.SYNTAX, "Each type argument must be an identifier, optionally followed by its own '<...>'."))

_add(ErrorMessage("PE1003", Severity.ERROR,
    "expected '>' or ',', got '{got}'",
    Category.SYNTAX, "Type arguments are separated by ',' and the list is closed by '>'."))

_add(ErrorMessage("PE1004", Severity.ERROR,
    "'<<' is not allowed in type parameters",
    Category.SYNTAX, "Type-parameter lists are flat: write class Foo<T>, not class Foo<<T>>."))

_add(ErrorMessage("PE1005", Severity.ERROR,
    "'>>' is not allowed in type parameters",
    Category.SYNTAX, "Type-parameter lists are flat: write class Foo<T>, not class Foo<T>>."))

_add(ErrorMessage("PE1006", Severity.ERROR,
    "expected type parameter",
    Category.SYNTAX, "A type-parameter list needs at least one parameter name."))

_add(ErrorMessage("PE1007", Severity.ERROR,
    "type parameter '{name}' must be a single letter (e.g., T, U, V)",
    Category.SYNTAX, "Only single-letter type parameters are supported."))

_add(ErrorMessage("PE1008", Severity.ERROR,
    "type parameter '{name}' must be a letter",
    Category.SYNTAX, "Digits and underscores cannot be used as type parameters."))

_add(ErrorMessage("PE1009", Severity.ERROR,
    "duplicate type parameter '{name}'",
    Category.SYNTAX, "Every type parameter of a class or method must be distinct."))

_add(ErrorMessage("PE1010", Severity.ERROR,
    "expected '>' or ','",
    Category.SYNTAX, "Type parameters are separated by ',' and the list is closed by '>'."))

#
# --- Configuration errors (peakconfig.json)
#

_add(ErrorMessage("CE2001", Severity.ERROR,
    "instantiation '{text}' references undefined template '{name}'",
    Category.CONFIG, "Every key of instantiate.classes must name a generic class."))

_add(ErrorMessage("CE2002", Severity.ERROR,
    "method instantiation '{key}' references undefined generic method",
    Category.CONFIG, "Every key of instantiate.methods must name an existing Owner.method generic method."))

_add(ErrorMessage("CE2003", Severity.ERROR,
    "invalid instantiation '{text}': {reason}",
    Category.CONFIG, "Type arguments are comma-separated type names, optionally generic."))

_add(ErrorMessage("CE2004", Severity.ERROR,
    "{reason}",
    Category.CONFIG, "peakconfig.json could not be loaded."))

#
# --- Instantiation errors (rendered into the generated output)
#

_add(ErrorMessage("CE3001", Severity.ERROR,
    "Type parameter mismatch for {name} (expected {expected}, got {actual})",
    Category.INSTANCE, "The number of type arguments must match the template's type parameters."))

_add(ErrorMessage("CE3002", Severity.ERROR,
    "Instantiation of {name} exceeds the maximum depth of {depth}",
    Category.INSTANCE, "A template that keeps instantiating ever larger versions of itself is cut off at this depth."))

#
# --- CLI / IO errors
#

_add(ErrorMessage("CE4001", Severity.ERROR,
    "directory '{path}' does not exist",
    Category.IO, "Check the directory path and try again."))

_add(ErrorMessage("CE4002", Severity.ERROR,
    "no .peak files found in '{path}'",
    Category.IO, "Make sure the directory contains .peak source files."))

_add(ErrorMessage("CE4003", Severity.ERROR,
    "cannot read {path}: {reason}",
    Category.IO, "The source file could not be read."))

_add(ErrorMessage("CE4004", Severity.ERROR,
    "cannot write {path}: {reason}",
    Category.IO, "The output file could not be written."))

_add(ErrorMessage("CE4005", Severity.ERROR,
    "cannot resolve output path for {path}: {reason}",
    Category.IO, "Check outDir and rootDir in peakconfig.json or on the command line."))
