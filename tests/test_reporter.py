# tests/test_reporter.py
import io

import pytest

from peak_lang.internals import errors as er
from peak_lang.internals.errors import ERR, PeakSyntaxError
from peak_lang.internals.report import Reporter, Span
from peak_lang.semantics.generics.templates import find_class_templates


def _syntax_error():
    with pytest.raises(PeakSyntaxError) as exc:
        find_class_templates("class Foo<T, T> {}", "/nowhere/Foo.peak")
    return exc.value.diagnostic


def test_syntax_error_diagnostic():
    diag = _syntax_error()
    assert diag.span == Span(1, 14)
    assert str(diag) == "/nowhere/Foo.peak:1:14: duplicate type parameter 'T'"


def test_ascii_caret_display():
    r = Reporter()
    r.add(_syntax_error())
    lines = r.format(use_color=False, use_unicode=False).splitlines()
    assert lines[0] == "/nowhere/Foo.peak:1:14: error [PE1009]: duplicate type parameter 'T'."
    assert lines[1] == "  | class Foo<T, T> {}"
    assert lines[2] == "  ` " + " " * 13 + "^"


def test_unicode_display():
    r = Reporter()
    r.add(_syntax_error())
    lines = r.format(use_color=False, use_unicode=True).splitlines()
    assert lines[0].startswith("  ╭──┤ /nowhere/Foo.peak:1:14")
    assert lines[2].endswith("┯")


def test_diagnostic_without_span_is_one_line():
    r = Reporter()
    r.add(er.diagnostic(ERR.CE2001, None, filename="/cfg/peakconfig.json", text="Nope<Integer>", name="Nope"))
    out = r.format(use_color=False, use_unicode=False)
    assert out == ("/cfg/peakconfig.json: error [CE2001]: "
                   "instantiation 'Nope<Integer>' references undefined template 'Nope'.")


def test_print_to_plain_stream_has_no_escape_codes():
    r = Reporter()
    r.add(_syntax_error())
    stream = io.StringIO()
    r.print(stream=stream)
    assert "\x1b[" not in stream.getvalue()
    assert "PE1009" in stream.getvalue()


def test_error_and_warning_flags():
    r = Reporter("x.peak")
    assert not r.has_errors
    r.warn("W1", "careful", None)
    assert r.has_warnings and not r.has_errors
    r.error("E1", "broken", Span(1, 1))
    assert r.has_errors


def test_error_codes_are_unique_and_rendered():
    assert ERR.PE1001.code == "PE1001"
    assert er.render(ERR.CE3001, name="Queue", expected=1, actual=2) == \
        "Type parameter mismatch for Queue (expected 1, got 2)"
    with pytest.raises(ValueError):
        er._add(er.ErrorMessage("PE1001", er.Severity.ERROR, "again"))
