# tests/test_instantiate.py
from peak_lang.internals.parser import parse_type_arguments
from peak_lang.semantics.generics.instantiate import (
    Instantiator,
    cut_spans,
    insert_methods,
    replace_identifier,
    substitute_parameters,
)
from peak_lang.semantics.generics.methods import find_generic_methods
from peak_lang.semantics.generics.templates import find_class_templates
from peak_lang.semantics.generics.types import GenericExpression

QUEUE = "class Queue<T> { List<T> items; Queue() { items = new List<T>(); } }"


def _args(text):
    return parse_type_arguments(text)


def test_word_boundary_substitution():
    text = "T x; String s; Tuple t; (T) <T> T;"
    assert replace_identifier(text, "T", "Integer") == "Integer x; String s; Tuple t; (Integer) <Integer> Integer;"


def test_parameters_are_substituted_simultaneously():
    assert substitute_parameters("Pair<K, V>", {"K": "V", "V": "K"}) == "Pair<V, K>"


def test_queue_scenario():
    templates = find_class_templates(QUEUE)
    out = Instantiator(templates).instantiate(templates["Queue"], _args("Integer"))
    assert out == "class QueueInteger { List<Integer> items; QueueInteger() { items = new List<Integer>(); } }"


def test_class_name_in_comments_and_strings_is_kept():
    source = "class Box<T> {\n    // Box<T> here\n    String n = 'Box';\n    Box() {}\n}"
    templates = find_class_templates(source)
    out = Instantiator(templates).instantiate(templates["Box"], _args("String"))
    assert out.startswith("class BoxString {")
    assert "// Box<String> here" in out
    assert "String n = 'Box';" in out
    assert "BoxString() {}" in out


def test_generic_argument_keeps_canonical_form():
    templates = find_class_templates(QUEUE)
    out = Instantiator(templates).instantiate(templates["Queue"], _args("List<Integer>"))
    assert "List<List<Integer>> items;" in out
    assert "ListInteger>" not in out
    assert out.startswith("class QueueListInteger {")


def test_modifiers_and_header_are_kept():
    templates = find_class_templates("public with sharing class Box<T> implements Comparable { T v; }")
    out = Instantiator(templates).instantiate(templates["Box"], _args("Id"))
    assert out == "public with sharing class BoxId implements Comparable { Id v; }"


def test_nested_template_usage_is_flattened_and_discovered():
    templates = find_class_templates(QUEUE + "\nclass Dict<K, V> { Queue<K> keys; Map<K, V> data; }")
    inst = Instantiator(templates)
    out = inst.instantiate(templates["Dict"], _args("String, Integer"))
    assert out == "class DictStringInteger { QueueString keys; Map<String, Integer> data; }"
    assert inst.take_discovered() == [GenericExpression("Queue", (GenericExpression("String"),))]
    assert inst.take_discovered() == []


def test_arity_mismatch_is_an_error_comment():
    templates = find_class_templates(QUEUE)
    out = Instantiator(templates).instantiate(templates["Queue"], _args("String, Integer"))
    assert out == "// ERROR: Type parameter mismatch for Queue (expected 1, got 2)"


def test_instantiate_method():
    src = "class Util {\n    public static <K> Map<K, Integer> count(List<K> rows) { return null; }\n}"
    method = find_generic_methods(src, "Util")["Util.count"]
    out = Instantiator({}).instantiate_method(method, _args("String"))
    assert out == "public static Map<String, Integer> countString(List<String> rows) { return null; }"


def test_instantiate_method_arity():
    src = "class Util { public <A, B> void f(A a, B b) { } }"
    method = find_generic_methods(src, "Util")["Util.f"]
    assert Instantiator({}).instantiate_method(method, _args("String")).startswith(
        "// ERROR: Type parameter mismatch for f (expected 2, got 1)")


def test_insert_methods_before_last_brace():
    content = "class A {\n    Integer x;\n}"
    method = "public void fooString() {\n        return;\n    }"
    out = insert_methods(content, [("fooString", method)])
    assert out == (
        "class A {\n"
        "    Integer x;\n"
        "\n"
        "    // Generated concrete method: fooString\n"
        "    public void fooString() {\n"
        "        return;\n"
        "    }\n"
        "}"
    )


def test_insert_methods_ignores_braces_in_trailing_comments():
    out = insert_methods("class A {\n}\n// } done", [("f", "void f() {}")])
    assert out == "class A {\n\n    // Generated concrete method: f\n    void f() {}\n}\n// } done"


def test_insert_methods_without_brace_is_noop():
    assert insert_methods("no class here", [("f", "void f() {}")]) == "no class here"


def test_cut_spans_removes_whole_lines():
    text = "class A {\n    void f() {}\n    Integer x;\n}"
    start = text.index("void")
    end = start + len("void f() {}")
    assert cut_spans(text, [(start, end)]) == "class A {\n    Integer x;\n}"


def test_cut_spans_with_offset():
    text = "{ a; b; }"
    assert cut_spans(text, [(104, 105)], offset=100) == "{ a;b; }"
