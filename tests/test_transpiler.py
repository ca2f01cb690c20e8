# tests/test_transpiler.py
import os

from peak_lang.semantics.transpiler import CONFIG_SOURCE, MAX_INSTANTIATION_DEPTH, Transpiler


def _by_output(outcomes):
    return {o.output_path: o.content for o in outcomes if o.has_output}


def test_transitive_instantiation(queue_source, dict_source, main_source):
    files = {"src/Queue.peak": queue_source, "src/Dict.peak": dict_source, "src/Main.peak": main_source}
    outcomes = Transpiler().transpile(files)

    assert all(o.ok for o in outcomes)
    assert [o.original_path for o in outcomes[:3]] == ["src/Dict.peak", "src/Main.peak", "src/Queue.peak"]
    assert [o.is_template for o in outcomes[:3]] == [True, False, True]

    out = _by_output(outcomes)
    assert set(out) == {"src/Main.cls", "src/DictStringInteger.cls", "src/QueueString.cls"}
    assert out["src/Main.cls"] == (
        "public class Main {\n"
        "    DictStringInteger d = new DictStringInteger();\n"
        "}\n"
    )
    assert out["src/DictStringInteger.cls"] == (
        "public class DictStringInteger {\n"
        "    QueueString keys;\n"
        "    Map<String, Integer> data;\n"
        "}"
    )
    assert out["src/QueueString.cls"] == (
        "public class QueueString {\n"
        "    List<String> items;\n"
        "    public QueueString() {\n"
        "        items = new List<String>();\n"
        "    }\n"
        "}"
    )


def test_concrete_classes_follow_the_file_outcomes(queue_source, main_source):
    files = {"Queue.peak": queue_source, "Use.peak": "public class Use { Queue<Integer> q; }"}
    outcomes = Transpiler().transpile(files)
    assert [o.original_path for o in outcomes] == ["Queue.peak", "Use.peak", None]
    assert outcomes[2].output_path == "QueueInteger.cls"


def test_builtin_only_sources_pass_through():
    src = "public class A { List<String> xs; Map<String, Set<Integer>> m; }"
    outcomes = Transpiler().transpile({"A.peak": src})
    assert len(outcomes) == 1
    assert outcomes[0].content == src
    assert outcomes[0].output_path == "A.cls"


def test_comment_usages_are_neither_instantiated_nor_rewritten(queue_source):
    src = "public class A {\n    // Queue<Integer> later\n}\n"
    outcomes = Transpiler().transpile({"Queue.peak": queue_source, "A.peak": src})
    out = _by_output(outcomes)
    assert out == {"A.cls": src}


def test_syntax_error_withholds_all_output(queue_source):
    files = {
        "a/Bad.peak": "public class Bad<T, T> { }",
        "a/Good.peak": queue_source,
        "a/Use.peak": "public class Use { Queue<Integer> q; }",
    }
    outcomes = Transpiler().transpile(files)
    assert len(outcomes) == 1
    assert outcomes[0].original_path == "a/Bad.peak"
    assert outcomes[0].error.code == "PE1009"
    assert outcomes[0].error.span.col == 21


def test_errors_from_several_files_are_all_reported():
    files = {"A.peak": "class A<TT> { }", "B.peak": "class B<<T>> { }"}
    outcomes = Transpiler().transpile(files)
    assert [(o.original_path, o.error.code) for o in outcomes] == [("A.peak", "PE1007"), ("B.peak", "PE1004")]


def test_forced_class_instantiations(queue_source):
    outcomes = Transpiler(forced_classes={"Queue": ["Integer", "String"]}).transpile({"Queue.peak": queue_source})
    out = _by_output(outcomes)
    assert set(out) == {"QueueInteger.cls", "QueueString.cls"}


def test_forced_multi_argument_instantiation(dict_source, queue_source):
    files = {"Dict.peak": dict_source, "Queue.peak": queue_source}
    outcomes = Transpiler(forced_classes={"Dict": ["String, Queue<Integer>"]}).transpile(files)
    out = _by_output(outcomes)
    assert "DictStringQueueInteger.cls" in out
    assert "Map<String, Queue<Integer>> data;" not in out["DictStringQueueInteger.cls"]
    assert "Map<String, QueueInteger> data;" in out["DictStringQueueInteger.cls"]
    assert "QueueInteger.cls" in out
    assert "QueueString.cls" in out


def test_forced_unknown_template_is_a_configuration_error(queue_source):
    outcomes = Transpiler(forced_classes={"Nope": ["Integer"]}).transpile({"Queue.peak": queue_source})
    assert len(outcomes) == 1
    assert outcomes[0].original_path == CONFIG_SOURCE
    assert outcomes[0].error.code == "CE2001"
    assert "Nope<Integer>" in outcomes[0].error.message


def test_forced_unknown_template_is_reported_once_even_without_arguments(queue_source):
    outcomes = Transpiler(forced_classes={"Nope": [], "Gone": ["Integer", "String"]}).transpile(
        {"Queue.peak": queue_source})
    errors = [o.error for o in outcomes if o.error is not None]
    assert [e.code for e in errors] == ["CE2001", "CE2001"]
    assert "'Nope'" in errors[0].message
    assert "Gone<Integer>" in errors[1].message
    assert not any(o.has_output for o in outcomes)


def test_forced_malformed_arguments(queue_source):
    outcomes = Transpiler(forced_classes={"Queue": ["Integer,"]}).transpile({"Queue.peak": queue_source})
    assert [o.error.code for o in outcomes] == ["CE2003"]


def test_forced_arity_mismatch_is_rendered_not_fatal(queue_source):
    outcomes = Transpiler(forced_classes={"Queue": ["String, Integer", "Id"]}).transpile({"Queue.peak": queue_source})
    out = _by_output(outcomes)
    assert out["QueueStringInteger.cls"] == "// ERROR: Type parameter mismatch for Queue (expected 1, got 2)"
    assert out["QueueId.cls"].startswith("public class QueueId {")


def test_forced_method_instantiation(util_source):
    outcomes = Transpiler(forced_methods={"Util.wrap": ["String"]}).transpile({"Util.peak": util_source})
    assert _by_output(outcomes)["Util.cls"] == (
        "public class Util {\n"
        "\n"
        "    // Generated concrete method: wrapString\n"
        "    public static List<String> wrapString(String value) {\n"
        "        return new List<String>{ value };\n"
        "    }\n"
        "}\n"
    )


def test_generic_method_without_usage_is_dropped(util_source):
    outcomes = Transpiler().transpile({"Util.peak": util_source})
    assert _by_output(outcomes)["Util.cls"] == "public class Util {\n}\n"


def test_forced_unknown_method_is_a_configuration_error(util_source):
    outcomes = Transpiler(forced_methods={"Util.nope": ["String"]}).transpile({"Util.peak": util_source})
    assert [(o.original_path, o.error.code) for o in outcomes] == [(CONFIG_SOURCE, "CE2002")]


def test_generic_method_of_a_template_sees_class_arguments():
    box = (
        "public class Box<T> {\n"
        "    T value;\n"
        "    public <U> Map<T, U> pair(U other) {\n"
        "        return new Map<T, U>();\n"
        "    }\n"
        "}\n"
    )
    transpiler = Transpiler(forced_classes={"Box": ["String"]}, forced_methods={"Box.pair": ["Integer"]})
    content = _by_output(transpiler.transpile({"Box.peak": box}))["BoxString.cls"]
    assert "    String value;\n" in content
    assert "public Map<String, Integer> pairInteger(Integer other) {" in content
    assert "<U>" not in content


def test_concrete_method_usage_is_instantiated(queue_source):
    util = (
        "public class Util {\n"
        "    public static <T> Queue<T> queueOf(T first) {\n"
        "        return new Queue<T>();\n"
        "    }\n"
        "}\n"
    )
    transpiler = Transpiler(forced_methods={"Util.queueOf": ["Id"]})
    out = _by_output(transpiler.transpile({"Queue.peak": queue_source, "Util.peak": util}))
    assert "public static QueueId queueOfId(Id first) {" in out["Util.cls"]
    assert "QueueId.cls" in out


def test_self_expanding_template_is_cut_off():
    nest = "public class Nest<T> {\n    Nest<List<T>> deeper;\n}\n"
    outcomes = Transpiler(forced_classes={"Nest": ["Integer"]}).transpile({"Nest.peak": nest})
    concrete = [o for o in outcomes if o.original_path is None]
    assert len(concrete) == MAX_INSTANTIATION_DEPTH + 2
    assert concrete[-1].content.startswith("// ERROR: Instantiation of Nest<")
    assert concrete[0].content.startswith("public class NestInteger {\n    NestListInteger deeper;")


def test_output_path_resolver_is_used(queue_source):
    resolver = lambda path: os.path.join("out", os.path.basename(path)[:-len(".peak")] + ".cls")
    files = {"src/Queue.peak": queue_source, "src/Use.peak": "class Use { Queue<Id> q; }"}
    out = _by_output(Transpiler(output_path_fn=resolver).transpile(files))
    assert set(out) == {os.path.join("out", "Use.cls"), os.path.join("out", "QueueId.cls")}


def test_failing_resolver(queue_source):
    def resolver(path):
        raise ValueError("outside of the project")

    files = {"src/Queue.peak": queue_source, "src/Use.peak": "class Use { Queue<Id> q; }"}
    outcomes = Transpiler(output_path_fn=resolver).transpile(files)
    use = [o for o in outcomes if o.original_path == "src/Use.peak"][0]
    assert use.error.code == "CE4005"
    concrete = [o for o in outcomes if o.original_path is None][0]
    assert concrete.output_path == os.path.join("src", "QueueId.cls")
