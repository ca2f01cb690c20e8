"""Name mangling for instantiated templates.

Concrete names are the template name followed by the mangled name of every
type argument, with no separator. The scheme is deliberately plain: it is
deterministic, needs no symbol table, and the result is a valid Apex
identifier.
"""

from typing import Sequence

from peak_lang.semantics.generics.types import GenericExpression


def mangle(expr: GenericExpression) -> str:
    """Generate the concrete class name for a generic expression.

    Examples:
        Queue<Integer> -> QueueInteger
        Dict<String, Integer> -> DictStringInteger
        Queue<List<Integer>> -> QueueListInteger
        Dict<String, Queue<Integer>> -> DictStringQueueInteger
    """
    return expr.base_name + "".join(mangle(arg) for arg in expr.type_arguments)


def mangle_method_name(method_name: str, type_args: Sequence[GenericExpression]) -> str:
    """Generate the concrete method name for a generic method instantiation.

    Examples:
        groupBy<String> -> groupByString
        transform<String, Integer> -> transformStringInteger
    """
    return method_name + "".join(mangle(arg) for arg in type_args)
