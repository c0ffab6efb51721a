import re
from collections.abc import Mapping
from datetime import date
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from loguru import logger


class _Missing:
    """Value of a field that is absent from a document (distinct from None)."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return 'MISSING'

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

# Kind codes, ordered the way compare_values sorts them
NULL = 0
NUMBER = 1
STRING = 2
OBJECT = 3
ARRAY = 4
BOOLEAN = 7
DATE = 8
OTHER = 100

# Kinds the range operators ($gt and friends) are allowed to compare
ORDERED_KINDS = {NUMBER, STRING, BOOLEAN, DATE}


def is_array(x: Any) -> bool:
    """Check if value is an array (list or tuple)."""
    return isinstance(x, (list, tuple))


def is_operator_object(x: Any) -> bool:
    """A non-array mapping used as a filter value holds operators."""
    return isinstance(x, Mapping)


def value_kind(v: Any) -> int:
    """Get the kind code of a document value."""
    if v is None or v is MISSING:
        return NULL
    # bool is a subclass of int, check it first
    if isinstance(v, bool):
        return BOOLEAN
    if isinstance(v, (int, float)):
        return NUMBER
    if isinstance(v, str):
        return STRING
    if is_array(v):
        return ARRAY
    if isinstance(v, Mapping):
        return OBJECT
    if isinstance(v, date):
        return DATE
    return OTHER


def strict_equal(a: Any, b: Any) -> bool:
    """Equality without coercion: same kind and same value, recursively."""
    if a is MISSING or b is MISSING:
        return a is b

    kind = value_kind(a)
    if kind != value_kind(b):
        return False
    if kind == ARRAY:
        if len(a) != len(b):
            return False
        return all(strict_equal(x, y) for x, y in zip(a, b))
    if kind == OBJECT:
        if set(a.keys()) != set(b.keys()):
            return False
        return all(strict_equal(a[k], b[k]) for k in a.keys())
    if kind == DATE and type(a) is not type(b):
        # datetime is a subclass of date and they never compare equal
        return False
    return a == b


def _ordered(a: Any, b: Any, test: Callable[[Any, Any], bool]) -> bool:
    """Apply an ordering test when both values share an ordered kind."""
    kind = value_kind(a)
    if kind not in ORDERED_KINDS or kind != value_kind(b):
        return False
    try:
        return test(a, b)
    except TypeError:
        # date vs datetime, naive vs aware datetimes
        return False


def _regex_search(value: Any, operand: Any) -> bool:
    if not isinstance(value, str):
        return False
    if not isinstance(operand, re.Pattern):
        operand = re.compile(operand if isinstance(operand, str) else str(operand))
    return operand.search(value) is not None


def _unknown_operator(operator: str) -> Callable[[Any], Callable[[Any], bool]]:
    def compile_never(operand: Any) -> Callable[[Any], bool]:
        logger.warning(f"Unrecognized query operator {operator!r}; it matches no documents")
        return lambda value: False

    return compile_never


# Value operators: operator name -> (operand -> predicate over the field value)
VALUE_OPERATORS: Dict[str, Callable[[Any], Callable[[Any], bool]]] = {
    '$eq': lambda operand: (
        lambda value: strict_equal(value, operand)
    ),

    '$ne': lambda operand: (
        lambda value: not strict_equal(value, operand)
    ),

    '$gt': lambda operand: (
        lambda value: _ordered(value, operand, lambda a, b: a > b)
    ),

    '$gte': lambda operand: (
        lambda value: _ordered(value, operand, lambda a, b: a >= b)
    ),

    '$lt': lambda operand: (
        lambda value: _ordered(value, operand, lambda a, b: a < b)
    ),

    '$lte': lambda operand: (
        lambda value: _ordered(value, operand, lambda a, b: a <= b)
    ),

    '$in': lambda operand: (
        lambda value: is_array(operand) and any(strict_equal(value, x) for x in operand)
    ),

    # Compiled lazily so a bad pattern only fails against string fields
    '$regex': lambda operand: (
        lambda value: _regex_search(value, operand)
    ),
}


def compile_value_selector(value_selector: Any) -> Callable[[Any], bool]:
    """Compile the filter value of one field into a predicate over the field value.

    Literals (including arrays and None) become an implicit ``$eq``. Operator
    objects compile each operator through ``VALUE_OPERATORS``; every operator
    must hold. Operators missing from the table never match.
    """
    if not is_operator_object(value_selector):
        return VALUE_OPERATORS['$eq'](value_selector)

    operator_functions = []
    for operator, operand in value_selector.items():
        factory = VALUE_OPERATORS.get(operator) or _unknown_operator(operator)
        operator_functions.append(factory(operand))

    return lambda value: all(f(value) for f in operator_functions)


def compile_document_selector(doc_selector: Optional[Mapping]) -> Callable[[Mapping], bool]:
    """Compile a document selector into a matching function."""
    if not doc_selector:
        # Empty selector matches all documents
        return lambda doc: True

    per_key_selectors = []
    for key, sub_selector in doc_selector.items():
        value_selector_func = compile_value_selector(sub_selector)

        def key_matcher(doc, key=key, value_func=value_selector_func):
            return value_func(doc.get(key, MISSING))

        per_key_selectors.append(key_matcher)

    return lambda doc: all(selector(doc) for selector in per_key_selectors)


def matches(doc: Mapping, selector: Optional[Mapping]) -> bool:
    """Test if a document matches a selector."""
    return compile_document_selector(selector)(doc)


def match_all(docs: Iterable[Mapping], selector: Optional[Mapping]) -> List[Mapping]:
    """Return the documents matching a selector, in their original order."""
    return list(filter(compile_document_selector(selector), docs))


def compare_values(a: Any, b: Any) -> int:
    """Compare two values for sorting: by kind first, then by value."""
    ka, kb = value_kind(a), value_kind(b)
    if ka != kb:
        return -1 if ka < kb else 1

    if ka == NULL:
        return 0
    if ka == OBJECT:
        def to_array(obj):
            result = []
            for k, v in obj.items():
                result.extend([k, v])
            return result
        return compare_values(to_array(a), to_array(b))
    if ka == ARRAY:
        for x, y in zip(a, b):
            cmp = compare_values(x, y)
            if cmp != 0:
                return cmp
        return (len(a) > len(b)) - (len(a) < len(b))

    try:
        return (a > b) - (a < b)
    except TypeError:
        raise ValueError(f"Sorting not supported between {a!r} and {b!r}")


def compile_sort(spec: Union[Dict, List]) -> Callable[[Mapping, Mapping], int]:
    """Compile a sort specification into a comparison function.

    Accepts ``{'age': 1, 'name': -1}`` or ``['age', ('name', 'desc')]``.
    """
    sort_spec_parts = []

    if isinstance(spec, list):
        for item in spec:
            if isinstance(item, str):
                sort_spec_parts.append({'key': item, 'ascending': True})
            elif (is_array(item) and len(item) == 2 and isinstance(item[0], str)
                    and item[1] in ('asc', 'desc')):
                sort_spec_parts.append({'key': item[0], 'ascending': item[1] == 'asc'})
            else:
                raise ValueError(f"Bad sort specification: {spec}")
    elif isinstance(spec, Mapping):
        for key, value in spec.items():
            if isinstance(value, bool) or value not in (1, -1):
                raise ValueError(f"Bad sort specification: {spec}")
            sort_spec_parts.append({'key': key, 'ascending': value == 1})
    else:
        raise ValueError(f"Bad sort specification: {spec}")

    def compare_docs(a, b):
        for spec_part in sort_spec_parts:
            compare = compare_values(
                a.get(spec_part['key'], MISSING),
                b.get(spec_part['key'], MISSING),
            )
            if compare != 0:
                return compare if spec_part['ascending'] else -compare
        return 0

    return compare_docs
