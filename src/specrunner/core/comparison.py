"""Value comparison used by the assertion engine."""

import dataclasses
import math
import reprlib
from collections.abc import Mapping, Set
from types import ModuleType
from typing import Any, Union

_PRIMITIVES = (type(None), bool, int, float, complex, str, bytes)

_repr = reprlib.Repr()
_repr.maxstring = 120
_repr.maxother = 120
_repr.maxlist = _repr.maxtuple = _repr.maxdict = _repr.maxset = 20
_repr.maxlevel = 4


def serialize(value: Any) -> str:
    """Return a bounded, cycle-safe representation of a value for messages."""
    try:
        return _repr.repr(value)
    except Exception as e:
        return f"<unrepresentable {type(value).__name__}: {e}>"


def strict_equal(actual: Any, expected: Any) -> bool:
    """Same primitive value of the same type, or the same object."""
    if actual is expected:
        return True
    if isinstance(actual, _PRIMITIVES) and type(actual) is type(expected):
        return bool(actual == expected)
    return False


def _category(value: Any) -> str:
    if value is None:
        return "none"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (str, bytes, complex)):
        return type(value).__name__
    if isinstance(value, Mapping):
        return "mapping"
    if isinstance(value, list):
        return "list"
    if isinstance(value, tuple):
        return "tuple"
    if isinstance(value, Set):
        return "set"
    return "object"


def _slot_names(cls: type) -> tuple:
    slots = cls.__dict__.get("__slots__", ())
    return (slots,) if isinstance(slots, str) else tuple(slots)


def _object_state(value: Any) -> Union[dict, None]:
    slots = [
        slot
        for cls in type(value).__mro__
        for slot in _slot_names(cls)
        if slot not in ("__dict__", "__weakref__")
    ]
    if not slots and not hasattr(value, "__dict__"):
        return None

    state: dict = dict(vars(value)) if hasattr(value, "__dict__") else {}
    for slot in slots:
        if hasattr(value, slot):
            state[slot] = getattr(value, slot)
    return state


def deep_equal(actual: Any, expected: Any) -> bool:
    """Recursive structural equality that terminates on cyclic graphs."""
    return _deep_equal(actual, expected, set())


def _deep_equal(a: Any, b: Any, seen: set[tuple[int, int]]) -> bool:
    if a is b:
        return True

    category = _category(a)
    if category != _category(b):
        return False

    if category == "number":
        if isinstance(a, float) and isinstance(b, float) and math.isnan(a) and math.isnan(b):
            return True
        return bool(a == b)
    if category in ("none", "bool", "str", "bytes", "complex"):
        return bool(a == b)

    # Containers: a pair already under comparison is assumed equal, which is
    # what closes a cycle.
    pair = (id(a), id(b))
    if pair in seen:
        return True
    seen.add(pair)

    if category == "mapping":
        return _mapping_equal(a, b, seen)

    if category in ("list", "tuple"):
        if len(a) != len(b):
            return False
        return all(_deep_equal(x, y, seen) for x, y in zip(a, b))

    if category == "set":
        return bool(a == b)

    if type(a) is not type(b):
        return False
    if not dataclasses.is_dataclass(a):
        if type(a).__eq__ is not object.__eq__:
            return bool(a == b)
        if callable(a) or isinstance(a, ModuleType):
            return False
    state_a, state_b = _object_state(a), _object_state(b)
    if state_a is None or state_b is None:
        return False
    # State dicts are temporaries; their ids must not enter ``seen``.
    return _mapping_equal(state_a, state_b, seen)


def _mapping_equal(a: Mapping, b: Mapping, seen: set[tuple[int, int]]) -> bool:
    if set(a.keys()) != set(b.keys()):
        return False
    return all(_deep_equal(a[key], b[key], seen) for key in a)


def error_matches(error: BaseException, error_spec: Union[str, type]) -> bool:
    """Check a raised exception against a class name/message or a class."""
    if isinstance(error_spec, str):
        return type(error).__name__ == error_spec or str(error) == error_spec
    if isinstance(error_spec, type):
        return isinstance(error, error_spec)
    raise TypeError(
        f"error spec must be a string or an exception class, got {type(error_spec).__name__}"
    )
