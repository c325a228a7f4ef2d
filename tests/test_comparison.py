"""Tests for value comparison."""

from dataclasses import dataclass

import pytest

from specrunner.core.comparison import deep_equal, error_matches, serialize, strict_equal


@dataclass
class Point:
    x: int
    y: int


class Plain:
    def __init__(self, value):
        self.value = value


class Slotted:
    __slots__ = ("value",)

    def __init__(self, value):
        self.value = value


class TestStrictEqual:
    """Tests for strict_equal."""

    @pytest.mark.parametrize("value", [0, 1, "a", None, 1.5, True, b"x", [], {}, object()])
    def test_reflexive(self, value):
        """Test that every value equals itself."""
        assert strict_equal(value, value)

    def test_same_primitive_value(self):
        """Test that equal primitives of the same type are equal."""
        assert strict_equal(1000, int("1000"))
        assert strict_equal("ab", "".join(["a", "b"]))

    def test_no_coercion(self):
        """Test that values of different types never compare equal."""
        assert not strict_equal(1, 1.0)
        assert not strict_equal(True, 1)
        assert not strict_equal("1", 1)
        assert not strict_equal(None, 0)

    def test_objects_compare_by_identity(self):
        """Test that distinct containers are not strictly equal."""
        assert not strict_equal([], [])
        assert not strict_equal({"a": 1}, {"a": 1})
        assert not strict_equal(Point(1, 2), Point(1, 2))

    def test_nan_is_not_equal_to_other_nan(self):
        """Test that NaN follows value semantics for strict equality."""
        assert not strict_equal(float("nan"), float("nan"))


class TestDeepEqual:
    """Tests for deep_equal."""

    def test_nested_structures(self):
        """Test equality of nested lists and dicts."""
        assert deep_equal({"a": [1, {"b": (2, 3)}]}, {"a": [1, {"b": (2, 3)}]})
        assert not deep_equal({"a": [1, {"b": (2, 3)}]}, {"a": [1, {"b": (2, 4)}]})

    def test_key_order_is_ignored(self):
        """Test that mapping key order does not matter."""
        assert deep_equal({"a": 1, "b": 2}, {"b": 2, "a": 1})

    def test_key_sets_must_match(self):
        """Test that extra or missing keys break equality."""
        assert not deep_equal({"a": 1}, {"a": 1, "b": 2})
        assert not deep_equal({"a": 1, "b": 2}, {"a": 1})

    def test_sequence_length_and_order(self):
        """Test that sequences compare by length and position."""
        assert not deep_equal([1, 2], [1, 2, 3])
        assert not deep_equal([1, 2], [2, 1])

    def test_type_categories(self):
        """Test that different categories are never equal."""
        assert not deep_equal([1, 2], (1, 2))
        assert not deep_equal(True, 1)
        assert not deep_equal("1", 1)
        assert not deep_equal(None, [])
        assert deep_equal(1, 1.0)

    def test_nan(self):
        """Test that NaN deep-equals NaN."""
        assert deep_equal(float("nan"), float("nan"))
        assert deep_equal([float("nan")], [float("nan")])

    def test_sets(self):
        """Test set comparison by membership."""
        assert deep_equal({1, 2}, {2, 1})
        assert not deep_equal({1, 2}, {1, 3})

    def test_objects(self):
        """Test comparison of instances by type and state."""
        assert deep_equal(Plain([1, 2]), Plain([1, 2]))
        assert not deep_equal(Plain([1, 2]), Plain([1, 3]))
        assert deep_equal(Slotted({"a": 1}), Slotted({"a": 1}))
        assert not deep_equal(Slotted(1), Slotted(2))
        assert deep_equal(Point(1, 2), Point(1, 2))
        assert not deep_equal(Point(1, 2), Plain(1))

    def test_functions_compare_by_identity(self):
        """Test that distinct functions are never deep-equal."""

        def f():
            pass

        def g():
            pass

        assert deep_equal(f, f)
        assert not deep_equal(f, g)

    def test_self_referencing_lists(self):
        """Test that cyclic lists terminate and compare equal."""
        a = [1]
        a.append(a)
        b = [1]
        b.append(b)

        assert deep_equal(a, b)
        assert deep_equal(b, a)

    def test_self_referencing_dicts(self):
        """Test that cyclic mappings terminate."""
        a = {"name": "a"}
        a["self"] = a
        b = {"name": "a"}
        b["self"] = b
        c = {"name": "c"}
        c["self"] = c

        assert deep_equal(a, b)
        assert not deep_equal(a, c)

    def test_mutually_referencing_objects(self):
        """Test cycles running through object state."""
        a1, a2 = Plain(None), Plain(None)
        a1.value, a2.value = a2, a1
        b1, b2 = Plain(None), Plain(None)
        b1.value, b2.value = b2, b1

        assert deep_equal(a1, b1)

    @pytest.mark.parametrize(
        "left,right",
        [
            ([1, {"a": 2}], [1, {"a": 2}]),
            ([1, {"a": 2}], [1, {"a": 3}]),
            ({"a": (1,)}, {"a": [1]}),
            (Plain(1), Plain(1)),
            (float("nan"), 1.0),
        ],
    )
    def test_symmetric(self, left, right):
        """Test that argument order never changes the outcome."""
        assert deep_equal(left, right) == deep_equal(right, left)


class TestErrorMatches:
    """Tests for error_matches."""

    def test_match_by_class(self):
        """Test matching by exception class, including subclasses."""
        assert error_matches(KeyError("k"), LookupError)
        assert not error_matches(KeyError("k"), ValueError)

    def test_match_by_name_or_message(self):
        """Test matching by class name or exact message."""
        assert error_matches(ValueError("bad input"), "ValueError")
        assert error_matches(ValueError("bad input"), "bad input")
        assert not error_matches(ValueError("bad input"), "bad")

    def test_invalid_spec(self):
        """Test that unsupported specs raise."""
        with pytest.raises(TypeError):
            error_matches(ValueError(), 42)


class TestSerialize:
    """Tests for serialize."""

    def test_cyclic_value(self):
        """Test that cyclic values serialize."""
        a = [1]
        a.append(a)
        assert serialize(a).startswith("[1, ")

    def test_long_value_is_truncated(self):
        """Test that long strings are bounded."""
        assert len(serialize("x" * 10000)) < 200

    def test_broken_repr(self):
        """Test that a failing __repr__ does not escape."""

        class Broken:
            def __repr__(self):
                raise RuntimeError("nope")

        assert "Broken" in serialize(Broken())
