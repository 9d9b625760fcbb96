import os
import sys
import unittest
from decimal import Decimal

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from schemagraph.models import NumberLiteral
from schemagraph.normalize import (
    canonical_number,
    classify,
    exact_integer,
    json_equal,
    render,
    type_matches,
)


class TestCanonicalNumber(unittest.TestCase):
    def test_integral_literal_becomes_int(self) -> None:
        value = canonical_number(NumberLiteral("5"))
        self.assertEqual(value, 5)
        self.assertIsInstance(value, int)

    def test_fractional_literal_becomes_float(self) -> None:
        value = canonical_number(NumberLiteral("5.0"))
        self.assertEqual(value, 5.0)
        self.assertIsInstance(value, float)

    def test_exponent_literals(self) -> None:
        self.assertEqual(canonical_number(NumberLiteral("1e2")), 100)
        self.assertIsInstance(canonical_number(NumberLiteral("1e2")), int)
        self.assertAlmostEqual(canonical_number(NumberLiteral("1e-2")), 0.01)

    def test_large_integer_literal_stays_exact(self) -> None:
        text = "123456789012345678901234567890"
        self.assertEqual(canonical_number(NumberLiteral(text)), int(text))

    def test_decimal_values(self) -> None:
        self.assertEqual(canonical_number(Decimal("2")), 2)
        self.assertIsInstance(canonical_number(Decimal("2")), int)
        self.assertEqual(canonical_number(Decimal("2.50")), 2.5)

    def test_rejects_values_without_numeric_mapping(self) -> None:
        for value in (True, "5", None, float("nan"), float("inf"), [1]):
            with self.subTest(value=value):
                with self.assertRaises(TypeError):
                    canonical_number(value)

    def test_exact_integer(self) -> None:
        self.assertEqual(exact_integer(NumberLiteral("3")), 3)
        self.assertIsNone(exact_integer(NumberLiteral("3.0")))
        self.assertIsNone(exact_integer(3.0))
        self.assertIsNone(exact_integer(False))


class TestClassify(unittest.TestCase):
    def test_literal_text_decides_integer_or_number(self) -> None:
        self.assertEqual(classify(NumberLiteral("4")), "integer")
        self.assertEqual(classify(NumberLiteral("4.0")), "number")
        self.assertEqual(classify(NumberLiteral("1e2")), "integer")
        self.assertEqual(classify(NumberLiteral("1e-2")), "number")

    def test_native_values_classified_by_shape(self) -> None:
        self.assertEqual(classify(4), "integer")
        self.assertEqual(classify(4.0), "integer")
        self.assertEqual(classify(4.5), "number")
        self.assertEqual(classify(True), "boolean")
        self.assertEqual(classify(None), "null")
        self.assertEqual(classify("x"), "string")
        self.assertEqual(classify([]), "array")
        self.assertEqual(classify({}), "object")

    def test_integer_satisfies_number(self) -> None:
        self.assertTrue(type_matches("integer", "number"))
        self.assertFalse(type_matches("number", "integer"))
        self.assertTrue(type_matches("string", "string"))


class TestJsonEqual(unittest.TestCase):
    def test_numbers_compare_by_value(self) -> None:
        self.assertTrue(json_equal(NumberLiteral("1"), 1.0))
        self.assertTrue(json_equal(NumberLiteral("1.0"), 1))
        self.assertFalse(json_equal(NumberLiteral("1.5"), 1))

    def test_booleans_are_not_numbers(self) -> None:
        self.assertFalse(json_equal(True, 1))
        self.assertFalse(json_equal(0, False))
        self.assertTrue(json_equal(False, False))

    def test_structures(self) -> None:
        self.assertTrue(json_equal({"a": [1, 2]}, {"a": [1, 2.0]}))
        self.assertFalse(json_equal([1, 2], [2, 1]))
        self.assertTrue(json_equal({"a": 1, "b": 2}, {"b": 2, "a": 1}))
        self.assertFalse(json_equal({"a": 1}, {"a": 1, "b": 2}))
        self.assertFalse(json_equal([], {}))
        self.assertTrue(json_equal(None, None))

    def test_render_uses_canonical_numbers(self) -> None:
        self.assertEqual(render([NumberLiteral("1"), NumberLiteral("2.5")]), "[1, 2.5]")


if __name__ == "__main__":
    unittest.main()
