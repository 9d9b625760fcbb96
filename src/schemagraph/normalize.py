from __future__ import annotations

from decimal import Decimal, InvalidOperation
import json
import math
from typing import Any, Mapping

from .models import JsonValue, NumberLiteral

Number = int | float

def is_number(value: object) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float, Decimal, NumberLiteral))


def canonical_number(value: object) -> Number:
    """Map a decoded scalar onto an exact ``int`` or a ``float``.

    Integral literals and integral ``Decimal`` values without a fractional
    part in their representation become ``int``; everything else becomes a
    finite ``float``. Booleans, non-numeric values and non-finite numbers have
    no safe mapping and raise ``TypeError``.
    """
    if isinstance(value, bool):
        raise TypeError("boolean is not a JSON number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"non-finite number {value!r}")
        return value
    if isinstance(value, NumberLiteral):
        return _decimal_to_number(_literal_to_decimal(value), value.is_integral)
    if isinstance(value, Decimal):
        exponent = value.as_tuple().exponent
        integral = isinstance(exponent, int) and exponent >= 0
        return _decimal_to_number(value, integral)
    raise TypeError(f"{type(value).__name__} is not a JSON number")


def exact_integer(value: object) -> int | None:
    try:
        number = canonical_number(value)
    except TypeError:
        return None
    if isinstance(number, int):
        return number
    return None


def classify(value: object) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, str):
        return "string"
    if isinstance(value, NumberLiteral):
        return "integer" if value.is_integral else "number"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, (float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return "number"
        if math.isfinite(number) and number.is_integer():
            return "integer"
        return "number"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def type_matches(instance_type: str, declared: str) -> bool:
    if instance_type == declared:
        return True
    return instance_type == "integer" and declared == "number"


def json_equal(left: object, right: object) -> bool:
    if is_number(left) and is_number(right):
        try:
            return canonical_number(left) == canonical_number(right)
        except TypeError:
            return False
    left_type = classify(left)
    if left_type != classify(right) or left_type in {"integer", "number"}:
        return False
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if set(left) != set(right):
            return False
        return all(json_equal(left[key], right[key]) for key in left)
    if isinstance(left, (list, tuple)) and isinstance(right, (list, tuple)):
        if len(left) != len(right):
            return False
        return all(json_equal(a, b) for a, b in zip(left, right))
    return left == right


def to_python(value: JsonValue) -> Any:
    if isinstance(value, NumberLiteral):
        try:
            return canonical_number(value)
        except TypeError:
            return value.text
    if isinstance(value, Mapping):
        return {key: to_python(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_python(item) for item in value]
    return value


def render(value: JsonValue) -> str:
    return json.dumps(to_python(value), ensure_ascii=True, default=str)


def _literal_to_decimal(literal: NumberLiteral) -> Decimal:
    try:
        return Decimal(literal.text)
    except InvalidOperation as exc:
        raise TypeError(f"invalid number literal {literal.text!r}") from exc


def _decimal_to_number(value: Decimal, integral: bool) -> Number:
    if not value.is_finite():
        raise TypeError(f"non-finite number {value}")
    if integral and value == value.to_integral_value():
        return int(value)
    number = float(value)
    if not math.isfinite(number):
        raise TypeError(f"number {value} does not fit a float")
    return number
