from __future__ import annotations

import json
from typing import IO, Union

from .errors import StructuralParseError
from .models import JsonValue, NumberLiteral

Source = Union[bytes, bytearray, str, IO[bytes], IO[str]]


def decode_document(source: Source) -> JsonValue:
    text = _read_text(source)
    try:
        return json.loads(
            text,
            parse_int=NumberLiteral,
            parse_float=NumberLiteral,
            parse_constant=_reject_constant,
        )
    except json.JSONDecodeError as exc:
        raise StructuralParseError(f"schema is not valid JSON: {exc}") from exc
    except RecursionError as exc:
        raise StructuralParseError("schema nesting too deep") from exc
    except ValueError as exc:
        raise StructuralParseError(str(exc)) from exc


def _read_text(source: Source) -> str:
    if hasattr(source, "read"):
        source = source.read()  # type: ignore[union-attr]
    if isinstance(source, (bytes, bytearray)):
        try:
            return bytes(source).decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise StructuralParseError(f"schema is not UTF-8: {exc}") from exc
    if isinstance(source, str):
        return source
    raise StructuralParseError(
        f"cannot decode a schema from {type(source).__name__}"
    )


def _reject_constant(name: str) -> JsonValue:
    raise ValueError(f"{name} is not a JSON number")
