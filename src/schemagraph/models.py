from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Sequence, TypeAlias


@dataclass(frozen=True)
class NumberLiteral:
    """A JSON number as written in the source document."""

    text: str

    @property
    def is_integral(self) -> bool:
        lowered = self.text.lower()
        return "." not in lowered and "e-" not in lowered

    def __str__(self) -> str:
        return self.text


JsonValue: TypeAlias = (
    None
    | bool
    | int
    | float
    | str
    | NumberLiteral
    | Mapping[str, "JsonValue"]
    | Sequence["JsonValue"]
)
JsonObject: TypeAlias = dict[str, JsonValue]


@dataclass(frozen=True)
class ValidationError:
    description: str
    keyword: str = ""
    instance_path: str = ""

    def __str__(self) -> str:
        return self.description
