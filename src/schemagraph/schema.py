from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

from .models import JsonValue, ValidationError

if TYPE_CHECKING:
    from .constraints import Constraint


@dataclass(eq=False)
class Schema:
    """One compiled schema object: keyword name -> compiled constraint.

    Nodes are compared by identity; a resolved graph may be cyclic.
    """

    keywords: dict[str, "Constraint"] = field(default_factory=dict)
    resolved: bool = False

    def ref_pointer(self) -> str | None:
        from .constraints import Ref

        constraint = self.keywords.get(Ref.keyword)
        if isinstance(constraint, Ref):
            return constraint.pointer
        return None

    def iter_slots(self) -> Iterator["SchemaSlot"]:
        from .constraints import SchemaContainer

        for constraint in self.keywords.values():
            if isinstance(constraint, SchemaContainer):
                yield from constraint.embedded().values()

    def validate(self, instance: JsonValue) -> list[ValidationError]:
        from .evaluator import validate

        return validate(self, instance)

    def is_valid(self, instance: JsonValue) -> bool:
        return not self.validate(instance)

    def check(self, instance: JsonValue) -> None:
        from .errors import SchemaValidationError

        violations = self.validate(instance)
        if violations:
            raise SchemaValidationError(violations)

    @classmethod
    def failing(cls, pointer: str, reason: str) -> "Schema":
        from .constraints import FailedReference

        sentinel = FailedReference(pointer=pointer, reason=reason)
        return cls(keywords={FailedReference.keyword: sentinel}, resolved=True)


@dataclass(eq=False)
class SchemaSlot:
    """Rebindable cell through which a constraint owns an embedded schema."""

    schema: Schema
