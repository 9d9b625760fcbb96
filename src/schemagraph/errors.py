from __future__ import annotations

from typing import Iterable

from .models import ValidationError


class SchemaError(ValueError):
    pass


class StructuralParseError(SchemaError):
    pass


class KeywordDecodeError(SchemaError):
    def __init__(self, keyword: str, reason: str) -> None:
        self.keyword = keyword
        self.reason = reason
        super().__init__(f"cannot decode keyword {keyword!r}: {reason}")


class SchemaReferenceError(SchemaError):
    def __init__(self, pointer: str, reason: str) -> None:
        self.pointer = pointer
        self.reason = reason
        super().__init__(f"cannot resolve reference {pointer!r}: {reason}")


class FetchError(SchemaReferenceError):
    pass


class SchemaValidationError(SchemaError):
    def __init__(self, violations: Iterable[ValidationError]) -> None:
        self.violations = list(violations)
        super().__init__(_format_violations(self.violations))


def _format_violations(violations: list[ValidationError]) -> str:
    lines = ["Instance failed schema validation:"]
    for violation in violations:
        location = violation.instance_path or "(root)"
        if violation.keyword:
            lines.append(
                "- %s [keyword=%s, at=%s]"
                % (violation.description, violation.keyword, location)
            )
        else:
            lines.append("- %s [at=%s]" % (violation.description, location))
    return "\n".join(lines)
