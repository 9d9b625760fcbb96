"""Compiled keyword constraints.

Every draft-4 keyword the compiler understands maps to one constraint class in
``KEYWORDS``. Unknown keywords become ``Opaque`` constraints, which never fail
but still expose any schema-shaped values they hold so that ``$ref`` pointers
can reach them (``definitions`` is handled this way).

Two optional capabilities are modelled as protocols:

* ``NeighborBound`` constraints finish configuring themselves from their
  sibling keywords once the whole schema object is decoded.
* ``SchemaContainer`` constraints own embedded schemas, keyed by property
  name, pattern, stringified index, or ``""`` for a single unnamed child.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import re
from typing import Callable, ClassVar, Mapping, Protocol, runtime_checkable

from .errors import KeywordDecodeError
from .models import JsonValue
from .normalize import Number, canonical_number, exact_integer, is_number
from .schema import Schema, SchemaSlot

SchemaFactory = Callable[[Mapping[str, JsonValue]], Schema]


class ConstraintKind(Enum):
    MAXIMUM = "maximum"
    MINIMUM = "minimum"
    EXCLUSIVE_MAXIMUM = "exclusive_maximum"
    EXCLUSIVE_MINIMUM = "exclusive_minimum"
    MULTIPLE_OF = "multiple_of"
    MAX_LENGTH = "max_length"
    MIN_LENGTH = "min_length"
    PATTERN = "pattern"
    MAX_ITEMS = "max_items"
    MIN_ITEMS = "min_items"
    ITEMS = "items"
    ADDITIONAL_ITEMS = "additional_items"
    UNIQUE_ITEMS = "unique_items"
    PROPERTIES = "properties"
    PATTERN_PROPERTIES = "pattern_properties"
    ADDITIONAL_PROPERTIES = "additional_properties"
    REQUIRED = "required"
    MAX_PROPERTIES = "max_properties"
    MIN_PROPERTIES = "min_properties"
    DEPENDENCIES = "dependencies"
    ALL_OF = "all_of"
    ANY_OF = "any_of"
    ONE_OF = "one_of"
    NOT = "not"
    ENUM = "enum"
    TYPE = "type"
    REF = "ref"
    OPAQUE = "opaque"
    FAILED_REFERENCE = "failed_reference"


@runtime_checkable
class NeighborBound(Protocol):
    def bind_neighbors(self, table: Mapping[str, "Constraint"]) -> None: ...


@runtime_checkable
class SchemaContainer(Protocol):
    def embedded(self) -> Mapping[str, SchemaSlot]: ...


class Constraint:
    kind: ClassVar[ConstraintKind]
    keyword: ClassVar[str]

    @classmethod
    def decode(
        cls, value: JsonValue, compile_child: SchemaFactory
    ) -> "Constraint":
        raise NotImplementedError


# Numeric


@dataclass
class _Bound(Constraint):
    limit: JsonValue
    bound: Number
    exclusive: bool = False

    flag_keyword: ClassVar[str]

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "_Bound":
        return cls(limit=value, bound=_number(cls.keyword, value))

    def bind_neighbors(self, table: Mapping[str, Constraint]) -> None:
        flag = table.get(self.flag_keyword)
        self.exclusive = isinstance(flag, _ExclusiveFlag) and flag.value


@dataclass
class Maximum(_Bound):
    kind = ConstraintKind.MAXIMUM
    keyword = "maximum"
    flag_keyword = "exclusiveMaximum"


@dataclass
class Minimum(_Bound):
    kind = ConstraintKind.MINIMUM
    keyword = "minimum"
    flag_keyword = "exclusiveMinimum"


@dataclass
class _ExclusiveFlag(Constraint):
    value: bool

    @classmethod
    def decode(
        cls, value: JsonValue, compile_child: SchemaFactory
    ) -> "_ExclusiveFlag":
        if not isinstance(value, bool):
            raise KeywordDecodeError(cls.keyword, "expected a boolean")
        return cls(value=value)


@dataclass
class ExclusiveMaximum(_ExclusiveFlag):
    kind = ConstraintKind.EXCLUSIVE_MAXIMUM
    keyword = "exclusiveMaximum"


@dataclass
class ExclusiveMinimum(_ExclusiveFlag):
    kind = ConstraintKind.EXCLUSIVE_MINIMUM
    keyword = "exclusiveMinimum"


@dataclass
class MultipleOf(Constraint):
    kind = ConstraintKind.MULTIPLE_OF
    keyword = "multipleOf"

    limit: JsonValue
    divisor: Number

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "MultipleOf":
        divisor = _number(cls.keyword, value)
        if divisor <= 0:
            raise KeywordDecodeError(cls.keyword, "must be greater than zero")
        return cls(limit=value, divisor=divisor)


# Strings


@dataclass
class _Count(Constraint):
    limit: int

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "_Count":
        return cls(limit=_count(cls.keyword, value))


@dataclass
class MaxLength(_Count):
    kind = ConstraintKind.MAX_LENGTH
    keyword = "maxLength"


@dataclass
class MinLength(_Count):
    kind = ConstraintKind.MIN_LENGTH
    keyword = "minLength"


@dataclass
class Pattern(Constraint):
    kind = ConstraintKind.PATTERN
    keyword = "pattern"

    source: str
    regex: re.Pattern[str]

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "Pattern":
        if not isinstance(value, str):
            raise KeywordDecodeError(cls.keyword, "expected a string")
        return cls(source=value, regex=_regex(cls.keyword, value))


# Arrays


@dataclass
class MaxItems(_Count):
    kind = ConstraintKind.MAX_ITEMS
    keyword = "maxItems"


@dataclass
class MinItems(_Count):
    kind = ConstraintKind.MIN_ITEMS
    keyword = "minItems"


@dataclass
class AdditionalItems(Constraint):
    kind = ConstraintKind.ADDITIONAL_ITEMS
    keyword = "additionalItems"

    allowed: bool = True
    schema: SchemaSlot | None = None

    @classmethod
    def decode(
        cls, value: JsonValue, compile_child: SchemaFactory
    ) -> "AdditionalItems":
        if isinstance(value, bool):
            return cls(allowed=value)
        return cls(schema=_slot(cls.keyword, value, compile_child))

    def embedded(self) -> Mapping[str, SchemaSlot]:
        return {"": self.schema} if self.schema is not None else {}


@dataclass
class Items(Constraint):
    kind = ConstraintKind.ITEMS
    keyword = "items"

    single: SchemaSlot | None = None
    positional: list[SchemaSlot] | None = None
    additional_allowed: bool = True
    additional: SchemaSlot | None = None

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "Items":
        if isinstance(value, Mapping):
            return cls(single=SchemaSlot(compile_child(value)))
        return cls(positional=_slot_list(cls.keyword, value, compile_child))

    def bind_neighbors(self, table: Mapping[str, Constraint]) -> None:
        neighbor = table.get(AdditionalItems.keyword)
        if not isinstance(neighbor, AdditionalItems):
            return
        self.additional_allowed = neighbor.allowed
        self.additional = neighbor.schema

    def embedded(self) -> Mapping[str, SchemaSlot]:
        if self.single is not None:
            return {"": self.single}
        return {str(index): slot for index, slot in enumerate(self.positional or [])}


@dataclass
class UniqueItems(Constraint):
    kind = ConstraintKind.UNIQUE_ITEMS
    keyword = "uniqueItems"

    enabled: bool

    @classmethod
    def decode(
        cls, value: JsonValue, compile_child: SchemaFactory
    ) -> "UniqueItems":
        if not isinstance(value, bool):
            raise KeywordDecodeError(cls.keyword, "expected a boolean")
        return cls(enabled=value)


# Objects


@dataclass(frozen=True)
class PatternSlot:
    pattern: str
    regex: re.Pattern[str]
    slot: SchemaSlot


@dataclass
class AdditionalProperties(Constraint):
    kind = ConstraintKind.ADDITIONAL_PROPERTIES
    keyword = "additionalProperties"

    allowed: bool = True
    schema: SchemaSlot | None = None
    deferred: bool = False

    @classmethod
    def decode(
        cls, value: JsonValue, compile_child: SchemaFactory
    ) -> "AdditionalProperties":
        if isinstance(value, bool):
            return cls(allowed=value)
        return cls(schema=_slot(cls.keyword, value, compile_child))

    def bind_neighbors(self, table: Mapping[str, Constraint]) -> None:
        self.deferred = isinstance(
            table.get(Properties.keyword), Properties
        ) or isinstance(table.get(PatternProperties.keyword), PatternProperties)

    def embedded(self) -> Mapping[str, SchemaSlot]:
        return {"": self.schema} if self.schema is not None else {}


@dataclass
class PatternProperties(Constraint):
    kind = ConstraintKind.PATTERN_PROPERTIES
    keyword = "patternProperties"

    patterns: list[PatternSlot]
    deferred: bool = False
    additional_allowed: bool = True
    additional: SchemaSlot | None = None

    @classmethod
    def decode(
        cls, value: JsonValue, compile_child: SchemaFactory
    ) -> "PatternProperties":
        if not isinstance(value, Mapping):
            raise KeywordDecodeError(cls.keyword, "expected an object")
        patterns = [
            PatternSlot(
                pattern=key,
                regex=_regex(cls.keyword, key),
                slot=_slot(cls.keyword, item, compile_child),
            )
            for key, item in value.items()
        ]
        return cls(patterns=patterns)

    def bind_neighbors(self, table: Mapping[str, Constraint]) -> None:
        self.deferred = isinstance(table.get(Properties.keyword), Properties)
        neighbor = table.get(AdditionalProperties.keyword)
        if isinstance(neighbor, AdditionalProperties):
            self.additional_allowed = neighbor.allowed
            self.additional = neighbor.schema

    def embedded(self) -> Mapping[str, SchemaSlot]:
        return {entry.pattern: entry.slot for entry in self.patterns}


@dataclass
class Properties(Constraint):
    kind = ConstraintKind.PROPERTIES
    keyword = "properties"

    slots: dict[str, SchemaSlot]
    patterns: list[PatternSlot] = field(default_factory=list)
    additional_allowed: bool = True
    additional: SchemaSlot | None = None

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "Properties":
        if not isinstance(value, Mapping):
            raise KeywordDecodeError(cls.keyword, "expected an object")
        return cls(slots=_slot_map(cls.keyword, value, compile_child))

    def bind_neighbors(self, table: Mapping[str, Constraint]) -> None:
        patterns = table.get(PatternProperties.keyword)
        if isinstance(patterns, PatternProperties):
            self.patterns = list(patterns.patterns)
        neighbor = table.get(AdditionalProperties.keyword)
        if isinstance(neighbor, AdditionalProperties):
            self.additional_allowed = neighbor.allowed
            self.additional = neighbor.schema

    def embedded(self) -> Mapping[str, SchemaSlot]:
        return self.slots


@dataclass
class Required(Constraint):
    kind = ConstraintKind.REQUIRED
    keyword = "required"

    names: tuple[str, ...]

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "Required":
        return cls(names=_string_tuple(cls.keyword, value))


@dataclass
class MaxProperties(_Count):
    kind = ConstraintKind.MAX_PROPERTIES
    keyword = "maxProperties"


@dataclass
class MinProperties(_Count):
    kind = ConstraintKind.MIN_PROPERTIES
    keyword = "minProperties"


@dataclass
class Dependencies(Constraint):
    kind = ConstraintKind.DEPENDENCIES
    keyword = "dependencies"

    schema_deps: dict[str, SchemaSlot]
    property_deps: dict[str, tuple[str, ...]]

    @classmethod
    def decode(
        cls, value: JsonValue, compile_child: SchemaFactory
    ) -> "Dependencies":
        if not isinstance(value, Mapping):
            raise KeywordDecodeError(cls.keyword, "expected an object")
        schema_deps: dict[str, SchemaSlot] = {}
        property_deps: dict[str, tuple[str, ...]] = {}
        for key, item in value.items():
            if isinstance(item, Mapping):
                schema_deps[key] = SchemaSlot(compile_child(item))
                continue
            try:
                property_deps[key] = _string_tuple(cls.keyword, item)
            except KeywordDecodeError:
                continue
        if not schema_deps and not property_deps:
            raise KeywordDecodeError(
                cls.keyword, "no valid schema or property dependencies"
            )
        return cls(schema_deps=schema_deps, property_deps=property_deps)

    def embedded(self) -> Mapping[str, SchemaSlot]:
        return self.schema_deps


# Combinators


@dataclass
class _SchemaList(Constraint):
    slots: list[SchemaSlot]

    @classmethod
    def decode(
        cls, value: JsonValue, compile_child: SchemaFactory
    ) -> "_SchemaList":
        slots = _slot_list(cls.keyword, value, compile_child)
        if not slots:
            raise KeywordDecodeError(cls.keyword, "expected a non-empty array")
        return cls(slots=slots)

    def embedded(self) -> Mapping[str, SchemaSlot]:
        return {str(index): slot for index, slot in enumerate(self.slots)}


@dataclass
class AllOf(_SchemaList):
    kind = ConstraintKind.ALL_OF
    keyword = "allOf"


@dataclass
class AnyOf(_SchemaList):
    kind = ConstraintKind.ANY_OF
    keyword = "anyOf"


@dataclass
class OneOf(_SchemaList):
    kind = ConstraintKind.ONE_OF
    keyword = "oneOf"


@dataclass
class Not(Constraint):
    kind = ConstraintKind.NOT
    keyword = "not"

    slot: SchemaSlot

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "Not":
        return cls(slot=_slot(cls.keyword, value, compile_child))

    def embedded(self) -> Mapping[str, SchemaSlot]:
        return {"": self.slot}


@dataclass
class Enumeration(Constraint):
    kind = ConstraintKind.ENUM
    keyword = "enum"

    values: tuple[JsonValue, ...]

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "Enumeration":
        if not isinstance(value, list):
            raise KeywordDecodeError(cls.keyword, "expected an array")
        return cls(values=tuple(value))


@dataclass
class Type(Constraint):
    kind = ConstraintKind.TYPE
    keyword = "type"

    names: tuple[str, ...]

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "Type":
        if isinstance(value, str):
            names: tuple[str, ...] = (value,)
        else:
            names = _string_tuple(cls.keyword, value)
        return cls(names=names)


# References and everything else


@dataclass
class Ref(Constraint):
    kind = ConstraintKind.REF
    keyword = "$ref"

    pointer: str

    @classmethod
    def decode(cls, value: JsonValue, compile_child: SchemaFactory) -> "Ref":
        if not isinstance(value, str):
            raise KeywordDecodeError(cls.keyword, "expected a string")
        return cls(pointer=value)


@dataclass
class FailedReference(Constraint):
    kind = ConstraintKind.FAILED_REFERENCE
    keyword = "$ref"

    pointer: str
    reason: str


@dataclass
class Opaque(Constraint):
    kind = ConstraintKind.OPAQUE
    keyword = ""

    name: str
    value: JsonValue
    slots: dict[str, SchemaSlot] = field(default_factory=dict)

    @classmethod
    def decode_named(
        cls, name: str, value: JsonValue, compile_child: SchemaFactory
    ) -> "Opaque":
        slots: dict[str, SchemaSlot] = {}
        if isinstance(value, Mapping):
            slots[""] = SchemaSlot(compile_child(value))
            for key, item in value.items():
                if isinstance(item, Mapping):
                    slots[key] = SchemaSlot(compile_child(item))
        elif isinstance(value, list):
            for index, item in enumerate(value):
                if isinstance(item, Mapping):
                    slots[str(index)] = SchemaSlot(compile_child(item))
        return cls(name=name, value=value, slots=slots)

    def embedded(self) -> Mapping[str, SchemaSlot]:
        return self.slots


KEYWORDS: dict[str, type[Constraint]] = {
    constraint.keyword: constraint
    for constraint in (
        Maximum,
        Minimum,
        ExclusiveMaximum,
        ExclusiveMinimum,
        MultipleOf,
        MaxLength,
        MinLength,
        Pattern,
        MaxItems,
        MinItems,
        Items,
        AdditionalItems,
        UniqueItems,
        Properties,
        PatternProperties,
        AdditionalProperties,
        Required,
        MaxProperties,
        MinProperties,
        Dependencies,
        AllOf,
        AnyOf,
        OneOf,
        Not,
        Enumeration,
        Type,
        Ref,
    )
}


def _number(keyword: str, value: JsonValue) -> Number:
    if not is_number(value):
        raise KeywordDecodeError(keyword, "expected a number")
    try:
        return canonical_number(value)
    except TypeError as exc:
        raise KeywordDecodeError(keyword, str(exc)) from exc


def _count(keyword: str, value: JsonValue) -> int:
    count = exact_integer(value)
    if count is None:
        raise KeywordDecodeError(keyword, "expected an integer")
    if count < 0:
        raise KeywordDecodeError(keyword, "cannot be smaller than zero")
    return count


def _regex(keyword: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise KeywordDecodeError(keyword, f"invalid pattern {pattern!r}: {exc}") from exc


def _slot(
    keyword: str, value: JsonValue, compile_child: SchemaFactory
) -> SchemaSlot:
    if not isinstance(value, Mapping):
        raise KeywordDecodeError(keyword, "expected a schema object")
    return SchemaSlot(compile_child(value))


def _slot_list(
    keyword: str, value: JsonValue, compile_child: SchemaFactory
) -> list[SchemaSlot]:
    if not isinstance(value, list):
        raise KeywordDecodeError(keyword, "expected an array of schemas")
    return [_slot(keyword, item, compile_child) for item in value]


def _slot_map(
    keyword: str, value: Mapping[str, JsonValue], compile_child: SchemaFactory
) -> dict[str, SchemaSlot]:
    return {key: _slot(keyword, item, compile_child) for key, item in value.items()}


def _string_tuple(keyword: str, value: JsonValue) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise KeywordDecodeError(keyword, "expected an array of strings")
    return tuple(dict.fromkeys(value))
