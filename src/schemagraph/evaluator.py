from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Sequence

from .constraints import (
    AdditionalProperties,
    AllOf,
    AnyOf,
    ConstraintKind,
    Dependencies,
    Enumeration,
    FailedReference,
    Items,
    MultipleOf,
    Not,
    OneOf,
    Pattern,
    PatternProperties,
    PatternSlot,
    Properties,
    Ref,
    Required,
    Type,
    UniqueItems,
    _Bound,
    _Count,
)
from .models import JsonValue, ValidationError
from .normalize import (
    canonical_number,
    classify,
    is_number,
    json_equal,
    render,
    type_matches,
)
from .schema import Schema, SchemaSlot

logger = logging.getLogger(__name__)

Check = Callable[[Any, JsonValue, str], list[ValidationError]]


def validate(schema: Schema, instance: JsonValue) -> list[ValidationError]:
    """Evaluate ``instance`` against a resolved schema; never raises."""
    try:
        return _validate(schema, instance, "")
    except RecursionError:
        logger.error("schema evaluation exceeded the recursion limit")
        return [
            ValidationError("Schema evaluation exceeded the recursion limit.")
        ]


def _validate(schema: Schema, instance: JsonValue, path: str) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for constraint in schema.keywords.values():
        errors.extend(_CHECKS[constraint.kind](constraint, instance, path))
    return errors


def _is_clean(slot: SchemaSlot, instance: JsonValue, path: str) -> bool:
    return not _validate(slot.schema, instance, path)


def _violation(keyword: str, description: str, path: str) -> list[ValidationError]:
    return [ValidationError(description, keyword=keyword, instance_path=path)]


def _child_path(path: str, key: str | int) -> str:
    token = str(key).replace("~", "~0").replace("/", "~1")
    return f"{path}/{token}"


def _as_number(instance: JsonValue) -> int | float | None:
    if not is_number(instance):
        return None
    try:
        return canonical_number(instance)
    except TypeError:
        return None


def _integral(number: int | float | None) -> int | None:
    if isinstance(number, float) and number.is_integer():
        return int(number)
    if isinstance(number, int):
        return number
    return None


def _is_array(instance: JsonValue) -> bool:
    return isinstance(instance, (list, tuple))


# Numbers


def _check_maximum(constraint: _Bound, instance: JsonValue, path: str) -> list[ValidationError]:
    value = _as_number(instance)
    if value is None:
        return []
    if value < constraint.bound or (value == constraint.bound and not constraint.exclusive):
        return []
    qualifier = "less than" if constraint.exclusive else "less than or equal to"
    return _violation(
        constraint.keyword,
        f"Value {render(instance)} must be {qualifier} {render(constraint.limit)}.",
        path,
    )


def _check_minimum(constraint: _Bound, instance: JsonValue, path: str) -> list[ValidationError]:
    value = _as_number(instance)
    if value is None:
        return []
    if value > constraint.bound or (value == constraint.bound and not constraint.exclusive):
        return []
    qualifier = "greater than" if constraint.exclusive else "greater than or equal to"
    return _violation(
        constraint.keyword,
        f"Value {render(instance)} must be {qualifier} {render(constraint.limit)}.",
        path,
    )


def _check_multiple_of(
    constraint: MultipleOf, instance: JsonValue, path: str
) -> list[ValidationError]:
    # Only integral values and divisors are checked.
    value = _integral(_as_number(instance))
    divisor = _integral(constraint.divisor)
    if value is None or divisor is None or value % divisor == 0:
        return []
    return _violation(
        constraint.keyword,
        f"Value {render(instance)} is not a multiple of {render(constraint.limit)}.",
        path,
    )


# Strings


def _check_max_length(constraint: _Count, instance: JsonValue, path: str) -> list[ValidationError]:
    if not isinstance(instance, str) or len(instance) <= constraint.limit:
        return []
    return _violation(
        constraint.keyword,
        f"String is longer than {constraint.limit} characters ({len(instance)}).",
        path,
    )


def _check_min_length(constraint: _Count, instance: JsonValue, path: str) -> list[ValidationError]:
    if not isinstance(instance, str) or len(instance) >= constraint.limit:
        return []
    return _violation(
        constraint.keyword,
        f"String is shorter than {constraint.limit} characters ({len(instance)}).",
        path,
    )


def _check_pattern(constraint: Pattern, instance: JsonValue, path: str) -> list[ValidationError]:
    if not isinstance(instance, str) or constraint.regex.search(instance):
        return []
    return _violation(
        constraint.keyword,
        f"String does not match pattern {constraint.source!r}.",
        path,
    )


# Arrays


def _check_max_items(constraint: _Count, instance: JsonValue, path: str) -> list[ValidationError]:
    if not _is_array(instance) or len(instance) <= constraint.limit:  # type: ignore[arg-type]
        return []
    return _violation(
        constraint.keyword,
        f"Array must have at most {constraint.limit} items ({len(instance)}).",  # type: ignore[arg-type]
        path,
    )


def _check_min_items(constraint: _Count, instance: JsonValue, path: str) -> list[ValidationError]:
    if not _is_array(instance) or len(instance) >= constraint.limit:  # type: ignore[arg-type]
        return []
    return _violation(
        constraint.keyword,
        f"Array must have at least {constraint.limit} items ({len(instance)}).",  # type: ignore[arg-type]
        path,
    )


def _check_items(constraint: Items, instance: JsonValue, path: str) -> list[ValidationError]:
    if not _is_array(instance):
        return []
    elements: Sequence[JsonValue] = instance  # type: ignore[assignment]
    errors: list[ValidationError] = []
    if constraint.single is not None:
        for index, element in enumerate(elements):
            errors.extend(
                _validate(constraint.single.schema, element, _child_path(path, index))
            )
        return errors
    positional = constraint.positional or []
    for index, element in enumerate(elements):
        if index < len(positional):
            errors.extend(
                _validate(positional[index].schema, element, _child_path(path, index))
            )
        elif not constraint.additional_allowed:
            errors.extend(
                _violation("additionalItems", "Additional items aren't allowed.", path)
            )
            break
        elif constraint.additional is not None:
            errors.extend(
                _validate(
                    constraint.additional.schema, element, _child_path(path, index)
                )
            )
    return errors


def _check_unique_items(
    constraint: UniqueItems, instance: JsonValue, path: str
) -> list[ValidationError]:
    if not constraint.enabled or not _is_array(instance):
        return []
    elements: Sequence[JsonValue] = instance  # type: ignore[assignment]
    for later in range(1, len(elements)):
        for earlier in range(later):
            if json_equal(elements[earlier], elements[later]):
                return _violation(
                    constraint.keyword,
                    f"Array items {earlier} and {later} are equal; items must be unique.",
                    path,
                )
    return []


# Objects


def _check_members(
    declared: Mapping[str, SchemaSlot],
    patterns: Sequence[PatternSlot],
    additional_allowed: bool,
    additional: SchemaSlot | None,
    instance: JsonValue,
    path: str,
) -> list[ValidationError]:
    """Joint properties / patternProperties / additionalProperties pass."""
    if not isinstance(instance, Mapping):
        return []
    errors: list[ValidationError] = []
    for key, value in instance.items():
        child = _child_path(path, key)
        matched = [declared[key]] if key in declared else []
        matched.extend(entry.slot for entry in patterns if entry.regex.search(str(key)))
        if matched:
            for slot in matched:
                errors.extend(_validate(slot.schema, value, child))
        elif additional is not None:
            errors.extend(_validate(additional.schema, value, child))
        elif not additional_allowed:
            errors.extend(
                _violation(
                    "additionalProperties",
                    f"Additional property {key!r} is not allowed.",
                    child,
                )
            )
    return errors


def _check_properties(
    constraint: Properties, instance: JsonValue, path: str
) -> list[ValidationError]:
    return _check_members(
        constraint.slots,
        constraint.patterns,
        constraint.additional_allowed,
        constraint.additional,
        instance,
        path,
    )


def _check_pattern_properties(
    constraint: PatternProperties, instance: JsonValue, path: str
) -> list[ValidationError]:
    if constraint.deferred:
        return []
    return _check_members(
        {},
        constraint.patterns,
        constraint.additional_allowed,
        constraint.additional,
        instance,
        path,
    )


def _check_additional_properties(
    constraint: AdditionalProperties, instance: JsonValue, path: str
) -> list[ValidationError]:
    if constraint.deferred:
        return []
    return _check_members(
        {}, (), constraint.allowed, constraint.schema, instance, path
    )


def _check_required(constraint: Required, instance: JsonValue, path: str) -> list[ValidationError]:
    if not isinstance(instance, Mapping):
        return []
    errors: list[ValidationError] = []
    for name in constraint.names:
        if name not in instance:
            errors.extend(
                _violation(
                    constraint.keyword, f"Required property {name!r} is missing.", path
                )
            )
    return errors


def _check_max_properties(
    constraint: _Count, instance: JsonValue, path: str
) -> list[ValidationError]:
    if not isinstance(instance, Mapping) or len(instance) <= constraint.limit:
        return []
    return _violation(
        constraint.keyword,
        "Object has more properties than maxProperties (%d > %d)."
        % (len(instance), constraint.limit),
        path,
    )


def _check_min_properties(
    constraint: _Count, instance: JsonValue, path: str
) -> list[ValidationError]:
    if not isinstance(instance, Mapping) or len(instance) >= constraint.limit:
        return []
    return _violation(
        constraint.keyword,
        "Object has fewer properties than minProperties (%d < %d)."
        % (len(instance), constraint.limit),
        path,
    )


def _check_dependencies(
    constraint: Dependencies, instance: JsonValue, path: str
) -> list[ValidationError]:
    if not isinstance(instance, Mapping):
        return []
    errors: list[ValidationError] = []
    for key, slot in constraint.schema_deps.items():
        if key in instance:
            errors.extend(_validate(slot.schema, instance, path))
    for key, names in constraint.property_deps.items():
        if key not in instance:
            continue
        for name in names:
            if name not in instance:
                errors.extend(
                    _violation(
                        constraint.keyword,
                        f"Property {key!r} requires property {name!r}.",
                        path,
                    )
                )
    return errors


# Combinators


def _check_all_of(constraint: AllOf, instance: JsonValue, path: str) -> list[ValidationError]:
    errors: list[ValidationError] = []
    for slot in constraint.slots:
        errors.extend(_validate(slot.schema, instance, path))
    return errors


def _check_any_of(constraint: AnyOf, instance: JsonValue, path: str) -> list[ValidationError]:
    if any(_is_clean(slot, instance, path) for slot in constraint.slots):
        return []
    return _violation(
        constraint.keyword, "Validation failed for each schema in 'anyOf'.", path
    )


def _check_one_of(constraint: OneOf, instance: JsonValue, path: str) -> list[ValidationError]:
    passed = sum(1 for slot in constraint.slots if _is_clean(slot, instance, path))
    if passed == 1:
        return []
    return _violation(
        constraint.keyword, f"Validation passed for {passed} schemas in 'oneOf'.", path
    )


def _check_not(constraint: Not, instance: JsonValue, path: str) -> list[ValidationError]:
    if not _is_clean(constraint.slot, instance, path):
        return []
    return _violation(constraint.keyword, "The 'not' schema didn't raise an error.", path)


def _check_enum(constraint: Enumeration, instance: JsonValue, path: str) -> list[ValidationError]:
    if any(json_equal(instance, value) for value in constraint.values):
        return []
    return _violation(
        constraint.keyword,
        f"Value must be equal to one of {render(list(constraint.values))}.",
        path,
    )


def _check_type(constraint: Type, instance: JsonValue, path: str) -> list[ValidationError]:
    actual = classify(instance)
    if any(type_matches(actual, name) for name in constraint.names):
        return []
    return _violation(
        constraint.keyword,
        f"Value of type {actual} must be one of these types: {', '.join(constraint.names)}.",
        path,
    )


# References


def _check_ref(constraint: Ref, instance: JsonValue, path: str) -> list[ValidationError]:
    logger.error("unresolved reference %s reached the evaluator", constraint.pointer)
    return _violation(
        constraint.keyword, f"Reference {constraint.pointer!r} was never resolved.", path
    )


def _check_failed_reference(
    constraint: FailedReference, instance: JsonValue, path: str
) -> list[ValidationError]:
    return _violation(
        constraint.keyword,
        f"Reference {constraint.pointer!r} could not be resolved: {constraint.reason}.",
        path,
    )


def _no_errors(constraint: Any, instance: JsonValue, path: str) -> list[ValidationError]:
    return []


_CHECKS: dict[ConstraintKind, Check] = {
    ConstraintKind.MAXIMUM: _check_maximum,
    ConstraintKind.MINIMUM: _check_minimum,
    ConstraintKind.EXCLUSIVE_MAXIMUM: _no_errors,
    ConstraintKind.EXCLUSIVE_MINIMUM: _no_errors,
    ConstraintKind.MULTIPLE_OF: _check_multiple_of,
    ConstraintKind.MAX_LENGTH: _check_max_length,
    ConstraintKind.MIN_LENGTH: _check_min_length,
    ConstraintKind.PATTERN: _check_pattern,
    ConstraintKind.MAX_ITEMS: _check_max_items,
    ConstraintKind.MIN_ITEMS: _check_min_items,
    ConstraintKind.ITEMS: _check_items,
    ConstraintKind.ADDITIONAL_ITEMS: _no_errors,
    ConstraintKind.UNIQUE_ITEMS: _check_unique_items,
    ConstraintKind.PROPERTIES: _check_properties,
    ConstraintKind.PATTERN_PROPERTIES: _check_pattern_properties,
    ConstraintKind.ADDITIONAL_PROPERTIES: _check_additional_properties,
    ConstraintKind.REQUIRED: _check_required,
    ConstraintKind.MAX_PROPERTIES: _check_max_properties,
    ConstraintKind.MIN_PROPERTIES: _check_min_properties,
    ConstraintKind.DEPENDENCIES: _check_dependencies,
    ConstraintKind.ALL_OF: _check_all_of,
    ConstraintKind.ANY_OF: _check_any_of,
    ConstraintKind.ONE_OF: _check_one_of,
    ConstraintKind.NOT: _check_not,
    ConstraintKind.ENUM: _check_enum,
    ConstraintKind.TYPE: _check_type,
    ConstraintKind.REF: _check_ref,
    ConstraintKind.OPAQUE: _no_errors,
    ConstraintKind.FAILED_REFERENCE: _check_failed_reference,
}

_unchecked = set(ConstraintKind) - set(_CHECKS)
if _unchecked:
    raise RuntimeError(
        "no evaluator for constraint kinds: "
        + ", ".join(sorted(kind.value for kind in _unchecked))
    )
