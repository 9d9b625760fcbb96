from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
from typing import Mapping

from ..compiler import compile_document, compile_schema
from ..config import ResolverConfig
from ..errors import SchemaError
from ..fetch import SchemaFetcher
from ..logging_utils import format_exception_compact
from ..models import ValidationError
from ..normalize import render
from ..schema import Schema
from .loader import iter_case_files, load_cases
from .models import SuiteCase, SuiteTest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuiteFailure:
    path: str
    case: str
    test: str
    expected_valid: bool
    reason: str
    schema: str = ""
    data: str = ""
    errors: tuple[str, ...] = ()

    def render(self) -> str:
        lines = [
            self.reason,
            f"file: {self.path}",
            f"test case description: {self.case}",
            f"schema: {self.schema}",
            f"test instance description: {self.test}",
            f"test data: {self.data}",
            f"expected valid: {str(self.expected_valid).lower()}",
        ]
        if self.errors:
            lines.append("actual validation errors:")
            lines.extend(f"  - {error}" for error in self.errors)
        return "\n".join(lines)


@dataclass
class SuiteReport:
    successes: int = 0
    failures: list[SuiteFailure] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return not self.failures

    def summary(self) -> str:
        return f"{len(self.failures)} failed, {self.successes} succeeded."


def run_suite(
    path: Path,
    config: ResolverConfig | None = None,
    fetcher: SchemaFetcher | None = None,
) -> SuiteReport:
    report = SuiteReport()
    files = iter_case_files(path)
    logger.info("running %d suite file(s) from %s", len(files), path)
    for file_path in files:
        for case in load_cases(file_path):
            _run_case(file_path, case, config or ResolverConfig(), fetcher, report)
    logger.info(report.summary())
    return report


def _run_case(
    file_path: Path,
    case: SuiteCase,
    config: ResolverConfig,
    fetcher: SchemaFetcher | None,
    report: SuiteReport,
) -> None:
    try:
        schema = _compile(case, config, fetcher)
    except SchemaError as exc:
        logger.warning("schema for %r failed to compile: %s", case.description, exc)
        reason = format_exception_compact(exc, context="schema did not compile")
        for test in case.tests:
            report.failures.append(
                SuiteFailure(
                    path=str(file_path),
                    case=case.description,
                    test=test.description,
                    expected_valid=test.valid,
                    reason=reason,
                    schema=_render_value(case.schema_document),
                    data=_render_value(test.data),
                )
            )
        return
    for test in case.tests:
        errors = schema.validate(test.data)
        reason = _mismatch(test, errors)
        if reason is None:
            report.successes += 1
            continue
        logger.debug(
            "%s: %s / %s (data=%s)",
            reason,
            case.description,
            test.description,
            _render_value(test.data),
        )
        report.failures.append(
            SuiteFailure(
                path=str(file_path),
                case=case.description,
                test=test.description,
                expected_valid=test.valid,
                reason=reason,
                schema=_render_value(case.schema_document),
                data=_render_value(test.data),
                errors=tuple(error.description for error in errors),
            )
        )


def _compile(
    case: SuiteCase, config: ResolverConfig, fetcher: SchemaFetcher | None
) -> Schema:
    document = case.schema_document
    if not isinstance(document, Mapping):
        return compile_document(document)
    return compile_schema(document, config, fetcher=fetcher)


def _mismatch(test: SuiteTest, errors: list[ValidationError]) -> str | None:
    validated = not errors
    if validated and not test.valid:
        return "Schema validated bad data."
    if not validated and test.valid:
        return "Schema failed to validate good data."
    return None


def _render_value(value: object) -> str:
    try:
        return render(value)
    except RecursionError:
        return "<too deeply nested to render>"
