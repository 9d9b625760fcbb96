from __future__ import annotations

import argparse
from pathlib import Path

from ..config import ResolverConfig
from ..logging_utils import configure_logging
from .runner import run_suite


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Run JSON-Schema-Test-Suite style cases against schemagraph."
    )
    parser.add_argument(
        "--path",
        required=True,
        type=Path,
        help="Suite file, directory, or JSON-Schema-Test-Suite checkout.",
    )
    parser.add_argument(
        "--allow-external-refs",
        action="store_true",
        help="Fetch absolute $ref URIs over HTTP.",
    )
    parser.add_argument(
        "--fetch-timeout",
        type=float,
        help="Timeout in seconds for each external schema fetch.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print every failing test, not only the summary.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (defaults to SCHEMAGRAPH_LOG_LEVEL or WARNING).",
    )
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    config = ResolverConfig.from_env()
    if args.allow_external_refs or args.fetch_timeout is not None:
        config = ResolverConfig(
            allow_external_refs=args.allow_external_refs or config.allow_external_refs,
            fetch_timeout_seconds=(
                args.fetch_timeout
                if args.fetch_timeout is not None
                else config.fetch_timeout_seconds
            ),
        )

    report = run_suite(_suite_root(args.path), config)
    if args.verbose:
        for failure in report.failures:
            print(failure.render())
            print()
    print(report.summary())
    return 0 if report.passed else 1


def _suite_root(path: Path) -> Path:
    candidate = path / "tests" / "draft4"
    if candidate.is_dir():
        return candidate
    return path


if __name__ == "__main__":
    raise SystemExit(main())
