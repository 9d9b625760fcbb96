from __future__ import annotations

from pathlib import Path
from typing import Any

from ..decoding import decode_document
from .models import SuiteCase

_SUFFIXES = {".json", ".yaml", ".yml"}


def iter_case_files(root: Path) -> list[Path]:
    if root.is_file():
        return [root]
    return sorted(
        path
        for path in root.rglob("*")
        if path.is_file() and path.suffix.lower() in _SUFFIXES
    )


def load_cases(path: Path) -> list[SuiteCase]:
    raw = _read_payload(path, path.suffix.lower())
    if isinstance(raw, dict):
        raw = [raw]
    if not isinstance(raw, list):
        raise ValueError(f"{path}: suite file must hold a list of cases")
    return [SuiteCase.model_validate(item) for item in raw]


def _read_payload(path: Path, suffix: str) -> Any:
    if suffix in {".yaml", ".yml"}:
        import yaml

        return yaml.safe_load(path.read_text(encoding="utf-8"))
    if suffix == ".json":
        return decode_document(path.read_bytes())
    raise ValueError(f"Unsupported suite format: {suffix}")
