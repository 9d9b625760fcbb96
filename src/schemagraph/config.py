from __future__ import annotations

from dataclasses import dataclass
import os


@dataclass(frozen=True)
class ResolverConfig:
    allow_external_refs: bool = False
    fetch_timeout_seconds: float = 10.0

    @classmethod
    def from_env(cls) -> "ResolverConfig":
        return cls(
            allow_external_refs=os.environ.get(
                "SCHEMAGRAPH_ALLOW_EXTERNAL_REFS", "false"
            ).lower()
            in {"1", "true", "yes"},
            fetch_timeout_seconds=float(
                os.environ.get("SCHEMAGRAPH_FETCH_TIMEOUT_SECONDS", "10")
            ),
        )

