from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SuiteTest(BaseModel):
    description: str
    data: Any = None
    valid: bool


class SuiteCase(BaseModel):
    description: str
    schema_document: Any = Field(alias="schema")
    tests: list[SuiteTest] = Field(default_factory=list)
