"""Draft-4 JSON Schema compiler, reference resolver and validator.

Pipeline:
1) Decode the schema document, keeping number literals as written.
2) Compile each schema object into a table of typed keyword constraints and
   let neighbor-dependent keywords read their siblings.
3) Resolve every ``$ref`` depth-first, rebinding embedded-schema slots to
   their targets (external URIs only when the resolver config allows it).
4) Walk the resolved graph against instance data and collect every violation.
"""

from .compiler import compile_document, compile_schema
from .config import ResolverConfig
from .decoding import decode_document
from .errors import (
    FetchError,
    KeywordDecodeError,
    SchemaError,
    SchemaReferenceError,
    SchemaValidationError,
    StructuralParseError,
)
from .evaluator import validate
from .fetch import HttpSchemaFetcher, SchemaFetcher
from .models import NumberLiteral, ValidationError
from .resolver import ReferenceResolver, resolve_references
from .schema import Schema, SchemaSlot

__all__ = [
    "FetchError",
    "HttpSchemaFetcher",
    "KeywordDecodeError",
    "NumberLiteral",
    "ReferenceResolver",
    "ResolverConfig",
    "Schema",
    "SchemaError",
    "SchemaFetcher",
    "SchemaReferenceError",
    "SchemaSlot",
    "SchemaValidationError",
    "StructuralParseError",
    "ValidationError",
    "compile_document",
    "compile_schema",
    "decode_document",
    "resolve_references",
    "validate",
]
