from __future__ import annotations

import logging
import threading
from typing import Mapping

from .config import ResolverConfig
from .constraints import KEYWORDS, Constraint, NeighborBound, Opaque
from .decoding import Source, decode_document
from .errors import KeywordDecodeError, StructuralParseError
from .fetch import SchemaFetcher
from .models import JsonValue
from .schema import Schema, SchemaSlot

logger = logging.getLogger(__name__)


def compile_document(document: JsonValue) -> Schema:
    """Compile a decoded schema object without resolving ``$ref``."""
    if not isinstance(document, Mapping):
        raise StructuralParseError("schema must be a JSON object")
    try:
        return _SchemaCompiler().compile(document)
    except RecursionError as exc:
        raise StructuralParseError("schema nesting too deep") from exc


def compile_schema(
    source: Source | Mapping[str, JsonValue],
    config: ResolverConfig | None = None,
    fetcher: SchemaFetcher | None = None,
    cancel_event: threading.Event | None = None,
) -> Schema:
    """Decode, compile and fully resolve a schema document.

    ``source`` may be raw JSON (bytes, text or a readable stream) or an
    already-decoded mapping. Only a malformed document raises; malformed
    keywords are dropped and unresolvable references fail at validation time.
    """
    from .resolver import resolve_references

    if isinstance(source, Mapping):
        document: JsonValue = source
    else:
        document = decode_document(source)
    root = SchemaSlot(compile_document(document))
    try:
        resolve_references(
            root, config or ResolverConfig(), fetcher=fetcher, cancel_event=cancel_event
        )
    except RecursionError as exc:
        raise StructuralParseError("schema nesting too deep") from exc
    return root.schema


class _SchemaCompiler:
    """Compiles one document; each source object is compiled at most once.

    Opaque containers expose their value both as one unnamed schema and as
    per-member schemas, so the same source objects are reached repeatedly.
    """

    def __init__(self) -> None:
        self._compiled: dict[int, Schema] = {}

    def compile(self, document: Mapping[str, JsonValue]) -> Schema:
        cached = self._compiled.get(id(document))
        if cached is not None:
            return cached
        schema = Schema()
        self._compiled[id(document)] = schema
        table: dict[str, Constraint] = {}
        for key, value in document.items():
            constructor = KEYWORDS.get(key)
            if constructor is None:
                table[key] = Opaque.decode_named(key, value, self.compile)
                continue
            try:
                table[key] = constructor.decode(value, self.compile)
            except KeywordDecodeError as exc:
                logger.debug("dropping keyword: %s", exc)
        for constraint in table.values():
            if isinstance(constraint, NeighborBound):
                constraint.bind_neighbors(table)
        schema.keywords = table
        return schema
