"""Depth-first ``$ref`` substitution over a compiled schema graph.

Every embedded schema lives in a ``SchemaSlot``. Resolving a slot that holds a
reference node rebinds the slot to the referenced node, following chains of
references until a non-reference node is reached, and then resolves everything
below that node. Targets are shared, so recursive schemas become cyclic graphs.

A reference that cannot be resolved does not abort the pass: its slot is bound
to a sentinel schema that fails every instance with the reason attached.
"""

from __future__ import annotations

import logging
import threading
from urllib.parse import urlsplit, urlunsplit

from .compiler import compile_document
from .config import ResolverConfig
from .constraints import SchemaContainer
from .decoding import decode_document
from .errors import FetchError, SchemaReferenceError, StructuralParseError
from .fetch import HttpSchemaFetcher, SchemaFetcher
from .schema import Schema, SchemaSlot

logger = logging.getLogger(__name__)


def resolve_references(
    root: SchemaSlot,
    config: ResolverConfig,
    fetcher: SchemaFetcher | None = None,
    cancel_event: threading.Event | None = None,
) -> None:
    resolver = ReferenceResolver(config, fetcher=fetcher, cancel_event=cancel_event)
    try:
        resolver.resolve(root)
    finally:
        resolver.close()


class ReferenceResolver:
    def __init__(
        self,
        config: ResolverConfig,
        fetcher: SchemaFetcher | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        self._owned_fetcher: HttpSchemaFetcher | None = None
        self._cancel_event = cancel_event
        self._documents: dict[str, Schema] = {}

    def resolve(self, root: SchemaSlot) -> None:
        self._resolve_self_and_below(root, root.schema)

    def close(self) -> None:
        if self._owned_fetcher is not None:
            self._owned_fetcher.close()
            self._owned_fetcher = None

    def _resolve_self_and_below(self, slot: SchemaSlot, root: Schema) -> None:
        root = self._resolve_self(slot, root)
        self._resolve_below(slot.schema, root)

    def _resolve_self(self, slot: SchemaSlot, root: Schema) -> Schema:
        seen: set[Schema] = set()
        pointer = slot.schema.ref_pointer()
        while pointer is not None:
            seen.add(slot.schema)
            try:
                target, root = self._dereference(pointer, root)
                if target in seen:
                    raise SchemaReferenceError(pointer, "reference cycle detected")
            except SchemaReferenceError as exc:
                logger.warning("reference resolution failed: %s", exc)
                slot.schema = Schema.failing(exc.pointer, exc.reason)
                return root
            logger.debug("resolved reference %s", pointer)
            slot.schema = target
            pointer = target.ref_pointer()
        return root

    def _resolve_below(self, node: Schema, root: Schema) -> None:
        if node.resolved:
            return
        node.resolved = True
        for slot in list(node.iter_slots()):
            self._resolve_self_and_below(slot, root)

    def _dereference(self, pointer: str, root: Schema) -> tuple[Schema, Schema]:
        try:
            parts = urlsplit(pointer)
        except ValueError as exc:
            raise SchemaReferenceError(pointer, f"malformed URI: {exc}") from exc
        if parts.scheme:
            if not self._config.allow_external_refs:
                raise SchemaReferenceError(pointer, "external references are disabled")
            document_uri = urlunsplit(parts._replace(fragment=""))
            root = self._load_external(pointer, document_uri)
            path = parts.fragment
            if path.startswith("/"):
                path = path[1:]
        else:
            path = _strip_fragment_prefix(pointer)
        return _resolve_local_path(pointer, _split_pointer(path), root), root

    def _load_external(self, pointer: str, document_uri: str) -> Schema:
        cached = self._documents.get(document_uri)
        if cached is not None:
            return cached
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise FetchError(pointer, "fetch cancelled")
        try:
            payload = self._get_fetcher().fetch(document_uri)
        except FetchError as exc:
            raise FetchError(pointer, exc.reason) from exc
        except OSError as exc:
            raise FetchError(pointer, str(exc) or type(exc).__name__) from exc
        try:
            document = compile_document(decode_document(payload))
        except StructuralParseError as exc:
            raise SchemaReferenceError(
                pointer, f"external document is not a schema: {exc}"
            ) from exc
        self._documents[document_uri] = document
        return document

    def _get_fetcher(self) -> SchemaFetcher:
        if self._fetcher is not None:
            return self._fetcher
        if self._owned_fetcher is None:
            self._owned_fetcher = HttpSchemaFetcher(
                timeout_seconds=self._config.fetch_timeout_seconds,
                cancel_event=self._cancel_event,
            )
        return self._owned_fetcher


def _strip_fragment_prefix(pointer: str) -> str:
    if pointer.startswith("#/"):
        return pointer[2:]
    if pointer.startswith("#"):
        return pointer[1:]
    return pointer


def _split_pointer(path: str) -> list[str]:
    return [
        segment.replace("~1", "/").replace("~0", "~").replace("%25", "%")
        for segment in path.split("/")
    ]


def _resolve_local_path(pointer: str, segments: list[str], root: Schema) -> Schema:
    if segments == [""]:
        return root
    if len(segments) in (1, 2):
        constraint = root.keywords.get(segments[0])
        child_key = segments[1] if len(segments) == 2 else ""
        if isinstance(constraint, SchemaContainer):
            slot = constraint.embedded().get(child_key)
            if slot is not None:
                return slot.schema
    raise SchemaReferenceError(pointer, f"failed to resolve {pointer}")
