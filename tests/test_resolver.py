import os
import sys
import threading
import unittest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from schemagraph import (
    FetchError,
    ResolverConfig,
    Schema,
    SchemaSlot,
    compile_document,
    compile_schema,
    resolve_references,
)
from schemagraph.constraints import FailedReference


class _StaticFetcher:
    def __init__(self, documents: dict[str, bytes]) -> None:
        self.documents = documents
        self.calls: list[str] = []

    def fetch(self, uri: str) -> bytes:
        self.calls.append(uri)
        if uri not in self.documents:
            raise FetchError(uri, "not found")
        return self.documents[uri]


def _reachable(schema: Schema) -> list[Schema]:
    seen: set[Schema] = set()
    stack = [schema]
    nodes: list[Schema] = []
    while stack:
        node = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        nodes.append(node)
        stack.extend(slot.schema for slot in node.iter_slots())
    return nodes


def _failure(schema: Schema) -> FailedReference:
    constraint = schema.keywords.get("$ref")
    assert isinstance(constraint, FailedReference), schema.keywords
    return constraint


class TestLocalReferences(unittest.TestCase):
    def test_reference_equivalent_to_inlined_schema(self) -> None:
        referenced = compile_schema(
            {
                "$ref": "#/definitions/pos",
                "definitions": {"pos": {"type": "integer", "minimum": 0}},
            }
        )
        inlined = compile_schema({"type": "integer", "minimum": 0})
        self.assertEqual(referenced.validate(-1), inlined.validate(-1))
        self.assertEqual(len(referenced.validate(-1)), 1)
        self.assertEqual(referenced.validate(3), [])

    def test_chained_references_are_followed(self) -> None:
        schema = compile_schema(
            {
                "definitions": {
                    "a": {"$ref": "#/definitions/b"},
                    "b": {"$ref": "#/definitions/c"},
                    "c": {"type": "string"},
                },
                "properties": {"name": {"$ref": "#/definitions/a"}},
            }
        )
        self.assertEqual(schema.validate({"name": "x"}), [])
        errors = schema.validate({"name": 1})
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].keyword, "type")
        self.assertEqual(errors[0].instance_path, "/name")

    def test_recursive_reference_to_root(self) -> None:
        schema = compile_schema(
            {
                "type": "object",
                "properties": {"child": {"$ref": "#"}},
            }
        )
        self.assertEqual(schema.validate({"child": {"child": {}}}), [])
        errors = schema.validate({"child": {"child": 5}})
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].instance_path, "/child/child")

    def test_single_segment_pointer_uses_unnamed_child(self) -> None:
        schema = compile_schema(
            {
                "not": {"type": "string"},
                "properties": {"other": {"$ref": "#/not"}},
            }
        )
        self.assertEqual(len(schema.validate({"other": 1})), 1)
        self.assertEqual(schema.validate({"other": "x"}), [])

    def test_index_pointer_into_positional_items(self) -> None:
        schema = compile_schema(
            {
                "items": [{"type": "integer"}, {"$ref": "#/items/0"}],
            }
        )
        self.assertEqual(schema.validate([1, 2]), [])
        self.assertEqual(len(schema.validate([1, "x"])), 1)

    def test_pointer_escapes(self) -> None:
        schema = compile_schema(
            {
                "definitions": {
                    "a/b": {"type": "integer"},
                    "t~x": {"type": "string"},
                    "p%c": {"type": "boolean"},
                },
                "properties": {
                    "slash": {"$ref": "#/definitions/a~1b"},
                    "tilde": {"$ref": "#/definitions/t~0x"},
                    "percent": {"$ref": "#/definitions/p%25c"},
                },
            }
        )
        self.assertEqual(
            schema.validate({"slash": 1, "tilde": "t", "percent": True}), []
        )
        self.assertEqual(
            len(schema.validate({"slash": "1", "tilde": 1, "percent": 0})), 3
        )

    def test_root_reference_keeps_original_lookup_root(self) -> None:
        schema = compile_schema(
            {
                "$ref": "#/definitions/node",
                "definitions": {
                    "node": {
                        "type": "object",
                        "properties": {"next": {"$ref": "#"}},
                    }
                },
            }
        )
        self.assertEqual(schema.validate({"next": {"next": {}}}), [])
        self.assertEqual(len(schema.validate({"next": {"next": 1}})), 1)

    def test_no_reference_left_after_resolution(self) -> None:
        schema = compile_schema(
            {
                "definitions": {
                    "a": {"$ref": "#/definitions/b"},
                    "b": {"items": {"$ref": "#"}},
                },
                "properties": {
                    "x": {"$ref": "#/definitions/a"},
                    "y": {"anyOf": [{"$ref": "#/definitions/b"}, {"$ref": "#/nope"}]},
                },
            }
        )
        for node in _reachable(schema):
            self.assertIsNone(node.ref_pointer())
            self.assertTrue(node.resolved)

    def test_resolution_only_rebinds_slots(self) -> None:
        root = compile_document(
            {"definitions": {"a": {"type": "string"}}, "not": {"$ref": "#/definitions/a"}}
        )
        slot = SchemaSlot(root)
        resolve_references(slot, ResolverConfig())
        self.assertIs(slot.schema, root)
        self.assertEqual(len(root.validate("x")), 1)
        self.assertEqual(root.validate(3), [])


class TestUnresolvableReferences(unittest.TestCase):
    def test_missing_target_becomes_failing_schema(self) -> None:
        with self.assertLogs("schemagraph.resolver", level="WARNING"):
            schema = compile_schema(
                {"properties": {"a": {"$ref": "#/definitions/missing"}}}
            )
        self.assertEqual(schema.validate({}), [])
        errors = schema.validate({"a": 1})
        self.assertEqual(len(errors), 1)
        self.assertIn("#/definitions/missing", errors[0].description)
        self.assertIn("could not be resolved", errors[0].description)

    def test_deep_pointer_is_rejected(self) -> None:
        schema = compile_schema(
            {
                "properties": {
                    "a": {"properties": {"b": {"type": "string"}}},
                    "c": {"$ref": "#/properties/a/properties/b"},
                }
            }
        )
        errors = schema.validate({"c": "x"})
        self.assertEqual(len(errors), 1)
        self.assertIn("#/properties/a/properties/b", errors[0].description)

    def test_self_reference_cycle_at_root(self) -> None:
        schema = compile_schema({"$ref": "#"})
        self.assertIn("cycle", _failure(schema).reason)
        self.assertEqual(len(schema.validate(1)), 1)
        self.assertEqual(len(schema.validate(None)), 1)

    def test_mutual_reference_cycle(self) -> None:
        schema = compile_schema(
            {
                "definitions": {
                    "a": {"$ref": "#/definitions/b"},
                    "b": {"$ref": "#/definitions/a"},
                },
                "properties": {"x": {"$ref": "#/definitions/a"}},
            }
        )
        errors = schema.validate({"x": 1})
        self.assertEqual(len(errors), 1)
        self.assertIn("cycle", errors[0].description)
        self.assertEqual(schema.validate({}), [])

    def test_external_reference_disabled_by_default(self) -> None:
        fetcher = _StaticFetcher({})
        schema = compile_schema(
            {"$ref": "http://example.com/schema.json"}, fetcher=fetcher
        )
        self.assertIn("disabled", _failure(schema).reason)
        self.assertEqual(fetcher.calls, [])


class TestExternalReferences(unittest.TestCase):
    def setUp(self) -> None:
        self.config = ResolverConfig(allow_external_refs=True)
        self.fetcher = _StaticFetcher(
            {
                "http://example.com/schema.json": (
                    b'{"definitions": {"n": {"type": "integer"}},'
                    b' "properties": {"v": {"$ref": "#/definitions/n"}}}'
                ),
                "http://example.com/broken.json": b"[1, 2, 3]",
            }
        )

    def test_fetches_and_resolves_against_external_root(self) -> None:
        schema = compile_schema(
            {"properties": {"remote": {"$ref": "http://example.com/schema.json"}}},
            self.config,
            fetcher=self.fetcher,
        )
        self.assertEqual(schema.validate({"remote": {"v": 1}}), [])
        errors = schema.validate({"remote": {"v": "x"}})
        self.assertEqual(len(errors), 1)
        self.assertEqual(errors[0].instance_path, "/remote/v")

    def test_fragment_addresses_external_definitions(self) -> None:
        schema = compile_schema(
            {
                "properties": {
                    "a": {"$ref": "http://example.com/schema.json#/definitions/n"},
                    "b": {"$ref": "http://example.com/schema.json"},
                }
            },
            self.config,
            fetcher=self.fetcher,
        )
        self.assertEqual(len(schema.validate({"a": "x"})), 1)
        self.assertEqual(schema.validate({"a": 2, "b": {"v": 3}}), [])
        self.assertEqual(self.fetcher.calls, ["http://example.com/schema.json"])

    def test_fetch_failure_is_local_to_the_node(self) -> None:
        schema = compile_schema(
            {
                "properties": {
                    "a": {"$ref": "http://example.com/missing.json"},
                    "b": {"type": "string"},
                }
            },
            self.config,
            fetcher=self.fetcher,
        )
        errors = schema.validate({"a": 1, "b": "ok"})
        self.assertEqual(len(errors), 1)
        self.assertIn("not found", errors[0].description)

    def test_external_document_must_be_schema(self) -> None:
        schema = compile_schema(
            {"$ref": "http://example.com/broken.json"},
            self.config,
            fetcher=self.fetcher,
        )
        self.assertIn("not a schema", _failure(schema).reason)

    def test_cancelled_pass_does_not_fetch(self) -> None:
        cancel = threading.Event()
        cancel.set()
        schema = compile_schema(
            {"$ref": "http://example.com/schema.json"},
            self.config,
            fetcher=self.fetcher,
            cancel_event=cancel,
        )
        self.assertIn("cancelled", _failure(schema).reason)
        self.assertEqual(self.fetcher.calls, [])


if __name__ == "__main__":
    unittest.main()
