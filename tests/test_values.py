"""Tests for immutable JSON values, loading and persistence."""

import json

import pytest

from jexview.values import (
    JsonObject,
    dump_documents,
    freeze,
    is_array,
    is_container,
    is_object,
    load_documents,
    object_pairs,
    scalar_text,
)


class TestJsonObject:
    """Read-only objects with positional pair access."""

    def test_pairs_keep_order(self):
        obj = JsonObject([("b", 1), ("a", 2)])
        assert obj.pairs == (("b", 1), ("a", 2))
        assert obj["a"] == 2

    def test_duplicate_keys_keep_last_value(self):
        obj = JsonObject([("a", 1), ("b", 2), ("a", 3)])
        assert obj.pairs == (("a", 3), ("b", 2))

    def test_mutation_rejected(self):
        obj = JsonObject({"a": 1})
        with pytest.raises(TypeError):
            obj["b"] = 2
        with pytest.raises(TypeError):
            del obj["a"]
        with pytest.raises(TypeError):
            obj.update({"c": 3})
        with pytest.raises(TypeError):
            obj.pop("a")
        assert obj == {"a": 1}

    def test_hashable(self):
        a = JsonObject({"x": (1, 2)})
        b = JsonObject({"x": (1, 2)})
        assert hash(a) == hash(b)
        assert a == b

    def test_equal_to_plain_dict(self):
        assert JsonObject({"a": 1}) == {"a": 1}


class TestFreeze:
    """Conversion of decoded JSON into shared immutable values."""

    def test_nested(self):
        value = freeze({"a": [1, {"b": [2]}]})
        assert isinstance(value, JsonObject)
        assert value["a"] == (1, JsonObject({"b": (2,)}))
        assert isinstance(value["a"][1]["b"], tuple)

    def test_scalars_unchanged(self):
        for scalar in (None, True, 1, 1.5, "s"):
            assert freeze(scalar) is scalar

    def test_already_frozen_is_shared(self):
        obj = JsonObject({"a": 1})
        assert freeze(obj) is obj


class TestKinds:
    """Kind predicates and pair access."""

    def test_predicates(self):
        assert is_array((1,)) and is_array([1])
        assert is_object({}) and is_object(JsonObject())
        assert is_container(()) and is_container({})
        assert not is_container("abc")
        assert not is_array("abc")

    def test_object_pairs_plain_dict(self):
        assert object_pairs({"a": 1, "b": 2}) == (("a", 1), ("b", 2))


class TestScalarText:
    """Canonical text of leaves, used for search."""

    def test_values(self):
        assert scalar_text(None) == "null"
        assert scalar_text(True) == "true"
        assert scalar_text(False) == "false"
        assert scalar_text(10) == "10"
        assert scalar_text(1.5) == "1.5"
        assert scalar_text('a"b') == 'a"b'


class TestLoadDocuments:
    """Parsing whitespace separated document streams."""

    def test_single(self):
        docs = load_documents('{"a": [1, 2]}')
        assert docs == (JsonObject({"a": (1, 2)}),)

    def test_stream(self):
        docs = load_documents('{"a": 1} [1, 2]\n"x"\n\n3 ')
        assert docs == ({"a": 1}, (1, 2), "x", 3)

    def test_jsonl(self):
        docs = load_documents('{"id": 1}\n{"id": 2}\n')
        assert [d["id"] for d in docs] == [1, 2]

    def test_empty(self):
        assert load_documents("") == ()
        assert load_documents("  \n\t") == ()

    def test_malformed(self):
        with pytest.raises(json.JSONDecodeError):
            load_documents('{"a": }')

    def test_trailing_garbage(self):
        with pytest.raises(json.JSONDecodeError):
            load_documents("[1] ]")


class TestDumpDocuments:
    """Persisting a document sequence."""

    def test_pretty_printed(self):
        text = dump_documents((JsonObject({"a": (1, 2)}),))
        assert text == '{\n    "a": [\n        1,\n        2\n    ]\n}\n'

    def test_one_value_per_document(self):
        text = dump_documents((1, "é", None))
        assert text == '1\n"é"\nnull\n'

    def test_roundtrip(self):
        docs = load_documents('{"a": [1, {"b": null}]} "x"')
        assert load_documents(dump_documents(docs)) == docs
