from __future__ import annotations

import json
import logging
from dataclasses import dataclass

import pytest

from prefstore import InMemoryBackend, PrefsSerializationError, PrefsStore, PrefsValueError


@dataclass
class Item:
    id: str
    qty: int = 1

    def serialize(self) -> str:
        if self.qty < 0:
            raise ValueError("negative quantity")
        return json.dumps({"id": self.id, "qty": self.qty})

    @staticmethod
    def deserialize(data: str) -> "Item":
        payload = json.loads(data)
        return Item(id=payload["id"], qty=int(payload["qty"]))


def test_object_round_trip(store: PrefsStore, backend: InMemoryBackend):
    store.save_object("Weapon", Item("sword", 2))
    assert json.loads(backend.get_str("P1_Weapon")) == {"id": "sword", "qty": 2}
    assert store.load_object("Weapon", Item.deserialize) == Item("sword", 2)


def test_object_defaults(store: PrefsStore, backend: InMemoryBackend):
    fallback = Item("fists")
    assert store.load_object("Weapon", Item.deserialize) is None
    assert store.load_object("Weapon", Item.deserialize, default=fallback) is fallback
    assert store.load_object("Weapon", Item.deserialize, default_factory=lambda: Item("stick")) == Item("stick")
    backend.set_str("P1_Weapon", "")
    assert store.load_object("Weapon", Item.deserialize, default=fallback) is fallback


def test_object_deserialize_errors_reach_caller(store: PrefsStore, backend: InMemoryBackend):
    backend.set_str("P1_Weapon", "{broken")
    with pytest.raises(json.JSONDecodeError):
        store.load_object("Weapon", Item.deserialize)


def test_object_array_round_trip(store: PrefsStore):
    items = [Item("a"), Item("b", 3)]
    assert store.save_object_array("Bag", items) is True
    assert store.load_object_array("Bag", Item.deserialize) == items


def test_object_array_defaults(store: PrefsStore):
    assert store.load_object_array("Bag", Item.deserialize) == []
    default = [Item("x")]
    assert store.load_object_array("Bag", Item.deserialize, default=default) is default
    store.save_object_array("Bag", [])
    assert store.load_object_array("Bag", Item.deserialize, default=default) == []


def test_object_array_skips_bad_elements(store: PrefsStore, backend: InMemoryBackend, caplog):
    store.save_object_array("Bag", [Item("a"), Item("b"), Item("c"), Item("d")])
    backend.set_str("P1_Bag_1", "{broken")
    backend.set_str("P1_Bag_2", "")
    with caplog.at_level(logging.ERROR, logger="prefstore.store"):
        loaded = store.load_object_array("Bag", Item.deserialize)
    assert loaded == [Item("a"), Item("d")]
    assert any("Bag" in r.getMessage() and "index 1" in r.getMessage() for r in caplog.records)


def test_object_array_stops_at_gap(store: PrefsStore, backend: InMemoryBackend):
    store.save_object_array("Bag", [Item("a"), Item("b"), Item("c")])
    backend.delete_key("P1_Bag_1")
    assert store.load_object_array("Bag", Item.deserialize) == [Item("a")]


def test_failed_serialization_keeps_previous_array(store: PrefsStore, backend: InMemoryBackend, caplog):
    store.save_object_array("Bag", [Item("a"), Item("b"), Item("c")])
    with caplog.at_level(logging.ERROR, logger="prefstore.store"):
        ok = store.save_object_array("Bag", [Item("x"), Item("bad", -1), Item("z")])
    assert ok is False
    assert store.load_object_array("Bag", Item.deserialize) == [Item("a"), Item("b"), Item("c")]
    assert backend.get_int("P1_Bag_Count") == 3
    assert any("value 1" in r.getMessage() for r in caplog.records)


def test_strict_serialization_raises(store: PrefsStore):
    store.save_object_array("Bag", [Item("a")])
    with pytest.raises(PrefsSerializationError) as exc_info:
        store.save_object_array("Bag", [Item("bad", -1)], strict=True)
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert store.load_object_array("Bag", Item.deserialize) == [Item("a")]


def test_generic_dispatch_with_deserializer(store: PrefsStore):
    store.save("one", Item("solo"))
    assert store.save("many", [Item("a"), Item("b")]) is True
    assert store.load("one", None, deserialize=Item.deserialize) == Item("solo")
    assert store.load("many", [], deserialize=Item.deserialize) == [Item("a"), Item("b")]


@dataclass
class RawPayload:
    text: str

    def serialize(self) -> str:
        return self.text


def test_unencodable_object_payload_is_rejected(store: PrefsStore):
    with pytest.raises(PrefsValueError):
        store.save_object("Raw", RawPayload("\ud800"))
    store.save_object_array("Bag", [Item("a")])
    assert store.save_object_array("Bag", [RawPayload("ok"), RawPayload("\ud800")]) is False
    assert store.load_object_array("Bag", Item.deserialize) == [Item("a")]
