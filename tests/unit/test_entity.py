"""
Unit tests for the entity codec.

Tests cover:
- Record schema derivation
- Value encoding per property kind
- Entity decoding (unknown properties, missing properties, type mismatches)
- MultiConverter destination validation
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

import pytest

from sdk.datastore_sdk import _generated as pb
from sdk.datastore_sdk.entity import (
    EntityList,
    MultiConverter,
    PropertyKind,
    entity_into,
    entity_to_proto,
    record_schema,
    value_from_proto,
    value_to_proto,
    zero_record,
)
from sdk.datastore_sdk.errors import InvalidArgumentError
from sdk.datastore_sdk.key import Key, key_to_proto


@dataclass
class Task:
    title: str = ""
    priority: int = 0
    done: bool = False
    tags: List[str] = field(default_factory=list)
    due: Optional[datetime] = None


@dataclass
class Note:
    body: str
    score: float
    owner: Optional[Key]
    _cache: Optional[str] = None


@dataclass
class Checklist:
    items: Optional[List[str]] = None


@dataclass(frozen=True)
class FrozenTask:
    title: str = ""


def make_entity(key: Key, **props) -> pb.Entity:
    """Helper to build a wire entity from keyword values."""
    entity = pb.Entity()
    entity.key.CopyFrom(key_to_proto(key))
    for name, value in props.items():
        entity.property.add(name=name).value.CopyFrom(value_to_proto(value))
    return entity


class TestRecordSchema:
    """Tests for record_schema."""

    def test_kinds_from_type_hints(self):
        """Each field maps to the kind of its annotation."""
        schema = record_schema(Task)

        kinds = {p.name: p.kind for p in schema.properties}
        assert kinds == {
            "title": PropertyKind.STRING,
            "priority": PropertyKind.INTEGER,
            "done": PropertyKind.BOOLEAN,
            "tags": PropertyKind.LIST,
            "due": PropertyKind.TIMESTAMP,
        }
        assert schema.get("tags").item_kind == PropertyKind.STRING
        assert schema.get("due").optional is True

    def test_private_fields_are_not_exported(self):
        """Fields starting with an underscore are skipped."""
        schema = record_schema(Note)
        assert schema.get("_cache") is None
        assert [p.name for p in schema.properties] == ["body", "score", "owner"]

    def test_schema_is_cached(self):
        """The property table is built once per type."""
        assert record_schema(Task) is record_schema(Task)

    def test_non_dataclass_rejected(self):
        """Plain classes cannot be used as records."""

        class Plain:
            pass

        with pytest.raises(InvalidArgumentError):
            record_schema(Plain)

    def test_unsupported_field_type_rejected(self):
        """Field types without a property kind are rejected."""

        @dataclass
        class WithDict:
            data: dict

        with pytest.raises(InvalidArgumentError, match="data"):
            record_schema(WithDict)


class TestZeroRecord:
    """Tests for zero_record."""

    def test_uses_declared_defaults(self):
        """Declared defaults are kept."""
        task = zero_record(Task)
        assert task == Task()

    def test_fills_missing_defaults_with_zero_values(self):
        """Fields without defaults get the zero value of their kind."""
        note = zero_record(Note)
        assert note.body == ""
        assert note.score == 0.0
        assert note.owner is None


class TestValueCodec:
    """Tests for value_to_proto / value_from_proto."""

    def test_none_is_empty_value(self):
        """None encodes to a Value with nothing set."""
        proto = value_to_proto(None)
        assert proto.ByteSize() == 0
        assert value_from_proto(proto) is None

    def test_bool_is_not_integer(self):
        """Booleans are inferred before integers."""
        proto = value_to_proto(True)
        assert proto.HasField("boolean_value")
        assert not proto.HasField("integer_value")

    def test_timestamp_microseconds(self):
        """Timestamps are stored as microseconds since the epoch."""
        when = datetime(2024, 5, 1, 12, 30, 0, 250, tzinfo=timezone.utc)

        proto = value_to_proto(when)

        assert proto.timestamp_microseconds_value == 1714566600000250
        assert value_from_proto(proto) == when

    def test_naive_timestamp_treated_as_utc(self):
        """Naive datetimes are read as UTC."""
        proto = value_to_proto(datetime(1970, 1, 1, 0, 0, 1))
        assert proto.timestamp_microseconds_value == 1_000_000

    def test_key_value(self):
        """Keys are stored as key values."""
        key = Key("Task", id=3)
        proto = value_to_proto(key)
        assert value_from_proto(proto, PropertyKind.KEY) == key

    def test_list_value(self):
        """Lists encode each element."""
        proto = value_to_proto(["a", "b"], PropertyKind.LIST, PropertyKind.STRING)

        assert [v.string_value for v in proto.list_value] == ["a", "b"]
        assert value_from_proto(proto, PropertyKind.LIST, PropertyKind.STRING) == ["a", "b"]

    def test_integer_widens_to_float(self):
        """Integer wire values decode into float fields."""
        assert value_from_proto(value_to_proto(3), PropertyKind.FLOAT) == 3.0

    def test_unsupported_value_rejected(self):
        """Values with no property kind are rejected."""
        with pytest.raises(InvalidArgumentError):
            value_to_proto({"a": 1})


class TestEntityToProto:
    """Tests for entity_to_proto."""

    def test_one_property_per_field(self):
        """Every exported field becomes a named property."""
        key = Key("Task", id=1)
        entity = entity_to_proto(key, Task(title="x", priority=2, tags=["a"]))

        props = {p.name: p.value for p in entity.property}
        assert set(props) == {"title", "priority", "done", "tags", "due"}
        assert props["title"].string_value == "x"
        assert props["priority"].integer_value == 2
        assert props["done"].boolean_value is False
        assert props["done"].HasField("boolean_value")
        assert props["due"].ByteSize() == 0
        assert entity.key == key_to_proto(key)

    def test_incomplete_key_attached(self):
        """Incomplete keys are attached unchanged."""
        entity = entity_to_proto(Key("Task"), Task())
        assert not entity.key.path_element[0].HasField("id")

    @pytest.mark.parametrize("source", [Task, {"title": "x"}, "x", None])
    def test_non_record_rejected(self, source):
        """Only dataclass instances can be encoded."""
        with pytest.raises(InvalidArgumentError, match="dataclass instance"):
            entity_to_proto(Key("Task"), source)


class TestEntityInto:
    """Tests for decoding entities into records."""

    def test_decodes_by_name(self):
        """Properties are matched to fields by name."""
        task = Task()
        entity_into(task, make_entity(Key("Task", id=1), title="x", priority=5, done=True))

        assert task == Task(title="x", priority=5, done=True)

    def test_unknown_properties_ignored(self):
        """Properties with no matching field are skipped."""
        task = Task()
        entity_into(task, make_entity(Key("Task", id=1), title="x", assignee="bob"))

        assert task.title == "x"
        assert not hasattr(task, "assignee")

    def test_missing_properties_keep_value(self):
        """Fields without a wire property are left alone."""
        task = Task(title="old", priority=9)
        entity_into(task, make_entity(Key("Task", id=1), title="new"))

        assert task.title == "new"
        assert task.priority == 9

    def test_type_mismatch_skipped(self):
        """A wire value of the wrong type does not overwrite the field."""
        task = Task(priority=1)
        entity_into(task, make_entity(Key("Task", id=1), priority="high"))

        assert task.priority == 1

    def test_null_sets_optional_field(self):
        """An empty wire value clears optional fields only."""
        task = Task(title="x", due=datetime(2024, 1, 1, tzinfo=timezone.utc))
        entity_into(task, make_entity(Key("Task", id=1), title=None, due=None))

        assert task.title == "x"
        assert task.due is None


class TestMultiConverter:
    """Tests for MultiConverter destinations."""

    def test_empty_entity_list_grows(self):
        """An empty EntityList is sized to the result count."""
        tasks = EntityList(Task)

        conv = MultiConverter(2, tasks)

        assert len(conv) == 2
        assert tasks == [Task(), Task()]
        assert tasks[0] is not tasks[1]

    def test_sized_entity_list_must_match(self):
        """A non-empty EntityList must already have count slots."""
        with pytest.raises(InvalidArgumentError, match="expected 3"):
            MultiConverter(3, EntityList(Task, [Task()]))

    def test_list_of_records_decoded_in_place(self):
        """Records in a plain list are updated in place."""
        first, second = Task(), Note(body="", score=0.0, owner=None)
        conv = MultiConverter(2, [first, second])

        conv.set(0, make_entity(Key("Task", id=1), title="x"))
        conv.set(1, make_entity(Key("Note", id=2), body="hello", score=1.5))

        assert first.title == "x"
        assert second.body == "hello"
        assert second.score == 1.5

    def test_plain_list_length_must_match(self):
        """Plain lists are never resized."""
        with pytest.raises(InvalidArgumentError):
            MultiConverter(2, [])

    @pytest.mark.parametrize("dest", [None, Task(), (Task(),), {"a": Task()}])
    def test_unsupported_container_rejected(self, dest):
        """Only lists are accepted."""
        with pytest.raises(InvalidArgumentError, match="must be a list"):
            MultiConverter(1, dest)

    def test_non_record_slot_rejected(self):
        """Every slot must be a dataclass instance."""
        with pytest.raises(InvalidArgumentError, match="slot 1"):
            MultiConverter(2, [Task(), None])

    def test_frozen_records_rejected(self):
        """Frozen dataclasses cannot be decoded into."""
        with pytest.raises(InvalidArgumentError, match="frozen"):
            MultiConverter(1, [FrozenTask()])
        with pytest.raises(InvalidArgumentError, match="frozen"):
            MultiConverter(1, EntityList(FrozenTask))

    def test_entity_list_requires_record_type(self):
        """EntityList only accepts dataclass types."""
        with pytest.raises(InvalidArgumentError):
            EntityList(str)

    def test_append_after_existing_records(self):
        """Appending adds count zero-valued records and decodes into them."""
        tasks = EntityList(Task, [Task(title="page-1")])

        conv = MultiConverter(1, tasks, append=True)
        conv.set(0, make_entity(Key("Task", id=2), title="page-2"))

        assert len(conv) == 1
        assert [t.title for t in tasks] == ["page-1", "page-2"]

    def test_append_requires_entity_list(self):
        with pytest.raises(InvalidArgumentError, match="EntityList"):
            MultiConverter.check([Task()], append=True)

    def test_check_with_count_leaves_destination_unchanged(self):
        """check() validates the length but never grows the list."""
        tasks = EntityList(Task)

        MultiConverter.check(tasks, 3)

        assert tasks == []
        with pytest.raises(InvalidArgumentError, match="expected 2"):
            MultiConverter.check([Task()], 2)


class TestOptionalList:
    """Tests for Optional list fields."""

    def test_none_survives_round_trip(self):
        """An optional list left as None decodes back to None, not []."""
        entity = entity_to_proto(Key("Checklist", id=1), Checklist(items=None))
        checklist = Checklist(items=["stale"])

        entity_into(checklist, entity)

        assert checklist.items is None

    def test_values_decoded(self):
        entity = entity_to_proto(Key("Checklist", id=1), Checklist(items=["a", "b"]))
        checklist = Checklist()

        entity_into(checklist, entity)

        assert checklist.items == ["a", "b"]
