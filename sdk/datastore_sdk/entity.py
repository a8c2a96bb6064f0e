"""
Entity codec for the datastore SDK.

This module maps application records to wire entities and back:
- PropertyKind: Supported property value types
- PropertyDef / RecordSchema: Property table derived from a record type
- entity_to_proto: Encode a record under a key
- EntityList: Typed destination list for multi-entity reads
- MultiConverter: Decodes wire entities into destination slots

Records are plain (non-frozen) dataclasses. The property table of a record
type is built once from its fields and type hints and then cached, so every
record type is checked when it is first used rather than on every call.

Example:
    >>> @dataclass
    ... class Task:
    ...     title: str = ""
    ...     done: bool = False
    >>>
    >>> entity = entity_to_proto(Key("Task", id=1), Task(title="x"))
    >>> tasks = EntityList(Task)
    >>> conv = MultiConverter(1, tasks)
    >>> conv.set(0, entity)
    >>> tasks[0].title
    'x'

Invariants:
    - One property per exported field (fields starting with "_" are skipped)
    - Unknown wire properties are ignored on decode
    - Fields without a matching wire property keep their current value
    - Destination shape errors are raised before any network call
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from datetime import datetime, timedelta, timezone
from enum import Enum
from functools import lru_cache
from typing import Any, List, Optional, Tuple, TypeVar

from . import _generated as pb
from .errors import InvalidArgumentError
from .key import Key, key_to_proto, proto_to_key

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PropertyKind(Enum):
    """Supported property types."""

    STRING = "str"
    INTEGER = "int"
    FLOAT = "float"
    BOOLEAN = "bool"
    TIMESTAMP = "timestamp"
    BYTES = "bytes"
    KEY = "key"
    LIST = "list"

    @classmethod
    def from_type(cls, tp: Any) -> PropertyKind:
        """Convert a Python type to PropertyKind."""
        kind = _KINDS_BY_TYPE.get(tp)
        if kind is None:
            raise InvalidArgumentError(f"Unsupported property type: {tp!r}")
        return kind


_KINDS_BY_TYPE = {
    str: PropertyKind.STRING,
    int: PropertyKind.INTEGER,
    float: PropertyKind.FLOAT,
    bool: PropertyKind.BOOLEAN,
    datetime: PropertyKind.TIMESTAMP,
    bytes: PropertyKind.BYTES,
    Key: PropertyKind.KEY,
    list: PropertyKind.LIST,
}

_ZERO_VALUES = {
    PropertyKind.STRING: "",
    PropertyKind.INTEGER: 0,
    PropertyKind.FLOAT: 0.0,
    PropertyKind.BOOLEAN: False,
    PropertyKind.BYTES: b"",
}


@dataclasses.dataclass(frozen=True)
class PropertyDef:
    """Mapping of one record field to a wire property.

    Attributes:
        name: Field and property name
        kind: Value type
        item_kind: Element type for LIST properties (None if untyped)
        optional: Whether the field accepts None
    """

    name: str
    kind: PropertyKind
    item_kind: Optional[PropertyKind] = None
    optional: bool = False

    def zero(self) -> Any:
        """Value a freshly allocated record holds for this property."""
        if self.optional:
            return None
        if self.kind == PropertyKind.LIST:
            return []
        return _ZERO_VALUES.get(self.kind)


@dataclasses.dataclass(frozen=True)
class RecordSchema:
    """Property table of a record type."""

    record_type: type
    properties: Tuple[PropertyDef, ...]

    def get(self, name: str) -> Optional[PropertyDef]:
        for prop in self.properties:
            if prop.name == name:
                return prop
        return None


def _property_def(name: str, hint: Any) -> PropertyDef:
    optional = False
    origin = typing.get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) != 1:
            raise InvalidArgumentError(f"Field '{name}' has unsupported union type {hint!r}")
        optional = True
        hint = args[0]
        origin = typing.get_origin(hint)

    if origin in (list, List):
        args = typing.get_args(hint)
        item_kind = PropertyKind.from_type(args[0]) if args else None
        if item_kind == PropertyKind.LIST:
            raise InvalidArgumentError(f"Field '{name}' nests lists, which cannot be stored")
        return PropertyDef(name, PropertyKind.LIST, item_kind, optional)

    try:
        kind = PropertyKind.from_type(hint)
    except InvalidArgumentError as e:
        raise InvalidArgumentError(f"Field '{name}': {e.message}", argument=name) from e
    return PropertyDef(name, kind, None, optional)


@lru_cache(maxsize=None)
def record_schema(record_type: type) -> RecordSchema:
    """Build (once) the property table of a dataclass record type.

    Raises:
        InvalidArgumentError: If the type is not a dataclass or a field type
            cannot be mapped to a property
    """
    if not (isinstance(record_type, type) and dataclasses.is_dataclass(record_type)):
        raise InvalidArgumentError(f"{record_type!r} is not a dataclass record type")

    hints = typing.get_type_hints(record_type)
    properties = tuple(
        _property_def(f.name, hints[f.name])
        for f in dataclasses.fields(record_type)
        if not f.name.startswith("_")
    )
    return RecordSchema(record_type, properties)


def is_record(value: Any) -> bool:
    """True for dataclass instances (not dataclass types)."""
    return dataclasses.is_dataclass(value) and not isinstance(value, type)


def _is_frozen(record_type: type) -> bool:
    return record_type.__dataclass_params__.frozen


def zero_record(record_type: type[T]) -> T:
    """Instantiate a record with declared defaults, or zero values where none are declared."""
    schema = record_schema(record_type)
    kwargs = {}
    for f in dataclasses.fields(record_type):
        if not f.init:
            continue
        if f.default is not dataclasses.MISSING or f.default_factory is not dataclasses.MISSING:
            continue
        prop = schema.get(f.name)
        kwargs[f.name] = prop.zero() if prop else None
    return record_type(**kwargs)


# =============================================================================
# Values
# =============================================================================


def _to_micros(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    delta = value - _EPOCH
    return (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds


def _from_micros(micros: int) -> datetime:
    return _EPOCH + timedelta(microseconds=micros)


def infer_kind(value: Any) -> PropertyKind:
    """Pick the property kind for a bare Python value."""
    if isinstance(value, bool):
        return PropertyKind.BOOLEAN
    for tp, kind in _KINDS_BY_TYPE.items():
        if isinstance(value, tp):
            return kind
    raise InvalidArgumentError(f"Unsupported property value: {value!r}")


def value_to_proto(
    value: Any,
    kind: Optional[PropertyKind] = None,
    item_kind: Optional[PropertyKind] = None,
) -> pb.Value:
    """Encode a single property value.

    None encodes as a Value with no field set. When kind is omitted it is
    inferred from the Python type.
    """
    proto = pb.Value()
    if value is None:
        return proto
    if kind is None:
        kind = infer_kind(value)

    if kind == PropertyKind.STRING:
        proto.string_value = value
    elif kind == PropertyKind.INTEGER:
        proto.integer_value = int(value)
    elif kind == PropertyKind.FLOAT:
        proto.double_value = float(value)
    elif kind == PropertyKind.BOOLEAN:
        proto.boolean_value = bool(value)
    elif kind == PropertyKind.TIMESTAMP:
        proto.timestamp_microseconds_value = _to_micros(value)
    elif kind == PropertyKind.BYTES:
        proto.blob_value = bytes(value)
    elif kind == PropertyKind.KEY:
        proto.key_value.CopyFrom(key_to_proto(value))
    elif kind == PropertyKind.LIST:
        for item in value:
            proto.list_value.add().CopyFrom(value_to_proto(item, item_kind))
    return proto


_UNSET = object()

_VALUE_FIELDS = (
    ("string_value", PropertyKind.STRING),
    ("integer_value", PropertyKind.INTEGER),
    ("double_value", PropertyKind.FLOAT),
    ("boolean_value", PropertyKind.BOOLEAN),
    ("timestamp_microseconds_value", PropertyKind.TIMESTAMP),
    ("blob_value", PropertyKind.BYTES),
    ("key_value", PropertyKind.KEY),
)


def _wire_kind(proto: pb.Value) -> Optional[PropertyKind]:
    for field_name, kind in _VALUE_FIELDS:
        if proto.HasField(field_name):
            return kind
    if len(proto.list_value) > 0:
        return PropertyKind.LIST
    return None


def value_from_proto(
    proto: pb.Value,
    kind: Optional[PropertyKind] = None,
    item_kind: Optional[PropertyKind] = None,
) -> Any:
    """Decode a single property value.

    Returns None for an empty Value and the module sentinel _UNSET when the
    wire type does not match the requested kind. When kind is omitted the
    wire type decides.
    """
    wire_kind = _wire_kind(proto)
    if kind == PropertyKind.LIST and wire_kind is None:
        return []
    if wire_kind is None:
        return None
    if kind is None:
        kind = wire_kind
    elif kind == PropertyKind.FLOAT and wire_kind == PropertyKind.INTEGER:
        return float(proto.integer_value)
    elif kind != wire_kind:
        return _UNSET

    if kind == PropertyKind.STRING:
        return proto.string_value
    if kind == PropertyKind.INTEGER:
        return proto.integer_value
    if kind == PropertyKind.FLOAT:
        return proto.double_value
    if kind == PropertyKind.BOOLEAN:
        return proto.boolean_value
    if kind == PropertyKind.TIMESTAMP:
        return _from_micros(proto.timestamp_microseconds_value)
    if kind == PropertyKind.BYTES:
        return proto.blob_value
    if kind == PropertyKind.KEY:
        return proto_to_key(proto.key_value)

    items = []
    for item in proto.list_value:
        decoded = value_from_proto(item, item_kind)
        if decoded is not _UNSET:
            items.append(decoded)
    return items


# =============================================================================
# Entities
# =============================================================================


def entity_to_proto(key: Key, record: Any) -> pb.Entity:
    """Encode a record as a wire entity under the given key.

    Raises:
        InvalidArgumentError: If record is not a dataclass instance
    """
    if not is_record(record):
        raise InvalidArgumentError(
            f"source must be a dataclass instance, got {type(record).__name__}",
            argument="record",
        )

    schema = record_schema(type(record))
    entity = pb.Entity()
    entity.key.CopyFrom(key_to_proto(key))
    for prop in schema.properties:
        value = value_to_proto(getattr(record, prop.name), prop.kind, prop.item_kind)
        entity.property.add(name=prop.name).value.CopyFrom(value)
    return entity


def entity_into(record: Any, entity: pb.Entity) -> None:
    """Decode a wire entity into an existing record, matching properties by name."""
    schema = record_schema(type(record))
    for wire_prop in entity.property:
        prop = schema.get(wire_prop.name)
        if prop is None:
            continue
        if prop.optional and _wire_kind(wire_prop.value) is None:
            setattr(record, prop.name, None)
            continue

        value = value_from_proto(wire_prop.value, prop.kind, prop.item_kind)
        if value is _UNSET:
            logger.debug(
                f"Skipping property '{prop.name}' of {schema.record_type.__name__}: "
                f"wire type does not match {prop.kind.value}"
            )
            continue
        if value is None and not prop.optional:
            continue
        setattr(record, prop.name, value)


class EntityList(List[T]):
    """List of records of one type, used as a read destination.

    An empty EntityList is grown to the number of results with zero-valued
    records; a non-empty one must already have that many slots.

    Example:
        >>> tasks = EntityList(Task)
        >>> missing = await tx.get([k1, k2], tasks)
    """

    def __init__(self, record_type: type[T], items: Any = ()) -> None:
        record_schema(record_type)
        super().__init__(items)
        self.record_type = record_type


class MultiConverter:
    """Decodes a sequence of wire entities into a destination list.

    Supported destinations:
    - EntityList(record_type): empty (grown to count) or exactly count long
    - list of exactly count dataclass instances, decoded in place

    With append=True the destination must be an EntityList and count new
    zero-valued records are added after the ones it already holds.

    The destination is validated once, on construction; call check() to
    validate it before the result count is known.
    """

    def __init__(self, count: int, dest: Any, append: bool = False) -> None:
        self.check(dest, None if append else count, append)

        self._offset = 0
        if append:
            self._offset = len(dest)
            dest.extend(zero_record(dest.record_type) for _ in range(count))
        elif isinstance(dest, EntityList) and len(dest) == 0:
            dest.extend(zero_record(dest.record_type) for _ in range(count))

        self._count = count
        self._dest = dest

    @staticmethod
    def check(dest: Any, count: Optional[int] = None, append: bool = False) -> None:
        """Validate a destination without changing it.

        Args:
            dest: Destination list
            count: Expected number of records, or None if not known yet
            append: Whether records will be appended to an EntityList

        Raises:
            InvalidArgumentError: If dest is not a supported container or
                cannot hold count records
        """
        if not isinstance(dest, list):
            raise InvalidArgumentError(
                f"destination must be a list of records, got {type(dest).__name__}",
                argument="dest",
            )
        if append and not isinstance(dest, EntityList):
            raise InvalidArgumentError(
                "query results need an EntityList destination to append to",
                argument="dest",
            )
        if isinstance(dest, EntityList) and _is_frozen(dest.record_type):
            raise InvalidArgumentError(
                f"{dest.record_type.__name__} is frozen and cannot be decoded into",
                argument="dest",
            )
        for i, slot in enumerate(dest):
            if not is_record(slot):
                raise InvalidArgumentError(
                    f"destination slot {i} is {type(slot).__name__}, not a dataclass instance",
                    argument="dest",
                )
            if _is_frozen(type(slot)):
                raise InvalidArgumentError(
                    f"destination slot {i} is a frozen dataclass",
                    argument="dest",
                )
            record_schema(type(slot))

        growable = isinstance(dest, EntityList) and len(dest) == 0
        if count is not None and not growable and len(dest) != count:
            raise InvalidArgumentError(
                f"destination holds {len(dest)} records, expected {count}",
                argument="dest",
            )

    def __len__(self) -> int:
        return self._count

    def set(self, index: int, entity: pb.Entity) -> None:
        """Decode one wire entity into the slot at index."""
        entity_into(self._dest[self._offset + index], entity)
