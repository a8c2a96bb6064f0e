"""
Query builder and query codec for the datastore SDK.

Queries are immutable: every builder method returns a new Query. Invalid
input does not raise at build time; the first error is captured on the
query and raised when the query is run, before anything is sent.

Example:
    >>> q = (
    ...     Query("Task")
    ...     .filter("done =", False)
    ...     .order("-priority")
    ...     .limit(20)
    ... )
    >>> keys, next_q = await tx.run_query(q, EntityList(Task))
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from . import _generated as pb
from .entity import infer_kind, value_to_proto
from .errors import InvalidArgumentError, QueryConstructionError
from .key import Key, key_to_proto

logger = logging.getLogger(__name__)

KEY_PROPERTY = "__key__"

_INT32_MAX = 2**31 - 1

# Longest operators first so "<=" is not read as "<"
_OPERATORS = (
    ("<=", pb.FilterOperator.LESS_THAN_OR_EQUAL),
    (">=", pb.FilterOperator.GREATER_THAN_OR_EQUAL),
    ("<", pb.FilterOperator.LESS_THAN),
    (">", pb.FilterOperator.GREATER_THAN),
    ("=", pb.FilterOperator.EQUAL),
)


@dataclass(frozen=True)
class PropertyFilter:
    """A single property comparison."""

    field: str
    operator: pb.FilterOperator
    value: Any


@dataclass(frozen=True)
class PropertyOrder:
    """Sort order on one property."""

    field: str
    descending: bool = False


@dataclass(frozen=True)
class Query:
    """Immutable query description.

    Attributes:
        kind: Entity kind to query (empty for kindless queries)
        filters: Property filters, combined with AND
        orders: Sort orders, applied in sequence
        projection: Properties to return (empty for full entities)
        grouping: Properties to group results by
        ancestor_key: Restrict results to descendants of this key
        only_keys: Return keys without properties
        max_results: Result limit (None for unlimited)
        skip: Number of results to skip
        start_cursor: Cursor to resume from
        end_cursor: Cursor to stop at
        partition_namespace: Namespace to run the query in
        err: First construction error, raised when the query is run
    """

    kind: str = ""
    filters: Tuple[PropertyFilter, ...] = ()
    orders: Tuple[PropertyOrder, ...] = ()
    projection: Tuple[str, ...] = ()
    grouping: Tuple[str, ...] = ()
    ancestor_key: Optional[Key] = None
    only_keys: bool = False
    max_results: Optional[int] = None
    skip: int = 0
    start_cursor: bytes = b""
    end_cursor: bytes = b""
    partition_namespace: str = ""
    err: Optional[QueryConstructionError] = None

    def _with(self, **changes: Any) -> Query:
        if self.err is not None:
            return self
        return dataclasses.replace(self, **changes)

    def _fail(self, message: str, clause: str) -> Query:
        if self.err is not None:
            return self
        return dataclasses.replace(self, err=QueryConstructionError(message, clause=clause))

    def filter(self, filter_str: str, value: Any) -> Query:
        """Add a filter such as "Priority >=" or "Done =".

        Supported operators: =, <, <=, >, >=
        """
        text = filter_str.strip()
        for symbol, operator in _OPERATORS:
            if text.endswith(symbol):
                field_name = text[: -len(symbol)].strip()
                if not field_name:
                    return self._fail(f"empty field name in filter {filter_str!r}", "filter")
                if value is not None:
                    try:
                        infer_kind(value)
                    except InvalidArgumentError as e:
                        return self._fail(e.message, "filter")
                return self._with(filters=self.filters + (PropertyFilter(field_name, operator, value),))
        return self._fail(f"invalid operator in filter {filter_str!r}", "filter")

    def ancestor(self, key: Key) -> Query:
        """Restrict results to entities under the given key."""
        if key is None or not key.is_complete():
            return self._fail("ancestor key must be complete", "ancestor")
        return self._with(ancestor_key=key)

    def order(self, field_name: str) -> Query:
        """Add a sort order. Prefix the field with "-" to sort descending."""
        name = field_name.strip()
        descending = name.startswith("-")
        if descending:
            name = name[1:].strip()
        if not name:
            return self._fail("empty order field", "order")
        return self._with(orders=self.orders + (PropertyOrder(name, descending),))

    def project(self, *field_names: str) -> Query:
        """Return only the named properties."""
        if any(not name for name in field_names):
            return self._fail("empty projection field", "project")
        return self._with(projection=self.projection + tuple(field_names))

    def group_by(self, *field_names: str) -> Query:
        if any(not name for name in field_names):
            return self._fail("empty group_by field", "group_by")
        return self._with(grouping=self.grouping + tuple(field_names))

    def keys_only(self) -> Query:
        return self._with(only_keys=True)

    def limit(self, limit: int) -> Query:
        if limit < 0 or limit > _INT32_MAX:
            return self._fail(f"limit out of range: {limit}", "limit")
        return self._with(max_results=limit)

    def offset(self, offset: int) -> Query:
        if offset < 0 or offset > _INT32_MAX:
            return self._fail(f"offset out of range: {offset}", "offset")
        return self._with(skip=offset)

    def start(self, cursor: bytes) -> Query:
        """Resume the query at a cursor returned by a previous page."""
        return self._with(start_cursor=bytes(cursor))

    def end(self, cursor: bytes) -> Query:
        return self._with(end_cursor=bytes(cursor))

    def namespace(self, namespace: str) -> Query:
        return self._with(partition_namespace=namespace)


def _property_filter(name: str, operator: int, value: pb.Value) -> pb.PropertyFilter:
    proto = pb.PropertyFilter(operator=operator)
    proto.property.name = name
    proto.value.CopyFrom(value)
    return proto


def query_to_proto(query: Query) -> pb.Query:
    """Encode a query as its wire message.

    No validation happens here; callers check query.err first.
    """
    proto = pb.Query()
    if query.kind:
        proto.kind.add(name=query.kind)

    for name in query.projection:
        proto.projection.add().property.name = name
    if query.only_keys:
        proto.projection.add().property.name = KEY_PROPERTY

    for name in query.grouping:
        proto.group_by.add(name=name)

    filters = []
    if query.ancestor_key is not None:
        ancestor = pb.Value()
        ancestor.key_value.CopyFrom(key_to_proto(query.ancestor_key))
        filters.append(_property_filter(KEY_PROPERTY, pb.FilterOperator.HAS_ANCESTOR, ancestor))
    for f in query.filters:
        filters.append(_property_filter(f.field, f.operator, value_to_proto(f.value)))

    if len(filters) == 1:
        proto.filter.property_filter.CopyFrom(filters[0])
    elif len(filters) > 1:
        composite = proto.filter.composite_filter
        composite.operator = pb.CompositeOperator.AND
        for property_filter in filters:
            composite.filter.add().property_filter.CopyFrom(property_filter)

    for order in query.orders:
        order_proto = proto.order.add(
            direction=pb.Direction.DESCENDING if order.descending else pb.Direction.ASCENDING,
        )
        order_proto.property.name = order.field

    if query.start_cursor:
        proto.start_cursor = query.start_cursor
    if query.end_cursor:
        proto.end_cursor = query.end_cursor
    if query.skip:
        proto.offset = query.skip
    if query.max_results is not None:
        proto.limit = query.max_results

    logger.debug(f"Encoded query on kind '{query.kind}' with {len(filters)} filter(s)")
    return proto
