"""
Unit tests for the query builder and query codec.

Tests cover:
- Builder immutability
- Deferred construction errors
- Wire encoding of filters, orders, projections and cursors
"""

import pytest

from sdk.datastore_sdk import _generated as pb
from sdk.datastore_sdk.errors import QueryConstructionError
from sdk.datastore_sdk.key import Key
from sdk.datastore_sdk.query import KEY_PROPERTY, Query, query_to_proto


class TestQueryBuilder:
    """Tests for Query builder methods."""

    def test_builders_return_new_query(self):
        """Builder methods never mutate the receiver."""
        base = Query("Task")
        limited = base.limit(10)

        assert base.max_results is None
        assert limited.max_results == 10
        assert limited is not base

    def test_start_sets_cursor(self):
        """start() records the cursor."""
        assert Query("Task").start(b"abc").start_cursor == b"abc"

    @pytest.mark.parametrize(
        "filter_str,operator",
        [
            ("priority =", pb.FilterOperator.EQUAL),
            ("priority<", pb.FilterOperator.LESS_THAN),
            ("priority <=", pb.FilterOperator.LESS_THAN_OR_EQUAL),
            (" priority > ", pb.FilterOperator.GREATER_THAN),
            ("priority>=", pb.FilterOperator.GREATER_THAN_OR_EQUAL),
        ],
    )
    def test_filter_operators(self, filter_str, operator):
        """Operators are parsed from the end of the filter string."""
        q = Query("Task").filter(filter_str, 3)

        assert q.err is None
        assert q.filters[0].field == "priority"
        assert q.filters[0].operator == operator

    def test_order_descending(self):
        """A leading '-' sorts descending."""
        q = Query("Task").order("-priority").order("title")

        assert [(o.field, o.descending) for o in q.orders] == [
            ("priority", True),
            ("title", False),
        ]


class TestDeferredErrors:
    """Tests for construction errors captured on the query."""

    @pytest.mark.parametrize(
        "build,clause",
        [
            (lambda q: q.filter("priority !=", 1), "filter"),
            (lambda q: q.filter(" =", 1), "filter"),
            (lambda q: q.filter("data =", {"a": 1}), "filter"),
            (lambda q: q.order("-"), "order"),
            (lambda q: q.limit(-1), "limit"),
            (lambda q: q.offset(2**31), "offset"),
            (lambda q: q.project("title", ""), "project"),
            (lambda q: q.ancestor(Key("TaskList")), "ancestor"),
        ],
    )
    def test_invalid_input_captured(self, build, clause):
        """Invalid input is stored in err instead of raising."""
        q = build(Query("Task"))

        assert isinstance(q.err, QueryConstructionError)
        assert q.err.clause == clause

    def test_first_error_wins(self):
        """Later builder calls keep the first error."""
        q = Query("Task").limit(-1).order("").filter("x =", 1)

        assert q.err.clause == "limit"
        assert q.filters == ()
        assert q.orders == ()


class TestQueryToProto:
    """Tests for query_to_proto."""

    def test_kind(self):
        """Kind becomes a single kind expression."""
        proto = query_to_proto(Query("Task"))
        assert [k.name for k in proto.kind] == ["Task"]

    def test_kindless(self):
        """Kindless queries send no kind."""
        assert len(query_to_proto(Query()).kind) == 0

    def test_single_filter(self):
        """One filter is sent as a property filter."""
        proto = query_to_proto(Query("Task").filter("done =", False))

        pf = proto.filter.property_filter
        assert pf.property.name == "done"
        assert pf.operator == pb.FilterOperator.EQUAL
        assert pf.value.HasField("boolean_value")
        assert not proto.filter.HasField("composite_filter")

    def test_multiple_filters_are_anded(self):
        """Several filters are combined in an AND composite filter."""
        proto = query_to_proto(
            Query("Task").filter("done =", False).filter("priority >", 2)
        )

        composite = proto.filter.composite_filter
        assert composite.operator == pb.CompositeOperator.AND
        assert [f.property_filter.property.name for f in composite.filter] == ["done", "priority"]
        assert composite.filter[1].property_filter.value.integer_value == 2

    def test_ancestor_filter(self):
        """Ancestor restriction uses HAS_ANCESTOR on __key__."""
        parent = Key("TaskList", name="default")
        proto = query_to_proto(Query("Task").ancestor(parent))

        pf = proto.filter.property_filter
        assert pf.property.name == KEY_PROPERTY
        assert pf.operator == pb.FilterOperator.HAS_ANCESTOR
        assert pf.value.key_value.path_element[0].name == "default"

    def test_orders(self):
        """Orders keep their sequence and direction."""
        proto = query_to_proto(Query("Task").order("-priority").order("title"))

        assert [(o.property.name, o.direction) for o in proto.order] == [
            ("priority", pb.Direction.DESCENDING),
            ("title", pb.Direction.ASCENDING),
        ]

    def test_projection_and_keys_only(self):
        """Projection lists properties; keys_only projects __key__."""
        proto = query_to_proto(Query("Task").project("title").keys_only())
        assert [p.property.name for p in proto.projection] == ["title", KEY_PROPERTY]

    def test_group_by(self):
        proto = query_to_proto(Query("Task").group_by("owner"))
        assert [g.name for g in proto.group_by] == ["owner"]

    def test_cursors_offset_limit(self):
        """Paging fields are copied when set."""
        proto = query_to_proto(
            Query("Task").start(b"s").end(b"e").offset(5).limit(20)
        )

        assert proto.start_cursor == b"s"
        assert proto.end_cursor == b"e"
        assert proto.offset == 5
        assert proto.limit == 20

    def test_unset_paging_fields_not_sent(self):
        """An unlimited query from the start sends no paging fields."""
        proto = query_to_proto(Query("Task"))

        assert not proto.HasField("start_cursor")
        assert not proto.HasField("limit")
        assert not proto.HasField("offset")

    def test_limit_zero_is_sent(self):
        """A zero limit is distinct from no limit."""
        proto = query_to_proto(Query("Task").limit(0))
        assert proto.HasField("limit")
