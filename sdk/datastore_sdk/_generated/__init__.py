# mypy: ignore-errors
"""Protobuf messages for the datastore v1beta2 wire protocol.

Do not import from here outside the SDK - use the key, entity and
query codecs instead.

This module is internal to the SDK. Users should not import from here.
"""

from .datastore_v1beta2 import (
    AggregationFunction,
    AllocateIdsRequest,
    AllocateIdsResponse,
    # Transactions
    BeginTransactionRequest,
    BeginTransactionResponse,
    CommitMode,
    CommitRequest,
    CommitResponse,
    CompositeFilter,
    CompositeOperator,
    Direction,
    # Entities
    Entity,
    EntityResult,
    Filter,
    FilterOperator,
    IsolationLevel,
    # Keys
    Key,
    KindExpression,
    # Lookup
    LookupRequest,
    LookupResponse,
    MoreResultsType,
    # Mutations
    Mutation,
    MutationResult,
    PartitionId,
    PathElement,
    Property,
    PropertyExpression,
    PropertyFilter,
    PropertyOrder,
    PropertyReference,
    # Queries
    Query,
    QueryResultBatch,
    ReadConsistency,
    ReadOptions,
    ResultType,
    RollbackRequest,
    RollbackResponse,
    RunQueryRequest,
    RunQueryResponse,
    Value,
)

__all__ = [
    "PartitionId",
    "Key",
    "PathElement",
    "Value",
    "Property",
    "Entity",
    "EntityResult",
    "ResultType",
    "KindExpression",
    "PropertyReference",
    "PropertyExpression",
    "AggregationFunction",
    "PropertyOrder",
    "Direction",
    "Filter",
    "CompositeFilter",
    "CompositeOperator",
    "PropertyFilter",
    "FilterOperator",
    "Query",
    "QueryResultBatch",
    "MoreResultsType",
    "Mutation",
    "MutationResult",
    "ReadOptions",
    "ReadConsistency",
    "LookupRequest",
    "LookupResponse",
    "RunQueryRequest",
    "RunQueryResponse",
    "BeginTransactionRequest",
    "BeginTransactionResponse",
    "IsolationLevel",
    "RollbackRequest",
    "RollbackResponse",
    "CommitRequest",
    "CommitResponse",
    "CommitMode",
    "AllocateIdsRequest",
    "AllocateIdsResponse",
]
