# mypy: ignore-errors
"""
Datastore v1beta2 message classes.

The file descriptor is assembled from the tables below and registered in a
private DescriptorPool, so the message classes behave exactly like protoc
output without a code generation step. Field numbers follow the published
datastore_v1beta2.proto (proto2).
"""

from __future__ import annotations

from enum import IntEnum

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

_PACKAGE = "datastore.v1beta2"
_FILE_NAME = "datastore_sdk/datastore_v1beta2.proto"

_F = descriptor_pb2.FieldDescriptorProto
_SCALARS = {
    "bool": _F.TYPE_BOOL,
    "bytes": _F.TYPE_BYTES,
    "double": _F.TYPE_DOUBLE,
    "int32": _F.TYPE_INT32,
    "int64": _F.TYPE_INT64,
    "string": _F.TYPE_STRING,
}
REPEATED = True


class ResultType(IntEnum):
    FULL = 1
    PROJECTION = 2
    KEY_ONLY = 3


class AggregationFunction(IntEnum):
    FIRST = 1


class Direction(IntEnum):
    ASCENDING = 1
    DESCENDING = 2


class CompositeOperator(IntEnum):
    AND = 1


class FilterOperator(IntEnum):
    LESS_THAN = 1
    LESS_THAN_OR_EQUAL = 2
    GREATER_THAN = 3
    GREATER_THAN_OR_EQUAL = 4
    EQUAL = 5
    HAS_ANCESTOR = 11


class MoreResultsType(IntEnum):
    NOT_FINISHED = 1
    MORE_RESULTS_AFTER_LIMIT = 2
    NO_MORE_RESULTS = 3


class ReadConsistency(IntEnum):
    DEFAULT = 0
    STRONG = 1
    EVENTUAL = 2


class IsolationLevel(IntEnum):
    SNAPSHOT = 0
    SERIALIZABLE = 1


class CommitMode(IntEnum):
    TRANSACTIONAL = 1
    NON_TRANSACTIONAL = 2


# Enum name (relative to the package) -> values
_ENUMS = {
    "EntityResult.ResultType": ResultType,
    "PropertyExpression.AggregationFunction": AggregationFunction,
    "PropertyOrder.Direction": Direction,
    "CompositeFilter.Operator": CompositeOperator,
    "PropertyFilter.Operator": FilterOperator,
    "QueryResultBatch.MoreResultsType": MoreResultsType,
    "ReadOptions.ReadConsistency": ReadConsistency,
    "BeginTransactionRequest.IsolationLevel": IsolationLevel,
    "CommitRequest.Mode": CommitMode,
}

# Message name (relative to the package) -> (field name, number, type[, repeated])
# Parents must be listed before their nested messages.
_MESSAGES = {
    "PartitionId": [
        ("dataset_id", 3, "string"),
        ("namespace", 4, "string"),
    ],
    "Key": [
        ("partition_id", 1, "PartitionId"),
        ("path_element", 2, "Key.PathElement", REPEATED),
    ],
    "Key.PathElement": [
        ("kind", 1, "string"),
        ("id", 2, "int64"),
        ("name", 3, "string"),
    ],
    "Value": [
        ("boolean_value", 1, "bool"),
        ("integer_value", 2, "int64"),
        ("double_value", 3, "double"),
        ("timestamp_microseconds_value", 4, "int64"),
        ("key_value", 5, "Key"),
        ("entity_value", 6, "Entity"),
        ("list_value", 7, "Value", REPEATED),
        ("meaning", 14, "int32"),
        ("indexed", 15, "bool"),
        ("blob_key_value", 16, "string"),
        ("string_value", 17, "string"),
        ("blob_value", 18, "bytes"),
    ],
    "Property": [
        ("name", 1, "string"),
        ("value", 4, "Value"),
    ],
    "Entity": [
        ("key", 1, "Key"),
        ("property", 2, "Property", REPEATED),
    ],
    "EntityResult": [
        ("entity", 1, "Entity"),
    ],
    "KindExpression": [
        ("name", 1, "string"),
    ],
    "PropertyReference": [
        ("name", 2, "string"),
    ],
    "PropertyExpression": [
        ("property", 1, "PropertyReference"),
        ("aggregation_function", 2, "PropertyExpression.AggregationFunction"),
    ],
    "PropertyOrder": [
        ("property", 1, "PropertyReference"),
        ("direction", 2, "PropertyOrder.Direction"),
    ],
    "Filter": [
        ("composite_filter", 1, "CompositeFilter"),
        ("property_filter", 2, "PropertyFilter"),
    ],
    "CompositeFilter": [
        ("operator", 1, "CompositeFilter.Operator"),
        ("filter", 2, "Filter", REPEATED),
    ],
    "PropertyFilter": [
        ("property", 1, "PropertyReference"),
        ("operator", 2, "PropertyFilter.Operator"),
        ("value", 3, "Value"),
    ],
    "Query": [
        ("projection", 2, "PropertyExpression", REPEATED),
        ("kind", 3, "KindExpression", REPEATED),
        ("filter", 4, "Filter"),
        ("order", 5, "PropertyOrder", REPEATED),
        ("group_by", 6, "PropertyReference", REPEATED),
        ("start_cursor", 7, "bytes"),
        ("end_cursor", 8, "bytes"),
        ("offset", 10, "int32"),
        ("limit", 11, "int32"),
    ],
    "QueryResultBatch": [
        ("entity_result_type", 1, "EntityResult.ResultType"),
        ("entity_result", 2, "EntityResult", REPEATED),
        ("end_cursor", 4, "bytes"),
        ("more_results", 5, "QueryResultBatch.MoreResultsType"),
        ("skipped_results", 6, "int32"),
    ],
    "Mutation": [
        ("upsert", 1, "Entity", REPEATED),
        ("update", 2, "Entity", REPEATED),
        ("insert", 3, "Entity", REPEATED),
        ("insert_auto_id", 4, "Entity", REPEATED),
        ("delete", 5, "Key", REPEATED),
        ("force", 6, "bool"),
    ],
    "MutationResult": [
        ("index_updates", 1, "int32"),
        ("insert_auto_id_key", 2, "Key", REPEATED),
    ],
    "ReadOptions": [
        ("read_consistency", 1, "ReadOptions.ReadConsistency"),
        ("transaction", 2, "bytes"),
    ],
    "LookupRequest": [
        ("read_options", 1, "ReadOptions"),
        ("key", 3, "Key", REPEATED),
    ],
    "LookupResponse": [
        ("found", 1, "EntityResult", REPEATED),
        ("missing", 2, "EntityResult", REPEATED),
        ("deferred", 3, "Key", REPEATED),
    ],
    "RunQueryRequest": [
        ("read_options", 1, "ReadOptions"),
        ("partition_id", 2, "PartitionId"),
        ("query", 3, "Query"),
    ],
    "RunQueryResponse": [
        ("batch", 1, "QueryResultBatch"),
    ],
    "BeginTransactionRequest": [
        ("isolation_level", 1, "BeginTransactionRequest.IsolationLevel"),
    ],
    "BeginTransactionResponse": [
        ("transaction", 1, "bytes"),
    ],
    "RollbackRequest": [
        ("transaction", 1, "bytes"),
    ],
    "RollbackResponse": [],
    "CommitRequest": [
        ("transaction", 1, "bytes"),
        ("mutation", 2, "Mutation"),
        ("mode", 5, "CommitRequest.Mode"),
    ],
    "CommitResponse": [
        ("mutation_result", 1, "MutationResult"),
    ],
    "AllocateIdsRequest": [
        ("key", 1, "Key", REPEATED),
    ],
    "AllocateIdsResponse": [
        ("key", 1, "Key", REPEATED),
    ],
}


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name=_FILE_NAME,
        package=_PACKAGE,
        syntax="proto2",
    )
    protos: dict[str, descriptor_pb2.DescriptorProto] = {}

    for name, fields in _MESSAGES.items():
        parent, _, short_name = name.rpartition(".")
        container = protos[parent].nested_type if parent else file_proto.message_type
        message_proto = container.add(name=short_name)
        protos[name] = message_proto

        for field_name, number, type_name, *rest in fields:
            field_proto = message_proto.field.add(
                name=field_name,
                number=number,
                label=_F.LABEL_REPEATED if rest and rest[0] else _F.LABEL_OPTIONAL,
            )
            if type_name in _SCALARS:
                field_proto.type = _SCALARS[type_name]
            else:
                field_proto.type = _F.TYPE_ENUM if type_name in _ENUMS else _F.TYPE_MESSAGE
                field_proto.type_name = f".{_PACKAGE}.{type_name}"

    for name, values in _ENUMS.items():
        parent, _, short_name = name.rpartition(".")
        enum_proto = protos[parent].enum_type.add(name=short_name)
        for value in values:
            enum_proto.value.add(name=value.name, number=value.value)

    return file_proto


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_build_file().SerializeToString())


def _message_class(name: str):
    return message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{_PACKAGE}.{name}"))


PartitionId = _message_class("PartitionId")
Key = _message_class("Key")
PathElement = _message_class("Key.PathElement")
Value = _message_class("Value")
Property = _message_class("Property")
Entity = _message_class("Entity")
EntityResult = _message_class("EntityResult")
KindExpression = _message_class("KindExpression")
PropertyReference = _message_class("PropertyReference")
PropertyExpression = _message_class("PropertyExpression")
PropertyOrder = _message_class("PropertyOrder")
Filter = _message_class("Filter")
CompositeFilter = _message_class("CompositeFilter")
PropertyFilter = _message_class("PropertyFilter")
Query = _message_class("Query")
QueryResultBatch = _message_class("QueryResultBatch")
Mutation = _message_class("Mutation")
MutationResult = _message_class("MutationResult")
ReadOptions = _message_class("ReadOptions")
LookupRequest = _message_class("LookupRequest")
LookupResponse = _message_class("LookupResponse")
RunQueryRequest = _message_class("RunQueryRequest")
RunQueryResponse = _message_class("RunQueryResponse")
BeginTransactionRequest = _message_class("BeginTransactionRequest")
BeginTransactionResponse = _message_class("BeginTransactionResponse")
RollbackRequest = _message_class("RollbackRequest")
RollbackResponse = _message_class("RollbackResponse")
CommitRequest = _message_class("CommitRequest")
CommitResponse = _message_class("CommitResponse")
AllocateIdsRequest = _message_class("AllocateIdsRequest")
AllocateIdsResponse = _message_class("AllocateIdsResponse")
