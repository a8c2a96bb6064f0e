"""
Datastore Python SDK - Client library for the datastore HTTP/protobuf API.

This SDK provides transaction-scoped access to a remote document store:
- Key and entity codecs (Key, EntityList)
- Query builder with cursor pagination
- Transaction manager for queries, lookups, puts, deletes, commit and rollback
- DatastoreClient for connecting to a dataset

Example:
    >>> from dataclasses import dataclass
    >>> from datastore_sdk import DatastoreClient, EntityList, Key, Query
    >>>
    >>> @dataclass
    ... class Task:
    ...     title: str = ""
    ...     done: bool = False
    >>>
    >>> async with DatastoreClient("my-dataset") as ds:
    ...     key = await ds.put(Key("Task"), Task(title="My Task"))
    ...     tasks = EntityList(Task)
    ...     keys, next_query = await ds.run_query(Query("Task"), tasks)

Invariants:
    - Puts and deletes outside a transaction commit atomically on their own
    - Invalid input fails before any request is sent
    - Query pagination ends when the end cursor equals the start cursor

Version: 0.1.0
"""

__version__ = "0.1.0"

from ._generated import CommitMode, IsolationLevel
from .client import DatastoreClient
from .config import DatastoreSettings
from .entity import EntityList, MultiConverter, PropertyKind, record_schema
from .errors import (
    DatastoreError,
    DecodeError,
    IncompleteKeyError,
    InvalidArgumentError,
    InvalidOperationError,
    QueryConstructionError,
    TransportError,
)
from .key import Key
from .query import Query
from .tx import Transaction

__all__ = [
    # Version
    "__version__",
    # Keys and entities
    "Key",
    "EntityList",
    "MultiConverter",
    "PropertyKind",
    "record_schema",
    # Queries
    "Query",
    # Client
    "DatastoreClient",
    "DatastoreSettings",
    "Transaction",
    "CommitMode",
    "IsolationLevel",
    # Errors
    "DatastoreError",
    "InvalidArgumentError",
    "IncompleteKeyError",
    "InvalidOperationError",
    "QueryConstructionError",
    "TransportError",
    "DecodeError",
]
