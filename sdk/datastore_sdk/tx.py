"""
Transaction manager for the datastore SDK.

A Transaction scopes reads and writes to one server-issued transaction id.
The zero-length id is the default transaction: every put and delete issued
through it is wrapped in its own NON_TRANSACTIONAL commit, so each call is
atomic on its own without an explicit transaction.

Example:
    >>> tx = await client.begin_transaction()
    >>> key = await tx.put(Key("Task"), Task(title="write docs"))
    >>> await tx.commit()

Invariants:
    - Local validation errors are raised before any request is sent
    - Every operation is at most one round trip
    - The transaction id never changes; a failed call can be retried on
      the same instance
    - After commit() or rollback() succeeds the instance must be discarded;
      this is not enforced
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google.protobuf import message

from . import _generated as pb
from ._transport import Invoker
from .entity import MultiConverter, entity_to_proto, is_record
from .errors import IncompleteKeyError, InvalidArgumentError, InvalidOperationError
from .key import Key, key_to_proto, proto_to_key
from .query import Query, query_to_proto

logger = logging.getLogger(__name__)


class Transaction:
    """Runs queries, lookups and mutations within one transaction.

    Instances are created by DatastoreClient.transaction() or
    DatastoreClient.begin_transaction().
    """

    def __init__(
        self,
        invoker: Invoker,
        dataset_id: str,
        transaction_id: bytes = b"",
    ) -> None:
        """Initialize a transaction manager.

        Args:
            invoker: Shared wire invoker
            dataset_id: Dataset every request is scoped to
            transaction_id: Server-issued transaction id, empty for the
                default non-transactional mode
        """
        self._invoker = invoker
        self._dataset_id = dataset_id
        self._transaction_id = bytes(transaction_id)

    @property
    def dataset_id(self) -> str:
        return self._dataset_id

    @property
    def transaction_id(self) -> bytes:
        return self._transaction_id

    def is_transactional(self) -> bool:
        """True if this manager holds a non-empty transaction id."""
        return len(self._transaction_id) > 0

    def __repr__(self) -> str:
        mode = self._transaction_id.hex() if self.is_transactional() else "default"
        return f"Transaction(dataset={self._dataset_id!r}, id={mode})"

    async def _call(self, method: str, request: message.Message, response: message.Message) -> None:
        await self._invoker.call(
            self._invoker.endpoint_url(self._dataset_id, method),
            request,
            response,
        )

    def _read_options(self, read_options: pb.ReadOptions) -> None:
        if self.is_transactional():
            read_options.transaction = self._transaction_id

    def _commit_request(self) -> pb.CommitRequest:
        if self.is_transactional():
            return pb.CommitRequest(
                mode=pb.CommitMode.TRANSACTIONAL,
                transaction=self._transaction_id,
            )
        return pb.CommitRequest(mode=pb.CommitMode.NON_TRANSACTIONAL)

    async def run_query(
        self,
        query: Query,
        dest: Optional[List[Any]],
    ) -> Tuple[List[Key], Optional[Query]]:
        """Run one page of a query.

        Args:
            query: Query to run
            dest: EntityList the page's records are appended to, or None to
                collect keys only

        Returns:
            Tuple of (keys in result order, query for the next page or None)

        Raises:
            QueryConstructionError: If the query was built with invalid input
            InvalidArgumentError: If dest is not an EntityList or None
        """
        if query.err is not None:
            raise query.err
        if dest is not None:
            MultiConverter.check(dest, append=True)

        request = pb.RunQueryRequest()
        self._read_options(request.read_options)
        request.query.CopyFrom(query_to_proto(query))
        if query.partition_namespace:
            request.partition_id.namespace = query.partition_namespace

        response = pb.RunQueryResponse()
        await self._call("runQuery", request, response)

        results = response.batch.entity_result
        converter = MultiConverter(len(results), dest, append=True) if dest is not None else None
        keys: List[Key] = []
        for i, result in enumerate(results):
            keys.append(proto_to_key(result.entity.key))
            if converter is not None:
                converter.set(i, result.entity)

        end_cursor = response.batch.end_cursor
        next_query = None
        if end_cursor != query.start_cursor:
            next_query = query.start(end_cursor)

        logger.debug(
            f"Query on kind '{query.kind}' returned {len(keys)} result(s), "
            f"{'more available' if next_query else 'no further pages'}"
        )
        return keys, next_query

    async def get(self, keys: Sequence[Key], dest: List[Any]) -> List[Key]:
        """Look up entities by key.

        Each found entity is decoded into the slot of dest at the position of
        its key. Slots of keys that are not found keep their current value.

        Args:
            keys: Complete keys to look up
            dest: EntityList or list of records, one slot per key

        Returns:
            Keys that were not found, in request order

        Raises:
            IncompleteKeyError: If any key is incomplete
            InvalidArgumentError: If dest has an unsupported shape or length
        """
        if len(keys) == 0:
            return []
        for key in keys:
            if not key.is_complete():
                raise IncompleteKeyError(key)
        MultiConverter.check(dest, len(keys))

        request = pb.LookupRequest()
        self._read_options(request.read_options)
        for key in keys:
            request.key.add().CopyFrom(key_to_proto(key))

        response = pb.LookupResponse()
        await self._call("lookup", request, response)
        converter = MultiConverter(len(keys), dest)

        positions: Dict[Key, List[int]] = {}
        for i, key in enumerate(keys):
            positions.setdefault(key, []).append(i)

        found = set()
        for result in response.found:
            key = proto_to_key(result.entity.key)
            indexes = positions.get(key)
            if indexes is None:
                logger.warning(f"Lookup returned entity for unrequested key {key}")
                continue
            for i in indexes:
                converter.set(i, result.entity)
            found.add(key)

        if len(response.deferred) > 0:
            logger.debug(f"Lookup deferred {len(response.deferred)} key(s)")

        return [key for key in keys if key not in found]

    async def put(self, key: Key, record: Any) -> Key:
        """Write a record under key.

        A complete key is upserted. An incomplete key is inserted with an id
        assigned by the store, and the completed key is returned.

        Returns:
            The completed key, or key itself if it was already complete

        Raises:
            InvalidArgumentError: If record is not a dataclass instance
        """
        if not is_record(record):
            raise InvalidArgumentError(
                f"source must be a dataclass instance, got {type(record).__name__}",
                argument="record",
            )

        entity = entity_to_proto(key, record)
        request = self._commit_request()
        if key.is_complete():
            request.mutation.upsert.add().CopyFrom(entity)
        else:
            request.mutation.insert_auto_id.add().CopyFrom(entity)

        logger.debug(
            f"Put {key} ({'upsert' if key.is_complete() else 'insert_auto_id'}, "
            f"{pb.CommitMode(request.mode).name})"
        )
        response = pb.CommitResponse()
        await self._call("commit", request, response)

        auto_keys = response.mutation_result.insert_auto_id_key
        if len(auto_keys) > 0:
            return proto_to_key(auto_keys[0])
        return key

    async def delete(self, keys: Sequence[Key]) -> None:
        """Delete entities by key in a single commit.

        Raises:
            IncompleteKeyError: If any key is incomplete
        """
        if len(keys) == 0:
            return
        for key in keys:
            if not key.is_complete():
                raise IncompleteKeyError(key)

        request = self._commit_request()
        for key in keys:
            request.mutation.delete.add().CopyFrom(key_to_proto(key))

        logger.debug(f"Delete {len(keys)} key(s) ({pb.CommitMode(request.mode).name})")
        response = pb.CommitResponse()
        await self._call("commit", request, response)

    async def commit(self) -> None:
        """Commit every operation issued under this transaction.

        Raises:
            InvalidOperationError: If this is the default transaction
        """
        if not self.is_transactional():
            raise InvalidOperationError("non-transactional operation")

        response = pb.CommitResponse()
        await self._call("commit", self._commit_request(), response)
        logger.debug(f"Committed transaction {self._transaction_id.hex()}")

    async def rollback(self) -> None:
        """Discard every operation issued under this transaction.

        Raises:
            InvalidOperationError: If this is the default transaction
        """
        if not self.is_transactional():
            raise InvalidOperationError("non-transactional operation")

        request = pb.RollbackRequest(transaction=self._transaction_id)
        response = pb.RollbackResponse()
        await self._call("rollback", request, response)
        logger.debug(f"Rolled back transaction {self._transaction_id.hex()}")
