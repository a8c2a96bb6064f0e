"""
Datastore client for Python SDK.

This module provides the main client interface:
- DatastoreClient: Connection to one dataset
- Transaction: Transaction-scoped reads and writes (see tx.py)

Example:
    >>> async with DatastoreClient("my-dataset") as ds:
    ...     key = await ds.put(Key("Task"), Task(title="x"))
    ...
    ...     async def move(tx):
    ...         tasks = EntityList(Task)
    ...         await tx.get([key], tasks)
    ...         tasks[0].done = True
    ...         await tx.put(key, tasks[0])
    ...
    ...     await ds.run_in_transaction(move)

Invariants:
    - All requests are scoped to one dataset
    - Operations on the client itself use the default (non-transactional)
      transaction
    - The HTTP transport is injectable; the client owns the httpx.AsyncClient
      built on top of it
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

import httpx

from . import _generated as pb
from ._transport import Invoker
from .config import DatastoreSettings
from .errors import (
    DatastoreError,
    DecodeError,
    InvalidArgumentError,
    InvalidOperationError,
)
from .key import Key, key_to_proto, proto_to_key
from .query import Query
from .tx import Transaction

logger = logging.getLogger(__name__)

R = TypeVar("R")


class DatastoreClient:
    """Client for one datastore dataset.

    Provides a clean Python API over the datastore HTTP protocol.
    Handles the HTTP client lifecycle and hands out Transaction objects.

    Example:
        >>> async with DatastoreClient("my-dataset") as ds:
        ...     missing = await ds.get([key], EntityList(Task))
    """

    def __init__(
        self,
        dataset_id: str | None = None,
        *,
        settings: DatastoreSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize client.

        Args:
            dataset_id: Dataset to use (defaults to settings.dataset_id)
            settings: Optional settings (defaults to environment)
            transport: Optional httpx transport, e.g. for proxies or tests

        Raises:
            InvalidArgumentError: If no dataset id is given or configured
        """
        self.settings = settings or DatastoreSettings()
        self.dataset_id = dataset_id or self.settings.dataset_id
        if not self.dataset_id:
            raise InvalidArgumentError(
                "dataset_id is required (pass it or set DATASTORE_DATASET_ID)",
                argument="dataset_id",
            )

        self._transport = transport
        self._http: httpx.AsyncClient | None = None
        self._invoker: Invoker | None = None

    async def connect(self) -> None:
        """Open the HTTP client."""
        if self._http is not None:
            return

        self._http = httpx.AsyncClient(
            transport=self._transport,
            timeout=self.settings.timeout,
        )
        self._invoker = Invoker(self._http, self.settings)
        logger.debug(f"Datastore client ready for dataset {self.dataset_id} at {self.settings.api_base}")

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None
            self._invoker = None
            logger.debug("Datastore client closed")

    async def __aenter__(self) -> DatastoreClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _ensure_connected(self) -> Invoker:
        """Ensure we're connected and return the invoker."""
        if self._invoker is None:
            raise InvalidOperationError("Not connected. Call connect() first.")
        return self._invoker

    def transaction(self, transaction_id: bytes = b"") -> Transaction:
        """Bind a transaction manager to this client.

        Args:
            transaction_id: Existing server-issued id; empty for the default
                non-transactional mode

        Returns:
            Transaction
        """
        return Transaction(self._ensure_connected(), self.dataset_id, transaction_id)

    async def begin_transaction(
        self,
        isolation_level: pb.IsolationLevel = pb.IsolationLevel.SNAPSHOT,
    ) -> Transaction:
        """Start a new server-side transaction.

        Returns:
            Transactional Transaction

        Raises:
            DecodeError: If the server did not return a transaction id
        """
        invoker = self._ensure_connected()
        url = invoker.endpoint_url(self.dataset_id, "beginTransaction")
        response = pb.BeginTransactionResponse()
        await invoker.call(
            url,
            pb.BeginTransactionRequest(isolation_level=isolation_level),
            response,
        )
        if not response.transaction:
            raise DecodeError("beginTransaction returned no transaction id", url=url)

        logger.debug(f"Began transaction {response.transaction.hex()}")
        return Transaction(invoker, self.dataset_id, response.transaction)

    async def run_in_transaction(
        self,
        fn: Callable[[Transaction], Awaitable[R]],
        isolation_level: pb.IsolationLevel = pb.IsolationLevel.SNAPSHOT,
    ) -> R:
        """Run fn inside a new transaction and commit it.

        If fn raises, the transaction is rolled back and the exception is
        re-raised. A rollback failure is logged and does not replace the
        original exception.
        """
        tx = await self.begin_transaction(isolation_level)
        try:
            result = await fn(tx)
        except Exception:
            try:
                await tx.rollback()
            except DatastoreError:
                logger.warning(f"Rollback of {tx!r} failed", exc_info=True)
            raise

        await tx.commit()
        return result

    async def allocate_ids(self, keys: Sequence[Key]) -> List[Key]:
        """Reserve ids for incomplete keys without writing anything.

        Returns:
            Completed keys, in request order

        Raises:
            InvalidArgumentError: If any key is already complete
        """
        if len(keys) == 0:
            return []
        for key in keys:
            if key.is_complete():
                raise InvalidArgumentError(f"key is already complete: {key}", argument="keys")

        invoker = self._ensure_connected()
        request = pb.AllocateIdsRequest()
        for key in keys:
            request.key.add().CopyFrom(key_to_proto(key))

        response = pb.AllocateIdsResponse()
        await invoker.call(invoker.endpoint_url(self.dataset_id, "allocateIds"), request, response)
        return [proto_to_key(k) for k in response.key]

    async def get(self, keys: Sequence[Key], dest: List[Any]) -> List[Key]:
        """Look up entities outside any transaction. See Transaction.get."""
        return await self.transaction().get(keys, dest)

    async def put(self, key: Key, record: Any) -> Key:
        """Write one record in its own commit. See Transaction.put."""
        return await self.transaction().put(key, record)

    async def delete(self, keys: Sequence[Key]) -> None:
        """Delete entities in one commit. See Transaction.delete."""
        await self.transaction().delete(keys)

    async def run_query(
        self,
        query: Query,
        dest: Optional[List[Any]],
    ) -> Tuple[List[Key], Optional[Query]]:
        """Run one page of a query outside any transaction."""
        return await self.transaction().run_query(query, dest)
