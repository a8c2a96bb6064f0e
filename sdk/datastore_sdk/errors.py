"""
Error types for the datastore SDK.

This module defines all exception types raised by the SDK:
- DatastoreError: Base exception
- InvalidArgumentError: Malformed caller input, detected before any network call
- IncompleteKeyError: A complete key was required
- InvalidOperationError: Operation does not fit the transaction state
- QueryConstructionError: Query builder rejected its input
- TransportError: HTTP or network failure
- DecodeError: Response body did not match the expected message

Invariants:
    - All errors inherit from DatastoreError
    - Local validation errors are raised before any request is sent
    - Transport and decode errors never change transaction state
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DatastoreError(Exception):
    """Base exception for all datastore SDK errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "DATASTORE_ERROR"
        self.details = details or {}


class InvalidArgumentError(DatastoreError):
    """Caller input is malformed.

    Raised when:
    - A source record is not a dataclass instance
    - A destination container has an unsupported shape or length
    - A record type carries a field the codec cannot map
    """

    def __init__(
        self,
        message: str,
        argument: Optional[str] = None,
    ) -> None:
        super().__init__(
            message,
            code="INVALID_ARGUMENT",
            details={"argument": argument},
        )
        self.argument = argument


class IncompleteKeyError(InvalidArgumentError):
    """A complete key is required but an incomplete one was given."""

    def __init__(self, key: Any) -> None:
        super().__init__(
            f"key is incomplete, provide a complete key: {key}",
            argument="keys",
        )
        self.key = key


class InvalidOperationError(DatastoreError):
    """Operation does not match the current state.

    Raised when:
    - Commit or rollback is called outside a transaction
    - The client is used before connect()
    """

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_OPERATION")


class QueryConstructionError(DatastoreError):
    """Query builder received invalid input.

    The error is captured on the query when it is built and raised the
    first time the query is run.
    """

    def __init__(self, message: str, clause: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="QUERY_ERROR",
            details={"clause": clause},
        )
        self.clause = clause


class TransportError(DatastoreError):
    """Request did not reach the store or was rejected at the HTTP level.

    Attributes:
        url: Endpoint that was called
        status_code: HTTP status, or None for network failures
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            code="TRANSPORT_ERROR",
            details={"url": url, "status_code": status_code},
        )
        self.url = url
        self.status_code = status_code


class DecodeError(DatastoreError):
    """Response body could not be parsed into the expected message."""

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="DECODE_ERROR",
            details={"url": url},
        )
        self.url = url
