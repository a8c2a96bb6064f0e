"""
Internal HTTP transport for the datastore SDK.

This module provides the low-level request/response layer: it serializes a
protobuf request, POSTs it to one API method and parses the protobuf
response. It is internal to the SDK and should not be used directly by users.

Users should use DatastoreClient instead, which provides a clean Python API.

Failures are reported, never interpreted: there is no retry here. Retries,
timeouts and cancellation belong to the injected httpx transport.
"""

from __future__ import annotations

import logging

import httpx
from google.protobuf import message

from .config import DatastoreSettings
from .errors import DecodeError, TransportError

logger = logging.getLogger(__name__)


class Invoker:
    """Issues wire calls against the datastore HTTP API.

    The invoker borrows an httpx.AsyncClient; it neither opens nor closes it.
    """

    def __init__(self, http: httpx.AsyncClient, settings: DatastoreSettings) -> None:
        """Initialize the invoker.

        Args:
            http: Shared HTTP client used for every call
            settings: Endpoint and content-type settings
        """
        self._http = http
        self._settings = settings

    def endpoint_url(self, dataset_id: str, method: str) -> str:
        """URL for an API method ("runQuery", "lookup", "commit", ...)."""
        return self._settings.endpoint_url(dataset_id, method)

    async def call(
        self,
        url: str,
        request: message.Message,
        response: message.Message,
    ) -> None:
        """POST a request message and parse the reply into response.

        Raises:
            TransportError: On network failure or a non-2xx status
            DecodeError: If the body is not a valid response message
        """
        body = request.SerializeToString()
        content_type = self._settings.content_type
        logger.debug(f"POST {url} ({type(request).__name__}, {len(body)} bytes)")

        try:
            http_response = await self._http.post(
                url,
                content=body,
                headers={"Content-Type": content_type, "Accept": content_type},
            )
        except httpx.HTTPError as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        if not http_response.is_success:
            raise TransportError(
                f"{url} returned HTTP {http_response.status_code}",
                url=url,
                status_code=http_response.status_code,
            )

        try:
            response.ParseFromString(http_response.content)
        except message.DecodeError as e:
            raise DecodeError(
                f"Could not decode {type(response).__name__} from {url}: {e}",
                url=url,
            ) from e

        logger.debug(f"{url} replied with {len(http_response.content)} bytes")
