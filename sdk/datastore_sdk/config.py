"""
Configuration for the datastore SDK.

Uses pydantic-settings for environment variable loading. Every setting can
be overridden with a DATASTORE_-prefixed variable, e.g. DATASTORE_DATASET_ID.
"""

from pydantic import Field
from pydantic_settings import BaseSettings

DEFAULT_API_BASE = "https://www.googleapis.com/datastore/v1beta2"
PROTOBUF_CONTENT_TYPE = "application/x-protobuf"


class DatastoreSettings(BaseSettings):
    """Client configuration loaded from environment."""

    # Remote endpoint
    api_base: str = Field(default=DEFAULT_API_BASE, description="Datastore API base URL")
    dataset_id: str = Field(default="", description="Dataset all requests are scoped to")

    # HTTP
    timeout: float = Field(default=30.0, description="Request timeout seconds")
    content_type: str = Field(
        default=PROTOBUF_CONTENT_TYPE,
        description="Content type of request and response bodies",
    )

    model_config = {"env_prefix": "DATASTORE_"}

    def endpoint_url(self, dataset_id: str, method: str) -> str:
        """URL of one API method for a dataset."""
        return f"{self.api_base.rstrip('/')}/datasets/{dataset_id}/{method}"
