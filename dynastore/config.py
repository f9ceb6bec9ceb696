"""Connection settings for dynastore clients.

DynastoreSettings reads its defaults from the environment so the same code
can target AWS, DynamoDB Local or LocalStack without changes:

    AWS_REGION                 region name (default us-east-1)
    DYNAMODB_ENDPOINT_URL      endpoint override, e.g. http://localhost:8000
    DYNAMODB_TABLE_PREFIX      prefix prepended to every table name
    DYNAMODB_MAX_RETRIES       botocore retry attempts (default 3)

Retrying throttled or failed requests is configured here, on the botocore
client. Stores never retry.
"""

import os
from typing import TYPE_CHECKING, Any

import aioboto3
import boto3
from botocore.config import Config
from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource


class DynastoreSettings(BaseModel):
    """Configuration for DynamoDB connections."""

    model_config = ConfigDict(frozen=True)

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name",
    )
    endpoint_url: str | None = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (for local development)",
    )
    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix to add to all table names",
    )
    max_retries: int = Field(
        default_factory=lambda: int(os.getenv("DYNAMODB_MAX_RETRIES", "3")),
        ge=0,
        description="Number of retry attempts for failed requests",
    )
    retry_mode: str = Field(default="standard", description="botocore retry mode")
    connect_timeout: float = Field(default=10.0, gt=0, description="Connect timeout in seconds")
    read_timeout: float = Field(default=30.0, gt=0, description="Read timeout in seconds")
    max_pool_connections: int = Field(
        default=10, gt=0, description="Maximum number of connections in the connection pool"
    )

    @field_validator("region_name")
    @classmethod
    def validate_region(cls, v: str) -> str:
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator("retry_mode")
    @classmethod
    def validate_retry_mode(cls, v: str) -> str:
        valid_modes = ("legacy", "standard", "adaptive")
        if v not in valid_modes:
            raise ValueError(f"Retry mode must be one of: {', '.join(valid_modes)}")
        return v

    @classmethod
    def for_local_development(
        cls, endpoint_url: str = "http://localhost:8000"
    ) -> "DynastoreSettings":
        """Settings for DynamoDB Local."""
        return cls(region_name="us-east-1", endpoint_url=endpoint_url)

    def table_name(self, base_name: str) -> str:
        """Return the full table name with the configured prefix."""
        return f"{self.table_prefix}{base_name}"

    def botocore_config(self) -> Config:
        return Config(
            retries={"max_attempts": self.max_retries, "mode": self.retry_mode},
            connect_timeout=self.connect_timeout,
            read_timeout=self.read_timeout,
            max_pool_connections=self.max_pool_connections,
        )

    def resource_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for boto3/aioboto3 `resource("dynamodb", ...)` calls."""
        kwargs: dict[str, Any] = {
            "region_name": self.region_name,
            "config": self.botocore_config(),
        }
        if self.endpoint_url:
            kwargs["endpoint_url"] = self.endpoint_url
        return kwargs

    def create_resource(self, session: boto3.Session | None = None) -> "DynamoDBServiceResource":
        """Create a boto3 DynamoDB service resource from these settings."""
        session = session or boto3.Session()
        return session.resource("dynamodb", **self.resource_kwargs())

    def async_resource(self, session: aioboto3.Session | None = None) -> Any:
        """Return an aioboto3 resource context manager built from these settings.

        Example:
            async with settings.async_resource() as resource:
                client = AioBoto3StoreClient(resource)

        """
        session = session or aioboto3.Session()
        return session.resource("dynamodb", **self.resource_kwargs())


__all__ = [
    "DynastoreSettings",
]
