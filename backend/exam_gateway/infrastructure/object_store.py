"""S3 Object Store — boto3 adapter behind the ObjectStore protocol.

Invariants:
    - put_object is a single PutObject call: the object appears whole or not at all
    - Blocking boto3 calls run in a worker thread, never on the event loop
    - ClientError / BotoCoreError mapped to StorageError with the object key attached
    - No retries beyond botocore's own transport defaults
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from exam_gateway.config import Settings
from exam_gateway.core.errors import ErrorContext, StorageError

logger = logging.getLogger(__name__)

PARQUET_CONTENT_TYPE = "application/vnd.apache.parquet"


def create_s3_client(settings: Settings) -> Any:
    """Create a boto3 S3 client for the configured endpoint and region."""
    session_kwargs: dict[str, str] = {}
    if settings.s3_region:
        session_kwargs["region_name"] = settings.s3_region
    session = boto3.session.Session(**session_kwargs)
    return session.client("s3", endpoint_url=settings.s3_endpoint_url)


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


class S3ObjectStore:
    """Async facade over a shared boto3 S3 client (boto3 clients are thread-safe)."""

    def __init__(self, client: Any):
        self.client = client

    async def put_object(
        self,
        bucket: str,
        key: str,
        data: bytes,
        content_type: str = PARQUET_CONTENT_TYPE,
    ) -> None:
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=bucket, Key=key, Body=data, ContentType=content_type,
            )
        except ClientError as e:
            raise StorageError(
                f"{_error_code(e)} on s3://{bucket}/{key}", "put_object",
                cause=e, context=ErrorContext(object_key=key),
            ) from e
        except BotoCoreError as e:
            raise StorageError(
                str(e), "put_object",
                cause=e, context=ErrorContext(object_key=key),
            ) from e

    async def get_object(self, bucket: str, key: str) -> bytes:
        try:
            response = await asyncio.to_thread(
                self.client.get_object, Bucket=bucket, Key=key,
            )
            return await asyncio.to_thread(response["Body"].read)
        except ClientError as e:
            raise StorageError(
                f"{_error_code(e)} on s3://{bucket}/{key}", "get_object",
                cause=e, context=ErrorContext(object_key=key),
            ) from e
        except BotoCoreError as e:
            raise StorageError(
                str(e), "get_object",
                cause=e, context=ErrorContext(object_key=key),
            ) from e

    async def health_check(self, bucket: str) -> bool:
        """Check bucket reachability (for readiness probes)."""
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=bucket)
            return True
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Object store health check failed: {e}")
            return False
