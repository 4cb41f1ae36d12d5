"""Durable Writer — encodes a DurableRecord as Parquet and uploads it under a deterministic key.

Invariants:
    - One record → one single-row Parquet object → one put_object call
    - Key computed before encoding; it is attached to every error raised here
    - Missing bucket → ConfigurationError, encode failure → EncodingError,
      upload failure → StorageError (cause preserved). Nothing is retried here.
    - Logs carry identifiers and the key, never samples

Design Decisions:
    - zstd level 1: favors throughput over ratio for ~240 KB of float32 samples
    - Leads stored as list<float32>, matching the acquisition precision of the devices.
      The round trip is lossy: validation sees float64, so a non-zero sample below
      float32 range (e.g. 1e-50) passes the flat-line check and is stored as 0.0
"""

import logging
from typing import Callable
from uuid import uuid4

import pyarrow as pa
import pyarrow.parquet as pq

from exam_gateway.core.domain_types import ECG_LEADS, ObjectKey
from exam_gateway.core.errors import (
    ConfigurationError,
    EncodingError,
    ErrorContext,
    ExamGatewayError,
)
from exam_gateway.core.object_keys import build_object_key
from exam_gateway.core.sink_protocols import ObjectStore
from exam_gateway.core.transform_exam import DurableRecord

logger = logging.getLogger(__name__)

PARQUET_CONTENT_TYPE = "application/vnd.apache.parquet"
PARQUET_COMPRESSION = "zstd"
PARQUET_COMPRESSION_LEVEL = 1

ECG_PARQUET_SCHEMA = pa.schema(
    [
        ("exam_type", pa.string()),
        ("timestamp", pa.string()),
        ("patient_id", pa.string()),
        ("hospital_id", pa.string()),
        ("hospital_key", pa.string()),
    ]
    + [(lead, pa.list_(pa.float32())) for lead in ECG_LEADS]
)


def record_context(record: DurableRecord, object_key: str | None = None) -> ErrorContext:
    return ErrorContext(
        exam_type=record.exam_type,
        patient_id=record.patient_id,
        hospital_id=record.hospital_id,
        object_key=object_key,
    )


def encode_parquet(record: DurableRecord) -> bytes:
    """Serialize the flattened record into a compressed single-row Parquet file."""
    try:
        table = pa.Table.from_pylist(
            [record.to_flat_dict()], schema=ECG_PARQUET_SCHEMA,
        )
        sink = pa.BufferOutputStream()
        pq.write_table(
            table, sink,
            compression=PARQUET_COMPRESSION,
            compression_level=PARQUET_COMPRESSION_LEVEL,
        )
    except (pa.ArrowException, TypeError, ValueError) as e:
        raise EncodingError(
            str(e), "parquet", context=record_context(record),
        ) from e
    return sink.getvalue().to_pybytes()


def _random_suffix() -> str:
    return uuid4().hex[:12]


class DurableWriter:
    """Writes durable records to one bucket through an injected ObjectStore."""

    def __init__(
        self,
        store: ObjectStore,
        bucket: str | None,
        unique_suffix: bool = False,
        suffix_factory: Callable[[], str] = _random_suffix,
    ):
        self.store = store
        self.bucket = bucket
        self.unique_suffix = unique_suffix
        self._suffix_factory = suffix_factory

    def object_key_for(self, record: DurableRecord) -> ObjectKey:
        suffix = self._suffix_factory() if self.unique_suffix else None
        return build_object_key(record, suffix)

    async def write(self, record: DurableRecord) -> ObjectKey:
        """Encode and upload; returns the key the object was written under."""
        if not self.bucket:
            raise ConfigurationError("BUCKET_NAME", context=record_context(record))

        key = self.object_key_for(record)
        data = encode_parquet(record)
        try:
            await self.store.put_object(
                self.bucket, key, data, content_type=PARQUET_CONTENT_TYPE,
            )
        except ExamGatewayError as e:
            ctx = record_context(record, key)
            ctx.debug_info = e.context.debug_info
            e.context = ctx
            logger.error(f"Durable write failed: {e.message}", extra=e.log_fields())
            raise

        logger.info(
            "Durable record stored",
            extra={
                "object_key": key,
                "exam_type": record.exam_type,
                "patient_id": record.patient_id,
                "hospital_id": record.hospital_id,
            },
        )
        return key

    async def read(self, key: str) -> pa.Table:
        """Fetch and decode a stored object (reconciliation and audits)."""
        if not self.bucket:
            raise ConfigurationError("BUCKET_NAME")
        data = await self.store.get_object(self.bucket, key)
        return pq.read_table(pa.BufferReader(data))
