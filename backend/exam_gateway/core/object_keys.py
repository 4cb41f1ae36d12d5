"""Object Keys — deterministic, hierarchical storage paths for durable records.

Invariants:
    - Key = {exam_slug}/{hospital_id}/{patient_id}/{timestamp}[-{suffix}].{extension}
    - Without a suffix the key depends only on record attributes
    - The hierarchical prefix is identical with or without a suffix
"""

from exam_gateway.core.domain_types import ObjectKey
from exam_gateway.core.transform_exam import DurableRecord


PARQUET_EXTENSION: str = "parquet"


def object_key_prefix(record: DurableRecord) -> str:
    """Browsable prefix: exam kind, then hospital, then patient."""
    return f"{record.exam.value}/{record.hospital_id}/{record.patient_id}"


def build_object_key(
    record: DurableRecord,
    suffix: str | None = None,
    extension: str = PARQUET_EXTENSION,
) -> ObjectKey:
    stem = record.timestamp if not suffix else f"{record.timestamp}-{suffix}"
    return ObjectKey(f"{object_key_prefix(record)}/{stem}.{extension}")
