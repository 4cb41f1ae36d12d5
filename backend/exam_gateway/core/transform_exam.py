"""Exam Transformation — derives the durable and notification records from a payload.

Invariants:
    - transform_exam is PURE: the clock is an argument, never read here
    - Both records carry the same timestamp string
    - NotificationRecord never carries samples or the hospital key
    - Timestamp format has no colons: YYYY-MM-DDTHHMMSS.ffffffZ (UTC)

Design Decisions:
    - Frozen dataclasses over dicts: a record cannot reach a sink with a field missing
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from exam_gateway.core.domain_types import Environment, ExamType
from exam_gateway.core.exam_payload import ExamPayload


TIMESTAMP_FORMAT: str = "%Y-%m-%dT%H%M%S.%fZ"

# Topic base names per exam kind; the deployment environment is appended.
EXAM_TOPICS: dict[ExamType, str] = {
    ExamType.ECG: "topic-ecg",
}


@dataclass(frozen=True)
class DurableRecord:
    """Full storage-bound representation of one accepted exam."""
    exam: ExamType
    timestamp: str
    payload: ExamPayload

    @property
    def exam_type(self) -> str:
        return self.exam.display_name

    @property
    def patient_id(self) -> str:
        return self.payload.patient_id

    @property
    def hospital_id(self) -> str:
        return self.payload.hospital_id

    def to_flat_dict(self) -> dict:
        """exam_type + timestamp + every payload field, one level deep."""
        return {
            "exam_type": self.exam_type,
            "timestamp": self.timestamp,
            **self.payload.as_dict(),
        }


@dataclass(frozen=True)
class NotificationRecord:
    """Minimal record published for downstream consumers."""
    topic: str
    exam_type: str
    timestamp: str
    patient_id: str
    hospital_id: str

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "exam_type": self.exam_type,
            "timestamp": self.timestamp,
            "patient_id": self.patient_id,
            "hospital_id": self.hospital_id,
        }


def format_timestamp(now: datetime) -> str:
    """Format as UTC with microseconds and a literal Z. Naive datetimes are taken as UTC."""
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Inverse of format_timestamp; returns an aware UTC datetime."""
    return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)


def resolve_topic(exam: ExamType, environment: Environment = Environment.DEV) -> str:
    """Notification topic for an exam kind in a deployment environment."""
    return f"{EXAM_TOPICS[exam]}-{environment.value}"


def transform_exam(
    payload: ExamPayload,
    now: datetime,
    environment: Environment = Environment.DEV,
    exam: ExamType = ExamType.ECG,
) -> tuple[DurableRecord, NotificationRecord]:
    """Build both derived records from a validated payload."""
    timestamp = format_timestamp(now)
    durable = DurableRecord(exam=exam, timestamp=timestamp, payload=payload)
    notification = NotificationRecord(
        topic=resolve_topic(exam, environment),
        exam_type=exam.display_name,
        timestamp=timestamp,
        patient_id=payload.patient_id,
        hospital_id=payload.hospital_id,
    )
    return durable, notification
