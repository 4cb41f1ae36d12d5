"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - ECG_LEADS lists the 12 channel field names in acquisition order (single source of truth)
    - ECG_LEAD_LENGTH (5000) and MAX_AMPLITUDE (2.0) are the only physiological constants
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers for keys and ids: zero runtime cost
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

ObjectKey = NewType("ObjectKey", str)
MessageId = NewType("MessageId", str)


# ─── Exam Constants ──────────────────────────────────────────────

IDENTIFIER_LENGTH: int = 64
ECG_LEAD_LENGTH: int = 5000
MAX_AMPLITUDE: float = 2.0

IDENTIFIER_FIELDS: tuple[str, ...] = ("patient_id", "hospital_id", "hospital_key")

ECG_LEADS: tuple[str, ...] = (
    "lead_i", "lead_ii", "lead_iii",
    "lead_avr", "lead_avl", "lead_avf",
    "lead_v1", "lead_v2", "lead_v3", "lead_v4", "lead_v5", "lead_v6",
)


# ─── Enums ───────────────────────────────────────────────────────

class ExamType(str, Enum):
    """Exam kinds accepted by the gateway. Value is the object-key prefix."""
    ECG = "ecg_exam"

    @property
    def display_name(self) -> str:
        return _EXAM_DISPLAY_NAMES[self]


_EXAM_DISPLAY_NAMES: dict[ExamType, str] = {
    ExamType.ECG: "ECG Exam",
}


class Environment(str, Enum):
    """Deployment environment — selects the notification topic suffix."""
    DEV = "dev"
    PROD = "prod"


class ViolationReason(str, Enum):
    """Why a field failed validation."""
    INVALID_IDENTIFIER = "invalid_identifier"
    WRONG_LENGTH = "wrong_length"
    AMPLITUDE_OUT_OF_RANGE = "amplitude_out_of_range"
    FLAT_LINE = "flat_line"


class PipelineState(str, Enum):
    """Per-submission pipeline states. The last four rows are terminal."""
    RECEIVED = "received"
    VALIDATED = "validated"
    TRANSFORMED = "transformed"
    STORED = "stored"
    PUBLISHED = "published"
    COMPLETE = "complete"
    REJECTED_INVALID = "rejected_invalid"
    STORAGE_FAILED = "storage_failed"
    PUBLISH_FAILED = "publish_failed"


class OutcomeKind(str, Enum):
    """Outcome classes reported to the boundary layer."""
    ACCEPTED = "accepted"
    REJECTED_INVALID = "rejected_invalid"
    STORAGE_FAILED = "storage_failed"
    PUBLISH_FAILED = "publish_failed"
