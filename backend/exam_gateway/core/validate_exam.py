"""Exam Validation — structural and physiological checks for an ECG payload.

Invariants:
    - validate_exam is PURE: returns violations, raises nothing, touches no IO
    - Every field is checked; violations accumulate in field order
    - At most one violation per lead: length, then amplitude, then flat-line
    - ±MAX_AMPLITUDE is accepted; anything beyond it (or non-finite) is rejected
"""

import math
from dataclasses import dataclass
from typing import Sequence

from exam_gateway.core.domain_types import (
    ECG_LEAD_LENGTH,
    IDENTIFIER_FIELDS,
    IDENTIFIER_LENGTH,
    MAX_AMPLITUDE,
    ViolationReason,
)
from exam_gateway.core.exam_payload import ExamPayload


_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

_MESSAGES: dict[ViolationReason, str] = {
    ViolationReason.INVALID_IDENTIFIER: (
        f"must be exactly {IDENTIFIER_LENGTH} hexadecimal characters"
    ),
    ViolationReason.WRONG_LENGTH: (
        f"lead must contain exactly {ECG_LEAD_LENGTH} samples"
    ),
    ViolationReason.AMPLITUDE_OUT_OF_RANGE: (
        f"lead samples must be between {-MAX_AMPLITUDE} and {MAX_AMPLITUDE}"
    ),
    ViolationReason.FLAT_LINE: "lead cannot be flat-line (all samples are zero)",
}


@dataclass(frozen=True)
class Violation:
    """One failed check on one payload field."""
    field: str
    reason: ViolationReason

    @property
    def message(self) -> str:
        return _MESSAGES[self.reason]

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "reason": self.reason.value,
            "message": self.message,
        }


def is_hex_identifier(value: str) -> bool:
    """True if value is exactly IDENTIFIER_LENGTH hex digits, any case."""
    return len(value) == IDENTIFIER_LENGTH and all(c in _HEX_DIGITS for c in value)


def check_lead(samples: Sequence[float]) -> ViolationReason | None:
    """Return the first failing lead check, or None if the lead is valid."""
    if len(samples) != ECG_LEAD_LENGTH:
        return ViolationReason.WRONG_LENGTH
    if any(not math.isfinite(s) or abs(s) > MAX_AMPLITUDE for s in samples):
        return ViolationReason.AMPLITUDE_OUT_OF_RANGE
    if all(s == 0.0 for s in samples):
        return ViolationReason.FLAT_LINE
    return None


def validate_exam(payload: ExamPayload) -> list[Violation]:
    """Check every identifier and lead. Empty list means the payload is valid."""
    violations: list[Violation] = []
    for name in IDENTIFIER_FIELDS:
        if not is_hex_identifier(getattr(payload, name)):
            violations.append(
                Violation(name, ViolationReason.INVALID_IDENTIFIER),
            )
    for name, samples in payload.leads().items():
        reason = check_lead(samples)
        if reason is not None:
            violations.append(Violation(name, reason))
    return violations
