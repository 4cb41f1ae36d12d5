"""Exam Payload — immutable value for one submitted ECG exam.

Invariants:
    - Frozen: never mutated after deserialization
    - Leads stored as tuples so the value is hashable and cannot be appended to
    - Construction performs NO validation (validate_exam owns that)
"""

from dataclasses import dataclass, fields

from exam_gateway.core.domain_types import ECG_LEADS


@dataclass(frozen=True)
class ExamPayload:
    """One 12-lead ECG submission as received at the boundary."""
    patient_id: str
    hospital_id: str
    hospital_key: str
    lead_i: tuple[float, ...]
    lead_ii: tuple[float, ...]
    lead_iii: tuple[float, ...]
    lead_avr: tuple[float, ...]
    lead_avl: tuple[float, ...]
    lead_avf: tuple[float, ...]
    lead_v1: tuple[float, ...]
    lead_v2: tuple[float, ...]
    lead_v3: tuple[float, ...]
    lead_v4: tuple[float, ...]
    lead_v5: tuple[float, ...]
    lead_v6: tuple[float, ...]

    def leads(self) -> dict[str, tuple[float, ...]]:
        """Lead channels keyed by field name, in acquisition order."""
        return {name: getattr(self, name) for name in ECG_LEADS}

    def as_dict(self) -> dict:
        """Flat field mapping (identifiers + leads as lists)."""
        out: dict = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = list(value) if isinstance(value, tuple) else value
        return out

    def __repr__(self) -> str:
        # Samples and the hospital key stay out of logs and tracebacks
        return (
            f"ExamPayload(patient_id={self.patient_id!r}, "
            f"hospital_id={self.hospital_id!r}, leads={len(ECG_LEADS)})"
        )
