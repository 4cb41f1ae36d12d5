"""ECG Exam Schemas — closed Pydantic wire models for the ECG submission route.

Invariants:
    - Unknown fields are rejected (extra="forbid") before the exam validator runs
    - Only wire types are checked here: strings and lists of numbers
    - Lengths, amplitudes, flat-lines and hex identifiers are left to validate_exam,
      so the caller receives every domain violation at once
"""

from pydantic import BaseModel, ConfigDict, StrictFloat

from exam_gateway.core.domain_types import ECG_LEADS
from exam_gateway.core.exam_payload import ExamPayload


class EcgExamPayload(BaseModel):
    """Inbound ECG exam — 3 identifiers and 12 lead channels."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    patient_id: str
    hospital_id: str
    hospital_key: str
    lead_i: list[StrictFloat]
    lead_ii: list[StrictFloat]
    lead_iii: list[StrictFloat]
    lead_avr: list[StrictFloat]
    lead_avl: list[StrictFloat]
    lead_avf: list[StrictFloat]
    lead_v1: list[StrictFloat]
    lead_v2: list[StrictFloat]
    lead_v3: list[StrictFloat]
    lead_v4: list[StrictFloat]
    lead_v5: list[StrictFloat]
    lead_v6: list[StrictFloat]

    def to_domain(self) -> ExamPayload:
        leads = {name: tuple(float(s) for s in getattr(self, name)) for name in ECG_LEADS}
        return ExamPayload(
            patient_id=self.patient_id,
            hospital_id=self.hospital_id,
            hospital_key=self.hospital_key,
            **leads,
        )


class EcgExamAccepted(BaseModel):
    """Response for a submission that reached COMPLETE."""
    status: str = "ECG Exam Processed Successfully"
    object_key: str
    timestamp: str
