"""ECG Exam Route — receives one 12-lead ECG exam and runs it through the pipeline.

Invariants:
    - Auth gate → wire schema → pipeline, in that order
    - Non-accepted outcomes are raised as their ExamGatewayError; the global handler
      renders them (400 rejected, 503 storage failed, 502 publish failed)
"""

import logging

from fastapi import APIRouter, Depends

from exam_gateway.api.dependencies import (
    HospitalCredentials,
    authenticate_hospital,
    get_pipeline,
)
from exam_gateway.schemas.ecg_exam import EcgExamAccepted, EcgExamPayload
from exam_gateway.services.exam_pipeline import ExamPipeline

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/v1", tags=["exams"])


@router.post("/ecg_exam", response_model=EcgExamAccepted)
async def post_ecg_exam(
    body: EcgExamPayload,
    credentials: HospitalCredentials = Depends(authenticate_hospital),
    pipeline: ExamPipeline = Depends(get_pipeline),
):
    """Receive and process the ECG exam of a patient."""
    logger.info(
        "ECG exam received", extra={"hospital_id": credentials.hospital_id},
    )
    outcome = await pipeline.submit(body.to_domain())
    if not outcome.accepted:
        raise outcome.error
    return EcgExamAccepted(
        object_key=outcome.object_key,
        timestamp=outcome.durable.timestamp,
    )
