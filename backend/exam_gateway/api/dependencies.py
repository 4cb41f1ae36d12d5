"""Route Dependencies — authentication gate and pipeline lookup.

Invariants:
    - authenticate_hospital runs before the body reaches the pipeline
    - The pipeline is built once by the lifespan and read from app.state
"""

from dataclasses import dataclass

from fastapi import Request

from exam_gateway.core.errors import AuthenticationError, ConfigurationError
from exam_gateway.services.exam_pipeline import ExamPipeline


HOSPITAL_ID_HEADER = "hospital_id"
HOSPITAL_KEY_HEADER = "hospital_key"


@dataclass(frozen=True)
class HospitalCredentials:
    hospital_id: str
    hospital_key: str

    def __repr__(self) -> str:
        return f"HospitalCredentials(hospital_id={self.hospital_id!r})"


async def authenticate_hospital(request: Request) -> HospitalCredentials:
    """Require non-empty hospital credential headers.

    Credential lookup against the hospital registry is not done here.
    """
    hospital_id = request.headers.get(HOSPITAL_ID_HEADER, "").strip()
    hospital_key = request.headers.get(HOSPITAL_KEY_HEADER, "").strip()
    if not hospital_id or not hospital_key:
        raise AuthenticationError("Missing hospital credentials")
    return HospitalCredentials(hospital_id=hospital_id, hospital_key=hospital_key)


async def get_pipeline(request: Request) -> ExamPipeline:
    """FastAPI dependency for the shared exam pipeline."""
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise ConfigurationError("pipeline", "Exam pipeline not initialized")
    return pipeline
