"""Pydantic schemas for certificates."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from .models import Certificate


class EligibilityResponse(BaseModel):
    """Whether a student may be issued a certificate for a course."""

    course_id: UUID
    eligible: bool
    total_chapters: int = Field(ge=0)
    completed_chapters: int = Field(ge=0)


class CertificateResponse(BaseModel):
    """Issued certificate.

    ``artifact_location`` is opaque; clients download through
    ``/v1/certificates/download/{certificate_id}``.
    """

    certificate_id: UUID
    student_id: UUID
    course_id: UUID
    course_title: str
    student_name: str
    artifact_location: str
    issued_at: datetime

    @classmethod
    def from_entity(cls, entity: Certificate) -> "CertificateResponse":
        """Create response from entity."""
        return cls(
            certificate_id=entity.certificate_id,
            student_id=entity.student_id,
            course_id=entity.course_id,
            course_title=entity.course_title,
            student_name=entity.student_name,
            artifact_location=entity.artifact_location,
            issued_at=entity.issued_at,
        )


class GenerateCertificateResponse(BaseModel):
    """Result of a successful issuance."""

    message: str
    certificate: CertificateResponse
