"""Certificate API endpoints.

Provides routes for:
- Eligibility check
- Certificate generation (once per course)
- Download and listing of the student's own certificates
"""

from uuid import UUID

from fastapi import APIRouter, status
from fastapi.responses import FileResponse

from learnpath.auth.dependencies import StudentUser

from .dependencies import CertificationGateDep, handle_certificate_error
from .schemas import (
    CertificateResponse,
    EligibilityResponse,
    GenerateCertificateResponse,
)
from .service import CertificateError


router = APIRouter(prefix="/v1/certificates", tags=["certificates"])


@router.get(
    "",
    response_model=list[CertificateResponse],
    summary="List my certificates",
)
async def list_certificates(
    gate: CertificationGateDep,
    user: StudentUser,
) -> list[CertificateResponse]:
    """List the current student's certificates, newest first."""
    certificates = await gate.list_certificates(user.id)
    return [CertificateResponse.from_entity(c) for c in certificates]


@router.get(
    "/eligibility/{course_id}",
    response_model=EligibilityResponse,
    summary="Check certificate eligibility",
)
async def check_eligibility(
    course_id: UUID,
    gate: CertificationGateDep,
    user: StudentUser,
) -> EligibilityResponse:
    """Check whether every chapter of the course is complete."""
    try:
        return await gate.check_eligibility(user.id, course_id)
    except CertificateError as e:
        raise handle_certificate_error(e) from e


@router.post(
    "/generate/{course_id}",
    response_model=GenerateCertificateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Generate certificate",
)
async def generate_certificate(
    course_id: UUID,
    gate: CertificationGateDep,
    user: StudentUser,
) -> GenerateCertificateResponse:
    """Issue the certificate for a fully completed course.

    Returns 409 with the existing certificate when one was already issued.
    """
    try:
        certificate = await gate.issue(user.id, course_id)
    except CertificateError as e:
        raise handle_certificate_error(e) from e

    return GenerateCertificateResponse(
        message="Certificate generated successfully",
        certificate=CertificateResponse.from_entity(certificate),
    )


@router.get(
    "/download/{certificate_id}",
    response_class=FileResponse,
    summary="Download certificate",
)
async def download_certificate(
    certificate_id: UUID,
    gate: CertificationGateDep,
    user: StudentUser,
) -> FileResponse:
    """Stream the PDF of one of the current student's certificates."""
    try:
        download = await gate.fetch_for_download(user.id, certificate_id)
    except CertificateError as e:
        raise handle_certificate_error(e) from e

    return FileResponse(
        download.path,
        media_type="application/pdf",
        filename=download.filename,
    )
