"""FastAPI dependencies for certificates."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CertificateError, CertificationGate


async def get_certification_gate(request: Request) -> CertificationGate:
    """Get certification gate from app state."""
    gate = getattr(request.app.state, "certification_gate", None)
    if gate is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Certificate service not available",
        )
    return gate


CertificationGateDep = Annotated[CertificationGate, Depends(get_certification_gate)]


def handle_certificate_error(error: CertificateError) -> HTTPException:
    """Convert certificate errors to HTTP exceptions.

    Internal failures keep only a generic message; details are in the logs.
    """
    status_map = {
        "not_found": status.HTTP_404_NOT_FOUND,
        "forbidden": status.HTTP_403_FORBIDDEN,
        "not_eligible": status.HTTP_400_BAD_REQUEST,
        "already_issued": status.HTTP_409_CONFLICT,
    }

    status_code = status_map.get(error.code, status.HTTP_500_INTERNAL_SERVER_ERROR)

    if status_code >= 500:
        return HTTPException(
            status_code=status_code,
            detail={"message": "Certificate service error", "code": "internal"},
        )

    return HTTPException(
        status_code=status_code,
        detail={"message": error.message, "code": error.code, **error.extra},
    )
