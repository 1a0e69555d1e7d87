"""Certificate eligibility and issuance."""

from .renderer import CertificateRenderer
from .router import router
from .service import (
    AlreadyIssuedError,
    CertificateError,
    CertificateIssueError,
    CertificateNotFoundError,
    CertificationGate,
    NotEligibleError,
)


__all__ = [
    "AlreadyIssuedError",
    "CertificateError",
    "CertificateIssueError",
    "CertificateNotFoundError",
    "CertificateRenderer",
    "CertificationGate",
    "NotEligibleError",
    "router",
]
