"""Database models for issued certificates.

Partition per student, clustered by course: the key itself allows at most
one certificate per (student, course), and listing or downloading a
student's certificates never leaves their own partition.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from learnpath.catalog.models import ensure_utc_aware


CERTIFICATES_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.certificates (
    student_id UUID,
    course_id UUID,
    certificate_id UUID,
    artifact_location TEXT,
    student_name TEXT,
    course_title TEXT,
    issued_at TIMESTAMP,
    PRIMARY KEY (student_id, course_id)
)
"""

CERTIFICATE_TABLES_CQL = [CERTIFICATES_TABLE_CQL]


class Certificate:
    """Issued completion credential.

    Attributes:
        certificate_id: Public certificate UUID (used for downloads)
        student_id: Student UUID
        course_id: Course UUID
        artifact_location: Opaque reference to the rendered PDF
        student_name: Name as printed on the certificate
        course_title: Course title as printed on the certificate
        issued_at: Issuance timestamp
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        artifact_location: str,
        certificate_id: UUID | None = None,
        student_name: str = "",
        course_title: str = "",
        issued_at: datetime | None = None,
    ):
        self.certificate_id = certificate_id or uuid4()
        self.student_id = student_id
        self.course_id = course_id
        self.artifact_location = artifact_location
        self.student_name = student_name
        self.course_title = course_title
        self.issued_at = ensure_utc_aware(issued_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Certificate":
        """Create Certificate instance from Cassandra row."""
        return cls(
            certificate_id=row.certificate_id,
            student_id=row.student_id,
            course_id=row.course_id,
            artifact_location=row.artifact_location,
            student_name=row.student_name or "",
            course_title=row.course_title or "",
            issued_at=row.issued_at,
        )

    def __repr__(self) -> str:
        return (
            f"<Certificate {self.certificate_id} student={self.student_id} "
            f"course={self.course_id}>"
        )
