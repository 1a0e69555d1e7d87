"""Database models for course enrollments.

A student is enrolled in a course by a mentor or an admin. The partition
is the course, so "is this student enrolled" is a single-row read and
"who is enrolled" is a single-partition scan.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from learnpath.catalog.models import ensure_utc_aware


ENROLLMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.course_enrollments (
    course_id UUID,
    student_id UUID,
    enrolled_by UUID,
    enrolled_at TIMESTAMP,
    PRIMARY KEY (course_id, student_id)
)
"""

ENROLLMENT_TABLES_CQL = [ENROLLMENT_TABLE_CQL]


class Enrollment:
    """Student enrollment in a course."""

    def __init__(
        self,
        course_id: UUID,
        student_id: UUID,
        enrolled_by: UUID | None = None,
        enrolled_at: datetime | None = None,
    ):
        self.course_id = course_id
        self.student_id = student_id
        self.enrolled_by = enrolled_by
        self.enrolled_at = ensure_utc_aware(enrolled_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Enrollment":
        """Create Enrollment instance from Cassandra row."""
        return cls(
            course_id=row.course_id,
            student_id=row.student_id,
            enrolled_by=row.enrolled_by,
            enrolled_at=row.enrolled_at,
        )

    def __repr__(self) -> str:
        return f"<Enrollment student={self.student_id} course={self.course_id}>"
