"""Enrollment service: who may make progress in which course."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

import structlog

from .models import Enrollment


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class EnrollmentService:
    """Service for course enrollment checks."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_enrollment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_enrollments
            WHERE course_id = ? AND student_id = ?
        """)

        self._get_course_enrollments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.course_enrollments
            WHERE course_id = ?
        """)

        self._insert_enrollment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.course_enrollments
            (course_id, student_id, enrolled_by, enrolled_at)
            VALUES (?, ?, ?, ?)
            IF NOT EXISTS
        """)

    async def is_enrolled(self, student_id: UUID, course_id: UUID) -> bool:
        """Check whether a student is enrolled in a course."""
        result = await self.session.aexecute(
            self._get_enrollment, [course_id, student_id]
        )
        return result.one() is not None

    async def list_course_students(self, course_id: UUID) -> list[Enrollment]:
        """List enrollments of a course."""
        rows = await self.session.aexecute(self._get_course_enrollments, [course_id])
        return [Enrollment.from_row(row) for row in rows]

    async def enroll(
        self,
        student_id: UUID,
        course_id: UUID,
        enrolled_by: UUID | None = None,
    ) -> Enrollment:
        """Enroll a student. Enrolling twice keeps the first enrollment."""
        enrollment = Enrollment(
            course_id=course_id,
            student_id=student_id,
            enrolled_by=enrolled_by,
            enrolled_at=datetime.now(UTC),
        )

        result = await self.session.aexecute(
            self._insert_enrollment,
            [
                enrollment.course_id,
                enrollment.student_id,
                enrollment.enrolled_by,
                enrollment.enrolled_at,
            ],
        )
        if not result.was_applied:
            existing = await self.session.aexecute(
                self._get_enrollment, [course_id, student_id]
            )
            return Enrollment.from_row(existing.one())

        logger.info(
            "student_enrolled",
            student_id=str(student_id),
            course_id=str(course_id),
        )
        return enrollment
