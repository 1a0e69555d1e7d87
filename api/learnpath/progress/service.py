"""Sequential progress tracking service layer.

Business logic for:
- Chapter completion gated on all earlier chapters being complete
- Progress snapshots (counts and percentage) computed on demand
- Mentor-side completion and overview

ProgressTracker is the only writer of completion records.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from learnpath.auth.schemas import UserSummary
from learnpath.catalog.models import Chapter

from .models import CompletionRecord, ProgressSnapshot
from .schemas import (
    ChapterProgressDetail,
    CourseProgressResponse,
    CourseSummary,
    MentorProgressEntry,
    ProgressSnapshotResponse,
)


if TYPE_CHECKING:
    from cassandra.cluster import Session

    from learnpath.auth.service import UserDirectory
    from learnpath.catalog.service import CatalogService
    from learnpath.enrollments.service import EnrollmentService

logger = structlog.get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class ProgressError(Exception):
    """Base progress error.

    ``extra`` holds structured details the caller can act on.
    """

    def __init__(
        self,
        message: str,
        code: str = "progress_error",
        extra: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.extra = extra or {}
        super().__init__(message)


class ChapterNotFoundError(ProgressError):
    """Chapter does not exist or is not part of the course."""

    def __init__(self, message: str = "Chapter not found in course"):
        super().__init__(message, "not_found")


class CourseNotFoundError(ProgressError):
    """Course does not exist."""

    def __init__(self, message: str = "Course not found"):
        super().__init__(message, "not_found")


class NotEnrolledError(ProgressError):
    """Student not enrolled in the course."""

    def __init__(self, message: str = "Access denied: not enrolled in this course"):
        super().__init__(message, "forbidden")


class NotCourseMentorError(ProgressError):
    """Mentor does not own the course."""

    def __init__(self, message: str = "Access denied: not the mentor for this course"):
        super().__init__(message, "forbidden")


class PrerequisiteNotMetError(ProgressError):
    """An earlier chapter of the course is not complete yet."""

    def __init__(self, chapter: Chapter):
        self.chapter_id = chapter.id
        self.chapter_title = chapter.title
        self.chapter_order = chapter.order
        super().__init__(
            f'Cannot complete this chapter. Chapter "{chapter.title}" '
            f"(order {chapter.order}) must be completed first.",
            "prerequisite_not_met",
            extra={
                "blocking_chapter": {
                    "id": str(chapter.id),
                    "title": chapter.title,
                    "order": chapter.order,
                }
            },
        )


class AlreadyCompletedError(ProgressError):
    """Chapter already completed by the student."""

    def __init__(self, message: str = "Chapter already completed"):
        super().__init__(message, "already_completed")


# ==============================================================================
# Progress Tracker
# ==============================================================================


class ProgressTracker:
    """Service for sequential chapter completion."""

    def __init__(
        self,
        session: "Session",
        keyspace: str,
        catalog: "CatalogService",
        enrollments: "EnrollmentService",
        users: "UserDirectory",
    ):
        """Initialize with Cassandra session and collaborators."""
        self.session = session
        self.keyspace = keyspace
        self.catalog = catalog
        self.enrollments = enrollments
        self.users = users
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_course_completions = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.chapter_completions
            WHERE student_id = ? AND course_id = ?
        """)

        # LWT: the storage layer enforces one record per (student, chapter)
        self._insert_completion = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.chapter_completions
            (student_id, course_id, chapter_id, completed_at, completed_by)
            VALUES (?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

    # ==========================================================================
    # Completion
    # ==========================================================================

    async def mark_complete(
        self,
        student_id: UUID,
        course_id: UUID,
        chapter_id: UUID,
        completed_by: UUID | None = None,
    ) -> CompletionRecord:
        """Record that a student finished a chapter.

        Checks, first failure wins:
        1. chapter belongs to the course
        2. student is enrolled in the course
        3. every earlier chapter (by order) is complete
        4. the chapter is not complete yet

        Args:
            student_id: Student UUID
            course_id: Course UUID
            chapter_id: Chapter UUID
            completed_by: Recording user, when not the student (mentor)

        Returns:
            The new CompletionRecord

        Raises:
            ChapterNotFoundError: Chapter not in course
            NotEnrolledError: Student not enrolled
            PrerequisiteNotMetError: An earlier chapter is incomplete
            AlreadyCompletedError: Chapter already complete (also on a lost race)
        """
        chapters = await self.catalog.list_chapters(course_id)
        index = next(
            (i for i, chapter in enumerate(chapters) if chapter.id == chapter_id),
            None,
        )
        if index is None:
            raise ChapterNotFoundError

        if not await self.enrollments.is_enrolled(student_id, course_id):
            raise NotEnrolledError

        completed_ids = {
            record.chapter_id
            for record in await self.list_completions(student_id, course_id)
        }

        for earlier in chapters[:index]:
            if earlier.id not in completed_ids:
                logger.info(
                    "chapter_completion_blocked",
                    student_id=str(student_id),
                    chapter_id=str(chapter_id),
                    blocking_chapter_id=str(earlier.id),
                    blocking_order=earlier.order,
                )
                raise PrerequisiteNotMetError(earlier)

        if chapter_id in completed_ids:
            raise AlreadyCompletedError

        record = CompletionRecord(
            student_id=student_id,
            course_id=course_id,
            chapter_id=chapter_id,
            completed_at=datetime.now(UTC),
            completed_by=completed_by,
        )

        result = await self.session.aexecute(
            self._insert_completion,
            [
                record.student_id,
                record.course_id,
                record.chapter_id,
                record.completed_at,
                record.completed_by,
            ],
        )
        if not result.was_applied:
            # A concurrent request won the insert
            logger.info(
                "chapter_completion_race_lost",
                student_id=str(student_id),
                chapter_id=str(chapter_id),
            )
            raise AlreadyCompletedError

        logger.info(
            "chapter_completed",
            student_id=str(student_id),
            course_id=str(course_id),
            chapter_id=str(chapter_id),
            order=chapters[index].order,
            completed_by=str(record.completed_by),
        )
        return record

    async def mark_complete_for_student(
        self,
        mentor_id: UUID,
        student_id: UUID,
        course_id: UUID,
        chapter_id: UUID,
    ) -> CompletionRecord:
        """Mentor records a chapter completion for one of their students.

        Raises:
            CourseNotFoundError: Course does not exist
            NotCourseMentorError: Mentor does not own the course
            plus everything ``mark_complete`` raises
        """
        course = await self.catalog.get_course(course_id)
        if course is None:
            raise CourseNotFoundError
        if course.mentor_id != mentor_id:
            raise NotCourseMentorError

        return await self.mark_complete(
            student_id, course_id, chapter_id, completed_by=mentor_id
        )

    async def list_completions(
        self,
        student_id: UUID,
        course_id: UUID,
    ) -> list[CompletionRecord]:
        """Get all completion records of a student in a course."""
        rows = await self.session.aexecute(
            self._get_course_completions, [student_id, course_id]
        )
        return [CompletionRecord.from_row(row) for row in rows]

    # ==========================================================================
    # Snapshots
    # ==========================================================================

    @staticmethod
    def _build_snapshot(
        student_id: UUID,
        course_id: UUID,
        chapters: list[Chapter],
        completions: list[CompletionRecord],
    ) -> ProgressSnapshot:
        chapter_ids = {chapter.id for chapter in chapters}
        completed = sum(1 for record in completions if record.chapter_id in chapter_ids)
        return ProgressSnapshot(
            course_id=course_id,
            student_id=student_id,
            total_chapters=len(chapters),
            completed_chapters=completed,
        )

    @staticmethod
    def _chapter_details(
        chapters: list[Chapter],
        completions: list[CompletionRecord],
    ) -> list[ChapterProgressDetail]:
        by_chapter = {record.chapter_id: record for record in completions}
        return [
            ChapterProgressDetail(
                chapter_id=chapter.id,
                title=chapter.title,
                order=chapter.order,
                completed=chapter.id in by_chapter,
                completed_at=(
                    by_chapter[chapter.id].completed_at
                    if chapter.id in by_chapter
                    else None
                ),
            )
            for chapter in chapters
        ]

    async def get_snapshot(self, student_id: UUID, course_id: UUID) -> ProgressSnapshot:
        """Compute the progress snapshot of a student in a course.

        Read-only. A course without chapters yields a zero snapshot.

        Raises:
            CourseNotFoundError: Course does not exist
        """
        if await self.catalog.get_course(course_id) is None:
            raise CourseNotFoundError

        chapters = await self.catalog.list_chapters(course_id)
        completions = await self.list_completions(student_id, course_id)
        return self._build_snapshot(student_id, course_id, chapters, completions)

    async def get_course_progress(
        self,
        student_id: UUID,
        course_id: UUID,
    ) -> CourseProgressResponse:
        """Snapshot plus per-chapter completion state, in chapter order.

        Raises:
            CourseNotFoundError: Course does not exist
        """
        if await self.catalog.get_course(course_id) is None:
            raise CourseNotFoundError

        chapters = await self.catalog.list_chapters(course_id)
        completions = await self.list_completions(student_id, course_id)
        snapshot = self._build_snapshot(student_id, course_id, chapters, completions)

        return CourseProgressResponse(
            **ProgressSnapshotResponse.from_entity(snapshot).model_dump(),
            chapters=self._chapter_details(chapters, completions),
        )

    async def get_mentor_overview(self, mentor_id: UUID) -> list[MentorProgressEntry]:
        """Progress of every student enrolled in the mentor's courses.

        Each entry carries the snapshot plus per-chapter completion state.
        """
        entries: list[MentorProgressEntry] = []

        for course in await self.catalog.list_mentor_courses(mentor_id):
            chapters = await self.catalog.list_chapters(course.id)

            for enrollment in await self.enrollments.list_course_students(course.id):
                student = await self.users.get_user(enrollment.student_id)
                if student is None:
                    logger.warning(
                        "enrolled_student_missing",
                        student_id=str(enrollment.student_id),
                        course_id=str(course.id),
                    )
                    continue

                completions = await self.list_completions(student.id, course.id)
                snapshot = self._build_snapshot(
                    student.id, course.id, chapters, completions
                )
                entries.append(
                    MentorProgressEntry(
                        student=UserSummary(
                            id=student.id, name=student.name, email=student.email
                        ),
                        course=CourseSummary(id=course.id, title=course.title),
                        progress=ProgressSnapshotResponse.from_entity(snapshot),
                        chapters=self._chapter_details(chapters, completions),
                    )
                )

        return entries
