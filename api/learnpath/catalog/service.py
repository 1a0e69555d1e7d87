"""Course catalog service.

Read side used by progress tracking and certification:
- Courses and their owning mentor
- Chapters of a course, ascending by order

Chapters are always read fresh from Cassandra; nothing is cached across
requests.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import structlog

from .models import Chapter, Course


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class CatalogError(Exception):
    """Base catalog error."""

    def __init__(self, message: str, code: str = "catalog_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class DuplicateChapterOrderError(CatalogError):
    """Another chapter of the course already uses this order."""

    def __init__(self, order: int):
        super().__init__(
            f"A chapter with order {order} already exists in this course",
            "duplicate_order",
        )


class CatalogService:
    """Service for course and chapter lookups."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient execution."""
        self._get_course = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses WHERE id = ?
        """)

        self._insert_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses
            (id, title, description, mentor_id, created_at)
            VALUES (?, ?, ?, ?, ?)
        """)

        self._get_mentor_courses = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.courses_by_mentor WHERE mentor_id = ?
        """)

        self._insert_mentor_course = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.courses_by_mentor (mentor_id, course_id, title)
            VALUES (?, ?, ?)
        """)

        self._get_chapters = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.chapters WHERE course_id = ?
        """)

        self._insert_chapter = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.chapters
            (course_id, chapter_order, id, title, description, video_url, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            IF NOT EXISTS
        """)

    # ==========================================================================
    # Courses
    # ==========================================================================

    async def get_course(self, course_id: UUID) -> Course | None:
        """Get course by ID."""
        result = await self.session.aexecute(self._get_course, [course_id])
        row = result.one()
        return Course.from_row(row) if row else None

    async def list_mentor_courses(self, mentor_id: UUID) -> list[Course]:
        """List courses owned by a mentor."""
        rows = await self.session.aexecute(self._get_mentor_courses, [mentor_id])
        return [
            Course(id=row.course_id, title=row.title or "", mentor_id=mentor_id)
            for row in rows
        ]

    async def create_course(
        self,
        title: str,
        mentor_id: UUID | None = None,
        description: str | None = None,
    ) -> Course:
        """Create a course (dual write when a mentor is assigned)."""
        course = Course(
            id=uuid4(),
            title=title,
            mentor_id=mentor_id,
            description=description,
            created_at=datetime.now(UTC),
        )

        await self.session.aexecute(
            self._insert_course,
            [
                course.id,
                course.title,
                course.description,
                course.mentor_id,
                course.created_at,
            ],
        )
        if mentor_id is not None:
            await self.session.aexecute(
                self._insert_mentor_course, [mentor_id, course.id, course.title]
            )

        logger.info("course_created", course_id=str(course.id))
        return course

    # ==========================================================================
    # Chapters
    # ==========================================================================

    async def list_chapters(self, course_id: UUID) -> list[Chapter]:
        """List chapters of a course, ascending by order."""
        rows = await self.session.aexecute(self._get_chapters, [course_id])
        chapters = [Chapter.from_row(row) for row in rows]
        # Clustering order already sorts; keep the contract explicit
        chapters.sort(key=lambda c: c.order)
        return chapters

    async def add_chapter(
        self,
        course_id: UUID,
        title: str,
        order: int,
        description: str | None = None,
        video_url: str | None = None,
    ) -> Chapter:
        """Add a chapter at the given order.

        Raises:
            ValueError: If order < 1
            DuplicateChapterOrderError: If the order is already taken
        """
        if order < 1:
            msg = "Chapter order must be >= 1"
            raise ValueError(msg)

        chapter = Chapter(
            id=uuid4(),
            course_id=course_id,
            order=order,
            title=title,
            description=description,
            video_url=video_url,
            created_at=datetime.now(UTC),
        )

        result = await self.session.aexecute(
            self._insert_chapter,
            [
                chapter.course_id,
                chapter.order,
                chapter.id,
                chapter.title,
                chapter.description,
                chapter.video_url,
                chapter.created_at,
            ],
        )
        if not result.was_applied:
            raise DuplicateChapterOrderError(order)

        logger.info(
            "chapter_added",
            course_id=str(course_id),
            chapter_id=str(chapter.id),
            order=order,
        )
        return chapter
