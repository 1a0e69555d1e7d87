"""Database models for the course catalog.

Cassandra table definitions for:
- Courses: course metadata with owning mentor
- Courses by mentor: lookup for mentor dashboards
- Chapters: clustered by chapter_order, so a partition read is already
  sorted and two chapters of a course can never share an order value
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID


def ensure_utc_aware(dt: datetime | None) -> datetime | None:
    """Ensure datetime is UTC-aware (Cassandra returns naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

COURSE_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses (
    id UUID PRIMARY KEY,
    title TEXT,
    description TEXT,
    mentor_id UUID,
    created_at TIMESTAMP
)
"""

COURSES_BY_MENTOR_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.courses_by_mentor (
    mentor_id UUID,
    course_id UUID,
    title TEXT,
    PRIMARY KEY (mentor_id, course_id)
)
"""

# Partition per course, clustered by order: the key is the uniqueness rule
CHAPTER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.chapters (
    course_id UUID,
    chapter_order INT,
    id UUID,
    title TEXT,
    description TEXT,
    video_url TEXT,
    created_at TIMESTAMP,
    PRIMARY KEY (course_id, chapter_order)
) WITH CLUSTERING ORDER BY (chapter_order ASC)
"""

CATALOG_TABLES_CQL = [
    COURSE_TABLE_CQL,
    COURSES_BY_MENTOR_TABLE_CQL,
    CHAPTER_TABLE_CQL,
]


# ==============================================================================
# Entity Classes
# ==============================================================================


class Course:
    """Course entity.

    Attributes:
        id: Course UUID
        title: Course title (printed on certificates)
        description: Course description
        mentor_id: Mentor owning the course
        created_at: Creation timestamp
    """

    def __init__(
        self,
        id: UUID,
        title: str,
        mentor_id: UUID | None = None,
        description: str | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id
        self.title = title
        self.mentor_id = mentor_id
        self.description = description
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Course":
        """Create Course instance from Cassandra row."""
        return cls(
            id=row.id,
            title=row.title or "",
            mentor_id=row.mentor_id,
            description=row.description,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Course {self.id} {self.title!r}>"


class Chapter:
    """Chapter reference within a course.

    ``order`` is an integer >= 1, unique within the course. Values need not
    be contiguous; only their relative ordering matters.
    """

    def __init__(
        self,
        id: UUID,
        course_id: UUID,
        order: int,
        title: str,
        description: str | None = None,
        video_url: str | None = None,
        created_at: datetime | None = None,
    ):
        self.id = id
        self.course_id = course_id
        self.order = order
        self.title = title
        self.description = description
        self.video_url = video_url
        self.created_at = ensure_utc_aware(created_at) or datetime.now(UTC)

    @classmethod
    def from_row(cls, row: Any) -> "Chapter":
        """Create Chapter instance from Cassandra row."""
        return cls(
            id=row.id,
            course_id=row.course_id,
            order=row.chapter_order,
            title=row.title or "",
            description=row.description,
            video_url=row.video_url,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<Chapter {self.order} {self.title!r} course={self.course_id}>"
