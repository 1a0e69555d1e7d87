"""Database models for sequential progress tracking.

Cassandra table definitions for:
- Chapter completions: one row per (student, chapter), written once with a
  lightweight transaction and never updated or deleted

Derived (not stored):
- ProgressSnapshot: chapter counts and completion percentage
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from learnpath.catalog.models import ensure_utc_aware


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Partition: (student_id, course_id) -> all completions of a student in a course
# Clustering: chapter_id. A chapter belongs to exactly one course, so the key
# also makes (student_id, chapter_id) unique.
CHAPTER_COMPLETIONS_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.chapter_completions (
    student_id UUID,
    course_id UUID,
    chapter_id UUID,
    completed_at TIMESTAMP,
    completed_by UUID,
    PRIMARY KEY ((student_id, course_id), chapter_id)
)
"""

PROGRESS_TABLES_CQL = [
    CHAPTER_COMPLETIONS_TABLE_CQL,
]


# ==============================================================================
# Helper Functions
# ==============================================================================


def compute_completion_percentage(completed: int, total: int) -> int:
    """Whole-number completion percentage, rounding halves up.

    Returns 0 when the course has no chapters.

    Examples:
        >>> compute_completion_percentage(1, 2)
        50
        >>> compute_completion_percentage(1, 8)  # 12.5 rounds up
        13
        >>> compute_completion_percentage(0, 0)
        0
    """
    if total <= 0:
        return 0
    # floor(100 * completed / total + 0.5) in integer arithmetic
    return (200 * completed + total) // (2 * total)


# ==============================================================================
# Entity Classes
# ==============================================================================


class CompletionRecord:
    """A student having finished one chapter.

    Attributes:
        student_id: Student UUID
        course_id: Course UUID
        chapter_id: Chapter UUID
        completed_at: Completion timestamp
        completed_by: Who recorded it (the student, or their mentor)
    """

    def __init__(
        self,
        student_id: UUID,
        course_id: UUID,
        chapter_id: UUID,
        completed_at: datetime | None = None,
        completed_by: UUID | None = None,
    ):
        self.student_id = student_id
        self.course_id = course_id
        self.chapter_id = chapter_id
        self.completed_at = ensure_utc_aware(completed_at) or datetime.now(UTC)
        self.completed_by = completed_by or student_id

    @classmethod
    def from_row(cls, row: Any) -> "CompletionRecord":
        """Create CompletionRecord instance from Cassandra row."""
        return cls(
            student_id=row.student_id,
            course_id=row.course_id,
            chapter_id=row.chapter_id,
            completed_at=row.completed_at,
            completed_by=row.completed_by,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "student_id": self.student_id,
            "course_id": self.course_id,
            "chapter_id": self.chapter_id,
            "completed_at": self.completed_at,
            "completed_by": self.completed_by,
        }

    def __repr__(self) -> str:
        return f"<CompletionRecord student={self.student_id} chapter={self.chapter_id}>"


class ProgressSnapshot:
    """Derived progress of a student in a course.

    ``completed_chapters`` only counts completions of chapters that are
    still part of the course, so it never exceeds ``total_chapters``.
    """

    def __init__(
        self,
        course_id: UUID,
        student_id: UUID,
        total_chapters: int,
        completed_chapters: int,
    ):
        self.course_id = course_id
        self.student_id = student_id
        self.total_chapters = total_chapters
        self.completed_chapters = completed_chapters

    @property
    def completion_percentage(self) -> int:
        return compute_completion_percentage(
            self.completed_chapters, self.total_chapters
        )

    @property
    def is_complete(self) -> bool:
        """All chapters done. A course with no chapters is never complete."""
        return (
            self.total_chapters > 0
            and self.completed_chapters == self.total_chapters
        )

    def __repr__(self) -> str:
        return (
            f"<ProgressSnapshot student={self.student_id} course={self.course_id} "
            f"{self.completed_chapters}/{self.total_chapters}>"
        )
