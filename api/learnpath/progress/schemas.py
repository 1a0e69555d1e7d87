"""Pydantic schemas for progress tracking.

Request and response models for:
- Chapter completion (by the student, or by their mentor)
- Progress snapshots and per-chapter details
- Mentor overview
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from learnpath.auth.schemas import UserSummary

from .models import CompletionRecord, ProgressSnapshot


# ==============================================================================
# Completion Schemas
# ==============================================================================


class MarkChapterCompleteRequest(BaseModel):
    """Request to mark a chapter as completed by the current student."""

    course_id: UUID = Field(..., description="Course UUID")
    chapter_id: UUID = Field(..., description="Chapter UUID")


class MarkChapterCompleteForStudentRequest(BaseModel):
    """Request from a mentor to mark a chapter completed for a student."""

    student_id: UUID = Field(..., description="Student UUID")
    course_id: UUID = Field(..., description="Course UUID")
    chapter_id: UUID = Field(..., description="Chapter UUID")


class CompletionRecordResponse(BaseModel):
    """Stored completion record."""

    model_config = ConfigDict(from_attributes=True)

    student_id: UUID
    course_id: UUID
    chapter_id: UUID
    completed_at: datetime
    completed_by: UUID

    @classmethod
    def from_entity(cls, entity: CompletionRecord) -> "CompletionRecordResponse":
        """Create response from entity."""
        return cls(**entity.to_dict())


# ==============================================================================
# Snapshot Schemas
# ==============================================================================


class ProgressSnapshotResponse(BaseModel):
    """Completion statistics of a student in a course."""

    course_id: UUID
    student_id: UUID
    total_chapters: int = Field(ge=0)
    completed_chapters: int = Field(ge=0)
    completion_percentage: int = Field(ge=0, le=100)

    @classmethod
    def from_entity(cls, entity: ProgressSnapshot) -> "ProgressSnapshotResponse":
        """Create response from entity."""
        return cls(
            course_id=entity.course_id,
            student_id=entity.student_id,
            total_chapters=entity.total_chapters,
            completed_chapters=entity.completed_chapters,
            completion_percentage=entity.completion_percentage,
        )


class MarkChapterCompleteResponse(BaseModel):
    """Result of a successful completion, with the updated snapshot."""

    message: str
    record: CompletionRecordResponse
    snapshot: ProgressSnapshotResponse


class ChapterProgressDetail(BaseModel):
    """Completion state of a single chapter."""

    chapter_id: UUID
    title: str
    order: int
    completed: bool
    completed_at: datetime | None = None


class CourseProgressResponse(ProgressSnapshotResponse):
    """Snapshot plus per-chapter details, in chapter order."""

    chapters: list[ChapterProgressDetail] = []


# ==============================================================================
# Mentor Overview Schemas
# ==============================================================================


class CourseSummary(BaseModel):
    """Course fields shown in mentor listings."""

    id: UUID
    title: str


class MentorProgressEntry(BaseModel):
    """Progress of one student in one of the mentor's courses."""

    student: UserSummary
    course: CourseSummary
    progress: ProgressSnapshotResponse
    chapters: list[ChapterProgressDetail] = []
