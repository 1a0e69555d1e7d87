"""Progress tracking API endpoints.

Provides routes for:
- Chapter completion by the student
- Chapter completion by the course mentor on a student's behalf
- Progress queries (student, mentor, admin) and mentor overview
"""

from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from learnpath.auth.dependencies import (
    MentorUser,
    ProgressViewer,
    StudentUser,
    UserDirectoryDep,
)
from learnpath.auth.permissions import UserRole, can_view_progress
from learnpath.catalog.dependencies import CatalogServiceDep
from learnpath.enrollments.dependencies import EnrollmentServiceDep

from .dependencies import ProgressTrackerDep, handle_progress_error
from .schemas import (
    CompletionRecordResponse,
    CourseProgressResponse,
    MarkChapterCompleteForStudentRequest,
    MarkChapterCompleteRequest,
    MarkChapterCompleteResponse,
    MentorProgressEntry,
    ProgressSnapshotResponse,
)
from .service import ProgressError


router = APIRouter(prefix="/v1/progress", tags=["progress"])


# ==============================================================================
# Completion Endpoints
# ==============================================================================


@router.post(
    "/mark-completed",
    response_model=MarkChapterCompleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark chapter as completed",
)
async def mark_chapter_completed(
    data: MarkChapterCompleteRequest,
    tracker: ProgressTrackerDep,
    user: StudentUser,
) -> MarkChapterCompleteResponse:
    """Mark a chapter as completed for the current student.

    All earlier chapters of the course must already be completed.
    """
    try:
        record = await tracker.mark_complete(
            student_id=user.id,
            course_id=data.course_id,
            chapter_id=data.chapter_id,
        )
        snapshot = await tracker.get_snapshot(user.id, data.course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return MarkChapterCompleteResponse(
        message="Chapter marked as completed",
        record=CompletionRecordResponse.from_entity(record),
        snapshot=ProgressSnapshotResponse.from_entity(snapshot),
    )


@router.post(
    "/mark-completed-for-student",
    response_model=MarkChapterCompleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark chapter as completed for a student",
)
async def mark_chapter_completed_for_student(
    data: MarkChapterCompleteForStudentRequest,
    tracker: ProgressTrackerDep,
    user: MentorUser,
) -> MarkChapterCompleteResponse:
    """Mentor marks a chapter as completed for a student of their course.

    The same sequential rule applies as for the student.
    """
    try:
        record = await tracker.mark_complete_for_student(
            mentor_id=user.id,
            student_id=data.student_id,
            course_id=data.course_id,
            chapter_id=data.chapter_id,
        )
        snapshot = await tracker.get_snapshot(data.student_id, data.course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e

    return MarkChapterCompleteResponse(
        message="Chapter marked as completed for student",
        record=CompletionRecordResponse.from_entity(record),
        snapshot=ProgressSnapshotResponse.from_entity(snapshot),
    )


# ==============================================================================
# Query Endpoints
# ==============================================================================


@router.get(
    "/mentor",
    response_model=list[MentorProgressEntry],
    summary="Progress of all students in the mentor's courses",
)
async def get_mentor_progress(
    tracker: ProgressTrackerDep,
    user: MentorUser,
) -> list[MentorProgressEntry]:
    """List every enrolled student's progress across the mentor's courses."""
    return await tracker.get_mentor_overview(user.id)


@router.get(
    "/{course_id}",
    response_model=CourseProgressResponse,
    summary="Get course progress",
)
async def get_course_progress(
    course_id: UUID,
    tracker: ProgressTrackerDep,
    catalog: CatalogServiceDep,
    enrollments: EnrollmentServiceDep,
    users: UserDirectoryDep,
    user: ProgressViewer,
    student_id: UUID | None = Query(
        None, description="Student UUID (mentor/admin; defaults to caller)"
    ),
) -> CourseProgressResponse:
    """Get a student's progress in a course.

    Students see only their own progress. Mentors see students enrolled in
    courses they own. Admins see anyone.
    """
    target_id = student_id or user.id

    course = await catalog.get_course(course_id)
    if course is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Course not found",
        )

    if user.role == UserRole.ADMIN and target_id != user.id:
        target = await users.get_user(target_id)
        if target is None or not target.is_student:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Student not found",
            )

    enrolled = await enrollments.is_enrolled(target_id, course_id)
    if not can_view_progress(
        viewer_role=user.role,
        viewer_id=user.id,
        student_id=target_id,
        course_mentor_id=course.mentor_id,
        student_enrolled=enrolled,
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied: not allowed to view this progress",
        )

    try:
        return await tracker.get_course_progress(target_id, course_id)
    except ProgressError as e:
        raise handle_progress_error(e) from e
