"""Role-based access control (RBAC) for LearnPath.

Roles are matched exactly by the route dependencies; none inherits another:
- ADMIN: may view any student's progress
- MENTOR: owns courses, views progress of students enrolled in them
- STUDENT: completes chapters and requests certificates
"""

from enum import Enum
from uuid import UUID


class UserRole(str, Enum):
    """User roles carried in the access token."""

    STUDENT = "student"
    MENTOR = "mentor"
    ADMIN = "admin"


def can_view_progress(
    viewer_role: UserRole | str,
    viewer_id: UUID,
    student_id: UUID,
    course_mentor_id: UUID | None,
    student_enrolled: bool,
) -> bool:
    """Decide whether a viewer may read a student's progress in a course.

    - student: only their own progress, only in a course they are enrolled in
    - mentor: only students enrolled in a course the mentor owns
    - admin: anything

    Args:
        viewer_role: Role of the authenticated caller
        viewer_id: Authenticated caller's ID
        student_id: Student whose progress is requested
        course_mentor_id: Owner of the course (None if unassigned)
        student_enrolled: Whether student_id is enrolled in the course

    Returns:
        True if access is allowed
    """
    role = viewer_role.value if isinstance(viewer_role, UserRole) else viewer_role

    if role == UserRole.ADMIN.value:
        return True
    if role == UserRole.MENTOR.value:
        return course_mentor_id == viewer_id and student_enrolled
    if role == UserRole.STUDENT.value:
        return viewer_id == student_id and student_enrolled
    return False
