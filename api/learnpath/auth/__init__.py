"""Authentication, roles and user directory."""

from .models import AUTH_TABLES_CQL, User
from .permissions import UserRole, can_view_progress


__all__ = [
    "AUTH_TABLES_CQL",
    "User",
    "UserRole",
    "can_view_progress",
]
