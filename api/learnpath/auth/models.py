"""Database models for the user directory.

Users are registered by the identity service; this service only reads
display names and roles (certificate rendering, mentor overviews).
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID

from learnpath.auth.permissions import UserRole


USER_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.users (
    id UUID PRIMARY KEY,
    email TEXT,
    name TEXT,
    role TEXT,
    created_at TIMESTAMP
)
"""

AUTH_TABLES_CQL = [USER_TABLE_CQL]


class User:
    """Directory entry for a user.

    Attributes:
        id: User UUID
        email: Email address
        name: Display name (printed on certificates)
        role: student, mentor or admin
        created_at: Registration timestamp
    """

    def __init__(
        self,
        id: UUID,
        email: str,
        name: str,
        role: str = UserRole.STUDENT.value,
        created_at: datetime | None = None,
    ):
        self.id = id
        self.email = email
        self.name = name
        self.role = role
        self.created_at = created_at or datetime.now(UTC)

    @property
    def is_student(self) -> bool:
        return self.role == UserRole.STUDENT.value

    @classmethod
    def from_row(cls, row: Any) -> "User":
        """Create User instance from Cassandra row."""
        return cls(
            id=row.id,
            email=row.email,
            name=row.name or "",
            role=row.role or UserRole.STUDENT.value,
            created_at=row.created_at,
        )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
