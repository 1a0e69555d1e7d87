"""User directory lookups backed by the ``users`` table."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import structlog

from learnpath.auth.models import User
from learnpath.auth.permissions import UserRole


if TYPE_CHECKING:
    from cassandra.cluster import Session

logger = structlog.get_logger(__name__)


class UserDirectory:
    """Read access to registered users."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        self._get_user = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.users WHERE id = ?
        """)

        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users (id, email, name, role, created_at)
            VALUES (?, ?, ?, ?, ?)
        """)

    async def get_user(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        result = await self.session.aexecute(self._get_user, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    async def register_user(
        self,
        email: str,
        name: str,
        role: UserRole = UserRole.STUDENT,
        user_id: UUID | None = None,
    ) -> User:
        """Store a directory entry (used when syncing from the identity service)."""
        user = User(
            id=user_id or uuid4(),
            email=email,
            name=name,
            role=role.value,
            created_at=datetime.now(UTC),
        )
        await self.session.aexecute(
            self._insert_user,
            [user.id, user.email, user.name, user.role, user.created_at],
        )
        logger.info("user_registered", user_id=str(user.id), role=user.role)
        return user
