"""Pydantic schemas for authenticated callers."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from learnpath.auth.permissions import UserRole


class AuthenticatedUser(BaseModel):
    """Identity extracted from a validated access token."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str | None = None
    role: UserRole


class UserSummary(BaseModel):
    """Public user fields used in progress listings."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
