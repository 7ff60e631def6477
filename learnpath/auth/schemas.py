"""Schemas describing the authenticated caller."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from learnpath.auth.permissions import UserRole, is_admin, is_staff


class AuthenticatedUser(BaseModel):
    """Caller identity extracted from a verified access token."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return is_admin(self.role)

    @property
    def is_staff(self) -> bool:
        return is_staff(self.role)
