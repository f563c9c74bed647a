"""Authentication-related Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel

from complaint_desk.db.enums import UserRole


class UserSession(BaseModel):
    """
    Session context for authenticated requests.

    Returned by the get_current_session dependency.
    """
    user_id: UUID
    role: UserRole  # Validated enum
    email: str
    name: str
