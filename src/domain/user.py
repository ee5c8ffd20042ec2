"""User domain models."""

from pydantic import BaseModel, Field


# Constants for validation
MAX_NAME_LENGTH = 100


class User(BaseModel):
    """User data transfer object."""

    id: str = Field(..., description="Unique user ID from database")
    email: str = Field(..., description="Sign-in email address")
    name: str | None = Field(default=None, description="Display name")
    image: str | None = Field(default=None, description="Avatar URL")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")


class RequestIdentity(BaseModel):
    """Identity of the caller, resolved from the session for a single request."""

    user_id: str
    email: str
