"""User profile model (user_profile table)."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UserProfile(BaseModel):
    """
    Display details for the signed-in user.

    Every column is nullable on the backend; a profile counts as complete
    once both names are filled in.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = None
    avatar_url: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.first_name) and bool(self.last_name)

    @property
    def display_name(self) -> str:
        full = " ".join(part for part in (self.first_name, self.last_name) if part)
        return full or (self.email or "")

    @property
    def initials(self) -> str:
        """First letters of the names, else of the email, else empty."""
        from_names = f"{(self.first_name or '')[:1]}{(self.last_name or '')[:1]}".upper()
        if from_names:
            return from_names
        return (self.email or "")[:1].upper()
