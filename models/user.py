from datetime import datetime
from pydantic import Field
from typing import Optional

from .base import BaseGolfModel


class Profile(BaseGolfModel):
    """Represents a golfer's profile."""
    id: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    username: Optional[str] = None
    handicap: Optional[float] = Field(None, ge=-10, le=54)
    is_admin: bool = False
    created_at: Optional[datetime] = None

    @property
    def display_name(self) -> Optional[str]:
        full = " ".join(p for p in (self.first_name, self.last_name) if p)
        return full or self.username or self.email
