import json
from datetime import datetime
from pydantic import AliasChoices, Field, field_validator
from typing import List, Optional

from .base import BaseGolfModel


def parse_amenities(value) -> List[str]:
    """Normalize amenities from a list, a JSON array string, or comma-separated text."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    text = str(value).strip()
    if not text:
        return []
    if text.startswith("["):
        try:
            decoded = json.loads(text)
        except ValueError:
            decoded = None
        if isinstance(decoded, list):
            return [str(v).strip() for v in decoded if str(v).strip()]
    return [part.strip() for part in text.split(",") if part.strip()]


class Course(BaseGolfModel):
    """Golf course master record."""
    id: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    holes: int = Field(18, ge=1, le=36)
    par: Optional[int] = Field(72, ge=27, le=80)
    amenities: List[str] = Field(default_factory=list)
    website: Optional[str] = None
    phone_number: Optional[str] = Field(
        None, validation_alias=AliasChoices("phone_number", "phoneNumber"),
    )
    is_active: bool = Field(True, validation_alias=AliasChoices("is_active", "isActive"))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator('amenities', mode='before')
    @classmethod
    def normalize_amenities(cls, v):
        return parse_amenities(v)

    @property
    def display_location(self) -> Optional[str]:
        """Free-text location, or "City, State" built from the split fields."""
        if self.location:
            return self.location
        parts = [p for p in (self.city, self.state) if p]
        return ", ".join(parts) if parts else None
