from datetime import datetime
from enum import Enum
from pydantic import Field
from typing import List, Optional

from .base import BaseGolfModel


class ClubType(str, Enum):
    DRIVER = "driver"
    WOOD = "wood"
    HYBRID = "hybrid"
    IRON = "iron"
    WEDGE = "wedge"
    PUTTER = "putter"


class Club(BaseGolfModel):
    """A club owned by a user."""
    id: Optional[str] = None
    user_id: str
    name: str = Field(..., min_length=1)
    brand: Optional[str] = None
    type: ClubType
    loft: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class Bag(BaseGolfModel):
    """A named bag setup referencing the user's clubs by id."""
    id: Optional[str] = None
    user_id: str
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    is_default: bool = False
    handicap: Optional[float] = Field(None, ge=-10, le=54)
    club_ids: List[str] = Field(default_factory=list, max_length=14)
    created_at: Optional[datetime] = None
