"""Profile and equipment (clubs, bag setups) endpoints."""

from fastapi import APIRouter, Depends, HTTPException
from typing import List

from database.db_manager import DatabaseManager
from api.dependencies import get_db
from api.schemas import BagInput, ClubInput, InvitationResponse, ProfileUpdateRequest
from models import Bag, Club, Profile

router = APIRouter()


async def _require_profile(db: DatabaseManager, user_id: str) -> Profile:
    profile = await db.profiles.get_profile(user_id)
    if not profile:
        raise HTTPException(404, "Profile not found")
    return profile


@router.get("/{user_id}", response_model=Profile)
async def get_profile(user_id: str, db: DatabaseManager = Depends(get_db)):
    return await _require_profile(db, user_id)


@router.put("/{user_id}", response_model=Profile)
async def update_profile(
    user_id: str,
    req: ProfileUpdateRequest,
    db: DatabaseManager = Depends(get_db),
):
    return await db.profiles.update_profile(user_id, **req.model_dump(exclude_none=True))


# --- clubs ---

@router.get("/{user_id}/clubs", response_model=List[Club])
async def list_clubs(user_id: str, db: DatabaseManager = Depends(get_db)):
    return await db.equipment.list_clubs(user_id)


@router.post("/{user_id}/clubs", status_code=201, response_model=Club)
async def add_club(user_id: str, req: ClubInput, db: DatabaseManager = Depends(get_db)):
    return await db.equipment.create_club(Club(user_id=user_id, **req.model_dump()))


@router.put("/{user_id}/clubs/{club_id}", response_model=Club)
async def update_club(
    user_id: str,
    club_id: str,
    req: ClubInput,
    db: DatabaseManager = Depends(get_db),
):
    return await db.equipment.update_club(club_id, Club(user_id=user_id, **req.model_dump()))


@router.delete("/{user_id}/clubs/{club_id}", status_code=204)
async def delete_club(user_id: str, club_id: str, db: DatabaseManager = Depends(get_db)):
    if not await db.equipment.delete_club(club_id):
        raise HTTPException(404, "Club not found")


# --- bags ---

@router.get("/{user_id}/bags", response_model=List[Bag])
async def list_bags(user_id: str, db: DatabaseManager = Depends(get_db)):
    return await db.equipment.list_bags(user_id)


@router.post("/{user_id}/bags", status_code=201, response_model=Bag)
async def create_bag(user_id: str, req: BagInput, db: DatabaseManager = Depends(get_db)):
    """Create a bag setup. A default bag replaces the user's previous default."""
    return await db.equipment.save_bag(Bag(user_id=user_id, **req.model_dump()))


@router.put("/{user_id}/bags/{bag_id}", response_model=Bag)
async def update_bag(
    user_id: str,
    bag_id: str,
    req: BagInput,
    db: DatabaseManager = Depends(get_db),
):
    return await db.equipment.save_bag(Bag(user_id=user_id, **req.model_dump()), bag_id)


@router.delete("/{user_id}/bags/{bag_id}", status_code=204)
async def delete_bag(user_id: str, bag_id: str, db: DatabaseManager = Depends(get_db)):
    if not await db.equipment.delete_bag(bag_id):
        raise HTTPException(404, "Bag not found")


# --- series invitations ---

@router.get("/{user_id}/invitations", response_model=List[InvitationResponse])
async def list_invitations(user_id: str, db: DatabaseManager = Depends(get_db)):
    """Series invitations the user has not answered yet."""
    await _require_profile(db, user_id)
    invitations = await db.series.list_user_invitations(user_id)
    return [InvitationResponse(participant=p, series=s) for p, s in invitations]
