"""Round and hole score endpoints."""

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import List, Optional

from database.db_manager import DatabaseManager
from api.dependencies import get_db
from api.schemas import HoleScoreUpdateRequest, RoundCreateRequest, RoundUpdateRequest
from models import HoleScore, Round

router = APIRouter()


async def _require_round(db: DatabaseManager, round_id: str) -> Round:
    round_ = await db.rounds.get_round(round_id)
    if not round_:
        raise HTTPException(404, "Round not found")
    return round_


@router.get("", response_model=List[Round])
async def list_rounds(
    user_id: Optional[str] = Query(None),
    course_id: Optional[str] = Query(None),
    event_id: Optional[str] = Query(None),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: DatabaseManager = Depends(get_db),
):
    return await db.rounds.list_rounds(
        user_id=user_id, course_id=course_id, event_id=event_id,
        limit=limit, offset=offset,
    )


@router.post("", status_code=201, response_model=Round)
async def create_round(req: RoundCreateRequest, db: DatabaseManager = Depends(get_db)):
    """Start a round. Event rounds need the event to be in progress."""
    return await db.rounds.create_round(Round(**req.model_dump(exclude_none=True)))


@router.get("/{round_id}", response_model=Round)
async def get_round(round_id: str, db: DatabaseManager = Depends(get_db)):
    return await _require_round(db, round_id)


@router.put("/{round_id}", response_model=Round)
async def update_round(
    round_id: str,
    req: RoundUpdateRequest,
    db: DatabaseManager = Depends(get_db),
):
    return await db.rounds.update_round(round_id, **req.model_dump(exclude_none=True))


@router.delete("/{round_id}", status_code=204)
async def delete_round(round_id: str, db: DatabaseManager = Depends(get_db)):
    if not await db.rounds.delete_round(round_id):
        raise HTTPException(404, "Round not found")


# --- hole scores ---

@router.get("/{round_id}/scores", response_model=List[HoleScore])
async def list_scores(round_id: str, db: DatabaseManager = Depends(get_db)):
    return (await _require_round(db, round_id)).scores


@router.post("/{round_id}/scores", status_code=201, response_model=HoleScore)
async def add_score(
    round_id: str,
    score: HoleScore,
    db: DatabaseManager = Depends(get_db),
):
    """Score one hole. Each hole can be scored once per round."""
    return await db.rounds.add_score(round_id, score)


@router.put("/{round_id}/scores/{score_id}", response_model=HoleScore)
async def update_score(
    round_id: str,
    score_id: str,
    req: HoleScoreUpdateRequest,
    db: DatabaseManager = Depends(get_db),
):
    updates = req.model_dump(exclude_none=True)
    if "putts" in updates and "strokes" in updates and updates["putts"] > updates["strokes"]:
        raise HTTPException(
            422, f"Putts ({updates['putts']}) cannot exceed strokes ({updates['strokes']})"
        )
    return await db.rounds.update_score(round_id, score_id, **updates)


@router.delete("/{round_id}/scores/{score_id}", status_code=204)
async def remove_score(round_id: str, score_id: str, db: DatabaseManager = Depends(get_db)):
    if not await db.rounds.remove_score(round_id, score_id):
        raise HTTPException(404, "Score not found")
