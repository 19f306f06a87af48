"""Scorecard image extraction endpoint."""

import json
import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from api.dependencies import get_extractor
from api.schemas import ExtractionResponse
from llm.prompts import ExtractTarget
from llm.scorecard_extractor import ExtractionResult

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_tee_colors(raw: Optional[str]) -> List[str]:
    """teeColors form field: a JSON array of strings. Anything else is ignored."""
    if not raw:
        return []
    try:
        colors = json.loads(raw)
    except ValueError:
        logger.warning("Could not parse teeColors %r", raw)
        return []
    if not isinstance(colors, list):
        return []
    return [str(c) for c in colors if str(c).strip()]


def parse_target(raw: str) -> ExtractTarget:
    try:
        return ExtractTarget(raw)
    except ValueError:
        allowed = ", ".join(t.value for t in ExtractTarget)
        raise HTTPException(400, f"Unknown extractType '{raw}'. Allowed: {allowed}")


async def run_extraction(
    file: Optional[UploadFile],
    target: ExtractTarget,
    tee_colors: List[str],
    extractor: Callable,
) -> ExtractionResult:
    """Validate the upload and run the (blocking) extractor in a worker thread."""
    if file is None:
        raise HTTPException(400, "No file provided in form data")
    if not (file.content_type or "").startswith("image/"):
        raise HTTPException(400, "File must be an image")
    image = await file.read()
    return await run_in_threadpool(
        extractor, image, file.content_type, target, tee_colors or None
    )


def failure_response(result: ExtractionResult) -> JSONResponse:
    return JSONResponse(
        status_code=result.status_code or 422,
        content={"success": False, "error": result.error},
    )


@router.post("", response_model=ExtractionResponse)
async def extract_scorecard(
    file: Optional[UploadFile] = File(None),
    extract_type: str = Form("all", alias="extractType"),
    tee_colors: Optional[str] = Form(None, alias="teeColors"),
    extractor: Callable = Depends(get_extractor),
):
    """Read course data from a scorecard image for one wizard step (or all of them)."""
    target = parse_target(extract_type)
    result = await run_extraction(file, target, parse_tee_colors(tee_colors), extractor)
    if not result.success:
        return failure_response(result)
    return ExtractionResponse(success=True, data=result.data)
