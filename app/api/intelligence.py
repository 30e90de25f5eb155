"""API endpoints for user gap detection."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from supabase import Client

from app.chains.detect_user_gaps import generate_gap_analysis, generate_gap_question
from app.core.schemas_intelligence import GapAnalysisResult, GapQuestionResult
from app.db.supabase_client import get_supabase

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users/{user_id}/intelligence",
    tags=["intelligence"],
)


def get_datastore() -> Client:
    """Shared Supabase client; an unusable configuration is a 503."""
    try:
        return get_supabase()
    except RuntimeError as e:
        logger.exception("Supabase client unavailable")
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/question", response_model=GapQuestionResult)
async def get_gap_question(
    user_id: str,
    datastore: Client = Depends(get_datastore),
) -> GapQuestionResult:
    """Single most valuable gap-closing question for the user."""
    return await generate_gap_question(datastore, user_id)


@router.get("/gaps", response_model=GapAnalysisResult)
async def get_gap_analysis(
    user_id: str,
    datastore: Client = Depends(get_datastore),
) -> GapAnalysisResult:
    """Top three knowledge gaps, ranked, with a recommended one to ask about."""
    return await generate_gap_analysis(datastore, user_id)
