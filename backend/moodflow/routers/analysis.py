"""
Analysis Router
===============
POST   /api/v1/analysis               — Run an AI analysis over a date range.
GET    /api/v1/analysis/saved         — Saved analyses, newest first.
POST   /api/v1/analysis/saved         — Save a successful analysis.
GET    /api/v1/analysis/saved/{id}    — One saved analysis.
DELETE /api/v1/analysis/saved/{id}    — Delete a saved analysis.

A failed analysis is still a 200: the body carries ``success=false`` and
an ``error`` message for the client's "Try Again" state.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel

from moodflow.models.analysis import (
    AnalysisRequest,
    AnalysisResult,
    AnalysisType,
    DateRange,
    SavedAnalysis,
)
from moodflow.screens.ai_analysis import AIAnalysisScreen
from moodflow.services.analysis import get_analysis_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/analysis", tags=["analysis"])


class SaveAnalysisRequest(BaseModel):
    analysis_type: AnalysisType
    date_range: DateRange
    result: AnalysisResult


@router.post("", response_model=AnalysisResult, summary="Run an AI analysis")
async def run_analysis(body: AnalysisRequest) -> AnalysisResult:
    screen = AIAnalysisScreen(get_analysis_service())
    screen.apply_request(body)
    return await screen.perform_analysis()


@router.get("/saved", response_model=list[SavedAnalysis], summary="List saved analyses")
async def list_saved() -> list[SavedAnalysis]:
    return get_analysis_service().list_saved()


@router.post(
    "/saved",
    response_model=SavedAnalysis,
    status_code=status.HTTP_201_CREATED,
    summary="Save an analysis",
)
async def save_analysis(body: SaveAnalysisRequest) -> SavedAnalysis:
    try:
        return get_analysis_service().save_analysis(body.date_range, body.analysis_type, body.result)
    except ValueError as exc:
        raise HTTPException(
            status_code=422,
            detail={"message": str(exc), "code": "analysis_not_successful"},
        ) from exc
    except RuntimeError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"message": "Failed to save analysis", "code": "db_error"},
        ) from exc


@router.get("/saved/{analysis_id}", response_model=SavedAnalysis, summary="Get a saved analysis")
async def get_saved(analysis_id: str) -> SavedAnalysis:
    saved = get_analysis_service().load_saved(analysis_id)
    if saved is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "Saved analysis not found", "code": "analysis_not_found"},
        )
    return saved


@router.delete(
    "/saved/{analysis_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a saved analysis",
)
async def delete_saved(analysis_id: str) -> None:
    if not get_analysis_service().delete_saved(analysis_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": "Saved analysis not found", "code": "analysis_not_found"},
        )
