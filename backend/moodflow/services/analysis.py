"""
Mood Analysis Service
=====================
Dispatches an analysis request to the AI provider by type and keeps the
user's saved analyses.

Saved analyses live under ``saved_analysis_{id}``; listing scans that key
prefix and sorts newest first.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Optional

from pydantic import ValidationError

from moodflow.db.store import KeyValueStore, get_store
from moodflow.models.analysis import (
    AnalysisResult,
    AnalysisType,
    DataFlags,
    DateRange,
    InsightType,
    RecommendationPriority,
    SavedAnalysis,
)
from moodflow.services.ai_provider import AnalysisProvider, get_analysis_provider

logger = logging.getLogger(__name__)

SAVED_PREFIX = "saved_analysis_"

# colour + material icon name, as the client renders them
INSIGHT_STYLES = {
    InsightType.POSITIVE: {"color": "green", "icon": "trending_up"},
    InsightType.NEGATIVE: {"color": "red", "icon": "trending_down"},
    InsightType.NEUTRAL: {"color": "blue", "icon": "insights"},
}

PRIORITY_STYLES = {
    RecommendationPriority.HIGH: {"color": "red", "icon": "priority_high"},
    RecommendationPriority.MEDIUM: {"color": "orange", "icon": "remove"},
    RecommendationPriority.LOW: {"color": "green", "icon": "low_priority"},
}


class MoodAnalysisService:
    def __init__(
        self,
        provider: AnalysisProvider | None = None,
        store: KeyValueStore | None = None,
    ) -> None:
        self._provider = provider or get_analysis_provider()
        self._store = store or get_store()

    async def perform(
        self,
        analysis_type: AnalysisType,
        date_range: DateRange,
        data_flags: DataFlags,
    ) -> AnalysisResult:
        dispatch = {
            AnalysisType.DEEP_DIVE: self._provider.perform_deep_dive_analysis,
            AnalysisType.COMPARATIVE: self._provider.perform_comparative_analysis,
            AnalysisType.PREDICTIVE: self._provider.perform_predictive_analysis,
            AnalysisType.BEHAVIORAL: self._provider.perform_behavioral_analysis,
        }
        return await dispatch[analysis_type](date_range, data_flags)

    # -- saved analyses ------------------------------------------------------

    @staticmethod
    def key_for(analysis_id: str) -> str:
        return f"{SAVED_PREFIX}{analysis_id}"

    def save_analysis(
        self,
        date_range: DateRange,
        analysis_type: AnalysisType,
        result: AnalysisResult,
        now: datetime | None = None,
    ) -> SavedAnalysis:
        if not result.success:
            raise ValueError("Only successful analyses can be saved")

        saved = SavedAnalysis(
            id=str(int(time.time() * 1000)),
            created_at=now or datetime.now(),
            start_date=date_range.start,
            end_date=date_range.end,
            analysis_type=analysis_type,
            result=result,
        )
        if not self._store.set(self.key_for(saved.id), saved.model_dump(mode="json")):
            raise RuntimeError("Failed to save analysis")
        logger.info("Saved %s analysis %s", analysis_type.value, saved.id)
        return saved

    def load_saved(self, analysis_id: str) -> Optional[SavedAnalysis]:
        raw = self._store.get(self.key_for(analysis_id))
        if not raw:
            return None
        try:
            return SavedAnalysis.model_validate(raw)
        except ValidationError:
            logger.warning("Discarding malformed saved analysis %s", analysis_id)
            return None

    def list_saved(self) -> list[SavedAnalysis]:
        analyses = []
        for key in self._store.keys(SAVED_PREFIX):
            saved = self.load_saved(key[len(SAVED_PREFIX):])
            if saved is not None:
                analyses.append(saved)
        analyses.sort(key=lambda a: a.created_at, reverse=True)
        return analyses

    def delete_saved(self, analysis_id: str) -> bool:
        if self._store.get(self.key_for(analysis_id)) is None:
            return False
        return self._store.delete(self.key_for(analysis_id))


_default_service: MoodAnalysisService | None = None


def get_analysis_service() -> MoodAnalysisService:
    global _default_service
    if _default_service is None:
        _default_service = MoodAnalysisService()
    return _default_service
