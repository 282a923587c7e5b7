"""
AI Analysis Screen
==================
Controller for the analysis screen: pick a date range and an analysis
type, run it, show insights and recommendations, optionally save.

States rendered to the client:

    analyzing   request in flight
    empty       nothing run yet
    error       last run failed; the client offers "Try Again"
    result      last run succeeded
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Optional

from moodflow.models.analysis import (
    AnalysisRequest,
    AnalysisResult,
    AnalysisType,
    DataFlags,
    DateRange,
)
from moodflow.models.view import AnalysisView, StyledInsight, StyledRecommendation
from moodflow.services.analysis import (
    INSIGHT_STYLES,
    PRIORITY_STYLES,
    MoodAnalysisService,
    get_analysis_service,
)
from moodflow.services.date_ranges import QuickRange, default_range, quick_range, with_end, with_start

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error occurred"
SAVED_MESSAGE = "Analysis saved"
SAVE_FAILED_MESSAGE = "Failed to save analysis"


class AIAnalysisScreen:
    def __init__(
        self,
        analysis: MoodAnalysisService | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._analysis = analysis or get_analysis_service()
        self._today = today

        self.date_range: DateRange = default_range(today())
        self.analysis_type = AnalysisType.DEEP_DIVE
        self.data_flags = DataFlags()
        self.is_analyzing = False
        self.result: Optional[AnalysisResult] = None
        self.message: Optional[str] = None

    # -- selection -----------------------------------------------------------

    def select_type(self, analysis_type: AnalysisType) -> None:
        self.analysis_type = analysis_type

    def select_range(self, date_range: DateRange) -> None:
        self.date_range = date_range

    def select_quick_range(self, kind: QuickRange) -> None:
        self.date_range = quick_range(kind, self._today())

    def select_start(self, start: date) -> None:
        self.date_range = with_start(self.date_range, start)

    def select_end(self, end: date) -> None:
        self.date_range = with_end(self.date_range, end)

    def set_data_flags(self, **flags: bool) -> None:
        self.data_flags = self.data_flags.model_copy(update=flags)

    def apply_request(self, request: AnalysisRequest) -> None:
        self.analysis_type = request.analysis_type
        self.date_range = request.date_range
        self.data_flags = request.data_flags

    # -- running -------------------------------------------------------------

    async def perform_analysis(self) -> AnalysisResult:
        self.is_analyzing = True
        self.result = None
        self.message = None
        try:
            result = await self._analysis.perform(self.analysis_type, self.date_range, self.data_flags)
        except Exception as exc:
            logger.exception("%s analysis failed", self.analysis_type.label)
            result = AnalysisResult.failure(f"Analysis failed: {exc}")
        finally:
            self.is_analyzing = False
        self.result = result
        return result

    async def retry(self) -> AnalysisResult:
        return await self.perform_analysis()

    def save_current(self) -> bool:
        if self.result is None or not self.result.success:
            return False
        try:
            self._analysis.save_analysis(self.date_range, self.analysis_type, self.result)
        except (ValueError, RuntimeError):
            logger.exception("Failed to save %s analysis", self.analysis_type.label)
            self.message = SAVE_FAILED_MESSAGE
            return False
        self.message = SAVED_MESSAGE
        return True

    # -- output --------------------------------------------------------------

    @property
    def view_state(self) -> str:
        if self.is_analyzing:
            return "analyzing"
        if self.result is None:
            return "empty"
        if not self.result.success:
            return "error"
        return "result"

    def render(self) -> AnalysisView:
        state = self.view_state
        view = AnalysisView(
            state=state,
            analysis_type=self.analysis_type,
            date_range=self.date_range,
            day_count=self.date_range.day_count,
            message=self.message,
        )
        if state == "error":
            view.error = self.result.error or UNKNOWN_ERROR
        elif state == "result":
            view.result = self.result
            view.can_save = True
            view.insights = [
                StyledInsight(insight=i, **INSIGHT_STYLES[i.type]) for i in self.result.insights
            ]
            view.recommendations = [
                StyledRecommendation(recommendation=r, **PRIORITY_STYLES[r.priority])
                for r in self.result.recommendations
            ]
        return view
