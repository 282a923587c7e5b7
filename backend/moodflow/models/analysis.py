"""
AI Analysis Schemas
===================
Contract between the analysis screen and whatever AI provider backs it.

The provider always answers with an ``AnalysisResult``. A failure is a
result with ``success=False`` and a human-readable ``error``, never an
exception, so the screen can show the message and a "Try Again" button.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class InsightType(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class RecommendationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AnalysisType(str, Enum):
    DEEP_DIVE = "deep_dive"
    COMPARATIVE = "comparative"
    PREDICTIVE = "predictive"
    BEHAVIORAL = "behavioral"

    @property
    def label(self) -> str:
        return {
            AnalysisType.DEEP_DIVE: "Deep Dive",
            AnalysisType.COMPARATIVE: "Comparative",
            AnalysisType.PREDICTIVE: "Predictive",
            AnalysisType.BEHAVIORAL: "Behavioral",
        }[self]


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------

class DateRange(BaseModel):
    start: date
    end: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self

    @property
    def day_count(self) -> int:
        return (self.end - self.start).days + 1


class DataFlags(BaseModel):
    """Which data sources the provider may include in its prompt."""

    include_notes: bool = True
    include_correlations: bool = True
    include_goals: bool = False


class AnalysisRequest(BaseModel):
    analysis_type: AnalysisType = AnalysisType.DEEP_DIVE
    date_range: DateRange
    data_flags: DataFlags = Field(default_factory=DataFlags)


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

class Insight(BaseModel):
    type: InsightType = InsightType.NEUTRAL
    title: str = "Insight"
    description: str = ""
    action_steps: list[str] = Field(default_factory=list)


class Recommendation(BaseModel):
    priority: RecommendationPriority = RecommendationPriority.MEDIUM
    title: str = "Recommendation"
    description: str = ""
    action_steps: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    success: bool
    insights: list[Insight] = Field(default_factory=list)
    recommendations: list[Recommendation] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def failure(cls, message: str) -> "AnalysisResult":
        return cls(success=False, error=message)


class SavedAnalysis(BaseModel):
    id: str
    created_at: datetime
    start_date: date
    end_date: date
    analysis_type: AnalysisType = AnalysisType.DEEP_DIVE
    result: AnalysisResult
