"""
AI Analysis Provider
====================
Turns a date range of mood data into insights and recommendations using
the Claude API.

FLOW:
    1. Mood entries for the range are loaded (nothing to analyse -> failure)
    2. Notes are anonymised before they are written into the prompt, and
       left out entirely when ``include_notes`` is off
    3. Correlation factors and goals are appended only when their data
       flags are on
    4. Claude returns JSON: insights[] and recommendations[]
    5. The JSON is parsed leniently into an ``AnalysisResult``

The provider never raises. Every failure (kill switch, missing key, HTTP
error, unparseable response) comes back as ``AnalysisResult.failure`` with
a message the screen can show next to its "Try Again" button.
"""

from __future__ import annotations

import json
import logging
from datetime import date, timedelta
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from moodflow.config import Settings, get_settings
from moodflow.models.analysis import (
    AnalysisResult,
    AnalysisType,
    DataFlags,
    DateRange,
    Insight,
    InsightType,
    Recommendation,
    RecommendationPriority,
)
from moodflow.models.correlation import CorrelationData
from moodflow.models.goal import MoodGoal
from moodflow.models.mood import SEGMENT_NAMES, MoodEntry
from moodflow.services.anonymisation import AnonymisationService, get_anonymisation_service
from moodflow.services.correlation_data import (
    CorrelationDataService,
    format_duration,
    get_correlation_data_service,
    sleep_duration,
)
from moodflow.services.goals import GoalsService, get_goals_service
from moodflow.services.mood_data import MoodDataService, get_mood_data_service

logger = logging.getLogger(__name__)

CLAUDE_API_URL = "https://api.anthropic.com/v1/messages"

NO_DATA_MESSAGE = "No mood data found for the selected date range."
DISABLED_MESSAGE = "AI analysis is currently disabled."
NOT_CONFIGURED_MESSAGE = "AI analysis is not configured. Add an Anthropic API key to enable it."
UNREADABLE_MESSAGE = "Analysis failed: the AI response could not be read."


class AnalysisProvider(Protocol):
    """What the analysis screen needs from an AI backend."""

    async def perform_deep_dive_analysis(
        self, date_range: DateRange, data_flags: DataFlags
    ) -> AnalysisResult: ...

    async def perform_comparative_analysis(
        self, date_range: DateRange, data_flags: DataFlags
    ) -> AnalysisResult: ...

    async def perform_predictive_analysis(
        self, date_range: DateRange, data_flags: DataFlags
    ) -> AnalysisResult: ...

    async def perform_behavioral_analysis(
        self, date_range: DateRange, data_flags: DataFlags
    ) -> AnalysisResult: ...


# ---------------------------------------------------------------------------
# Prompt
# ---------------------------------------------------------------------------

_SYSTEM_PROMPT = """\
You are a supportive mood-pattern analyst for a personal mood tracking app. \
You receive a user's own mood log and return observations and practical \
suggestions.

Rules:
- Return ONLY valid JSON with no markdown formatting, no backticks, no explanation.
- Describe patterns in everyday language. Do not diagnose and do not use \
clinical labels.
- Notes have been anonymised; placeholders such as [NAME] or [PLACE] must \
not be guessed at or echoed back.
- Base every insight on the data provided. If the data is thin, say so.

Required JSON schema:
{
  "insights": [
    {"title": "<short title>", "description": "<1-3 sentences>", \
"type": "positive|negative|neutral", "action_steps": ["<optional>"]}
  ],
  "recommendations": [
    {"title": "<short title>", "description": "<actionable advice>", \
"priority": "high|medium|low", "action_steps": ["<concrete step>"]}
  ]
}
"""

_TYPE_INSTRUCTIONS = {
    AnalysisType.DEEP_DIVE: (
        "Provide a thorough analysis of this period: 3-5 KEY INSIGHTS about "
        "patterns or trends (time of day, weekdays, notable highs and lows), "
        "and 3-5 RECOMMENDATIONS for improving mood or keeping good patterns."
    ),
    AnalysisType.COMPARATIVE: (
        "Compare the CURRENT PERIOD with the PREVIOUS PERIOD of the same "
        "length. Provide 3-5 INSIGHTS about what changed (better, worse or "
        "stable, and likely reasons visible in the data) and 3-5 "
        "RECOMMENDATIONS that build on what improved."
    ),
    AnalysisType.PREDICTIVE: (
        "Based on the recurring patterns in this period, describe what the "
        "coming week is likely to look like. Provide 3-5 INSIGHTS that name "
        "the days or times of day likely to be harder or easier, and 3-5 "
        "RECOMMENDATIONS to prepare for them."
    ),
    AnalysisType.BEHAVIORAL: (
        "Focus on behaviours and habits: sleep, exercise, social time, work "
        "stress and anything mentioned in notes. Provide 3-5 INSIGHTS linking "
        "behaviours to mood and 3-5 RECOMMENDATIONS for habit changes, each "
        "with concrete action steps."
    ),
}


def _format_day(
    day: date,
    entries: dict[int, MoodEntry],
    include_notes: bool,
    anonymiser: AnonymisationService,
) -> list[str]:
    lines = [f"{day.isoformat()} ({day.strftime('%A')}):"]
    for segment in sorted(entries):
        entry = entries[segment]
        lines.append(f"  {SEGMENT_NAMES[segment]}: {entry.rating:.1f}/10")
        if include_notes and entry.note.strip():
            note = anonymiser.scrub_text(entry.note)
            if note:
                lines.append(f'    Note: "{note}"')
    return lines


def _format_factors(data: CorrelationData) -> Optional[str]:
    parts = []
    if data.weather:
        weather = data.weather.value
        if data.temperature is not None:
            weather += f" {data.temperature:.0f}°"
        parts.append(f"weather {weather}")
    if data.sleep_quality is not None:
        parts.append(f"sleep quality {data.sleep_quality:.0f}/10")
    if data.bedtime and data.wake_time:
        parts.append(f"slept {format_duration(sleep_duration(data.bedtime, data.wake_time))}")
    if data.exercise_level:
        parts.append(f"exercise {data.exercise_level.value}")
    if data.social_activity:
        parts.append(f"social {data.social_activity.value}")
    if data.work_stress is not None:
        parts.append(f"work stress {data.work_stress}/10")
    if data.custom_tags:
        parts.append("tags " + ", ".join(data.custom_tags))
    if not parts:
        return None
    return f"  {data.date.isoformat()}: " + "; ".join(parts)


def build_prompt(
    analysis_type: AnalysisType,
    date_range: DateRange,
    mood_days: dict[date, dict[int, MoodEntry]],
    data_flags: DataFlags,
    anonymiser: AnonymisationService,
    correlations: Optional[list[CorrelationData]] = None,
    goals: Optional[list[MoodGoal]] = None,
    previous_days: Optional[dict[date, dict[int, MoodEntry]]] = None,
) -> str:
    lines = [
        f"ANALYSIS TYPE: {analysis_type.label}",
        f"DATE RANGE: {date_range.start.isoformat()} to {date_range.end.isoformat()}",
        "MOOD SCALE: 1 (very poor) to 10 (excellent)",
        "TIME SEGMENTS: Morning (0), Midday (1), Evening (2)",
        "",
    ]

    if analysis_type is AnalysisType.COMPARATIVE:
        lines.append("PREVIOUS PERIOD:")
        if previous_days:
            for day in sorted(previous_days):
                lines.extend(_format_day(day, previous_days[day], data_flags.include_notes, anonymiser))
        else:
            lines.append("  (no entries)")
        lines.append("")
        lines.append("CURRENT PERIOD:")
    else:
        lines.append("MOOD DATA:")

    for day in sorted(mood_days):
        lines.extend(_format_day(day, mood_days[day], data_flags.include_notes, anonymiser))
    lines.append("")

    if data_flags.include_correlations and correlations:
        factor_lines = [line for line in map(_format_factors, correlations) if line]
        if factor_lines:
            lines.append("DAILY FACTORS:")
            lines.extend(factor_lines)
            lines.append("")

    if data_flags.include_goals and goals:
        lines.append("GOALS:")
        for goal in goals:
            status = "completed" if goal.is_completed else "active"
            lines.append(f"  {goal.title} ({goal.type.value}, {status})")
        lines.append("")

    lines.append(_TYPE_INSTRUCTIONS[analysis_type])
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Response parsing
# ---------------------------------------------------------------------------

def _extract_json(raw_response: str) -> str:
    text = raw_response.strip()

    # Strip markdown code fences if present
    if text.startswith("```"):
        text = text.split("\n", 1)[-1]
    if text.endswith("```"):
        text = text.rsplit("```", 1)[0]
    text = text.strip()

    # Find the JSON object if there's commentary around it
    if not text.startswith("{"):
        start = text.find("{")
        end = text.rfind("}") + 1
        if start != -1 and end > start:
            text = text[start:end]
    return text


def _enum_or_default(enum_cls, value: Any, default):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return default


def _action_steps(item: dict) -> list[str]:
    steps = item.get("action_steps", item.get("actionSteps")) or []
    if not isinstance(steps, list):
        return []
    return [str(s) for s in steps if str(s).strip()]


def parse_analysis_response(raw_response: str) -> AnalysisResult:
    """Parse Claude's JSON into an AnalysisResult.

    Unknown insight types become neutral and unknown priorities medium.
    Raises ``ValueError`` when no JSON object can be read.
    """
    parsed = json.loads(_extract_json(raw_response))
    if not isinstance(parsed, dict):
        raise ValueError("Expected a JSON object")

    insights = [
        Insight(
            type=_enum_or_default(InsightType, item.get("type"), InsightType.NEUTRAL),
            title=item.get("title") or "Insight",
            description=item.get("description") or "",
            action_steps=_action_steps(item),
        )
        for item in parsed.get("insights") or []
        if isinstance(item, dict)
    ]
    recommendations = [
        Recommendation(
            priority=_enum_or_default(
                RecommendationPriority, item.get("priority"), RecommendationPriority.MEDIUM
            ),
            title=item.get("title") or "Recommendation",
            description=item.get("description") or "",
            action_steps=_action_steps(item),
        )
        for item in parsed.get("recommendations") or []
        if isinstance(item, dict)
    ]
    return AnalysisResult(success=True, insights=insights, recommendations=recommendations)


# ---------------------------------------------------------------------------
# Claude provider
# ---------------------------------------------------------------------------

class ClaudeAnalysisProvider:
    """``AnalysisProvider`` backed by the Claude Messages API."""

    def __init__(
        self,
        settings: Settings | None = None,
        mood_data: MoodDataService | None = None,
        correlation_data: CorrelationDataService | None = None,
        goals: GoalsService | None = None,
        anonymiser: AnonymisationService | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._mood_data = mood_data or get_mood_data_service()
        self._correlation_data = correlation_data or get_correlation_data_service()
        self._goals = goals or get_goals_service()
        self._anonymiser = anonymiser or get_anonymisation_service()
        self._api_url = CLAUDE_API_URL

    async def perform_deep_dive_analysis(self, date_range: DateRange, data_flags: DataFlags) -> AnalysisResult:
        return await self.analyze(AnalysisType.DEEP_DIVE, date_range, data_flags)

    async def perform_comparative_analysis(self, date_range: DateRange, data_flags: DataFlags) -> AnalysisResult:
        return await self.analyze(AnalysisType.COMPARATIVE, date_range, data_flags)

    async def perform_predictive_analysis(self, date_range: DateRange, data_flags: DataFlags) -> AnalysisResult:
        return await self.analyze(AnalysisType.PREDICTIVE, date_range, data_flags)

    async def perform_behavioral_analysis(self, date_range: DateRange, data_flags: DataFlags) -> AnalysisResult:
        return await self.analyze(AnalysisType.BEHAVIORAL, date_range, data_flags)

    async def analyze(
        self,
        analysis_type: AnalysisType,
        date_range: DateRange,
        data_flags: DataFlags,
    ) -> AnalysisResult:
        if not self._settings.enable_ai_analysis:
            return AnalysisResult.failure(DISABLED_MESSAGE)
        if not self._settings.anthropic_api_key:
            return AnalysisResult.failure(NOT_CONFIGURED_MESSAGE)

        mood_days = self._mood_data.load_range(date_range.start, date_range.end)
        if not mood_days:
            return AnalysisResult.failure(NO_DATA_MESSAGE)

        previous_days = None
        if analysis_type is AnalysisType.COMPARATIVE:
            previous_end = date_range.start - timedelta(days=1)
            previous_start = previous_end - timedelta(days=date_range.day_count - 1)
            previous_days = self._mood_data.load_range(previous_start, previous_end)

        correlations = None
        if data_flags.include_correlations:
            correlations = self._correlation_data.load_range(date_range.start, date_range.end)

        goals = self._goals.load_goals() if data_flags.include_goals else None

        prompt = build_prompt(
            analysis_type,
            date_range,
            mood_days,
            data_flags,
            self._anonymiser,
            correlations=correlations,
            goals=goals,
            previous_days=previous_days,
        )

        try:
            raw = await self._call_claude_api(prompt)
        except httpx.HTTPStatusError as exc:
            logger.warning("Claude API returned %s for %s analysis", exc.response.status_code, analysis_type.value)
            return AnalysisResult.failure(f"Analysis failed: the AI service returned an error ({exc.response.status_code}).")
        except httpx.HTTPError:
            logger.exception("Claude API call failed for %s analysis", analysis_type.value)
            return AnalysisResult.failure("Analysis failed: could not reach the AI service.")
        except (ValueError, TypeError, AttributeError, KeyError):
            logger.exception("Claude API returned an unreadable body for %s analysis", analysis_type.value)
            return AnalysisResult.failure(UNREADABLE_MESSAGE)

        try:
            result = parse_analysis_response(raw)
        except (ValueError, ValidationError):
            logger.exception(
                "Failed to parse Claude analysis response: %s",
                raw[:200] if raw else "empty",
            )
            return AnalysisResult.failure(UNREADABLE_MESSAGE)

        logger.info(
            "%s analysis: %d insight(s), %d recommendation(s) over %d day(s)",
            analysis_type.label, len(result.insights), len(result.recommendations), len(mood_days),
        )
        return result

    async def _call_claude_api(self, prompt: str) -> str:
        headers = {
            "x-api-key": self._settings.anthropic_api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

        payload = {
            "model": self._settings.anthropic_model,
            "max_tokens": self._settings.anthropic_max_tokens,
            "system": _SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": prompt}],
        }

        async with httpx.AsyncClient(timeout=self._settings.anthropic_timeout_seconds) as client:
            response = await client.post(self._api_url, headers=headers, json=payload)
            response.raise_for_status()

        data = response.json()
        text_parts = [
            block["text"]
            for block in data.get("content", [])
            if block.get("type") == "text"
        ]
        return "\n".join(text_parts)


# ---------------------------------------------------------------------------
# Singleton
# ---------------------------------------------------------------------------

_default_provider: ClaudeAnalysisProvider | None = None


def get_analysis_provider() -> ClaudeAnalysisProvider:
    global _default_provider
    if _default_provider is None:
        _default_provider = ClaudeAnalysisProvider()
    return _default_provider
