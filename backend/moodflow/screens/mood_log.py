"""
Mood Log Screen
===============
Controller for the main screen: one day, three segments, a mood slider and
a note per segment, over a background gradient that follows the day's mood.

Navigation between segments runs as a blur transition:

    blur in -> switch segment -> settle -> load segment data
            -> animate slider to the stored rating -> refresh gradient
            -> blur out

Only the current, open segment is editable. Slider releases save straight
away; note edits are saved after the user stops typing.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Awaitable, Callable, Optional

from moodflow.models.mood import NEUTRAL_RATING, SEGMENT_NAMES
from moodflow.models.view import GradientView, MoodLogView
from moodflow.services.animation import AnimationController, BlurTransition, SliderAnimation
from moodflow.services.gradient import (
    LinearGradient,
    MoodGradientService,
    fallback_gradient,
    lerp_gradient,
)
from moodflow.services.mood_data import MoodDataService, get_mood_data_service
from moodflow.services.segments import (
    SegmentService,
    accessibility,
    current_segment_index,
    first_accessible,
    get_segment_service,
    last_accessible,
)

logger = logging.getLogger(__name__)

NOTE_SAVE_DELAY = 0.8
SEGMENT_SETTLE_DELAY = 0.05
GRADIENT_DURATION = 0.6

Clock = Callable[[], datetime]


class Debouncer:
    """Runs only the last of a burst of calls, ``delay`` seconds after it."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._task: Optional[asyncio.Task] = None
        self._pending: Optional[Callable[[], Awaitable[None]]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def call(self, action: Callable[[], Awaitable[None]]) -> None:
        self.cancel()
        self._pending = action
        self._task = asyncio.get_running_loop().create_task(self._fire_later())

    async def _fire_later(self) -> None:
        await asyncio.sleep(self.delay)
        await self.flush()

    async def flush(self) -> None:
        """Run the pending action now, if there is one."""
        action, self._pending = self._pending, None
        if action is not None:
            await action()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._pending = None


def _gradient_view(gradient: LinearGradient) -> GradientView:
    return GradientView(**gradient.to_dict())


class MoodLogScreen:
    def __init__(
        self,
        mood_data: MoodDataService | None = None,
        segments: SegmentService | None = None,
        gradients: MoodGradientService | None = None,
        clock: Clock = datetime.now,
        is_dark_mode: bool = False,
        slider_duration: float = 0.6,
        blur_duration: float = 0.4,
        gradient_duration: float = GRADIENT_DURATION,
        settle_delay: float = SEGMENT_SETTLE_DELAY,
        note_delay: float = NOTE_SAVE_DELAY,
    ) -> None:
        self._mood_data = mood_data or get_mood_data_service()
        self._segments = segments or get_segment_service()
        self._gradients = gradients or MoodGradientService(self._mood_data, self._segments)
        self._clock = clock
        self._is_dark_mode = is_dark_mode
        self._settle_delay = settle_delay

        self.slider = SliderAnimation(NEUTRAL_RATING, slider_duration)
        self.blur = BlurTransition(blur_duration)
        self._note_debouncer = Debouncer(note_delay)

        self._gradient_from = fallback_gradient(is_dark_mode)
        self._gradient_to = self._gradient_from
        self._gradient_anim = AnimationController(gradient_duration)

        self.state = "loading"
        self.day: date = clock().date()
        self.current_segment = 0
        self.ratings: dict[int, float] = {}
        self.notes: dict[int, str] = {}
        self.accessible: dict[int, bool] = {}
        self.saving = False

    # -- lifecycle -----------------------------------------------------------

    async def initialize(self, requested_segment: Optional[int] = None) -> None:
        now = self._clock()
        self.day = now.date()
        settings = self._segments.load_settings()
        self.accessible = accessibility(now, settings)

        if requested_segment is not None and self.accessible.get(requested_segment):
            self.current_segment = requested_segment
        else:
            self.current_segment = current_segment_index(now, settings)

        self._load_all_segments()
        self.slider.set_value_immediate(self.ratings[self.current_segment])
        await self._refresh_gradient()
        self.state = "ready"
        logger.debug("Mood log ready on %s segment %d", self.day, self.current_segment)

    def _load_all_segments(self) -> None:
        entries = self._mood_data.load_day(self.day)
        for segment in range(len(SEGMENT_NAMES)):
            entry = entries.get(segment)
            self.ratings[segment] = entry.rating if entry else NEUTRAL_RATING
            self.notes[segment] = entry.note if entry else ""

    async def dispose(self) -> None:
        # unsaved note edits are written before the screen goes away
        await self._note_debouncer.flush()
        self._note_debouncer.cancel()
        self.slider.dispose()
        self.blur.dispose()
        self._gradient_anim.stop()

    # -- navigation ----------------------------------------------------------

    def can_edit(self, segment: int) -> bool:
        return segment == self.current_segment and bool(self.accessible.get(segment))

    async def navigate_to(self, segment: int) -> bool:
        """Returns False when the move was ignored."""
        if not self.accessible.get(segment) or self.blur.is_transitioning:
            return False
        if segment == self.current_segment:
            return False

        await self._note_debouncer.flush()

        async def switch() -> None:
            self.current_segment = segment
            await asyncio.sleep(self._settle_delay)
            entry = self._mood_data.load_mood(self.day, segment)
            self.ratings[segment] = entry.rating if entry else NEUTRAL_RATING
            self.notes[segment] = entry.note if entry else ""
            await self.slider.animate_to_value(self.ratings[segment])
            await self._refresh_gradient()

        return await self.blur.execute_transition(switch)

    # -- input ---------------------------------------------------------------

    async def on_slider_changed(self, value: float) -> None:
        if not self.can_edit(self.current_segment):
            return
        self.ratings[self.current_segment] = value
        self.slider.set_value_immediate(value)
        await self._refresh_gradient(animate=False)

    async def on_slider_change_end(self, value: float) -> bool:
        if not self.can_edit(self.current_segment):
            return False
        self.ratings[self.current_segment] = value
        return self._save(self.current_segment)

    def on_note_changed(self, text: str) -> None:
        if not self.can_edit(self.current_segment):
            return
        segment = self.current_segment
        self.notes[segment] = text

        async def save_note() -> None:
            self._save(segment)

        self._note_debouncer.call(save_note)

    async def flush_pending_note(self) -> None:
        await self._note_debouncer.flush()

    def _save(self, segment: int) -> bool:
        self.saving = True
        try:
            return self._mood_data.save_mood(
                self.day,
                segment,
                self.ratings[segment],
                self.notes.get(segment, ""),
                now=self._clock(),
            )
        finally:
            self.saving = False

    # -- gradient ------------------------------------------------------------

    @property
    def gradient(self) -> LinearGradient:
        return lerp_gradient(self._gradient_from, self._gradient_to, self._gradient_anim.value)

    async def _refresh_gradient(self, animate: bool = True) -> None:
        target = self._gradients.compute_gradient_for_mood(
            self.ratings.get(self.current_segment, NEUTRAL_RATING),
            self.current_segment,
            now=self._clock(),
        )
        if not animate:
            self._gradient_anim.stop()
            self._gradient_from = self._gradient_to = target
            return

        self._gradient_from = self.gradient
        self._gradient_to = target
        self._gradient_anim.reset()
        await self._gradient_anim.forward()

    # -- output --------------------------------------------------------------

    def render(self) -> MoodLogView:
        segment = self.current_segment
        ready = self.state == "ready"
        return MoodLogView(
            state=self.state,
            date=self.day,
            segment=segment,
            title=SEGMENT_NAMES[segment],
            show_previous_arrow=ready and segment > first_accessible(self.accessible),
            show_next_arrow=ready and segment < last_accessible(self.accessible),
            accessible=[bool(self.accessible.get(i)) for i in range(len(SEGMENT_NAMES))],
            can_edit=ready and self.can_edit(segment),
            gradient=_gradient_view(self.gradient if ready else fallback_gradient(self._is_dark_mode)),
            blur=self.blur.blur_value,
            slider_value=self.slider.value,
            note=self.notes.get(segment, ""),
            saving=self.saving,
        )
