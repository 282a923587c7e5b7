"""
Animation Sequencing
====================
Time-based value animation for the mood log screen, on asyncio.

- ``AnimationController`` drives a 0..1 value over a duration, one frame at
  a time, and can be stopped or superseded by a newer run.
- ``SliderAnimation`` moves the mood slider from wherever it currently is to
  a new rating with an ease-in-out-cubic curve.
- ``BlurTransition`` blurs the page in, runs a content change, and blurs it
  back out. Only one transition runs at a time.

A zero duration completes synchronously, which is what the tests use.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

FRAME_INTERVAL = 1 / 60

Listener = Callable[[float], None]


# ---------------------------------------------------------------------------
# Curves
# ---------------------------------------------------------------------------

def ease_in_out(t: float) -> float:
    # cubic bezier (0.42, 0, 0.58, 1) is close to this smoothstep
    return t * t * (3 - 2 * t)


def ease_in_out_cubic(t: float) -> float:
    if t < 0.5:
        return 4 * t * t * t
    return 1 - (-2 * t + 2) ** 3 / 2


# ---------------------------------------------------------------------------
# Controller
# ---------------------------------------------------------------------------

class AnimationController:
    """Moves ``value`` between 0 and 1 over ``duration`` seconds."""

    def __init__(self, duration: float, frame_interval: float = FRAME_INTERVAL) -> None:
        self.duration = duration
        self._frame_interval = frame_interval
        self._value = 0.0
        self._run = 0
        self._listeners: list[Listener] = []

    @property
    def value(self) -> float:
        return self._value

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _set(self, value: float) -> None:
        self._value = value
        for listener in list(self._listeners):
            listener(value)

    async def forward(self) -> bool:
        return await self._animate_to(1.0)

    async def reverse(self) -> bool:
        return await self._animate_to(0.0)

    def stop(self) -> None:
        # any in-flight run sees a newer run id and exits
        self._run += 1

    def reset(self) -> None:
        self.stop()
        self._set(0.0)

    async def _animate_to(self, target: float) -> bool:
        """Returns False if the run was stopped before reaching ``target``."""
        self._run += 1
        run = self._run
        start = self._value

        if self.duration <= 0 or start == target:
            self._set(target)
            return True

        span = abs(target - start) * self.duration
        loop = asyncio.get_running_loop()
        started_at = loop.time()

        while True:
            await asyncio.sleep(self._frame_interval)
            if run != self._run:
                return False
            fraction = min((loop.time() - started_at) / span, 1.0)
            self._set(start + (target - start) * fraction)
            if fraction >= 1.0:
                return True


# ---------------------------------------------------------------------------
# Slider
# ---------------------------------------------------------------------------

class SliderAnimation:
    """Animated mood slider value."""

    def __init__(self, initial_value: float = 5.0, duration: float = 0.6) -> None:
        self._controller = AnimationController(duration)
        self._begin = initial_value
        self._end = initial_value
        self._current = initial_value
        self._target = initial_value
        self._is_animating = False
        self._generation = 0

    @property
    def value(self) -> float:
        t = ease_in_out_cubic(self._controller.value)
        return self._begin + (self._end - self._begin) * t

    @property
    def target(self) -> float:
        return self._target

    @property
    def is_animating(self) -> bool:
        return self._is_animating

    async def animate_to_value(self, new_value: float, immediate: bool = False) -> None:
        if immediate or new_value == self._current:
            self.set_value_immediate(new_value)
            return

        if self._is_animating:
            self._controller.stop()

        self._generation += 1
        generation = self._generation
        self._is_animating = True

        # start from wherever the slider is drawn right now
        start = self.value
        self._current = start
        self._target = new_value
        self._begin, self._end = start, new_value

        self._controller.reset()
        await self._controller.forward()

        if generation == self._generation:
            self._is_animating = False
            self._current = self._target

    def set_value_immediate(self, value: float) -> None:
        """Jump without animating, e.g. while the user is dragging."""
        self._generation += 1
        self._is_animating = False
        self._current = value
        self._target = value
        self._begin = value
        self._end = value
        self._controller.reset()

    def dispose(self) -> None:
        self._controller.stop()


# ---------------------------------------------------------------------------
# Blur
# ---------------------------------------------------------------------------

class BlurTransition:
    """Blur out, swap content, blur back in."""

    def __init__(self, duration: float = 0.4, max_blur: float = 10.0) -> None:
        self._controller = AnimationController(duration)
        self._max_blur = max_blur
        self._is_transitioning = False
        self._disposed = False

    @property
    def blur_value(self) -> float:
        return self._max_blur * ease_in_out(self._controller.value)

    @property
    def is_transitioning(self) -> bool:
        return self._is_transitioning

    @property
    def disposed(self) -> bool:
        return self._disposed

    async def execute_transition(self, on_content_change: Callable[[], Awaitable[None]]) -> bool:
        """Run one transition. Returns False when skipped (busy or disposed)."""
        if self._is_transitioning or self._disposed:
            return False

        self._is_transitioning = True
        try:
            await self._controller.forward()
            await on_content_change()
            if not self._disposed:
                await self._controller.reverse()
        finally:
            self._is_transitioning = False
        return True

    def dispose(self) -> None:
        self._disposed = True
        self._controller.stop()
