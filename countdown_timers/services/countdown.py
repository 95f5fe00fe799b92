"""Countdown clock: ticks a resolved expiry down and drives urgency state.

One :class:`CountdownClock` per displayed widget. The clock runs on the
asyncio event loop: every tick recomputes the remaining time from the
wall clock, so skipped or late ticks self-correct.

States:

* ``running``: each tick emits a :class:`Frame` to ``on_frame``.
* ``expired``: terminal. ``on_expire`` is called once, no further frames
  are emitted and the tick task stops.
"""

import asyncio
import dataclasses
import logging

from ..conf import get_setting
from .expiry import MS_PER_MINUTE, now_ms

logger = logging.getLogger(__name__)

MS_PER_SECOND = 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR

RUNNING = "running"
EXPIRED = "expired"

URGENCY_NONE = "none"
URGENCY_PULSE = "pulse"
URGENCY_BANNER = "banner"


@dataclasses.dataclass(frozen=True)
class Breakdown:
    days: int
    hours: int
    minutes: int
    seconds: int

    def format(self):
        return f"{self.days}d {self.hours}h {self.minutes}m {self.seconds}s"


@dataclasses.dataclass(frozen=True)
class Frame:
    """What the widget should render for one tick."""

    remaining_ms: int
    breakdown: Breakdown
    urgency_active: bool
    color: str
    pulse: bool
    banner: bool

    @property
    def text(self):
        return self.breakdown.format()


def decompose(remaining_ms):
    """Split a non-negative duration into days/hours/minutes/seconds."""
    days, rest = divmod(remaining_ms, MS_PER_DAY)
    hours, rest = divmod(rest, MS_PER_HOUR)
    minutes, rest = divmod(rest, MS_PER_MINUTE)
    seconds = rest // MS_PER_SECOND
    return Breakdown(days, hours, minutes, seconds)


def urgency_active(remaining_ms, urgency):
    """Level-triggered urgency check, evaluated from scratch every tick.

    Compares exact milliseconds against the trigger rather than floored
    whole minutes, so a 15 minute trigger is active at 14m59s but not at
    15m00.5s or 15m01s.
    """
    urgency = urgency or {}
    if urgency.get("type", URGENCY_NONE) == URGENCY_NONE:
        return False
    trigger = urgency.get("triggerMinutes", 0)
    return remaining_ms <= trigger * MS_PER_MINUTE


def _log_tick_failure(task):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "Countdown tick task failed", exc_info=(type(exc), exc, exc.__traceback__)
        )


class TickHandle:
    """Cancelable handle for a running clock's tick task."""

    def __init__(self, clock, task):
        self.clock = clock
        self.task = task

    def cancel(self):
        """Stop ticking, e.g. when the widget is torn down."""
        self.task.cancel()

    @property
    def done(self):
        return self.task.done()


class CountdownClock:
    def __init__(
        self,
        expiry_ms,
        urgency=None,
        display=None,
        on_frame=None,
        on_expire=None,
        interval=None,
        clock=now_ms,
    ):
        self.expiry_ms = expiry_ms
        self.urgency = urgency or {}
        self.display = display or {}
        self.on_frame = on_frame
        self.on_expire = on_expire
        if interval is None:
            interval = get_setting("COUNTDOWN_TICK_INTERVAL_SECONDS")
        self.interval = interval
        self.clock = clock
        self.state = RUNNING

    @property
    def expired(self):
        return self.state == EXPIRED

    def _frame(self, remaining):
        active = urgency_active(remaining, self.urgency)
        urgency_type = self.urgency.get("type", URGENCY_NONE)
        if active:
            color = self.urgency.get("color") or get_setting(
                "COUNTDOWN_DEFAULT_URGENCY_COLOR"
            )
        else:
            color = self.display.get("color") or get_setting(
                "COUNTDOWN_DEFAULT_DISPLAY_COLOR"
            )
        return Frame(
            remaining_ms=remaining,
            breakdown=decompose(remaining),
            urgency_active=active,
            color=color,
            pulse=active and urgency_type == URGENCY_PULSE,
            banner=active and urgency_type == URGENCY_BANNER,
        )

    def evaluate(self, now=None):
        """Advance the state machine by one tick.

        Returns the emitted :class:`Frame`, or ``None`` once expired.
        """
        if self.expired:
            return None
        if now is None:
            now = self.clock()

        remaining = self.expiry_ms - now
        if remaining <= 0:
            self.state = EXPIRED
            logger.debug("Countdown reached expiry %d", self.expiry_ms)
            if self.on_expire is not None:
                self.on_expire()
            return None

        frame = self._frame(remaining)
        if self.on_frame is not None:
            self.on_frame(frame)
        return frame

    async def run(self):
        """Tick until expired or cancelled."""
        while self.evaluate() is not None:
            await asyncio.sleep(self.interval)

    def start(self):
        """Schedule the clock on the running event loop.

        The first evaluation happens before this returns, so an expiry
        already in the past goes straight to ``expired`` without a frame.

        Raises:
            RuntimeError: if called outside a running event loop. The
                clock is left untouched in that case.
        """
        loop = asyncio.get_running_loop()
        self.evaluate()
        task = loop.create_task(self._tick_after_first())
        task.add_done_callback(_log_tick_failure)
        return TickHandle(self, task)

    async def _tick_after_first(self):
        if self.expired:
            return
        await asyncio.sleep(self.interval)
        await self.run()
