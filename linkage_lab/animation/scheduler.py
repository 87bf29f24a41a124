"""Time-driven fold-angle animation.

The host calls :meth:`AnimationScheduler.tick` with the wall-clock time that
passed since the previous call; the scheduler advances the fold angle and
says whether another tick should be scheduled.  Stopping is just not calling
``tick`` again, so cancelling never leaves partial state behind.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import NamedTuple

from linkage_lab.constants import (
    CLOSED_BOUND_TOLERANCE,
    CLOSED_PAUSE_MS,
    FULL_CYCLE_MS,
    MIN_FOLD_ANGLE,
)
from linkage_lab.kinematics.calibrate import ClosedAngleCalibrator, default_calibrator
from linkage_lab.structure.models import ModuleConfig


@dataclass
class AnimationState:
    angle: float = MIN_FOLD_ANGLE
    direction: int = 1                 # +1 folds toward closed, -1 opens
    speed: float = 1.0
    loop: bool = False
    ping_pong: bool = False
    stop_angle: float | None = None    # radians; None means the closed angle
    playing: bool = False
    clock_ms: float = 0.0
    pause_until: float | None = None   # deadline on clock_ms
    resume_angle: float | None = None  # loop reset applied once the pause ends


class TickResult(NamedTuple):
    angle: float
    reschedule: bool
    paused: bool = False
    reached_bound: bool = False


class AnimationScheduler:
    """Stopped/Playing state machine over an :class:`AnimationState`.

    Parameters
    ----------
    config:
        Structure being animated; its closed angle caps the upper bound.
    state:
        Initial state.  A fresh stopped state is created when omitted.
    calibrator:
        Closed-angle cache to use; defaults to the process-wide one.
    """

    def __init__(
        self,
        config: ModuleConfig,
        state: AnimationState | None = None,
        calibrator: ClosedAngleCalibrator | None = None,
    ) -> None:
        self.config = config
        self.state = state if state is not None else AnimationState()
        self.calibrator = calibrator if calibrator is not None else default_calibrator()
        if self.state.speed <= 0:
            raise ValueError(f"speed must be positive; got {self.state.speed!r}")

    # ------------------------------------------------------------------
    # Controls
    # ------------------------------------------------------------------

    def closed_angle(self) -> float:
        return self.calibrator.closed_angle(self.config)

    def bounds(self) -> tuple[float, float]:
        """``(5°, min(stop angle, closed angle))``."""
        closed = self.closed_angle()
        stop = self.state.stop_angle
        hi = closed if stop is None else min(stop, closed)
        return MIN_FOLD_ANGLE, max(hi, MIN_FOLD_ANGLE)

    def play(self) -> None:
        lo, hi = self.bounds()
        self.state.angle = min(max(self.state.angle, lo), hi)
        self.state.playing = True

    def stop(self) -> None:
        self.state.playing = False
        self.state.pause_until = None
        if self.state.resume_angle is not None:
            self.state.angle = self.state.resume_angle
            self.state.resume_angle = None

    def toggle(self) -> bool:
        """Flip between playing and stopped; return the new ``playing`` flag."""
        if self.state.playing:
            self.stop()
        else:
            self.play()
        return self.state.playing

    def set_config(self, config: ModuleConfig) -> None:
        """Animate a different structure, keeping the angle inside the new bounds."""
        self.config = config
        lo, hi = self.bounds()
        self.state.angle = min(max(self.state.angle, lo), hi)

    # ------------------------------------------------------------------
    # Frame step
    # ------------------------------------------------------------------

    def tick(self, elapsed_ms: float) -> TickResult:
        """Advance by *elapsed_ms* of wall-clock time."""
        s = self.state
        if not s.playing:
            return TickResult(s.angle, reschedule=False)
        if elapsed_ms < 0:
            raise ValueError(f"elapsed_ms must be non-negative; got {elapsed_ms!r}")

        s.clock_ms += elapsed_ms
        if s.pause_until is not None:
            if s.clock_ms < s.pause_until:
                return TickResult(s.angle, reschedule=True, paused=True)
            # Only the time past the deadline moves the angle
            elapsed_ms = s.clock_ms - s.pause_until
            s.pause_until = None
            if s.resume_angle is not None:
                s.angle = s.resume_angle
                s.resume_angle = None

        lo, hi = self.bounds()
        rate = (hi - lo) / (FULL_CYCLE_MS / s.speed)
        angle = s.angle + s.direction * rate * elapsed_ms

        if s.direction > 0 and angle >= hi:
            bound = hi
        elif s.direction < 0 and angle <= lo:
            bound = lo
        else:
            s.angle = min(max(angle, lo), hi)
            return TickResult(s.angle, reschedule=True)

        s.angle = bound
        if not (s.ping_pong or s.loop):
            s.playing = False
            return TickResult(bound, reschedule=False, reached_bound=True)

        at_closed = bound == hi and abs(hi - self.closed_angle()) <= CLOSED_BOUND_TOLERANCE
        reset = lo if bound == hi else hi
        if s.ping_pong:
            s.direction = -s.direction
        elif at_closed:
            s.resume_angle = reset
        else:
            s.angle = reset

        if at_closed:
            s.pause_until = s.clock_ms + CLOSED_PAUSE_MS
            return TickResult(bound, reschedule=True, paused=True, reached_bound=True)
        return TickResult(s.angle, reschedule=True, reached_bound=True)
