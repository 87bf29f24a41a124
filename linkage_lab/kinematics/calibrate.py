"""Closed-angle calibration: the fold angle that closes the ring to 360°.

Total ring rotation ``|Δθ| · modules`` grows monotonically with the fold
angle, so the closing angle is found by a bounded two-phase sweep: a coarse
1° pass across the whole domain that stops once the rotation has overshot
2π and the error grows again, then a 0.1° pass in a ±2° window around the
coarse winner.  Worst case is roughly 170 + 40 solver calls.
"""

from __future__ import annotations
import math
from typing import NamedTuple

import numpy as np

from linkage_lab.constants import (
    COARSE_STEP,
    FINE_STEP,
    FINE_WINDOW,
    MAX_FOLD_ANGLE,
    MIN_FOLD_ANGLE,
)
from linkage_lab.kinematics.solver import pivot_span, solve_joint
from linkage_lab.structure.models import ModuleConfig

TWO_PI = 2.0 * math.pi


class ActuatorStroke(NamedTuple):
    open_span: float
    closed_span: float
    stroke: float
    closed_angle: float


class ClosedAngleCalibrator:
    """Memoised closed-angle search.

    Results are cached per ``(modules, pivot_pct)``.  The remaining solver
    inputs (active beam length and both bias angles) are tracked as a
    fingerprint; when it changes every cached entry is stale and the cache
    is cleared.  Parameters the solver never sees (stack counts, beam
    sections, orientation, ...) leave the cache untouched.
    """

    def __init__(self) -> None:
        self._cache: dict[tuple[int, float], float] = {}
        self._fingerprint: tuple[float, float, float] | None = None
        self.solver_calls = 0
        self.computations = 0

    def __len__(self) -> int:
        return len(self._cache)

    def invalidate(self) -> None:
        self._cache.clear()
        self._fingerprint = None

    def is_cached(self, config: ModuleConfig) -> bool:
        return (
            self._fingerprint == config.solver_key
            and config.closure_key in self._cache
        )

    def closed_angle(self, config: ModuleConfig) -> float:
        """Fold angle (radians) at which the ring closes to exactly 360°."""
        if self._fingerprint != config.solver_key:
            self._cache.clear()
            self._fingerprint = config.solver_key

        key = config.closure_key
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        angle = self._search(config)
        self._cache[key] = angle
        self.computations += 1
        return angle

    def _rotation(self, angle: float, config: ModuleConfig) -> float:
        self.solver_calls += 1
        return abs(solve_joint(angle, config).relative_rotation * config.modules)

    def _search(self, config: ModuleConfig) -> float:
        best_angle = MAX_FOLD_ANGLE
        best_diff = math.inf

        # Phase 1: coarse sweep
        n_coarse = int(math.floor((MAX_FOLD_ANGLE - MIN_FOLD_ANGLE) / COARSE_STEP + 1e-9))
        for k in range(n_coarse + 1):
            angle = MIN_FOLD_ANGLE + k * COARSE_STEP
            rotation = self._rotation(angle, config)
            diff = abs(rotation - TWO_PI)
            if diff < best_diff:
                best_diff = diff
                best_angle = angle
            if rotation > TWO_PI and diff > best_diff:
                break

        # Phase 2: fine sweep around the coarse winner
        n_fine = int(round(2 * FINE_WINDOW / FINE_STEP))
        start = best_angle - FINE_WINDOW
        for k in range(n_fine + 1):
            angle = start + k * FINE_STEP
            if angle < MIN_FOLD_ANGLE or angle > MAX_FOLD_ANGLE:
                continue
            rotation = self._rotation(angle, config)
            diff = abs(rotation - TWO_PI)
            if diff < best_diff:
                best_diff = diff
                best_angle = angle

        return float(np.clip(best_angle, MIN_FOLD_ANGLE, MAX_FOLD_ANGLE))


_default_calibrator = ClosedAngleCalibrator()


def default_calibrator() -> ClosedAngleCalibrator:
    return _default_calibrator


def closed_angle(config: ModuleConfig) -> float:
    """Closed angle for *config* using the process-wide calibrator."""
    return _default_calibrator.closed_angle(config)


def actuator_stroke(
    config: ModuleConfig,
    calibrator: ClosedAngleCalibrator | None = None,
) -> ActuatorStroke:
    """Change in inner-to-outer pivot span between fully open and closed.

    This is the travel a linear actuator mounted across the strut pivots
    needs to deploy the structure.
    """
    calibrator = calibrator if calibrator is not None else _default_calibrator
    closed = calibrator.closed_angle(config)
    open_span = pivot_span(MIN_FOLD_ANGLE, config)
    closed_span = pivot_span(closed, config)
    return ActuatorStroke(
        open_span=open_span,
        closed_span=closed_span,
        stroke=abs(closed_span - open_span),
        closed_angle=closed,
    )
