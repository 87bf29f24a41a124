"""Searching the fold-angle domain for collision-free angles."""

from __future__ import annotations
import math
from typing import NamedTuple

from tqdm import tqdm

from linkage_lab.assembly.ring import assemble
from linkage_lab.collision.detector import CollisionThresholds, detect
from linkage_lab.constants import (
    MAX_FOLD_ANGLE,
    MIN_FOLD_ANGLE,
    SAFE_SEARCH_RANGE,
    SAFE_SEARCH_STEP,
)
from linkage_lab.kinematics.solver import check_fold_angle
from linkage_lab.structure.models import ModuleConfig


class SweepSample(NamedTuple):
    angle: float
    collisions: int
    causes: tuple[str, ...]

    @property
    def clear(self) -> bool:
        return self.collisions == 0


def is_collision_free(
    angle: float,
    config: ModuleConfig,
    thresholds: CollisionThresholds | None = None,
) -> bool:
    return not detect(assemble(angle, config), config, thresholds)


def find_safe_angle(
    target: float,
    config: ModuleConfig,
    previous: float | None = None,
    thresholds: CollisionThresholds | None = None,
) -> float | None:
    """Nearest collision-free fold angle to *target*, or ``None``.

    Candidates move outward from *target* in 0.5° steps up to 30° away.  With
    a *previous* angle the search first continues back toward it (a target
    below the previous angle tries larger angles first); without one the
    smaller angle is tried first at every offset.  Candidates outside the
    fold-angle domain are skipped.
    """
    check_fold_angle(target)
    if previous is not None:
        first = 1 if target < previous else -1
        directions = (first, -first)
    else:
        directions = (-1, 1)

    n_steps = int(round(SAFE_SEARCH_RANGE / SAFE_SEARCH_STEP))
    for k in range(n_steps + 1):
        offset = k * SAFE_SEARCH_STEP
        for direction in directions if k else directions[:1]:
            angle = target + direction * offset
            if angle < MIN_FOLD_ANGLE or angle > MAX_FOLD_ANGLE:
                continue
            if is_collision_free(angle, config, thresholds):
                return angle
    return None


def sweep(
    config: ModuleConfig,
    start: float = MIN_FOLD_ANGLE,
    stop: float = MAX_FOLD_ANGLE,
    step: float = math.radians(1.0),
    thresholds: CollisionThresholds | None = None,
    verbose: bool = False,
) -> list[SweepSample]:
    """Collision counts at evenly spaced angles from *start* to *stop*."""
    check_fold_angle(start)
    check_fold_angle(stop)
    if step <= 0:
        raise ValueError(f"step must be positive; got {step!r}")
    if stop < start:
        raise ValueError("stop must not be smaller than start")

    n = int(math.floor((stop - start) / step + 1e-9))
    samples = []
    for k in tqdm(range(n + 1), desc="Sweeping fold angle",
                  disable=not verbose, unit="angle", leave=False):
        angle = start + k * step
        collisions = detect(assemble(angle, config), config, thresholds)
        causes = tuple(sorted({c.cause for c in collisions}))
        samples.append(SweepSample(angle, len(collisions), causes))
    return samples


def collision_free_ranges(samples: list[SweepSample]) -> list[tuple[float, float]]:
    """Group consecutive clear samples into ``(first_angle, last_angle)`` runs."""
    ranges = []
    run_start = None
    prev = None
    for sample in samples:
        if sample.clear:
            if run_start is None:
                run_start = sample.angle
            prev = sample.angle
        elif run_start is not None:
            ranges.append((run_start, prev))
            run_start = None
    if run_start is not None:
        ranges.append((run_start, prev))
    return ranges
