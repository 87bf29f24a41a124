"""Beam interference detection for an assembled structure.

Three passes, in order:

1. Global over-fold: if the ring's total rotation exceeds a full turn plus a
   tolerance, the structure cannot exist at all.  Collisions are synthesised
   between the same-level ring beams of the first and last module and the
   remaining passes are skipped.
2. Strut/ring interference: every (vertical, horizontal) pair of beams whose
   axis-aligned bounding boxes overlap by more than the thresholds.
3. Over-folding between non-adjacent modules: same-level horizontal beams
   whose boxes overlap, or which sit angularly too close around the ring
   centre while also being close in space.  The first and last module
   count as adjacent, in arches as well as rings.

"Vertical" is measured along the geometry's ring axis, so ring and arch
geometry are classified the same way.
"""

from __future__ import annotations
import math
from dataclasses import dataclass

import numpy as np

from linkage_lab.structure.models import Collision, ModuleConfig, StructureGeometry

TWO_PI = 2.0 * math.pi


@dataclass(frozen=True)
class CollisionThresholds:
    """Tunable constants of the detector (lengths in inches)."""
    min_overlap_volume: float = 0.25
    min_overlap_size: float = 0.5
    overfold_tolerance: float = math.radians(5.0)
    angular_spacing_fraction: float = 0.3
    center_distance_fraction: float = 0.8


@dataclass
class DetectionStats:
    """Work counters accumulated across :func:`detect` calls."""
    aabb_tests: int = 0
    angular_checks: int = 0
    passes: int = 0

    def reset(self) -> None:
        self.aabb_tests = 0
        self.angular_checks = 0
        self.passes = 0


@dataclass
class _Box:
    index: int
    module: int
    lo: np.ndarray
    hi: np.ndarray
    center: np.ndarray
    angle: float
    length: float


def _overlap(a: _Box, b: _Box, stats: DetectionStats) -> np.ndarray | None:
    """Per-axis overlap extents, or ``None`` when the boxes are disjoint."""
    stats.aabb_tests += 1
    ext = np.minimum(a.hi, b.hi) - np.maximum(a.lo, b.lo)
    if (ext <= 0.0).any():
        return None
    return ext


def _significant(ext: np.ndarray | None, thresholds: CollisionThresholds) -> bool:
    return (
        ext is not None
        and float(ext.max()) > thresholds.min_overlap_size
        and float(np.prod(ext)) > thresholds.min_overlap_volume
    )


def _angular_distance(a: float, b: float) -> float:
    diff = abs(a - b) % TWO_PI
    return min(diff, TWO_PI - diff)


def _overfold_collisions(
    geometry: StructureGeometry, modules: int, total: float
) -> list[Collision]:
    excess = math.degrees(total - TWO_PI)
    message = f"Ring over-folded: {math.degrees(total):.1f}° exceeds 360°"
    first = [(i, b) for i, b in enumerate(geometry.beams)
             if b.module_index == 0 and b.is_horizontal]
    last = [(i, b) for i, b in enumerate(geometry.beams)
            if b.module_index == modules - 1 and b.is_horizontal]

    out = [
        Collision(i, j, "geometric-overfold", excess, message)
        for i, a in first
        for j, b in last
        if a.is_top == b.is_top and i != j
    ]
    if not out and len(geometry.beams) >= 2:
        out.append(Collision(0, 1, "geometric-overfold", excess, message))
    return out


def detect(
    geometry: StructureGeometry,
    config: ModuleConfig,
    thresholds: CollisionThresholds | None = None,
    stats: DetectionStats | None = None,
) -> list[Collision]:
    """Return every interference found in *geometry*.

    Parameters
    ----------
    geometry:
        Output of :func:`~linkage_lab.assembly.ring.assemble`.
    config:
        The configuration *geometry* was assembled from.
    thresholds:
        Detector constants; defaults to :class:`CollisionThresholds`.
    stats:
        Optional counters, incremented in place.
    """
    if geometry.is_empty():
        return []
    thresholds = thresholds if thresholds is not None else CollisionThresholds()
    stats = stats if stats is not None else DetectionStats()
    n = config.modules

    # Pass 1: the ring cannot close at all
    stats.passes += 1
    total = abs(geometry.joint.relative_rotation * n)
    if total > TWO_PI + thresholds.overfold_tolerance:
        return _overfold_collisions(geometry, n, total)

    axis = geometry.axis
    u, v = geometry.plane_axes
    vertical: list[_Box] = []
    horizontal: list[_Box] = []
    for idx, beam in enumerate(geometry.beams):
        lo, hi = beam.bounds()
        span = hi - lo
        rel = beam.center - geometry.center
        box = _Box(
            index=idx,
            module=beam.module_index,
            lo=lo,
            hi=hi,
            center=beam.center,
            angle=math.atan2(rel[v], rel[u]),
            length=beam.length,
        )
        if span[axis] > 0.5 * max(span[u], span[v]):
            vertical.append(box)
        else:
            horizontal.append(box)

    collisions: list[Collision] = []

    # Pass 2: struts against ring beams
    stats.passes += 1
    for vb in vertical:
        for hb in horizontal:
            ext = _overlap(vb, hb, stats)
            if _significant(ext, thresholds):
                collisions.append(Collision(
                    vb.index, hb.index, "vertical-horizontal", float(np.prod(ext)),
                    "Strut intersects ring beam",
                ))

    # Pass 3: ring beams of non-adjacent modules
    stats.passes += 1
    min_separation = (TWO_PI / n) * thresholds.angular_spacing_fraction
    for a_pos, a in enumerate(horizontal):
        for b in horizontal[a_pos + 1:]:
            diff = abs(a.module - b.module)
            if diff <= 1 or diff == n - 1:
                continue
            if a.hi[axis] < b.lo[axis] or b.hi[axis] < a.lo[axis]:
                continue

            ext = _overlap(a, b, stats)
            if _significant(ext, thresholds):
                collisions.append(Collision(
                    a.index, b.index, "over-folding", float(np.prod(ext)),
                    f"Modules {a.module} and {b.module} overlap",
                ))
                continue

            stats.angular_checks += 1
            ang = _angular_distance(a.angle, b.angle)
            if ang < min_separation:
                dist = float(np.linalg.norm(a.center - b.center))
                if dist < max(a.length, b.length) * thresholds.center_distance_fraction:
                    collisions.append(Collision(
                        a.index, b.index, "over-folding", dist,
                        f"Modules {a.module} and {b.module} are "
                        f"{math.degrees(ang):.1f}° apart",
                    ))

    return collisions


def colliding_beam_indices(collisions: list[Collision]) -> set[int]:
    """Indices of every beam involved in at least one collision."""
    out: set[int] = set()
    for c in collisions:
        out.add(c.first)
        out.add(c.second)
    return out
