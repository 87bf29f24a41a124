"""Overall dimensions of an assembled structure."""

from __future__ import annotations
from dataclasses import dataclass
from typing import NamedTuple

import numpy as np

from linkage_lab.constants import INCHES_PER_FOOT
from linkage_lab.structure.models import ModuleConfig, StructureGeometry


@dataclass(frozen=True, eq=False)
class Measurements:
    inner_diameter: float
    outer_diameter: float
    height: float
    span: float
    # Point pairs the distances above were taken between
    inner_points: tuple[np.ndarray, np.ndarray] | None = None
    outer_points: tuple[np.ndarray, np.ndarray] | None = None
    height_points: tuple[np.ndarray, np.ndarray] | None = None
    span_points: tuple[np.ndarray, np.ndarray] | None = None


def _diameter(points: np.ndarray, center: np.ndarray, u: int, v: int, use_max: bool):
    """Twice the smallest (or largest) in-plane radius, plus the point and its mirror."""
    rel = points[:, [u, v]] - center[[u, v]]
    radii = np.linalg.norm(rel, axis=1)
    k = int(np.argmax(radii) if use_max else np.argmin(radii))
    p = points[k]
    mirror = p.copy()
    mirror[u] = 2.0 * center[u] - p[u]
    mirror[v] = 2.0 * center[v] - p[v]
    return 2.0 * float(radii[k]), (p, mirror)


def calculate_measurements(geometry: StructureGeometry) -> Measurements:
    """Inner/outer diameter from the ring pivots, plus overall height and span.

    Diameters use the pivot endpoints of the bottom-ring beams measured in
    the ring plane around the ring centre.  Height is the vertical (Y)
    extent of every beam corner and span the largest horizontal extent.
    """
    if geometry.is_empty():
        return Measurements(0.0, 0.0, 0.0, 0.0)

    u, v = geometry.plane_axes
    center = np.asarray(geometry.center)
    ring = [b for b in geometry.beams if b.stack_type == "horizontal-bottom"]
    if not ring:
        ring = geometry.horizontal_beams()

    if ring:
        pivots = np.array([p for b in ring for p in (b.p1, b.p2)])
        inner, inner_pts = _diameter(pivots, center, u, v, use_max=False)
        outer, outer_pts = _diameter(pivots, center, u, v, use_max=True)
    else:
        inner = outer = 0.0
        inner_pts = outer_pts = None

    corners = np.concatenate([b.corners for b in geometry.beams])
    low, high = corners[np.argmin(corners[:, 1])], corners[np.argmax(corners[:, 1])]
    height = float(high[1] - low[1])

    extents = corners.max(axis=0) - corners.min(axis=0)
    span_axis = 0 if extents[0] >= extents[2] else 2
    left = corners[np.argmin(corners[:, span_axis])]
    right = corners[np.argmax(corners[:, span_axis])]
    span = float(extents[span_axis])

    return Measurements(
        inner_diameter=inner,
        outer_diameter=outer,
        height=height,
        span=span,
        inner_points=inner_pts,
        outer_points=outer_pts,
        height_points=(low, high),
        span_points=(left, right),
    )


class DrillLayout(NamedTuple):
    """Pivot hole positions in inches, measured from the bottom end of each beam."""
    h_length: float
    h_pivot_from_bottom: float
    v_length: float
    v_bottom_pivot: float
    v_center_pivot: float
    v_top_pivot: float


def drill_layout(config: ModuleConfig) -> DrillLayout:
    """Where to drill the pivot holes on a horizontal beam and a strut.

    A horizontal beam carries its scissor pivot ``offset_bot_in`` plus
    ``pivot_pct`` of the active length up from the bottom end.  A strut has
    holes ``bracket_offset`` in from each end and one at its midpoint.
    """
    v_total = config.v_length_ft * INCHES_PER_FOOT
    return DrillLayout(
        h_length=config.h_length_ft * INCHES_PER_FOOT,
        h_pivot_from_bottom=config.offset_bot_in + config.h_active * config.pivot_pct / 100.0,
        v_length=v_total,
        v_bottom_pivot=config.bracket_offset,
        v_center_pivot=v_total / 2.0,
        v_top_pivot=v_total - config.bracket_offset,
    )
