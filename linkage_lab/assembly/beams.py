"""Beam boxes and laminated beam stacks."""

from __future__ import annotations

import numpy as np

from linkage_lab.constants import WOOD_COLOR
from linkage_lab.structure.models import Beam, frozen_array

_UP = np.array([0.0, 1.0, 0.0])
_X = np.array([1.0, 0.0, 0.0])

# (u, v) offsets of the four corners around each beam end, in units of the
# half width / half thickness
_CORNER_OFFSETS = ((-1.0, -1.0), (1.0, -1.0), (1.0, 1.0), (-1.0, 1.0))

# Box faces as index quads (same winding for every beam)
BOX_QUADS = (
    (0, 3, 2, 1),
    (4, 5, 6, 7),
    (0, 1, 5, 4),
    (3, 7, 6, 2),
    (0, 4, 7, 3),
    (1, 2, 6, 5),
)


def normalize(v: np.ndarray, fallback: np.ndarray | None = None) -> np.ndarray:
    n = float(np.linalg.norm(v))
    if n < 1e-12:
        return np.array(fallback if fallback is not None else _X, dtype=np.float64)
    return v / n


def beam_frame(start: np.ndarray, end: np.ndarray) -> np.ndarray:
    """Local frame rows ``(width axis, thickness axis, length axis)``."""
    axis_z = normalize(end - start)
    up = _X if abs(axis_z[1]) > 0.99 else _UP
    axis_x = normalize(np.cross(axis_z, up))
    axis_y = normalize(np.cross(axis_x, axis_z))
    return np.vstack([axis_x, axis_y, axis_z])


def make_beam(
    start: np.ndarray,
    end: np.ndarray,
    width: float,
    thickness: float,
    module_index: int,
    stack_type: str,
    lamination: int,
    pattern: str,
    color: tuple[int, int, int] = WOOD_COLOR,
) -> Beam:
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)
    axes = beam_frame(start, end)
    hw, ht = width / 2.0, thickness / 2.0
    corners = [
        c + u * hw * axes[0] + v * ht * axes[1]
        for c in (start, end)
        for u, v in _CORNER_OFFSETS
    ]
    return Beam(
        corners=frozen_array(corners),
        p1=frozen_array(start),
        p2=frozen_array(end),
        axes=frozen_array(axes),
        width=width,
        thickness=thickness,
        module_index=module_index,
        stack_type=stack_type,
        lamination=lamination,
        pattern=pattern,  # type: ignore[arg-type]
        color=color,
    )


def stack_offsets(count: int, pitch_size: float, gap: float) -> np.ndarray:
    """Signed offsets that centre *count* laminations on zero."""
    total = count * pitch_size + (count - 1) * gap
    first = -total / 2.0 + pitch_size / 2.0
    return first + np.arange(count) * (pitch_size + gap)


def beam_stack(
    pattern_a: tuple[np.ndarray, np.ndarray],
    pattern_b: tuple[np.ndarray, np.ndarray],
    count: int,
    width: float,
    thickness: float,
    offset_dir: np.ndarray,
    gap: float,
    module_index: int,
    stack_type: str,
    reverse: bool = False,
) -> list[Beam]:
    """Laminated stack of beams alternating between the A and B crossings.

    Laminations are spaced by *thickness* plus *gap* along *offset_dir*.
    """
    direction = normalize(np.asarray(offset_dir, dtype=np.float64))
    beams = []
    for i, off in enumerate(stack_offsets(count, thickness, gap)):
        is_a = (i % 2 == 0) != reverse
        start, end = pattern_a if is_a else pattern_b
        shift = off * direction
        beams.append(make_beam(
            start + shift, end + shift, width, thickness,
            module_index, stack_type, i, "A" if is_a else "B",
        ))
    return beams


def strut_stack_direction(dir_a: np.ndarray, dir_b: np.ndarray) -> np.ndarray:
    """Direction perpendicular to both strut crossings of a scissor stack."""
    stack_dir = np.cross(dir_a, dir_b)
    if np.linalg.norm(stack_dir) >= 0.1:
        return normalize(stack_dir)

    # Nearly parallel crossings: fall back to a horizontal perpendicular
    avg = normalize(dir_a + dir_b, dir_a)
    stack_dir = np.cross(avg, _UP)
    if np.linalg.norm(stack_dir) >= 0.1:
        return normalize(stack_dir)
    perp = _X if abs(avg[1]) > 0.9 else np.array([-avg[2], 0.0, avg[0]])
    return normalize(perp - np.dot(perp, avg) * avg, _X)


def strut_stack(
    bottom_a: np.ndarray,
    top_a: np.ndarray,
    bottom_b: np.ndarray,
    top_b: np.ndarray,
    count: int,
    width: float,
    thickness: float,
    gap: float,
    end_offset: float,
    module_index: int,
    stack_type: str,
    reverse: bool = False,
) -> tuple[list[Beam], np.ndarray, np.ndarray]:
    """Scissor strut stack centred on the crossing of its two patterns.

    Laminations are stacked along their *width* perpendicular to both
    pattern directions; each beam is extended by *end_offset* past its
    pivots.  Returns ``(beams, stack_dir, crossing_point)``.
    """
    dir_a = normalize(top_a - bottom_a)
    dir_b = normalize(top_b - bottom_b)
    mid_a = 0.5 * (bottom_a + top_a)
    mid_b = 0.5 * (bottom_b + top_b)
    stack_dir = strut_stack_direction(dir_a, dir_b)
    crossing = 0.25 * (bottom_a + top_a + bottom_b + top_b)

    offsets = stack_offsets(count, width, gap)
    is_a = [(i % 2 == 0) != reverse for i in range(count)]

    # Shift the whole stack along stack_dir so its mean lands on the crossing
    mids = np.array([
        (mid_a if a else mid_b) + off * stack_dir for a, off in zip(is_a, offsets)
    ])
    centering = np.dot(crossing - mids.mean(axis=0), stack_dir) * stack_dir

    beams = []
    for i, (a, off) in enumerate(zip(is_a, offsets)):
        bottom, top, d = (bottom_a, top_a, dir_a) if a else (bottom_b, top_b, dir_b)
        shift = centering + off * stack_dir
        beams.append(make_beam(
            bottom + shift - end_offset * d,
            top + shift + end_offset * d,
            width, thickness, module_index, stack_type, i, "A" if a else "B",
        ))
    return beams, stack_dir, crossing
