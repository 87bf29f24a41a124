"""Planar scissor-module kinematics.

Each module is a pair of horizontal beams crossing at a pivot that sits
``pivot_pct`` percent of the way along the active beam length.  With the
crossing at the origin and the fold angle ``φ`` as the included angle
between the beams, the four beam ends are::

    bl = a·(cos(π − φ/2),          sin(π − φ/2))
    tr = p·(cos(−φ/2 + hob),       sin(−φ/2 + hob))
    br = a·(cos(π + φ/2 + piv),    sin(π + φ/2 + piv))
    tl = p·(cos(φ/2 − hob + piv),  sin(φ/2 − hob + piv))

where ``a`` / ``p`` are the active / passive link lengths and ``hob`` /
``piv`` the Hoberman and pivot bias angles.  Neighbouring modules share the
``bl–tl`` / ``br–tr`` links, so the rotation from one module frame to the
next is the angle between those two links.
"""

from __future__ import annotations
import math

import numpy as np

from linkage_lab.constants import (
    ANGLE_EPS,
    MAX_FOLD_ANGLE,
    MIN_FOLD_ANGLE,
    MIN_SAFE_DIMENSION,
)
from linkage_lab.structure.models import (
    InvalidAngle,
    InvalidConfig,
    JointResult,
    ModuleConfig,
)


def check_fold_angle(fold_angle: float) -> float:
    """Return *fold_angle* or raise :class:`InvalidAngle` if out of domain."""
    if not math.isfinite(fold_angle) or not (
        MIN_FOLD_ANGLE - ANGLE_EPS <= fold_angle <= MAX_FOLD_ANGLE + ANGLE_EPS
    ):
        raise InvalidAngle(
            f"Fold angle {math.degrees(fold_angle):.3f}° outside "
            f"[{math.degrees(MIN_FOLD_ANGLE):g}°, {math.degrees(MAX_FOLD_ANGLE):g}°]; "
            "clamp before solving."
        )
    return fold_angle


def _wrap(angle: float) -> float:
    """Wrap *angle* into (-π, π]."""
    wrapped = math.remainder(angle, 2.0 * math.pi)
    return math.pi if wrapped == -math.pi else wrapped


def solve_joint(fold_angle: float, config: ModuleConfig) -> JointResult:
    """Solve one representative module at *fold_angle* (radians)."""
    check_fold_angle(fold_angle)
    if not 0.0 < config.pivot_pct < 100.0:
        raise InvalidConfig(
            f"pivot_pct must lie strictly between 0 and 100; got {config.pivot_pct}."
        )

    safe_h = max(MIN_SAFE_DIMENSION, config.h_active)
    ratio = config.pivot_pct / 100.0
    active = safe_h * ratio
    passive = safe_h * (1.0 - ratio)

    half = fold_angle / 2.0
    hob = math.radians(config.hoberman_angle)
    piv = math.radians(config.pivot_angle)

    def polar(r: float, theta: float) -> np.ndarray:
        return np.array([r * math.cos(theta), r * math.sin(theta)])

    joints = {
        "bl": polar(active, math.pi - half),
        "tr": polar(passive, -half + hob),
        "br": polar(active, math.pi + half + piv),
        "tl": polar(passive, half - hob + piv),
    }

    src = joints["tl"] - joints["bl"]
    dst = joints["tr"] - joints["br"]
    relative = _wrap(math.atan2(dst[1], dst[0]) - math.atan2(src[1], src[0]))

    return JointResult(
        fold_angle=fold_angle,
        relative_rotation=relative,
        joints=joints,
        active_length=active,
        passive_length=passive,
    )


def total_rotation(fold_angle: float, config: ModuleConfig) -> float:
    """Unsigned rotation accumulated over the whole ring at *fold_angle*."""
    return abs(solve_joint(fold_angle, config).relative_rotation * config.modules)


def pivot_span(fold_angle: float, config: ModuleConfig) -> float:
    """Distance between the inner and outer strut pivots of one module."""
    return solve_joint(fold_angle, config).radial_span
