"""Placement of the assembled chain in world space.

The assembler always builds in the ring frame: ring plane XZ, ring axis +Y,
bottom ring centred on y = 0.  An :class:`Orientation` maps that frame to the
final world frame and reports the resulting ring axis.
"""

from __future__ import annotations
import math
from abc import ABC, abstractmethod

import numpy as np

from linkage_lab.structure.models import Beam, Bolt, Bracket, ModuleConfig, PointFn


class Orientation(ABC):
    """Abstract base for ring and arch placement."""

    #: Index of the ring axis after :meth:`apply`.
    axis: int = 1

    @abstractmethod
    def transforms(
        self,
        left_foot: np.ndarray,
        right_foot: np.ndarray,
        body_center: np.ndarray,
    ) -> tuple[PointFn, PointFn]:
        """Return ``(point_fn, dir_fn)`` mapping ring-frame data to world space."""
        ...

    def apply(
        self,
        beams: list[Beam],
        brackets: list[Bracket],
        bolts: list[Bolt],
        left_foot: np.ndarray,
        right_foot: np.ndarray,
    ) -> tuple[list[Beam], list[Bracket], list[Bolt]]:
        if not beams:
            return beams, brackets, bolts
        body = np.mean([b.center for b in beams], axis=0)
        point_fn, dir_fn = self.transforms(left_foot, right_foot, body)
        return (
            [b.transformed(point_fn, dir_fn) for b in beams],
            [b.transformed(point_fn, dir_fn) for b in brackets],
            [b.transformed(point_fn, dir_fn) for b in bolts],
        )


class RingOrientation(Orientation):
    """Closed ring lying flat: the identity transform."""

    axis = 1

    def transforms(self, left_foot, right_foot, body_center):
        def identity(p: np.ndarray) -> np.ndarray:
            return np.asarray(p, dtype=np.float64)
        return identity, identity

    def apply(self, beams, brackets, bolts, left_foot, right_foot):
        return beams, brackets, bolts


class ArchOrientation(Orientation):
    """Open chain stood up on its two feet.

    The feet are aligned with X, the ring plane is rotated into XY so the
    ring axis becomes Z, the arch body is turned to rise above the feet and
    the feet are grounded at y = 0 with their midpoint on x = 0.
    """

    axis = 2

    def __init__(self, flip_vertical: bool = False, rotation_deg: float = 0.0) -> None:
        self.flip_vertical = flip_vertical
        self.rotation_deg = rotation_deg

    def transforms(self, left_foot, right_foot, body_center):
        left_foot = np.asarray(left_foot, dtype=np.float64)
        right_foot = np.asarray(right_foot, dtype=np.float64)
        mid = 0.5 * (left_foot + right_foot)

        foot_angle = math.atan2(right_foot[2] - left_foot[2], right_foot[0] - left_foot[0])
        theta = -foot_angle + math.radians(self.rotation_deg)
        c, s = math.cos(theta), math.sin(theta)

        # Which side of the feet line the body sits on decides "up"
        rel = body_center - mid
        upward = 1.0 if rel[0] * s + rel[2] * c >= 0.0 else -1.0
        sign = -upward if self.flip_vertical else upward

        def rotate(v: np.ndarray) -> np.ndarray:
            x, y, z = v
            x2 = x * c - z * s
            z2 = x * s + z * c
            return np.array([x2, z2 * sign, -y * sign])

        feet = np.array([rotate(left_foot - mid), rotate(right_foot - mid)])
        ground = np.array([feet[:, 0].mean(), feet[:, 1].min(), 0.0])

        def point_fn(p: np.ndarray) -> np.ndarray:
            return rotate(np.asarray(p, dtype=np.float64) - mid) - ground

        def dir_fn(v: np.ndarray) -> np.ndarray:
            return rotate(np.asarray(v, dtype=np.float64))

        return point_fn, dir_fn


def orientation_for(config: ModuleConfig) -> Orientation:
    """Build the orientation named by ``config.orientation``."""
    if config.is_arch:
        return ArchOrientation(
            flip_vertical=config.arch_flip_vertical,
            rotation_deg=config.arch_rotation,
        )
    return RingOrientation()
