"""Roof faces: the quads spanned by matching top and bottom ring beams."""

from __future__ import annotations

import numpy as np

from linkage_lab.assembly.beams import normalize
from linkage_lab.structure.models import Beam, RoofFace, frozen_array


def _first_of(beams: list[Beam], pattern: str) -> Beam | None:
    for beam in beams:
        if beam.pattern == pattern:
            return beam
    return None


def roof_face(
    top: Beam,
    bottom: Beam,
    module_index: int,
    face_index: int,
    center: np.ndarray,
    axis: int,
) -> RoofFace:
    """Quad between *top* and *bottom* with its normal pointing away from *center*.

    Parameters
    ----------
    top, bottom:
        Same-pattern beams of the top and bottom ring.
    center:
        Ring centre; only its in-plane offset from the face is used.
    axis:
        Index of the ring axis, ignored when deciding which way is out.
    """
    top_dir = normalize(top.p2 - top.p1)
    bot_dir = normalize(bottom.p2 - bottom.p1)
    same = float(np.dot(top_dir, bot_dir)) > 0.0

    tl, tr = top.p1, top.p2
    bl, br = (bottom.p1, bottom.p2) if same else (bottom.p2, bottom.p1)
    corners = np.array([tl, tr, br, bl])
    face_center = corners.mean(axis=0)

    top_edge, bot_edge = tr - tl, br - bl
    left_edge, right_edge = bl - tl, br - tr
    width = 0.5 * (np.linalg.norm(top_edge) + np.linalg.norm(bot_edge))
    height = 0.5 * (np.linalg.norm(left_edge) + np.linalg.norm(right_edge))

    width_axis = normalize(top_edge + bot_edge)
    height_axis = normalize(left_edge + right_edge)
    normal = normalize(np.cross(width_axis, height_axis))

    outward = face_center - np.asarray(center, dtype=np.float64)
    outward[axis] = 0.0
    if np.linalg.norm(outward) > 0.1 and np.dot(normal, outward) < 0.0:
        normal = -normal
        height_axis = -height_axis

    height_axis = normalize(height_axis - np.dot(height_axis, normal) * normal)
    width_axis = normalize(np.cross(height_axis, normal))

    return RoofFace(
        module_index=module_index,
        face_index=face_index,
        pattern=top.pattern,
        corners=frozen_array(corners),
        normal=frozen_array(normal),
        width_axis=frozen_array(width_axis),
        height_axis=frozen_array(height_axis),
        width=float(width),
        height=float(height),
    )


def roof_faces(
    beams: list[Beam] | tuple[Beam, ...],
    modules: int,
    center: np.ndarray,
    axis: int,
) -> list[RoofFace]:
    """Two faces (pattern A then B) per module that has both rings."""
    faces = []
    for i in range(modules):
        tops = [b for b in beams if b.module_index == i and b.stack_type == "horizontal-top"]
        bottoms = [b for b in beams if b.module_index == i and b.stack_type == "horizontal-bottom"]
        for k, pattern in enumerate(("A", "B")):
            top = _first_of(tops, pattern)
            bottom = _first_of(bottoms, pattern)
            if top is None or bottom is None:
                continue
            faces.append(roof_face(top, bottom, i, 2 * i + k, center, axis))
    return faces
