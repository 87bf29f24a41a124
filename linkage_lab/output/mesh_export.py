"""Export an assembled structure as a triangle mesh (OBJ, STL or PLY)."""

from __future__ import annotations
from pathlib import Path

import numpy as np
import trimesh

from linkage_lab.assembly.beams import normalize
from linkage_lab.collision.detector import colliding_beam_indices
from linkage_lab.constants import COLLISION_COLOR
from linkage_lab.structure.models import Beam, Bolt, Bracket, StructureReport

MESH_FORMATS = (".obj", ".stl", ".ply")

_STEEL = (120, 120, 128)


def _frame(x_axis: np.ndarray, z_axis: np.ndarray, center: np.ndarray) -> np.ndarray:
    """Right-handed 4x4 transform with the given X and Z axes."""
    z = normalize(z_axis)
    x = normalize(x_axis - np.dot(x_axis, z) * z)
    y = np.cross(z, x)
    T = np.eye(4)
    T[:3, 0] = x
    T[:3, 1] = y
    T[:3, 2] = z
    T[:3, 3] = center
    return T


def _coloured(mesh: trimesh.Trimesh, rgb: tuple[int, int, int]) -> trimesh.Trimesh:
    mesh.visual.face_colors = [*rgb, 255]
    return mesh


def beam_mesh(beam: Beam, color: tuple[int, int, int] | None = None) -> trimesh.Trimesh:
    axes = np.asarray(beam.axes)
    box = trimesh.creation.box(
        extents=[beam.width, beam.thickness, beam.length],
        transform=_frame(axes[0], axes[2], beam.center),
    )
    return _coloured(box, color or beam.color)


def bolt_mesh(bolt: Bolt, sections: int = 12) -> trimesh.Trimesh:
    start = np.asarray(bolt.start)
    end = np.asarray(bolt.end)
    d = normalize(end - start)
    parts = [trimesh.creation.cylinder(
        radius=bolt.radius, segment=[start, end], sections=sections,
    )]
    for tip, out in ((start, -d), (end, d)):
        parts.append(trimesh.creation.cylinder(
            radius=bolt.head_radius,
            segment=[tip, tip + out * bolt.head_height],
            sections=sections,
        ))
    return _coloured(trimesh.util.concatenate(parts), _STEEL)


def bracket_mesh(bracket: Bracket) -> trimesh.Trimesh:
    """Two side plates straddling the strut stack."""
    extend = normalize(np.asarray(bracket.extend_dir))
    right = normalize(np.asarray(bracket.right) - np.dot(bracket.right, extend) * extend)
    side = np.cross(extend, right)
    base = np.asarray(bracket.position) + extend * (bracket.height / 2.0)
    plates = []
    for sign in (-1.0, 1.0):
        center = base + side * sign * (bracket.depth / 2.0)
        plates.append(trimesh.creation.box(
            extents=[bracket.width, bracket.thickness, max(bracket.height, bracket.thickness)],
            transform=_frame(right, extend, center),
        ))
    return _coloured(trimesh.util.concatenate(plates), _STEEL)


def structure_mesh(
    report: StructureReport,
    include_hardware: bool = True,
    highlight_collisions: bool = True,
) -> trimesh.Trimesh:
    """Concatenate every beam (and optionally bracket and bolt) into one mesh."""
    geometry = report.geometry
    hits = colliding_beam_indices(report.collisions) if highlight_collisions else set()
    parts = [
        beam_mesh(b, COLLISION_COLOR if i in hits else None)
        for i, b in enumerate(geometry.beams)
    ]
    if include_hardware:
        parts.extend(bracket_mesh(b) for b in geometry.brackets)
        parts.extend(bolt_mesh(b) for b in geometry.bolts)
    if not parts:
        return trimesh.Trimesh()
    return trimesh.util.concatenate(parts)


def export_mesh(
    report: StructureReport,
    output_path: str | Path,
    include_hardware: bool = True,
    verbose: bool = False,
) -> Path:
    """Write the structure mesh; the format follows the file suffix."""
    output_path = Path(output_path)
    suffix = output_path.suffix.lower()
    if suffix not in MESH_FORMATS:
        raise ValueError(
            f"Unsupported mesh format {suffix!r}; use one of {', '.join(MESH_FORMATS)}."
        )
    mesh = structure_mesh(report, include_hardware=include_hardware)
    mesh.export(str(output_path))
    if verbose:
        print(f"  Mesh exported → {output_path} "
              f"({len(mesh.vertices)} verts, {len(mesh.faces)} faces)")
    return output_path
