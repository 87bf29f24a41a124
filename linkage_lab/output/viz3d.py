"""3D preview of an assembled structure."""

from __future__ import annotations
from pathlib import Path

import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
from mpl_toolkits.mplot3d import Axes3D   # noqa: F401
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from linkage_lab.assembly.beams import BOX_QUADS
from linkage_lab.collision.detector import colliding_beam_indices
from linkage_lab.constants import COLLISION_COLOR
from linkage_lab.structure.models import StructureReport

_BOLT_COLOUR = "#555555"
_BRACKET_COLOUR = "#8d99ae"
_FACE_COLOUR = "#2a4d8f"


def _rgb(color: tuple[int, int, int]) -> tuple[float, float, float]:
    return tuple(c / 255.0 for c in color)  # type: ignore[return-value]


def _to_plot(points: np.ndarray) -> np.ndarray:
    """Swap Y and Z so the structure's up direction is matplotlib's Z."""
    return points[..., [0, 2, 1]]


def render_3d_png(
    report: StructureReport,
    output_path: str | Path,
    dpi: int = 150,
    show_hardware: bool = True,
    show_faces: bool = False,
    verbose: bool = False,
) -> Path:
    """Render beams as shaded boxes, colliding beams tinted red."""
    output_path = Path(output_path)
    geometry = report.geometry
    hits = colliding_beam_indices(report.collisions)

    fig = plt.figure(figsize=(10, 8))
    ax = fig.add_subplot(111, projection="3d")

    polys = []
    colours = []
    for i, beam in enumerate(geometry.beams):
        corners = _to_plot(np.asarray(beam.corners))
        rgb = _rgb(COLLISION_COLOR if i in hits else beam.color)
        for quad in BOX_QUADS:
            polys.append(corners[list(quad)])
            colours.append(rgb)
    if polys:
        ax.add_collection3d(Poly3DCollection(
            polys, facecolors=colours, edgecolors=(0, 0, 0, 0.25), linewidths=0.2,
        ))

    if show_hardware:
        for bolt in geometry.bolts:
            pts = _to_plot(np.array([bolt.start, bolt.end]))
            ax.plot(pts[:, 0], pts[:, 1], pts[:, 2], color=_BOLT_COLOUR, linewidth=1.0)
        if geometry.brackets:
            pts = _to_plot(np.array([b.position for b in geometry.brackets]))
            ax.scatter(pts[:, 0], pts[:, 1], pts[:, 2], color=_BRACKET_COLOUR,
                       marker="s", s=6)

    if show_faces and geometry.faces:
        ax.add_collection3d(Poly3DCollection(
            [_to_plot(np.asarray(f.corners)) for f in geometry.faces],
            facecolors=_FACE_COLOUR, alpha=0.25, edgecolors="none",
        ))

    # Axis limits from beam corners
    if geometry.beams:
        verts = _to_plot(np.concatenate([b.corners for b in geometry.beams]))
        lo = verts.min(axis=0)
        hi = verts.max(axis=0)
        ax.set_xlim(lo[0], hi[0])
        ax.set_ylim(lo[1], hi[1])
        ax.set_zlim(lo[2], hi[2])
        ax.set_box_aspect([max(hi[i] - lo[i], 1e-6) for i in range(3)])
    ax.set_xlabel("X (in)")
    ax.set_ylabel("Z (in)")
    ax.set_zlabel("Y (in)")

    n_hits = len(hits)
    ax.set_title(
        f"{report.config.modules}-module {report.config.orientation} at "
        f"{np.degrees(geometry.fold_angle):.1f}° "
        f"({len(geometry.beams)} beams, {n_hits} colliding)"
    )

    plt.tight_layout()
    fig.savefig(str(output_path), dpi=dpi)
    plt.close(fig)

    if verbose:
        print(f"  3D PNG written → {output_path}")
    return output_path
