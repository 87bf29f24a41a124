"""Write JSON and plain-text structure reports."""

from __future__ import annotations
import dataclasses
import json
import math
from pathlib import Path

import numpy as np

from linkage_lab.analysis.measurements import drill_layout
from linkage_lab.structure.models import STACK_ORDER, StructureReport


class _NumpyEncoder(json.JSONEncoder):
    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, (np.integer,)):
            return int(obj)
        if isinstance(obj, (np.floating,)):
            return float(obj)
        if isinstance(obj, (np.bool_,)):
            return bool(obj)
        return super().default(obj)


def _deg(angle: float | None) -> float | None:
    return None if angle is None else math.degrees(angle)


def _beam_counts(report: StructureReport) -> dict[str, int]:
    counts = {role: 0 for role in STACK_ORDER}
    for beam in report.geometry.beams:
        counts[beam.stack_type] = counts.get(beam.stack_type, 0) + 1
    return {k: v for k, v in counts.items() if v}


def _beam_summary(index: int, beam) -> dict:
    return {
        "index": index,
        "module": beam.module_index,
        "stack_type": beam.stack_type,
        "lamination": beam.lamination,
        "pattern": beam.pattern,
        "p1": beam.p1,
        "p2": beam.p2,
        "length": beam.length,
        "width": beam.width,
        "thickness": beam.thickness,
    }


def _collision_summary(report: StructureReport, c) -> dict:
    beams = report.geometry.beams
    return {
        "cause": c.cause,
        "first": c.first,
        "second": c.second,
        "modules": [beams[c.first].module_index, beams[c.second].module_index],
        "magnitude": c.magnitude,
        "message": c.message,
    }


def write_json(
    report: StructureReport,
    output_path: str | Path,
    include_beams: bool = True,
    verbose: bool = False,
) -> Path:
    """Write a machine-readable structure report as JSON."""
    output_path = Path(output_path)
    geometry = report.geometry

    data = {
        "config": dataclasses.asdict(report.config),
        "fold_angle_deg": math.degrees(geometry.fold_angle),
        "requested_angle_deg": _deg(report.requested_angle),
        "closed_angle_deg": _deg(report.closed_angle),
        "relative_rotation_deg": math.degrees(geometry.joint.relative_rotation),
        "total_rotation_deg": math.degrees(
            abs(geometry.joint.relative_rotation) * report.config.modules
        ),
        "summary": {
            "num_beams": len(geometry.beams),
            "beams_by_type": _beam_counts(report),
            "num_brackets": len(geometry.brackets),
            "num_bolts": len(geometry.bolts),
            "num_faces": len(geometry.faces),
            "num_collisions": len(report.collisions),
            "collisions_by_cause": report.collisions_by_cause(),
            "max_radius": geometry.max_radius,
            "max_height": geometry.max_height,
        },
        "collisions": [_collision_summary(report, c) for c in report.collisions],
    }
    if report.measurements is not None:
        m = report.measurements
        data["measurements"] = {
            "inner_diameter": m.inner_diameter,
            "outer_diameter": m.outer_diameter,
            "height": m.height,
            "span": m.span,
        }
    if report.stroke is not None:
        data["actuator"] = report.stroke._asdict()
    data["drill_layout"] = drill_layout(report.config)._asdict()
    if include_beams:
        data["beams"] = [_beam_summary(i, b) for i, b in enumerate(geometry.beams)]

    output_path.write_text(
        json.dumps(data, indent=2, cls=_NumpyEncoder), encoding="utf-8"
    )
    if verbose:
        print(f"  JSON written → {output_path}")
    return output_path


def write_txt(
    report: StructureReport,
    output_path: str | Path,
    verbose: bool = False,
) -> Path:
    """Write a human-readable structure report as plain text."""
    output_path = Path(output_path)
    cfg = report.config
    geometry = report.geometry

    lines: list[str] = []
    lines.append("=" * 60)
    lines.append("DEPLOYABLE LINKAGE REPORT")
    lines.append("=" * 60)
    lines.append(f"Orientation : {cfg.orientation}")
    lines.append(f"Modules     : {cfg.modules}")
    lines.append(
        f"Beams       : H {cfg.h_length_ft:g} ft ({cfg.h_beam_w:g}\" x {cfg.h_beam_t:g}\"), "
        f"V {cfg.v_length_ft:g} ft ({cfg.v_beam_w:g}\" x {cfg.v_beam_t:g}\")"
    )
    lines.append(f"Pivot       : {cfg.pivot_pct:g}%")
    lines.append(f"Fold angle  : {math.degrees(geometry.fold_angle):.2f}°")
    if report.requested_angle is not None and report.requested_angle != geometry.fold_angle:
        lines.append(f"  (requested {math.degrees(report.requested_angle):.2f}°)")
    if report.closed_angle is not None:
        lines.append(f"Closed angle: {math.degrees(report.closed_angle):.2f}°")
    lines.append("")

    lines.append("PARTS")
    lines.append("-" * 40)
    for role, count in _beam_counts(report).items():
        lines.append(f"  {role:<18s} {count:4d}")
    lines.append(f"  {'brackets':<18s} {len(geometry.brackets):4d}")
    lines.append(f"  {'bolts':<18s} {len(geometry.bolts):4d}")
    lines.append("")

    if report.measurements is not None:
        m = report.measurements
        lines.append("DIMENSIONS (inches)")
        lines.append("-" * 40)
        lines.append(f"  Inner diameter : {m.inner_diameter:8.2f}")
        lines.append(f"  Outer diameter : {m.outer_diameter:8.2f}")
        lines.append(f"  Height         : {m.height:8.2f}")
        lines.append(f"  Span           : {m.span:8.2f}")
        lines.append("")

    if report.stroke is not None:
        s = report.stroke
        lines.append("ACTUATOR")
        lines.append("-" * 40)
        lines.append(f"  Pivot span open   : {s.open_span:8.2f}")
        lines.append(f"  Pivot span closed : {s.closed_span:8.2f}")
        lines.append(f"  Stroke            : {s.stroke:8.2f}")
        lines.append("")

    d = drill_layout(cfg)
    lines.append("DRILL LAYOUT (inches from bottom end)")
    lines.append("-" * 40)
    lines.append(f"  Horizontal beam ({d.h_length:g}\")")
    lines.append(f"    Pivot hole      : {d.h_pivot_from_bottom:8.3f}")
    lines.append(f"  Strut ({d.v_length:g}\")")
    lines.append(f"    Bottom hole     : {d.v_bottom_pivot:8.3f}")
    lines.append(f"    Centre hole     : {d.v_center_pivot:8.3f}")
    lines.append(f"    Top hole        : {d.v_top_pivot:8.3f}")
    lines.append("")

    lines.append("COLLISIONS")
    lines.append("-" * 40)
    if not report.collisions:
        lines.append("  None")
    for c in report.collisions:
        a = geometry.beams[c.first]
        b = geometry.beams[c.second]
        lines.append(
            f"  {c.cause:<20s} module {a.module_index} {a.stack_type}[{a.lamination}] "
            f"x module {b.module_index} {b.stack_type}[{b.lamination}]"
            + (f"  {c.message}" if c.message else "")
        )

    output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    if verbose:
        print(f"  TXT written → {output_path}")
    return output_path
