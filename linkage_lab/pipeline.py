"""Top-level pipeline orchestration for linkage_lab."""

from __future__ import annotations
import math
import warnings
from pathlib import Path

from linkage_lab.structure.models import ModuleConfig, StructureReport
from linkage_lab.kinematics.calibrate import ClosedAngleCalibrator


def build_structure(
    config: ModuleConfig | None = None,
    fold_angle: float | None = None,
    safe: bool = False,
    previous: float | None = None,
    output_dir: str | Path = ".",
    formats: list[str] | None = None,
    stem: str | None = None,
    calibrator: ClosedAngleCalibrator | None = None,
    verbose: bool = False,
) -> StructureReport:
    """Full pipeline: configuration → geometry → collisions → output files.

    Parameters
    ----------
    config:
        Structural parameters.  Defaults to the 8-module reference ring.
    fold_angle:
        Fold angle in radians.  Defaults to the calibrated closed angle.
    safe:
        If the requested angle collides, move to the nearest collision-free
        angle found by :func:`~linkage_lab.collision.search.find_safe_angle`.
    previous:
        Angle the structure is moving from; steers the safe-angle search.
    output_dir:
        Directory for output files.
    formats:
        Output formats to generate: json, txt, png, obj, stl, ply.  Defaults
        to ["json", "txt"].  Pass an empty list to skip writing files.
    stem:
        Base name for output files.
    calibrator:
        Closed-angle cache; defaults to the process-wide one.
    verbose:
        Print progress messages.
    """
    from linkage_lab.analysis.measurements import calculate_measurements
    from linkage_lab.assembly.ring import assemble
    from linkage_lab.collision.detector import detect
    from linkage_lab.collision.search import find_safe_angle
    from linkage_lab.kinematics.calibrate import actuator_stroke, default_calibrator

    config = (config or ModuleConfig()).validate()
    calibrator = calibrator if calibrator is not None else default_calibrator()
    if formats is None:
        formats = ["json", "txt"]
    total = 4 if formats else 3

    if verbose:
        print(f"[1/{total}] Calibrating closed angle ({config.modules} modules, "
              f"pivot {config.pivot_pct:g}%) …")
    closed = calibrator.closed_angle(config)
    stroke = actuator_stroke(config, calibrator)
    if verbose:
        print(f"      Closed at {math.degrees(closed):.2f}°, "
              f"actuator stroke {stroke.stroke:.2f} in")

    requested = closed if fold_angle is None else fold_angle
    if verbose:
        print(f"[2/{total}] Assembling {config.orientation} at "
              f"{math.degrees(requested):.2f}° …")
    geometry = assemble(requested, config)
    if verbose:
        print(f"      {len(geometry.beams)} beams, {len(geometry.brackets)} brackets, "
              f"{len(geometry.bolts)} bolts, {len(geometry.faces)} faces")

    if verbose:
        print(f"[3/{total}] Detecting collisions …")
    collisions = detect(geometry, config)
    if collisions and safe:
        found = find_safe_angle(requested, config, previous=previous)
        if found is None:
            warnings.warn(
                f"No collision-free angle within 30° of "
                f"{math.degrees(requested):.2f}°; keeping the requested angle."
            )
        else:
            if verbose:
                print(f"      {len(collisions)} collisions at requested angle; "
                      f"moved to {math.degrees(found):.2f}°")
            geometry = assemble(found, config)
            collisions = detect(geometry, config)
    if verbose:
        print(f"      {len(collisions)} collisions")

    report = StructureReport(
        config=config,
        geometry=geometry,
        collisions=collisions,
        closed_angle=closed,
        measurements=calculate_measurements(geometry),
        stroke=stroke,
        requested_angle=requested,
    )

    if formats:
        write_outputs(report, output_dir, formats, stem=stem, verbose=verbose,
                      step=f"[4/{total}]")
    if verbose:
        print("Done.")
    return report


def write_outputs(
    report: StructureReport,
    output_dir: str | Path,
    formats: list[str],
    stem: str | None = None,
    verbose: bool = False,
    step: str = "",
) -> list[Path]:
    """Write every requested format for *report* into *output_dir*."""
    from linkage_lab.output.report import write_json, write_txt

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    if stem is None:
        stem = (f"{report.config.orientation}_{report.config.modules}m_"
                f"{math.degrees(report.fold_angle):.1f}deg")
    if verbose:
        print(f"{step} Writing output …".lstrip())

    written = []
    if "json" in formats:
        written.append(write_json(report, output_dir / f"{stem}.json", verbose=verbose))
    if "txt" in formats:
        written.append(write_txt(report, output_dir / f"{stem}.txt", verbose=verbose))
    if "png" in formats:
        from linkage_lab.output.viz3d import render_3d_png
        written.append(render_3d_png(report, output_dir / f"{stem}_3d.png", verbose=verbose))

    mesh_formats = [f for f in ("obj", "stl", "ply") if f in formats]
    if mesh_formats and report.collisions:
        warnings.warn(
            f"Exporting a structure with {len(report.collisions)} collisions; "
            "colliding beams are tinted."
        )
    for fmt in mesh_formats:
        from linkage_lab.output.mesh_export import export_mesh
        written.append(export_mesh(report, output_dir / f"{stem}.{fmt}", verbose=verbose))
    return written
