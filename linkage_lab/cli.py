"""Click CLI entry points for linkage_lab."""

from __future__ import annotations
import json
import math
from pathlib import Path

import click

from linkage_lab.structure.models import InvalidAngle, InvalidConfig, ModuleConfig
from linkage_lab.structure.validation import validate_input


def _checked(key: str):
    """Option callback enforcing the allowed range of *key*."""
    def callback(ctx, param, value):
        if value is None:
            return value
        result = validate_input(key, value)
        if not result.valid:
            raise click.BadParameter(
                f"{result.error} (nearest valid value: {result.value:g})"
            )
        return value
    return callback


def _parse_formats(value: str) -> list[str]:
    return [f.strip().lower() for f in value.split(",") if f.strip()]


def _radians(deg: float | None) -> float | None:
    return None if deg is None else math.radians(deg)


# ---------------------------------------------------------------------------
# Shared structural options
# ---------------------------------------------------------------------------

_DEFAULTS = ModuleConfig()

_CONFIG_OPTIONS = [
    click.option("--modules", default=_DEFAULTS.modules, show_default=True, type=int,
                 callback=_checked("modules"), help="Number of scissor modules."),
    click.option("--h-length", "h_length_ft", default=_DEFAULTS.h_length_ft,
                 show_default=True, type=float, callback=_checked("h_length_ft"),
                 help="Horizontal beam length in feet."),
    click.option("--v-length", "v_length_ft", default=_DEFAULTS.v_length_ft,
                 show_default=True, type=float, callback=_checked("v_length_ft"),
                 help="Vertical strut length in feet."),
    click.option("--pivot", "pivot_pct", default=_DEFAULTS.pivot_pct, show_default=True,
                 type=float, callback=_checked("pivot_pct"),
                 help="Scissor crossing position along the horizontal beam (%)."),
    click.option("--hoberman-angle", default=_DEFAULTS.hoberman_angle, show_default=True,
                 type=float, callback=_checked("hoberman_angle"),
                 help="Hoberman bias angle in degrees."),
    click.option("--pivot-angle", default=_DEFAULTS.pivot_angle, show_default=True,
                 type=float, callback=_checked("pivot_angle"),
                 help="Pivot bias angle in degrees."),
    click.option("--h-stack", "h_stack_count", default=_DEFAULTS.h_stack_count,
                 show_default=True, type=int, callback=_checked("h_stack_count"),
                 help="Laminations per horizontal stack."),
    click.option("--v-stack", "v_stack_count", default=_DEFAULTS.v_stack_count,
                 show_default=True, type=int, callback=_checked("v_stack_count"),
                 help="Laminations per strut stack."),
    click.option("--v-stack-reverse", is_flag=True, default=False,
                 help="Start strut stacks with pattern B."),
    click.option("--offset-top", "offset_top_in", default=_DEFAULTS.offset_top_in,
                 show_default=True, type=float, callback=_checked("offset_top_in"),
                 help="Outer end offset of horizontal beams (in)."),
    click.option("--offset-bot", "offset_bot_in", default=_DEFAULTS.offset_bot_in,
                 show_default=True, type=float, callback=_checked("offset_bot_in"),
                 help="Inner end offset of horizontal beams (in)."),
    click.option("--vert-end-offset", default=_DEFAULTS.vert_end_offset,
                 show_default=True, type=float, callback=_checked("vert_end_offset"),
                 help="Strut extension past each pivot (in)."),
    click.option("--bracket-offset", default=_DEFAULTS.bracket_offset,
                 show_default=True, type=float, callback=_checked("bracket_offset"),
                 help="Clearance from ring face to strut pivot (in)."),
    click.option("--stack-gap", default=_DEFAULTS.stack_gap, show_default=True,
                 type=float, callback=_checked("stack_gap"),
                 help="Gap between laminations (in)."),
    click.option("--h-beam-w", default=_DEFAULTS.h_beam_w, show_default=True, type=float,
                 callback=_checked("h_beam_w"), help="Horizontal beam width (in)."),
    click.option("--h-beam-t", default=_DEFAULTS.h_beam_t, show_default=True, type=float,
                 callback=_checked("h_beam_t"), help="Horizontal beam thickness (in)."),
    click.option("--v-beam-w", default=_DEFAULTS.v_beam_w, show_default=True, type=float,
                 callback=_checked("v_beam_w"), help="Strut width (in)."),
    click.option("--v-beam-t", default=_DEFAULTS.v_beam_t, show_default=True, type=float,
                 callback=_checked("v_beam_t"), help="Strut thickness (in)."),
    click.option("--orientation", default="ring", show_default=True,
                 type=click.Choice(["ring", "arch"]),
                 help="Closed ring lying flat, or open arch standing up."),
    click.option("--cap-uprights", "arch_cap_uprights", is_flag=True, default=False,
                 help="Add a strut stack on the open end of the arch."),
    click.option("--fixed-beams", "use_fixed_beams", is_flag=True, default=False,
                 help="Use straight fixed struts instead of scissor struts."),
    click.option("--flip-vertical", "arch_flip_vertical", is_flag=True, default=False,
                 help="Hang the arch downward."),
    click.option("--arch-rotation", default=0.0, show_default=True, type=float,
                 help="Extra arch rotation about the vertical, degrees."),
    click.option("--no-brackets", is_flag=True, default=False,
                 help="Omit bracket geometry."),
    click.option("--no-bolts", is_flag=True, default=False,
                 help="Omit bolt geometry."),
]


def config_options(f):
    for option in reversed(_CONFIG_OPTIONS):
        f = option(f)
    return f


def _config_from(kwargs: dict) -> ModuleConfig:
    """Pop the structural options out of *kwargs* into a ModuleConfig."""
    no_brackets = kwargs.pop("no_brackets")
    no_bolts = kwargs.pop("no_bolts")
    names = [
        "modules", "h_length_ft", "v_length_ft", "pivot_pct", "hoberman_angle",
        "pivot_angle", "h_stack_count", "v_stack_count", "v_stack_reverse",
        "offset_top_in", "offset_bot_in", "vert_end_offset", "bracket_offset",
        "stack_gap", "h_beam_w", "h_beam_t", "v_beam_w", "v_beam_t", "orientation",
        "arch_cap_uprights", "use_fixed_beams", "arch_flip_vertical", "arch_rotation",
    ]
    fields = {name: kwargs.pop(name) for name in names}
    try:
        return ModuleConfig(
            include_brackets=not no_brackets,
            include_bolts=not no_bolts,
            **fields,
        ).validate()
    except InvalidConfig as exc:
        raise click.BadParameter(str(exc)) from exc


# ---------------------------------------------------------------------------
# linkage-lab
# ---------------------------------------------------------------------------

@click.command()
@config_options
@click.option("--angle", default=None, type=float, callback=_checked("fold_angle"),
              help="Fold angle in degrees (default: the closed angle).")
@click.option("--safe", is_flag=True, default=False,
              help="Move to the nearest collision-free angle if the requested one collides.")
@click.option("--previous", default=None, type=float, callback=_checked("fold_angle"),
              help="Angle the structure is moving from (steers --safe), degrees.")
@click.option(
    "--output-dir", default=".", show_default=True,
    type=click.Path(file_okay=False),
    help="Directory for output files.",
)
@click.option(
    "--formats", default="json,txt", show_default=True,
    help="Comma-separated list of output formats: json,txt,png,obj,stl,ply.",
)
@click.option("--verbose", is_flag=True, help="Print progress messages.")
def main(
    angle: float | None,
    safe: bool,
    previous: float | None,
    output_dir: str,
    formats: str,
    verbose: bool,
    **kwargs,
) -> None:
    """Assemble a deployable scissor ring or arch and write reports.

    \b
    Examples
    --------
    Reference ring at its closed angle:
      linkage-lab --formats json,txt,png

    Twelve-module arch, half open, exported as a mesh:
      linkage-lab --modules 12 --orientation arch --angle 90 --formats obj
    """
    from linkage_lab.pipeline import build_structure

    config = _config_from(kwargs)
    report = build_structure(
        config=config,
        fold_angle=_radians(angle),
        safe=safe,
        previous=_radians(previous),
        output_dir=output_dir,
        formats=_parse_formats(formats),
        verbose=verbose,
    )
    status = "clear" if report.is_clear else f"{len(report.collisions)} collisions"
    click.echo(
        f"{len(report.geometry.beams)} beams at "
        f"{math.degrees(report.fold_angle):.2f}° ({status})"
    )


# ---------------------------------------------------------------------------
# linkage-sweep
# ---------------------------------------------------------------------------

@click.command("sweep")
@config_options
@click.option("--start", default=5.0, show_default=True, type=float,
              callback=_checked("fold_angle"), help="First fold angle, degrees.")
@click.option("--stop", default=175.0, show_default=True, type=float,
              callback=_checked("fold_angle"), help="Last fold angle, degrees.")
@click.option("--step", default=1.0, show_default=True, type=float,
              help="Sweep step, degrees.")
@click.option("--target", default=None, type=float, callback=_checked("fold_angle"),
              help="Also report the nearest collision-free angle to this one, degrees.")
@click.option("--previous", default=None, type=float, callback=_checked("fold_angle"),
              help="Angle the structure is moving from (steers --target), degrees.")
@click.option("--json", "json_path", default=None, type=click.Path(dir_okay=False),
              help="Write the per-angle samples to this JSON file.")
@click.option("--verbose", is_flag=True, help="Show a progress bar.")
def sweep_main(
    start: float,
    stop: float,
    step: float,
    target: float | None,
    previous: float | None,
    json_path: str | None,
    verbose: bool,
    **kwargs,
) -> None:
    """Sweep the fold angle and report where the structure is collision-free."""
    from linkage_lab.collision.search import collision_free_ranges, find_safe_angle, sweep
    from linkage_lab.kinematics.calibrate import actuator_stroke

    if step <= 0:
        raise click.BadParameter("step must be positive", param_hint="--step")
    if stop < start:
        raise click.BadParameter("stop must not be smaller than start", param_hint="--stop")
    config = _config_from(kwargs)

    stroke = actuator_stroke(config)
    click.echo(f"Closed angle   : {math.degrees(stroke.closed_angle):.2f}°")
    click.echo(f"Actuator stroke: {stroke.stroke:.2f} in")

    samples = sweep(config, math.radians(start), math.radians(stop),
                    math.radians(step), verbose=verbose)
    ranges = collision_free_ranges(samples)
    click.echo(f"Collision-free ranges ({len(samples)} samples):")
    if not ranges:
        click.echo("  none")
    for lo, hi in ranges:
        click.echo(f"  {math.degrees(lo):7.2f}° – {math.degrees(hi):7.2f}°")

    if target is not None:
        try:
            found = find_safe_angle(math.radians(target), config, previous=_radians(previous))
        except InvalidAngle as exc:
            raise click.BadParameter(str(exc), param_hint="--target") from exc
        if found is None:
            click.echo(f"No collision-free angle within 30° of {target:.2f}°")
        else:
            click.echo(f"Nearest safe angle to {target:.2f}°: {math.degrees(found):.2f}°")

    if json_path is not None:
        data = {
            "closed_angle_deg": math.degrees(stroke.closed_angle),
            "samples": [
                {"angle_deg": math.degrees(s.angle), "collisions": s.collisions,
                 "causes": list(s.causes)}
                for s in samples
            ],
            "clear_ranges_deg": [[math.degrees(lo), math.degrees(hi)] for lo, hi in ranges],
        }
        Path(json_path).write_text(json.dumps(data, indent=2), encoding="utf-8")
        if verbose:
            click.echo(f"  JSON written → {json_path}")


# ---------------------------------------------------------------------------
# linkage-animate
# ---------------------------------------------------------------------------

@click.command("animate")
@config_options
@click.option("--speed", default=1.0, show_default=True, type=float,
              help="Speed multiplier (1.0 = one traversal per 3 s).")
@click.option("--loop", is_flag=True, default=False,
              help="Jump back to the start bound after each traversal.")
@click.option("--ping-pong", is_flag=True, default=False,
              help="Reverse direction at each bound.")
@click.option("--stop-angle", default=None, type=float, callback=_checked("fold_angle"),
              help="Upper bound in degrees (capped at the closed angle).")
@click.option("--start-angle", default=5.0, show_default=True, type=float,
              callback=_checked("fold_angle"), help="Initial fold angle, degrees.")
@click.option("--frame-ms", default=1000.0 / 60.0, show_default=True, type=float,
              help="Simulated frame interval in milliseconds.")
@click.option("--duration-ms", default=6000.0, show_default=True, type=float,
              help="Total simulated time in milliseconds.")
@click.option("--every", default=10, show_default=True, type=int,
              help="Print every Nth frame.")
@click.option("--trace", "trace_path", default=None, type=click.Path(dir_okay=False),
              help="Write the full angle trace to this JSON file.")
def animate_main(
    speed: float,
    loop: bool,
    ping_pong: bool,
    stop_angle: float | None,
    start_angle: float,
    frame_ms: float,
    duration_ms: float,
    every: int,
    trace_path: str | None,
    **kwargs,
) -> None:
    """Drive the fold-angle animation at a fixed frame rate and print the trace."""
    from linkage_lab.animation.scheduler import AnimationScheduler, AnimationState

    if speed <= 0:
        raise click.BadParameter("speed must be positive", param_hint="--speed")
    if frame_ms <= 0:
        raise click.BadParameter("frame interval must be positive", param_hint="--frame-ms")
    config = _config_from(kwargs)

    state = AnimationState(
        angle=math.radians(start_angle),
        speed=speed,
        loop=loop,
        ping_pong=ping_pong,
        stop_angle=_radians(stop_angle),
    )
    scheduler = AnimationScheduler(config, state)
    lo, hi = scheduler.bounds()
    click.echo(f"Bounds: {math.degrees(lo):.2f}° – {math.degrees(hi):.2f}°")
    scheduler.play()

    trace = []
    frame = 0
    elapsed = 0.0
    while elapsed < duration_ms:
        result = scheduler.tick(frame_ms)
        elapsed += frame_ms
        trace.append({
            "t_ms": elapsed,
            "angle_deg": math.degrees(result.angle),
            "paused": result.paused,
            "reached_bound": result.reached_bound,
        })
        if frame % max(every, 1) == 0 or result.reached_bound or not result.reschedule:
            flags = " paused" if result.paused else ""
            flags += " bound" if result.reached_bound else ""
            click.echo(f"{elapsed:9.1f} ms  {math.degrees(result.angle):7.2f}°{flags}")
        frame += 1
        if not result.reschedule:
            click.echo("Stopped.")
            break

    if trace_path is not None:
        Path(trace_path).write_text(json.dumps(trace, indent=2), encoding="utf-8")
        click.echo(f"  Trace written → {trace_path}")
