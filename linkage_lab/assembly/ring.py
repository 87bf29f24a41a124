"""Assemble the full 3D ring (or arch) of beams for one fold angle."""

from __future__ import annotations
import math
import warnings
from dataclasses import dataclass

import numpy as np

from linkage_lab.assembly.beams import beam_stack, make_beam, normalize, strut_stack
from linkage_lab.assembly.faces import roof_faces
from linkage_lab.assembly.orientation import orientation_for
from linkage_lab.constants import (
    BOLT_HEAD_HEIGHT,
    BOLT_HEAD_RADIUS,
    BOLT_RADIUS,
    BRACKET_MIN_SIZE,
    BRACKET_PLATE_THICKNESS,
    BRACKET_SIZE_MULT,
    INCHES_PER_FOOT,
    MIN_SAFE_DIMENSION,
    MIN_STRUT_RISE,
)
from linkage_lab.kinematics.solver import solve_joint
from linkage_lab.structure.models import (
    Beam,
    Bolt,
    Bracket,
    JointResult,
    ModuleConfig,
    StructureGeometry,
    frozen_array,
)

_UP = np.array([0.0, 1.0, 0.0])


# ---------------------------------------------------------------------------
# Module frames
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModuleFrame:
    """Placement of one module: planar origin and rotation about the ring axis."""
    origin: np.ndarray                 # (2,) in the ring plane
    rotation: float

    def to_world(self, p: np.ndarray, height: float) -> np.ndarray:
        c, s = math.cos(self.rotation), math.sin(self.rotation)
        x, y = p
        return np.array([
            self.origin[0] + x * c - y * s,
            height,
            self.origin[1] + x * s + y * c,
        ])


def _rot2(theta: float) -> np.ndarray:
    c, s = math.cos(theta), math.sin(theta)
    return np.array([[c, -s], [s, c]])


def module_frames(joint: JointResult, modules: int) -> list[ModuleFrame]:
    """Chain the modules so each one's ``bl`` lands on the previous ``br``."""
    frames = []
    origin = np.zeros(2)
    rotation = 0.0
    for _ in range(modules):
        frames.append(ModuleFrame(origin.copy(), rotation))
        nxt = rotation + joint.relative_rotation
        origin = origin + _rot2(rotation) @ joint.joints["br"] - _rot2(nxt) @ joint.joints["bl"]
        rotation = nxt
    return frames


def extend_point(p: np.ndarray, dist: float) -> np.ndarray:
    """Push a joint *dist* further out along its ray from the scissor crossing."""
    length = float(np.linalg.norm(p))
    if length == 0.0:
        return p
    return p * (1.0 + dist / length)


def scissor_crossing(vis: dict[str, np.ndarray]) -> np.ndarray:
    """Intersection of the ``bl→tr`` and ``br→tl`` lines in the module plane."""
    bl, tr, br, tl = vis["bl"], vis["tr"], vis["br"], vis["tl"]
    d1 = tr - bl
    d2 = tl - br
    denom = d1[0] * d2[1] - d1[1] * d2[0]
    if abs(denom) <= 1e-4:
        return 0.25 * (bl + tr + br + tl)
    t = ((br[0] - bl[0]) * d2[1] - (br[1] - bl[1]) * d2[0]) / denom
    return bl + t * d1


def strut_rise(joint: JointResult, config: ModuleConfig) -> float:
    """Vertical rise between the bottom and top strut pivots.

    Scissor struts of active length ``v`` bridging the radial span ``s``
    rise ``sqrt(v² - s²)``; fixed struts always rise their full length.
    """
    if config.use_fixed_beams:
        return config.v_length_ft * INCHES_PER_FOOT
    safe_v = max(MIN_SAFE_DIMENSION, config.v_active)
    span = joint.radial_span
    if safe_v <= span:
        return 0.0
    return math.sqrt(safe_v * safe_v - span * span)


# ---------------------------------------------------------------------------
# Hardware
# ---------------------------------------------------------------------------

def _bolt(center: np.ndarray, direction: np.ndarray, length: float, module_index: int) -> Bolt:
    direction = normalize(direction)
    half = 0.5 * length * direction
    return Bolt(
        start=frozen_array(center - half),
        end=frozen_array(center + half),
        direction=frozen_array(direction),
        radius=BOLT_RADIUS,
        head_radius=BOLT_HEAD_RADIUS,
        head_height=BOLT_HEAD_HEIGHT,
        module_index=module_index,
    )


def _brackets(
    pivots: tuple[np.ndarray, np.ndarray],
    bottom_h: float,
    top_h: float,
    beam_dir: np.ndarray,
    right_fallback: np.ndarray,
    config: ModuleConfig,
    module_index: int,
    to_world,
) -> list[Bracket]:
    """Four brackets: both pivots on the bottom ring face, then the top."""
    beam_dir = normalize(beam_dir, _UP)
    right = normalize(np.cross(beam_dir, _UP), right_fallback)
    width = max(config.v_beam_w * BRACKET_SIZE_MULT, BRACKET_MIN_SIZE)
    depth = max(config.v_beam_t * BRACKET_SIZE_MULT, BRACKET_MIN_SIZE)
    out = []
    for is_bottom, height, extend in ((True, bottom_h, _UP), (False, top_h, -_UP)):
        for pivot in pivots:
            out.append(Bracket(
                position=frozen_array(to_world(pivot, height)),
                extend_dir=frozen_array(extend),
                beam_dir=frozen_array(beam_dir),
                right=frozen_array(right),
                is_bottom=is_bottom,
                width=width,
                depth=depth,
                height=config.bracket_offset,
                thickness=BRACKET_PLATE_THICKNESS,
                module_index=module_index,
            ))
    return out


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------

def assemble(fold_angle: float, config: ModuleConfig) -> StructureGeometry:
    """Build every beam, bracket, bolt and roof face at *fold_angle* (radians).

    Raises :class:`~linkage_lab.structure.models.InvalidConfig` for degenerate
    parameters and :class:`~linkage_lab.structure.models.InvalidAngle` when
    the angle lies outside [5°, 175°].
    """
    config.validate()
    joint = solve_joint(fold_angle, config)
    loc = joint.joints
    orientation = orientation_for(config)

    vis = {
        "bl": extend_point(loc["bl"], config.offset_bot_in),
        "tr": extend_point(loc["tr"], config.offset_top_in),
        "br": extend_point(loc["br"], config.offset_bot_in),
        "tl": extend_point(loc["tl"], config.offset_top_in),
    }
    h_crossing = scissor_crossing(vis)

    rise = strut_rise(joint, config)
    y_min = config.h_stack_thickness / 2.0 + config.bracket_offset
    top_h = rise + 2.0 * y_min
    y_max = top_h - y_min
    bottom_face = config.h_stack_thickness / 2.0
    top_face = top_h - config.h_stack_thickness / 2.0

    has_struts = rise > MIN_STRUT_RISE and not config.use_fixed_beams
    if not has_struts and not config.use_fixed_beams:
        warnings.warn(
            f"Strut rise {rise:.2f} in at {math.degrees(fold_angle):.1f}° is below "
            f"{MIN_STRUT_RISE:g} in; vertical struts omitted."
        )
    with_caps = config.is_arch and config.arch_cap_uprights
    v_bolt_len = config.v_stack_thickness + 1.0
    h_bolt_len = config.h_stack_thickness + 1.0
    gap = config.stack_gap

    beams: list[Beam] = []
    brackets: list[Bracket] = []
    bolts: list[Bolt] = []

    frames = module_frames(joint, config.modules)
    for i, frame in enumerate(frames):
        to_world = frame.to_world

        # --- Horizontal rings ---
        for stack_type, h in (("horizontal-bottom", 0.0), ("horizontal-top", top_h)):
            beams.extend(beam_stack(
                (to_world(vis["bl"], h), to_world(vis["tr"], h)),
                (to_world(vis["br"], h), to_world(vis["tl"], h)),
                config.h_stack_count, config.h_beam_w, config.h_beam_t,
                _UP, gap, i, stack_type,
            ))

        # --- Scissor struts (and the arch cap on module 0) ---
        spokes = [("br", "tr", "vertical")]
        if with_caps and i == 0:
            spokes.append(("bl", "tl", "vertical-cap"))
        if has_struts:
            for inner, outer, stack_type in spokes:
                bot_inner = to_world(loc[inner], y_min)
                top_outer = to_world(loc[outer], y_max)
                bot_outer = to_world(loc[outer], y_min)
                top_inner = to_world(loc[inner], y_max)
                stack, stack_dir, crossing = strut_stack(
                    bot_inner, top_outer, bot_outer, top_inner,
                    config.v_stack_count, config.v_beam_w, config.v_beam_t, gap,
                    config.vert_end_offset, i, stack_type,
                    reverse=config.v_stack_reverse,
                )
                beams.extend(stack)
                if config.include_brackets:
                    avg_dir = normalize(top_outer - bot_inner) + normalize(top_inner - bot_outer)
                    brackets.extend(_brackets(
                        (loc[inner], loc[outer]), bottom_face, top_face,
                        avg_dir, stack_dir, config, i, to_world,
                    ))
                if config.include_bolts:
                    for pivot in (bot_inner, bot_outer, top_outer, top_inner, crossing):
                        bolts.append(_bolt(pivot, stack_dir, v_bolt_len, i))

        # --- Fixed straight struts ---
        if config.use_fixed_beams:
            for inner, outer, stack_type in spokes:
                stack_type = "fixed-beam-cap" if stack_type == "vertical-cap" else "fixed-beam"
                for k, (name, pattern) in enumerate(((inner, "A"), (outer, "B"))):
                    beams.append(make_beam(
                        to_world(loc[name], y_min), to_world(loc[name], y_max),
                        config.v_beam_w, config.v_beam_t, i, stack_type, k, pattern,
                    ))
                if config.include_brackets:
                    spoke = to_world(loc[outer], 0.0) - to_world(loc[inner], 0.0)
                    brackets.extend(_brackets(
                        (loc[inner], loc[outer]), bottom_face, top_face,
                        _UP, np.cross(normalize(spoke), _UP), config, i, to_world,
                    ))

        # --- Bolts through the horizontal scissor crossings ---
        if config.include_bolts:
            bolts.append(_bolt(to_world(h_crossing, 0.0), _UP, h_bolt_len, i))
            bolts.append(_bolt(to_world(h_crossing, top_h), _UP, h_bolt_len, i))

    # Feet: outer pivots at the two open ends of the chain
    left_foot = frames[0].to_world(loc["tl"], 0.0)
    right_foot = frames[-1].to_world(loc["tr"], 0.0)
    beams, brackets, bolts = orientation.apply(beams, brackets, bolts, left_foot, right_foot)

    return _finish(fold_angle, joint, config, beams, brackets, bolts, orientation.axis)


def _finish(
    fold_angle: float,
    joint: JointResult,
    config: ModuleConfig,
    beams: list[Beam],
    brackets: list[Bracket],
    bolts: list[Bolt],
    axis: int,
) -> StructureGeometry:
    horizontal = [b.center for b in beams if b.is_horizontal]
    if horizontal:
        center = np.mean(horizontal, axis=0)
    elif beams:
        center = np.mean([b.center for b in beams], axis=0)
    else:
        center = np.zeros(3)

    if beams:
        corners = np.concatenate([b.corners for b in beams])
        radial = corners - center
        radial[:, axis] = 0.0
        max_radius = float(np.linalg.norm(radial, axis=1).max())
        max_height = float(corners[:, 1].max() - corners[:, 1].min())
    else:
        max_radius = max_height = 0.0

    faces = roof_faces(beams, config.modules, center, axis)
    return StructureGeometry(
        fold_angle=fold_angle,
        joint=joint,
        beams=tuple(beams),
        brackets=tuple(brackets),
        bolts=tuple(bolts),
        faces=tuple(faces),
        orientation=config.orientation,
        axis=axis,
        center=frozen_array(center),
        max_radius=max_radius,
        max_height=max_height,
    )
