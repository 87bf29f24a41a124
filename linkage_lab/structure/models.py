"""Central data structures for the linkage_lab package."""

from __future__ import annotations
import dataclasses
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Literal

import numpy as np

from linkage_lab.constants import INCHES_PER_FOOT, WOOD_COLOR

if TYPE_CHECKING:
    from linkage_lab.analysis.measurements import Measurements
    from linkage_lab.kinematics.calibrate import ActuatorStroke

Orientation = Literal["ring", "arch"]
StackType = Literal[
    "horizontal-bottom",
    "horizontal-top",
    "vertical",
    "vertical-cap",
    "fixed-beam",
    "fixed-beam-cap",
]
CollisionCause = Literal["vertical-horizontal", "over-folding", "geometric-overfold"]

# Order of roles inside one module; beams are emitted in this order
STACK_ORDER: tuple[str, ...] = (
    "horizontal-bottom",
    "horizontal-top",
    "vertical",
    "vertical-cap",
    "fixed-beam",
    "fixed-beam-cap",
)

PointFn = Callable[[np.ndarray], np.ndarray]


class LinkageError(ValueError):
    """Base class for recoverable linkage validation errors."""


class InvalidAngle(LinkageError):
    """Fold angle outside the valid [5°, 175°] domain."""


class InvalidConfig(LinkageError):
    """Degenerate structural parameters."""


def frozen_array(arr) -> np.ndarray:
    out = np.array(arr, dtype=np.float64)
    out.setflags(write=False)
    return out


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModuleConfig:
    """Structural parameters of one deployable ring/arch.

    Immutable: build a new one with :meth:`replace` whenever a parameter
    changes.  Lengths are inches except the ``*_ft`` beam lengths; the bias
    angles and ``arch_rotation`` are degrees.
    """
    modules: int = 8
    h_length_ft: float = 8.0
    v_length_ft: float = 8.0
    pivot_pct: float = 41.5
    hoberman_angle: float = 0.0
    pivot_angle: float = 0.0

    h_stack_count: int = 2
    v_stack_count: int = 3
    v_stack_reverse: bool = False

    offset_top_in: float = 1.5
    offset_bot_in: float = 1.5
    vert_end_offset: float = 1.5
    bracket_offset: float = 3.0
    stack_gap: float = 0.0

    h_beam_w: float = 3.5
    h_beam_t: float = 1.5
    v_beam_w: float = 1.5
    v_beam_t: float = 3.5

    orientation: Orientation = "ring"
    arch_cap_uprights: bool = False
    use_fixed_beams: bool = False
    arch_flip_vertical: bool = False
    arch_rotation: float = 0.0

    include_brackets: bool = True
    include_bolts: bool = True

    @property
    def h_active(self) -> float:
        """Pivot-to-pivot length of a horizontal beam."""
        return self.h_length_ft * INCHES_PER_FOOT - self.offset_top_in - self.offset_bot_in

    @property
    def v_active(self) -> float:
        return self.v_length_ft * INCHES_PER_FOOT - 2.0 * self.vert_end_offset

    @property
    def h_stack_thickness(self) -> float:
        n = self.h_stack_count
        return n * self.h_beam_t + (n - 1) * self.stack_gap

    @property
    def v_stack_thickness(self) -> float:
        n = self.v_stack_count
        return n * self.v_beam_w + (n - 1) * self.stack_gap

    @property
    def closure_key(self) -> tuple[int, float]:
        return (self.modules, self.pivot_pct)

    @property
    def solver_key(self) -> tuple[float, float, float]:
        """Solver inputs other than the closure key."""
        return (self.h_active, self.hoberman_angle, self.pivot_angle)

    @property
    def is_arch(self) -> bool:
        return self.orientation == "arch"

    def replace(self, **changes) -> "ModuleConfig":
        return dataclasses.replace(self, **changes)

    def validate(self) -> "ModuleConfig":
        """Raise :class:`InvalidConfig` if the parameters are degenerate."""
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, float) and not math.isfinite(value):
                raise InvalidConfig(f"{f.name} must be finite; got {value!r}.")
        if self.modules < 3:
            raise InvalidConfig(f"Need at least 3 modules; got {self.modules}.")
        if not 0.0 < self.pivot_pct < 100.0:
            raise InvalidConfig(
                f"pivot_pct must lie strictly between 0 and 100; got {self.pivot_pct}."
            )
        if self.h_stack_count < 2 or self.v_stack_count < 2:
            raise InvalidConfig(
                f"Stack counts must be ≥ 2; got h={self.h_stack_count}, "
                f"v={self.v_stack_count}."
            )
        if self.h_active <= 0:
            raise InvalidConfig(
                f"Horizontal end offsets leave no active beam length "
                f"({self.h_active:.2f} in)."
            )
        if self.v_active <= 0:
            raise InvalidConfig(
                f"Vertical end offsets leave no active beam length "
                f"({self.v_active:.2f} in)."
            )
        for name in ("h_beam_w", "h_beam_t", "v_beam_w", "v_beam_t"):
            if getattr(self, name) <= 0:
                raise InvalidConfig(f"{name} must be positive.")
        if self.orientation not in ("ring", "arch"):
            raise InvalidConfig(
                f"Unknown orientation: {self.orientation!r}. Use 'ring' or 'arch'."
            )
        return self


# ---------------------------------------------------------------------------
# Solver output
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class JointResult:
    fold_angle: float
    relative_rotation: float           # signed radians, (-π, π]
    joints: dict[str, np.ndarray]      # bl, tl, br, tr in the module plane
    active_length: float
    passive_length: float

    @property
    def radial_span(self) -> float:
        """Distance between the inner (br) and outer (tr) pivots."""
        return float(np.linalg.norm(self.joints["tr"] - self.joints["br"]))

    def local_3d(self, name: str, height: float) -> np.ndarray:
        """Joint *name* lifted to *height* in the module frame (plane XZ, up Y)."""
        x, z = self.joints[name]
        return np.array([x, height, z])


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------

@dataclass(frozen=True, eq=False)
class Beam:
    """Rigid rectangular beam: 8 box corners plus structural metadata.

    Corners 0–3 surround ``p1`` and 4–7 surround ``p2``.  Beams compare by
    identity; collisions refer to them by their index in
    :attr:`StructureGeometry.beams`.
    """
    corners: np.ndarray                # (8, 3)
    p1: np.ndarray                     # (3,)
    p2: np.ndarray                     # (3,)
    axes: np.ndarray                   # (3, 3) rows: width, thickness, length
    width: float
    thickness: float
    module_index: int
    stack_type: StackType
    lamination: int
    pattern: Literal["A", "B"]
    color: tuple[int, int, int] = WOOD_COLOR

    @property
    def center(self) -> np.ndarray:
        return 0.5 * (self.p1 + self.p2)

    @property
    def key(self) -> tuple[int, str, int]:
        return (self.module_index, self.stack_type, self.lamination)

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.corners[4] - self.corners[0]))

    @property
    def is_horizontal(self) -> bool:
        return self.stack_type.startswith("horizontal")

    @property
    def is_top(self) -> bool:
        return self.stack_type == "horizontal-top"

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Axis-aligned bounding box ``(lo, hi)``."""
        return self.corners.min(axis=0), self.corners.max(axis=0)

    def transformed(self, point_fn: PointFn, dir_fn: PointFn) -> "Beam":
        return dataclasses.replace(
            self,
            corners=frozen_array([point_fn(c) for c in self.corners]),
            p1=frozen_array(point_fn(self.p1)),
            p2=frozen_array(point_fn(self.p2)),
            axes=frozen_array([dir_fn(a) for a in self.axes]),
        )


@dataclass(frozen=True, eq=False)
class Bracket:
    """Plate bracket joining a ring pivot to the strut pivot above or below it."""
    position: np.ndarray               # ring pivot on the ring face
    extend_dir: np.ndarray             # unit vector from the ring face toward the strut pivot
    beam_dir: np.ndarray
    right: np.ndarray
    is_bottom: bool
    width: float
    depth: float
    height: float
    thickness: float
    module_index: int

    def transformed(self, point_fn: PointFn, dir_fn: PointFn) -> "Bracket":
        return dataclasses.replace(
            self,
            position=frozen_array(point_fn(self.position)),
            extend_dir=frozen_array(dir_fn(self.extend_dir)),
            beam_dir=frozen_array(dir_fn(self.beam_dir)),
            right=frozen_array(dir_fn(self.right)),
        )


@dataclass(frozen=True, eq=False)
class Bolt:
    start: np.ndarray
    end: np.ndarray
    direction: np.ndarray
    radius: float
    head_radius: float
    head_height: float
    module_index: int

    @property
    def center(self) -> np.ndarray:
        return 0.5 * (self.start + self.end)

    @property
    def length(self) -> float:
        return float(np.linalg.norm(self.end - self.start))

    def transformed(self, point_fn: PointFn, dir_fn: PointFn) -> "Bolt":
        return dataclasses.replace(
            self,
            start=frozen_array(point_fn(self.start)),
            end=frozen_array(point_fn(self.end)),
            direction=frozen_array(dir_fn(self.direction)),
        )


@dataclass(frozen=True, eq=False)
class RoofFace:
    """Outward-facing quad spanned by a top-ring beam and its bottom twin."""
    module_index: int
    face_index: int
    pattern: Literal["A", "B"]
    corners: np.ndarray                # (4, 3): top-left, top-right, bottom-right, bottom-left
    normal: np.ndarray
    width_axis: np.ndarray
    height_axis: np.ndarray
    width: float
    height: float

    @property
    def center(self) -> np.ndarray:
        return self.corners.mean(axis=0)


@dataclass(frozen=True, eq=False)
class StructureGeometry:
    """Everything produced by one :func:`~linkage_lab.assembly.ring.assemble` call."""
    fold_angle: float
    joint: JointResult
    beams: tuple[Beam, ...]
    brackets: tuple[Bracket, ...] = ()
    bolts: tuple[Bolt, ...] = ()
    faces: tuple[RoofFace, ...] = ()
    orientation: Orientation = "ring"
    axis: int = 1                      # index of the ring axis (height direction)
    center: np.ndarray = field(default_factory=lambda: frozen_array([0.0, 0.0, 0.0]))
    max_radius: float = 0.0
    max_height: float = 0.0
    _index: dict[tuple[int, str, int], int] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        index = {beam.key: i for i, beam in enumerate(self.beams)}
        object.__setattr__(self, "_index", index)

    def beam_index(self, key: tuple[int, str, int]) -> int:
        """Position of the beam with ``(module, stack_type, lamination)``."""
        return self._index[key]

    def horizontal_beams(self) -> list[Beam]:
        return [b for b in self.beams if b.is_horizontal]

    def beams_of_module(self, module_index: int) -> list[Beam]:
        return [b for b in self.beams if b.module_index == module_index]

    @property
    def plane_axes(self) -> tuple[int, int]:
        """The two coordinate indices spanning the ring plane."""
        return tuple(i for i in range(3) if i != self.axis)  # type: ignore[return-value]

    def is_empty(self) -> bool:
        return len(self.beams) == 0


# ---------------------------------------------------------------------------
# Collisions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Collision:
    first: int                         # index into StructureGeometry.beams
    second: int
    cause: CollisionCause
    magnitude: float
    message: str = ""


# ---------------------------------------------------------------------------
# Pipeline result
# ---------------------------------------------------------------------------

@dataclass(eq=False)
class StructureReport:
    """Everything the pipeline computes for one configuration and angle."""
    config: ModuleConfig
    geometry: StructureGeometry
    collisions: list[Collision] = field(default_factory=list)
    closed_angle: float | None = None
    measurements: Measurements | None = None
    stroke: ActuatorStroke | None = None
    requested_angle: float | None = None

    @property
    def fold_angle(self) -> float:
        return self.geometry.fold_angle

    @property
    def is_clear(self) -> bool:
        return not self.collisions

    def collisions_by_cause(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for c in self.collisions:
            counts[c.cause] = counts.get(c.cause, 0) + 1
        return counts
