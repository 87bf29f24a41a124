"""linkage_lab: Kinematics, assembly and collision checks for deployable scissor rings and arches."""

from linkage_lab.structure.models import (
    InvalidAngle,
    InvalidConfig,
    LinkageError,
    ModuleConfig,
    StructureGeometry,
    StructureReport,
)
from linkage_lab.structure.validation import validate_input
from linkage_lab.kinematics.solver import pivot_span, solve_joint
from linkage_lab.kinematics.calibrate import ClosedAngleCalibrator, actuator_stroke, closed_angle
from linkage_lab.assembly.ring import assemble
from linkage_lab.collision.detector import CollisionThresholds, DetectionStats, detect
from linkage_lab.collision.search import find_safe_angle, sweep
from linkage_lab.animation.scheduler import AnimationScheduler, AnimationState
from linkage_lab.analysis.measurements import calculate_measurements
from linkage_lab.pipeline import build_structure

__all__ = [
    "ModuleConfig",
    "StructureGeometry",
    "StructureReport",
    "LinkageError",
    "InvalidAngle",
    "InvalidConfig",
    "validate_input",
    "solve_joint",
    "pivot_span",
    "ClosedAngleCalibrator",
    "closed_angle",
    "actuator_stroke",
    "assemble",
    "detect",
    "CollisionThresholds",
    "DetectionStats",
    "find_safe_angle",
    "sweep",
    "AnimationScheduler",
    "AnimationState",
    "calculate_measurements",
    "build_structure",
]
