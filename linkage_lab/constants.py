"""Shared constants for linkage_lab (inches, radians unless noted)."""

from __future__ import annotations
import math

INCHES_PER_FOOT = 12.0

MIN_FOLD_ANGLE = math.radians(5.0)
MAX_FOLD_ANGLE = math.radians(175.0)
ANGLE_EPS = 1e-9

# Links shorter than this are floored to keep the solver finite
MIN_SAFE_DIMENSION = 1.0

# Struts with less rise than this are omitted
MIN_STRUT_RISE = 1.0

WOOD_COLOR = (238, 191, 161)
COLLISION_COLOR = (220, 53, 69)

BRACKET_SIZE_MULT = 1.2
BRACKET_MIN_SIZE = 2.5
BRACKET_PLATE_THICKNESS = 0.25

BOLT_RADIUS = 0.25
BOLT_HEAD_RADIUS = 0.4
BOLT_HEAD_HEIGHT = 0.15

# Animation
FULL_CYCLE_MS = 3000.0
CLOSED_PAUSE_MS = 1000.0
CLOSED_BOUND_TOLERANCE = 0.01

# Calibration sweep
COARSE_STEP = math.radians(1.0)
FINE_STEP = math.radians(0.1)
FINE_WINDOW = math.radians(2.0)

# Safe-angle search
SAFE_SEARCH_STEP = math.radians(0.5)
SAFE_SEARCH_RANGE = math.radians(30.0)
