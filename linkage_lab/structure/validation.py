"""Per-field input ranges for values typed in by a user."""

from __future__ import annotations
import math
from typing import NamedTuple

# Inclusive (min, max) per ModuleConfig field; fold_angle is in degrees.
VALIDATION_RULES: dict[str, tuple[float, float]] = {
    "modules": (3, 40),
    "h_length_ft": (2, 24),
    "v_length_ft": (2, 24),
    "pivot_pct": (0, 100),
    "hoberman_angle": (-90, 90),
    "pivot_angle": (-180, 180),
    "h_stack_count": (2, 6),
    "v_stack_count": (2, 6),
    "offset_top_in": (0, 48),
    "offset_bot_in": (0, 48),
    "vert_end_offset": (0, 48),
    "bracket_offset": (0, 12),
    "stack_gap": (-2.0, 1.0),
    "h_beam_w": (0.5, 12),
    "h_beam_t": (0.5, 12),
    "v_beam_w": (0.5, 12),
    "v_beam_t": (0.5, 12),
    "fold_angle": (5, 175),
}


class ValidationResult(NamedTuple):
    valid: bool
    error: str
    value: float


def validate_input(key: str, value) -> ValidationResult:
    """Check *value* against the range for *key*.

    Out-of-range numbers come back clamped with ``valid=False`` so the caller
    can offer the nearest legal value; unknown keys are accepted as-is.
    """
    try:
        num = float(value)
    except (TypeError, ValueError):
        return ValidationResult(False, "Invalid number", math.nan)
    if math.isnan(num):
        return ValidationResult(False, "Invalid number", num)

    rule = VALIDATION_RULES.get(key)
    if rule is None:
        return ValidationResult(True, "", num)

    lo, hi = rule
    if num < lo or num > hi:
        return ValidationResult(
            False,
            f"Value must be between {lo:g} and {hi:g}",
            min(max(num, lo), hi),
        )
    return ValidationResult(True, "", num)
