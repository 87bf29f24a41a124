"""Tests for closed-angle calibration and its cache."""

import math

import pytest

from linkage_lab.constants import MAX_FOLD_ANGLE, MIN_FOLD_ANGLE
from linkage_lab.kinematics.calibrate import (
    ClosedAngleCalibrator,
    actuator_stroke,
    closed_angle,
    default_calibrator,
)
from linkage_lab.kinematics.solver import total_rotation
from linkage_lab.structure.models import ModuleConfig


@pytest.mark.parametrize("modules", [6, 8, 12])
def test_ring_closes_to_full_turn(calibrator, modules):
    config = ModuleConfig(modules=modules)
    angle = calibrator.closed_angle(config)
    assert MIN_FOLD_ANGLE <= angle <= MAX_FOLD_ANGLE
    assert abs(total_rotation(angle, config) - 2 * math.pi) < 0.02


def test_reference_closed_angle(closed):
    assert math.degrees(closed) == pytest.approx(135.4, abs=0.3)


def test_more_modules_close_earlier(calibrator):
    a8 = calibrator.closed_angle(ModuleConfig(modules=8))
    a12 = calibrator.closed_angle(ModuleConfig(modules=12))
    assert a12 < a8


def test_search_is_bounded(calibrator, default_config):
    calibrator.closed_angle(default_config)
    assert 0 < calibrator.solver_calls <= 171 + 41


def test_cache_hit_skips_solver(calibrator, default_config):
    first = calibrator.closed_angle(default_config)
    calls = calibrator.solver_calls
    assert calibrator.is_cached(default_config)
    assert calibrator.closed_angle(default_config) == first
    assert calibrator.solver_calls == calls
    assert calibrator.computations == 1


def test_unrelated_changes_keep_cache(calibrator, default_config):
    calibrator.closed_angle(default_config)
    for changes in (
        {"h_stack_count": 4},
        {"v_beam_w": 2.5},
        {"orientation": "arch"},
        {"bracket_offset": 1.0},
        {"v_length_ft": 10.0},
    ):
        config = default_config.replace(**changes)
        assert calibrator.is_cached(config)
        calibrator.closed_angle(config)
    assert calibrator.computations == 1


def test_closure_key_change_recomputes(calibrator, default_config):
    calibrator.closed_angle(default_config)
    calibrator.closed_angle(default_config.replace(modules=10))
    calibrator.closed_angle(default_config.replace(pivot_pct=45.0))
    assert calibrator.computations == 3
    assert len(calibrator) == 3
    # Both earlier entries are still served from the cache
    calibrator.closed_angle(default_config)
    assert calibrator.computations == 3


def test_solver_input_change_clears_cache(calibrator, default_config):
    calibrator.closed_angle(default_config)
    calibrator.closed_angle(default_config.replace(modules=10))
    assert len(calibrator) == 2

    longer = default_config.replace(h_length_ft=10.0)
    assert not calibrator.is_cached(longer)
    calibrator.closed_angle(longer)
    assert len(calibrator) == 1
    assert not calibrator.is_cached(default_config)


def test_invalidate(calibrator, default_config):
    calibrator.closed_angle(default_config)
    calibrator.invalidate()
    assert len(calibrator) == 0
    calibrator.closed_angle(default_config)
    assert calibrator.computations == 2


def test_unreachable_closure_clamps_to_domain(calibrator):
    # A centred pivot never rotates, so the ring cannot close
    angle = calibrator.closed_angle(ModuleConfig(pivot_pct=50.0))
    assert MIN_FOLD_ANGLE <= angle <= MAX_FOLD_ANGLE


def test_module_level_helpers(default_config):
    assert closed_angle(default_config) == default_calibrator().closed_angle(default_config)


def test_actuator_stroke(default_config, calibrator, closed):
    stroke = actuator_stroke(default_config, calibrator)
    assert stroke.closed_angle == closed
    assert stroke.open_span > stroke.closed_span
    assert stroke.stroke == pytest.approx(stroke.open_span - stroke.closed_span)


def test_actuator_stroke_uses_given_empty_calibrator(default_config):
    fresh = ClosedAngleCalibrator()
    assert len(fresh) == 0
    actuator_stroke(default_config, fresh)
    assert fresh.computations == 1
    assert len(fresh) == 1
