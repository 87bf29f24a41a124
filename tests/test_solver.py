"""Tests for the planar scissor-module solver."""

import math

import numpy as np
import pytest

from linkage_lab.kinematics.solver import (
    check_fold_angle,
    pivot_span,
    solve_joint,
    total_rotation,
)
from linkage_lab.structure.models import InvalidAngle, InvalidConfig


def test_joint_lengths(default_config):
    joint = solve_joint(math.radians(90), default_config)
    a, p = joint.active_length, joint.passive_length
    assert a + p == pytest.approx(default_config.h_active)
    assert a == pytest.approx(93.0 * 0.415)
    for name, r in (("bl", a), ("br", a), ("tr", p), ("tl", p)):
        assert np.linalg.norm(joint.joints[name]) == pytest.approx(r)


def test_crossing_beams_pass_through_origin(default_config):
    joint = solve_joint(math.radians(60), default_config)
    j = joint.joints
    # bl and tr lie on one line through the crossing, br and tl on the other
    assert abs(float(np.cross(j["bl"], j["tr"]))) < 1e-9
    assert abs(float(np.cross(j["br"], j["tl"]))) < 1e-9


def test_fold_angle_is_included_angle(default_config):
    fold = math.radians(70)
    j = solve_joint(fold, default_config).joints
    u = j["tr"] / np.linalg.norm(j["tr"])
    v = j["tl"] / np.linalg.norm(j["tl"])
    assert math.acos(float(np.dot(u, v))) == pytest.approx(fold)


def test_rotation_grows_with_fold_angle(default_config):
    angles = np.radians(np.arange(5, 176, 5))
    rotations = [total_rotation(a, default_config) for a in angles]
    assert all(b > a for a, b in zip(rotations, rotations[1:]))


def test_relative_rotation_is_wrapped(default_config):
    for a in np.radians([5, 45, 90, 135, 175]):
        rel = solve_joint(float(a), default_config).relative_rotation
        assert -math.pi < rel <= math.pi


def test_radial_span_shrinks_as_ring_closes(default_config):
    assert pivot_span(math.radians(5), default_config) > pivot_span(
        math.radians(135), default_config
    )
    joint = solve_joint(math.radians(100), default_config)
    assert pivot_span(math.radians(100), default_config) == pytest.approx(joint.radial_span)


def test_local_3d_lifts_joint(default_config):
    joint = solve_joint(math.radians(45), default_config)
    p = joint.local_3d("tr", 7.0)
    assert p[1] == 7.0
    assert p[0] == joint.joints["tr"][0]
    assert p[2] == joint.joints["tr"][1]


@pytest.mark.parametrize("degrees", [4.9, 175.1, -10.0, 360.0])
def test_out_of_domain_angle_rejected(default_config, degrees):
    with pytest.raises(InvalidAngle):
        solve_joint(math.radians(degrees), default_config)


def test_domain_bounds_accepted(default_config):
    assert check_fold_angle(math.radians(5)) == math.radians(5)
    solve_joint(math.radians(5), default_config)
    solve_joint(math.radians(175), default_config)


def test_nan_angle_rejected():
    with pytest.raises(InvalidAngle):
        check_fold_angle(float("nan"))


def test_pivot_at_beam_end_rejected(default_config):
    with pytest.raises(InvalidConfig):
        solve_joint(math.radians(90), default_config.replace(pivot_pct=100.0))


def test_tiny_beams_are_floored(default_config):
    config = default_config.replace(offset_top_in=47.9, offset_bot_in=47.9)
    joint = solve_joint(math.radians(90), config)
    assert joint.active_length + joint.passive_length == pytest.approx(1.0)
