"""Tests for beam interference detection."""

import math

import numpy as np
import pytest

from linkage_lab.assembly.ring import assemble
from linkage_lab.collision.detector import (
    CollisionThresholds,
    DetectionStats,
    colliding_beam_indices,
    detect,
)
from linkage_lab.kinematics.solver import solve_joint
from linkage_lab.structure.models import Collision, StructureGeometry


def test_reference_ring_is_clear(default_config, reference_geometry):
    stats = DetectionStats()
    assert detect(reference_geometry, default_config, stats=stats) == []
    assert stats.passes == 3
    assert stats.aabb_tests > 0


@pytest.mark.parametrize("degrees", [140, 170])
def test_global_overfold_short_circuits(default_config, degrees):
    g = assemble(math.radians(degrees), default_config)
    stats = DetectionStats()
    collisions = detect(g, default_config, stats=stats)

    assert collisions
    assert {c.cause for c in collisions} == {"geometric-overfold"}
    assert stats.aabb_tests == 0
    assert stats.passes == 1

    first, last = 0, default_config.modules - 1
    for c in collisions:
        a, b = g.beams[c.first], g.beams[c.second]
        assert {a.module_index, b.module_index} == {first, last}
        assert a.is_top == b.is_top
        assert c.magnitude > 0
        assert "exceeds 360°" in c.message


def test_overfold_pairs_same_level_beams(default_config):
    g = assemble(math.radians(140), default_config)
    collisions = detect(g, default_config)
    # Two laminations per level, two levels
    assert len(collisions) == 8


def test_overfold_tolerance_is_configurable(default_config):
    g = assemble(math.radians(140), default_config)
    loose = CollisionThresholds(overfold_tolerance=math.radians(90))
    assert not any(c.cause == "geometric-overfold" for c in detect(g, default_config, loose))


@pytest.mark.parametrize("degrees", [5, 30, 60, 90, 120, 135])
def test_adjacent_modules_never_reported(default_config, degrees):
    g = assemble(math.radians(degrees), default_config)
    n = default_config.modules
    for c in detect(g, default_config):
        if c.cause != "over-folding":
            continue
        diff = abs(g.beams[c.first].module_index - g.beams[c.second].module_index)
        assert diff not in (0, 1, n - 1)


def test_struts_hitting_ring_beams(default_config, closed):
    config = default_config.replace(bracket_offset=0.0)
    g = assemble(closed, config)
    collisions = detect(g, config)
    hits = [c for c in collisions if c.cause == "vertical-horizontal"]
    assert hits
    for c in hits:
        assert g.beams[c.first].stack_type == "vertical"
        assert g.beams[c.second].is_horizontal
        assert c.magnitude > CollisionThresholds().min_overlap_volume


def test_thresholds_filter_small_overlaps(default_config, closed):
    config = default_config.replace(bracket_offset=0.0)
    g = assemble(closed, config)
    huge = CollisionThresholds(min_overlap_volume=1e9)
    assert not any(c.cause == "vertical-horizontal" for c in detect(g, config, huge))


def test_arch_struts_classified_along_ring_axis(arch_config):
    config = arch_config.replace(bracket_offset=0.0)
    g = assemble(math.radians(90), config)
    hits = [c for c in detect(g, config) if c.cause == "vertical-horizontal"]
    assert hits
    assert all(g.beams[c.first].stack_type == "vertical" for c in hits)


def test_stats_accumulate(default_config, reference_geometry):
    stats = DetectionStats()
    detect(reference_geometry, default_config, stats=stats)
    tests = stats.aabb_tests
    detect(reference_geometry, default_config, stats=stats)
    assert stats.aabb_tests == 2 * tests
    assert stats.passes == 6
    stats.reset()
    assert stats.aabb_tests == stats.angular_checks == stats.passes == 0


def test_empty_geometry(default_config):
    joint = solve_joint(math.radians(90), default_config)
    empty = StructureGeometry(fold_angle=math.radians(90), joint=joint, beams=())
    stats = DetectionStats()
    assert detect(empty, default_config, stats=stats) == []
    assert stats.passes == 0


def test_colliding_beam_indices():
    collisions = [
        Collision(1, 4, "over-folding", 1.0),
        Collision(4, 9, "vertical-horizontal", 2.0),
    ]
    assert colliding_beam_indices(collisions) == {1, 4, 9}
    assert colliding_beam_indices([]) == set()


def test_detection_is_deterministic(default_config):
    config = default_config.replace(bracket_offset=0.0)
    g = assemble(math.radians(120), config)
    assert detect(g, config) == detect(g, config)
    assert np.isfinite([c.magnitude for c in detect(g, config)]).all()


@pytest.mark.parametrize("orientation", ["ring", "arch"])
def test_first_and_last_module_are_adjacent(default_config, orientation):
    config = default_config.replace(orientation=orientation)
    g = assemble(math.radians(90), config)
    n = config.modules
    # Loose enough that every non-adjacent same-level pair is reported
    loose = CollisionThresholds(angular_spacing_fraction=10.0, center_distance_fraction=100.0)
    pairs = {
        tuple(sorted((g.beams[c.first].module_index, g.beams[c.second].module_index)))
        for c in detect(g, config, loose)
        if c.cause == "over-folding"
    }
    assert (0, 2) in pairs
    assert (0, n - 1) not in pairs
    for a, b in pairs:
        assert b - a not in (1, n - 1)
