"""Tests for the collision-free angle search and sweeps."""

import math

import pytest

from linkage_lab.collision import search
from linkage_lab.collision.search import (
    SweepSample,
    collision_free_ranges,
    find_safe_angle,
    is_collision_free,
    sweep,
)
from linkage_lab.constants import MIN_FOLD_ANGLE
from linkage_lab.structure.models import InvalidAngle


def test_clear_target_is_returned_unchanged(default_config, closed):
    assert find_safe_angle(closed, default_config) == closed


def test_overfolded_target_backs_off(default_config):
    target = math.radians(140)
    found = find_safe_angle(target, default_config)
    assert found is not None
    assert found < target
    assert is_collision_free(found, default_config)

    # Brute-force downward scan in 0.1° steps
    scan = target
    while not is_collision_free(scan, default_config):
        scan -= math.radians(0.1)
    assert abs(found - scan) <= math.radians(0.5) + 1e-9


def test_out_of_domain_target(default_config):
    with pytest.raises(InvalidAngle):
        find_safe_angle(math.radians(180), default_config)
    with pytest.raises(InvalidAngle):
        find_safe_angle(math.radians(1), default_config)


def _blocked_near(target, width_deg=1.0):
    """Fake detector: every angle closer than *width_deg* to *target* collides."""
    def fake(angle, config, thresholds=None):
        return abs(angle - target) >= math.radians(width_deg) - 1e-9
    return fake


def test_prefers_smaller_angle_without_previous(monkeypatch, default_config):
    target = math.radians(90)
    monkeypatch.setattr(search, "is_collision_free", _blocked_near(target))
    assert find_safe_angle(target, default_config) == pytest.approx(math.radians(89))


def test_previous_angle_steers_direction(monkeypatch, default_config):
    target = math.radians(90)
    monkeypatch.setattr(search, "is_collision_free", _blocked_near(target))

    from_above = find_safe_angle(target, default_config, previous=math.radians(100))
    assert from_above == pytest.approx(math.radians(91))

    from_below = find_safe_angle(target, default_config, previous=math.radians(80))
    assert from_below == pytest.approx(math.radians(89))


def test_candidates_outside_domain_are_skipped(monkeypatch, default_config):
    monkeypatch.setattr(search, "is_collision_free", _blocked_near(MIN_FOLD_ANGLE, 0.5))
    found = find_safe_angle(MIN_FOLD_ANGLE, default_config)
    assert found == pytest.approx(MIN_FOLD_ANGLE + math.radians(0.5))


def test_gives_up_after_thirty_degrees(monkeypatch, default_config):
    calls = []

    def never(angle, config, thresholds=None):
        calls.append(angle)
        return False

    monkeypatch.setattr(search, "is_collision_free", never)
    assert find_safe_angle(math.radians(90), default_config) is None
    assert max(calls) == pytest.approx(math.radians(120))
    assert min(calls) == pytest.approx(math.radians(60))
    assert len(calls) == 121


def test_sweep_samples(default_config):
    samples = sweep(default_config, math.radians(130), math.radians(140), math.radians(2))
    assert len(samples) == 6
    assert samples[0].angle == pytest.approx(math.radians(130))
    assert samples[0].clear
    assert not samples[-1].clear
    assert "geometric-overfold" in samples[-1].causes


def test_sweep_rejects_bad_ranges(default_config):
    with pytest.raises(ValueError):
        sweep(default_config, math.radians(90), math.radians(80))
    with pytest.raises(ValueError):
        sweep(default_config, math.radians(80), math.radians(90), step=0.0)
    with pytest.raises(InvalidAngle):
        sweep(default_config, math.radians(1), math.radians(90))


def test_collision_free_ranges():
    samples = [
        SweepSample(1.0, 0, ()),
        SweepSample(2.0, 0, ()),
        SweepSample(3.0, 2, ("over-folding",)),
        SweepSample(4.0, 0, ()),
    ]
    assert collision_free_ranges(samples) == [(1.0, 2.0), (4.0, 4.0)]
    assert collision_free_ranges([]) == []
    assert collision_free_ranges(samples[2:3]) == []
