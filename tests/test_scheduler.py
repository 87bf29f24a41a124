"""Tests for the fold-angle animation state machine."""

import math

import pytest

from linkage_lab.animation.scheduler import AnimationScheduler, AnimationState
from linkage_lab.constants import CLOSED_PAUSE_MS, FULL_CYCLE_MS, MIN_FOLD_ANGLE
from linkage_lab.kinematics.calibrate import ClosedAngleCalibrator


@pytest.fixture
def make_scheduler(default_config, calibrator):
    def make(**state):
        return AnimationScheduler(default_config, AnimationState(**state), calibrator)
    return make


def test_bounds_default_to_closed_angle(make_scheduler, closed):
    assert make_scheduler().bounds() == (MIN_FOLD_ANGLE, closed)


def test_stop_angle_caps_bounds(make_scheduler, closed):
    lo, hi = make_scheduler(stop_angle=math.radians(90)).bounds()
    assert hi == math.radians(90)
    _, hi = make_scheduler(stop_angle=math.radians(170)).bounds()
    assert hi == closed


def test_idle_tick_does_nothing(make_scheduler):
    scheduler = make_scheduler()
    result = scheduler.tick(100)
    assert result.angle == MIN_FOLD_ANGLE
    assert not result.reschedule


def test_toggle(make_scheduler):
    scheduler = make_scheduler()
    assert scheduler.toggle() is True
    assert scheduler.state.playing
    assert scheduler.toggle() is False
    assert not scheduler.tick(16).reschedule


def test_play_clamps_angle(make_scheduler, closed):
    scheduler = make_scheduler(angle=math.radians(170))
    scheduler.play()
    assert scheduler.state.angle == closed


def test_angle_advances_at_cycle_rate(make_scheduler, closed):
    scheduler = make_scheduler()
    scheduler.play()
    result = scheduler.tick(FULL_CYCLE_MS / 2)
    assert result.reschedule
    assert result.angle == pytest.approx(MIN_FOLD_ANGLE + (closed - MIN_FOLD_ANGLE) / 2)

    fast = make_scheduler(speed=2.0)
    fast.play()
    assert fast.tick(FULL_CYCLE_MS / 4).angle == pytest.approx(result.angle)


def test_single_pass_stops_at_bound(make_scheduler, closed):
    scheduler = make_scheduler()
    scheduler.play()
    result = scheduler.tick(FULL_CYCLE_MS + 10)
    assert result.angle == closed
    assert result.reached_bound
    assert not result.reschedule
    assert not scheduler.state.playing


def test_ping_pong_pauses_at_closed_then_reverses(make_scheduler, closed):
    scheduler = make_scheduler(ping_pong=True)
    scheduler.play()

    result = scheduler.tick(FULL_CYCLE_MS + 1)
    assert result.reached_bound and result.paused and result.reschedule
    assert result.angle == closed
    assert scheduler.state.direction == -1

    held = scheduler.tick(CLOSED_PAUSE_MS / 2)
    assert held.paused
    assert held.angle == closed

    released = scheduler.tick(CLOSED_PAUSE_MS / 2)
    assert not released.paused
    assert released.angle == closed

    moving = scheduler.tick(100)
    assert moving.angle < closed


def test_ping_pong_reverses_at_open_bound_without_pause(make_scheduler):
    scheduler = make_scheduler(angle=math.radians(10), direction=-1, ping_pong=True)
    scheduler.play()
    result = scheduler.tick(FULL_CYCLE_MS + 1)
    assert result.angle == MIN_FOLD_ANGLE
    assert result.reached_bound
    assert not result.paused
    assert scheduler.state.direction == 1
    assert scheduler.tick(100).angle > MIN_FOLD_ANGLE


def test_ping_pong_wins_over_loop(make_scheduler):
    scheduler = make_scheduler(ping_pong=True, loop=True, stop_angle=math.radians(60))
    scheduler.play()
    result = scheduler.tick(FULL_CYCLE_MS + 1)
    assert result.angle == math.radians(60)
    assert scheduler.state.direction == -1


def test_loop_resets_after_closed_pause(make_scheduler, closed):
    scheduler = make_scheduler(loop=True)
    scheduler.play()

    result = scheduler.tick(FULL_CYCLE_MS + 1)
    assert result.paused
    assert result.angle == closed
    assert scheduler.state.angle == closed

    assert scheduler.tick(CLOSED_PAUSE_MS - 1).paused
    assert scheduler.state.angle == closed

    released = scheduler.tick(1)
    assert released.angle == MIN_FOLD_ANGLE
    assert scheduler.state.direction == 1


def test_loop_below_closed_resets_immediately(make_scheduler):
    scheduler = make_scheduler(loop=True, stop_angle=math.radians(90))
    scheduler.play()
    result = scheduler.tick(FULL_CYCLE_MS + 1)
    assert result.reached_bound
    assert not result.paused
    assert result.angle == MIN_FOLD_ANGLE


def test_stop_during_loop_pause_applies_reset(make_scheduler):
    scheduler = make_scheduler(loop=True)
    scheduler.play()
    scheduler.tick(FULL_CYCLE_MS + 1)
    scheduler.stop()
    assert scheduler.state.angle == MIN_FOLD_ANGLE
    assert scheduler.state.pause_until is None
    assert scheduler.state.resume_angle is None


def test_set_config_clamps_angle(make_scheduler, default_config, closed):
    scheduler = make_scheduler(angle=closed)
    scheduler.set_config(default_config.replace(modules=12))
    assert scheduler.state.angle == scheduler.closed_angle()
    assert scheduler.state.angle < closed


def test_invalid_speed_and_elapsed(make_scheduler):
    with pytest.raises(ValueError):
        make_scheduler(speed=0.0)
    scheduler = make_scheduler()
    scheduler.play()
    with pytest.raises(ValueError):
        scheduler.tick(-1)


def test_time_past_pause_deadline_moves_angle(make_scheduler, closed):
    scheduler = make_scheduler(ping_pong=True)
    scheduler.play()
    scheduler.tick(FULL_CYCLE_MS + 1)
    lo, hi = scheduler.bounds()

    result = scheduler.tick(CLOSED_PAUSE_MS + 300)
    assert not result.paused
    assert scheduler.state.pause_until is None
    expected = closed - (hi - lo) / FULL_CYCLE_MS * 300
    assert result.angle == pytest.approx(expected)


def test_explicit_calibrator_is_kept(default_config):
    fresh = ClosedAngleCalibrator()
    scheduler = AnimationScheduler(default_config, calibrator=fresh)
    assert scheduler.calibrator is fresh
    scheduler.bounds()
    assert fresh.computations == 1
