"""Tests for the click entry points."""

import json

import pytest
from click.testing import CliRunner

from linkage_lab.cli import animate_main, main, sweep_main


def test_main_writes_reports(tmp_path):
    result = CliRunner().invoke(main, ["--output-dir", str(tmp_path), "--formats", "json"])
    assert result.exit_code == 0, result.output
    assert "56 beams" in result.output
    assert "clear" in result.output
    assert len(list(tmp_path.glob("*.json"))) == 1


def test_main_out_of_range_option():
    result = CliRunner().invoke(main, ["--modules", "2", "--formats", ""])
    assert result.exit_code == 2
    assert "nearest valid value: 3" in result.output


def test_main_out_of_range_angle():
    result = CliRunner().invoke(main, ["--angle", "200", "--formats", ""])
    assert result.exit_code == 2
    assert "nearest valid value: 175" in result.output


def test_main_safe_angle(tmp_path):
    result = CliRunner().invoke(
        main, ["--angle", "140", "--safe", "--formats", "", "--output-dir", str(tmp_path)],
    )
    assert result.exit_code == 0, result.output
    assert "(clear)" in result.output


def test_sweep(tmp_path):
    out = tmp_path / "sweep.json"
    result = CliRunner().invoke(sweep_main, [
        "--start", "130", "--stop", "140", "--step", "5",
        "--target", "140", "--json", str(out),
    ])
    assert result.exit_code == 0, result.output
    assert "Closed angle" in result.output
    assert "Collision-free ranges (3 samples)" in result.output
    assert "Nearest safe angle to 140.00°" in result.output
    data = json.loads(out.read_text())
    assert len(data["samples"]) == 3


def test_sweep_rejects_reversed_range():
    result = CliRunner().invoke(sweep_main, ["--start", "90", "--stop", "80"])
    assert result.exit_code == 2


def test_animate_stops_at_bound(tmp_path):
    trace = tmp_path / "trace.json"
    result = CliRunner().invoke(animate_main, [
        "--stop-angle", "30", "--duration-ms", "5000", "--trace", str(trace),
    ])
    assert result.exit_code == 0, result.output
    assert "Bounds:" in result.output
    assert "Stopped." in result.output
    frames = json.loads(trace.read_text())
    assert frames[-1]["reached_bound"]
    assert frames[-1]["angle_deg"] == pytest.approx(30.0)


def test_animate_ping_pong():
    result = CliRunner().invoke(animate_main, ["--ping-pong", "--duration-ms", "4500"])
    assert result.exit_code == 0, result.output
    assert "paused" in result.output
    assert "Stopped." not in result.output
