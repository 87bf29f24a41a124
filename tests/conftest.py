"""Shared test fixtures."""

from __future__ import annotations

import pytest

from linkage_lab.assembly.ring import assemble
from linkage_lab.kinematics.calibrate import ClosedAngleCalibrator
from linkage_lab.structure.models import ModuleConfig


@pytest.fixture
def default_config() -> ModuleConfig:
    """The 8-module reference ring."""
    return ModuleConfig()


@pytest.fixture
def calibrator() -> ClosedAngleCalibrator:
    return ClosedAngleCalibrator()


@pytest.fixture
def closed(default_config, calibrator) -> float:
    return calibrator.closed_angle(default_config)


@pytest.fixture
def reference_geometry(default_config, closed):
    return assemble(closed, default_config)


@pytest.fixture
def arch_config() -> ModuleConfig:
    return ModuleConfig(orientation="arch")
