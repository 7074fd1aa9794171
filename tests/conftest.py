"""
Pytest configuration and shared fixtures.
"""

import logging
import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from models.lane import Lane, StopLine, VehicleObservation  # noqa: E402


class FakeClock:
    """Manually advanced clock (Unix seconds)."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def northbound_lane():
    """Lane heading north with an east-west stop line at lat 40.7128."""
    return Lane(
        lane_id="lane1",
        direction=0.0,
        stop_line=StopLine(
            stop_line_id="lane1-stop",
            coordinates=((40.7128, -74.0061), (40.7128, -74.0059)),
        ),
    )


@pytest.fixture
def vehicle_on_stop_line():
    """Northbound vehicle sitting on the lane1 stop line."""
    return VehicleObservation(vehicle_id="V1", position=(40.7128, -74.0060), bearing=0.0)


@pytest.fixture
def vehicle_far_away():
    """Northbound vehicle roughly 1 km south of the stop line."""
    return VehicleObservation(vehicle_id="V2", position=(40.7038, -74.0060), bearing=0.0)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
tracking:
  max_age_seconds: 30
  min_hits: 3
  iou_threshold: 0.3

violations:
  wrong_way_threshold_degrees: 160

signal_timing:
  loss_time: 10
  min_green: 10
  max_green: 90

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "tracking": {
            "max_age_seconds": 30,
            "min_hits": 3,
            "iou_threshold": 0.3,
        },
        "violations": {
            "wrong_way_threshold_degrees": 160,
            "stop_line_distance_m": 2.0,
        },
        "signal_timing": {
            "loss_time": 10,
            "yellow_time": 5,
            "all_red_time": 2,
            "min_green": 10,
            "max_green": 90,
        },
        "locations": {
            "main-1st": {
                "lanes": [
                    {
                        "id": "lane1",
                        "direction": 0,
                        "stop_line": {"coordinates": [[40.7128, -74.0061], [40.7128, -74.0059]]},
                    },
                ],
            },
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }


@pytest.fixture
def restore_root_logging():
    """Undo basicConfig(force=True) calls made by the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
