"""
Typed models for the traffic intelligence core.

Use the adapter functions to convert from dicts and numpy arrays handed over
by external collaborators.
"""

from .detection import BoundingBox, DetectionBox, detections_from_numpy, detections_to_numpy
from .track import (
    TrackedVehicle,
    PCU_WEIGHTS,
    VEHICLE_TYPES,
    VEHICLE_TYPE_HEAVY,
    VEHICLE_TYPE_MEDIUM,
    VEHICLE_TYPE_LIGHT,
)
from .lane import Lane, StopLine, VehicleObservation, lanes_from_config
from .violation import Violation, ViolationStats
from .signal import LaneFlow, SignalTiming, TimingRecommendation
from .config import (
    Config,
    TrackingConfig,
    ViolationConfig,
    SignalTimingConfig,
)

__all__ = [
    # Detection
    "BoundingBox",
    "DetectionBox",
    "detections_from_numpy",
    "detections_to_numpy",
    # Tracking
    "TrackedVehicle",
    "PCU_WEIGHTS",
    "VEHICLE_TYPES",
    "VEHICLE_TYPE_HEAVY",
    "VEHICLE_TYPE_MEDIUM",
    "VEHICLE_TYPE_LIGHT",
    # Geometry
    "Lane",
    "StopLine",
    "VehicleObservation",
    "lanes_from_config",
    # Violations
    "Violation",
    "ViolationStats",
    # Signal timing
    "LaneFlow",
    "SignalTiming",
    "TimingRecommendation",
    # Config
    "Config",
    "TrackingConfig",
    "ViolationConfig",
    "SignalTimingConfig",
]
