"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class TrackingConfig:
    """Vehicle tracker configuration."""
    max_age_seconds: float = 30.0
    min_hits: int = 3
    iou_threshold: float = 0.3
    track_box_size: float = 50.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TrackingConfig":
        return cls(
            max_age_seconds=d.get("max_age_seconds", 30.0),
            min_hits=d.get("min_hits", 3),
            iou_threshold=d.get("iou_threshold", 0.3),
            track_box_size=d.get("track_box_size", 50.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_age_seconds": self.max_age_seconds,
            "min_hits": self.min_hits,
            "iou_threshold": self.iou_threshold,
            "track_box_size": self.track_box_size,
        }


@dataclass
class ViolationConfig:
    """Violation detector configuration."""
    wrong_way_threshold_degrees: float = 160.0
    stop_line_distance_m: float = 2.0
    max_violation_age_seconds: float = 3600.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ViolationConfig":
        return cls(
            wrong_way_threshold_degrees=d.get("wrong_way_threshold_degrees", 160.0),
            stop_line_distance_m=d.get("stop_line_distance_m", 2.0),
            max_violation_age_seconds=d.get("max_violation_age_seconds", 3600.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "wrong_way_threshold_degrees": self.wrong_way_threshold_degrees,
            "stop_line_distance_m": self.stop_line_distance_m,
            "max_violation_age_seconds": self.max_violation_age_seconds,
        }


@dataclass
class SignalTimingConfig:
    """Webster signal timing configuration. All times in seconds."""
    loss_time: float = 10.0
    yellow_time: float = 5.0
    all_red_time: float = 2.0
    min_green: float = 10.0
    max_green: float = 90.0
    queue_extension_threshold: int = 10
    queue_extension_time: float = 10.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SignalTimingConfig":
        return cls(
            loss_time=d.get("loss_time", 10.0),
            yellow_time=d.get("yellow_time", 5.0),
            all_red_time=d.get("all_red_time", 2.0),
            min_green=d.get("min_green", 10.0),
            max_green=d.get("max_green", 90.0),
            queue_extension_threshold=d.get("queue_extension_threshold", 10),
            queue_extension_time=d.get("queue_extension_time", 10.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "loss_time": self.loss_time,
            "yellow_time": self.yellow_time,
            "all_red_time": self.all_red_time,
            "min_green": self.min_green,
            "max_green": self.max_green,
            "queue_extension_threshold": self.queue_extension_threshold,
            "queue_extension_time": self.queue_extension_time,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    Lanes are kept as raw dictionaries keyed by location id; they are turned
    into Lane objects when a location context is created.
    """
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    violations: ViolationConfig = field(default_factory=ViolationConfig)
    signal_timing: SignalTimingConfig = field(default_factory=SignalTimingConfig)
    locations: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    log_path: str = "logs/traffic_core.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        locations = {
            str(loc_id): (loc.get("lanes") or []) if isinstance(loc, dict) else []
            for loc_id, loc in (d.get("locations") or {}).items()
        }
        return cls(
            tracking=TrackingConfig.from_dict(d.get("tracking") or {}),
            violations=ViolationConfig.from_dict(d.get("violations") or {}),
            signal_timing=SignalTimingConfig.from_dict(d.get("signal_timing") or {}),
            locations=locations,
            log_path=d.get("log_path", "logs/traffic_core.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or passing to existing code)."""
        return {
            "tracking": self.tracking.to_dict(),
            "violations": self.violations.to_dict(),
            "signal_timing": self.signal_timing.to_dict(),
            "locations": {
                loc_id: {"lanes": lanes} for loc_id, lanes in self.locations.items()
            },
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
