"""
Violation event models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


VIOLATION_RED_LIGHT = "red_light"
VIOLATION_WRONG_WAY = "wrong_way"

SEVERITY_LOW = "low"
SEVERITY_MEDIUM = "medium"
SEVERITY_HIGH = "high"

SEVERITIES = (SEVERITY_LOW, SEVERITY_MEDIUM, SEVERITY_HIGH)

# Signal states reported by the external signal controller
SIGNAL_RED = "red"
SIGNAL_YELLOW = "yellow"
SIGNAL_GREEN = "green"


@dataclass(frozen=True)
class Violation:
    """
    A traffic violation event.

    Attributes:
        violation_id: Unique id, prefixed by type ("RLV<n>", "WWV<n>").
        violation_type: "red_light" or "wrong_way".
        vehicle_id: ID of the offending vehicle.
        location: (lat, lng) where the violation was detected.
        timestamp: Unix timestamp of detection.
        severity: "low", "medium" or "high".
        description: Human-readable summary.
        lane_id: Lane the vehicle was evaluated against.
    """
    violation_id: str
    violation_type: str
    vehicle_id: str
    location: Tuple[float, float]
    timestamp: float
    severity: str
    description: str
    lane_id: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.violation_id,
            "type": self.violation_type,
            "vehicle_id": self.vehicle_id,
            "location": list(self.location),
            "timestamp": self.timestamp,
            "severity": self.severity,
            "description": self.description,
            "lane_id": self.lane_id,
        }


@dataclass(frozen=True)
class ViolationStats:
    """Aggregate violation counts."""
    total: int = 0
    red_light: int = 0
    wrong_way: int = 0
    by_severity: Dict[str, int] = field(default_factory=lambda: {s: 0 for s in SEVERITIES})

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "red_light": self.red_light,
            "wrong_way": self.wrong_way,
            "by_severity": dict(self.by_severity),
        }
