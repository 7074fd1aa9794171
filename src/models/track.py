"""
Track models for tracked-vehicle state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


# Weight classes used for capacity analysis
VEHICLE_TYPE_HEAVY = "Heavy"
VEHICLE_TYPE_MEDIUM = "Medium"
VEHICLE_TYPE_LIGHT = "Light"

VEHICLE_TYPES = (VEHICLE_TYPE_HEAVY, VEHICLE_TYPE_MEDIUM, VEHICLE_TYPE_LIGHT)

# Passenger Car Unit weight per class
PCU_WEIGHTS: Dict[str, float] = {
    VEHICLE_TYPE_HEAVY: 3.0,
    VEHICLE_TYPE_MEDIUM: 1.0,
    VEHICLE_TYPE_LIGHT: 0.5,
}


@dataclass
class TrackedVehicle:
    """
    A vehicle tracked across ticks.

    Owned by the tracker that created it and updated in place on each match.
    Only the centroid is stored, not the full box.

    Attributes:
        vehicle_id: Track identifier ("V<n>").
        vehicle_type: Weight class (Heavy, Medium, Light).
        pcu: Passenger Car Unit weight, fixed at creation.
        position: Current centroid (x, y).
        velocity: Centroid displacement since the previous match (vx, vy).
        last_seen: Unix timestamp of the last match.
        hit_streak: Number of ticks this track has been matched.
    """
    vehicle_id: str
    vehicle_type: str
    pcu: float
    position: Tuple[float, float]
    velocity: Tuple[float, float] = (0.0, 0.0)
    last_seen: float = 0.0
    hit_streak: int = 1

    def is_confirmed(self, min_hits: int) -> bool:
        """Whether the track has been seen often enough to be reported."""
        return self.hit_streak >= min_hits

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "vehicle_id": self.vehicle_id,
            "vehicle_type": self.vehicle_type,
            "pcu": self.pcu,
            "position": list(self.position),
            "velocity": list(self.velocity),
            "last_seen": self.last_seen,
            "hit_streak": self.hit_streak,
        }
