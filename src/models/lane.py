"""
Lane geometry and geo-referenced vehicle models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from geo.geomath import bearing


@dataclass(frozen=True)
class StopLine:
    """
    Stop line geofence.

    Attributes:
        stop_line_id: Identifier of the stop line.
        coordinates: Ordered (lat, lng) vertices of the polyline.
    """
    stop_line_id: str
    coordinates: Tuple[Tuple[float, float], ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "StopLine":
        return cls(
            stop_line_id=str(d.get("id", "")),
            coordinates=tuple((float(c[0]), float(c[1])) for c in d.get("coordinates", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.stop_line_id,
            "coordinates": [list(c) for c in self.coordinates],
        }


@dataclass(frozen=True)
class Lane:
    """
    A signalized lane, supplied by external signal configuration.

    Attributes:
        lane_id: Lane identifier, shared with flow samples.
        direction: Legal direction of travel as a compass bearing in degrees.
        stop_line: Stop line geofence at the lane's end.
    """
    lane_id: str
    direction: float
    stop_line: StopLine

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Lane":
        """Adapter: Create from config dictionary."""
        lane_id = str(d["id"])
        stop_line_dict = d.get("stop_line") or {}
        if "id" not in stop_line_dict:
            stop_line_dict = {**stop_line_dict, "id": f"{lane_id}-stop"}
        return cls(
            lane_id=lane_id,
            direction=float(d.get("direction", 0.0)),
            stop_line=StopLine.from_dict(stop_line_dict),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.lane_id,
            "direction": self.direction,
            "stop_line": self.stop_line.to_dict(),
        }


@dataclass(frozen=True)
class VehicleObservation:
    """
    A tracked vehicle projected into geographic coordinates.

    Attributes:
        vehicle_id: Track identifier from the tracker.
        position: Current (lat, lng).
        bearing: Direction of travel in degrees clockwise from north.
    """
    vehicle_id: str
    position: Tuple[float, float]
    bearing: float

    @classmethod
    def from_positions(
        cls,
        vehicle_id: str,
        previous: Tuple[float, float],
        current: Tuple[float, float],
    ) -> "VehicleObservation":
        """Derive the bearing from two consecutive positions."""
        return cls(
            vehicle_id=vehicle_id,
            position=(float(current[0]), float(current[1])),
            bearing=bearing(previous, current),
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VehicleObservation":
        """
        Adapter: Create from a dictionary.

        Uses "bearing" when present, otherwise derives it from "previous".
        """
        vehicle_id = str(d["id"])
        position = d["position"]
        if "bearing" not in d and "previous" in d:
            return cls.from_positions(vehicle_id, d["previous"], position)
        return cls(
            vehicle_id=vehicle_id,
            position=(float(position[0]), float(position[1])),
            bearing=float(d.get("bearing", 0.0)),
        )


def lanes_from_config(items: List[Dict[str, Any]]) -> Dict[str, Lane]:
    """Build a lane_id -> Lane mapping from a list of lane dictionaries."""
    lanes = [Lane.from_dict(item) for item in items or []]
    return {lane.lane_id: lane for lane in lanes}
