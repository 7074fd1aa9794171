"""
Signal timing models: lane flow samples in, timing plans out.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


ACTION_EXTEND = "extend"
ACTION_REDUCE = "reduce"
ACTION_MAINTAIN = "maintain"


@dataclass(frozen=True)
class LaneFlow:
    """
    Flow sample for one lane, supplied fresh each tick.

    Attributes:
        lane_id: Lane identifier.
        saturation_flow: Discharge capacity at green (vehicles/hour).
        actual_flow: Observed flow (vehicles/hour).
        queue_length: Queued vehicles.
    """
    lane_id: str
    saturation_flow: float
    actual_flow: float
    queue_length: int = 0

    @property
    def flow_ratio(self) -> float:
        """Actual over saturation flow; 0 when capacity is unknown."""
        if self.saturation_flow == 0:
            return 0.0
        return self.actual_flow / self.saturation_flow

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LaneFlow":
        return cls(
            lane_id=str(d.get("lane_id", d.get("id", ""))),
            saturation_flow=float(d.get("saturation_flow", 0.0)),
            actual_flow=float(d.get("actual_flow", 0.0)),
            queue_length=int(d.get("queue_length", 0)),
        )


@dataclass(frozen=True)
class SignalTiming:
    """Timing plan for one lane. All values in seconds."""
    cycle_length: float
    green_time: int
    yellow_time: float
    red_time: int
    all_red_time: float
    lane_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lane_id": self.lane_id,
            "cycle_length": self.cycle_length,
            "green_time": self.green_time,
            "yellow_time": self.yellow_time,
            "red_time": self.red_time,
            "all_red_time": self.all_red_time,
        }


@dataclass(frozen=True)
class TimingRecommendation:
    """Recommended adjustment to the running signal plan."""
    action: str
    reason: str
    cycle_length: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "action": self.action,
            "reason": self.reason,
            "cycle_length": self.cycle_length,
        }
