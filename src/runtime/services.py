from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models.detection import DetectionBox
from models.lane import VehicleObservation
from models.signal import LaneFlow, SignalTiming, TimingRecommendation
from models.track import TrackedVehicle
from models.violation import Violation
from runtime.context import IntersectionContext


@dataclass
class TrackingSnapshot:
    """Tracker output for one tick."""
    updated: List[TrackedVehicle] = field(default_factory=list)
    total_pcu: float = 0.0
    count_by_type: Dict[str, int] = field(default_factory=dict)


@dataclass
class TimingPlan:
    """Signal timing output for one tick."""
    timings: List[SignalTiming] = field(default_factory=list)
    recommendation: Optional[TimingRecommendation] = None


class TickService:
    """
    Runs one tick of each engine for a single location.

    The external scheduler decides the period of each tick type (tracking is
    typically faster than violation or timing checks) and owns persistence
    of the results.
    """

    def __init__(self, ctx: IntersectionContext):
        self.ctx = ctx
        self.tick_count = 0

    def track(self, detections: Sequence[DetectionBox]) -> TrackingSnapshot:
        self.tick_count += 1
        updated = self.ctx.tracker.update(detections)
        return TrackingSnapshot(
            updated=updated,
            total_pcu=self.ctx.tracker.get_total_pcu(),
            count_by_type=self.ctx.tracker.get_count_by_type(),
        )

    def check_violations(
        self,
        observations: Iterable[Tuple[str, VehicleObservation]],
        signal_states: Dict[str, str],
    ) -> List[Violation]:
        """
        Evaluate vehicles against their lanes.

        Args:
            observations: (lane_id, vehicle) pairs for vehicles in a lane.
            signal_states: lane_id -> "red" / "yellow" / "green".

        Returns:
            Violations recorded in this tick.
        """
        violations: List[Violation] = []
        for lane_id, vehicle in observations:
            lane = self.ctx.get_lane(lane_id)
            if lane is None:
                logging.warning(
                    f"Unknown lane {lane_id} at {self.ctx.location_id}; skipping vehicle {vehicle.vehicle_id}"
                )
                continue
            state = signal_states.get(lane_id, "")
            violations.extend(self.ctx.detector.check_vehicle(vehicle, lane, state))
        return violations

    def recommend_timing(self, flows: Sequence[LaneFlow]) -> TimingPlan:
        controller = self.ctx.controller
        return TimingPlan(
            timings=controller.calculate_signal_timing(flows),
            recommendation=controller.get_recommended_action(flows),
        )

    def prune(self) -> int:
        """Expire old violations; returns the number removed."""
        return self.ctx.detector.clear_old_violations()
