"""
Geofence-based violation detection.

Detects two violation types against lane geometry:
- Red light: the signal is red and the vehicle is within the stop-line
  tolerance of the stop line.
- Wrong way: the vehicle's bearing is opposed to the lane direction by more
  than the configured threshold.

Severity is always "high". Geometry failures are logged and reported as
"no violation", so a None result means "nothing confirmed", not a proven
negative.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from geo import geomath
from models.config import ViolationConfig
from models.lane import Lane, StopLine, VehicleObservation
from models.violation import (
    SEVERITIES,
    SEVERITY_HIGH,
    SIGNAL_RED,
    VIOLATION_RED_LIGHT,
    VIOLATION_WRONG_WAY,
    Violation,
    ViolationStats,
)


# Id prefix per violation type
ID_PREFIXES: Dict[str, str] = {
    VIOLATION_RED_LIGHT: "RLV",
    VIOLATION_WRONG_WAY: "WWV",
}

_GEOMETRY_ERRORS = (ValueError, TypeError, ZeroDivisionError)


def normalized_bearing_difference(bearing_a: float, bearing_b: float) -> float:
    """Smallest angle between two bearings, in [0, 180]."""
    diff = abs(bearing_a - bearing_b)
    return min(diff, 360 - diff)


class ViolationDetector:
    """
    Detects red-light and wrong-way violations for one set of lanes.

    Violations are kept until pruned by clear_old_violations() or reset().
    Violation ids are never reused by the same instance. One instance per
    intersection; not thread safe.
    """

    def __init__(
        self,
        config: Optional[ViolationConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config or ViolationConfig()
        self._clock = clock
        self._violations: Dict[str, Violation] = {}
        self._id_counters: Dict[str, int] = {t: 1 for t in ID_PREFIXES}

        logging.info("Violation detector initialized")

    @property
    def wrong_way_threshold(self) -> float:
        return self.config.wrong_way_threshold_degrees

    def configure(
        self,
        wrong_way_threshold_degrees: Optional[float] = None,
        stop_line_distance_m: Optional[float] = None,
    ) -> None:
        """Update detector parameters. Values are not validated."""
        if wrong_way_threshold_degrees is not None:
            self.config.wrong_way_threshold_degrees = wrong_way_threshold_degrees
        if stop_line_distance_m is not None:
            self.config.stop_line_distance_m = stop_line_distance_m

    def _next_id(self, violation_type: str) -> str:
        n = self._id_counters[violation_type]
        self._id_counters[violation_type] = n + 1
        return f"{ID_PREFIXES[violation_type]}{n}"

    def _record(
        self,
        violation_type: str,
        vehicle: VehicleObservation,
        lane: Lane,
        description: str,
    ) -> Violation:
        violation = Violation(
            violation_id=self._next_id(violation_type),
            violation_type=violation_type,
            vehicle_id=vehicle.vehicle_id,
            location=vehicle.position,
            timestamp=self._clock(),
            severity=SEVERITY_HIGH,
            description=description,
            lane_id=lane.lane_id,
        )
        self._violations[violation.violation_id] = violation
        logging.info(f"Violation {violation.violation_id}: {description}")
        return violation

    def _crosses_stop_line(self, position: Tuple[float, float], stop_line: StopLine) -> bool:
        try:
            dist = geomath.point_to_line_distance(position, stop_line.coordinates, geomath.UNITS_METERS)
        except _GEOMETRY_ERRORS as e:
            logging.warning(f"Error checking stop line crossing for {stop_line.stop_line_id}: {e}")
            return False
        return dist < self.config.stop_line_distance_m

    def detect_red_light_violation(
        self,
        vehicle: VehicleObservation,
        lane: Lane,
        signal_state: str,
    ) -> Optional[Violation]:
        """
        Detect a red-light violation.

        Only evaluated while the signal is red; a vehicle on the stop line
        during yellow or green is never a violation.

        Returns:
            The recorded Violation, or None.
        """
        if signal_state != SIGNAL_RED:
            return None

        if not self._crosses_stop_line(vehicle.position, lane.stop_line):
            return None

        return self._record(
            VIOLATION_RED_LIGHT,
            vehicle,
            lane,
            f"Vehicle {vehicle.vehicle_id} crossed stop line at {lane.lane_id} during red signal",
        )

    def detect_wrong_way(self, vehicle: VehicleObservation, lane: Lane) -> Optional[Violation]:
        """
        Detect wrong-way driving.

        A violation is recorded only when the bearing difference is strictly
        greater than the threshold.
        """
        try:
            diff = normalized_bearing_difference(float(vehicle.bearing), float(lane.direction))
        except _GEOMETRY_ERRORS as e:
            logging.warning(f"Error detecting wrong way for {vehicle.vehicle_id}: {e}")
            return None

        if diff <= self.wrong_way_threshold:
            return None

        return self._record(
            VIOLATION_WRONG_WAY,
            vehicle,
            lane,
            f"Vehicle {vehicle.vehicle_id} traveling in wrong direction on {lane.lane_id} "
            f"({diff:.1f}° difference)",
        )

    def check_vehicle(
        self,
        vehicle: VehicleObservation,
        lane: Lane,
        signal_state: str,
    ) -> List[Violation]:
        """Run every check for one vehicle and return the new violations."""
        found = [
            self.detect_red_light_violation(vehicle, lane, signal_state),
            self.detect_wrong_way(vehicle, lane),
        ]
        return [v for v in found if v is not None]

    def calculate_bearing(self, frm: Tuple[float, float], to: Tuple[float, float]) -> float:
        """Bearing between two (lat, lng) points; 0 on failure."""
        try:
            return geomath.bearing(frm, to)
        except _GEOMETRY_ERRORS as e:
            logging.warning(f"Error calculating bearing: {e}")
            return 0.0

    def is_within_geofence(
        self,
        pt: Tuple[float, float],
        geofence: Sequence[Tuple[float, float]],
    ) -> bool:
        """Whether a point lies inside a polygon geofence; False on failure."""
        try:
            return geomath.boolean_point_in_polygon(pt, geofence)
        except _GEOMETRY_ERRORS as e:
            logging.warning(f"Error checking geofence: {e}")
            return False

    def distance_to_stop_line(self, position: Tuple[float, float], stop_line: StopLine) -> float:
        """Distance in meters to the stop line; math.inf when indeterminate."""
        try:
            return geomath.point_to_line_distance(position, stop_line.coordinates, geomath.UNITS_METERS)
        except _GEOMETRY_ERRORS as e:
            logging.warning(f"Error calculating distance to stop line: {e}")
            return math.inf

    def get_violations(self) -> List[Violation]:
        return list(self._violations.values())

    def get_violations_by_type(self, violation_type: str) -> List[Violation]:
        return [v for v in self._violations.values() if v.violation_type == violation_type]

    def get_violations_by_vehicle(self, vehicle_id: str) -> List[Violation]:
        return [v for v in self._violations.values() if v.vehicle_id == vehicle_id]

    def get_statistics(self) -> ViolationStats:
        """Aggregate counts by type and severity."""
        violations = self.get_violations()
        by_severity = {s: 0 for s in SEVERITIES}
        for v in violations:
            by_severity[v.severity] = by_severity.get(v.severity, 0) + 1

        return ViolationStats(
            total=len(violations),
            red_light=sum(1 for v in violations if v.violation_type == VIOLATION_RED_LIGHT),
            wrong_way=sum(1 for v in violations if v.violation_type == VIOLATION_WRONG_WAY),
            by_severity=by_severity,
        )

    def clear_old_violations(self, max_age_seconds: Optional[float] = None) -> int:
        """
        Remove violations older than max_age_seconds.

        Args:
            max_age_seconds: Age limit; defaults to config.max_violation_age_seconds (1 hour).

        Returns:
            Number of violations removed.
        """
        if max_age_seconds is None:
            max_age_seconds = self.config.max_violation_age_seconds
        now = self._clock()

        stale = [vid for vid, v in self._violations.items() if now - v.timestamp > max_age_seconds]
        for vid in stale:
            del self._violations[vid]

        if stale:
            logging.debug(f"Cleared {len(stale)} old violations")
        return len(stale)

    def reset(self) -> None:
        """Drop all violations. Id counters keep running so ids stay unique."""
        self._violations.clear()
