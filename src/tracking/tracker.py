"""
Vehicle tracking module for keeping vehicle identities stable across ticks.

This module implements a simple IoU-based tracker. Each track stores only its
centroid; matching is done against a fixed-size square box rebuilt around that
centroid. Matching is greedy: each detection, in input order, takes the
existing track with the best IoU above the threshold. This is not an optimal
assignment and can mismatch in dense, overlapping traffic.

Tracks are classified into weight classes (Heavy/Medium/Light) with a fixed
Passenger Car Unit (PCU) weight when they are created.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from models.detection import BoundingBox, DetectionBox
from models.config import TrackingConfig
from models.track import (
    PCU_WEIGHTS,
    TrackedVehicle,
    VEHICLE_TYPES,
    VEHICLE_TYPE_HEAVY,
    VEHICLE_TYPE_LIGHT,
    VEHICLE_TYPE_MEDIUM,
)


# Substring rules, checked in order
_CLASS_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("bus", "truck"), VEHICLE_TYPE_HEAVY),
    (("car", "van"), VEHICLE_TYPE_MEDIUM),
    (("bike", "motorcycle", "bicycle"), VEHICLE_TYPE_LIGHT),
)


def classify_vehicle(class_name: str) -> Tuple[str, float]:
    """
    Map a detector class label to a weight class and PCU.

    Args:
        class_name: Detector label, matched case-insensitively by substring.

    Returns:
        (vehicle_type, pcu). Unknown labels default to Medium / 1.0.
    """
    label = (class_name or "").lower()
    for keywords, vehicle_type in _CLASS_RULES:
        if any(k in label for k in keywords):
            return vehicle_type, PCU_WEIGHTS[vehicle_type]
    return VEHICLE_TYPE_MEDIUM, PCU_WEIGHTS[VEHICLE_TYPE_MEDIUM]


def calculate_iou(
    box1: Tuple[float, float, float, float],
    box2: Tuple[float, float, float, float],
) -> float:
    """
    Calculate Intersection over Union (IoU) between two boxes.

    Args:
        box1: First box (x, y, width, height)
        box2: Second box (x, y, width, height)

    Returns:
        IoU value between 0 and 1
    """
    x1, y1, w1, h1 = box1
    x2, y2, w2, h2 = box2

    ix = max(0.0, min(x1 + w1, x2 + w2) - max(x1, x2))
    iy = max(0.0, min(y1 + h1, y2 + h2) - max(y1, y2))
    intersection = ix * iy

    union = w1 * h1 + w2 * h2 - intersection
    if union <= 0:
        return 0.0

    return intersection / union


def batch_iou(box: Tuple[float, float, float, float], boxes: np.ndarray) -> np.ndarray:
    """
    IoU of one box against many.

    Args:
        box: Box (x, y, width, height)
        boxes: Array of shape (N, 4) with rows (x, y, width, height)

    Returns:
        Array of N IoU values.
    """
    boxes = np.asarray(boxes, dtype=float).reshape(-1, 4)
    if len(boxes) == 0:
        return np.zeros(0)

    x, y, w, h = box
    ix = np.clip(np.minimum(x + w, boxes[:, 0] + boxes[:, 2]) - np.maximum(x, boxes[:, 0]), 0, None)
    iy = np.clip(np.minimum(y + h, boxes[:, 1] + boxes[:, 3]) - np.maximum(y, boxes[:, 1]), 0, None)
    intersection = ix * iy
    union = w * h + boxes[:, 2] * boxes[:, 3] - intersection

    return np.divide(intersection, union, out=np.zeros_like(intersection), where=union > 0)


class VehicleTracker:
    """
    Tracks vehicles across ticks using IoU-based matching.

    This tracker is responsible for:
    - Matching detections to existing tracks using IoU
    - Classifying new tracks into weight classes
    - Removing tracks not seen for longer than max_age_seconds

    A track is reported to callers only once it is confirmed
    (hit_streak >= min_hits). One instance per camera feed; not thread safe.
    """

    def __init__(
        self,
        config: Optional[TrackingConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the vehicle tracker.

        Args:
            config: Tracker parameters; defaults when omitted.
            clock: Returns the current Unix time in seconds.
        """
        self.config = config or TrackingConfig()
        self._clock = clock

        self.tracked_vehicles: Dict[str, TrackedVehicle] = {}
        self.next_vehicle_id = 1

        logging.info("Vehicle tracker initialized")

    @property
    def max_age_seconds(self) -> float:
        return self.config.max_age_seconds

    @property
    def min_hits(self) -> int:
        return self.config.min_hits

    @property
    def iou_threshold(self) -> float:
        return self.config.iou_threshold

    def update(self, detections: Sequence[DetectionBox]) -> List[TrackedVehicle]:
        """
        Update tracker with one tick of detections.

        Args:
            detections: Detections for this tick; may be empty.

        Returns:
            Confirmed tracks that were matched in this tick.
        """
        now = self._clock()
        matched_ids = set()
        unmatched: List[DetectionBox] = []
        updated: List[TrackedVehicle] = []

        for detection in detections:
            best_id = self._best_match(detection)
            if best_id is None:
                unmatched.append(detection)
                continue

            vehicle = self.tracked_vehicles[best_id]
            self._apply_match(vehicle, detection, now)
            matched_ids.add(best_id)

            if vehicle.is_confirmed(self.min_hits):
                updated.append(vehicle)

        self._add_new_tracks(unmatched, now)
        self._remove_old_tracks(matched_ids, now)

        return updated

    def _track_boxes(self) -> Tuple[List[str], np.ndarray]:
        """Synthetic fixed-size boxes centered on each track's centroid."""
        ids = list(self.tracked_vehicles.keys())
        size = self.config.track_box_size
        boxes = np.array([
            BoundingBox.centered(*self.tracked_vehicles[i].position, size).as_tuple()
            for i in ids
        ], dtype=float).reshape(-1, 4)
        return ids, boxes

    def _best_match(self, detection: DetectionBox) -> Optional[str]:
        """Track id with the highest IoU strictly above threshold, or None."""
        if not self.tracked_vehicles:
            return None

        ids, boxes = self._track_boxes()
        ious = batch_iou(detection.bbox.as_tuple(), boxes)
        best = int(np.argmax(ious))
        if ious[best] > self.iou_threshold:
            return ids[best]
        return None

    def _apply_match(self, vehicle: TrackedVehicle, detection: DetectionBox, now: float):
        """Move a track to the detection centroid."""
        cx, cy = detection.center
        old_x, old_y = vehicle.position
        vehicle.velocity = (cx - old_x, cy - old_y)
        vehicle.position = (cx, cy)
        vehicle.last_seen = now
        vehicle.hit_streak += 1

    def _add_new_tracks(self, detections: List[DetectionBox], now: float):
        """Add unmatched detections as new tracked vehicles."""
        for detection in detections:
            vehicle_type, pcu = classify_vehicle(detection.class_name)
            vehicle_id = f"V{self.next_vehicle_id}"
            self.next_vehicle_id += 1

            self.tracked_vehicles[vehicle_id] = TrackedVehicle(
                vehicle_id=vehicle_id,
                vehicle_type=vehicle_type,
                pcu=pcu,
                position=detection.center,
                velocity=(0.0, 0.0),
                last_seen=now,
                hit_streak=1,
            )
            logging.debug(f"New track {vehicle_id} ({vehicle_type}, class={detection.class_name!r})")

    def _remove_old_tracks(self, matched_ids: set, now: float):
        """Remove unmatched tracks that haven't been seen for too long."""
        to_remove = [
            vehicle_id
            for vehicle_id, vehicle in self.tracked_vehicles.items()
            if vehicle_id not in matched_ids and now - vehicle.last_seen > self.max_age_seconds
        ]

        for vehicle_id in to_remove:
            del self.tracked_vehicles[vehicle_id]

        if to_remove:
            logging.debug(f"Evicted {len(to_remove)} stale tracks")

    def get_tracks(self) -> List[TrackedVehicle]:
        """Get confirmed tracks (hit_streak >= min_hits)."""
        return [v for v in self.tracked_vehicles.values() if v.is_confirmed(self.min_hits)]

    def get_all_tracks(self) -> List[TrackedVehicle]:
        """Get all tracks, including unconfirmed ones."""
        return list(self.tracked_vehicles.values())

    def get_total_pcu(self) -> float:
        """Sum of PCU weights over confirmed tracks."""
        return sum(v.pcu for v in self.get_tracks())

    def get_count_by_type(self) -> Dict[str, int]:
        """Confirmed track counts per weight class."""
        counts = {vehicle_type: 0 for vehicle_type in VEHICLE_TYPES}
        for vehicle in self.get_tracks():
            counts[vehicle.vehicle_type] += 1
        return counts

    def reset(self):
        """Drop all tracks and restart id assignment."""
        self.tracked_vehicles.clear()
        self.next_vehicle_id = 1
