"""
Smoke tests for VehicleTracker stability across synthetic sequences.
"""

import numpy as np
import pytest

from models.config import TrackingConfig
from models.detection import DetectionBox, detections_from_numpy
from tracking.tracker import VehicleTracker, batch_iou, calculate_iou, classify_vehicle


def det(x, y, w=50, h=50, cls="car"):
    return DetectionBox.from_xywh(x, y, w, h, class_name=cls, confidence=0.9)


def run_ticks(tracker, clock, frames, step=1.0):
    results = []
    for frame in frames:
        results.append(tracker.update(frame))
        clock.advance(step)
    return results


class TestClassification:
    """Weight class and PCU from detector labels."""

    @pytest.mark.parametrize("label,expected", [
        ("bus", ("Heavy", 3.0)),
        ("truck", ("Heavy", 3.0)),
        ("car", ("Medium", 1.0)),
        ("van", ("Medium", 1.0)),
        ("motorcycle", ("Light", 0.5)),
        ("bicycle", ("Light", 0.5)),
        ("bike", ("Light", 0.5)),
        ("widget", ("Medium", 1.0)),
        ("", ("Medium", 1.0)),
    ])
    def test_classify_vehicle(self, label, expected):
        assert classify_vehicle(label) == expected

    def test_classification_is_case_insensitive(self):
        assert classify_vehicle("School BUS") == ("Heavy", 3.0)

    def test_substring_order(self):
        """'minibus' contains 'bus' and is checked before the car rules."""
        assert classify_vehicle("minibus") == ("Heavy", 3.0)


class TestIoUCalculation:
    """Tests for IoU calculation helpers."""

    def test_iou_identical_boxes(self):
        assert calculate_iou((100, 100, 50, 50), (100, 100, 50, 50)) == 1.0

    def test_iou_no_overlap(self):
        assert calculate_iou((0, 0, 50, 50), (100, 100, 50, 50)) == 0.0

    def test_iou_touching_edges(self):
        assert calculate_iou((0, 0, 50, 50), (50, 0, 50, 50)) == 0.0

    def test_iou_partial_overlap(self):
        # Intersection 50x100 = 5000, union 15000
        iou = calculate_iou((0, 0, 100, 100), (50, 0, 100, 100))
        assert iou == pytest.approx(1 / 3)

    def test_iou_zero_area(self):
        assert calculate_iou((0, 0, 0, 0), (0, 0, 0, 0)) == 0.0

    def test_batch_matches_scalar(self):
        box = (10, 10, 40, 30)
        boxes = np.array([
            [10, 10, 40, 30],
            [30, 20, 40, 30],
            [200, 200, 10, 10],
            [0, 0, 100, 100],
        ], dtype=float)

        ious = batch_iou(box, boxes)

        expected = [calculate_iou(box, tuple(b)) for b in boxes]
        assert ious == pytest.approx(expected)

    def test_batch_empty(self):
        assert len(batch_iou((0, 0, 10, 10), np.zeros((0, 4)))) == 0


class TestTrackerBasics:
    """Basic tracker functionality tests."""

    def test_tracker_init(self, clock):
        tracker = VehicleTracker(clock=clock)

        assert tracker.max_age_seconds == 30
        assert tracker.min_hits == 3
        assert tracker.iou_threshold == 0.3
        assert len(tracker.tracked_vehicles) == 0
        assert tracker.next_vehicle_id == 1

    def test_tracker_custom_params(self, clock):
        tracker = VehicleTracker(
            TrackingConfig(max_age_seconds=5, min_hits=2, iou_threshold=0.5),
            clock=clock,
        )

        assert tracker.max_age_seconds == 5
        assert tracker.min_hits == 2
        assert tracker.iou_threshold == 0.5

    def test_empty_detections(self, clock):
        tracker = VehicleTracker(clock=clock)

        assert tracker.update([]) == []
        assert len(tracker.tracked_vehicles) == 0

    def test_new_track_fields(self, clock):
        tracker = VehicleTracker(clock=clock)

        tracker.update([det(100, 100, cls="truck")])

        track = tracker.tracked_vehicles["V1"]
        assert track.vehicle_type == "Heavy"
        assert track.pcu == 3.0
        assert track.position == (125.0, 125.0)
        assert track.velocity == (0.0, 0.0)
        assert track.hit_streak == 1
        assert track.last_seen == clock.now

    def test_numpy_adapter_feeds_tracker(self, clock):
        tracker = VehicleTracker(clock=clock)
        arr = np.array([[100, 100, 50, 50, 0.8], [400, 400, 50, 50, 0.7]])

        tracker.update(detections_from_numpy(arr, ["bus", "bicycle"]))

        types = sorted(v.vehicle_type for v in tracker.get_all_tracks())
        assert types == ["Heavy", "Light"]


class TestTrackerSequence:
    """Tests for tracker stability across synthetic detection sequences."""

    def test_unconfirmed_until_min_hits(self, clock):
        tracker = VehicleTracker(clock=clock)

        results = run_ticks(tracker, clock, [[det(100, 100)], [det(105, 100)], [det(110, 100)]])

        assert results[0] == []
        assert results[1] == []
        assert [v.vehicle_id for v in results[2]] == ["V1"]
        assert [v.vehicle_id for v in tracker.get_tracks()] == ["V1"]

    def test_get_tracks_hides_unconfirmed(self, clock):
        tracker = VehicleTracker(clock=clock)

        tracker.update([det(100, 100)])

        assert tracker.get_tracks() == []
        assert len(tracker.get_all_tracks()) == 1

    def test_object_moves_smoothly(self, clock):
        """Object moving smoothly keeps the same id and records velocity."""
        tracker = VehicleTracker(clock=clock)

        frames = [[det(100 + i * 10, 100)] for i in range(5)]
        run_ticks(tracker, clock, frames)

        assert list(tracker.tracked_vehicles) == ["V1"]
        track = tracker.tracked_vehicles["V1"]
        assert track.hit_streak == 5
        assert track.position == (165.0, 125.0)
        assert track.velocity == (10.0, 0.0)

    def test_two_objects_tracked_independently(self, clock):
        tracker = VehicleTracker(clock=clock)

        tracker.update([det(100, 100), det(300, 300)])

        assert sorted(tracker.tracked_vehicles) == ["V1", "V2"]

    def test_match_uses_synthetic_box(self, clock):
        """Matching uses a 50x50 box around the centroid, not the detection size."""
        tracker = VehicleTracker(clock=clock)

        tracker.update([det(100, 100)])
        # Same centroid (125, 125) but a 200x200 box: IoU = 2500 / 40000
        tracker.update([det(25, 25, w=200, h=200)])

        assert sorted(tracker.tracked_vehicles) == ["V1", "V2"]

    def test_iou_at_threshold_does_not_match(self, clock):
        """The IoU must be strictly above the threshold."""
        tracker = VehicleTracker(TrackingConfig(iou_threshold=0.5), clock=clock)

        tracker.update([det(0, 0, w=100, h=50)])  # centroid (50, 25) -> track box (25, 0, 50, 50)
        # Detection (0, 0, 100, 50) against (25, 0, 50, 50): 2500 / 5000 = 0.5
        tracker.update([det(0, 0, w=100, h=50)])

        assert len(tracker.tracked_vehicles) == 2

    def test_greedy_matching_allows_shared_track(self, clock):
        """Two overlapping detections can both match the same track."""
        tracker = VehicleTracker(clock=clock)

        tracker.update([det(100, 100)])
        tracker.update([det(100, 100), det(105, 100)])

        assert list(tracker.tracked_vehicles) == ["V1"]
        assert tracker.tracked_vehicles["V1"].hit_streak == 3
        assert tracker.tracked_vehicles["V1"].position == (130.0, 125.0)

    def test_best_iou_wins(self, clock):
        """A detection goes to the track it overlaps most."""
        tracker = VehicleTracker(clock=clock)
        tracker.update([det(100, 100), det(130, 100)])

        tracker.update([det(128, 100)])

        assert tracker.tracked_vehicles["V2"].hit_streak == 2
        assert tracker.tracked_vehicles["V1"].hit_streak == 1

    def test_pcu_fixed_at_creation(self, clock):
        tracker = VehicleTracker(clock=clock)

        run_ticks(tracker, clock, [[det(100, 100, cls="bus")], [det(102, 100, cls="car")]])

        track = tracker.tracked_vehicles["V1"]
        assert track.vehicle_type == "Heavy"
        assert track.pcu == 3.0


class TestTrackerAging:
    """Eviction of stale tracks."""

    def test_track_evicted_after_max_age(self, clock):
        tracker = VehicleTracker(clock=clock)
        tracker.update([det(100, 100)])

        clock.advance(30.5)
        tracker.update([])

        assert len(tracker.tracked_vehicles) == 0

    def test_track_kept_at_max_age(self, clock):
        """Eviction needs strictly more than max_age_seconds."""
        tracker = VehicleTracker(clock=clock)
        tracker.update([det(100, 100)])

        clock.advance(30.0)
        tracker.update([])

        assert len(tracker.tracked_vehicles) == 1

    def test_matched_track_not_evicted(self, clock):
        tracker = VehicleTracker(clock=clock)
        tracker.update([det(100, 100)])

        clock.advance(60)
        tracker.update([det(100, 100)])

        assert list(tracker.tracked_vehicles) == ["V1"]

    def test_ids_not_reused_after_eviction(self, clock):
        tracker = VehicleTracker(clock=clock)
        tracker.update([det(100, 100)])
        clock.advance(31)
        tracker.update([])

        tracker.update([det(100, 100)])

        assert list(tracker.tracked_vehicles) == ["V2"]

    def test_skipped_ticks_expire_on_next_tick(self, clock):
        """No tick for a long time; the next tick cleans up."""
        tracker = VehicleTracker(clock=clock)
        tracker.update([det(100, 100)])

        clock.advance(3600)
        tracker.update([det(500, 500)])

        assert list(tracker.tracked_vehicles) == ["V2"]


class TestTrackerAggregates:
    """PCU totals and per-type counts."""

    def _confirmed_mix(self, clock):
        tracker = VehicleTracker(clock=clock)
        frame = [det(0, 0, cls="bus"), det(200, 0, cls="car"), det(400, 0, cls="bicycle"), det(600, 0, cls="van")]
        run_ticks(tracker, clock, [frame, frame, frame])
        return tracker

    def test_total_pcu(self, clock):
        tracker = self._confirmed_mix(clock)
        assert tracker.get_total_pcu() == pytest.approx(3.0 + 1.0 + 0.5 + 1.0)

    def test_count_by_type(self, clock):
        tracker = self._confirmed_mix(clock)
        assert tracker.get_count_by_type() == {"Heavy": 1, "Medium": 2, "Light": 1}

    def test_aggregates_ignore_unconfirmed(self, clock):
        tracker = VehicleTracker(clock=clock)
        tracker.update([det(0, 0, cls="bus")])

        assert tracker.get_total_pcu() == 0
        assert tracker.get_count_by_type() == {"Heavy": 0, "Medium": 0, "Light": 0}

    def test_reset(self, clock):
        tracker = self._confirmed_mix(clock)

        tracker.reset()

        assert tracker.get_all_tracks() == []
        assert tracker.next_vehicle_id == 1


class TestTrackerProperties:
    """Invariants over random detection sequences."""

    def test_confirmed_and_unique_ids(self, clock):
        rng = np.random.default_rng(42)
        tracker = VehicleTracker(clock=clock)
        labels = ["car", "bus", "bike", "truck", "thing"]

        for _ in range(60):
            n = int(rng.integers(0, 6))
            frame = [
                det(float(rng.uniform(0, 600)), float(rng.uniform(0, 400)),
                    cls=labels[int(rng.integers(0, len(labels)))])
                for _ in range(n)
            ]
            tracker.update(frame)
            clock.advance(float(rng.uniform(0.5, 8.0)))

            ids = [v.vehicle_id for v in tracker.get_all_tracks()]
            assert len(ids) == len(set(ids))
            assert all(v.hit_streak >= tracker.min_hits for v in tracker.get_tracks())
