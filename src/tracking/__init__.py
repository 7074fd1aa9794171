"""
Tracking module.

The canonical tracker implementation is in tracking.tracker.
"""

from .tracker import VehicleTracker, batch_iou, calculate_iou, classify_vehicle

__all__ = ["VehicleTracker", "batch_iou", "calculate_iou", "classify_vehicle"]
