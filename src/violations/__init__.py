"""
Violation detection for signalized lanes.
"""

from .detector import ViolationDetector, normalized_bearing_difference

__all__ = ["ViolationDetector", "normalized_bearing_difference"]
