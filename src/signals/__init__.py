"""
Adaptive signal timing.
"""

from .webster import SignalTimingController

__all__ = ["SignalTimingController"]
