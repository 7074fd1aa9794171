from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.config import Config
from models.lane import Lane, lanes_from_config
from signals.webster import SignalTimingController
from tracking.tracker import VehicleTracker
from violations.detector import ViolationDetector


@dataclass
class IntersectionContext:
    """Engines and lane geometry for one location; avoids global singletons."""

    location_id: str
    tracker: VehicleTracker
    detector: ViolationDetector
    controller: SignalTimingController
    lanes: Dict[str, Lane] = field(default_factory=dict)

    def get_lane(self, lane_id: str) -> Optional[Lane]:
        return self.lanes.get(lane_id)


def create_context(
    location_id: str,
    config: Config,
    lanes: Optional[List[Dict[str, Any]]] = None,
    clock=None,
) -> IntersectionContext:
    """
    Build a context with its own engine instances.

    Each engine gets a private copy of its config section so that
    configure() on one location never leaks into another.
    """
    clock_kwargs = {"clock": clock} if clock is not None else {}
    if lanes is None:
        lanes = config.locations.get(location_id, [])

    return IntersectionContext(
        location_id=location_id,
        tracker=VehicleTracker(copy.copy(config.tracking), **clock_kwargs),
        detector=ViolationDetector(copy.copy(config.violations), **clock_kwargs),
        controller=SignalTimingController(copy.copy(config.signal_timing)),
        lanes=lanes_from_config(lanes),
    )


class ContextRegistry:
    """
    Location-keyed shards of IntersectionContext.

    Shards share no mutable state, so each one may be driven by its own
    execution context. A single shard must not be ticked concurrently.
    """

    def __init__(self, config: Config, clock=None):
        self.config = config
        self._clock = clock
        self._contexts: Dict[str, IntersectionContext] = {}

    def get(self, location_id: str) -> Optional[IntersectionContext]:
        return self._contexts.get(location_id)

    def get_or_create(
        self,
        location_id: str,
        lanes: Optional[List[Dict[str, Any]]] = None,
    ) -> IntersectionContext:
        ctx = self._contexts.get(location_id)
        if ctx is None:
            ctx = create_context(location_id, self.config, lanes=lanes, clock=self._clock)
            self._contexts[location_id] = ctx
            logging.info(f"Created context for location {location_id} ({len(ctx.lanes)} lanes)")
        return ctx

    def remove(self, location_id: str) -> bool:
        """Tear down a location's context. Returns False if it did not exist."""
        ctx = self._contexts.pop(location_id, None)
        if ctx is None:
            return False
        ctx.tracker.reset()
        ctx.detector.reset()
        logging.info(f"Removed context for location {location_id}")
        return True

    def location_ids(self) -> List[str]:
        return list(self._contexts.keys())
