"""
Webster's method for adaptive signal timing.

Computes the optimal cycle length from per-lane flow ratios, splits the
effective green proportionally between lanes and recommends whether the
running plan should be extended, reduced or kept.

    cycle = (1.5 * loss_time + 5) / (1 - sum(flow_ratios))

Every call is a pure function of the lane-flow snapshot passed in; the
controller keeps no state between ticks other than its configuration.
"""

from __future__ import annotations

import dataclasses
import math
from typing import List, Optional, Sequence

from models.config import SignalTimingConfig
from models.signal import (
    ACTION_EXTEND,
    ACTION_MAINTAIN,
    ACTION_REDUCE,
    LaneFlow,
    SignalTiming,
    TimingRecommendation,
)


MIN_CYCLE_LENGTH = 30.0
MAX_CYCLE_LENGTH = 120.0

# At or above this ratio sum the intersection is oversaturated
OVERSATURATION_RATIO = 0.9
# Cap on the ratio sum inside the formula, keeps the denominator away from 0
MAX_FORMULA_RATIO = 0.85

HIGH_FLOW_RATIO = 0.8
LOW_FLOW_RATIO = 0.3

# Minimum cycle change (seconds) worth re-timing for
ADJUSTMENT_TOLERANCE = 10.0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class SignalTimingController:
    """Webster signal timing for one intersection."""

    def __init__(self, config: Optional[SignalTimingConfig] = None):
        self.config = config or SignalTimingConfig()

    def configure(self, **params) -> None:
        """
        Update configuration fields by name.

        Raises:
            TypeError: If a name is not a SignalTimingConfig field.
        """
        known = {f.name for f in dataclasses.fields(SignalTimingConfig)}
        unknown = set(params) - known
        if unknown:
            raise TypeError(f"Unknown signal timing parameters: {sorted(unknown)}")
        for name, value in params.items():
            if value is not None:
                setattr(self.config, name, value)

    @staticmethod
    def flow_ratio(lane: LaneFlow) -> float:
        return lane.flow_ratio

    def _sum_flow_ratios(self, lanes: Sequence[LaneFlow]) -> float:
        return sum(self.flow_ratio(lane) for lane in lanes)

    def calculate_cycle_length(self, lanes: Sequence[LaneFlow]) -> float:
        """
        Optimal cycle length in seconds, always within [30, 120].

        An oversaturated intersection (ratio sum >= 0.9) gets the maximum
        cycle directly without evaluating the formula.
        """
        sum_ratios = self._sum_flow_ratios(lanes)
        if sum_ratios >= OVERSATURATION_RATIO:
            return MAX_CYCLE_LENGTH

        cycle = (1.5 * self.config.loss_time + 5) / (1 - min(sum_ratios, MAX_FORMULA_RATIO))
        return max(MIN_CYCLE_LENGTH, min(MAX_CYCLE_LENGTH, cycle))

    def calculate_green_time(
        self,
        cycle_length: float,
        lane: LaneFlow,
        all_lanes: Sequence[LaneFlow],
    ) -> float:
        """
        Green time for one lane, clamped to [min_green, max_green].

        The effective green (cycle minus lost, yellow and all-red time) is split
        in proportion to flow ratio. Lanes with a long queue get a flat
        extension before clamping.
        """
        cfg = self.config
        sum_ratios = self._sum_flow_ratios(all_lanes)
        if sum_ratios == 0:
            return cfg.min_green

        effective_green = cycle_length - cfg.loss_time - cfg.yellow_time - cfg.all_red_time
        green = (self.flow_ratio(lane) / sum_ratios) * effective_green

        if lane.queue_length > cfg.queue_extension_threshold:
            green += cfg.queue_extension_time

        return max(cfg.min_green, min(cfg.max_green, green))

    def calculate_signal_timing(self, lanes: Sequence[LaneFlow]) -> List[SignalTiming]:
        """Timing plan for every lane, sharing one cycle length."""
        cfg = self.config
        cycle = self.calculate_cycle_length(lanes)
        timings = []

        for lane in lanes:
            green = self.calculate_green_time(cycle, lane, lanes)
            red = cycle - green - cfg.yellow_time - cfg.all_red_time
            timings.append(SignalTiming(
                cycle_length=cycle,
                green_time=_round_half_up(green),
                yellow_time=cfg.yellow_time,
                red_time=_round_half_up(red),
                all_red_time=cfg.all_red_time,
                lane_id=lane.lane_id,
            ))

        return timings

    def should_extend_green(self, queue_length: int) -> bool:
        return queue_length > self.config.queue_extension_threshold

    def calculate_extended_green_time(self, current_green: float, queue_length: int) -> float:
        """
        Extend green by one queue_extension_time per full threshold of queued
        vehicles, capped at max_green.
        """
        cfg = self.config
        if not self.should_extend_green(queue_length):
            return current_green

        multiplier = math.floor(queue_length / cfg.queue_extension_threshold)
        return min(cfg.max_green, current_green + multiplier * cfg.queue_extension_time)

    def get_critical_flow_ratio(self, lanes: Sequence[LaneFlow]) -> float:
        """Highest flow ratio across lanes; 0.0 when there are none."""
        return max((self.flow_ratio(lane) for lane in lanes), default=0.0)

    def needs_adjustment(self, lanes: Sequence[LaneFlow], current_cycle_length: float) -> bool:
        optimal = self.calculate_cycle_length(lanes)
        return abs(optimal - current_cycle_length) > ADJUSTMENT_TOLERANCE

    def get_recommended_action(self, lanes: Sequence[LaneFlow]) -> TimingRecommendation:
        """
        Recommend extend, reduce or maintain.

        Priority: long queue, then high critical ratio (extend); low critical
        ratio (reduce); otherwise maintain.
        """
        critical = self.get_critical_flow_ratio(lanes)
        cycle = self.calculate_cycle_length(lanes)
        max_queue = max((lane.queue_length for lane in lanes), default=0)

        if max_queue > self.config.queue_extension_threshold:
            return TimingRecommendation(
                action=ACTION_EXTEND,
                reason=f"Queue length ({max_queue}) exceeds threshold",
                cycle_length=cycle,
            )

        if critical > HIGH_FLOW_RATIO:
            return TimingRecommendation(
                action=ACTION_EXTEND,
                reason=f"High flow ratio ({critical * 100:.1f}%)",
                cycle_length=cycle,
            )

        if critical < LOW_FLOW_RATIO:
            return TimingRecommendation(
                action=ACTION_REDUCE,
                reason=f"Low flow ratio ({critical * 100:.1f}%)",
                cycle_length=cycle,
            )

        return TimingRecommendation(
            action=ACTION_MAINTAIN,
            reason="Traffic conditions are optimal",
            cycle_length=cycle,
        )
