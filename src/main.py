"""
Traffic Intelligence Core: scenario replay entry point.

Loads the layered configuration, builds one context per location and replays
a recorded scenario (detections, geo-referenced vehicles, signal states and
lane flows per tick) through the tracker, violation detector and signal
timing controller. The summary is printed as JSON.

Usage:
    python src/main.py --config config/config.yaml --scenario scenario.yaml

Arguments:
    --config: Path to configuration file
    --scenario: Path to a scenario YAML file
    --location: Location id to replay (defaults to the scenario's location)
"""

import os
import sys
import argparse
import json
import logging
import yaml
from typing import Dict, Any, Tuple, Optional

from models.config import Config
from models.detection import DetectionBox
from models.lane import VehicleObservation
from models.signal import LaneFlow
from ops.logging import setup_logging
from runtime.context import ContextRegistry
from runtime.services import TickService


VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        base_cfg = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        local_cfg = _read_yaml(local_overrides_path) if os.path.exists(local_overrides_path) else {}

        merged = _deep_merge(base_cfg, local_cfg)

        # Finally apply explicit config_path if it's not one of the layers above
        explicit = os.path.abspath(config_path)
        if os.path.exists(config_path) and explicit not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def _check_number(section: Dict[str, Any], key: str, path: str,
                  minimum: float = 0.0, allow_equal: bool = False) -> Optional[str]:
    if key not in section:
        return None
    value = section[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return f"{path}.{key} must be a number"
    if value < minimum or (value == minimum and not allow_equal):
        bound = ">=" if allow_equal else ">"
        return f"{path}.{key} must be {bound} {minimum}"
    return None


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['tracking', 'violations', 'signal_timing', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    tracking = config.get('tracking') or {}
    for key in ('max_age_seconds', 'min_hits'):
        error = _check_number(tracking, key, 'tracking')
        if error:
            return False, error
    if 'min_hits' in tracking and not isinstance(tracking['min_hits'], int):
        return False, "tracking.min_hits must be an integer"
    if 'iou_threshold' in tracking:
        iou = tracking['iou_threshold']
        if not isinstance(iou, (int, float)) or not (0 <= iou < 1):
            return False, "tracking.iou_threshold must be in [0, 1)"

    violations = config.get('violations') or {}
    if 'wrong_way_threshold_degrees' in violations:
        threshold = violations['wrong_way_threshold_degrees']
        if not isinstance(threshold, (int, float)) or not (0 <= threshold <= 180):
            return False, "violations.wrong_way_threshold_degrees must be between 0 and 180"
    for key in ('stop_line_distance_m', 'max_violation_age_seconds'):
        error = _check_number(violations, key, 'violations')
        if error:
            return False, error

    timing = config.get('signal_timing') or {}
    for key in ('loss_time', 'yellow_time', 'all_red_time', 'queue_extension_time'):
        error = _check_number(timing, key, 'signal_timing', allow_equal=True)
        if error:
            return False, error
    for key in ('min_green', 'max_green', 'queue_extension_threshold'):
        error = _check_number(timing, key, 'signal_timing')
        if error:
            return False, error
    if timing.get('min_green', 10) > timing.get('max_green', 90):
        return False, "signal_timing.min_green must not exceed signal_timing.max_green"

    locations = config.get('locations') or {}
    if not isinstance(locations, dict):
        return False, "locations must be a mapping of location id to lanes"
    for loc_id, loc in locations.items():
        loc = {} if loc is None else loc
        lanes = (loc.get('lanes') or []) if isinstance(loc, dict) else None
        if not isinstance(lanes, list) or not all(isinstance(lane, dict) for lane in lanes):
            return False, f"locations.{loc_id} must be a mapping with a lanes list"
        for lane in lanes:
            if 'id' not in lane:
                return False, f"locations.{loc_id}: every lane needs an id"
            stop_line = lane.get('stop_line') or {}
            if not isinstance(stop_line, dict):
                return False, f"locations.{loc_id}.{lane['id']}: stop_line must be a mapping"
            coords = stop_line.get('coordinates') or []
            if not isinstance(coords, list) or len(coords) < 2:
                return False, f"locations.{loc_id}.{lane['id']}: stop_line needs at least two coordinates"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


class ReplayClock:
    """Simulated clock advanced by scenario tick times."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


def run_scenario(config: Config, scenario: Dict[str, Any],
                 location_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Replay a scenario through one location context.

    Each tick may carry any of: `time` (seconds since scenario start),
    `detections`, `vehicles` (with `lane`), `signals` and `flows`.

    Returns:
        Summary dictionary with final tracking aggregates, violations and the
        last timing plan.
    """
    location_id = location_id or str(scenario.get("location", "default"))
    clock = ReplayClock(float(scenario.get("start_time", 0.0)))
    registry = ContextRegistry(config, clock=clock)
    ctx = registry.get_or_create(location_id, lanes=scenario.get("lanes"))
    service = TickService(ctx)

    start = clock.now
    last_plan = None
    for tick in scenario.get("ticks", []):
        clock.now = start + float(tick.get("time", clock.now - start))

        if "detections" in tick:
            detections = [DetectionBox.from_dict(d) for d in tick["detections"] or []]
            service.track(detections)

        if "vehicles" in tick:
            signals = tick.get("signals") or {}
            observations = [
                (str(v.get("lane", "")), VehicleObservation.from_dict(v))
                for v in tick["vehicles"] or []
            ]
            service.check_violations(observations, signals)

        if "flows" in tick:
            flows = [LaneFlow.from_dict(f) for f in tick["flows"] or []]
            last_plan = service.recommend_timing(flows)

    service.prune()

    return {
        "location": location_id,
        "ticks": len(scenario.get("ticks", [])),
        "tracks": [v.to_dict() for v in ctx.tracker.get_tracks()],
        "total_pcu": ctx.tracker.get_total_pcu(),
        "count_by_type": ctx.tracker.get_count_by_type(),
        "violations": [v.to_dict() for v in ctx.detector.get_violations()],
        "violation_stats": ctx.detector.get_statistics().to_dict(),
        "timings": [t.to_dict() for t in last_plan.timings] if last_plan else [],
        "recommendation": last_plan.recommendation.to_dict() if last_plan else None,
    }


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Traffic Intelligence Core - scenario replay')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--scenario', type=str, required=True,
                        help='Path to scenario YAML file')
    parser.add_argument('--location', type=str, default=None,
                        help='Location id to replay')
    args = parser.parse_args()

    raw_config = load_config(args.config)

    is_valid, error_msg = validate_config(raw_config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(raw_config['log_path'], raw_config['log_level'])
    config = Config.from_dict(raw_config)

    try:
        scenario = _read_yaml(args.scenario)
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load scenario: {e}")
        sys.exit(1)

    logging.info(f"Replaying scenario {args.scenario}")
    summary = run_scenario(config, scenario, location_id=args.location)
    print(json.dumps(summary, indent=2))
    logging.info(
        f"Replay finished: {len(summary['violations'])} violations, "
        f"{len(summary['tracks'])} confirmed tracks"
    )


if __name__ == "__main__":
    main()
