from __future__ import annotations

import argparse
import csv
import dataclasses
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..config import SimulationConfig
from ..sim.core.agent import PlayerControls
from ..sim.core.world import World

logger = logging.getLogger(__name__)

_BASIC_HEADER = [
    "tick",
    "population",
    "avg_altitude",
    "avg_speed",
    "collision_refreshes",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "population",
    "avg_altitude",
    "avg_speed",
    "collision_refreshes",
    "active_hits",
    "braking",
    "tick_ms",
    "min_altitude",
    "max_altitude",
    "avg_abs_roll",
    "unique_agents",
    "hit_ratio",
    "braking_ratio",
    "tick_ms_per_agent",
    "cadence_cursor",
    "player_altitude",
]


def _format_basic_row(metrics: object, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.population,
        f"{metrics.average_altitude:.4f}",
        f"{metrics.average_speed:.4f}",
        metrics.collision_refreshes,
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: object, tick_ms: float) -> list[object]:
    population = metrics.population
    if population <= 0:
        min_altitude = 0.0
        max_altitude = 0.0
        avg_abs_roll = 0.0
        unique_agents = 0
        hit_ratio = 0.0
        braking_ratio = 0.0
        tick_ms_per_agent = 0.0
    else:
        altitudes = [agent.altitude for agent in world.agents]
        min_altitude = min(altitudes)
        max_altitude = max(altitudes)
        avg_abs_roll = sum(abs(agent.roll_angle) for agent in world.agents) / population
        unique_agents = sum(1 for agent in world.agents if agent.unique)
        hit_ratio = metrics.active_hits / population
        braking_ratio = metrics.braking / population
        tick_ms_per_agent = tick_ms / population

    player = world.player
    player_altitude = player.altitude if player is not None else 0.0

    return [
        metrics.tick,
        population,
        f"{metrics.average_altitude:.4f}",
        f"{metrics.average_speed:.4f}",
        metrics.collision_refreshes,
        metrics.active_hits,
        metrics.braking,
        f"{tick_ms:.3f}",
        f"{min_altitude:.4f}",
        f"{max_altitude:.4f}",
        f"{avg_abs_roll:.6f}",
        unique_agents,
        f"{hit_ratio:.4f}",
        f"{braking_ratio:.4f}",
        f"{tick_ms_per_agent:.4f}",
        world.cadence.cursor,
        f"{player_altitude:.4f}",
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    count = len(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / count),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 1000,
    config_path: Optional[Path] = None,
    turn_x: float = 0.0,
    turn_y: float = 0.0,
) -> World:
    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config = dataclasses.replace(config, seed=seed)
    world = World(config)
    controls = PlayerControls(turn_x=turn_x, turn_y=turn_y)
    logger.info("Running %d headless steps (seed=%d, log=%s)", steps, config.seed, log_path)

    writer = None
    csv_file = None
    if log_path:
        csv_file = Path(log_path).open("w", newline="")
        writer = csv.writer(csv_file)
        writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

    tick_ms_series: list[float] = []
    altitude_series: list[float] = []
    hits_series: list[float] = []
    max_tick_ms = (-1.0, -1)

    try:
        for tick in range(steps):
            metrics = world.step(tick, controls)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                altitude_series.append(metrics.average_altitude)
                hits_series.append(float(metrics.active_hits))
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "population": len(world.agents),
            "tick_ms": _summary_stats(tick_ms_series),
            "average_altitude": _summary_stats(altitude_series),
            "active_hits": _summary_stats(hits_series),
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "average_altitude": _summary_stats(altitude_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless flock simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file overriding the default tuning")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument("--summary", type=Path, default=None, help="Optional JSON file to write summary stats for the run.")
    parser.add_argument("--summary-window", type=int, default=1000, help="Tail window size (ticks) for summary stats.")
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--turn-x", type=float, default=0.0, help="Constant player yaw input in [-1, 1].")
    parser.add_argument("--turn-y", type=float, default=0.0, help="Constant player pitch input in [-1, 1].")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
    )
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
        turn_x=args.turn_x,
        turn_y=args.turn_y,
    )


if __name__ == "__main__":
    main()
