#!/usr/bin/env python3
"""Command-line entry point: run the intersection headless or in a pygame window."""

import argparse
import logging
from typing import List, Optional

from config import (
    DEFAULT_INTERSECTION_SIZE,
    DEFAULT_TICK_MS,
    INTERSECTION_TYPES,
    TARGET_FPS,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
    VanetConfig,
)
from logging_setup import setup_logging
from sim.sim_bridge import SimBridge
from ui.pygame_view import run_pygame_view


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Tile-reservation intersection simulation for VANET motes."
    )
    parser.add_argument("--vehicles-per-hour", type=float, default=None,
                        help="Poisson arrival rate; 0 disables arrivals")
    parser.add_argument("--intersection-type", choices=INTERSECTION_TYPES, default=None)
    parser.add_argument("--platoon-size", type=int, default=None,
                        help="max vehicles per platoon, -1 for unlimited")
    parser.add_argument("--log-dir", default=None, help="directory for the event CSVs and vanet.log")
    parser.add_argument("--screen-export-dir", default=None, help="write a PNG frame every tick")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--size", type=int, default=DEFAULT_INTERSECTION_SIZE,
                        help="tiles per side of the intersection")
    parser.add_argument("--tick-ms", type=int, default=DEFAULT_TICK_MS)
    parser.add_argument("--headless", action="store_true", help="run without a window")
    parser.add_argument("--duration", type=float, default=60.0,
                        help="simulated seconds to run when headless")
    parser.add_argument("--motes", type=int, default=0, help="motes created at start")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = VanetConfig.from_env().with_overrides(
            vehicles_per_hour=args.vehicles_per_hour,
            intersection_type=args.intersection_type,
            platoon_size=args.platoon_size,
            log_dir=args.log_dir,
            screen_export_dir=args.screen_export_dir,
            seed=args.seed,
        )
    except ValueError as exc:
        build_parser().error(str(exc))

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, config.log_dir)
    log = logging.getLogger("main")
    log.info("Starting %s intersection, %.0f vehicles/h, seed %d",
             config.intersection_type, config.vehicles_per_hour, config.seed)

    bridge = SimBridge(
        config,
        tick_ms=args.tick_ms,
        intersection_size=args.size,
        realtime=not args.headless,
    )
    if args.motes:
        bridge.add_motes(args.motes)

    if args.headless:
        bridge.run_for(args.duration)
        log.info("Finished at %d ms: %d vehicles created, bus %s",
                 bridge.time_ms, bridge.total_created, bridge.metrics.report())
        return 0

    bridge.start()
    try:
        run_pygame_view(bridge, WINDOW_WIDTH, WINDOW_HEIGHT, TARGET_FPS)
    except KeyboardInterrupt:
        log.info("Shutting down...")
    finally:
        bridge.stop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
