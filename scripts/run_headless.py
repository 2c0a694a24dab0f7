#!/usr/bin/env python3
"""
Run a ThermoBugs scene headless and print periodic summaries.

Usage:
    python scripts/run_headless.py [--scene PATH] [--ticks N] [--dt S] [--every N]

Example:
    python scripts/run_headless.py --ticks 3600 --every 600 --pulse-every 300
"""

import argparse
import math
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from thermobugs.loader import DataLoadError, load_scene  # noqa: E402
from thermobugs.simulation import init_simulation  # noqa: E402


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run a ThermoBugs scene without rendering")
    parser.add_argument("--scene", type=Path, default=None, help="Scene YAML (default: bundled scene)")
    parser.add_argument("--ticks", type=int, default=1800, help="Number of ticks to run")
    parser.add_argument("--dt", type=float, default=1.0 / 60.0, help="Simulated seconds per tick")
    parser.add_argument("--every", type=int, default=300, help="Print a tick summary every N ticks")
    parser.add_argument("--seed", type=int, default=None, help="Override the scene seed")
    parser.add_argument("--pulse-every", type=int, default=0,
                        help="Simulate a click every N ticks (0 disables)")
    parser.add_argument("--orbit", type=float, default=0.0,
                        help="Move the heat source on a circle of this radius")
    args = parser.parse_args(argv)

    try:
        config = load_scene(args.scene)
    except DataLoadError as e:
        print(f"[ERROR] {e}")
        return 1
    if args.seed is not None:
        config.seed = args.seed

    sim = init_simulation(config)
    last_generation = sim.get_generation()
    try:
        for i in range(1, args.ticks + 1):
            if args.orbit > 0.0:
                angle = 0.1 * sim.time
                sim.set_heat_position(args.orbit * math.cos(angle), args.orbit * math.sin(angle))
            if args.pulse_every and i % args.pulse_every == 0:
                sim.pulse_heat()

            sim.tick(args.dt)

            if args.every and i % args.every == 0:
                sim.print_tick_summary()
            if sim.get_generation() != last_generation:
                last_generation = sim.get_generation()
                sim.print_generation_summary()
    finally:
        sim.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
