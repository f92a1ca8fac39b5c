from __future__ import annotations

import argparse
import asyncio
import importlib
import json
import logging
import sys
from decimal import Decimal
from pathlib import Path

from seedfarm.checkpoint import load_or_default
from seedfarm.definition import GameDefinition
from seedfarm.runtime import GameRuntime

DEFAULT_CATALOG = "seedfarm.catalog"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seedfarm",
        description="SeedFarm - step-based seed economy engine",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--catalog",
        default=DEFAULT_CATALOG,
        help=f"Python module with define_game() (default: {DEFAULT_CATALOG})",
    )
    common.add_argument(
        "--checkpoint",
        default=None,
        help="JSON checkpoint to load before and save after the command",
    )

    sub.add_parser("info", parents=[common], help="Show the catalog and current state")

    run = sub.add_parser("run", parents=[common], help="Advance a number of steps")
    run.add_argument("--steps", type=int, required=True, help="Steps to advance")

    offline = sub.add_parser("offline", parents=[common], help="Replay elapsed offline time")
    offline.add_argument("--seconds", type=float, required=True, help="Seconds elapsed")
    offline.add_argument("--batch-size", type=int, default=None, help="Steps per batch")

    return parser


def load_game(module_path: str) -> GameDefinition:
    """Import module and call define_game()."""
    mod = importlib.import_module(module_path)
    if not hasattr(mod, "define_game"):
        print(f"Error: module {module_path!r} has no define_game() function")
        sys.exit(1)
    return mod.define_game()


def load_runtime(definition: GameDefinition, checkpoint: str | None) -> GameRuntime:
    if checkpoint is None or not Path(checkpoint).exists():
        return GameRuntime(definition)
    try:
        data = json.loads(Path(checkpoint).read_text())
    except json.JSONDecodeError as exc:
        logging.getLogger(__name__).warning("Checkpoint %s is not valid JSON: %s", checkpoint, exc)
        data = None
    return load_or_default(definition, data)


def save_runtime(runtime: GameRuntime, checkpoint: str | None) -> None:
    if checkpoint is None:
        return
    Path(checkpoint).write_text(json.dumps(runtime.serialize(), indent=2, sort_keys=True))


def format_amount(value: Decimal) -> str:
    if abs(value) < Decimal(1_000_000):
        return f"{value:,.2f}".rstrip("0").rstrip(".")
    return f"{value:.3e}"


def format_state(runtime: GameRuntime) -> str:
    name = runtime.definition.config.resource_name
    ms = runtime.milestones.state
    lines = [
        f"Step {runtime.step_count}  season {ms.season}",
        f"{name.capitalize()}: {format_amount(runtime.resource)} "
        f"(+{format_amount(runtime.production_per_step())}/step, "
        f"{runtime.step_duration():.2f}s per step)",
        "",
        "Producers:",
    ]
    for pdef in runtime.producers.definitions:
        ps = runtime.producers.states[pdef.id]
        status = "" if ps.unlocked else "  [locked]"
        lines.append(
            f"  {pdef.name:<10} owned {format_amount(ps.total_owned):>12}  "
            f"bought {ps.manually_purchased:>4}  next {format_amount(runtime.producer_cost(pdef.id))}"
            f"{status}"
        )
    if runtime.automation.definitions:
        lines.append("")
        lines.append("Machines:")
    for mdef in runtime.automation.definitions:
        st = runtime.automation.states[mdef.id]
        if st.unlocked:
            progress = runtime.progress_to_next_level(mdef.id)
            lines.append(
                f"  {mdef.name:<18} level {st.level:>3}  points {st.points:>3}  "
                f"next level {progress:.0%}"
            )
        else:
            lines.append(f"  {mdef.name:<18} locked (unlock cost {mdef.unlock_cost})")
    lines += [
        "",
        f"Harvests: {ms.completed_this_season}/{runtime.season_completion_requirement()} this season, "
        f"{ms.total_completed} total; next at {format_amount(runtime.milestone_requirement())}",
        f"Prestige points: {ms.prestige_points} (lifetime {ms.total_prestige_points})",
    ]
    effects = runtime.effect_descriptions()
    if effects:
        lines.append("")
        lines.append("Active upgrades:")
        for upgrade_name, text in effects:
            lines.append(f"  {upgrade_name}: {text}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    definition = load_game(args.catalog)
    runtime = load_runtime(definition, args.checkpoint)

    if args.command == "info":
        print(f"{definition.config.name}")
        print()
        print(format_state(runtime))

    elif args.command == "run":
        produced = runtime.run(args.steps)
        print(f"Advanced {args.steps} steps, produced {format_amount(produced)}")
        print()
        print(format_state(runtime))

    elif args.command == "offline":
        processor = runtime.catch_up(args.seconds, args.batch_size)
        report = asyncio.run(processor.run())
        print(
            f"Replayed {report.steps_done}/{report.steps_total} steps, "
            f"gained {format_amount(report.resource_gained)}"
        )
        print()
        print(format_state(runtime))

    save_runtime(runtime, args.checkpoint)
