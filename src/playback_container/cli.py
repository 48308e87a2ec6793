"""
Playback Container CLI - developer tooling entry point

Replays scripted remote/status events against the container state machine
and manages the configuration file.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.table import Table

from playback_container.core.config import (
    Config,
    create_default_config,
    get_config_path,
    get_log_file_path,
    load_config,
)
from playback_container.core.console import get_console, safe_print
from playback_container.core.output import setup_logging_from_config
from playback_container.simulation import (
    ScriptError,
    SimulationResult,
    load_script,
    run_script,
)


def render_timeline(result: SimulationResult) -> Table:
    """Build a Rich table from a simulation timeline."""
    table = Table(title="Playback container timeline")
    table.add_column("t (s)", justify="right", style="cyan")
    table.add_column("Event")
    table.add_column("Overlay")
    table.add_column("Supplement")
    table.add_column("Scrub")
    table.add_column("Indicator", style="bold")
    table.add_column("Scrubbed", justify="right")

    for entry in result.timeline:
        snapshot = entry.snapshot
        supplement = snapshot.supplement_state.value
        if snapshot.selected_supplement is not None:
            supplement = f"{supplement} ({snapshot.selected_supplement.id})"
        table.add_row(
            f"{entry.time:.2f}",
            entry.label,
            snapshot.overlay_state.value,
            supplement,
            snapshot.scrub_state.value,
            snapshot.skip_indicator_text or "",
            f"{snapshot.scrubbed_seconds:.1f}",
        )
    return table


def run_simulate(
    script_path: str,
    config: Config,
    runtime: Optional[float] = None,
    position: Optional[float] = None,
    paused: Optional[bool] = None,
    settle: float = 0.0,
    show_states: bool = True,
) -> int:
    """Run a simulation script and print its timeline.

    Command-line values override values stored in the script file.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    console = get_console()

    try:
        script = load_script(Path(script_path))
        result = run_script(
            script["events"],
            runtime=runtime if runtime is not None else script.get("runtime", 3600.0),
            position=position if position is not None else float(script.get("position", 0.0)),
            paused=paused if paused is not None else bool(script.get("paused", False)),
            settle=settle,
            config=config,
        )
    except OSError as e:
        print(f"Error: cannot read {script_path}: {e}", file=sys.stderr)
        return 1
    except ScriptError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not show_states:
        result.timeline = [entry for entry in result.timeline if entry.label != "state"]

    console.print(render_timeline(result))

    if result.commands:
        console.print("[bold]Engine commands[/bold]")
        for name, value in result.commands:
            console.print(f"  {name}" + (f"({value:.1f})" if value is not None else "()"))
    if result.supplement_requests:
        console.print(f"Supplement container requests: {result.supplement_requests}")
    if result.dismissed:
        safe_print("Playback dismissed", style="yellow")

    logger.info(
        f"Simulated {len(script['events'])} events, {len(result.commands)} engine commands"
    )
    return 0


def run_config(init: bool = False) -> int:
    """Print the config path, optionally writing the default file.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    config_path = get_config_path()
    if init:
        if config_path.exists():
            print(f"Configuration already exists: {config_path}", file=sys.stderr)
            return 1
        try:
            config_path.parent.mkdir(parents=True, exist_ok=True)
            config_path.write_text(create_default_config() + "\n", encoding="utf-8")
        except OSError as e:
            print(f"Error writing {config_path}: {e}", file=sys.stderr)
            return 1
        print(f"Created default configuration at: {config_path}")
        return 0

    print(config_path)
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the playback-container command."""
    parser = argparse.ArgumentParser(
        description="Playback Container - overlay and hold-to-scrub state machine tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="subcommand", help="Available commands")

    simulate_parser = subparsers.add_parser(
        "simulate", help="Replay a JSON event script against the container"
    )
    simulate_parser.add_argument("script", help="Path to the JSON event script")
    simulate_parser.add_argument(
        "--runtime", type=float, help="Item runtime in seconds (default: from script or 3600)"
    )
    simulate_parser.add_argument(
        "--position", type=float, help="Starting playback position in seconds"
    )
    simulate_parser.add_argument(
        "--paused", action="store_true", default=None, help="Start with playback paused"
    )
    simulate_parser.add_argument(
        "--settle",
        type=float,
        default=0.0,
        help="Seconds to keep running after the last event",
    )
    simulate_parser.add_argument(
        "--events-only",
        action="store_true",
        help="Only show rows for script events, not every state change",
    )

    config_parser = subparsers.add_parser("config", help="Show or create the config file")
    config_parser.add_argument(
        "--init", action="store_true", help="Write the default configuration"
    )

    args = parser.parse_args(argv)

    if args.subcommand == "config":
        return run_config(init=args.init)

    if args.subcommand == "simulate":
        config = load_config()
        setup_logging_from_config(get_log_file_path(config), config.logging)
        return run_simulate(
            args.script,
            config,
            runtime=args.runtime,
            position=args.position,
            paused=args.paused,
            settle=args.settle,
            show_states=not args.events_only,
        )

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
