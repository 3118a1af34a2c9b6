import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from rich.console import Console

from apod_panel.config import DEMO_API_KEY, PanelConfig
from apod_panel.output.console_surface import ConsoleSurface
from apod_panel.shell import (
    CLOSE_COMMAND,
    OPEN_COMMAND,
    PALETTE_CATEGORY,
    PanelHost,
)

logger = logging.getLogger(__name__)
console = Console()

DEFAULT_STATE_FILE = Path.home() / ".apod-panel" / "layout.json"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="apod-panel",
        description="Show a random NASA Astronomy Picture of the Day",
    )
    sub = p.add_subparsers(dest="command")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--api-key",
        default=None,
        help="NASA API key (defaults to $NASA_API_KEY, then DEMO_KEY)",
    )
    common.add_argument(
        "--endpoint",
        default=None,
        help="Override the APOD API endpoint",
    )
    common.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="HTTP timeout in seconds",
    )
    common.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    # --- show (default) ---
    sub.add_parser("show", parents=[common], help="Fetch and show one picture")

    # --- browse ---
    browse = sub.add_parser(
        "browse", parents=[common], help="Keep the panel open and fetch on demand"
    )
    browse.add_argument(
        "--state-file",
        type=Path,
        default=DEFAULT_STATE_FILE,
        help="Where the panel layout is saved between runs",
    )

    return p


def build_config(args: argparse.Namespace) -> PanelConfig:
    from dotenv import load_dotenv

    load_dotenv()

    api_key = args.api_key or os.environ.get("NASA_API_KEY") or DEMO_API_KEY
    config = PanelConfig(api_key=api_key, timeout=args.timeout)
    if args.endpoint:
        config.endpoint = args.endpoint
    return config


def _render(host: PanelHost) -> None:
    if host.widget is not None and isinstance(host.widget.surface, ConsoleSurface):
        host.widget.surface.render()


def key_for_input(raw: str) -> str:
    """Map a line typed at the browse prompt to a key name."""
    raw = raw.strip().lower()
    return raw or "Enter"


def terminal_keys(keys: list[str]) -> list[str]:
    # Chords such as "Accel Alt P" need a host that captures key chords
    return [k for k in keys if " " not in k]


async def dispatch(host: PanelHost, key: str) -> str | None:
    """Run the command bound to ``key``; returns its id, or None if unbound."""
    command_id = host.commands.command_for_keys(key)
    if command_id is None:
        return None
    if command_id == OPEN_COMMAND:
        with console.status("[cyan]Fetching a random astronomy picture..."):
            await host.commands.execute(command_id)
        _render(host)
    else:
        await host.commands.execute(command_id)
        if command_id == CLOSE_COMMAND:
            console.print("[yellow]Panel closed.[/yellow]")
    return command_id


async def run_show(config: PanelConfig) -> None:
    host = PanelHost(config, surface_factory=lambda: ConsoleSurface(console, config))
    host.activate()
    try:
        with console.status("[cyan]Fetching a random astronomy picture..."):
            await host.commands.execute(OPEN_COMMAND)
    finally:
        await host.shutdown()
    _render(host)


async def run_browse(config: PanelConfig, state_file: Path) -> None:
    host = PanelHost(config, surface_factory=lambda: ConsoleSurface(console, config))
    host.activate()
    loop = asyncio.get_running_loop()

    for spec in host.commands.commands_for_category(PALETTE_CATEGORY):
        keys = ", ".join(terminal_keys(spec.keys))
        console.print(f"[dim]{spec.category}: {spec.label} ({keys})[/dim]")

    try:
        with console.status("[cyan]Restoring layout..."):
            restored = await host.restore(state_file)
        if restored:
            _render(host)

        while True:
            raw = await loop.run_in_executor(
                None,
                console.input,
                "[cyan][Enter/p][/cyan] new picture  [cyan][c][/cyan] close  "
                "[cyan][q][/cyan] quit > ",
            )
            key = key_for_input(raw)
            if key == "q":
                break
            if await dispatch(host, key) is None:
                console.print(f"[red]Unknown choice: {key}[/red]")
    finally:
        host.tracker.save(state_file)
        await host.shutdown()


def main() -> None:
    parser = build_parser()

    # Bare invocation or flags only: treat as "show"
    if len(sys.argv) == 1 or sys.argv[1] not in ("show", "browse", "-h", "--help"):
        sys.argv.insert(1, "show")

    args = parser.parse_args()

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        config = build_config(args)
        if args.command == "show":
            asyncio.run(run_show(config))
        elif args.command == "browse":
            asyncio.run(run_browse(config, args.state_file))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
