"""envtel command-line interface.

Usage::

    envtel --help
    envtel run --config node.json --ticks 30
    envtel replay telemetry.ndjson --diameter-ft 60
    envtel lift --diameter-ft 60 --ambient-f 50 --envelope-f 190
    envtel waveform double_pulse
    envtel sources
    envtel version
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from envtel.__version__ import __version__
from envtel.observability.logging import configure_logging

console = Console()


@click.group()
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    show_default=True,
    help="Log verbosity level.",
)
@click.option(
    "--log-format",
    default="console",
    type=click.Choice(["console", "json"], case_sensitive=False),
    show_default=True,
    help="Log output format.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, log_format: str) -> None:
    """Envelope telemetry node and observer tools."""
    ctx.ensure_object(dict)
    configure_logging(level=log_level, fmt=log_format)  # type: ignore[arg-type]


@cli.command()
def version() -> None:
    """Print the envtel version."""
    console.print(f"[bold cyan]envtel[/] v{__version__}")


@cli.command()
def sources() -> None:
    """List registered source and sink plugins."""
    import envtel.plugins  # noqa: F401, PLC0415
    from envtel.core.registry import registry  # noqa: PLC0415

    for category, names in registry.all_plugins().items():
        table = Table(title=category.upper(), show_header=False, box=None)
        table.add_column("name", style="green")
        for n in names:
            table.add_row(n)
        console.print(table)


# --------------------------------------------------------------------------- #
#  envtel run                                                                  #
# --------------------------------------------------------------------------- #


_SIMULATED_SOURCES = [
    {"kind": "sim_barometer"},
    {"kind": "sim_humidity"},
    {"kind": "sim_object"},
]


@cli.command()
@click.option(
    "--config",
    "config_path",
    default=None,
    type=click.Path(exists=True, path_type=Path),
    help="JSON file with a NodeConfig. Without one, all simulated sources are used.",
)
@click.option("--ticks", default=None, type=int, help="Stop after N snapshots.")
@click.option("--ndjson", "ndjson_path", default=None, type=click.Path(path_type=Path),
              help="Also write wire records to this NDJSON file.")
def run(config_path: Optional[Path], ticks: Optional[int], ndjson_path: Optional[Path]) -> None:
    """Run the acquisition node."""
    from envtel.core.node import NodeConfig, PluginSpec, TelemetryNode  # noqa: PLC0415

    data = _load_json(config_path) if config_path else {"sources": _SIMULATED_SOURCES}
    config = NodeConfig(**data)
    if ndjson_path is not None:
        config.sinks.append(PluginSpec(kind="ndjson", config={"path": str(ndjson_path)}))

    node = TelemetryNode.from_config(config)
    result = node.run(max_ticks=ticks)
    console.print(result.summary(), markup=False, highlight=False)

    if result.last_snapshot is not None:
        from envtel.core.codec import encode  # noqa: PLC0415

        console.print_json(data=encode(result.last_snapshot))

    if not result.ok:
        sys.exit(1)


# --------------------------------------------------------------------------- #
#  envtel replay                                                               #
# --------------------------------------------------------------------------- #


@cli.command()
@click.argument("file", type=click.Path(exists=True, path_type=Path))
@click.option("--diameter-ft", default=20.0, show_default=True,
              type=click.FloatRange(min=0, max=500, min_open=True), help="Envelope diameter in feet.")
@click.option("--window", "window_min", default="5", show_default=True,
              type=click.Choice(["2", "5", "10", "15"]), help="History horizon in minutes.")
def replay(file: Path, diameter_ft: float, window_min: str) -> None:
    """Feed an NDJSON wire log through the observer pipeline and show the result."""
    from envtel.client.session import TelemetryClient, format_value  # noqa: PLC0415

    client = TelemetryClient()
    client.set_diameter(diameter_ft)
    client.set_window(int(window_min))

    with open(file, encoding="utf-8") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                ts_ms = int(json.loads(line).get("ts_ms", 0))
            except (ValueError, AttributeError, TypeError):
                ts_ms = client.latest.ts_ms if client.latest else 0
            client.ingest(line, now_ms=ts_ms)

    now = client.latest.ts_ms if client.latest else 0
    view = client.view(now)
    m = view.metrics

    table = Table(title=f"[bold]{file.name}[/]", show_header=False)
    table.add_column("field", style="cyan")
    table.add_column("value", justify="right")
    table.add_row("records", f"{client.accepted} accepted / {client.rejected} rejected")
    table.add_row("altitude", format_value(m.altitude_m, 1, "m"))
    table.add_row("delta", format_value(m.delta_m, 1, "m"))
    table.add_row("vertical speed", format_value(m.vertical_speed_mps, 2, "m/s"))
    table.add_row("ambient", format_value(m.ambient_f, 1, "°F"))
    table.add_row("envelope", format_value(m.envelope_f, 1, "°F"))
    lift = m.lift
    table.add_row("lift", format_value(lift.lift_lbf if lift else None, 1, "lbf"))
    if lift is not None and lift.annotation:
        table.add_row("", f"[yellow]{lift.annotation}[/]")
    table.add_row("history points", str(len(view.history)))
    console.print(table)


# --------------------------------------------------------------------------- #
#  envtel lift                                                                 #
# --------------------------------------------------------------------------- #


@cli.command()
@click.option("--diameter-ft", required=True, type=float, help="Envelope diameter in feet.")
@click.option("--ambient-f", required=True, type=float, help="Ambient temperature in °F.")
@click.option("--envelope-f", required=True, type=float, help="Envelope air temperature in °F.")
@click.option("--pressure-hpa", default=1013.25, show_default=True, type=float)
def lift(diameter_ft: float, ambient_f: float, envelope_f: float, pressure_hpa: float) -> None:
    """Compute buoyant lift for a spherical envelope."""
    from envtel.client.physics import estimate_lift  # noqa: PLC0415

    try:
        est = estimate_lift(diameter_ft, ambient_f, envelope_f, pressure_hpa)
    except ValueError as exc:
        console.print(f"[red]Error:[/] {exc}")
        sys.exit(1)

    table = Table(show_header=False, box=None)
    table.add_column("k", style="cyan")
    table.add_column("v", justify="right")
    table.add_row("volume", f"{est.volume_m3:.1f} m³ ({est.volume_ft3:.0f} ft³)")
    table.add_row("rho outside", f"{est.rho_outside:.4f} kg/m³")
    table.add_row("rho inside", f"{est.rho_inside:.4f} kg/m³")
    table.add_row("lift", f"{est.lift_n:.1f} N ({est.lift_lbf:.1f} lbf)")
    console.print(table)
    if est.annotation:
        console.print(f"[yellow]{est.annotation}[/]")


# --------------------------------------------------------------------------- #
#  envtel waveform                                                             #
# --------------------------------------------------------------------------- #


@cli.command()
@click.argument("mode", type=click.Choice(["off", "solid", "slow_blink", "fast_blink", "double_pulse"]))
@click.option("--duration-ms", default=1200, show_default=True, type=int)
@click.option("--step-ms", default=20, show_default=True, type=int)
def waveform(mode: str, duration_ms: int, step_ms: int) -> None:
    """Print an indicator waveform as a text trace (# = on, . = off)."""
    from envtel.indicator.waveform import IndicatorMode, trace  # noqa: PLC0415

    try:
        levels = trace(IndicatorMode(mode), duration_ms, step_ms)
    except ValueError as exc:
        console.print(f"[red]Error:[/] {exc}")
        sys.exit(1)
    click.echo("".join("#" if on else "." for on in levels))


def _load_json(path: Path) -> dict:
    with open(path) as fh:
        return json.load(fh)
