"""Example 01 — Simulated flight, node to observer.

Scenario
--------
A bench node with no hardware attached runs all three simulated sources.
We want to:
  1. Run the node for a short flight, writing wire records to NDJSON
  2. Watch the overheat hysteresis drive the indicator as the envelope heats
  3. Replay the NDJSON log through the observer (TelemetryClient)
  4. Print derived flight metrics and export the temperature history

Run this script from the project root::

    python examples/01_simulated_flight.py

It writes its output to a temporary directory.
"""

from __future__ import annotations

import tempfile
from pathlib import Path

from envtel.client.session import TelemetryClient, format_value
from envtel.core.node import NodeConfig, PluginSpec, TelemetryNode
from envtel.core.scheduler import AcquisitionConfig
from envtel.observability.hooks import HookManager
from envtel.observability.logging import configure_logging


# --------------------------------------------------------------------------- #
#  1. Node                                                                     #
# --------------------------------------------------------------------------- #


def run_node(ndjson_path: Path, ticks: int = 40) -> None:
    config = NodeConfig(
        name="bench-envelope",
        tick_interval_ms=100,
        acquisition=AcquisitionConfig(
            barometric_interval_ms=100,
            humidity_interval_ms=200,
            object_interval_ms=100,
        ),
        sources=[
            PluginSpec(kind="sim_barometer", config={"climb_per_read_m": 1.5}),
            PluginSpec(kind="sim_humidity", config={"failure_rate": 0.3, "seed": 7}),
            PluginSpec(kind="sim_object", config={"start_c": 85.0, "heat_per_read_c": 0.5}),
        ],
        sinks=[PluginSpec(kind="ndjson", config={"path": str(ndjson_path)})],
    )

    hooks = HookManager()

    @hooks.on("overheat.changed")
    def on_overheat(state):
        print(f"  ! overheat state -> {state}")

    @hooks.on("indicator.mode")
    def on_mode(mode):
        print(f"  * indicator -> {mode}")

    node = TelemetryNode.from_config(config, hooks=hooks)
    result = node.run(max_ticks=ticks)
    print(result.summary())


# --------------------------------------------------------------------------- #
#  2. Observer                                                                 #
# --------------------------------------------------------------------------- #


def observe(ndjson_path: Path, csv_path: Path) -> None:
    client = TelemetryClient()
    client.set_diameter(60.0)

    with open(ndjson_path, encoding="utf-8") as fh:
        for line in fh:
            record = line.strip()
            if record:
                # Replayed offline: the capture time doubles as "now".
                client.ingest(record, now_ms=client.latest.ts_ms if client.latest else 0)

    m = client.engine.metrics
    print(f"records        : {client.accepted} accepted, {client.rejected} rejected")
    print(f"altitude       : {format_value(m.altitude_m, 1, 'm')}")
    print(f"delta          : {format_value(m.delta_m, 1, 'm')}")
    print(f"vertical speed : {format_value(m.vertical_speed_mps, 2, 'm/s')}")
    print(f"envelope       : {format_value(m.envelope_f, 1, '°F')}")
    print(f"lift           : {format_value(m.lift.lift_lbf if m.lift else None, 1, 'lbf')}")

    client.history.to_dataframe().to_csv(csv_path, index=False)
    print(f"history        : {len(client.history)} samples -> {csv_path}")


if __name__ == "__main__":
    configure_logging(level="WARNING")
    out_dir = Path(tempfile.mkdtemp(prefix="envtel_example_"))
    ndjson = out_dir / "flight.ndjson"

    print("=== node ===")
    run_node(ndjson)
    print("\n=== observer ===")
    observe(ndjson, out_dir / "history.csv")
