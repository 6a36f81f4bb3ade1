"""Consumer-side metrics: flight engine, history window, liveness, client session."""

from envtel.client.flight import EngineConfig, FlightMetrics, FlightMetricsEngine
from envtel.client.history import HistorySample, TemperatureHistoryWindow
from envtel.client.liveness import LivenessClassifier, LivenessState, classify
from envtel.client.physics import LiftEstimate, estimate_lift
from envtel.client.session import DashboardView, TelemetryClient, format_value

__all__ = [
    "EngineConfig",
    "FlightMetrics",
    "FlightMetricsEngine",
    "HistorySample",
    "TemperatureHistoryWindow",
    "LivenessClassifier",
    "LivenessState",
    "classify",
    "LiftEstimate",
    "estimate_lift",
    "DashboardView",
    "TelemetryClient",
    "format_value",
]
