"""Plugin registry — lets drivers and sinks self-register and be found by name."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from envtel.core.base import SensorDriver, SnapshotSink


class PluginRegistry:
    """A name → class registry for sensor drivers and snapshot sinks.

    Plugins register themselves with::

        @registry.source("sim_barometer")
        class SimulatedBarometer(SensorDriver[SimBarometerConfig]):
            ...

    And node configs refer to them by that name::

        cls = registry.get_source("sim_barometer")
    """

    def __init__(self) -> None:
        self._sources: dict[str, type] = {}
        self._sinks: dict[str, type] = {}

    def source(self, name: str) -> Any:
        def _decorator(cls: type) -> type:
            return self._add(self._sources, "source", name, cls)
        return _decorator

    def sink(self, name: str) -> Any:
        def _decorator(cls: type) -> type:
            return self._add(self._sinks, "sink", name, cls)
        return _decorator

    @staticmethod
    def _add(table: dict[str, type], kind: str, name: str, cls: type) -> type:
        if not name:
            raise ValueError(f"{kind} plugin {cls.__name__} needs a non-empty name")
        existing = table.get(name)
        if existing is not None and existing is not cls:
            raise ValueError(
                f"{kind} name '{name}' is already taken by {existing.__module__}.{existing.__qualname__}"
            )
        table[name] = cls
        cls._registry_name = name  # type: ignore[attr-defined]
        return cls

    def get_source(self, name: str) -> type[SensorDriver]:  # type: ignore[type-arg]
        try:
            return self._sources[name]
        except KeyError:
            raise KeyError(f"Unknown source '{name}'. Available: {self.list_sources()}") from None

    def get_sink(self, name: str) -> type[SnapshotSink]:  # type: ignore[type-arg]
        try:
            return self._sinks[name]
        except KeyError:
            raise KeyError(f"Unknown sink '{name}'. Available: {self.list_sinks()}") from None

    def list_sources(self) -> list[str]:
        return sorted(self._sources)

    def list_sinks(self) -> list[str]:
        return sorted(self._sinks)

    def all_plugins(self) -> dict[str, list[str]]:
        return {
            "sources": self.list_sources(),
            "sinks": self.list_sinks(),
        }


registry = PluginRegistry()
