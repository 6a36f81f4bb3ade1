"""Event hooks — a lightweight publish/subscribe mechanism for node events.

Hooks let external code (display refresh, alerting, custom logging) react to
node lifecycle events without touching the acquisition loop.

Example::

    hooks = HookManager()

    @hooks.on("overheat.changed")
    def on_overheat(state):
        buzzer.sound() if state is OverheatState.OVERHEATED else buzzer.stop()

    node = TelemetryNode(config, drivers, hooks=hooks)
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

log = structlog.get_logger(__name__)

EventHandler = Callable[..., None]


class EventHook:
    """A named event that can have multiple handlers attached."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._handlers: list[EventHandler] = []

    def register(self, handler: EventHandler) -> None:
        self._handlers.append(handler)

    def unregister(self, handler: EventHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    def fire(self, *args: object, **kwargs: object) -> int:
        """Invoke every handler and return how many completed.

        A failing handler is logged and skipped; it never reaches the
        acquisition loop.
        """
        completed = 0
        for handler in list(self._handlers):
            try:
                handler(*args, **kwargs)
            except Exception as exc:
                log.warning(
                    "hook.handler_error",
                    hook=self.name,
                    handler=getattr(handler, "__name__", repr(handler)),
                    error=str(exc),
                )
                continue
            completed += 1
        return completed

    def __len__(self) -> int:
        return len(self._handlers)


class HookManager:
    """Registry of named EventHooks.

    Built-in node events
    --------------------
    ``node.start``          — after the presence probe, with the present sources
    ``node.ready``          — once, when the first snapshot has been built
    ``snapshot.built``      — with every TelemetrySnapshot
    ``overheat.changed``    — with the new OverheatState on each transition
    ``indicator.mode``      — with the new IndicatorMode whenever it changes
    ``source.absent``       — once per source that failed its startup probe
    """

    BUILTIN_EVENTS = (
        "node.start",
        "node.ready",
        "snapshot.built",
        "overheat.changed",
        "indicator.mode",
        "source.absent",
    )

    def __init__(self) -> None:
        self._hooks: dict[str, EventHook] = {
            name: EventHook(name) for name in self.BUILTIN_EVENTS
        }

    def _hook(self, event: str) -> EventHook:
        if event not in self._hooks:
            self._hooks[event] = EventHook(event)
        return self._hooks[event]

    def on(self, event: str) -> Callable[[EventHandler], EventHandler]:
        """Decorator to register a handler for a named event."""

        def _decorator(handler: EventHandler) -> EventHandler:
            self._hook(event).register(handler)
            return handler

        return _decorator

    def register(self, event: str, handler: EventHandler) -> None:
        self._hook(event).register(handler)

    def fire(self, event: str, *args: object, **kwargs: object) -> int:
        hook = self._hooks.get(event)
        if hook is None:
            return 0
        return hook.fire(*args, **kwargs)

    def get_hook(self, event: str) -> EventHook | None:
        return self._hooks.get(event)

    def registered_events(self) -> list[str]:
        return [name for name, hook in self._hooks.items() if len(hook) > 0]
