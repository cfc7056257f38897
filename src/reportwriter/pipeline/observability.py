from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional

SCHEMA_MISMATCH = "schema_mismatch"
MALFORMED_LINE = "malformed_line"


@dataclass(frozen=True)
class ExportEvent:
    type: str
    payload: Mapping[str, object]


# Observer receives a structured event.
Observer = Callable[[ExportEvent], None]
# Factory builds an observer for a given logger (may return None if not active at current level).
ObserverFactory = Callable[[logging.Logger], Optional[Observer]]


class ObserverRegistry:
    def __init__(self, factories: Optional[Mapping[str, ObserverFactory]] = None) -> None:
        self._factories: dict[str, ObserverFactory] = dict(factories or {})

    def register(self, name: str, factory: ObserverFactory) -> None:
        self._factories[name] = factory

    def get(self, name: str, logger: logging.Logger) -> Optional[Observer]:
        factory = self._factories.get(name)
        if not factory:
            return None
        return factory(logger)

    def build(self, logger: logging.Logger) -> Optional[Observer]:
        """Combine every active observer into one callable."""
        observers = [
            obs for obs in (self.get(name, logger) for name in self._factories) if obs
        ]
        if not observers:
            return None

        def _fanout(event: ExportEvent) -> None:
            for obs in observers:
                obs(event)

        return _fanout


def emit(observer: Optional[Observer], type_: str, **payload: object) -> None:
    if observer is not None:
        observer(ExportEvent(type_, payload))


def _schema_mismatch_observer_factory(logger: logging.Logger) -> Optional[Observer]:
    if not logger.isEnabledFor(logging.WARNING):
        return None

    totals: dict[str, int] = {}
    warned: set[str] = set()

    def _observer(event: ExportEvent) -> None:
        if event.type != SCHEMA_MISMATCH:
            return
        name = str(event.payload.get("header"))
        expected = event.payload.get("expected")
        totals[name] = totals.get(name, 0) + 1
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Schema mismatch: header=%s expected=%s stage=%s",
                name,
                expected,
                event.payload.get("stage"),
            )
        elif name not in warned:
            # Warn once per header.
            warned.add(name)
            logger.warning(
                "Schema mismatch: header=%s expected %s value; treating it as missing",
                name,
                expected,
            )

    return _observer


def _malformed_line_observer_factory(logger: logging.Logger) -> Optional[Observer]:
    if not logger.isEnabledFor(logging.WARNING):
        return None

    def _observer(event: ExportEvent) -> None:
        if event.type != MALFORMED_LINE:
            return
        logger.debug(
            "Skipping malformed cache line %s in %s: %s",
            event.payload.get("line"),
            event.payload.get("path"),
            event.payload.get("reason"),
        )

    return _observer


def default_observer_registry() -> ObserverRegistry:
    registry = ObserverRegistry()
    registry.register(SCHEMA_MISMATCH, _schema_mismatch_observer_factory)
    registry.register(MALFORMED_LINE, _malformed_line_observer_factory)
    return registry
