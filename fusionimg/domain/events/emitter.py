"""Fan-out of run snapshots to result sinks."""

import logging

from fusionimg.domain.events.event import RunEvent
from fusionimg.domain.events.event_types import RunEventType
from fusionimg.domain.events.sink import ResultSink

logger = logging.getLogger(__name__)


class RunEventEmitter:
    """Delivers every run event to the sinks interested in it.

    Sinks are notified in subscription order, each at most once per event,
    even when subscribed both globally and for the event's type. A sink that
    raises is logged and skipped; the run and the remaining sinks carry on.
    """

    def __init__(self) -> None:
        # (sink, event types or None for all), in subscription order
        self._subscriptions: list[tuple[ResultSink, frozenset[RunEventType] | None]] = []

    def subscribe(
        self,
        sink: ResultSink,
        event_types: list[RunEventType] | None = None,
    ) -> None:
        """Subscribe `sink` to `event_types`, or to every event if None."""
        types = frozenset(event_types) if event_types is not None else None
        self._subscriptions.append((sink, types))

    def unsubscribe(self, sink: ResultSink) -> None:
        """Drop every subscription held by `sink`."""
        self._subscriptions = [(s, t) for s, t in self._subscriptions if s is not sink]

    def recipients(self, event_type: RunEventType) -> list[ResultSink]:
        """Sinks that receive `event_type`, deduplicated, in subscription order."""
        result: list[ResultSink] = []
        for sink, types in self._subscriptions:
            if (types is None or event_type in types) and all(sink is not r for r in result):
                result.append(sink)
        return result

    def emit(self, event: RunEvent, extra: ResultSink | None = None) -> None:
        """Notify subscribed sinks, then `extra` (the per-run sink), if given."""
        sinks = self.recipients(event.event_type)
        if extra is not None and all(extra is not s for s in sinks):
            sinks.append(extra)
        for sink in sinks:
            self._safe_notify(sink, event)

    def _safe_notify(self, sink: ResultSink, event: RunEvent) -> None:
        try:
            sink.notify(event)
        except Exception as e:
            logger.warning(
                f"Result sink {sink!r} failed on {event.event_type.value} "
                f"(run {event.run_id[:8]}, status {event.status.name}): {e}"
            )
