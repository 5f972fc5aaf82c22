"""Result sink protocol."""

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from fusionimg.domain.events.event import RunEvent


class ResultSink(Protocol):
    """Receives a push notification on every run state change."""

    def notify(self, event: "RunEvent") -> None:
        """Handle a run event. Must not block."""
        ...
