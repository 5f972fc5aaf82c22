"""Run event types for result sink notifications."""

from enum import Enum


class RunEventType(str, Enum):
    """Typed run events delivered to result sinks."""

    # Status lifecycle
    STATUS_CHANGED = "status_changed"

    # Artifacts
    ARTIFACT_PRODUCED = "artifact_produced"

    # Run lifecycle
    RUN_COMPLETED = "run_completed"
    RUN_FAILED = "run_failed"
