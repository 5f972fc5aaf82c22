"""Domain-level exceptions for the Fusion Imager pipeline."""

from enum import Enum


class FusionError(Exception):
    """Base class for all pipeline errors."""

    pass


class ValidationError(FusionError):
    """Raised when caller input is rejected before a run starts (e.g. empty prompt)."""

    pass


class GatewayErrorKind(str, Enum):
    """Sub-kinds of gateway failures."""

    TEXT_STAGE_EMPTY = "text_stage_empty"
    IMAGE_STAGE_MISSING_PAYLOAD = "image_stage_missing_payload"
    TRANSPORT = "transport"
    CONFIGURATION = "configuration"


class GatewayError(FusionError):
    """Raised when a gateway call fails or returns an unusable payload."""

    kind: GatewayErrorKind = GatewayErrorKind.TRANSPORT

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation


class EmptyTextResponseError(GatewayError):
    """A text stage (plan, analyze) came back with no text."""

    kind = GatewayErrorKind.TEXT_STAGE_EMPTY


class MissingImagePayloadError(GatewayError):
    """An image stage came back without an inline image part."""

    kind = GatewayErrorKind.IMAGE_STAGE_MISSING_PAYLOAD


class GatewayTransportError(GatewayError):
    """Network, auth, timeout or SDK failure talking to the remote service."""

    kind = GatewayErrorKind.TRANSPORT


class GatewayConfigurationError(GatewayError):
    """Gateway cannot be invoked as configured (e.g. no API key)."""

    kind = GatewayErrorKind.CONFIGURATION


class SupersededError(FusionError):
    """Raised internally when a run tries to commit after a newer run started.

    Never surfaced to callers as a failure.
    """

    def __init__(self, run_id: str, generation: int, current_generation: int) -> None:
        self.run_id = run_id
        self.generation = generation
        self.current_generation = current_generation
        super().__init__(
            f"Run {run_id} (generation {generation}) superseded by generation "
            f"{current_generation}"
        )
