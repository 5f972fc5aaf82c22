from typing import Any, Literal
from pydantic import BaseModel, Field


class BaseOutput(BaseModel):
    schema_version: int = 1
    command: Literal["run", "gateways", "config", "validate"]
    exit_code: int
    error: str | None = None


class RunOutput(BaseOutput):
    command: Literal["run"] = "run"
    # On validation errors no run exists; omit run fields via exclude_none.
    run_id: str | None = None
    variant: str | None = None
    status: str | None = None
    failed_stage: str | None = None
    statuses: list[str] = Field(default_factory=list)
    files: dict[str, str] = Field(default_factory=dict)


class GatewaySummary(BaseModel):
    """Summary of a gateway for list output."""
    name: str
    description: str
    requires_config: bool = False


class GatewayDetail(BaseModel):
    """Detailed gateway info for single gateway view."""
    name: str
    description: str
    requires_config: bool = False
    config_keys: list[str] = Field(default_factory=list)
    text_model: str | None = None
    image_model: str | None = None


class GatewaysOutput(BaseOutput):
    command: Literal["gateways"] = "gateways"
    gateways: list[GatewaySummary] | None = None
    gateway: GatewayDetail | None = None


class ConfigOutput(BaseOutput):
    command: Literal["config"] = "config"
    config: dict[str, Any] | None = None


class ValidateOutput(BaseOutput):
    """Output for validate command."""

    command: Literal["validate"] = "validate"
    gateway: str | None = None
    passed: bool = False
