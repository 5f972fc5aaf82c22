"""Configuration models.

Config structure (.fusion/config.yml):
    gateway: gemini
    api_key: null            # falls back to GEMINI_API_KEY / GOOGLE_API_KEY / API_KEY
    text_model: gemini-2.5-pro
    image_model: gemini-2.5-flash-image
    temperature: 1.25
    top_p: 1.0
    thinking_budget: 32768
    search_grounding: true
    timeout: null
    output_dir: fusion-output
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fusionimg.domain.constants import (
    DEFAULT_IMAGE_MODEL,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_TEMPERATURE,
    DEFAULT_TEXT_MODEL,
    DEFAULT_THINKING_BUDGET,
    DEFAULT_TOP_P,
)


class FusionConfig(BaseModel):
    """Top-level configuration (parsed from merged YAML layers)."""

    model_config = ConfigDict(extra="forbid")

    gateway: str = "gemini"
    api_key: str | None = None
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    temperature: float = Field(default=DEFAULT_TEMPERATURE, ge=0.0, le=2.0)
    top_p: float = Field(default=DEFAULT_TOP_P, ge=0.0, le=1.0)
    thinking_budget: int = Field(default=DEFAULT_THINKING_BUDGET, ge=0)
    search_grounding: bool = True
    timeout: float | None = Field(default=None, gt=0)
    output_dir: str = str(DEFAULT_OUTPUT_DIR)

    @field_validator("gateway")
    @classmethod
    def _gateway_non_empty(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("gateway must be non-empty")
        return v2

    def gateway_settings(self) -> dict[str, Any]:
        """Constructor config for the selected gateway."""
        return {
            "api_key": self.api_key,
            "text_model": self.text_model,
            "image_model": self.image_model,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "thinking_budget": self.thinking_budget,
            "search_grounding": self.search_grounding,
            "timeout": self.timeout,
        }

    def masked(self) -> dict[str, Any]:
        """Dump for display with the API key hidden."""
        data = self.model_dump()
        if data.get("api_key"):
            data["api_key"] = "****" + data["api_key"][-4:]
        return data
