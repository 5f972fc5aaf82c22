"""Gemini generation gateway using the google-genai SDK.

Text stages (plan, analyze) go to a reasoning model with a large thinking
budget; image stages (quick generate, draft, refine) go to an image model
that answers with inline image parts.
"""

import asyncio
import logging
import warnings
from typing import Any

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError as PydanticValidationError

from fusionimg.domain.constants import (
    DEFAULT_IMAGE_MIME_TYPE,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_TEMPERATURE,
    DEFAULT_TEXT_MODEL,
    DEFAULT_THINKING_BUDGET,
    DEFAULT_TOP_P,
)
from fusionimg.domain.credentials import resolve_api_key
from fusionimg.domain.errors import (
    EmptyTextResponseError,
    GatewayConfigurationError,
    GatewayTransportError,
    MissingImagePayloadError,
    ValidationError,
)
from fusionimg.domain.gateways.generation_gateway import GenerationGateway
from fusionimg.domain.models.artifacts import AnalysisArtifact, ImageArtifact, PlanArtifact

logger = logging.getLogger(__name__)


class GeminiGateway(GenerationGateway):
    """Gemini gateway via the google-genai async client.

    Configuration:
        - api_key: Explicit API key (falls back to environment variables)
        - text_model: Model for plan/analyze (default: gemini-2.5-pro)
        - image_model: Model for quick_generate/draft/refine
        - temperature, top_p: Sampling parameters for both models
        - thinking_budget: Thinking tokens for the text model
        - search_grounding: Enable Google Search grounding for planning
        - timeout: Per-call timeout in seconds (None = no timeout)
    """

    def __init__(self, config: dict[str, Any] | None = None) -> None:
        self.config = config or {}
        self._validate_config()

        self._api_key: str | None = self.config.get("api_key")
        self._text_model = self.config.get("text_model") or DEFAULT_TEXT_MODEL
        self._image_model = self.config.get("image_model") or DEFAULT_IMAGE_MODEL
        self._temperature = self.config.get("temperature", DEFAULT_TEMPERATURE)
        self._top_p = self.config.get("top_p", DEFAULT_TOP_P)
        self._thinking_budget = self.config.get("thinking_budget", DEFAULT_THINKING_BUDGET)
        self._search_grounding = self.config.get("search_grounding", True)
        self._timeout: float | None = self.config.get("timeout")

        # Created lazily so a missing key only surfaces on first invocation.
        self._client: genai.Client | None = None

    def _validate_config(self) -> None:
        """Validate configuration and warn on unknown keys.

        Raises:
            ValueError: If config values are invalid
        """
        if not self.config:
            return

        known_keys = set(self.get_metadata()["config_keys"])
        unknown_keys = set(self.config.keys()) - known_keys
        if unknown_keys:
            warnings.warn(
                f"Unknown GeminiGateway config keys ignored: {sorted(unknown_keys)}",
                UserWarning,
                stacklevel=3,
            )

        timeout = self.config.get("timeout")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0")

        thinking_budget = self.config.get("thinking_budget")
        if thinking_budget is not None and thinking_budget < 0:
            raise ValueError("thinking_budget must be >= 0")

    @classmethod
    def get_metadata(cls) -> dict[str, Any]:
        """Return gateway metadata."""
        return {
            "name": "gemini",
            "description": "Google Gemini via the google-genai SDK",
            "requires_config": True,
            "config_keys": [
                "api_key",
                "text_model",
                "image_model",
                "temperature",
                "top_p",
                "thinking_budget",
                "search_grounding",
                "timeout",
            ],
            "text_model": DEFAULT_TEXT_MODEL,
            "image_model": DEFAULT_IMAGE_MODEL,
        }

    def validate(self) -> None:
        """Verify an API key can be resolved.

        Raises:
            GatewayConfigurationError: If no API key is configured
        """
        self._resolve_key()

    def _resolve_key(self) -> str:
        key = resolve_api_key(self._api_key)
        if key is None:
            raise GatewayConfigurationError(
                "Gemini API key not configured. Pass --api-key, set api_key in "
                ".fusion/config.yml, or export GEMINI_API_KEY."
            )
        return key

    def _get_client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self._resolve_key())
        return self._client

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def quick_generate(self, prompt: str, image: ImageArtifact | None = None) -> ImageArtifact:
        parts = [
            types.Part.from_text(
                text=(
                    "Generate an image for the following user prompt. If an image is "
                    f"provided, use it as a base for editing. User Prompt: \"{prompt}\""
                )
            )
        ]
        if image is not None:
            parts.append(_image_part(image))

        response = await self._generate("quick_generate", self._image_model, parts, self._image_config())
        return _extract_image(response, "Could not generate a quick draft image.", "quick_generate")

    async def plan(self, prompt: str, image: ImageArtifact | None = None) -> PlanArtifact:
        parts = [
            types.Part.from_text(
                text=(
                    "You are part of a duo of AI models. Your partner is a visual generation "
                    f"specialist, {self._image_model}. Analyze the following user prompt and image "
                    "(if provided). Collaboratively create an extremely detailed and comprehensive "
                    "plan for generating a new image. Leverage Google Search for grounding and "
                    "context. Structure the plan with clear, actionable steps for your visual "
                    f"partner to follow. User Prompt: \"{prompt}\""
                )
            )
        ]
        if image is not None:
            parts.append(_image_part(image))

        config = self._text_config()
        if self._search_grounding:
            config.tools = [types.Tool(google_search=types.GoogleSearch())]

        response = await self._generate("plan", self._text_model, parts, config)
        return PlanArtifact(text=_extract_text(response, "Could not generate a plan.", "plan"))

    async def draft(self, plan: PlanArtifact, image: ImageArtifact | None = None) -> ImageArtifact:
        parts = [
            types.Part.from_text(
                text=(
                    "Based on the following detailed plan, generate a new image. If an original "
                    f"image is provided, use it as a base for editing. Plan: {plan.text}"
                )
            )
        ]
        if image is not None:
            parts.append(_image_part(image))

        response = await self._generate("draft", self._image_model, parts, self._image_config())
        return _extract_image(response, "Could not generate a draft image.", "draft")

    async def analyze(
        self,
        prompt: str,
        plan: PlanArtifact,
        draft: ImageArtifact,
        image: ImageArtifact | None = None,
    ) -> AnalysisArtifact:
        parts = [
            types.Part.from_text(
                text=(
                    "You are part of a duo of AI models. Your partner is a visual generation "
                    "specialist. You previously created a 'Plan'. Your partner has now created a "
                    "'Draft' image based on that plan.\n"
                    f"Original User Prompt: \"{prompt}\"\n"
                    f"Original Plan: \"{plan.text}\"\n\n"
                    "Now, meticulously review the provided 'Draft' image against the original user "
                    "request and the collaborative Plan. Also consider the original image if it was "
                    "provided. Identify any flaws, discrepancies, or areas for improvement. Write an "
                    "extremely detailed analysis to guide the final refinement."
                )
            ),
            types.Part.from_text(text="Draft Image to Analyze:"),
            _image_part(draft),
        ]
        if image is not None:
            parts.append(types.Part.from_text(text="Original Image for reference:"))
            parts.append(_image_part(image))

        response = await self._generate("analyze", self._text_model, parts, self._text_config())
        return AnalysisArtifact(
            text=_extract_text(response, "Could not generate an analysis.", "analyze")
        )

    async def refine(
        self,
        analysis: AnalysisArtifact,
        draft: ImageArtifact,
        image: ImageArtifact | None = None,
    ) -> ImageArtifact:
        parts = [
            types.Part.from_text(
                text=(
                    "Based on the following comprehensive analysis, refine the provided draft image "
                    "to create a final, polished version. If an original image is also provided, it "
                    "is for context. The draft image is the primary one to be edited. "
                    f"Analysis: {analysis.text}"
                )
            ),
            types.Part.from_text(text="Draft Image to Refine:"),
            _image_part(draft),
        ]
        if image is not None:
            parts.append(types.Part.from_text(text="Original Image for context:"))
            parts.append(_image_part(image))

        response = await self._generate("refine", self._image_model, parts, self._image_config())
        return _extract_image(response, "Could not generate the final image.", "refine")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _text_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self._temperature,
            top_p=self._top_p,
            thinking_config=types.ThinkingConfig(thinking_budget=self._thinking_budget),
        )

    def _image_config(self) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self._temperature,
            top_p=self._top_p,
            response_modalities=["IMAGE"],
        )

    async def _generate(
        self,
        operation: str,
        model: str,
        parts: list[types.Part],
        config: types.GenerateContentConfig,
    ) -> types.GenerateContentResponse:
        """Issue one generate_content call, wrapping SDK failures."""
        client = self._get_client()
        logger.debug(f"Gemini {operation}: model={model} parts={len(parts)}")

        try:
            call = client.aio.models.generate_content(
                model=model,
                contents=types.Content(role="user", parts=parts),
                config=config,
            )
            if self._timeout is not None:
                return await asyncio.wait_for(call, timeout=self._timeout)
            return await call
        except asyncio.TimeoutError:
            raise GatewayTransportError(
                f"Gemini {operation} timed out after {self._timeout}s",
                operation=operation,
            )
        except genai_errors.APIError as e:
            raise _wrap_api_error(e, operation) from e
        except Exception as e:
            # Transport failures below the SDK, e.g. httpx connection errors
            raise GatewayTransportError(
                f"Gemini {operation} failed: {e}", operation=operation
            ) from e


def _image_part(image: ImageArtifact) -> types.Part:
    return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)


def _extract_text(response: Any, message: str, operation: str) -> str:
    text = getattr(response, "text", None)
    if not text or not text.strip():
        raise EmptyTextResponseError(
            f"{message} The model returned no text.", operation=operation
        )
    return text


def _extract_image(response: Any, message: str, operation: str) -> ImageArtifact:
    """Return the first inline image part of the first candidate."""
    candidates = getattr(response, "candidates", None) or []
    if candidates:
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        for part in parts:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None) if inline else None
            if not data:
                continue
            mime_type = getattr(inline, "mime_type", None) or DEFAULT_IMAGE_MIME_TYPE
            try:
                if isinstance(data, str):
                    # Some transports hand back the base64 text rather than bytes.
                    return ImageArtifact.from_base64(data, mime_type=mime_type)
                return ImageArtifact(data=bytes(data), mime_type=mime_type)
            except (ValidationError, PydanticValidationError) as e:
                raise MissingImagePayloadError(
                    f"{message} The returned image payload was unusable: {e}",
                    operation=operation,
                ) from e

    raise MissingImagePayloadError(message, operation=operation)


def _wrap_api_error(error: genai_errors.APIError, operation: str) -> GatewayTransportError:
    """Wrap SDK errors with actionable messages."""
    code = getattr(error, "code", None)
    detail = getattr(error, "message", None) or str(error)

    if code in (401, 403):
        return GatewayTransportError(
            f"Gemini authentication error ({code}). Check your API key.\n{detail}",
            operation=operation,
        )
    if code == 429:
        return GatewayTransportError(
            f"Gemini rate limit or quota exceeded (429): {detail}",
            operation=operation,
        )
    return GatewayTransportError(
        f"Gemini {operation} failed ({code}): {detail}",
        operation=operation,
    )
