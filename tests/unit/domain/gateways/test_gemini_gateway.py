"""Tests for GeminiGateway with the google-genai client mocked out."""

import asyncio
import base64
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors as genai_errors

from fusionimg.domain.errors import (
    EmptyTextResponseError,
    GatewayConfigurationError,
    GatewayError,
    GatewayErrorKind,
    GatewayTransportError,
    MissingImagePayloadError,
)
from fusionimg.domain.gateways.gemini_gateway import GeminiGateway
from fusionimg.domain.models.artifacts import AnalysisArtifact, ImageArtifact, PlanArtifact

CLIENT_PATH = "fusionimg.domain.gateways.gemini_gateway.genai.Client"


def _text_response(text):
    return SimpleNamespace(text=text, candidates=[])


def _image_response(data, mime_type="image/png"):
    part = SimpleNamespace(text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type))
    return SimpleNamespace(
        text=None,
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))],
    )


def _mock_client(response=None, side_effect=None):
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock(return_value=response, side_effect=side_effect)
    return client


@pytest.fixture
def image():
    return ImageArtifact(data=b"reference", mime_type="image/jpeg")


class TestConfiguration:
    def test_defaults(self) -> None:
        gateway = GeminiGateway()
        assert gateway._text_model == "gemini-2.5-pro"
        assert gateway._image_model == "gemini-2.5-flash-image"
        assert gateway._temperature == 1.25
        assert gateway._thinking_budget == 32768

    def test_unknown_keys_warn(self) -> None:
        with pytest.warns(UserWarning, match="Unknown GeminiGateway config keys"):
            GeminiGateway({"api_key": "k", "model_name": "x"})

    def test_invalid_timeout_rejected(self) -> None:
        with pytest.raises(ValueError, match="timeout"):
            GeminiGateway({"timeout": 0})

    def test_metadata(self) -> None:
        meta = GeminiGateway.get_metadata()
        assert meta["name"] == "gemini"
        assert "api_key" in meta["config_keys"]

    def test_missing_key_surfaces_on_first_call_not_init(self) -> None:
        gateway = GeminiGateway()

        with pytest.raises(GatewayConfigurationError) as exc_info:
            asyncio.run(gateway.plan("a red bicycle"))

        assert exc_info.value.kind == GatewayErrorKind.CONFIGURATION

    def test_validate_uses_env_key(self, monkeypatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        GeminiGateway().validate()

    def test_explicit_key_passed_to_client(self, monkeypatch) -> None:
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        client = _mock_client(_text_response("plan"))

        with patch(CLIENT_PATH, return_value=client) as client_cls:
            asyncio.run(GeminiGateway({"api_key": "explicit"}).plan("p"))

        client_cls.assert_called_once_with(api_key="explicit")


class TestTextStages:
    def test_plan_uses_text_model_with_search_and_thinking(self) -> None:
        client = _mock_client(_text_response("1. Draw a bicycle"))

        with patch(CLIENT_PATH, return_value=client):
            plan = asyncio.run(GeminiGateway({"api_key": "k"}).plan("a red bicycle"))

        assert plan == PlanArtifact(text="1. Draw a bicycle")
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-pro"
        assert kwargs["config"].thinking_config.thinking_budget == 32768
        assert kwargs["config"].tools
        assert 'User Prompt: "a red bicycle"' in kwargs["contents"].parts[0].text

    def test_plan_without_search_grounding(self) -> None:
        client = _mock_client(_text_response("plan"))

        with patch(CLIENT_PATH, return_value=client):
            asyncio.run(GeminiGateway({"api_key": "k", "search_grounding": False}).plan("p"))

        assert not client.aio.models.generate_content.call_args.kwargs["config"].tools

    def test_plan_includes_reference_image(self, image) -> None:
        client = _mock_client(_text_response("plan"))

        with patch(CLIENT_PATH, return_value=client):
            asyncio.run(GeminiGateway({"api_key": "k"}).plan("p", image))

        parts = client.aio.models.generate_content.call_args.kwargs["contents"].parts
        assert len(parts) == 2
        assert parts[1].inline_data.data == b"reference"
        assert parts[1].inline_data.mime_type == "image/jpeg"

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_plan_raises(self, text) -> None:
        client = _mock_client(_text_response(text))

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(EmptyTextResponseError) as exc_info:
                asyncio.run(GeminiGateway({"api_key": "k"}).plan("p"))

        assert exc_info.value.operation == "plan"

    def test_analyze_sends_draft_and_original(self, image) -> None:
        client = _mock_client(_text_response("The wheels are off-center."))
        draft = ImageArtifact(data=b"draft")

        with patch(CLIENT_PATH, return_value=client):
            analysis = asyncio.run(
                GeminiGateway({"api_key": "k"}).analyze(
                    "p", PlanArtifact(text="the plan"), draft, image
                )
            )

        assert analysis == AnalysisArtifact(text="The wheels are off-center.")
        parts = client.aio.models.generate_content.call_args.kwargs["contents"].parts
        assert 'Original Plan: "the plan"' in parts[0].text
        assert parts[2].inline_data.data == b"draft"
        assert parts[4].inline_data.data == b"reference"


class TestImageStages:
    def test_draft_returns_inline_image(self) -> None:
        client = _mock_client(_image_response(b"\x89PNG", "image/png"))

        with patch(CLIENT_PATH, return_value=client):
            result = asyncio.run(GeminiGateway({"api_key": "k"}).draft(PlanArtifact(text="plan")))

        assert result == ImageArtifact(data=b"\x89PNG", mime_type="image/png")
        kwargs = client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "gemini-2.5-flash-image"
        assert kwargs["config"].response_modalities == ["IMAGE"]

    def test_base64_string_payload_decoded(self) -> None:
        encoded = base64.b64encode(b"final-bytes").decode("ascii")
        client = _mock_client(_image_response(encoded, "image/webp"))

        with patch(CLIENT_PATH, return_value=client):
            result = asyncio.run(
                GeminiGateway({"api_key": "k"}).refine(
                    AnalysisArtifact(text="fix it"), ImageArtifact(data=b"draft")
                )
            )

        assert result.data == b"final-bytes"
        assert result.mime_type == "image/webp"

    def test_quick_generate_missing_payload(self) -> None:
        client = _mock_client(SimpleNamespace(text="sorry", candidates=[]))

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(MissingImagePayloadError, match="Could not generate a quick draft image."):
                asyncio.run(GeminiGateway({"api_key": "k"}).quick_generate("p"))

    def test_text_only_parts_are_missing_payload(self) -> None:
        part = SimpleNamespace(text="no image today", inline_data=None)
        response = SimpleNamespace(
            text="no image today",
            candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))],
        )
        client = _mock_client(response)

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(MissingImagePayloadError) as exc_info:
                asyncio.run(
                    GeminiGateway({"api_key": "k"}).refine(
                        AnalysisArtifact(text="a"), ImageArtifact(data=b"d")
                    )
                )

        assert exc_info.value.kind == GatewayErrorKind.IMAGE_STAGE_MISSING_PAYLOAD
        assert exc_info.value.message == "Could not generate the final image."


    def test_malformed_base64_payload_is_missing_payload(self) -> None:
        client = _mock_client(_image_response("not base64!!", "image/png"))

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(MissingImagePayloadError) as exc_info:
                asyncio.run(GeminiGateway({"api_key": "k"}).draft(PlanArtifact(text="plan")))

        assert exc_info.value.message.startswith("Could not generate a draft image.")
        assert exc_info.value.operation == "draft"

    def test_non_image_mime_type_is_missing_payload(self) -> None:
        client = _mock_client(_image_response(b"<html>", "text/html"))

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(MissingImagePayloadError):
                asyncio.run(GeminiGateway({"api_key": "k"}).quick_generate("p"))


class TestTransportErrors:
    def test_quota_error_wrapped(self) -> None:
        error = genai_errors.ClientError(
            429,
            {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}},
        )
        client = _mock_client(side_effect=error)

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(GatewayTransportError) as exc_info:
                asyncio.run(GeminiGateway({"api_key": "k"}).plan("p"))

        assert "429" in exc_info.value.message
        assert exc_info.value.operation == "plan"
        assert exc_info.value.__cause__ is error

    def test_auth_error_wrapped(self) -> None:
        error = genai_errors.ClientError(
            403,
            {"error": {"code": 403, "message": "Forbidden", "status": "PERMISSION_DENIED"}},
        )
        client = _mock_client(side_effect=error)

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(GatewayTransportError, match="authentication error"):
                asyncio.run(GeminiGateway({"api_key": "k"}).draft(PlanArtifact(text="p")))

    def test_timeout_wrapped(self) -> None:
        async def slow(**kwargs):
            await asyncio.sleep(1)

        client = _mock_client(side_effect=slow)

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(GatewayTransportError, match="timed out"):
                asyncio.run(GeminiGateway({"api_key": "k", "timeout": 0.01}).plan("p"))

    def test_network_error_wrapped(self) -> None:
        error = httpx.ConnectError("connection refused")
        client = _mock_client(side_effect=error)

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(GatewayError) as exc_info:
                asyncio.run(GeminiGateway({"api_key": "k"}).plan("a red bicycle"))

        assert isinstance(exc_info.value, GatewayTransportError)
        assert exc_info.value.message == "Gemini plan failed: connection refused"
        assert exc_info.value.__cause__ is error

    def test_cancellation_not_wrapped(self) -> None:
        client = _mock_client(side_effect=asyncio.CancelledError())

        with patch(CLIENT_PATH, return_value=client):
            with pytest.raises(asyncio.CancelledError):
                asyncio.run(GeminiGateway({"api_key": "k"}).plan("p"))
