"""Tests for OpenAIProviderHandler."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from racik.captions.exceptions import ProviderError, TransportError
from racik.captions.models import DEFAULT_GENERATION_PARAMS, CaptionConfig
from racik.captions.providers.openai import (
    OpenAIProviderHandler,
    provider_error_payload,
)

COMPLETIONS_URL = "https://api.openai.com/v1/completions"


# ==================== Fixtures ====================


@pytest.fixture
def handler():
    return OpenAIProviderHandler()


@pytest.fixture
def base_config():
    return CaptionConfig(
        provider="openai",
        model="gpt-3.5-turbo-instruct",
        api_key="test-api-key",
        timeout=15,
    )


def _completion(*texts):
    completion = MagicMock()
    completion.choices = [MagicMock(text=text) for text in texts]
    completion.model_dump.return_value = {"choices": []}
    return completion


def _status_error(status_code, json_body):
    request = httpx.Request("POST", COMPLETIONS_URL)
    response = httpx.Response(status_code, request=request, json=json_body)
    cls = openai.RateLimitError if status_code == 429 else openai.APIStatusError
    return cls(
        f"Error code: {status_code}",
        response=response,
        body=json_body.get("error") if isinstance(json_body, dict) else json_body,
    )


# ==================== Initialization / Clients ====================


def test_init_creates_empty_caches(handler):
    assert handler._sync_client_cache == {}
    assert handler._async_client_cache == {}


def test_get_client_is_cached(handler, base_config):
    """The same config reuses one client; no per-request construction."""
    with patch("racik.captions.providers.openai.OpenAI") as mock_openai:
        first = handler._get_client(base_config, "sync")
        second = handler._get_client(base_config, "sync")

    assert first is second
    mock_openai.assert_called_once_with(
        api_key="test-api-key",
        base_url=None,
        timeout=15,
        max_retries=0,
    )


def test_get_client_separate_for_different_keys(handler, base_config):
    with patch("racik.captions.providers.openai.OpenAI", side_effect=[MagicMock(), MagicMock()]):
        first = handler._get_client(base_config, "sync")
        second = handler._get_client(
            base_config.model_copy(update={"api_key": "other-key"}), "sync"
        )

    assert first is not second


def test_get_client_async_uses_async_cache(handler, base_config):
    with patch("racik.captions.providers.openai.AsyncOpenAI") as mock_async_openai:
        handler._get_client(base_config, "async")

    mock_async_openai.assert_called_once()
    assert len(handler._async_client_cache) == 1
    assert handler._sync_client_cache == {}


# ==================== Request / Response Conversion ====================


def test_convert_request_uses_fixed_params(handler, base_config):
    params = handler._convert_request(base_config, "Buat caption", DEFAULT_GENERATION_PARAMS)

    assert params == {
        "model": "gpt-3.5-turbo-instruct",
        "prompt": "Buat caption",
        "temperature": 0.7,
        "max_tokens": 96,
        "top_p": 1.0,
        "frequency_penalty": 0.0,
        "presence_penalty": 0.0,
    }


def test_convert_response_first_choice(handler, base_config):
    assert handler._convert_response(base_config, _completion("satu", "dua")) == "satu"


def test_convert_response_no_choices(handler, base_config):
    with pytest.raises(TransportError):
        handler._convert_response(base_config, _completion())


# ==================== Sync Generation ====================


def test_generate_text_success(handler, base_config):
    mock_client = MagicMock()
    mock_client.completions.create.return_value = _completion(" Senja di pantai ✨")

    with patch("racik.captions.providers.openai.OpenAI", return_value=mock_client):
        result = handler.generate_text(base_config, "prompt", DEFAULT_GENERATION_PARAMS)

    assert result == " Senja di pantai ✨"
    mock_client.completions.create.assert_called_once()
    call_kwargs = mock_client.completions.create.call_args[1]
    assert call_kwargs["prompt"] == "prompt"
    assert call_kwargs["max_tokens"] == 96


def test_generate_text_rate_limit_forwards_status_and_payload(handler, base_config):
    """A 429 becomes ProviderError with the provider's full JSON body."""
    body = {
        "error": {
            "message": "Rate limit reached",
            "type": "requests",
            "param": None,
            "code": "rate_limit_exceeded",
        }
    }
    mock_client = MagicMock()
    mock_client.completions.create.side_effect = _status_error(429, body)

    with patch("racik.captions.providers.openai.OpenAI", return_value=mock_client):
        with pytest.raises(ProviderError) as exc_info:
            handler.generate_text(base_config, "prompt", DEFAULT_GENERATION_PARAMS)

    assert exc_info.value.status_code == 429
    assert exc_info.value.payload == body


def test_generate_text_timeout(handler, base_config):
    mock_client = MagicMock()
    mock_client.completions.create.side_effect = openai.APITimeoutError(
        request=httpx.Request("POST", COMPLETIONS_URL)
    )

    with patch("racik.captions.providers.openai.OpenAI", return_value=mock_client):
        with pytest.raises(TransportError) as exc_info:
            handler.generate_text(base_config, "prompt", DEFAULT_GENERATION_PARAMS)

    assert exc_info.value.timeout_seconds == 15


def test_generate_text_connection_error(handler, base_config):
    mock_client = MagicMock()
    mock_client.completions.create.side_effect = openai.APIConnectionError(
        request=httpx.Request("POST", COMPLETIONS_URL)
    )

    with patch("racik.captions.providers.openai.OpenAI", return_value=mock_client):
        with pytest.raises(TransportError) as exc_info:
            handler.generate_text(base_config, "prompt", DEFAULT_GENERATION_PARAMS)

    assert exc_info.value.timeout_seconds is None
    assert "Connection error" in exc_info.value.message


def test_generate_text_unknown_error_wrapped(handler, base_config):
    mock_client = MagicMock()
    mock_client.completions.create.side_effect = RuntimeError("socket exploded")

    with patch("racik.captions.providers.openai.OpenAI", return_value=mock_client):
        with pytest.raises(TransportError) as exc_info:
            handler.generate_text(base_config, "prompt", DEFAULT_GENERATION_PARAMS)

    assert exc_info.value.raw_response["error_type"] == "RuntimeError"


# ==================== Async Generation ====================


@pytest.mark.asyncio
async def test_generate_text_async_success(handler, base_config):
    mock_async_client = MagicMock()
    mock_async_client.completions.create = AsyncMock(
        return_value=_completion("Caption async")
    )

    with patch(
        "racik.captions.providers.openai.AsyncOpenAI", return_value=mock_async_client
    ):
        result = await handler.generate_text_async(
            base_config, "prompt", DEFAULT_GENERATION_PARAMS
        )

    assert result == "Caption async"


@pytest.mark.asyncio
async def test_generate_text_async_provider_error(handler, base_config):
    body = {"error": {"message": "Invalid model", "type": "invalid_request_error"}}
    mock_async_client = MagicMock()
    mock_async_client.completions.create = AsyncMock(
        side_effect=_status_error(400, body)
    )

    with patch(
        "racik.captions.providers.openai.AsyncOpenAI", return_value=mock_async_client
    ):
        with pytest.raises(ProviderError) as exc_info:
            await handler.generate_text_async(
                base_config, "prompt", DEFAULT_GENERATION_PARAMS
            )

    assert exc_info.value.status_code == 400
    assert exc_info.value.payload == body


# ==================== Payload Extraction ====================


def test_provider_error_payload_non_json_body():
    """Non-JSON error bodies fall back to an error envelope."""
    request = httpx.Request("POST", COMPLETIONS_URL)
    response = httpx.Response(502, request=request, text="Bad Gateway")
    error = openai.APIStatusError("Error code: 502", response=response, body=None)

    assert provider_error_payload(error) == {"error": {"message": "Error code: 502"}}
