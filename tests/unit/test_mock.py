"""Tests for the mock provider."""

from unittest.mock import patch

import pytest
from pydantic import ValidationError as PydanticValidationError

from racik.captions.exceptions import ProviderError
from racik.captions.mock import (
    DEFAULT_MOCK_TEXT,
    MockConfig,
    MockProviderHandler,
    MockResponse,
    select_mock_response,
)
from racik.captions.models import DEFAULT_GENERATION_PARAMS, CaptionConfig


@pytest.fixture
def handler():
    return MockProviderHandler()


def _config(mock: MockConfig | None) -> CaptionConfig:
    return CaptionConfig(api_key="ignored-in-mock", mock=mock)


def test_mock_config_defaults_to_single_success():
    config = MockConfig(enabled=True)

    assert config.responses is not None
    assert len(config.responses) == 1
    assert config.responses[0].text is None
    assert config.responses[0].error is None


def test_mock_config_disabled_keeps_no_responses():
    assert MockConfig(enabled=False).responses is None


def test_mock_response_rejects_text_and_error():
    with pytest.raises(PydanticValidationError):
        MockResponse(text="x", error=RuntimeError("y"))


def test_mock_response_rejects_non_positive_weight():
    with pytest.raises(PydanticValidationError):
        MockResponse(weight=0)


def test_mock_handler_returns_configured_text(handler):
    config = _config(MockConfig(enabled=True, responses=[MockResponse(text="Halo")]))

    assert handler.generate_text(config, "prompt", DEFAULT_GENERATION_PARAMS) == "Halo"


def test_mock_handler_default_text(handler):
    config = _config(MockConfig(enabled=True))

    result = handler.generate_text(config, "prompt", DEFAULT_GENERATION_PARAMS)

    assert result == DEFAULT_MOCK_TEXT


def test_mock_handler_without_mock_config(handler):
    """The handler also works when selected by provider name alone."""
    result = handler.generate_text(_config(None), "prompt", DEFAULT_GENERATION_PARAMS)

    assert result == DEFAULT_MOCK_TEXT


def test_mock_handler_raises_configured_error(handler):
    error = ProviderError("quota", status_code=429, payload={"error": {}})
    config = _config(MockConfig(enabled=True, responses=[MockResponse(error=error)]))

    with pytest.raises(ProviderError) as exc_info:
        handler.generate_text(config, "prompt", DEFAULT_GENERATION_PARAMS)

    assert exc_info.value is error


@pytest.mark.asyncio
async def test_mock_handler_async(handler):
    config = _config(
        MockConfig(enabled=True, delay=0.01, responses=[MockResponse(text="Async")])
    )

    result = await handler.generate_text_async(
        config, "prompt", DEFAULT_GENERATION_PARAMS
    )

    assert result == "Async"


def test_select_mock_response_uses_weights():
    first = MockResponse(text="a", weight=1.0)
    second = MockResponse(text="b", weight=3.0)

    with patch("racik.captions.mock.random.choices", return_value=[second]) as choices:
        selected = select_mock_response([first, second])

    assert selected is second
    assert choices.call_args[1]["weights"] == [1.0, 3.0]
