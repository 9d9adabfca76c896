"""Shared pytest configuration and fixtures for all tests."""

import os
import warnings

import pytest

from racik.captions.models import CaptionConfig, CaptionRequest


def pytest_addoption(parser):
    """Add custom command-line options."""
    parser.addoption(
        "--e2e",
        action="store_true",
        default=False,
        help="Run only e2e tests (default: run only unit tests)",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "unit: Unit tests that use mocks and don't make real API calls",
    )
    config.addinivalue_line(
        "markers",
        "e2e: End-to-end tests that make real API calls",
    )


def pytest_collection_modifyitems(config, items):
    """Mark tests by directory and skip the suite that was not selected."""
    openai_key_available = bool(os.getenv("OPENAI_API_KEY"))
    run_e2e = config.getoption("--e2e")

    for item in items:
        if "/e2e/" in item.nodeid:
            item.add_marker(pytest.mark.e2e)
        elif "/unit/" in item.nodeid:
            item.add_marker(pytest.mark.unit)

        if not run_e2e and "e2e" in item.keywords:
            item.add_marker(
                pytest.mark.skip(
                    reason="E2E tests skipped by default. Use --e2e to run them."
                )
            )

        if run_e2e and "unit" in item.keywords:
            item.add_marker(
                pytest.mark.skip(reason="Unit tests skipped when --e2e flag is used.")
            )

        if run_e2e and "e2e" in item.keywords and not openai_key_available:
            item.add_marker(
                pytest.mark.skip(reason="OPENAI_API_KEY environment variable not set")
            )


@pytest.fixture(autouse=True)
def suppress_warnings():
    """Suppress deprecation noise from third-party libraries."""
    warnings.filterwarnings("ignore", category=DeprecationWarning)
    warnings.filterwarnings("ignore", category=PendingDeprecationWarning)


@pytest.fixture
def caption_request():
    """A basic caption request."""
    return CaptionRequest(
        caption="lagi nyoba bikin caption",
        target="Apa Aja",
        genz=True,
        galau=False,
    )


@pytest.fixture
def caption_config():
    """A configured OpenAI caption config."""
    return CaptionConfig(
        provider="openai",
        api_key="test-key",
        model="gpt-3.5-turbo-instruct",
        timeout=10,
    )


class RecordingHandler:
    """Provider handler that records prompts and answers from a script.

    ``outcome`` is either the text to return or an exception to raise.
    """

    def __init__(self, outcome="Caption dari provider"):
        self.outcome = outcome
        self.calls = []

    def _answer(self, config, prompt, params):
        self.calls.append({"config": config, "prompt": prompt, "params": params})
        if isinstance(self.outcome, BaseException):
            raise self.outcome
        return self.outcome

    def generate_text(self, config, prompt, params):
        return self._answer(config, prompt, params)

    async def generate_text_async(self, config, prompt, params):
        return self._answer(config, prompt, params)


@pytest.fixture
def recording_handler():
    """A handler that counts provider calls."""
    return RecordingHandler()


@pytest.fixture
def handler_factory():
    """Build a RecordingHandler with a scripted outcome."""
    return RecordingHandler
