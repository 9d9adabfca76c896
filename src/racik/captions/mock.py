"""Mock completion provider for tests and offline development."""

import asyncio
import random
import time
from typing import ClassVar, cast

from pydantic import BaseModel, ConfigDict, Field, model_validator

from racik.captions.logging import ProviderLogger
from racik.captions.models import CaptionConfig, GenerationParams

DEFAULT_MOCK_TEXT = "Hari ini cerah, semangat terus! #MockCaption"

_LOGGER_NAME = "racik.captions.mock"


class MockResponse(BaseModel):
    """A single weighted outcome in the mock response pool.

    Exactly one of ``text`` or ``error`` may be set; with neither set the
    outcome is a success returning ``DEFAULT_MOCK_TEXT``.
    """

    weight: float = Field(
        default=1.0, description="Relative probability weight. Must be positive."
    )
    text: str | None = Field(
        default=None, description="Completion text to return."
    )
    error: Exception | None = Field(
        default=None,
        description="If set, raise this exception instead of returning text.",
    )

    @model_validator(mode="after")
    def validate_response(self) -> "MockResponse":
        if self.text is not None and self.error is not None:
            raise ValueError("Cannot specify both text and error in the same MockResponse")
        if self.weight <= 0:
            raise ValueError("weight must be positive")
        return self

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, arbitrary_types_allowed=True
    )


class MockConfig(BaseModel):
    """Enables the mock provider instead of a real one.

    Example:
        ```python
        from racik.captions.mock import MockConfig, MockResponse
        from racik.captions.models import CaptionConfig

        config = CaptionConfig(
            api_key="ignored-in-mock",
            mock=MockConfig(
                enabled=True,
                responses=[MockResponse(text="Caption palsu")],
            ),
        )
        ```
    """

    enabled: bool = Field(description="Set to True to activate the mock provider.")
    responses: list[MockResponse] | None = Field(
        default=None,
        description="Pool of possible outcomes. Defaults to a single success.",
    )
    delay: float = Field(
        default=0.0, ge=0, description="Seconds to wait before answering."
    )

    @model_validator(mode="before")
    @classmethod
    def validate_config(cls, data: object) -> object:
        if isinstance(data, dict) and data.get("enabled") and not data.get("responses"):
            data["responses"] = [MockResponse()]
        return data

    model_config: ClassVar[ConfigDict] = ConfigDict(
        frozen=True, arbitrary_types_allowed=True
    )


CaptionConfig.model_rebuild()


def select_mock_response(responses: list[MockResponse]) -> MockResponse:
    """Pick one response, weighted by ``MockResponse.weight``."""
    weights = [r.weight for r in responses]
    return random.choices(responses, weights=weights, k=1)[0]


class MockProviderHandler:
    """Provider handler that answers from ``CaptionConfig.mock``."""

    def _resolve(self, config: CaptionConfig, prompt: str) -> str:
        mock = config.mock
        responses = (mock.responses if mock else None) or [MockResponse()]
        selected = select_mock_response(cast(list[MockResponse], responses))

        logger = ProviderLogger("mock", config.model, _LOGGER_NAME)
        if selected.error is not None:
            logger.info(
                "Mock raising configured error",
                {"error_type": type(selected.error).__name__},
            )
            raise selected.error

        logger.debug("Mock returning text", {"prompt": prompt})
        return selected.text if selected.text is not None else DEFAULT_MOCK_TEXT

    def generate_text(
        self, config: CaptionConfig, prompt: str, params: GenerationParams
    ) -> str:
        if config.mock and config.mock.delay:
            time.sleep(config.mock.delay)
        return self._resolve(config, prompt)

    async def generate_text_async(
        self, config: CaptionConfig, prompt: str, params: GenerationParams
    ) -> str:
        if config.mock and config.mock.delay:
            await asyncio.sleep(config.mock.delay)
        return self._resolve(config, prompt)
