"""Core data models for caption generation."""

from typing import TYPE_CHECKING, ClassVar, Protocol

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import TypedDict

if TYPE_CHECKING:
    from racik.captions.mock import MockConfig

# Target value meaning "any platform"
ANY_TARGET = "Apa Aja"


# ==================== Payload Shapes ====================


class ErrorDetail(TypedDict):
    message: str


class ErrorPayload(TypedDict):
    """Failure body returned to HTTP callers."""

    error: ErrorDetail


# ==================== Request / Response ====================


class CaptionRequest(BaseModel):
    """A request to turn a short note into a social-media caption.

    Example:
        ```python
        request = CaptionRequest(
            caption="lagi nyoba bikin caption",
            target="Instagram",
            genz=True,
        )
        ```
    """

    caption: str = Field(description="User-written base text for the caption.")
    target: str = Field(
        default=ANY_TARGET,
        description="Destination platform label, e.g. 'TikTok'. 'Apa Aja' means any.",
    )
    genz: bool = Field(default=False, description="Write in Gen-Z slang.")
    galau: bool = Field(default=False, description="Write in a melancholic mood.")

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    @field_validator("caption")
    @classmethod
    def caption_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("caption must not be empty")
        return value


class CaptionResponse(BaseModel):
    """Successful caption generation result."""

    result: str = Field(description="Text of the first generated completion.")

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)


# ==================== Configuration ====================


class GenerationParams(BaseModel):
    """Sampling parameters sent with every completion request."""

    temperature: float = 0.7
    max_tokens: int = 96
    top_p: float = 1.0
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)


DEFAULT_GENERATION_PARAMS = GenerationParams()


class CaptionConfig(BaseModel):
    """Process-wide provider configuration.

    Built once at startup (usually by ``load_config()``) and shared by every
    request. Immutable; create a copy via ``model_copy(update={...})`` to
    change fields.

    Example:
        ```python
        config = CaptionConfig(api_key="sk-...", timeout=20)
        ```
    """

    provider: str = Field(
        default="openai", description="Provider identifier, e.g. 'openai' or 'mock'."
    )
    model: str = Field(
        default="gpt-3.5-turbo-instruct", description="Completion model identifier."
    )
    api_key: str | None = Field(
        default=None,
        description="Provider API key. Requests fail with a configuration error when unset.",
    )
    base_url: str | None = Field(
        default=None, description="Override the provider's base API URL."
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        allow_inf_nan=False,
        description="Maximum seconds to wait for the provider to respond. Must be finite.",
    )
    normalize_caption: bool = Field(
        default=True,
        description="Capitalize the first letter and lower-case the rest of the caption before building the prompt.",
    )
    mock: "MockConfig | None" = Field(
        default=None, description="If set and enabled, use the mock provider."
    )

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)


# ==================== Provider Protocol ====================


class ProviderHandler(Protocol):
    """Interface that all completion providers must satisfy.

    Register a custom implementation at runtime with ``register_provider()``.
    """

    def generate_text(
        self, config: CaptionConfig, prompt: str, params: GenerationParams
    ) -> str:
        """Return the text of the first completion for ``prompt``.

        Raises:
            ProviderError: The provider answered with an error response.
            TransportError: The provider could not be reached or timed out.
        """
        ...

    async def generate_text_async(
        self, config: CaptionConfig, prompt: str, params: GenerationParams
    ) -> str:
        """Async version of ``generate_text``."""
        ...
