"""Racik Captions - social-media caption generation over a completion API."""

import importlib.metadata

try:
    __version__ = importlib.metadata.version("racik-captions")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

from .api import (
    generate_caption,
    generate_caption_async,
    handle_caption_request,
    handle_caption_request_async,
)
from .config import load_config
from .exceptions import (
    CaptionException,
    ConfigurationError,
    ProviderError,
    TransportError,
    ValidationError,
)
from .mock import MockConfig, MockResponse
from .models import (
    CaptionConfig,
    CaptionRequest,
    CaptionResponse,
    GenerationParams,
    ProviderHandler,
)
from .prompt import build_prompt, normalize_caption
from .registry import register_provider

__all__ = [
    # API functions
    "generate_caption",
    "generate_caption_async",
    "handle_caption_request",
    "handle_caption_request_async",
    "build_prompt",
    "normalize_caption",
    "load_config",
    "register_provider",
    # Models
    "CaptionConfig",
    "CaptionRequest",
    "CaptionResponse",
    "GenerationParams",
    "ProviderHandler",
    "MockConfig",
    "MockResponse",
    # Exceptions
    "CaptionException",
    "ConfigurationError",
    "ProviderError",
    "TransportError",
    "ValidationError",
]
