"""Caption generation API."""

import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from racik.captions.exceptions import (
    MISSING_API_KEY_MESSAGE,
    ConfigurationError,
    ProviderError,
    TransportError,
    ValidationError,
    to_http_error,
)
from racik.captions.logging import ProviderLogger
from racik.captions.models import (
    DEFAULT_GENERATION_PARAMS,
    CaptionConfig,
    CaptionRequest,
    CaptionResponse,
    ProviderHandler,
)
from racik.captions.prompt import build_prompt, normalize_caption
from racik.captions.registry import get_handler

_LOGGER_NAME = "racik.captions.api"

HTTPResult = tuple[int, dict[str, Any]]


def _prepare(
    config: CaptionConfig,
    request: CaptionRequest,
    handler: ProviderHandler | None,
) -> tuple[ProviderHandler, str, ProviderLogger]:
    """Check configuration, resolve the handler and build the prompt.

    Raises ConfigurationError before anything touches the provider.
    """
    logger = ProviderLogger(config.provider, config.model, _LOGGER_NAME)
    logger = logger.with_request_id(str(uuid.uuid4()))

    if not config.is_configured:
        logger.error("Provider API key is not configured")
        raise ConfigurationError(
            MISSING_API_KEY_MESSAGE, provider=config.provider, model=config.model
        )

    if handler is None:
        handler = get_handler(config)

    if config.normalize_caption:
        request = request.model_copy(
            update={"caption": normalize_caption(request.caption)}
        )

    prompt = build_prompt(request)
    logger.debug(
        "Built caption prompt",
        {
            "target": request.target,
            "genz": request.genz,
            "galau": request.galau,
            "prompt": prompt,
        },
        redact=True,
    )
    return handler, prompt, logger


def generate_caption(
    config: CaptionConfig,
    request: CaptionRequest,
    handler: ProviderHandler | None = None,
) -> CaptionResponse:
    """Generate a caption synchronously.

    Args:
        config: Process-wide provider configuration
        request: The caption request
        handler: Provider handler to use; resolved from the registry when None

    Returns:
        CaptionResponse with the first completion's text

    Raises:
        ConfigurationError: No API key is configured (the provider is not called)
        ProviderError: The provider answered with an error response
        TransportError: The provider could not be reached or timed out
    """
    handler, prompt, logger = _prepare(config, request, handler)
    text = handler.generate_text(config, prompt, DEFAULT_GENERATION_PARAMS)
    logger.info("Caption generated", {"result_length": len(text)})
    return CaptionResponse(result=text)


async def generate_caption_async(
    config: CaptionConfig,
    request: CaptionRequest,
    handler: ProviderHandler | None = None,
) -> CaptionResponse:
    """Generate a caption asynchronously. See ``generate_caption``."""
    handler, prompt, logger = _prepare(config, request, handler)
    text = await handler.generate_text_async(config, prompt, DEFAULT_GENERATION_PARAMS)
    logger.info("Caption generated", {"result_length": len(text)})
    return CaptionResponse(result=text)


# ==================== HTTP-shaped contract ====================


def parse_caption_request(payload: Any) -> CaptionRequest:
    """Validate a decoded JSON body into a ``CaptionRequest``.

    Raises:
        ValidationError: The body is not an object or fails validation
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")
    try:
        return CaptionRequest.model_validate(dict(payload))
    except PydanticValidationError as ex:
        first = ex.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "body"
        raise ValidationError(f"Invalid {field}: {first['msg']}") from ex


def _failure(config: CaptionConfig, ex: Exception) -> HTTPResult:
    status, body = to_http_error(ex)
    logger = ProviderLogger(config.provider, config.model, _LOGGER_NAME)
    if isinstance(ex, ProviderError):
        logger.warning(
            "Forwarding provider error", {"status_code": status, "payload": body}
        )
    elif isinstance(ex, (ConfigurationError, ValidationError)):
        logger.warning("Caption request rejected", {"message": ex.message})
    else:
        # Errors wrapped by handle_caption_generation_errors were logged with
        # their traceback already
        already_logged = isinstance(ex, TransportError) and bool(
            ex.raw_response and "traceback" in ex.raw_response
        )
        logger.error(
            f"Error with provider request: {ex}",
            {"error_type": type(ex).__name__},
            exc_info=not already_logged,
        )
    return status, body


def handle_caption_request(
    config: CaptionConfig,
    payload: Any,
    handler: ProviderHandler | None = None,
) -> HTTPResult:
    """Run one caption request and return ``(status_code, body)``.

    Success is ``(200, {"result": text})``. Provider errors keep their status
    and payload; every other failure is a 400 or 500 with an
    ``{"error": {"message": ...}}`` body that never carries internal detail.
    """
    try:
        request = parse_caption_request(payload)
        response = generate_caption(config, request, handler)
    except Exception as ex:
        return _failure(config, ex)
    return 200, response.model_dump()


async def handle_caption_request_async(
    config: CaptionConfig,
    payload: Any,
    handler: ProviderHandler | None = None,
) -> HTTPResult:
    """Async version of ``handle_caption_request``."""
    try:
        request = parse_caption_request(payload)
        response = await generate_caption_async(config, request, handler)
    except Exception as ex:
        return _failure(config, ex)
    return 200, response.model_dump()
