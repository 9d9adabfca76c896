import functools
import inspect
import traceback
from collections.abc import Callable
from typing import Any, TypeVar, cast

from racik.captions.logging import log_error
from racik.captions.models import CaptionConfig, ErrorPayload, GenerationParams

AnyDict = dict[str, Any]

F = TypeVar("F", bound=Callable[..., Any])

# Message returned to callers for any failure that is not a provider error
GENERIC_ERROR_MESSAGE = "An error occurred during your request."
MISSING_API_KEY_MESSAGE = "provider API key not configured"


class CaptionException(Exception):
    """Base class for all exceptions raised by racik-captions.

    Carries structured context (provider, model, raw provider response) for
    logging. Catch this class to handle any caption error, or the subclasses
    for granular handling.

    Attributes:
        message: Human-readable error description.
        provider: Provider identifier (e.g. ``"openai"``).
        model: Model name at the time of the error.
        raw_response: Unmodified provider response or failure detail, if any.
            Never returned to HTTP callers.
    """

    message: str
    provider: str | None
    model: str | None
    raw_response: AnyDict | None

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        raw_response: AnyDict | None = None,
    ):
        self.message = message
        self.provider = provider
        self.model = model
        self.raw_response = raw_response
        super().__init__(message)


class ConfigurationError(CaptionException):
    """Raised when the service is not configured to call a provider.

    Covers a missing API key and an unknown provider name. Raised before any
    network call is attempted; the message is safe to show to callers.
    """

    pass


class ValidationError(CaptionException):
    """Raised when an incoming caption request payload is invalid."""

    pass


class ProviderError(CaptionException):
    """Raised when the provider answers with a structured error response.

    The status code and payload are forwarded to the caller unchanged so it
    can react to quota, authentication or invalid-request errors.

    Attributes:
        status_code: HTTP status code returned by the provider.
        payload: Provider error body exactly as received.
    """

    status_code: int
    payload: AnyDict

    def __init__(
        self,
        message: str,
        status_code: int,
        payload: AnyDict,
        provider: str | None = None,
        model: str | None = None,
    ):
        super().__init__(message, provider, model, raw_response=payload)
        self.status_code = status_code
        self.payload = payload


class TransportError(CaptionException):
    """Raised on network failures, timeouts and unexpected provider output.

    The detail is for operators only; callers see ``GENERIC_ERROR_MESSAGE``.

    Attributes:
        timeout_seconds: The timeout that was exceeded, for timeouts.
    """

    timeout_seconds: float | None

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        model: str | None = None,
        raw_response: AnyDict | None = None,
        timeout_seconds: float | None = None,
    ):
        super().__init__(message, provider, model, raw_response)
        self.timeout_seconds = timeout_seconds


def error_body(message: str) -> ErrorPayload:
    """Build the ``{"error": {"message": ...}}`` body returned to callers."""
    return {"error": {"message": message}}


def to_http_error(error: Exception) -> tuple[int, AnyDict]:
    """Map an exception to the status code and body returned to the caller.

    - ``ProviderError``: provider status and payload, unchanged.
    - ``ConfigurationError``: 500 with its own message.
    - ``ValidationError``: 400 with its own message.
    - Anything else: 500 with ``GENERIC_ERROR_MESSAGE``.
    """
    if isinstance(error, ProviderError):
        return error.status_code, error.payload
    if isinstance(error, ConfigurationError):
        return 500, error_body(error.message)
    if isinstance(error, ValidationError):
        return 400, error_body(error.message)
    return 500, error_body(GENERIC_ERROR_MESSAGE)


def _wrap_unknown(ex: Exception, config: CaptionConfig) -> TransportError:
    log_error(
        f"Unknown error while generating caption: {ex}",
        context={"provider": config.provider, "model": config.model},
        logger_name="racik.captions.exceptions",
        exc_info=True,
    )
    return TransportError(
        f"Unknown error while generating caption: {ex}",
        provider=config.provider,
        model=config.model,
        raw_response={
            "error": str(ex),
            "error_type": type(ex).__name__,
            "traceback": traceback.format_exc(),
        },
    )


def handle_caption_generation_errors(func: F) -> F:
    """Decorator that wraps unhandled provider exceptions in ``TransportError``.

    Apply to provider ``generate_text`` and ``generate_text_async`` methods.
    ``CaptionException`` subclasses propagate unchanged; any other exception
    is logged with its traceback and re-raised as ``TransportError``.
    """
    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(
            self: Any,
            config: CaptionConfig,
            prompt: str,
            params: GenerationParams,
        ) -> str:
            try:
                return await func(self, config, prompt, params)
            except CaptionException:
                raise
            except Exception as ex:
                raise _wrap_unknown(ex, config) from ex

        return cast(F, async_wrapper)

    @functools.wraps(func)
    def sync_wrapper(
        self: Any,
        config: CaptionConfig,
        prompt: str,
        params: GenerationParams,
    ) -> str:
        try:
            return func(self, config, prompt, params)
        except CaptionException:
            raise
        except Exception as ex:
            raise _wrap_unknown(ex, config) from ex

    return cast(F, sync_wrapper)
