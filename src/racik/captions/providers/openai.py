"""OpenAI provider handler for caption completions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Literal, overload

from racik.captions.exceptions import (
    ProviderError,
    TransportError,
    error_body,
    handle_caption_generation_errors,
)
from racik.captions.logging import ProviderLogger
from racik.captions.models import CaptionConfig, GenerationParams

if TYPE_CHECKING:
    from openai import APIStatusError, AsyncOpenAI, OpenAI
    from openai.types import Completion

try:
    from openai import (
        APIConnectionError,
        APIStatusError,
        APITimeoutError,
        AsyncOpenAI,
        OpenAI,
    )

    has_openai = True
except ImportError:
    has_openai = False

_LOGGER_NAME = "racik.captions.providers.openai"

ClientKey = tuple[str | None, str | None, float]


def provider_error_payload(ex: APIStatusError) -> dict[str, Any]:
    """Return the provider's error body exactly as it was sent.

    The SDK strips the outer ``{"error": ...}`` envelope from ``ex.body``, so
    the raw HTTP response is decoded instead.
    """
    try:
        payload = ex.response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        return payload
    return error_body(ex.message)


class OpenAIProviderHandler:
    """Handler for the OpenAI Completions API.

    Clients are cached per (api_key, base_url, timeout) so a process builds
    them once. Requests are never retried by the SDK.
    """

    def __init__(self):
        if not has_openai:
            raise ImportError(
                "openai is required for the OpenAI provider. Install with: pip install racik-captions"
            )
        self._sync_client_cache: dict[ClientKey, OpenAI] = {}
        self._async_client_cache: dict[ClientKey, AsyncOpenAI] = {}

    @overload
    def _get_client(
        self, config: CaptionConfig, client_type: Literal["async"]
    ) -> AsyncOpenAI: ...

    @overload
    def _get_client(
        self, config: CaptionConfig, client_type: Literal["sync"]
    ) -> OpenAI: ...

    def _get_client(
        self, config: CaptionConfig, client_type: str
    ) -> AsyncOpenAI | OpenAI:
        """Get or create the OpenAI client for ``config``."""
        key: ClientKey = (config.api_key, config.base_url, config.timeout)
        cache: dict[ClientKey, Any] = (
            self._async_client_cache
            if client_type == "async"
            else self._sync_client_cache
        )
        if key in cache:
            return cache[key]

        logger = ProviderLogger(config.provider, config.model, _LOGGER_NAME)
        logger.debug(
            f"Creating new {client_type} OpenAI client",
            {"base_url": config.base_url or "default", "timeout": config.timeout},
        )
        client_cls = AsyncOpenAI if client_type == "async" else OpenAI
        client = client_cls(
            api_key=config.api_key,
            base_url=config.base_url or None,
            timeout=config.timeout,
            max_retries=0,
        )
        cache[key] = client
        return client

    def _convert_request(
        self, config: CaptionConfig, prompt: str, params: GenerationParams
    ) -> dict[str, Any]:
        """Build the keyword arguments for ``completions.create``."""
        return {"model": config.model, "prompt": prompt, **params.model_dump()}

    def _convert_response(self, config: CaptionConfig, completion: Completion) -> str:
        """Return the text of the first choice."""
        if not completion.choices:
            raise TransportError(
                "Provider returned no completion choices",
                provider=config.provider,
                model=config.model,
                raw_response=completion.model_dump(),
            )
        return completion.choices[0].text

    def _handle_error(
        self, config: CaptionConfig, ex: Exception
    ) -> ProviderError | TransportError | None:
        """Translate OpenAI SDK errors into caption exceptions."""
        logger = ProviderLogger(config.provider, config.model, _LOGGER_NAME)

        if has_openai and isinstance(ex, APITimeoutError):
            logger.error("OpenAI request timed out", {"timeout": config.timeout})
            return TransportError(
                f"Request timed out: {ex}",
                provider=config.provider,
                model=config.model,
                raw_response={"error": str(ex)},
                timeout_seconds=config.timeout,
            )

        if has_openai and isinstance(ex, APIConnectionError):
            logger.error("OpenAI connection error", {"error": str(ex)})
            return TransportError(
                f"Connection error: {ex}",
                provider=config.provider,
                model=config.model,
                raw_response={"error": str(ex)},
            )

        if has_openai and isinstance(ex, APIStatusError):
            payload = provider_error_payload(ex)
            logger.error(
                "OpenAI returned an error response",
                {"status_code": ex.status_code, "payload": payload},
            )
            return ProviderError(
                ex.message,
                status_code=ex.status_code,
                payload=payload,
                provider=config.provider,
                model=config.model,
            )

        return None

    @handle_caption_generation_errors
    def generate_text(
        self, config: CaptionConfig, prompt: str, params: GenerationParams
    ) -> str:
        client = self._get_client(config, "sync")
        openai_params = self._convert_request(config, prompt, params)
        ProviderLogger(config.provider, config.model, _LOGGER_NAME).info(
            "Sending completion request", {"request": openai_params}, redact=True
        )
        try:
            completion = client.completions.create(**openai_params)
        except Exception as ex:
            error = self._handle_error(config, ex)
            if error is None:
                raise
            raise error from ex
        return self._convert_response(config, completion)

    @handle_caption_generation_errors
    async def generate_text_async(
        self, config: CaptionConfig, prompt: str, params: GenerationParams
    ) -> str:
        client = self._get_client(config, "async")
        openai_params = self._convert_request(config, prompt, params)
        ProviderLogger(config.provider, config.model, _LOGGER_NAME).info(
            "Sending completion request", {"request": openai_params}, redact=True
        )
        try:
            completion = await client.completions.create(**openai_params)
        except Exception as ex:
            error = self._handle_error(config, ex)
            if error is None:
                raise
            raise error from ex
        return self._convert_response(config, completion)
