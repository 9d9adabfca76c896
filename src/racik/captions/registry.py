"""Provider handler registry and handler resolution."""

from typing import cast

from racik.captions.exceptions import ConfigurationError
from racik.captions.logging import log_debug, log_error, log_info
from racik.captions.mock import MockProviderHandler
from racik.captions.models import CaptionConfig, ProviderHandler
from racik.captions.providers import OpenAIProviderHandler

_LOGGER_NAME = "racik.captions.registry"

# Singleton handler instances, one per provider name
_HANDLER_INSTANCES: dict[str, ProviderHandler] = {}

_MOCK_HANDLER = MockProviderHandler()


def get_handler(config: CaptionConfig) -> ProviderHandler:
    """Get or create the handler for ``config``.

    Returns the mock handler when ``config.mock`` is enabled.

    Raises:
        ConfigurationError: If the provider is not supported
    """
    if config.mock and config.mock.enabled:
        log_debug(
            "Using mock handler",
            context={"mock_enabled": True},
            logger_name=_LOGGER_NAME,
        )
        return cast(ProviderHandler, _MOCK_HANDLER)

    provider = config.provider

    if provider not in _HANDLER_INSTANCES:
        if provider == "openai":
            _HANDLER_INSTANCES[provider] = cast(
                ProviderHandler, OpenAIProviderHandler()
            )
        elif provider == "mock":
            _HANDLER_INSTANCES[provider] = cast(ProviderHandler, _MOCK_HANDLER)
        else:
            log_error(
                "Unsupported provider",
                context={"provider": provider},
                logger_name=_LOGGER_NAME,
            )
            raise ConfigurationError(
                f"Unsupported provider: {provider}",
                provider=provider,
            )
        log_debug(
            "Created provider handler",
            context={"provider": provider},
            logger_name=_LOGGER_NAME,
        )

    return _HANDLER_INSTANCES[provider]


def register_provider(provider: str, handler: ProviderHandler) -> None:
    """Register a custom provider handler.

    Examples:
        >>> class EchoHandler:
        ...     def generate_text(self, config, prompt, params):
        ...         return prompt
        ...     async def generate_text_async(self, config, prompt, params):
        ...         return prompt
        >>> register_provider("echo", EchoHandler())
    """
    if provider in _HANDLER_INSTANCES:
        log_info(
            f"Overwriting existing provider handler: {provider}",
            context={"provider": provider},
            logger_name=_LOGGER_NAME,
        )

    _HANDLER_INSTANCES[provider] = handler


def unregister_provider(provider: str) -> None:
    """Remove a registered handler; the next lookup recreates built-ins."""
    _HANDLER_INSTANCES.pop(provider, None)
