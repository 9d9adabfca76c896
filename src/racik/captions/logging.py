"""Logging utilities for racik-captions."""

import logging
from dataclasses import dataclass, replace
from typing import Any

_DEFAULT_LOGGER_NAME = "racik.captions"

# Context keys containing any of these fragments are never written to logs
_SENSITIVE_FIELDS = {
    "api_key",
    "authorization",
    "auth",
    "credentials",
    "password",
    "secret",
    "token",
}

_MAX_STRING_LENGTH = 200


def _redact_value(value: Any) -> Any:
    """Make a context value safe to log.

    Pydantic models are dumped, containers are walked recursively and long
    strings (prompts, provider bodies) are shortened to their head and tail.
    """
    if value is None or isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, bytes):
        return f"<bytes: length={len(value)}>"

    if hasattr(value, "model_dump"):
        value = value.model_dump()

    if isinstance(value, dict):
        return {k: _redact_value(v) for k, v in value.items()}

    if isinstance(value, (list, tuple)):
        items = [_redact_value(item) for item in value]
        return items if isinstance(value, list) else tuple(items)

    if isinstance(value, str) and len(value) > _MAX_STRING_LENGTH:
        half = _MAX_STRING_LENGTH // 2
        return f"{value[:half]}...{value[-half:]}"

    return value


def _is_sensitive(key: str) -> bool:
    key_lower = key.lower()
    return any(fragment in key_lower for fragment in _SENSITIVE_FIELDS)


def _redact_context(context: dict[str, Any] | None) -> dict[str, Any]:
    """Replace sensitive values and shorten the rest of a context dict."""
    if not context:
        return {}

    return {
        key: "***REDACTED***" if _is_sensitive(key) else _redact_value(value)
        for key, value in context.items()
    }


def _get_logger(logger_name: str) -> logging.Logger:
    return logging.getLogger(logger_name)


def _emit(
    level: int,
    message: str,
    context: dict[str, Any] | None,
    logger_name: str,
    redact: bool,
    exc_info: bool = False,
) -> None:
    logger = _get_logger(logger_name)
    if not logger.isEnabledFor(level):
        return

    if context:
        if redact:
            context = _redact_context(context)
        logger.log(level, f"{message} | Context: {context}", exc_info=exc_info)
    else:
        logger.log(level, message, exc_info=exc_info)


def log_debug(
    message: str,
    context: dict[str, Any] | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
    redact: bool = False,
) -> None:
    """Log a debug message with optional context.

    Args:
        message: The log message
        context: Optional dictionary of context data
        logger_name: Name of the logger to use
        redact: If True, redact sensitive fields in context
    """
    _emit(logging.DEBUG, message, context, logger_name, redact)


def log_info(
    message: str,
    context: dict[str, Any] | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
    redact: bool = False,
) -> None:
    """Log an info message with optional context."""
    _emit(logging.INFO, message, context, logger_name, redact)


def log_warning(
    message: str,
    context: dict[str, Any] | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
    redact: bool = False,
) -> None:
    """Log a warning message with optional context."""
    _emit(logging.WARNING, message, context, logger_name, redact)


def log_error(
    message: str,
    context: dict[str, Any] | None = None,
    logger_name: str = _DEFAULT_LOGGER_NAME,
    redact: bool = False,
    exc_info: bool = False,
) -> None:
    """Log an error message with optional context and exception info.

    Args:
        message: The log message
        context: Optional dictionary of context data
        logger_name: Name of the logger to use
        redact: If True, redact sensitive fields in context
        exc_info: If True, include the active exception traceback
    """
    _emit(logging.ERROR, message, context, logger_name, redact, exc_info)


@dataclass(frozen=True)
class ProviderLogger:
    """Logger bound to a provider, model and (optionally) a request ID.

    Every message carries the bound fields in its context so a single caption
    request can be followed through the handler and provider logs.
    """

    provider: str
    model: str
    logger_name: str = _DEFAULT_LOGGER_NAME
    request_id: str | None = None

    def with_request_id(self, request_id: str) -> "ProviderLogger":
        return replace(self, request_id=request_id)

    def _build_context(self, extra: dict[str, Any] | None = None) -> dict[str, Any]:
        context: dict[str, Any] = {"provider": self.provider, "model": self.model}
        if self.request_id is not None:
            context["request_id"] = self.request_id
        if extra:
            context.update(extra)
        return context

    def debug(
        self, message: str, extra: dict[str, Any] | None = None, redact: bool = False
    ) -> None:
        log_debug(
            message,
            context=self._build_context(extra),
            logger_name=self.logger_name,
            redact=redact,
        )

    def info(
        self, message: str, extra: dict[str, Any] | None = None, redact: bool = False
    ) -> None:
        log_info(
            message,
            context=self._build_context(extra),
            logger_name=self.logger_name,
            redact=redact,
        )

    def warning(
        self, message: str, extra: dict[str, Any] | None = None, redact: bool = False
    ) -> None:
        log_warning(
            message,
            context=self._build_context(extra),
            logger_name=self.logger_name,
            redact=redact,
        )

    def error(
        self,
        message: str,
        extra: dict[str, Any] | None = None,
        redact: bool = False,
        exc_info: bool = False,
    ) -> None:
        log_error(
            message,
            context=self._build_context(extra),
            logger_name=self.logger_name,
            redact=redact,
            exc_info=exc_info,
        )


def configure_logging(level: str | int = "INFO") -> None:
    """Attach a stream handler to the ``racik`` logger hierarchy.

    Intended for the server entry point; library callers configure logging
    themselves.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger("racik")
    root.setLevel(level)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        root.addHandler(handler)
