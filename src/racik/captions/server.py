"""FastAPI application exposing the caption endpoint."""

import json
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from racik.captions.api import handle_caption_request_async
from racik.captions.config import ServerSettings, load_config
from racik.captions.exceptions import ValidationError, to_http_error
from racik.captions.logging import configure_logging, log_info
from racik.captions.models import CaptionConfig

_LOGGER_NAME = "racik.captions.server"

GENERATE_PATH = "/api/generate"


def get_config(request: Request) -> CaptionConfig:
    return request.app.state.config


def create_app(config: CaptionConfig | None = None) -> FastAPI:
    """Create the application.

    ``config`` is resolved once here (from the environment when omitted) and
    shared by every request through ``app.state``.
    """
    if config is None:
        config = load_config()

    app = FastAPI(
        title="Racik Captions API",
        description="Generate social-media captions from a short note",
        version="0.1.0",
    )
    app.state.config = config

    log_info(
        "Caption service configured",
        context={
            "provider": config.provider,
            "model": config.model,
            "api_key": config.api_key,
            "timeout": config.timeout,
            "mock": bool(config.mock and config.mock.enabled),
        },
        logger_name=_LOGGER_NAME,
        redact=True,
    )

    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        current = get_config(request)
        return {
            "status": "ok",
            "provider": current.provider,
            "model": current.model,
            "configured": current.is_configured,
        }

    @app.post(GENERATE_PATH)
    async def generate(request: Request) -> JSONResponse:
        current = get_config(request)
        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            status, body = to_http_error(
                ValidationError("Request body must be valid JSON")
            )
            return JSONResponse(status_code=status, content=body)

        status, body = await handle_caption_request_async(current, payload)
        return JSONResponse(status_code=status, content=body)

    return app


def main() -> None:
    """Run the server with uvicorn."""
    import uvicorn

    settings = ServerSettings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
