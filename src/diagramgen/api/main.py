"""Diagram generation service — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, the REST routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application is stateless:

- **Configuration** is loaded once from the environment by
  :data:`~diagramgen.core.config.config`.
- **Generation** is delegated to
  :class:`~diagramgen.core.diagram_service.DiagramService`, created at
  startup and stored on ``app.state``.
- **Failures** are all subclasses of
  :class:`~diagramgen.core.errors.DiagramGenerationError` and are rendered
  by one exception handler.  Request-schema errors get the same envelope,
  so nothing escapes to the transport layer.

Endpoints
---------
========  ========================  ====================================
Method    Path                      Purpose
========  ========================  ====================================
GET       ``/``                     Liveness / identity greeting
POST      ``/diagram/generate``     Generate a diagram from a prompt
========  ========================  ====================================

Usage
-----
CLI (installed entry point)::

    diagramgen

Direct invocation::

    python -m diagramgen.api.main
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from diagramgen import __version__
from diagramgen.api.models import ErrorResponse, GenerateDiagramRequest
from diagramgen.core.completion_client import GeminiClient
from diagramgen.core.config import config
from diagramgen.core.diagram_service import DiagramService
from diagramgen.core.errors import DiagramGenerationError, InvalidPromptError

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to generate diagram. Feel free to try again later."

# ---------------------------------------------------------------------------
# Application lifecycle — provider client setup and teardown.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Creates the :class:`GeminiClient` and :class:`DiagramService` and
        stores the service on ``app.state``.  A missing credential is logged
        but does not stop the server; generation requests fail until it is
        configured.

    On shutdown:
        Closes the pooled HTTP client.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    if not config.has_credential:
        logger.warning("GEMINI_API_KEY is not set; diagram generation requests will fail.")

    client = GeminiClient(config)
    app.state.diagram_service = DiagramService(client, validate_output=config.validate_output)
    logger.info(f"DiagramService ready (model={config.model_name}).")

    yield

    await client.aclose()
    logger.info("Provider client closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Diagram Generator",
    description="Turns natural-language prompts into flowchart element/connection JSON.",
    version=__version__,
    lifespan=lifespan,
)

# The frontend is served from another origin.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DiagramGenerationError)
async def handle_generation_error(request: Request, exc: DiagramGenerationError) -> JSONResponse:
    """Render any generation failure as the standard error envelope.

    The ``error`` text stays generic; ``kind``, ``retryable`` and
    ``details`` let the caller decide whether to resubmit as-is or with a
    different prompt.
    """
    body = ErrorResponse(
        error=GENERIC_FAILURE_MESSAGE,
        kind=exc.kind,
        retryable=exc.retryable,
        details=exc.details,
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request-schema failures as an ``invalid_prompt`` error envelope.

    Covers bodies that are not JSON and a ``userPrompt`` that is not a
    string, which FastAPI would otherwise answer with its own 422 body.
    """
    details = [
        f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg', '')}"
        for err in exc.errors()
    ]
    logger.warning(f"Rejected malformed request body: {'; '.join(details)}")
    body = ErrorResponse(
        error=GENERIC_FAILURE_MESSAGE,
        kind=InvalidPromptError.kind,
        retryable=False,
        details=details,
    )
    return JSONResponse(status_code=InvalidPromptError.status_code, content=body.model_dump())


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/")
async def index() -> dict:
    """Return a static greeting for liveness checks."""
    return {"message": "Hello World MCP"}


@app.post("/diagram/generate")
async def generate_diagram(req: GenerateDiagramRequest, request: Request) -> dict:
    """Generate a diagram from the caller's prompt.

    Args:
        req: Validated :class:`GenerateDiagramRequest` payload.
        request: The incoming request, used to reach ``app.state``.

    Returns:
        The provider's ``{"elements": [...], "connections": [...]}``
        document, unchanged.

    Raises:
        DiagramGenerationError: Rendered by :func:`handle_generation_error`
            (400 for a blank prompt, 404 for every other failure).
    """
    service: DiagramService = request.app.state.diagram_service
    return await service.generate_diagram(req.user_prompt)


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from
    :data:`~diagramgen.core.config.config`.  The port honours ``PORT`` and
    defaults to 5000.

    This function is registered as the ``diagramgen`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Listening on {config.server_host}:{config.server_port}")

    uvicorn.run(
        "diagramgen.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
