"""Pydantic request and response models for the diagram API.

Models
------
GenerateDiagramRequest
    Payload for ``POST /diagram/generate`` — carries the user prompt.
ErrorResponse
    Body returned for every failed generation request.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GenerateDiagramRequest(BaseModel):
    """Request body for the ``POST /diagram/generate`` endpoint.

    The prompt is optional at the schema level so that a missing or blank
    value reaches the service and fails as ``invalid_prompt``.  A value of
    the wrong type is a schema error, which the API renders into the same
    envelope.

    Attributes:
        user_prompt: Natural-language description of the diagram, sent on
            the wire as ``userPrompt``.
    """

    model_config = ConfigDict(populate_by_name=True)

    user_prompt: str | None = Field(
        default=None,
        alias="userPrompt",
        description="Natural-language description of the diagram to generate.",
    )


class ErrorResponse(BaseModel):
    """Body returned when diagram generation fails.

    Attributes:
        error: Generic, user-facing explanation.
        kind: Failure category (``invalid_prompt``, ``configuration``,
            ``provider``, ``empty_response``, ``malformed_output``,
            ``invalid_diagram``).
        retryable: Whether resubmitting the same prompt may succeed.
        details: Specifics for malformed or inconsistent output.
    """

    error: str
    kind: str
    retryable: bool
    details: list[str] = Field(default_factory=list)
