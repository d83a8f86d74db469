"""Failure taxonomy for diagram generation.

Every failure along the prompt → provider → parse → validate path is raised as
a subclass of :class:`DiagramGenerationError`.  The HTTP layer registers a
single exception handler for the base class and renders the attributes below
into the error envelope, so callers can tell a retryable provider hiccup from
output that needs a different prompt.

========================  ====================  =========  ======
Exception                 kind                  retryable  status
========================  ====================  =========  ======
InvalidPromptError        ``invalid_prompt``    no         400
ConfigurationError        ``configuration``     no         404
ProviderError             ``provider``          per cause  404
EmptyResponseError        ``empty_response``    yes        404
MalformedOutputError      ``malformed_output``  no         404
DiagramValidationError    ``invalid_diagram``   no         404
========================  ====================  =========  ======
"""

from __future__ import annotations


class DiagramGenerationError(Exception):
    """Base class for all diagram generation failures.

    Attributes:
        kind: Stable machine-readable failure label.
        retryable: Whether resubmitting the same request may succeed.
        status_code: HTTP status the API layer responds with.
        details: Optional list of human-readable specifics.
    """

    kind = "generation"
    retryable = False
    status_code = 404

    def __init__(self, message: str, *, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = list(details) if details else []


class InvalidPromptError(DiagramGenerationError):
    """The user prompt is missing or blank."""

    kind = "invalid_prompt"
    status_code = 400


class ConfigurationError(DiagramGenerationError):
    """A required setting (the provider credential) is absent."""

    kind = "configuration"


class ProviderError(DiagramGenerationError):
    """The outbound call failed, timed out, or returned an error status.

    Args:
        message: Description of the failure.
        retryable: ``True`` for transport errors and transient statuses
            (429/5xx), ``False`` for other client errors.
        status: Provider HTTP status, when one was received.
    """

    kind = "provider"

    def __init__(
        self,
        message: str,
        *,
        retryable: bool = True,
        status: int | None = None,
        details: list[str] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.retryable = retryable
        self.status = status


class EmptyResponseError(DiagramGenerationError):
    """The provider returned no text."""

    kind = "empty_response"
    retryable = True


class MalformedOutputError(DiagramGenerationError):
    """The cleaned provider text is not a JSON object.

    Not retryable: the caller should resubmit with a different prompt, using
    ``details`` to see what went wrong.
    """

    kind = "malformed_output"


class DiagramValidationError(MalformedOutputError):
    """The parsed payload breaks the diagram schema or its invariants."""

    kind = "invalid_diagram"
