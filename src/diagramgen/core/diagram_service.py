"""The composed "generate diagram from prompt" operation.

:class:`DiagramService` runs the completion client and the response
normalizer in sequence.  It holds no per-request state, so one instance is
shared by every request the API serves.
"""

from __future__ import annotations

import logging

from diagramgen.core.completion_client import GeminiClient
from diagramgen.core.errors import ConfigurationError, DiagramGenerationError
from diagramgen.core.normalizer import normalize

logger = logging.getLogger(__name__)


class DiagramService:
    """Generate a validated diagram payload from a natural-language prompt."""

    def __init__(self, client: GeminiClient, *, validate_output: bool = True) -> None:
        self._client = client
        self._validate_output = validate_output

    @property
    def client(self) -> GeminiClient:
        return self._client

    async def generate_diagram(self, user_prompt: str | None) -> dict:
        """Ask the provider for a diagram and return the parsed payload.

        Args:
            user_prompt: The caller's diagram request.

        Returns:
            The decoded ``{"elements": [...], "connections": [...]}``
            document, exactly as the provider produced it.

        Raises:
            DiagramGenerationError: Any subclass, depending on where the
                pipeline failed.
        """
        logger.info(f"Generating diagram with {self._client.model_name}")
        try:
            raw_text = await self._client.generate(user_prompt)
            diagram = normalize(raw_text, validate=self._validate_output)
        except DiagramGenerationError as e:
            level = logging.ERROR if isinstance(e, ConfigurationError) else logging.WARNING
            logger.log(level, f"Diagram generation failed ({e.kind}): {e.message}")
            raise

        logger.info(
            f"Diagram generated: {len(diagram.get('elements') or [])} elements, "
            f"{len(diagram.get('connections') or [])} connections"
        )
        return diagram
