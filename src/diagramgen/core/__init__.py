"""Core functionality for diagram generation.

This package provides the components behind ``POST /diagram/generate``:

- **DiagramgenConfig / config**: Pydantic Settings configuration
- **prompt_template**: The fixed, versioned system instruction
- **GeminiClient**: Async provider client with bounded retries
- **normalize**: Code-fence stripping and JSON decoding
- **validate_diagram**: Schema models and element/connection invariants
- **DiagramService**: The composed prompt → diagram operation

Architecture Overview
---------------------
1. **Configuration Layer** (config.py):
   - Environment-based settings, DIAGRAMGEN_ prefix plus GEMINI_API_KEY/PORT

2. **Provider Layer** (prompt_template.py, completion_client.py):
   - System instruction + user prompt → raw model text

3. **Output Layer** (normalizer.py, diagram.py):
   - Raw text → decoded JSON → validated diagram

4. **Orchestration** (diagram_service.py, errors.py):
   - Runs the layers in order; every failure is a DiagramGenerationError

Usage Example
-------------
    from diagramgen.core import DiagramService, GeminiClient, config

    service = DiagramService(GeminiClient(config))
    diagram = await service.generate_diagram("Show a simple two-step process.")
"""

from diagramgen.core.completion_client import GeminiClient
from diagramgen.core.config import DiagramgenConfig, config
from diagramgen.core.diagram import Connection, Diagram, Element, Point, validate_diagram
from diagramgen.core.diagram_service import DiagramService
from diagramgen.core.errors import (
    ConfigurationError,
    DiagramGenerationError,
    DiagramValidationError,
    EmptyResponseError,
    InvalidPromptError,
    MalformedOutputError,
    ProviderError,
)
from diagramgen.core.normalizer import normalize, strip_code_fences
from diagramgen.core.prompt_template import PROMPT_TEMPLATE_VERSION, SYSTEM_INSTRUCTION

__all__ = [
    "Connection",
    "ConfigurationError",
    "Diagram",
    "DiagramGenerationError",
    "DiagramService",
    "DiagramValidationError",
    "DiagramgenConfig",
    "Element",
    "EmptyResponseError",
    "GeminiClient",
    "InvalidPromptError",
    "MalformedOutputError",
    "PROMPT_TEMPLATE_VERSION",
    "Point",
    "ProviderError",
    "SYSTEM_INSTRUCTION",
    "config",
    "normalize",
    "strip_code_fences",
    "validate_diagram",
]
