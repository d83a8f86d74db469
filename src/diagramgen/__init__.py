"""diagramgen - Natural-language to flowchart JSON via a generative model."""

__version__ = "0.1.0"

from diagramgen.core.config import DiagramgenConfig, config
from diagramgen.core.diagram_service import DiagramService

__all__ = [
    "DiagramgenConfig",
    "DiagramService",
    "config",
]
