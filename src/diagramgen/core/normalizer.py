"""Turn raw provider text into a diagram payload.

Even with a JSON response type requested, the model sometimes wraps its
answer in a markdown code fence.  :func:`normalize` removes the leading
fence (with or without a language tag) and the trailing one, trims
surrounding whitespace, decodes the JSON, and optionally checks the result
against :func:`~diagramgen.core.diagram.validate_diagram`.

There is no repair step: text that does not decode to a JSON object fails
the request.
"""

from __future__ import annotations

import json
import logging
import re

from diagramgen.core.diagram import validate_diagram
from diagramgen.core.errors import MalformedOutputError

logger = logging.getLogger(__name__)

# A fence wrapping the whole text: leading ``` (optionally tagged, ```json)
# and trailing ```.  Fence characters inside the JSON are left alone.
_FENCE_RE = re.compile(r"\A\s*```[\w+-]*|```\s*\Z")


def strip_code_fences(raw_text: str) -> str:
    """Remove markdown code-fence markers and surrounding whitespace.

    Args:
        raw_text: Text as returned by the provider.

    Returns:
        The text with a wrapping ```` ``` ```` / ```` ```json ```` fence
        removed and outer whitespace trimmed.
    """
    return _FENCE_RE.sub("", raw_text).strip()


def normalize(raw_text: str, *, validate: bool = True) -> dict:
    """Clean, decode and (optionally) validate provider output.

    Args:
        raw_text: Text as returned by the provider.
        validate: When ``True``, reject payloads that break the diagram
            schema or invariants.

    Returns:
        The decoded JSON object, unchanged.

    Raises:
        MalformedOutputError: If the cleaned text is not a JSON object.
        DiagramValidationError: If *validate* is set and the payload is not
            a consistent diagram.
    """
    cleaned = strip_code_fences(raw_text)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning(f"Provider output is not valid JSON: {e}")
        raise MalformedOutputError(
            "Generated output is not valid JSON.",
            details=[f"line {e.lineno} column {e.colno}: {e.msg}"],
        ) from e

    if not isinstance(payload, dict):
        raise MalformedOutputError(
            f"Generated output is a JSON {type(payload).__name__}, expected an object."
        )

    if validate:
        validate_diagram(payload)

    return payload
