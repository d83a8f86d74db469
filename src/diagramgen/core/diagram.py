"""Pydantic models and invariant checks for generated diagrams.

The provider returns a document with two arrays.  These models describe it
field by field; :func:`validate_diagram` parses a decoded payload into them
and then checks the cross-reference and geometry rules the system
instruction asks the model to uphold.

Models
------
Point
    A single ``{x, y}`` coordinate on the canvas.
Element
    A shape, text label, or connector (``arrow``).  Connector-only fields
    (``points``, ``startPoint``, ``endPoint``, ``connectionId``,
    ``startSide``, ``endSide``) are optional on the model and required for
    arrows by :func:`find_violations`.
Connection
    Links two elements through a connector element and records the
    attachment angle (radians) at each end.
Diagram
    The top-level ``{"elements": [...], "connections": [...]}`` document.

All models use camelCase aliases on the wire and accept unknown extra keys,
so passing a payload through validation never drops provider fields.

Invariants
----------
- Element ids and connection ids are unique.
- Every arrow has exactly one connection referencing it, and every
  connection references an arrow (bijection).
- Connection endpoints refer to elements in the same document.
- An arrow's bounding box equals the bounding box of its ``points``.
- Diamonds are square (``height == width``).
- ``startPoint``/``endPoint`` equal the first/last path point.
- Connection angles are finite.
"""

from __future__ import annotations

import math
from collections import Counter
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from diagramgen.core.errors import DiagramValidationError

ElementType = Literal["rectangle", "ellipse", "diamond", "text", "arrow"]
Side = Literal["top", "bottom", "left", "right"]

# Absolute tolerance when comparing float geometry.
GEOMETRY_TOLERANCE = 1e-6


class _WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class Point(_WireModel):
    """A canvas coordinate."""

    x: float
    y: float


class Element(_WireModel):
    """A visual node or connector in the diagram."""

    id: str = Field(..., min_length=1)
    type: ElementType
    x: float
    y: float
    width: float = Field(..., ge=0)
    height: float = Field(..., ge=0)
    angle: float = 0.0
    style: dict[str, Any] = Field(default_factory=dict)
    text: str = ""
    connection_ids: list[str] = Field(default_factory=list)

    # Connector-only fields.
    points: list[Point] | None = None
    start_point: Point | None = None
    end_point: Point | None = None
    connection_id: str | None = None
    start_side: Side | None = None
    end_side: Side | None = None

    # Application state.
    is_selected: bool = False
    version: int = 1
    version_nonce: float = 0.1
    is_deleted: bool = False

    @property
    def is_arrow(self) -> bool:
        return self.type == "arrow"


class Connection(_WireModel):
    """Metadata record linking two elements through a connector."""

    id: str = Field(..., min_length=1)
    start_element_id: str
    end_element_id: str
    arrow_element_id: str
    start_angle: float
    end_angle: float

    version: int = 1
    version_nonce: float = 0.1
    is_deleted: bool = False


class Diagram(_WireModel):
    """The complete provider document."""

    elements: list[Element]
    connections: list[Connection]


def bounding_box(points: list[Point]) -> tuple[float, float, float, float]:
    """Return the axis-aligned bounding box of *points*.

    Args:
        points: Non-empty list of path points.

    Returns:
        Tuple of ``(x, y, width, height)``.
    """
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    min_x, min_y = min(xs), min(ys)
    return min_x, min_y, max(xs) - min_x, max(ys) - min_y


def _close(a: float, b: float) -> bool:
    return math.isclose(a, b, rel_tol=0.0, abs_tol=GEOMETRY_TOLERANCE)


def _same_point(a: Point, b: Point) -> bool:
    return _close(a.x, b.x) and _close(a.y, b.y)


def _duplicates(ids: list[str]) -> list[str]:
    return sorted(i for i, n in Counter(ids).items() if n > 1)


def _arrow_violations(element: Element) -> list[str]:
    """Check the connector-specific rules for a single arrow element."""
    problems: list[str] = []
    prefix = f"arrow '{element.id}'"

    if not element.connection_id:
        problems.append(f"{prefix} has no connectionId")

    if not element.points or len(element.points) < 2:
        problems.append(f"{prefix} needs at least two points")
        return problems

    bx, by, bw, bh = bounding_box(element.points)
    if not (
        _close(element.x, bx)
        and _close(element.y, by)
        and _close(element.width, bw)
        and _close(element.height, bh)
    ):
        problems.append(
            f"{prefix} bounding box ({element.x}, {element.y}, {element.width}, "
            f"{element.height}) does not match its points ({bx}, {by}, {bw}, {bh})"
        )

    if element.start_point is not None and not _same_point(element.start_point, element.points[0]):
        problems.append(f"{prefix} startPoint differs from its first point")
    if element.end_point is not None and not _same_point(element.end_point, element.points[-1]):
        problems.append(f"{prefix} endPoint differs from its last point")

    return problems


def find_violations(diagram: Diagram) -> list[str]:
    """Collect every invariant violation in a parsed diagram.

    Args:
        diagram: A schema-valid :class:`Diagram`.

    Returns:
        Human-readable violation messages.  Empty when the diagram is
        consistent.
    """
    problems: list[str] = []

    element_ids = [e.id for e in diagram.elements]
    connection_ids = [c.id for c in diagram.connections]
    for dup in _duplicates(element_ids):
        problems.append(f"duplicate element id '{dup}'")
    for dup in _duplicates(connection_ids):
        problems.append(f"duplicate connection id '{dup}'")

    elements = {e.id: e for e in diagram.elements}
    connections = {c.id: c for c in diagram.connections}

    # --- Per-element geometry ----------------------------------------------
    for element in diagram.elements:
        if element.type == "diamond" and not _close(element.width, element.height):
            problems.append(
                f"diamond '{element.id}' is not square "
                f"(width={element.width}, height={element.height})"
            )
        if element.is_arrow:
            problems.extend(_arrow_violations(element))

    # --- Connections ---------------------------------------------------------
    arrow_refs = Counter(c.arrow_element_id for c in diagram.connections)
    for conn in diagram.connections:
        for role, ref in (("start", conn.start_element_id), ("end", conn.end_element_id)):
            if ref not in elements:
                problems.append(f"connection '{conn.id}' {role} element '{ref}' does not exist")

        arrow = elements.get(conn.arrow_element_id)
        if arrow is None:
            problems.append(
                f"connection '{conn.id}' arrow element '{conn.arrow_element_id}' does not exist"
            )
        elif not arrow.is_arrow:
            problems.append(
                f"connection '{conn.id}' references '{arrow.id}' which is a "
                f"{arrow.type}, not an arrow"
            )

        if not (math.isfinite(conn.start_angle) and math.isfinite(conn.end_angle)):
            problems.append(f"connection '{conn.id}' has a non-finite angle")

    # --- Arrow ↔ connection bijection ---------------------------------------
    for element in diagram.elements:
        if not element.is_arrow:
            continue
        refs = arrow_refs.get(element.id, 0)
        if refs != 1:
            problems.append(
                f"arrow '{element.id}' is referenced by {refs} connections, expected exactly 1"
            )
        if element.connection_id:
            conn = connections.get(element.connection_id)
            if conn is None:
                problems.append(
                    f"arrow '{element.id}' connectionId '{element.connection_id}' does not exist"
                )
            elif conn.arrow_element_id != element.id:
                problems.append(
                    f"arrow '{element.id}' connectionId '{element.connection_id}' "
                    f"points back to '{conn.arrow_element_id}'"
                )

    return problems


def _format_schema_errors(exc: ValidationError) -> list[str]:
    details = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "<root>"
        details.append(f"{location}: {err['msg']}")
    return details


def validate_diagram(payload: Any) -> Diagram:
    """Parse a decoded payload into a :class:`Diagram` and check invariants.

    Args:
        payload: The JSON-decoded provider output.

    Returns:
        The validated :class:`Diagram`.

    Raises:
        DiagramValidationError: If the payload does not match the schema or
            breaks any invariant.  ``details`` lists every problem found.
    """
    try:
        diagram = Diagram.model_validate(payload)
    except ValidationError as e:
        raise DiagramValidationError(
            "Generated diagram does not match the expected schema.",
            details=_format_schema_errors(e),
        ) from e

    problems = find_violations(diagram)
    if problems:
        raise DiagramValidationError(
            "Generated diagram is internally inconsistent.",
            details=problems,
        )
    return diagram
