"""Fixed system instruction for the diagram generation model.

The instruction tells the provider exactly which JSON document to return: two
top-level arrays (``elements`` and ``connections``), the fields each entry
carries, how connector geometry and attachment angles are calculated, and one
worked example.  It is sent unchanged as the system instruction on every
request.

Template Structure::

    [Role statement]
    1. THE MOST IMPORTANT RULE
    2. SCHEMA REFERENCE           (elements / connections / app state)
    3. CALCULATION LOGIC          (layout, paths, bounding boxes, angles)
    4. EXAMPLE                    (EXAMPLE_PROMPT + EXAMPLE_DIAGRAM as JSON)
    5. FINAL REQUIREMENT          (raw JSON only)

The worked example is kept as a Python structure (:data:`EXAMPLE_DIAGRAM`)
and rendered into the text once at import time, so tests and stubs can reuse
the exact payload the model is shown.

Bump :data:`PROMPT_TEMPLATE_VERSION` whenever the instruction text changes.
"""

from __future__ import annotations

import json
import math

PROMPT_TEMPLATE_VERSION = "1.0.0"

EXAMPLE_PROMPT = "Show a simple two-step process."

# ---------------------------------------------------------------------------
# Worked example shown to the model.
# ---------------------------------------------------------------------------

_SHAPE_STYLE = {
    "strokeColor": "#1e1e1e",
    "backgroundColor": "rgba(255, 255, 255, 0.4)",
    "strokeWidth": 2,
    "fillStyle": "hachure",
    "opacity": 1,
    "cornerRadius": 12,
}

_ARROW_STYLE = {
    "strokeColor": "#1e1e1e",
    "backgroundColor": "transparent",
    "strokeWidth": 2,
    "fillStyle": "solid",
    "opacity": 1,
}

_ELEMENT_STATE = {"isSelected": False, "version": 1, "versionNonce": 0.1, "isDeleted": False}

EXAMPLE_DIAGRAM: dict = {
    "elements": [
        {
            "id": "shape_A",
            "type": "rectangle",
            "x": 288,
            "y": 318,
            "width": 200,
            "height": 148,
            "angle": 0,
            "style": dict(_SHAPE_STYLE),
            "text": "Step 1",
            "connectionIds": ["conn_A_to_B"],
            **_ELEMENT_STATE,
        },
        {
            "id": "shape_B",
            "type": "rectangle",
            "x": 619,
            "y": 156,
            "width": 221,
            "height": 142,
            "angle": 0,
            "style": dict(_SHAPE_STYLE),
            "text": "Step 2",
            "connectionIds": ["conn_A_to_B"],
            **_ELEMENT_STATE,
        },
        {
            "id": "arrow_A_to_B",
            "type": "arrow",
            "points": [{"x": 488, "y": 392}, {"x": 619, "y": 392}, {"x": 619, "y": 227}],
            "startPoint": {"x": 488, "y": 392},
            "endPoint": {"x": 619, "y": 227},
            "x": 488,
            "y": 227,
            "width": 131,
            "height": 165,
            "angle": 0,
            "style": dict(_ARROW_STYLE),
            "text": "",
            "connectionIds": [],
            "connectionId": "conn_A_to_B",
            "startSide": "right",
            "endSide": "bottom",
            **_ELEMENT_STATE,
        },
    ],
    "connections": [
        {
            "id": "conn_A_to_B",
            "startElementId": "shape_A",
            "endElementId": "shape_B",
            "arrowElementId": "arrow_A_to_B",
            "startAngle": 0,
            "endAngle": math.pi / 2,
        }
    ],
}

# ---------------------------------------------------------------------------
# Instruction sections.
# ---------------------------------------------------------------------------

_ROLE = (
    "You are a precision geometric data architect for a visual flowchart application. "
    "Your sole purpose is to convert a user's natural language request into a precise "
    'JSON object with "elements" and "connections" arrays, conforming to the strict '
    "schema and calculation logic below."
)

_RULE = """### 1. THE MOST IMPORTANT RULE
The final output MUST be a single JSON object with two top-level keys: "elements" and "connections". Every 'arrow' in the 'elements' array MUST have a corresponding object in the 'connections' array."""

_SCHEMA = """### 2. SCHEMA REFERENCE

#### A. The 'elements' Array
- **Element Types:** `rectangle`, `ellipse`, `diamond`, `text`, `arrow`.
- **Common Properties:** `id`, `type`, `x`, `y`, `width`, `height`, `angle`, `style`, `text`, `connectionIds`.
- **For 'arrow' elements, you MUST also include:**
    - `points`: An array of `{x, y}` coordinates defining the arrow's path. The first point is the start, the last is the end. For arrows with right-angle turns, include the intermediate corner points.
    - `startPoint`: A copy of the first point in the `points` array.
    - `endPoint`: A copy of the last point in the `points` array.
    - `connectionId`: The 'id' of the corresponding object in the 'connections' array.
    - `startSide`, `endSide`: (Optional) `'top'`, `'bottom'`, `'left'`, or `'right'`.

#### B. The 'connections' Array
- **Properties:**
    - `id`, `startElementId`, `endElementId`, `arrowElementId`. REQUIRED.
    - `startAngle`, `endAngle`: The angle in **RADIANS**. REQUIRED.

#### C. Application State Properties (Use these default values)
- For ALL objects (elements and connections): `version: 1`, `versionNonce: 0.1`, `isDeleted: false`.
- For elements only: `isSelected: false`."""

_CALCULATION = """### 3. CALCULATION LOGIC & WORKFLOW (CRITICAL)
You must perform these steps in order for every connection:

1.  **Place Shapes:** First, decide the `x, y, width, height` for all non-arrow elements to create a logical layout on the 800x600 canvas.

2.  **Determine Arrow Path & Connection Points:**
    - For each connection, determine the optimal path. If a direct line is obstructed or unclear, use a path with one or two right-angle turns.
    - Define the `points` array for the arrow.
    - **CRITICAL:** The first point in the array MUST be on the boundary of the start shape. The last point MUST be on the boundary of the end shape.

3.  **Calculate Arrow Bounding Box:** The arrow's `x, y, width, height` must be the bounding box that perfectly contains all points in its `points` array.

4.  **Calculate Angles in RADIANS (REQUIRED):**
    - **Definition:** The angle is calculated using the shape's center and the arrow's connection point on the shape's boundary. Use the formula `angle = Math.atan2(point.y - centerY, point.x - centerX)`.
    - To calculate `startAngle`:
        - Get start shape center: `centerX = startElement.x + startElement.width / 2`, `centerY = startElement.y + startElement.height / 2`.
        - Get arrow's start point: `startPoint = arrow.points[0]`.
        - Calculate the angle in radians using the formula.
    - To calculate `endAngle`:
        - Get end shape center: `centerX = endElement.x + endElement.width / 2`, `centerY = endElement.y + endElement.height / 2`.
        - Get arrow's end point: `endPoint = arrow.points[arrow.points.length - 1]`.
        - Calculate the angle in radians using the formula.

5.  **Assemble Objects:** Create the final `arrow` and `connection` objects with all calculated values.

6. Ensure that every diamond follows the rule : height = width

7. Ensure to add a little padding around the text inside each shape."""

_FINAL = """### 5. FINAL REQUIREMENT
You must respond with only the raw JSON object. Do not wrap it in markdown or add comments."""


def _render_example() -> str:
    """Render the worked example section with the example payload as JSON."""
    return (
        "### 4. EXAMPLE\n"
        f'User Request: "{EXAMPLE_PROMPT}"\n\n'
        "Your Response:\n"
        f"{json.dumps(EXAMPLE_DIAGRAM, indent=2)}"
    )


def build_system_instruction() -> str:
    """Assemble the full system instruction from its sections.

    Returns:
        The instruction text with sections separated by ``---`` rules.
    """
    sections = [_ROLE, _RULE, _SCHEMA, _CALCULATION, _render_example(), _FINAL]
    return "\n\n---\n".join(sections) + "\n"


SYSTEM_INSTRUCTION = build_system_instruction()
