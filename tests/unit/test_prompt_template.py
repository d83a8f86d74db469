"""Tests for diagramgen.core.prompt_template — the fixed system instruction."""

from __future__ import annotations

import json

from diagramgen.core.prompt_template import (
    EXAMPLE_DIAGRAM,
    EXAMPLE_PROMPT,
    PROMPT_TEMPLATE_VERSION,
    SYSTEM_INSTRUCTION,
    build_system_instruction,
)


class TestSystemInstruction:
    def test_is_stable(self):
        """Rebuilding the instruction yields the same text."""
        assert build_system_instruction() == SYSTEM_INSTRUCTION

    def test_has_all_sections(self):
        for heading in (
            "### 1. THE MOST IMPORTANT RULE",
            "### 2. SCHEMA REFERENCE",
            "### 3. CALCULATION LOGIC & WORKFLOW (CRITICAL)",
            "### 4. EXAMPLE",
            "### 5. FINAL REQUIREMENT",
        ):
            assert heading in SYSTEM_INSTRUCTION

    def test_sections_in_order(self):
        positions = [SYSTEM_INSTRUCTION.index(f"### {n}.") for n in range(1, 6)]
        assert positions == sorted(positions)

    def test_mentions_angle_formula(self):
        assert "Math.atan2(point.y - centerY, point.x - centerX)" in SYSTEM_INSTRUCTION

    def test_lists_element_types(self):
        assert "`rectangle`, `ellipse`, `diamond`, `text`, `arrow`" in SYSTEM_INSTRUCTION

    def test_embeds_example(self):
        assert f'User Request: "{EXAMPLE_PROMPT}"' in SYSTEM_INSTRUCTION
        assert json.dumps(EXAMPLE_DIAGRAM, indent=2) in SYSTEM_INSTRUCTION

    def test_version_is_set(self):
        assert PROMPT_TEMPLATE_VERSION


class TestExampleDiagram:
    def test_end_angle_is_half_pi(self):
        assert EXAMPLE_DIAGRAM["connections"][0]["endAngle"] == 1.5707963267948966

    def test_example_is_json_round_trippable(self):
        assert json.loads(json.dumps(EXAMPLE_DIAGRAM)) == EXAMPLE_DIAGRAM
