"""Tests for diagramgen.core.diagram_service — the composed operation."""

from __future__ import annotations

import asyncio
import json
import logging

import pytest

from diagramgen.core.diagram_service import DiagramService
from diagramgen.core.errors import (
    ConfigurationError,
    DiagramValidationError,
    EmptyResponseError,
    MalformedOutputError,
)
from diagramgen.core.prompt_template import EXAMPLE_PROMPT


def _run(service: DiagramService, prompt):
    async def _go():
        try:
            return await service.generate_diagram(prompt)
        finally:
            await service.client.aclose()

    return asyncio.run(_go())


class TestGenerateDiagram:
    def test_example_scenario(self, test_config, make_client, provider, example_diagram, example_text):
        provider.respond_with(example_text)
        service = DiagramService(make_client(test_config))

        assert _run(service, EXAMPLE_PROMPT) == example_diagram
        assert provider.call_count == 1

    def test_fenced_output(self, test_config, make_client, provider, example_diagram, example_text):
        provider.respond_with(f"```json\n{example_text}\n```")
        service = DiagramService(make_client(test_config))
        assert _run(service, EXAMPLE_PROMPT) == example_diagram

    def test_logs_counts(self, test_config, make_client, provider, example_text, caplog):
        provider.respond_with(example_text)
        service = DiagramService(make_client(test_config))
        with caplog.at_level(logging.INFO, logger="diagramgen.core.diagram_service"):
            _run(service, EXAMPLE_PROMPT)
        assert "3 elements, 1 connections" in caplog.text


class TestFailures:
    def test_missing_credential(self, no_key_config, make_client, provider):
        service = DiagramService(make_client(no_key_config))
        with pytest.raises(ConfigurationError):
            _run(service, EXAMPLE_PROMPT)
        assert provider.call_count == 0

    def test_empty_output(self, test_config, make_client, provider):
        provider.respond_with("")
        with pytest.raises(EmptyResponseError):
            _run(DiagramService(make_client(test_config)), EXAMPLE_PROMPT)

    def test_unparseable_output(self, test_config, make_client, provider):
        provider.respond_with("Sure! Here is your diagram:")
        with pytest.raises(MalformedOutputError):
            _run(DiagramService(make_client(test_config)), EXAMPLE_PROMPT)

    def test_inconsistent_output_rejected(self, test_config, make_client, provider, example_diagram):
        example_diagram["connections"] = []
        provider.respond_with(json.dumps(example_diagram))
        with pytest.raises(DiagramValidationError) as exc_info:
            _run(DiagramService(make_client(test_config)), EXAMPLE_PROMPT)
        assert exc_info.value.details

    def test_inconsistent_output_passed_through_when_disabled(
        self, test_config, make_client, provider, example_diagram
    ):
        example_diagram["connections"] = []
        provider.respond_with(json.dumps(example_diagram))
        service = DiagramService(make_client(test_config), validate_output=False)
        assert _run(service, EXAMPLE_PROMPT) == example_diagram

    def test_failure_is_logged(self, test_config, make_client, provider, caplog):
        provider.respond_with("")
        with caplog.at_level(logging.WARNING, logger="diagramgen.core.diagram_service"):
            with pytest.raises(EmptyResponseError):
                _run(DiagramService(make_client(test_config)), EXAMPLE_PROMPT)
        assert "empty_response" in caplog.text

    def test_missing_credential_logged_as_error(self, no_key_config, make_client, provider, caplog):
        with caplog.at_level(logging.WARNING, logger="diagramgen"):
            with pytest.raises(ConfigurationError):
                _run(DiagramService(make_client(no_key_config)), EXAMPLE_PROMPT)
        records = [r for r in caplog.records if "configuration" in r.getMessage()]
        assert len(records) == 1
        assert records[0].levelno == logging.ERROR
        assert records[0].name == "diagramgen.core.diagram_service"

    def test_output_failures_not_retryable(self, test_config, make_client, provider, example_diagram):
        example_diagram["connections"] = []
        provider.respond_with("Sure! Here is your diagram:", json.dumps(example_diagram))
        service = DiagramService(make_client(test_config))

        async def _go():
            failures = []
            try:
                for _ in range(2):
                    with pytest.raises(MalformedOutputError) as exc_info:
                        await service.generate_diagram(EXAMPLE_PROMPT)
                    failures.append(exc_info.value)
            finally:
                await service.client.aclose()
            return failures

        unparseable, inconsistent = asyncio.run(_go())
        assert unparseable.kind == "malformed_output"
        assert inconsistent.kind == "invalid_diagram"
        assert unparseable.retryable is False
        assert inconsistent.retryable is False
