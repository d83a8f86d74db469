"""Configuration management for the diagram generation service.

This module provides centralized configuration management using Pydantic Settings.
Configuration is loaded from environment variables with the DIAGRAMGEN_ prefix,
allowing easy customization without code changes.

Environment Variable Loading
-----------------------------
Configuration values are loaded in the following priority order:
1. Environment variables (DIAGRAMGEN_* prefix, plus the two unprefixed
   names below)
2. .env file in the project root
3. Default values defined in DiagramgenConfig

Two settings also accept the conventional unprefixed names used by the
deployment environment:

- ``GEMINI_API_KEY`` — the provider credential.
- ``PORT`` — the HTTP port override.

Example .env file:
    GEMINI_API_KEY=your-key-here
    PORT=5000
    DIAGRAMGEN_MODEL_NAME=gemini-2.0-flash
    DIAGRAMGEN_REQUEST_TIMEOUT=60

Missing Credential
------------------
The credential is optional at load time.  The process starts without it and
each generation request fails with a configuration error until it is set.

Global Configuration Instance
------------------------------
A global ``config`` instance is created automatically at module import time
and serves as the single source of truth for configuration values.

Usage Example
-------------
    from diagramgen.core.config import config

    print(config.model_name)
    print(config.server_port)
"""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DiagramgenConfig(BaseSettings):
    """Main configuration for the diagram generation service.

    Attributes
    ----------
    Provider Settings:
        gemini_api_key : str | None
            Credential for the Gemini API.  ``None`` means generation
            requests fail before any network call.
        model_name : str
            Model identifier passed to ``generateContent``.
        api_base_url : str
            Base URL of the Gemini REST API.
        temperature : float
            Sampling temperature (low for deterministic layouts).
        response_mime_type : str
            Output content type requested from the provider.

    Transport Settings:
        request_timeout : float
            Per-call timeout in seconds.
        retry_attempts : int
            Total attempts for transient provider failures.
        backoff_seconds : float
            Base delay for exponential backoff between attempts.

    Output Settings:
        validate_output : bool
            Reject parsed diagrams that break the element/connection
            invariants instead of passing them through.

    Server Settings:
        server_host : str
            Bind address for uvicorn.
        server_port : int
            Bind port for uvicorn.
        log_level : str
            Root logging level for the console entry point.

    Examples
    --------
    Create a custom configuration:

        >>> custom_config = DiagramgenConfig(
        ...     gemini_api_key="test-key",
        ...     retry_attempts=1,
        ... )
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DIAGRAMGEN_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
        protected_namespaces=(),
    )

    # Provider settings
    gemini_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "gemini_api_key", "GEMINI_API_KEY", "DIAGRAMGEN_GEMINI_API_KEY"
        ),
        description="Gemini API credential (required for generation requests)",
    )
    model_name: str = Field(
        default="gemini-2.0-flash",
        description="Gemini model identifier",
    )
    api_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Base URL of the Gemini REST API",
    )
    temperature: float = Field(
        default=0.1,
        description="Low temperature for deterministic, less creative layouts",
        ge=0.0,
        le=2.0,
    )
    response_mime_type: str = Field(
        default="application/json",
        description="Output content type requested from the provider",
    )

    # Transport settings
    request_timeout: float = Field(
        default=60.0,
        description="Per-call timeout in seconds",
        gt=0.0,
    )
    retry_attempts: int = Field(
        default=3,
        description="Total attempts for transient provider failures",
        ge=1,
        le=10,
    )
    backoff_seconds: float = Field(
        default=0.5,
        description="Base delay for exponential backoff",
        ge=0.0,
    )

    # Output settings
    validate_output: bool = Field(
        default=True,
        description="Reject diagrams that break element/connection invariants",
    )

    # Server settings
    server_host: str = Field(
        default="0.0.0.0",
        description="Server bind address",
    )
    server_port: int = Field(
        default=5000,
        validation_alias=AliasChoices("server_port", "PORT", "DIAGRAMGEN_SERVER_PORT"),
        description="Server port",
        ge=1,
        le=65535,
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level for the console entry point",
    )

    @property
    def has_credential(self) -> bool:
        """Whether a non-blank provider credential is configured."""
        return bool(self.gemini_api_key and self.gemini_api_key.strip())


# Global configuration instance, loaded from the environment and .env file.
config = DiagramgenConfig()
