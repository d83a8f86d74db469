"""Diagram generator — FastAPI REST API layer.

Modules
-------
main
    FastAPI application with the route handlers, the error handler, and the
    ``main()`` CLI entry point.
models
    Pydantic models for API request and error bodies.
"""
