"""Pydantic response schemas for the HTTP API."""
