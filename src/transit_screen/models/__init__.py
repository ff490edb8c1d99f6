"""Pydantic models for upstream payloads and tool responses."""
