"""Prompt building, response schemas and response parsing."""
