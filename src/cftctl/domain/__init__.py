"""Domain layer — template model and reference extraction.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
