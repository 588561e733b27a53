"""Domain layer — records, topology resolution, and schema models.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
