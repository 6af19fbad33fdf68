"""Domain layer: error taxonomy, input descriptors, blankness rules.

This layer depends only on stdlib, pydantic and ``commandkit.exceptions``.
It must never import from core, config, or infrastructure.
"""
