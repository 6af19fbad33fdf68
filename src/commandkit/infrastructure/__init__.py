"""Infrastructure layer: ready-made providers backed by third-party libs.

This layer depends on stdlib, third-party libs (SQLAlchemy) and
``commandkit.exceptions`` only. It must never import from core or domain.
"""
