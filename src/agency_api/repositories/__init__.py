"""
Repository layer.

Usage:
    from agency_api.repositories import EntityRepository
"""

from .entity_repository import EntityRepository

__all__ = ["EntityRepository"]
