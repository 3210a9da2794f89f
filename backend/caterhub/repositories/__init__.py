"""Ownership-scoped data access shared by the catalog services."""

from caterhub.repositories.ownership import OwnedRepository, as_uuid

__all__ = ["OwnedRepository", "as_uuid"]
