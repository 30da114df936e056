"""
Models for cache tables.
"""

from pydantic import BaseModel


class CachedColumn(BaseModel):
    """
    A column stored in a cache table.
    """

    name: str
    storage_type: str
    is_aggregate: bool = False
