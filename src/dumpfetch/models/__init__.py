"""
Models for dumpfetch.
"""

from dumpfetch.models.resource import (
    Compression,
    CopyStats,
    ResourceCatalog,
    ResourceDescriptor,
)

__all__ = [
    "Compression",
    "CopyStats",
    "ResourceCatalog",
    "ResourceDescriptor",
]
