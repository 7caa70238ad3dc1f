# ============================================================================
# MODELS MODULE
# ============================================================================
# STATUS: Model exports
# PURPOSE: Central export point for metadata and request models
# ============================================================================
"""
Models Module - Central Export Point

Pydantic models describing tables (metadata) and requests (Filter).
Metadata models are frozen and safe to share across threads.
"""

from core.models.table import Column, Reference, Table
from core.models.filter import Filter

__all__ = [
    # Metadata
    "Column",
    "Reference",
    "Table",
    # Requests
    "Filter",
]
