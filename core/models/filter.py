# ============================================================================
# FILTER MODEL
# ============================================================================
# STATUS: Domain model - Request-scoped query shaping
# PURPOSE: Predicate parameters, pagination and detail/grid mode
# ============================================================================
"""
Filter Model

Built per request by the caller, or by the Repository when it re-fetches a
written record by primary key. Consumed once by a select or count.

Parameter keys are column names, or range predicates `<column>__from` /
`<column>__to`. Values are scalars or None.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Filter(BaseModel):
    """Query-shaping request object."""

    parameters: Dict[str, Any] = Field(default_factory=dict)
    table_name: Optional[str] = None
    current_page: int = Field(default=1, ge=1, description="1-based page number")
    page_size: Optional[int] = Field(default=None, ge=1, description="None = unpaginated")
    detail_mode: bool = Field(default=False, description="Project every column")

    model_config = {"populate_by_name": True, "alias_generator": to_camel}

    @property
    def is_paginated(self) -> bool:
        return self.page_size is not None

    @property
    def offset(self) -> int:
        """Rows skipped before the current page."""
        if self.page_size is None:
            return 0
        return (self.current_page - 1) * self.page_size


__all__ = ["Filter"]
