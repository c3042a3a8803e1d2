"""
Pagination contracts for API responses.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class PaginatedResponse(BaseModel, Generic[T]):
    """
    Generic paginated response model.

    Provides consistent pagination structure across all list endpoints.
    """

    items: list[T]
    total: int = Field(..., description="Total number of items matching the query")
    limit: int = Field(..., description="Maximum items per page")
    offset: int = Field(..., description="Number of items skipped")

    @property
    def has_next(self) -> bool:
        """Whether there are more items after this page."""
        return self.offset + len(self.items) < self.total
