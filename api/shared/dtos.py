"""Shared DTOs for the conversation store."""
from pydantic import BaseModel, ConfigDict, Field


class BaseDTO(BaseModel):
    """Base DTO with common configuration."""

    model_config = ConfigDict(from_attributes=True)


class PaginationRequest(BaseDTO):
    """Page-number pagination; callers clamp values before building the request."""

    page: int = Field(default=1, ge=1, description="1-based page number")
    per_page: int = Field(default=20, ge=0, description="Page size")

    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    def limit(self) -> int:
        return self.per_page
