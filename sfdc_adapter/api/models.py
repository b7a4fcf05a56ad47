"""
sfdc_adapter.api.models - Pydantic models for API requests/responses
====================================================================
"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


EXAMPLE_SOQL = "SELECT Id, Name FROM Account LIMIT 10"


class QueryRequest(BaseModel):
    """Request model for SOQL queries."""

    soql: str = Field(
        default=EXAMPLE_SOQL,
        description="SOQL statement",
        json_schema_extra={"example": EXAMPLE_SOQL}
    )
    all_pages: bool = Field(
        default=False,
        description="Follow the query locator through every page"
    )
    max_pages: Optional[int] = Field(
        default=None,
        description="Max pages to follow when all_pages is set",
        ge=1,
    )


class QueryResponse(BaseModel):
    """Response model for SOQL queries."""

    count: int
    done: bool
    query_locator: Optional[str] = None
    records: List[Dict[str, Any]]


class ObjectsRequest(BaseModel):
    """Create/update request: one logical column -> value map per object."""

    objects: List[Dict[str, Any]] = Field(
        ...,
        description="Objects keyed by logical column names",
        json_schema_extra={"example": [{"name": "Acme", "fax": ""}]}
    )


class DeleteRequest(BaseModel):
    """Delete request."""

    ids: List[str] = Field(..., description="Record ids to delete")


class ItemResult(BaseModel):
    """Outcome of one item of a batch call."""

    success: bool
    id: Optional[str] = None
    errors: List[Dict[str, Any]] = Field(default_factory=list)


class BatchResponse(BaseModel):
    """Response model for create/update/delete."""

    count: int
    results: List[ItemResult]
