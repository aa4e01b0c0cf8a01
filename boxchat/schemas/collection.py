"""Schemas for the collection helper endpoints (summary and link metadata)."""

from pydantic import BaseModel, Field

from boxchat.schemas.chat import CollectionContext


class SummarizeRequest(BaseModel):
    """Request body for POST /summarize."""

    collection: CollectionContext


class SummarizeResponse(BaseModel):
    """Response for POST /summarize."""

    summary: str = Field(..., description="Short natural-language profile of the collection.")


class MetadataRequest(BaseModel):
    """Request body for POST /metadata."""

    url: str = ""


class MetadataResponse(BaseModel):
    """Response for POST /metadata. Empty strings when the page could not be read."""

    title: str = ""
    description: str = ""
