"""Schemas for the chat endpoint and the collection snapshots it carries."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Message(BaseModel):
    """One transcript entry, in chronological order."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant", "system"] = Field(..., description="Who wrote the message.")
    content: str = Field(..., description="Message text, passed through verbatim.")


class LinkItem(BaseModel):
    """A saved link inside a collection."""

    model_config = ConfigDict(frozen=True)

    url: str
    type: str = Field("link", description="Link kind, e.g. youtube, tiktok, instagram.")
    title: str | None = None
    description: str | None = None


class CollectionContext(BaseModel):
    """Read-only snapshot of one collection ("box") supplied with the request."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1)
    name: str
    description: str | None = None
    prior_summary: str | None = Field(
        None,
        validation_alias=AliasChoices("prior_summary", "priorSummary", "aiSummary"),
        description="Previously generated profile of the collection.",
    )
    items: list[LinkItem] = Field(
        default_factory=list,
        validation_alias=AliasChoices("items", "links"),
    )


class ChatRequest(BaseModel):
    """Request body for POST /chat. The last transcript message is the one answered."""

    transcript: list[Message] = Field(
        ...,
        validation_alias=AliasChoices("transcript", "messages"),
        description="Conversation so far; must not be empty.",
    )
    collections: list[CollectionContext] = Field(
        default_factory=list,
        validation_alias=AliasChoices("collections", "context"),
        description="Collections the manager may delegate questions to.",
    )


class ChatResponse(BaseModel):
    """Response for POST /chat."""

    answer: str = Field(..., description="Final answer from the manager.")
    tool_rounds: int = Field(0, description="Number of tool rounds the manager used.")
    tools_used: list[str] = Field(default_factory=list, description="Tool calls made, in order (ask_collection).")


class ErrorResponse(BaseModel):
    """Error payload returned by every endpoint."""

    error: str
