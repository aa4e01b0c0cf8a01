"""
API route aggregator: register endpoints; no logic, only delegate to handlers.
"""

import logging

from fastapi import APIRouter, Depends

from boxchat.agent.llm import ModelGateway
from boxchat.api.deps import get_gateway
from boxchat.api.handlers import handle_chat, handle_metadata, handle_summarize
from boxchat.schemas.chat import ChatRequest, ChatResponse
from boxchat.schemas.collection import MetadataRequest, MetadataResponse, SummarizeRequest, SummarizeResponse

logger = logging.getLogger(__name__)
router = APIRouter()


# --- System ---

@router.get("/", tags=["system"])
def root():
    return {"status": "Collection chat backend running"}


@router.get("/health", tags=["system"])
def health():
    return {"ok": True}


# --- Chat ---

@router.post(
    "/chat",
    response_model=ChatResponse,
    tags=["chat"],
    summary="Ask the manager about the selected collections",
    description="Send the transcript and collection snapshots; the last message is answered. Errors come back as {error}: 400 invalid input, 502 provider failure, 503 no provider, 504 deadline.",
)
async def post_chat(body: ChatRequest, gateway: ModelGateway = Depends(get_gateway)) -> ChatResponse:
    logger.info("[api:post_chat] IN  messages=%d collections=%d", len(body.transcript), len(body.collections))
    response = await handle_chat(body, gateway)
    logger.info("[api:post_chat] OUT tools_used=%s answer_len=%d", response.tools_used, len(response.answer))
    return response


# --- Collections ---

@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    tags=["collections"],
    summary="Summarize a collection",
    description="Generate the short profile stored with a collection and later passed back as its prior summary.",
)
async def post_summarize(body: SummarizeRequest, gateway: ModelGateway = Depends(get_gateway)) -> SummarizeResponse:
    logger.info("[api:post_summarize] IN  collection_id=%s", body.collection.id)
    return await handle_summarize(body, gateway)


@router.post(
    "/metadata",
    response_model=MetadataResponse,
    tags=["collections"],
    summary="Fetch title and description for a link",
    description="Best effort: returns empty strings when the page cannot be fetched or parsed.",
)
async def post_metadata(body: MetadataRequest) -> MetadataResponse:
    return await handle_metadata(body.url)
