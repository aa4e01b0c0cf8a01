"""
Collection summary: produce the short profile a collection carries as its prior summary.

Responsibility: Build the analyst prompt from a collection snapshot and call the
gateway once. Called by the API; no HTTP here.
"""

import logging

from boxchat.agent.collection_agent import excerpt
from boxchat.agent.llm import ModelGateway
from boxchat.core.config import SUMMARY_MAX_TOKENS
from boxchat.core.errors import InvalidInputError
from boxchat.schemas.chat import CollectionContext

logger = logging.getLogger(__name__)


def build_summary_prompt(collection: CollectionContext) -> str:
    described = f" (Description: {collection.description})" if collection.description else ""
    resources = "\n".join(
        f"{i}. [{item.type}] {item.title or 'Untitled'} ({item.url}) - {excerpt(item.description)}"
        for i, item in enumerate(collection.items, 1)
    )
    return (
        "You are a Content Analyst AI.\n"
        f'Your task is to analyze a collection of resources (videos/posts) in a category called "{collection.name}"{described}.\n\n'
        f"Here are the resources:\n{resources}\n\n"
        "Please generate a concise but insightful summary (max 150 words) of what this collection represents.\n"
        'Highlight common themes, specific topics covered, or the potential "vibe" of this content.\n'
        "This summary will be used to provide context to another AI chatbot."
    )


async def summarize_collection(gateway: ModelGateway, collection: CollectionContext) -> str:
    """Return a summary of the collection. Raises InvalidInputError when it has no items; GatewayError propagates."""
    if not collection.items:
        raise InvalidInputError(f'Collection "{collection.name}" has no links to summarize.')
    logger.info("[summary] IN  collection_id=%s items=%d", collection.id, len(collection.items))
    summary = await gateway.generate(build_summary_prompt(collection), max_tokens=SUMMARY_MAX_TOKENS)
    logger.info("[summary] OUT summary_len=%d", len(summary))
    return summary
