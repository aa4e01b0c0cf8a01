"""
Collection agent: answers one delegated question from one collection's content.

Single-shot generation, no tools, no conversation state. Never raises for upstream
failures; the orchestrator always gets text it can hand back to the manager.
"""

import logging

from boxchat.agent.llm import ModelGateway
from boxchat.core.config import AGENT_MAX_TOKENS, ITEM_DESCRIPTION_MAX_CHARS
from boxchat.core.errors import AgentFailureError
from boxchat.schemas.chat import CollectionContext, LinkItem

logger = logging.getLogger(__name__)


def excerpt(text: str | None, limit: int = ITEM_DESCRIPTION_MAX_CHARS) -> str:
    """Cut text to limit characters and append "..." when it was longer."""
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def format_item(index: int, item: LinkItem) -> str:
    line = f"{index}. [{item.type}] {item.title or 'Untitled'} ({item.url})"
    desc = excerpt(item.description)
    if desc:
        line += f" - {desc}"
    return line


def build_collection_prompt(collection: CollectionContext, question: str) -> str:
    parts = [
        f'You are a specialist for the collection "{collection.name}". '
        "Answer the question using ONLY the collection content below. "
        "If the answer is not in the content, say explicitly that the collection does not contain it. "
        "Do not invent items or details.",
        "",
        f"Collection: {collection.name}",
    ]
    if collection.description:
        parts.append(f"Description: {collection.description}")
    if collection.prior_summary:
        parts.append(f"Summary: {collection.prior_summary}")
    parts.append("")
    if collection.items:
        parts.append(f"Items ({len(collection.items)}):")
        parts.extend(format_item(i, item) for i, item in enumerate(collection.items, 1))
    else:
        parts.append("Items: this collection has no items yet.")
    parts.extend(["", f"Question: {question}", "", "Answer:"])
    return "\n".join(parts)


class CollectionAgent:
    def __init__(self, gateway: ModelGateway, max_tokens: int = AGENT_MAX_TOKENS) -> None:
        self._gateway = gateway
        self._max_tokens = max_tokens

    async def ask(self, collection: CollectionContext, question: str) -> str:
        """Answer question from collection's content. Failures come back as a short error string."""
        logger.info("[agent:ask] IN  collection_id=%s name=%r items=%d question=%r", collection.id, collection.name, len(collection.items), question)
        prompt = build_collection_prompt(collection, question)
        try:
            answer = await self._call(collection, prompt)
        except AgentFailureError as e:
            logger.warning("[agent:ask] failed collection_id=%s: %s", collection.id, e.cause)
            return str(e)
        if not answer:
            answer = f'The collection "{collection.name}" has no content that answers this question.'
        logger.info("[agent:ask] OUT collection_id=%s answer_len=%d", collection.id, len(answer))
        return answer

    async def _call(self, collection: CollectionContext, prompt: str) -> str:
        try:
            return (await self._gateway.generate(prompt, max_tokens=self._max_tokens)).strip()
        except Exception as e:
            raise AgentFailureError(collection.name, e) from e
