"""
Agent tools: the single ask_collection tool offered to the manager, and parsing of its calls.
"""

import logging
from dataclasses import dataclass

from boxchat.agent.llm import ToolCall

logger = logging.getLogger(__name__)

ASK_COLLECTION = "ask_collection"

# OpenAI function-calling format
AGENT_TOOLS = [
    {
        "type": "function",
        "function": {
            "name": ASK_COLLECTION,
            "description": "Ask a question about one of the user's collections. A specialist that has read every item in that collection answers using only its content. Call it once per collection you need; several calls in one turn are allowed (e.g. to compare two collections).",
            "parameters": {
                "type": "object",
                "properties": {
                    "collection_id": {
                        "type": "string",
                        "description": "Id of the collection, exactly as listed in the system instructions.",
                    },
                    "question": {
                        "type": "string",
                        "description": "Self-contained question for the collection specialist.",
                    },
                },
                "required": ["collection_id", "question"],
            },
        },
    },
]


@dataclass(frozen=True)
class AskCollectionArgs:
    collection_id: str
    question: str


class ToolCallRejected(ValueError):
    """A tool call that cannot be executed. The message is fed back to the model as the result."""


def parse_ask_collection(call: ToolCall) -> AskCollectionArgs:
    """Validate a tool call as ask_collection. Unknown tool names are rejected, never dropped."""
    if call.name != ASK_COLLECTION:
        logger.warning("[tools] rejected unknown tool name=%r", call.name)
        raise ToolCallRejected(f"Unknown tool: {call.name}")
    args = call.arguments or {}
    collection_id = str(args.get("collection_id") or "").strip()
    question = str(args.get("question") or "").strip()
    if not question:
        raise ToolCallRejected("Error: question is required.")
    return AskCollectionArgs(collection_id=collection_id, question=question)
