"""
History adapter: caller transcript -> prior turns for a tool session + the message to send.
"""

import logging
from typing import Sequence

from boxchat.agent.llm import MODEL_ROLE, USER_ROLE, ChatTurn
from boxchat.core.errors import InvalidInputError
from boxchat.schemas.chat import Message

logger = logging.getLogger(__name__)


def to_turn(message: Message) -> ChatTurn:
    """assistant -> model; user, system and anything else -> user. Content is kept verbatim."""
    role = MODEL_ROLE if message.role == "assistant" else USER_ROLE
    return ChatTurn(role=role, content=message.content)


def adapt(transcript: Sequence[Message]) -> tuple[list[ChatTurn], Message]:
    """
    Split a transcript into (prior_turns, last_message).
    prior_turns holds every message except the last, in order; the last message is
    returned on its own as the turn to submit. Raises InvalidInputError on an empty
    transcript or an entry that is not a Message.
    """
    if not transcript:
        raise InvalidInputError("transcript must contain at least one message")
    for i, message in enumerate(transcript):
        if not isinstance(message, Message):
            raise InvalidInputError(f"transcript[{i}] is not a valid message")
    prior_turns = [to_turn(m) for m in transcript[:-1]]
    last = transcript[-1]
    logger.info("[history:adapt] IN  messages=%d OUT prior_turns=%d last_role=%s", len(transcript), len(prior_turns), last.role)
    return prior_turns, last
