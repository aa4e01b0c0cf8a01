"""
Shared test doubles: a scripted model gateway that never touches the network.
"""

import asyncio
from typing import Any, Callable, Sequence

import pytest

from boxchat.agent.llm import ChatTurn, ModelResponse, ToolCall, ToolResult
from boxchat.schemas.chat import CollectionContext, LinkItem, Message


class FakeSession:
    def __init__(self, gateway: "FakeGateway") -> None:
        self._gateway = gateway
        self.sent: list[Any] = []

    async def send(self, content: str | Sequence[ToolResult]) -> ModelResponse:
        gw = self._gateway
        gw.events.append("send")
        self.sent.append(content if isinstance(content, str) else list(content))
        await asyncio.sleep(0)
        if gw.send_error is not None:
            raise gw.send_error
        turn = len(self.sent) - 1
        if callable(gw.responses):
            return gw.responses(turn)
        return gw.responses[min(turn, len(gw.responses) - 1)]


class FakeGateway:
    """
    responses: list of ModelResponse per manager turn (last one repeats) or callable(turn_index).
    answer: str or callable(prompt) for collection agent generate() calls.
    """

    def __init__(
        self,
        responses: list[ModelResponse] | Callable[[int], ModelResponse] | None = None,
        answer: str | Callable[[str], str] = "agent answer",
        send_error: Exception | None = None,
        generate_error: Exception | None = None,
        generate_delay: float = 0.0,
    ) -> None:
        self.responses = responses or [ModelResponse(text="direct answer")]
        self.answer = answer
        self.send_error = send_error
        self.generate_error = generate_error
        self.generate_delay = generate_delay
        self.events: list[str] = []
        self.prompts: list[str] = []
        self.sessions: list[FakeSession] = []
        self.session_args: list[tuple[str, list[dict[str, Any]], list[ChatTurn]]] = []

    async def generate(self, prompt: str, max_tokens: int = 512) -> str:
        self.prompts.append(prompt)
        self.events.append("generate:start")
        if self.generate_delay:
            await asyncio.sleep(self.generate_delay)
        else:
            await asyncio.sleep(0)
        if self.generate_error is not None:
            raise self.generate_error
        self.events.append("generate:end")
        return self.answer(prompt) if callable(self.answer) else self.answer

    def start_tool_session(self, system_instruction, tools, prior_turns) -> FakeSession:
        self.session_args.append((system_instruction, tools, list(prior_turns)))
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    @property
    def send_count(self) -> int:
        return self.events.count("send")


def ask(call_id: str, collection_id: str, question: str = "Summarize contents") -> ToolCall:
    return ToolCall(id=call_id, name="ask_collection", arguments={"collection_id": collection_id, "question": question})


@pytest.fixture
def make_gateway() -> type[FakeGateway]:
    return FakeGateway


@pytest.fixture
def ask_call() -> Callable[..., ToolCall]:
    return ask


@pytest.fixture
def inspiration() -> CollectionContext:
    return CollectionContext(
        id="b1",
        name="Inspiration",
        description="Things that inspire me",
        items=[LinkItem(title="A", url="u1", type="video")],
    )


@pytest.fixture
def recipes() -> CollectionContext:
    return CollectionContext(
        id="b2",
        name="Recipes",
        items=[
            LinkItem(title="Pasta night", url="https://youtube.com/watch?v=1", type="youtube", description="Quick carbonara"),
            LinkItem(url="https://tiktok.com/@chef/2", type="tiktok"),
        ],
    )


@pytest.fixture
def user_question() -> list[Message]:
    return [Message(role="user", content="What's in my Inspiration box?")]
