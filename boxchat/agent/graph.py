"""
LangGraph manager loop: ask_manager -> (dispatch_tools -> ...)* -> END.

The manager model sees the user's collections and one tool, ask_collection. Each
dispatch_tools step fans out every tool call of the turn to collection agents, waits
for all of them, and submits the results in a single turn. The loop stops when the
manager answers without tool calls or after MAX_TOOL_ROUNDS tool rounds, and the
last response's text is returned in both cases.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence, TypedDict

from langgraph.graph import END, StateGraph

from boxchat.agent.collection_agent import CollectionAgent
from boxchat.agent.history import adapt
from boxchat.agent.llm import ModelGateway, ModelResponse, ToolCall, ToolResult, ToolSession
from boxchat.agent.tools import AGENT_TOOLS, ASK_COLLECTION, ToolCallRejected, parse_ask_collection
from boxchat.core.config import MAX_TOOL_ROUNDS
from boxchat.core.errors import RunCancelledError, UnknownCollectionError
from boxchat.schemas.chat import CollectionContext, Message

logger = logging.getLogger(__name__)


class ManagerState(TypedDict):
    response: ModelResponse
    tool_rounds: int
    tools_used: list[str]


@dataclass
class RunResult:
    answer: str
    tool_rounds: int = 0
    tools_used: list[str] = field(default_factory=list)


def build_system_instruction(collections: Sequence[CollectionContext]) -> str:
    """System prompt for the manager: the collection catalogue and how to use ask_collection."""
    if collections:
        catalogue = "\n".join(
            f"- id: {c.id} | name: {c.name}" + (f" | description: {c.description}" if c.description else "")
            for c in collections
        )
    else:
        catalogue = "(no collections selected)"
    return (
        "You are a helpful assistant for a content dashboard. The user saves links (videos, posts) "
        "into named collections. The user has selected these collections:\n"
        f"{catalogue}\n\n"
        f"You cannot see the items yourself. To learn what a collection contains, call the {ASK_COLLECTION} "
        "tool with the collection id and a specific question; do not guess about collection content. "
        f"You may call {ASK_COLLECTION} several times in the same turn, for example to compare two collections. "
        "If a tool result reports an error or a missing collection, try another collection id or answer "
        "with what you have. Keep your final answer concise and helpful."
    )


class ManagerOrchestrator:
    """Runs one manager conversation per request. Holds no per-run state between runs."""

    def __init__(
        self,
        gateway: ModelGateway,
        agent: CollectionAgent | None = None,
        max_tool_rounds: int = MAX_TOOL_ROUNDS,
    ) -> None:
        self._gateway = gateway
        self._agent = agent or CollectionAgent(gateway)
        self._max_tool_rounds = max_tool_rounds

    async def run(
        self,
        transcript: Sequence[Message],
        collections: Sequence[CollectionContext],
        timeout: float | None = None,
    ) -> str:
        """Answer the last transcript message. Raises GatewayError, InvalidInputError or RunCancelledError."""
        result = await self.run_detailed(transcript, collections, timeout=timeout)
        return result.answer

    async def run_detailed(
        self,
        transcript: Sequence[Message],
        collections: Sequence[CollectionContext],
        timeout: float | None = None,
    ) -> RunResult:
        prior_turns, last = adapt(transcript)
        logger.info("[run_manager] START prior_turns=%d collections=%d timeout=%s", len(prior_turns), len(collections), timeout)
        by_id = {c.id: c for c in collections}
        session = self._gateway.start_tool_session(build_system_instruction(collections), AGENT_TOOLS, prior_turns)
        graph = self._build_graph(session, last.content, by_id)
        initial: ManagerState = {"response": ModelResponse(), "tool_rounds": 0, "tools_used": []}
        config = {"recursion_limit": self._max_tool_rounds + 5}
        try:
            if timeout:
                final = await asyncio.wait_for(graph.ainvoke(initial, config), timeout)
            else:
                final = await graph.ainvoke(initial, config)
        except asyncio.TimeoutError as e:
            logger.warning("[run_manager] deadline of %.1fs exceeded; abandoning run", timeout)
            raise RunCancelledError(f"Chat run cancelled: no answer within {timeout:g}s.") from e
        answer = final["response"].text
        logger.info("[run_manager] END tool_rounds=%d tools_used=%d answer_len=%d", final["tool_rounds"], len(final["tools_used"]), len(answer))
        return RunResult(answer=answer, tool_rounds=final["tool_rounds"], tools_used=list(final["tools_used"]))

    def _build_graph(self, session: ToolSession, message: str, collections: dict[str, CollectionContext]):
        async def ask_manager(state: ManagerState) -> dict:
            logger.info("[graph:ask_manager] IN  message_len=%d", len(message))
            response = await session.send(message)
            logger.info("[graph:ask_manager] OUT tool_calls=%d", len(response.tool_calls))
            return {"response": response}

        async def dispatch_tools(state: ManagerState) -> dict:
            calls = state["response"].tool_calls
            rounds = state["tool_rounds"] + 1
            logger.info("[graph:dispatch_tools] IN  round=%d tool_calls=%s", rounds, [c.name for c in calls])
            # gather keeps results in call order; every call finishes before the next turn
            results = await asyncio.gather(*(self._execute(call, collections) for call in calls))
            response = await session.send(list(results))
            logger.info("[graph:dispatch_tools] OUT round=%d next_tool_calls=%d", rounds, len(response.tool_calls))
            return {
                "response": response,
                "tool_rounds": rounds,
                "tools_used": state["tools_used"] + [c.name for c in calls],
            }

        graph = StateGraph(ManagerState)
        graph.add_node("ask_manager", ask_manager)
        graph.add_node("dispatch_tools", dispatch_tools)
        graph.set_entry_point("ask_manager")
        route_map = {"dispatch_tools": "dispatch_tools", END: END}
        graph.add_conditional_edges("ask_manager", self._route, route_map)
        graph.add_conditional_edges("dispatch_tools", self._route, route_map)
        return graph.compile()

    def _route(self, state: ManagerState) -> str:
        if not state["response"].tool_calls:
            logger.info("[graph:route] no tool calls after %d rounds -> final answer", state["tool_rounds"])
            return END
        if state["tool_rounds"] >= self._max_tool_rounds:
            logger.warning("[graph:route] tool round budget (%d) exhausted -> returning last text", self._max_tool_rounds)
            return END
        return "dispatch_tools"

    async def _execute(self, call: ToolCall, collections: dict[str, CollectionContext]) -> ToolResult:
        try:
            args = parse_ask_collection(call)
            collection = collections.get(args.collection_id)
            if collection is None:
                raise UnknownCollectionError(args.collection_id)
        except (ToolCallRejected, UnknownCollectionError) as e:
            logger.warning("[graph:execute] call_id=%s name=%r -> %s", call.id, call.name, e)
            return ToolResult(call_id=call.id, tool_name=call.name, content=str(e))
        content = await self._agent.ask(collection, args.question)
        return ToolResult(call_id=call.id, tool_name=call.name, content=content)
