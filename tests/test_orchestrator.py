"""
Tests for the manager orchestrator: tool loop, fan-out, budget, failures, deadline.

Uses the scripted FakeGateway from conftest; no network.
"""

import asyncio

import pytest

from boxchat.agent.graph import ManagerOrchestrator, build_system_instruction
from boxchat.agent.llm import ModelResponse, ToolCall
from boxchat.agent.tools import AGENT_TOOLS
from boxchat.core.config import MAX_TOOL_ROUNDS
from boxchat.core.errors import GatewayError, InvalidInputError, RunCancelledError
from boxchat.schemas.chat import Message


def run(orchestrator, transcript, collections, timeout=None):
    return asyncio.run(orchestrator.run(transcript, collections, timeout=timeout))


def test_direct_answer_uses_one_turn(make_gateway, user_question, inspiration) -> None:
    gateway = make_gateway(responses=[ModelResponse(text="You have one video.")])
    answer = run(ManagerOrchestrator(gateway), user_question, [inspiration])
    assert answer == "You have one video."
    assert gateway.send_count == 1
    assert gateway.prompts == []


def test_inspiration_example(make_gateway, ask_call, user_question, inspiration) -> None:
    def manager(turn: int) -> ModelResponse:
        if turn == 0:
            return ModelResponse(tool_calls=[ask_call("c1", "b1", "Summarize contents")])
        agent_text = gateway.sessions[0].sent[1][0].content
        return ModelResponse(text=f"Your Inspiration box: {agent_text}")

    gateway = make_gateway(responses=manager, answer="It contains one video titled A.")
    answer = run(ManagerOrchestrator(gateway), user_question, [inspiration])
    assert answer == "Your Inspiration box: It contains one video titled A."
    result = gateway.sessions[0].sent[1][0]
    assert result.call_id == "c1"
    assert result.tool_name == "ask_collection"
    assert "1. [video] A (u1)" in gateway.prompts[0]
    assert "Question: Summarize contents" in gateway.prompts[0]


def test_unknown_collection_is_recovered(make_gateway, ask_call, user_question, inspiration) -> None:
    gateway = make_gateway(responses=[
        ModelResponse(tool_calls=[ask_call("c1", "nope")]),
        ModelResponse(text="I could not find that collection."),
    ])
    answer = run(ManagerOrchestrator(gateway), user_question, [inspiration])
    assert answer == "I could not find that collection."
    results = gateway.sessions[0].sent[1]
    assert len(results) == 1
    assert "nope" in results[0].content
    assert gateway.prompts == []


def test_unknown_tool_name_is_rejected_not_dropped(make_gateway, user_question, inspiration) -> None:
    gateway = make_gateway(responses=[
        ModelResponse(tool_calls=[ToolCall(id="x1", name="delete_everything", arguments={})]),
        ModelResponse(text="done"),
    ])
    run(ManagerOrchestrator(gateway), user_question, [inspiration])
    results = gateway.sessions[0].sent[1]
    assert [r.call_id for r in results] == ["x1"]
    assert results[0].content == "Unknown tool: delete_everything"


def test_missing_question_is_reported(make_gateway, user_question, inspiration) -> None:
    gateway = make_gateway(responses=[
        ModelResponse(tool_calls=[ToolCall(id="c1", name="ask_collection", arguments={"collection_id": "b1"})]),
        ModelResponse(text="ok"),
    ])
    run(ManagerOrchestrator(gateway), user_question, [inspiration])
    assert gateway.sessions[0].sent[1][0].content == "Error: question is required."


def test_turn_budget_is_enforced(make_gateway, ask_call, user_question, inspiration) -> None:
    gateway = make_gateway(responses=lambda turn: ModelResponse(text=f"partial {turn}", tool_calls=[ask_call(f"c{turn}", "b1")]))
    answer = run(ManagerOrchestrator(gateway), user_question, [inspiration])
    assert gateway.send_count == MAX_TOOL_ROUNDS + 1
    assert len(gateway.prompts) == MAX_TOOL_ROUNDS
    assert answer == f"partial {MAX_TOOL_ROUNDS}"


def test_budget_exhausted_with_empty_text_returns_empty(make_gateway, ask_call, user_question, inspiration) -> None:
    gateway = make_gateway(responses=lambda turn: ModelResponse(tool_calls=[ask_call("c", "b1")]))
    answer = run(ManagerOrchestrator(gateway, max_tool_rounds=2), user_question, [inspiration])
    assert answer == ""
    assert gateway.send_count == 3


def test_parallel_calls_join_before_next_turn(make_gateway, ask_call, user_question, inspiration, recipes) -> None:
    gateway = make_gateway(
        responses=[
            ModelResponse(tool_calls=[ask_call("c1", "b1", "What inspires me?"), ask_call("c2", "b2", "What recipes?")]),
            ModelResponse(text="Comparison done."),
        ],
        generate_delay=0.01,
    )
    answer = run(ManagerOrchestrator(gateway), user_question, [inspiration, recipes])
    assert answer == "Comparison done."
    assert gateway.events == ["send", "generate:start", "generate:start", "generate:end", "generate:end", "send"]
    results = gateway.sessions[0].sent[1]
    assert [r.call_id for r in results] == ["c1", "c2"]


def test_gateway_error_on_first_turn_is_fatal(make_gateway, user_question, inspiration) -> None:
    gateway = make_gateway(send_error=GatewayError("401 unauthorized"))
    with pytest.raises(GatewayError, match="401 unauthorized"):
        run(ManagerOrchestrator(gateway), user_question, [inspiration])
    assert gateway.prompts == []


def test_agent_failure_does_not_abort_run(make_gateway, ask_call, user_question, inspiration) -> None:
    gateway = make_gateway(
        responses=[ModelResponse(tool_calls=[ask_call("c1", "b1")]), ModelResponse(text="Sorry, that failed.")],
        generate_error=GatewayError("upstream 500"),
    )
    answer = run(ManagerOrchestrator(gateway), user_question, [inspiration])
    assert answer == "Sorry, that failed."
    content = gateway.sessions[0].sent[1][0].content
    assert "Inspiration" in content and "upstream 500" in content


def test_deadline_abandons_outstanding_agents(make_gateway, ask_call, user_question, inspiration) -> None:
    gateway = make_gateway(
        responses=[ModelResponse(tool_calls=[ask_call("c1", "b1")]), ModelResponse(text="never")],
        generate_delay=5.0,
    )
    with pytest.raises(RunCancelledError):
        run(ManagerOrchestrator(gateway), user_question, [inspiration], timeout=0.05)
    assert "generate:start" in gateway.events
    assert "generate:end" not in gateway.events
    assert gateway.send_count == 1


def test_empty_transcript_rejected_before_any_call(make_gateway, inspiration) -> None:
    gateway = make_gateway()
    with pytest.raises(InvalidInputError):
        run(ManagerOrchestrator(gateway), [], [inspiration])
    assert gateway.sessions == []


def test_session_is_seeded_with_history_and_one_tool(make_gateway, inspiration, recipes) -> None:
    gateway = make_gateway()
    transcript = [
        Message(role="user", content="hello"),
        Message(role="assistant", content="hi there"),
        Message(role="user", content="compare my boxes"),
    ]
    run(ManagerOrchestrator(gateway), transcript, [inspiration, recipes])
    system, tools, prior = gateway.session_args[0]
    assert tools == AGENT_TOOLS
    assert len(tools) == 1
    assert [(t.role, t.content) for t in prior] == [("user", "hello"), ("model", "hi there")]
    assert gateway.sessions[0].sent == ["compare my boxes"]
    assert "id: b1 | name: Inspiration | description: Things that inspire me" in system
    assert "id: b2 | name: Recipes" in system


def test_system_instruction_mentions_tool_and_multiple_calls(inspiration) -> None:
    text = build_system_instruction([inspiration])
    assert "ask_collection" in text
    assert "several times" in text
    assert "do not guess" in text


def test_system_instruction_without_collections() -> None:
    assert "(no collections selected)" in build_system_instruction([])
