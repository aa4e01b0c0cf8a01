"""
Model gateway: OpenAI (primary) or Hugging Face (fallback for plain generation).

The gateway is an explicitly constructed object handed to the orchestrator and the
collection agents; nothing here keeps a module-level client. Two operations:
generate(prompt) for single-shot text and start_tool_session(...) for a
tool-augmented chat. Tool-calling requires OPENAI_API_KEY.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, Protocol, Sequence

import httpx
from openai import AsyncOpenAI, OpenAIError

from boxchat.core.config import (
    AGENT_MAX_TOKENS,
    HF_API_KEY,
    HF_CHAT_URL,
    HF_LLM_MODEL,
    LLM_API_TIMEOUT,
    MANAGER_MAX_TOKENS,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)
from boxchat.core.errors import GatewayError, ServiceUnavailableError

logger = logging.getLogger(__name__)

USER_ROLE = "user"
MODEL_ROLE = "model"

# Provider-neutral turn roles -> OpenAI chat roles
_OPENAI_ROLES = {USER_ROLE: "user", MODEL_ROLE: "assistant"}


@dataclass(frozen=True)
class ChatTurn:
    """One prior turn of a tool-augmented conversation."""

    role: Literal["user", "model"]
    content: str


@dataclass(frozen=True)
class ToolCall:
    """A function call requested by the model. id threads the result back to the call."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    call_id: str
    tool_name: str
    content: str


@dataclass
class ModelResponse:
    """Model output for one turn. tool_calls is empty when the model answered directly."""

    text: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


class ToolSession(Protocol):
    """A tool-augmented conversation. Each send is one turn."""

    async def send(self, content: str | Sequence[ToolResult]) -> ModelResponse:
        ...


class ModelGateway(Protocol):
    """What the orchestrator and collection agents need from a model provider."""

    async def generate(self, prompt: str, max_tokens: int = AGENT_MAX_TOKENS) -> str:
        ...

    def start_tool_session(
        self,
        system_instruction: str,
        tools: list[dict[str, Any]],
        prior_turns: Sequence[ChatTurn],
    ) -> ToolSession:
        ...


def _parse_tool_calls(msg: Any) -> list[ToolCall]:
    """Read tool calls off an OpenAI message. Arguments that are not valid JSON become {}."""
    tool_calls = []
    for tc in getattr(msg, "tool_calls", None) or []:
        fn = getattr(tc, "function", None)
        if not fn:
            continue
        fargs = getattr(fn, "arguments", None) or "{}"
        try:
            args = json.loads(fargs) if isinstance(fargs, str) else fargs
        except json.JSONDecodeError:
            args = {}
        if not isinstance(args, dict):
            args = {}
        tool_calls.append(ToolCall(id=getattr(tc, "id", None) or "", name=getattr(fn, "name", None) or "", arguments=args))
    return tool_calls


class OpenAIToolSession:
    """Chat-completions conversation that keeps the full message list between turns."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str,
        system_instruction: str,
        tools: list[dict[str, Any]],
        prior_turns: Sequence[ChatTurn],
        max_tokens: int = MANAGER_MAX_TOKENS,
    ) -> None:
        self._client = client
        self._model = model
        self._tools = tools
        self._max_tokens = max_tokens
        self._messages: list[dict[str, Any]] = [{"role": "system", "content": system_instruction}]
        for turn in prior_turns:
            self._messages.append({"role": _OPENAI_ROLES[turn.role], "content": turn.content})

    @property
    def messages(self) -> list[dict[str, Any]]:
        return list(self._messages)

    async def send(self, content: str | Sequence[ToolResult]) -> ModelResponse:
        if isinstance(content, str):
            self._messages.append({"role": "user", "content": content})
            logger.info("[llm:session] IN  user_turn content_len=%d", len(content))
        else:
            for result in content:
                self._messages.append({"role": "tool", "tool_call_id": result.call_id, "content": result.content})
            logger.info("[llm:session] IN  tool_results=%d", len(content))
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=self._messages,
                tools=self._tools,
                max_tokens=self._max_tokens,
            )
        except OpenAIError as e:
            logger.warning("[llm:session] OpenAI request failed: %s", e)
            raise GatewayError(str(e)) from e
        msg = response.choices[0].message if response.choices else None
        if msg is None:
            raise GatewayError("Model returned no choices.")
        tool_calls = _parse_tool_calls(msg)
        assistant_msg: dict[str, Any] = {"role": "assistant", "content": msg.content or ""}
        if tool_calls:
            assistant_msg["tool_calls"] = [
                {"id": tc.id, "type": "function", "function": {"name": tc.name, "arguments": json.dumps(tc.arguments)}}
                for tc in tool_calls
            ]
        self._messages.append(assistant_msg)
        text = (msg.content or "").strip()
        if tool_calls:
            logger.info("[llm:session] OUT tool_calls=%s", [t.name for t in tool_calls])
        logger.info("[llm:session] OUT content_len=%d", len(text))
        return ModelResponse(text=text, tool_calls=tool_calls)


class OpenAIGateway:
    """
    Gateway backed by the OpenAI SDK. When no OpenAI key is configured, generate()
    goes to the Hugging Face router instead and tool sessions are unavailable.
    """

    def __init__(
        self,
        api_key: str = OPENAI_API_KEY,
        model: str = OPENAI_LLM_MODEL,
        hf_api_key: str = HF_API_KEY,
        hf_model: str = HF_LLM_MODEL,
        timeout: float = LLM_API_TIMEOUT,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._model = model
        self._hf_api_key = hf_api_key
        self._hf_model = hf_model
        self._timeout = timeout
        self._client = client
        if self._client is None and api_key:
            self._client = AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def generate(self, prompt: str, max_tokens: int = AGENT_MAX_TOKENS) -> str:
        logger.info("[llm] IN  prompt_len=%d max_tokens=%d", len(prompt), max_tokens)
        if self._client is not None:
            return await self._generate_openai(prompt, max_tokens)
        return await self._generate_hf(prompt, max_tokens)

    async def _generate_openai(self, prompt: str, max_tokens: int) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
            )
        except OpenAIError as e:
            logger.warning("[llm:openai] request failed: %s", e)
            raise GatewayError(str(e)) from e
        msg = response.choices[0].message if response.choices else None
        out = ((msg.content if msg else None) or "").strip()
        logger.info("[llm:openai] OUT response_len=%d", len(out))
        return out

    async def _generate_hf(self, prompt: str, max_tokens: int) -> str:
        if not self._hf_api_key:
            raise ServiceUnavailableError("No model provider configured (set OPENAI_API_KEY or HF_API_KEY).")
        headers = {"Authorization": f"Bearer {self._hf_api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self._hf_model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(HF_CHAT_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            logger.warning("[llm:hf] request failed: %s", e)
            raise GatewayError(f"Hugging Face request failed: {e}") from e
        if response.status_code != 200:
            logger.warning("[llm:hf] HF LLM error %s: %s", response.status_code, response.text[:200])
            raise GatewayError(f"Hugging Face returned {response.status_code}: {response.text[:200]}")
        choices = response.json().get("choices") or []
        out = ""
        if choices and isinstance(choices[0], dict):
            out = ((choices[0].get("message") or {}).get("content") or "").strip()
        logger.info("[llm:hf] OUT response_len=%d", len(out))
        return out

    def start_tool_session(
        self,
        system_instruction: str,
        tools: list[dict[str, Any]],
        prior_turns: Sequence[ChatTurn],
    ) -> OpenAIToolSession:
        if self._client is None:
            raise ServiceUnavailableError("Tool-calling requires OPENAI_API_KEY.")
        logger.info("[llm] start_tool_session tools=%d prior_turns=%d", len(tools), len(prior_turns))
        return OpenAIToolSession(self._client, self._model, system_instruction, tools, prior_turns)
