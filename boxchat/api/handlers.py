"""
API handlers: call the orchestrator and services, map results/errors to HTTP.

Responsibility: Bridge HTTP types and the agent/services. Exception-to-HTTP mapping
lives here so the agent code stays free of FastAPI types.
"""

import logging

from fastapi import HTTPException

from boxchat.agent.graph import ManagerOrchestrator
from boxchat.agent.llm import ModelGateway
from boxchat.core.config import CHAT_RUN_TIMEOUT
from boxchat.core.errors import GatewayError, InvalidInputError, RunCancelledError, ServiceUnavailableError
from boxchat.schemas.chat import ChatRequest, ChatResponse
from boxchat.schemas.collection import MetadataResponse, SummarizeRequest, SummarizeResponse
from boxchat.services.metadata_service import fetch_metadata
from boxchat.services.summary_service import summarize_collection

logger = logging.getLogger(__name__)


async def handle_chat(body: ChatRequest, gateway: ModelGateway) -> ChatResponse:
    """
    Run the manager over the transcript. 400 on invalid input, 503 when no provider is
    configured, 502 on provider failure, 504 when the run deadline passes.
    """
    orchestrator = ManagerOrchestrator(gateway)
    try:
        result = await orchestrator.run_detailed(body.transcript, body.collections, timeout=CHAT_RUN_TIMEOUT or None)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except RunCancelledError as e:
        raise HTTPException(status_code=504, detail=e.message) from e
    except ServiceUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.message) from e
    except GatewayError as e:
        logger.warning("[api:chat] gateway error: %s", e.message)
        raise HTTPException(status_code=502, detail=f"Model provider error: {e.message}") from e
    except Exception as e:
        logger.exception("Chat run failed")
        raise HTTPException(status_code=500, detail=str(e)) from e
    return ChatResponse(answer=result.answer, tool_rounds=result.tool_rounds, tools_used=result.tools_used)


async def handle_summarize(body: SummarizeRequest, gateway: ModelGateway) -> SummarizeResponse:
    try:
        summary = await summarize_collection(gateway, body.collection)
    except InvalidInputError as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    except ServiceUnavailableError as e:
        raise HTTPException(status_code=503, detail=e.message) from e
    except GatewayError as e:
        raise HTTPException(status_code=502, detail=f"Model provider error: {e.message}") from e
    return SummarizeResponse(summary=summary)


async def handle_metadata(url: str) -> MetadataResponse:
    url = (url or "").strip()
    if not url:
        raise HTTPException(status_code=400, detail="URL is required")
    title, description = await fetch_metadata(url)
    return MetadataResponse(title=title, description=description)
