"""
api/chat.py (CHAT, HISTORY, RESET, ROUTING, EXTENSIONS and ACTIONS endpoints)

HTTP surface over a single process-wide orchestrator. The orchestrator is built
lazily on first use from CONFIG, with the extensions listed under
`extensions.enabled` installed; tests replace it through FastAPI's dependency
overrides on `get_orchestrator`.

Endpoints:
  - POST /chat: Runs one orchestration round and returns the outbound message.
  - GET /history: Returns the conversation log, oldest first.
  - POST /reset: Clears the conversation log.
  - GET /routing: Explains how a piece of text would be routed (tag, matches, scores).
  - GET /extensions: Lists installed extensions.
  - POST /actions/{name}: Runs a named action registered by an extension.

The HTTP surface cannot prompt a human, so deployments serving it should use the
`policy` approval mode.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from config import CONFIG
from core.orchestrator import ConcurrentChatError, Orchestrator
from extensions import build_extensions
from llm_cloud.base import CompletionBackendError
from shared.models import ChatRequest, ExtensionPayload, MessagePayload

# Get a logger instance for this module
logger = logging.getLogger(__name__)

router = APIRouter()

_orchestrator: Optional[Orchestrator] = None


def get_orchestrator() -> Orchestrator:
    """Return the process-wide orchestrator, creating it on first call."""
    global _orchestrator
    if _orchestrator is None:
        logger.info("[get_orchestrator] Creating orchestrator from configuration")
        _orchestrator = Orchestrator(extensions=build_extensions(CONFIG))
    return _orchestrator


@router.post("/chat", response_model=MessagePayload)
async def handle_chat(request: ChatRequest, orchestrator: Orchestrator = Depends(get_orchestrator)):
    """
    Process one inbound message through the orchestrator.

    Returns:
        MessagePayload: The outbound message as stored in the log. When an embedded
            command was denied, `content` is the denial notice.

    Raises:
        HTTPException: 502 when the completion backend fails, 409 when the
            orchestrator rejects an overlapping round.
    """
    logger.info(f"[handle_chat] Received message ({len(request.message)} characters)")
    try:
        message = await orchestrator.chat(request.message)
    except CompletionBackendError as e:
        logger.error(f"[handle_chat] Completion backend failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))
    except ConcurrentChatError as e:
        logger.warning(f"[handle_chat] Rejected overlapping round: {e}")
        raise HTTPException(status_code=409, detail=str(e))

    return MessagePayload.from_message(message)


@router.get("/history", response_model=List[MessagePayload])
async def get_history(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return [MessagePayload.from_message(message) for message in orchestrator.history()]


@router.post("/reset")
async def reset_conversation(orchestrator: Orchestrator = Depends(get_orchestrator)):
    logger.info("[reset_conversation] Clearing conversation log")
    orchestrator.clear_history()
    return JSONResponse({"response": "ok", "message": "Conversation cleared"})


@router.get("/routing")
async def explain_routing(
    message: str = Query(..., min_length=1),
    orchestrator: Orchestrator = Depends(get_orchestrator),
):
    """Return the lane analysis for `message` without running a round."""
    return orchestrator.analyze_routing(message).to_dict()


@router.get("/extensions", response_model=List[ExtensionPayload])
async def list_extensions(orchestrator: Orchestrator = Depends(get_orchestrator)):
    return [
        ExtensionPayload(name=extension.name, version=extension.version)
        for extension in orchestrator.list_extensions()
    ]


@router.post("/actions/{name}")
async def run_action(name: str, orchestrator: Orchestrator = Depends(get_orchestrator)):
    if not orchestrator.execute_action(name):
        raise HTTPException(status_code=404, detail=f"Unknown action: {name}")
    return JSONResponse({"response": "ok", "action": name})
