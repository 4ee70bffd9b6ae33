"""Visitor-facing chatbot API used by the hospital website widget."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from medichat.application.api.errors import to_http_exception
from medichat.application.di import get_container
from medichat.domain.models.api_models import (
    ChatbotMessageRequest,
    ChatbotReplyResponse,
    ClearHistoryRequest,
    HistoryItem,
    HistoryResponse,
    RequestHumanRequest,
    SessionResponse,
    StatusResponse,
    SwitchToAIRequest,
    UserMessageRequest,
)
from medichat.domain.models import ChatSession
from medichat.domain.services import ChatbotService, HandoffService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/chatbot")


async def get_chatbot_service() -> ChatbotService:
    """Dependency to get the chatbot service."""
    container = get_container()
    return await container.get_chatbot_service()


async def get_handoff_service() -> HandoffService:
    """Dependency to get the hand-off service."""
    container = get_container()
    return await container.get_handoff_service()


def _handoff_payload(session: ChatSession) -> dict:
    return {
        "success": True,
        "chatId": session.chat_id,
        "status": session.status,
        "chatType": session.chat_type,
        "state": session.state.value,
    }


# =============================================================================
# AI chat
# =============================================================================


@router.post("/{tenant_id}/message", response_model=ChatbotReplyResponse)
async def send_message(
    tenant_id: str,
    request: ChatbotMessageRequest,
    service: ChatbotService = Depends(get_chatbot_service),
):
    """
    Ask the AI assistant a question.

    Identical questions for the same hospital are answered from a
    short-lived cache; otherwise each visitor gets one AI reply per
    rate-limit window (429 with `resetTime` in seconds when exceeded).
    """
    try:
        reply = await service.chat(
            tenant_id=tenant_id,
            user_id=request.user_id,
            message=request.message,
            user_name=request.user_name,
        )
    except Exception as e:
        raise to_http_exception(e, "Failed to process message")

    return ChatbotReplyResponse(message=reply.message, chat_id=reply.chat_id, cached=reply.cached)


@router.get("/{tenant_id}/history", response_model=HistoryResponse)
async def get_history(
    tenant_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    service: ChatbotService = Depends(get_chatbot_service),
):
    """Last 30 messages of the visitor's conversation."""
    try:
        messages = await service.get_history(tenant_id, user_id)
    except Exception as e:
        raise to_http_exception(e, "Failed to get chat history")

    return HistoryResponse(
        history=[
            HistoryItem(role=m.role, content=m.content, timestamp=m.timestamp)
            for m in messages
        ]
    )


@router.post("/{tenant_id}/clear", response_model=StatusResponse)
async def clear_history(
    tenant_id: str,
    request: ClearHistoryRequest,
    service: ChatbotService = Depends(get_chatbot_service),
):
    """Delete the visitor's conversation."""
    try:
        await service.clear_history(tenant_id, request.user_id)
    except Exception as e:
        raise to_http_exception(e, "Failed to clear chat history")

    return StatusResponse(message="Chat history cleared")


@router.delete("/{tenant_id}/history", response_model=StatusResponse)
async def delete_history(
    tenant_id: str,
    user_id: Optional[str] = Query(None, alias="userId"),
    service: ChatbotService = Depends(get_chatbot_service),
):
    """Alias of `POST /clear` taking the visitor id as a query parameter."""
    try:
        await service.clear_history(tenant_id, user_id)
    except Exception as e:
        raise to_http_exception(e, "Failed to clear chat history")

    return StatusResponse(message="Chat history cleared")


# =============================================================================
# Human hand-off (visitor side)
# =============================================================================


@router.get("/{tenant_id}/session", response_model=SessionResponse)
async def get_session(
    tenant_id: str,
    session_id: Optional[str] = Query(None, alias="sessionId"),
    service: HandoffService = Depends(get_handoff_service),
):
    """Current mode, status and messages of a session (null if it does not exist)."""
    try:
        session = await service.get_session(tenant_id, session_id)
    except Exception as e:
        raise to_http_exception(e, "Failed to get session")

    return SessionResponse(session=session.to_dict() if session else None)


@router.post("/{tenant_id}/request-human")
async def request_human(
    tenant_id: str,
    request: RequestHumanRequest,
    service: HandoffService = Depends(get_handoff_service),
):
    """Queue the visitor for a human agent."""
    try:
        session = await service.request_human(
            tenant_id, request.session_id, request.user_name, request.user_email
        )
    except Exception as e:
        raise to_http_exception(e, "Failed to request human chat")

    return _handoff_payload(session)


@router.post("/{tenant_id}/switch-to-ai")
async def switch_to_ai(
    tenant_id: str,
    request: SwitchToAIRequest,
    service: HandoffService = Depends(get_handoff_service),
):
    """Return the visitor to the AI assistant."""
    try:
        session = await service.switch_to_ai(tenant_id, request.session_id)
    except Exception as e:
        raise to_http_exception(e, "Failed to switch to AI chat")

    return _handoff_payload(session)


@router.post("/{tenant_id}/user-message")
async def send_user_message(
    tenant_id: str,
    request: UserMessageRequest,
    service: HandoffService = Depends(get_handoff_service),
):
    """Send a visitor message to the human agent."""
    try:
        session = await service.send_user_message(tenant_id, request.session_id, request.message)
    except Exception as e:
        raise to_http_exception(e, "Failed to send message")

    payload = _handoff_payload(session)
    payload["message"] = session.messages[-1].to_dict()
    return payload
