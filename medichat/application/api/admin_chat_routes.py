"""Agent console API for hospital staff handling human chats."""

import logging

from fastapi import APIRouter, Depends

from medichat.application.api.errors import to_http_exception
from medichat.application.api.chatbot_routes import get_handoff_service
from medichat.domain.models.api_models import (
    AdminMessageRequest,
    ChatDetailResponse,
    ChatListResponse,
)
from medichat.domain.services import HandoffService
from medichat.middleware.auth import require_agent

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/chatbot/admin")


@router.get("/chats", response_model=ChatListResponse)
async def list_chats(
    agent: dict = Depends(require_agent),
    service: HandoffService = Depends(get_handoff_service),
):
    """
    Waiting and active human chats of the agent's hospital.

    **Authentication:** Required JWT token (tenant taken from the token)
    """
    try:
        chats = await service.list_active_chats(agent["tenant_id"])
    except Exception as e:
        raise to_http_exception(e, "Failed to get chats")

    return ChatListResponse(chats=chats)


@router.get("/chats/{chat_id}", response_model=ChatDetailResponse)
async def get_chat(
    chat_id: str,
    agent: dict = Depends(require_agent),
    service: HandoffService = Depends(get_handoff_service),
):
    """Full chat including all retained messages."""
    try:
        session = await service.get_chat(agent["tenant_id"], chat_id)
    except Exception as e:
        raise to_http_exception(e, "Failed to get chat")

    return ChatDetailResponse(chat=session.to_dict())


@router.post("/chats/{chat_id}/accept", response_model=ChatDetailResponse)
async def accept_chat(
    chat_id: str,
    agent: dict = Depends(require_agent),
    service: HandoffService = Depends(get_handoff_service),
):
    """Take a waiting chat. 409 if it is not waiting."""
    try:
        session = await service.accept(agent["tenant_id"], chat_id, agent["user_id"])
    except Exception as e:
        raise to_http_exception(e, "Failed to accept chat")

    logger.info(f"👤 {agent.get('email') or agent['user_id']} accepted chat {chat_id}")
    return ChatDetailResponse(chat=session.to_dict())


@router.post("/chats/{chat_id}/message")
async def send_admin_message(
    chat_id: str,
    request: AdminMessageRequest,
    agent: dict = Depends(require_agent),
    service: HandoffService = Depends(get_handoff_service),
):
    """Reply to the visitor of an accepted chat."""
    try:
        session = await service.send_admin_message(agent["tenant_id"], chat_id, request.message)
    except Exception as e:
        raise to_http_exception(e, "Failed to send message")

    return {
        "success": True,
        "chatId": session.chat_id,
        "message": session.messages[-1].to_dict(),
    }


@router.post("/chats/{chat_id}/close", response_model=ChatDetailResponse)
async def close_chat(
    chat_id: str,
    agent: dict = Depends(require_agent),
    service: HandoffService = Depends(get_handoff_service),
):
    """Close a chat. 409 if it is already closed."""
    try:
        session = await service.close(agent["tenant_id"], chat_id)
    except Exception as e:
        raise to_http_exception(e, "Failed to close chat")

    return ChatDetailResponse(chat=session.to_dict())


@router.post("/chats/{chat_id}/mark-read")
async def mark_read(
    chat_id: str,
    agent: dict = Depends(require_agent),
    service: HandoffService = Depends(get_handoff_service),
):
    """Mark every message of the chat as read by the agent side."""
    try:
        updated = await service.mark_read(agent["tenant_id"], chat_id, by_admin=True)
    except Exception as e:
        raise to_http_exception(e, "Failed to mark messages as read")

    return {"success": True, "updated": updated}
