"""WebSocket endpoints for the visitor widget and the agent console."""

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status

from medichat.application.api.chatbot_routes import get_handoff_service
from medichat.application.di import get_container
from medichat.domain.exceptions import ChatError, ChatValidationError
from medichat.domain.models import ChatType
from medichat.domain.ports.chat_notifier import SUPER_ADMIN_ROOM, agents_room, session_room
from medichat.domain.services import HandoffService
from medichat.infrastructure.realtime import ChatEventHub
from medichat.middleware.auth import get_agent_from_token, is_super_admin

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/ws")


def get_event_hub() -> ChatEventHub:
    """Dependency to get the shared event hub."""
    return get_container().get_event_hub()


VISITOR_EVENTS = ("user:join", "user:message", "user:requestHuman", "user:typing")


def _error_text(error: Exception) -> str:
    if isinstance(error, ChatError):
        return str(error)
    return "Something went wrong"


async def _receive(websocket: WebSocket) -> tuple[Optional[str], dict[str, Any]]:
    """Read one frame; the event is None when the frame is not a JSON object."""
    try:
        frame = await websocket.receive_json()
    except (KeyError, TypeError, ValueError):
        return None, {}
    if not isinstance(frame, dict):
        return None, {}
    data = frame.get("data")
    return str(frame.get("event", "")), data if isinstance(data, dict) else {}


async def _reject_malformed(hub: ChatEventHub, websocket: WebSocket) -> None:
    logger.warning("⚠️ Ignoring malformed socket frame")
    await hub.send(websocket, "error", {"message": "Malformed frame"})


# =============================================================================
# Visitor socket
# =============================================================================


@router.websocket("/chat")
async def visitor_socket(
    websocket: WebSocket,
    hub: ChatEventHub = Depends(get_event_hub),
    service: HandoffService = Depends(get_handoff_service),
):
    """
    Visitor widget channel.

    Client frames: `user:join`, `user:message`, `user:requestHuman`,
    `user:typing`. AI questions go through the HTTP endpoint; only
    human-mode messages are persisted here.
    """
    await websocket.accept()

    try:
        while True:
            event, data = await _receive(websocket)
            if event is None:
                await _reject_malformed(hub, websocket)
                continue
            tenant_id = data.get("tenantId")
            session_id = data.get("sessionId")

            try:
                if event not in VISITOR_EVENTS:
                    await hub.send(websocket, "error", {"message": f"Unknown event '{event}'"})
                    continue
                if not tenant_id or not session_id:
                    raise ChatValidationError("tenantId and sessionId are required")

                if event == "user:join":
                    hub.join(websocket, session_room(tenant_id, session_id))
                    logger.info(f"🔌 Visitor {session_id} joined tenant {tenant_id}")

                elif event == "user:message":
                    if data.get("chatType") == ChatType.HUMAN.value:
                        await service.send_user_message(tenant_id, session_id, data.get("message"))

                elif event == "user:requestHuman":
                    session = await service.request_human(
                        tenant_id, session_id, data.get("userName"), data.get("userEmail")
                    )
                    await hub.send(
                        websocket,
                        "chat:humanRequested",
                        {"chatId": session.chat_id, "status": session.status},
                    )

                elif event == "user:typing":
                    await service.relay_user_typing(tenant_id, session_id)

            except Exception as e:
                if not isinstance(e, ChatError):
                    logger.error(f"❌ Error handling visitor event '{event}': {e}", exc_info=True)
                await hub.send(websocket, "error", {"message": _error_text(e)})

    except WebSocketDisconnect:
        logger.debug("Visitor socket disconnected")
    finally:
        hub.leave_all(websocket)


# =============================================================================
# Agent socket
# =============================================================================


@router.websocket("/admin")
async def agent_socket(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    hub: ChatEventHub = Depends(get_event_hub),
    service: HandoffService = Depends(get_handoff_service),
):
    """
    Agent console channel, authenticated with `?token=<JWT>`.

    Client frames: `admin:join`, `admin:accept`, `admin:message`,
    `admin:close`, `admin:typing` and `superAdmin:join`.
    """
    try:
        agent = get_agent_from_token(token or "")
    except HTTPException as e:
        logger.warning(f"🔒 Rejected agent socket: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    tenant_id = agent["tenant_id"]

    try:
        while True:
            event, data = await _receive(websocket)
            if event is None:
                await _reject_malformed(hub, websocket)
                continue
            chat_id = data.get("chatId")

            try:
                if event == "admin:join":
                    hub.join(websocket, agents_room(tenant_id))
                    logger.info(f"🔌 Agent {agent['user_id']} joined tenant {tenant_id}")
                    chats = await service.list_active_chats(tenant_id)
                    await hub.send(websocket, "chat:waitingList", {"chats": chats})

                elif event == "admin:accept":
                    await service.accept(tenant_id, chat_id, agent["user_id"])

                elif event == "admin:message":
                    await service.send_admin_message(tenant_id, chat_id, data.get("message"))

                elif event == "admin:close":
                    await service.close(tenant_id, chat_id)

                elif event == "admin:typing":
                    await service.relay_admin_typing(tenant_id, chat_id)

                elif event == "superAdmin:join":
                    if not is_super_admin(agent):
                        await hub.send(websocket, "error", {"message": "Super admin role required"})
                        continue
                    hub.join(websocket, SUPER_ADMIN_ROOM)
                    logger.info(f"🔌 Super admin {agent['user_id']} joined")

                else:
                    await hub.send(websocket, "error", {"message": f"Unknown event '{event}'"})

            except Exception as e:
                if not isinstance(e, ChatError):
                    logger.error(f"❌ Error handling agent event '{event}': {e}", exc_info=True)
                await hub.send(websocket, "error", {"message": _error_text(e)})

    except WebSocketDisconnect:
        logger.debug(f"Agent socket disconnected ({agent['user_id']})")
    finally:
        hub.leave_all(websocket)
