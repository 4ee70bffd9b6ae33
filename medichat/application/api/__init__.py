from fastapi import APIRouter

from .admin_chat_routes import router as admin_chat_router
from .chatbot_routes import router as chatbot_router
from .contact_routes import router as contact_router
from .realtime_routes import router as realtime_router

router = APIRouter()
router.include_router(admin_chat_router, tags=["agent-console"])
router.include_router(chatbot_router, tags=["chatbot"])
router.include_router(contact_router, tags=["contact"])
router.include_router(realtime_router, tags=["realtime"])

__all__ = ["router"]
