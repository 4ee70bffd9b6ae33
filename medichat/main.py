"""Main application entry point."""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from medichat.application.api import router
from medichat.application.di import Settings, get_container, close_container


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("🚀 Starting application...")
    try:
        container = get_container()
        await container.init_chat_repository()
        await container.init_contact_form_repository()
        logger.info(f"✅ Application started (store={container.settings.chat_store_backend}, "
                    f"guard={container.settings.chat_guard_backend})")
    except Exception as e:
        logger.error(f"❌ Error during startup: {e}")
        raise

    yield

    # Shutdown
    logger.info("🛑 Shutting down application...")
    try:
        await close_container()
        logger.info("✅ Application shut down successfully")
    except Exception as e:
        logger.error(f"❌ Error during shutdown: {e}")


# Create FastAPI application
app = FastAPI(
    title="MediChat Backend",
    description="Hospital website chat: AI assistant, human hand-off and agent console",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.from_env().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "MediChat Backend",
        "version": VERSION,
        "features": ["AI chat", "Human hand-off", "Agent console", "WebSockets"],
        "docs": "/docs",
    }


@app.get("/health")
async def health():
    """Health check."""
    return {
        "status": "healthy",
        "version": VERSION,
        "endpoints": {
            "chatbot_message": "/api/v1/chatbot/{tenantId}/message",
            "chatbot_history": "/api/v1/chatbot/{tenantId}/history",
            "chatbot_session": "/api/v1/chatbot/{tenantId}/session",
            "request_human": "/api/v1/chatbot/{tenantId}/request-human",
            "admin_chats": "/api/v1/chatbot/admin/chats",
            "contact_form": "/api/v1/website-contact-form",
            "visitor_socket": "/api/v1/ws/chat",
            "agent_socket": "/api/v1/ws/admin?token=",
        },
    }


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", "8080"))
    host = os.getenv("HOST", "0.0.0.0")

    logger.info(f"🚀 Starting server on {host}:{port}")

    uvicorn.run(
        "medichat.main:app",
        host=host,
        port=port,
        reload=os.getenv("ENVIRONMENT") == "development",
        log_level="info",
    )
