"""Pydantic models for the chatbot API request and response."""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ============================================
# REQUEST MODELS
# ============================================
# Required fields are Optional; the services report missing values
# as 400 instead of a 422 from FastAPI.

class ChatbotMessageRequest(_CamelModel):
    """Send a message to the AI assistant."""
    message: Optional[str] = Field(None, description="Visitor's message")
    user_id: Optional[str] = Field(None, alias="userId", description="Visitor/session identifier")
    user_name: Optional[str] = Field(None, alias="userName", description="Visitor display name")


class ClearHistoryRequest(_CamelModel):
    """Delete a visitor's conversation."""
    user_id: Optional[str] = Field(None, alias="userId")


class RequestHumanRequest(_CamelModel):
    """Ask for a human agent."""
    session_id: Optional[str] = Field(None, alias="sessionId")
    user_name: Optional[str] = Field(None, alias="userName")
    user_email: Optional[str] = Field(None, alias="userEmail")


class SwitchToAIRequest(_CamelModel):
    """Go back to the AI assistant."""
    session_id: Optional[str] = Field(None, alias="sessionId")


class UserMessageRequest(_CamelModel):
    """Visitor message in human mode."""
    session_id: Optional[str] = Field(None, alias="sessionId")
    message: Optional[str] = None


class AdminMessageRequest(_CamelModel):
    """Agent message to a visitor."""
    message: Optional[str] = None


class WebsiteContactFormRequest(_CamelModel):
    """Marketing-site contact form."""
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    hospital_id: Optional[str] = Field(None, alias="hospitalId")
    subject: Optional[str] = None
    message: Optional[str] = None


# ============================================
# RESPONSE MODELS
# ============================================

class ChatbotReplyResponse(_CamelModel):
    """Response from the AI chat endpoint."""
    success: bool = True
    message: str = Field(..., description="Assistant reply")
    chat_id: Optional[str] = Field(None, alias="chatId", description="Session identifier")
    cached: bool = Field(False, description="Whether the reply came from the response cache")


class HistoryItem(BaseModel):
    """Single message in the visitor history."""
    role: str
    content: str
    timestamp: datetime


class HistoryResponse(BaseModel):
    """Recent conversation history."""
    success: bool = True
    history: List[HistoryItem]


class SessionResponse(BaseModel):
    """Current mode, status and messages of a session."""
    success: bool = True
    session: Optional[dict[str, Any]] = None


class ChatListResponse(BaseModel):
    """Human chats visible to the agent console."""
    success: bool = True
    chats: List[dict[str, Any]]


class ChatDetailResponse(BaseModel):
    """Full chat for the agent console."""
    success: bool = True
    chat: dict[str, Any]


class StatusResponse(BaseModel):
    """Plain acknowledgement."""
    success: bool = True
    message: str
