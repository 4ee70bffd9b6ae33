from .gemini_reply_provider import GeminiReplyProvider

__all__ = ["GeminiReplyProvider"]
