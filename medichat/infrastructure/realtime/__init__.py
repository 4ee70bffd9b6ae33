from .chat_event_hub import ChatEventHub

__all__ = ["ChatEventHub"]
