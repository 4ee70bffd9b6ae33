from .container import Container, get_container, close_container
from .settings import Settings

__all__ = ["Container", "get_container", "close_container", "Settings"]
