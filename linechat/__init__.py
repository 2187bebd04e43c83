"""
linechat

Client for a line-based TCP chat protocol.
"""

from .client import ChatClient
from .config import ClientConfig
from .listener import ChatListener, EventDispatcher
from .protocol import Command, Event, ProtocolError, ServerEvent, TextMessage

__all__ = [
    "ChatClient",
    "ClientConfig",
    "ChatListener",
    "EventDispatcher",
    "Command",
    "Event",
    "ProtocolError",
    "ServerEvent",
    "TextMessage",
]
