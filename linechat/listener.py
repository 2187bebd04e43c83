"""
Chat Event Listeners

Listener interface for server events and the dispatcher that fans each
event out to every registered listener.
"""

import logging
import threading
from typing import List

from .protocol import Event, ServerEvent, TextMessage


class ChatListener:
    """
    Receives events from the chat client.

    Every method is a no-op; subclasses override the events they need.
    Callbacks run on the client's receive thread, except on_disconnect,
    which runs on whichever thread closed the connection.
    """

    def on_login_result(self, success: bool, error: str) -> None:
        """Login finished; error is empty on success"""

    def on_message_received(self, message: TextMessage) -> None:
        """A public, private or inbox message arrived"""

    def on_message_error(self, error: str) -> None:
        """The server rejected our last message"""

    def on_command_error(self, error: str) -> None:
        """The server did not understand a command, or sent a line we did not understand"""

    def on_user_list(self, users: List[str]) -> None:
        """Full list of users currently online; replaces any earlier list"""

    def on_supported_commands(self, commands: List[str]) -> None:
        """Commands the server supports"""

    def on_disconnect(self) -> None:
        """The connection was closed, by us or by the server"""


class EventDispatcher:
    """
    Ordered set of listeners.

    Dispatch iterates a snapshot of the listeners, so listeners may be
    added or removed from any thread, including from inside a callback.

    Attributes:
        listeners_lock (threading.Lock): Guards the listener list
    """

    def __init__(self):
        self._listeners: List[ChatListener] = []
        self.listeners_lock = threading.Lock()

    def __len__(self) -> int:
        with self.listeners_lock:
            return len(self._listeners)

    def add_listener(self, listener: ChatListener) -> None:
        """Register a listener; registering the same listener twice has no effect"""
        with self.listeners_lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: ChatListener) -> None:
        """Unregister a listener if it is registered"""
        with self.listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _notify(self, callback: str, *args) -> None:
        with self.listeners_lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                getattr(listener, callback)(*args)
            except Exception:
                logging.exception(f"Listener {listener!r} failed in {callback}")

    def dispatch_login_result(self, success: bool, error: str = "") -> None:
        self._notify("on_login_result", success, error)

    def dispatch_message(self, message: TextMessage) -> None:
        self._notify("on_message_received", message)

    def dispatch_message_error(self, error: str) -> None:
        self._notify("on_message_error", error)

    def dispatch_command_error(self, error: str) -> None:
        self._notify("on_command_error", error)

    def dispatch_user_list(self, users: List[str]) -> None:
        self._notify("on_user_list", list(users))

    def dispatch_supported(self, commands: List[str]) -> None:
        self._notify("on_supported_commands", list(commands))

    def dispatch_disconnect(self) -> None:
        self._notify("on_disconnect")

    def dispatch(self, event: ServerEvent) -> None:
        """
        Route a decoded server event to the matching callback.

        Args:
            event: Event returned by protocol.decode_line
        """
        if event.kind == Event.LOGINOK:
            self.dispatch_login_result(True, "")
        elif event.kind == Event.LOGINERR:
            self.dispatch_login_result(False, event.text)
        elif event.kind in (Event.MSG, Event.PRIVMSG, Event.INBOX):
            self.dispatch_message(event.message)
        elif event.kind == Event.MSGERR:
            self.dispatch_message_error(event.text)
        elif event.kind == Event.USERS:
            self.dispatch_user_list(event.items)
        elif event.kind == Event.SUPPORTED:
            self.dispatch_supported(event.items)
        elif event.kind == Event.MSGOK:
            logging.debug("Message accepted by server")
        else:
            self.dispatch_command_error(event.text)
