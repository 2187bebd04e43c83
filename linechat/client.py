"""
Line Protocol Chat Client

Client for the line-based chat protocol. Commands are sent from the
caller's thread; server events are read by a background receive loop and
delivered to registered ChatListener objects.
"""

import logging
from typing import Optional

from . import protocol
from .config import ClientConfig
from .connection import ConnectionManager
from .listener import ChatListener, EventDispatcher
from .receiver import ReceiveLoop

PUBLIC_MESSAGE_ERROR = "Public messages must start with the msg command"


class ChatClient:
    """
    Chat client over a single TCP connection.

    Typical use:
        client = ChatClient()
        client.add_listener(my_listener)
        if client.connect("localhost", 1300):
            client.start_listen_thread()
            client.try_login("alice")

    Attributes:
        config: Client settings
        dispatcher: Listener registry and event fan-out
        manager: Owner of the socket
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        """Initialize the chat client"""
        self.config = config or ClientConfig()
        self.dispatcher = EventDispatcher()
        self.manager = ConnectionManager(
            on_disconnect=self.dispatcher.dispatch_disconnect,
            encoding=self.config.encoding,
            buffer_size=self.config.buffer_size,
            max_line_bytes=self.config.max_line_bytes
        )
        self._receiver: Optional[ReceiveLoop] = None
        logging.debug("Initialized chat client")

    # Connection

    def connect(self, host: Optional[str] = None, port: Optional[int] = None) -> bool:
        """
        Connect to a chat server.

        Args:
            host: Server host, defaults to the configured host
            port: Server port, defaults to the configured port

        Returns:
            bool: True on success, False otherwise (see get_last_error)
        """
        host = host if host is not None else self.config.host
        port = port if port is not None else self.config.port
        connection = self.manager.connect(host, port)
        if connection is None:
            return False
        self._receiver = ReceiveLoop(self.manager, connection, self.dispatcher)
        return True

    def disconnect(self) -> None:
        """Close the connection; listeners get on_disconnect once"""
        self.manager.disconnect()

    def is_connection_active(self) -> bool:
        """True if the connection is open"""
        return self.manager.is_active()

    def start_listen_thread(self) -> None:
        """
        Start receiving server events in a background thread.

        Raises:
            RuntimeError: If there is no connection, or the listen thread for
                          this connection was already started
        """
        receiver = self._receiver
        if receiver is None or receiver.connection is None \
                or receiver.connection is not self.manager.connection:
            raise RuntimeError("Not connected to server")
        receiver.start()

    @property
    def receiver(self) -> Optional[ReceiveLoop]:
        """Receive loop of the most recent connection"""
        return self._receiver

    def get_last_error(self) -> str:
        """The last error message, or "" if there has been no error"""
        return self.manager.last_error

    # Listeners

    def add_listener(self, listener: ChatListener) -> None:
        self.dispatcher.add_listener(listener)

    def remove_listener(self, listener: ChatListener) -> None:
        self.dispatcher.remove_listener(listener)

    # Commands

    def _send(self, command: protocol.Command, *args: str) -> bool:
        return self.manager.send_line(protocol.format_command(command, *args))

    def try_login(self, username: str) -> bool:
        """
        Send a login request. The result arrives as on_login_result.

        Returns:
            bool: True if the request was sent
        """
        return self._send(protocol.Command.LOGIN, username)

    def send_public_message(self, message: str) -> bool:
        """
        Send a public message to all users.

        Args:
            message: Complete command line, starting with "msg"

        Returns:
            bool: True if the message was sent
        """
        tokens = message.split(protocol.TOKEN_SEPARATOR)
        if tokens[0] != protocol.Command.MSG.value:
            self.manager.set_error(PUBLIC_MESSAGE_ERROR)
            logging.error(f"{PUBLIC_MESSAGE_ERROR}: {message!r}")
            return False
        return self.manager.send_line(message)

    def send_private_message(self, recipient: str, message: str) -> bool:
        """
        Send a private message to a single user.

        Args:
            recipient: Username of the receiver
            message: Message text

        Returns:
            bool: True if the message was sent
        """
        return self._send(protocol.Command.PRIVMSG, recipient, message)

    def refresh_user_list(self) -> bool:
        """Ask for the users online. The answer arrives as on_user_list."""
        return self._send(protocol.Command.USERS)

    def ask_supported_commands(self) -> bool:
        """Ask which commands the server supports. The answer arrives as on_supported_commands."""
        return self._send(protocol.Command.HELP)

    def send_request(self, request: str) -> bool:
        """Send a raw protocol line as is"""
        return self.manager.send_line(request)
