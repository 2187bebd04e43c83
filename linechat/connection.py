"""
Connection Management

Owns the TCP socket shared between the caller's thread and the receive
thread. Every transition between connected and disconnected happens under
one lock, so a disconnect requested by the user and a disconnect caused by a
read failure close the socket and notify listeners exactly once.
"""

import logging
import socket
import threading
from typing import Callable, Optional, Tuple

from .protocol import ProtocolError, encode_line

NOT_CONNECTED_ERROR = "Server is not connected, could not send message"
CONNECT_ERROR = "Could not connect to server"
ALREADY_CONNECTED_ERROR = "Already connected to a server"
SEND_ERROR = "Could not send command to server"
LINE_TOO_LONG_ERROR = "Line from server too long"


class Connection:
    """
    One open TCP connection to the chat server.

    Attributes:
        sock: The connected socket
        remote_address: (host, port) the socket was opened to
        encoding: Text encoding of protocol lines
        buffer_size: Bytes requested per recv call
        max_line_bytes: Longest accepted incoming line, terminator excluded
    """

    def __init__(self, sock: socket.socket, remote_address: Tuple[str, int],
                 encoding: str = "utf-8", buffer_size: int = 4096,
                 max_line_bytes: int = 65536):
        self.sock = sock
        self.remote_address = remote_address
        self.encoding = encoding
        self.buffer_size = buffer_size
        self.max_line_bytes = max_line_bytes
        self.closed = False
        self._buffer = b""
        self._eof = False
        self._write_lock = threading.Lock()

    def read_line(self) -> Optional[str]:
        """
        Block until a complete line is received.

        Returns:
            The line without its terminator, or None at end of stream.
            A last line that ends without a terminator is still returned.

        Raises:
            ProtocolError: If a line is longer than max_line_bytes
            OSError: If the socket fails or was closed by another thread
        """
        while b"\n" not in self._buffer:
            if self._eof:
                if not self._buffer:
                    return None
                line, self._buffer = self._buffer, b""
                return self._decode(line)
            # One byte of slack for a trailing \r
            if len(self._buffer) > self.max_line_bytes + 1:
                raise ProtocolError(f"Line exceeds {self.max_line_bytes} bytes")

            chunk = self.sock.recv(self.buffer_size)
            if not chunk:
                self._eof = True
            self._buffer += chunk

        line, _, self._buffer = self._buffer.partition(b"\n")
        return self._decode(line)

    def _decode(self, line: bytes) -> str:
        if line.endswith(b"\r"):
            line = line[:-1]
        if len(line) > self.max_line_bytes:
            raise ProtocolError(f"Line exceeds {self.max_line_bytes} bytes")
        return line.decode(self.encoding, errors="replace")

    def write_line(self, line: str) -> None:
        """
        Send one protocol line.

        Raises:
            ProtocolError: If the line is empty or contains a line break
            OSError: If the connection is closed or the socket fails
        """
        data = encode_line(line, self.encoding)
        with self._write_lock:
            if self.closed:
                raise OSError("Connection is closed")
            self.sock.sendall(data)

    def close(self) -> None:
        """Shut down and close the socket, waking up a blocked reader"""
        self.closed = True
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Peer already gone
            logging.debug(f"Socket shutdown failed: {e}")
        self.sock.close()


class ConnectionManager:
    """
    Connect, disconnect and send through a single shared connection.

    Attributes:
        encoding: Text encoding used for new connections
        buffer_size: recv size used for new connections
        max_line_bytes: Incoming line limit used for new connections
    """

    def __init__(self, on_disconnect: Optional[Callable[[], None]] = None,
                 encoding: str = "utf-8", buffer_size: int = 4096,
                 max_line_bytes: int = 65536):
        """
        Args:
            on_disconnect: Called once for every connection that gets closed,
                           while the manager lock is held
            encoding: Text encoding of protocol lines
            buffer_size: Bytes requested per recv call
            max_line_bytes: Longest accepted incoming line
        """
        self.encoding = encoding
        self.buffer_size = buffer_size
        self.max_line_bytes = max_line_bytes
        self._on_disconnect = on_disconnect
        self._connection: Optional[Connection] = None
        self._last_error: Optional[str] = None
        # Reentrant so a disconnect callback may reconnect
        self._lock = threading.RLock()

    @property
    def connection(self) -> Optional[Connection]:
        """The current connection, None when disconnected"""
        return self._connection

    @property
    def remote_address(self) -> Optional[Tuple[str, int]]:
        connection = self._connection
        return connection.remote_address if connection else None

    @property
    def last_error(self) -> str:
        """Most recent error message, or "" if there has been no error"""
        return self._last_error or ""

    def is_active(self) -> bool:
        """True if a connection is currently held"""
        return self._connection is not None

    def _refuse_connect(self, host: str, port: int) -> None:
        self._last_error = ALREADY_CONNECTED_ERROR
        logging.warning(f"Connect to {host}:{port} refused: {ALREADY_CONNECTED_ERROR}")

    def connect(self, host: str, port: int) -> Optional[Connection]:
        """
        Connect to a chat server.

        The socket is opened without holding the manager lock, so a slow
        connect never blocks disconnect or send on another thread.

        Args:
            host: Host name or IP address of the server
            port: TCP port of the server

        Returns:
            The new connection, or None on failure (last_error describes the
            problem)
        """
        with self._lock:
            if self._connection is not None:
                self._refuse_connect(host, port)
                return None

        try:
            sock = socket.create_connection((host, port))
        except (OSError, OverflowError) as e:
            self._last_error = CONNECT_ERROR
            logging.error(f"Connection to {host}:{port} failed: {e}")
            return None

        connection = Connection(sock, (host, port), self.encoding,
                                self.buffer_size, self.max_line_bytes)
        with self._lock:
            if self._connection is not None:
                # Another thread connected while the socket was opening
                connection.close()
                self._refuse_connect(host, port)
                return None
            self._connection = connection

        logging.info(f"Connected to server at {host}:{port}")
        return connection

    def disconnect(self, expected: Optional[Connection] = None) -> bool:
        """
        Close the connection. Does nothing when not connected.

        Args:
            expected: Only disconnect if this is still the current connection.
                      Used by a receive loop so that a stale loop never closes
                      a newer connection.

        Returns:
            bool: True if this call closed the connection
        """
        with self._lock:
            connection = self._connection
            if connection is None or (expected is not None and connection is not expected):
                return False

            self._connection = None
            connection.close()
            host, port = connection.remote_address
            logging.info(f"Disconnected from {host}:{port}")

            if self._on_disconnect:
                self._on_disconnect()
        return True

    def send_line(self, line: str) -> bool:
        """
        Send one protocol line to the server.

        Returns:
            bool: True if the line was written. On failure last_error is set;
                  a socket error also closes the connection.
        """
        connection = self._connection
        if connection is None:
            self._last_error = NOT_CONNECTED_ERROR
            logging.error(NOT_CONNECTED_ERROR)
            return False

        try:
            connection.write_line(line)
        except ProtocolError as e:
            self._last_error = str(e)
            logging.error(f"Refused to send {line!r}: {e}")
            return False
        except OSError as e:
            self._last_error = SEND_ERROR
            logging.error(f"Error sending command: {e}")
            self.disconnect(connection)
            return False

        logging.debug(f"Sent: {line}")
        return True

    def set_error(self, message: str) -> None:
        """Record an error detected outside the manager"""
        self._last_error = message
