"""
Receive Loop

Background thread that reads lines from one connection, decodes them and
hands the events to the dispatcher until the connection goes away.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from . import protocol
from .connection import LINE_TOO_LONG_ERROR, Connection, ConnectionManager
from .listener import EventDispatcher


class LoopState(Enum):
    """Lifecycle of a receive loop; STOPPED is final"""
    NOT_STARTED = "not started"
    RUNNING = "running"
    STOPPED = "stopped"


class ReceiveLoop:
    """
    The single reader of a connection.

    A loop belongs to exactly one connection and runs at most once. It
    stops on end of stream, on a socket error or when the connection is
    closed from another thread, and it closes the connection itself in the
    first two cases.

    Attributes:
        manager: Connection manager used for the liveness check and teardown
        connection: The connection this loop reads from
        dispatcher: Receives every decoded event
        state: Current LoopState
    """

    def __init__(self, manager: ConnectionManager, connection: Optional[Connection],
                 dispatcher: EventDispatcher):
        self.manager = manager
        self.connection = connection
        self.dispatcher = dispatcher
        self.state = LoopState.NOT_STARTED
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()

    def start(self) -> None:
        """
        Start reading in a daemon thread.

        Raises:
            RuntimeError: If the loop has no connection or was already started
        """
        if self.connection is None:
            raise RuntimeError("Receive loop has no connection")
        with self._state_lock:
            if self.state != LoopState.NOT_STARTED:
                raise RuntimeError(f"Receive loop is {self.state.value}, it can only be started once")
            self.state = LoopState.RUNNING
            host, port = self.connection.remote_address
            self._thread = threading.Thread(
                target=self.run,
                name=f"linechat-receive-{host}:{port}",
                daemon=True
            )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        """Wait for the loop thread to finish"""
        if self._thread:
            self._thread.join(timeout)

    def is_running(self) -> bool:
        return self.state == LoopState.RUNNING

    def _is_current(self) -> bool:
        return self.manager.is_active() and self.manager.connection is self.connection

    def run(self) -> None:
        """Read, decode and dispatch lines until the connection ends"""
        logging.debug("Receive loop started")
        try:
            while self._is_current():
                try:
                    line = self.connection.read_line()
                except OSError as e:
                    if self._is_current():
                        logging.error(f"Error reading from server: {e}")
                    break
                except protocol.ProtocolError as e:
                    if self._is_current():
                        logging.error(f"Protocol violation by server: {e}")
                        self.manager.set_error(LINE_TOO_LONG_ERROR)
                    break

                if line is None:
                    if self._is_current():
                        logging.info("Server closed the connection")
                    break

                logging.debug(f"Received: {line}")
                self.handle_line(line)
        finally:
            self.manager.disconnect(self.connection)
            self.state = LoopState.STOPPED
            logging.debug("Receive loop stopped")

    def handle_line(self, line: str) -> None:
        """Decode one line and dispatch it; empty lines are ignored"""
        event = protocol.decode_line(line)
        if event is None:
            return
        self.dispatcher.dispatch(event)
