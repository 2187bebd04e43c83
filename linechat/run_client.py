"""
Chat Client Runner

Console front end for the chat client. Server events are printed as they
arrive; lines typed by the user are turned into commands.

Commands:
    /login <name>        Log in
    /users               List users online
    /help                List commands supported by the server
    /pm <user> <text>    Private message
    /raw <line>          Send a raw protocol line
    /quit                Disconnect and exit
    anything else        Public message
"""

import argparse
import logging
import sys
from typing import List, Optional, TextIO, Tuple

from .client import ChatClient
from .config import ClientConfig
from .listener import ChatListener
from .protocol import TextMessage


class ConsoleListener(ChatListener):
    """Prints server events to a text stream"""

    def __init__(self, out: Optional[TextIO] = None):
        self.out = out

    def _print(self, text: str) -> None:
        print(text, file=self.out or sys.stdout, flush=True)

    def on_login_result(self, success: bool, error: str) -> None:
        self._print("Logged in successfully!" if success else f"Login failed: {error}")

    def on_message_received(self, message: TextMessage) -> None:
        if not message.sender:
            self._print(f"[inbox] {message.text}")
        elif message.private:
            self._print(f"[private] {message.sender}: {message.text}")
        else:
            self._print(f"{message.sender}: {message.text}")

    def on_message_error(self, error: str) -> None:
        self._print(f"Message not delivered: {error}")

    def on_command_error(self, error: str) -> None:
        self._print(f"Command error: {error}")

    def on_user_list(self, users: List[str]) -> None:
        self._print("Users online: " + ", ".join(users))

    def on_supported_commands(self, commands: List[str]) -> None:
        self._print("Supported commands: " + ", ".join(commands))

    def on_disconnect(self) -> None:
        self._print("Disconnected from server")


def handle_input(client: ChatClient, line: str) -> bool:
    """
    Turn one line of user input into a command.

    Returns:
        bool: False when the user asked to quit
    """
    line = line.strip()
    if not line:
        return True

    if not line.startswith("/"):
        sent = client.send_public_message(f"msg {line}")
    else:
        command, _, rest = line[1:].partition(" ")
        rest = rest.strip()
        if command == "quit":
            return False
        elif command == "login" and rest:
            sent = client.try_login(rest)
        elif command == "users":
            sent = client.refresh_user_list()
        elif command == "help":
            sent = client.ask_supported_commands()
        elif command == "pm" and " " in rest:
            recipient, text = rest.split(" ", 1)
            sent = client.send_private_message(recipient, text.strip())
        elif command == "raw" and rest:
            sent = client.send_request(rest)
        else:
            print("Invalid command!")
            return True

    if not sent:
        print(f"Error: {client.get_last_error()}")
    return client.is_connection_active()


def main_loop(client: ChatClient, stream: Optional[TextIO] = None) -> None:
    """Read commands until /quit, end of input or disconnect"""
    for line in stream or sys.stdin:
        if not handle_input(client, line):
            break


def parse_args(argv: Optional[List[str]] = None) -> Tuple[ClientConfig, Optional[str]]:
    """Build the client configuration and the optional login name"""
    defaults = ClientConfig.from_env()
    parser = argparse.ArgumentParser(description="Chat client (line protocol)")
    parser.add_argument("--host", default=defaults.host, help="Server host")
    parser.add_argument("--port", type=int, default=defaults.port, help="Server port")
    parser.add_argument("--username", help="Log in with this username after connecting")
    parser.add_argument("--log-level", default=defaults.log_level, help="Logging level")
    args = parser.parse_args(argv)

    config = ClientConfig(host=args.host, port=args.port, log_level=args.log_level.upper())
    config.validate()
    return config, args.username


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    config, username = parse_args(argv)
    logging.basicConfig(
        level=config.log_level,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    client = ChatClient(config)
    client.add_listener(ConsoleListener())
    if not client.connect():
        print(f"Error: {client.get_last_error()}")
        return 1

    try:
        client.start_listen_thread()
        if username:
            client.try_login(username)
        main_loop(client)
    except KeyboardInterrupt:
        print("\nShutting down client...")
    finally:
        client.disconnect()
    return 0


if __name__ == "__main__":
    sys.exit(main())
