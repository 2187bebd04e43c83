"""
Line Protocol Implementation

Defines the text protocol spoken between the chat client and the server.

Protocol Structure:
1. Message Format:
   <keyword> <token> <token> ...\\n
   - One command or event per line
   - Tokens are separated by a single space
   - Free text (message bodies, error reasons) is the rest of the line
     and is never quoted or escaped

2. Client Commands:
   - login, msg, privmsg, users, help

3. Server Events:
   - Login (loginok, loginerr)
   - Messaging (msg, privmsg, inbox, msgok, msgerr)
   - Listings (users, supported)
   - Error handling (cmderr)
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional

LINE_TERMINATOR = "\n"
TOKEN_SEPARATOR = " "


class ProtocolError(ValueError):
    """Raised when an outgoing command cannot be put on the wire"""


class Command(Enum):
    """
    Keywords of the commands a client sends.

    Commands:
        LOGIN: Log in with a username
        MSG: Public message to everybody
        PRIVMSG: Private message to a single user
        USERS: Ask for the users currently online
        HELP: Ask for the commands the server supports
    """
    LOGIN = "login"
    MSG = "msg"
    PRIVMSG = "privmsg"
    USERS = "users"
    HELP = "help"


class Event(Enum):
    """Keywords of the lines a server sends"""
    LOGINOK = "loginok"
    LOGINERR = "loginerr"
    MSG = "msg"
    PRIVMSG = "privmsg"
    INBOX = "inbox"
    MSGOK = "msgok"
    MSGERR = "msgerr"
    CMDERR = "cmderr"
    USERS = "users"
    SUPPORTED = "supported"


# Events whose whole payload is a single free-text field
TEXT_EVENTS = (Event.LOGINERR, Event.MSGERR, Event.CMDERR, Event.INBOX)

# Events whose payload is a list with one entry per token
LIST_EVENTS = (Event.USERS, Event.SUPPORTED)


@dataclass
class TextMessage:
    """
    A chat message received from the server.

    Attributes:
        sender: Username of the sender, empty for inbox messages
        private: True if the message was sent only to us
        text: Message text
    """
    sender: str
    private: bool
    text: str


@dataclass
class ServerEvent:
    """
    A decoded server line.

    Only the attributes relevant for the event kind are filled in:
    text events carry `text`, msg/privmsg carry `message`, listings
    carry `items`.
    """
    kind: Event
    text: str = ""
    message: Optional[TextMessage] = None
    items: List[str] = field(default_factory=list)


def format_command(command: Command, *args: str) -> str:
    """Join a command keyword and its arguments into one protocol line"""
    return TOKEN_SEPARATOR.join([command.value, *args])


def encode_command(command: Command, *args: str) -> bytes:
    """
    Encode a command according to the line protocol.

    Args:
        command: The command keyword
        *args: Arguments, appended after the keyword. Free text may
               contain spaces and is sent as is.

    Returns:
        bytes: The complete line, UTF-8 encoded, including the terminator

    Raises:
        ProtocolError: If an argument contains a line break
    """
    return encode_line(format_command(command, *args))


def encode_line(line: str, encoding: str = "utf-8") -> bytes:
    """Encode a raw protocol line, appending the line terminator"""
    if not line.strip():
        raise ProtocolError("Cannot send an empty command")
    if "\n" in line or "\r" in line:
        raise ProtocolError("A command must fit on a single line")
    return (line + LINE_TERMINATOR).encode(encoding)


def _rest(tokens: List[str], start: int) -> str:
    return TOKEN_SEPARATOR.join(tokens[start:])


def decode_line(line: str) -> Optional[ServerEvent]:
    """
    Decode one line received from the server.

    Args:
        line: The received line, with or without its terminator

    Returns:
        ServerEvent for the line, or None for an empty line.
        Unknown keywords and malformed lines come back as CMDERR events
        so the caller can report them instead of failing.
    """
    tokens = line.split()
    if not tokens:
        return None

    keyword = tokens[0]
    try:
        kind = Event(keyword)
    except ValueError:
        return ServerEvent(Event.CMDERR, text=_rest(tokens, 1))

    if kind in (Event.MSG, Event.PRIVMSG):
        if len(tokens) < 2:
            return ServerEvent(Event.CMDERR, text=f"Malformed {keyword} line: {line.strip()}")
        message = TextMessage(
            sender=tokens[1],
            private=kind == Event.PRIVMSG,
            text=_rest(tokens, 2)
        )
        return ServerEvent(kind, text=message.text, message=message)

    if kind == Event.INBOX:
        text = _rest(tokens, 1)
        return ServerEvent(kind, text=text, message=TextMessage(sender="", private=False, text=text))

    if kind in LIST_EVENTS:
        return ServerEvent(kind, items=tokens[1:])

    if kind in TEXT_EVENTS:
        return ServerEvent(kind, text=_rest(tokens, 1))

    # loginok, msgok
    return ServerEvent(kind)
