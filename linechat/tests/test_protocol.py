"""
Line Protocol Unit Tests

Tests command encoding and server line decoding.
"""

import unittest
from .. import protocol
from ..protocol import Command, Event


class TestEncoding(unittest.TestCase):
    """Unit tests for outgoing commands"""

    def test_commands(self):
        """Test encoding of every client command"""
        test_cases = [
            ((Command.LOGIN, "alice"), b"login alice\n"),
            ((Command.MSG, "hello everybody"), b"msg hello everybody\n"),
            ((Command.PRIVMSG, "bob", "hi there"), b"privmsg bob hi there\n"),
            ((Command.USERS,), b"users\n"),
            ((Command.HELP,), b"help\n"),
        ]

        for args, expected in test_cases:
            with self.subTest(command=args[0]):
                self.assertEqual(protocol.encode_command(*args), expected)

    def test_format_command(self):
        """Test the unencoded form used by the client"""
        self.assertEqual(protocol.format_command(Command.PRIVMSG, "bob", "hi"), "privmsg bob hi")

    def test_unicode(self):
        """Test that text is sent as UTF-8"""
        self.assertEqual(
            protocol.encode_command(Command.MSG, "blåbærsyltetøy"),
            "msg blåbærsyltetøy\n".encode("utf-8")
        )

    def test_invalid_lines(self):
        """Test that a command can not be split over several lines"""
        with self.assertRaises(protocol.ProtocolError):
            protocol.encode_command(Command.MSG, "first\nsecond")
        with self.assertRaises(protocol.ProtocolError):
            protocol.encode_line("msg one\r")
        with self.assertRaises(protocol.ProtocolError):
            protocol.encode_line("   ")

    def test_protocol_error_is_value_error(self):
        self.assertTrue(issubclass(protocol.ProtocolError, ValueError))


class TestDecoding(unittest.TestCase):
    """Unit tests for server lines"""

    def test_login_results(self):
        event = protocol.decode_line("loginok")
        self.assertEqual(event.kind, Event.LOGINOK)

        event = protocol.decode_line("loginerr username already in use\n")
        self.assertEqual(event.kind, Event.LOGINERR)
        self.assertEqual(event.text, "username already in use")

    def test_public_message(self):
        event = protocol.decode_line("msg alice Hello all")
        self.assertEqual(event.kind, Event.MSG)
        self.assertEqual(event.message, protocol.TextMessage("alice", False, "Hello all"))

    def test_private_message(self):
        """Decoding the line an encoded private message produces keeps sender and text"""
        line = protocol.encode_command(Command.PRIVMSG, "bob", "hi there").decode("utf-8")
        event = protocol.decode_line(line)

        self.assertEqual(event.kind, Event.PRIVMSG)
        self.assertEqual(event.message.sender, "bob")
        self.assertEqual(event.message.text, "hi there")
        self.assertTrue(event.message.private)

    def test_message_text_containing_keywords(self):
        """The text may repeat the keyword and the sender"""
        event = protocol.decode_line("msg bob msg bob said msg")
        self.assertEqual(event.message.sender, "bob")
        self.assertEqual(event.message.text, "msg bob said msg")

    def test_message_whitespace(self):
        """Runs of whitespace collapse to single spaces"""
        event = protocol.decode_line("privmsg  carol   two   spaces\r\n")
        self.assertEqual(event.message.sender, "carol")
        self.assertEqual(event.message.text, "two spaces")

    def test_message_without_text(self):
        event = protocol.decode_line("msg dave")
        self.assertEqual(event.message, protocol.TextMessage("dave", False, ""))

    def test_message_without_sender(self):
        """A msg line without a sender is reported as a command error"""
        event = protocol.decode_line("privmsg")
        self.assertEqual(event.kind, Event.CMDERR)
        self.assertIn("privmsg", event.text)

    def test_inbox(self):
        event = protocol.decode_line("inbox you have 2 new messages")
        self.assertEqual(event.kind, Event.INBOX)
        self.assertEqual(event.message, protocol.TextMessage("", False, "you have 2 new messages"))

    def test_lists(self):
        event = protocol.decode_line("users alice bob carol")
        self.assertEqual(event.kind, Event.USERS)
        self.assertEqual(event.items, ["alice", "bob", "carol"])

        event = protocol.decode_line("supported login msg privmsg users help")
        self.assertEqual(event.kind, Event.SUPPORTED)
        self.assertEqual(event.items, ["login", "msg", "privmsg", "users", "help"])

        event = protocol.decode_line("users")
        self.assertEqual(event.items, [])

    def test_errors(self):
        test_cases = [
            ("msgerr incorrect recipient", Event.MSGERR, "incorrect recipient"),
            ("cmderr command not supported", Event.CMDERR, "command not supported"),
            ("joke why did the chicken", Event.CMDERR, "why did the chicken"),
        ]

        for line, kind, text in test_cases:
            with self.subTest(line=line):
                event = protocol.decode_line(line)
                self.assertEqual(event.kind, kind)
                self.assertEqual(event.text, text)

    def test_msgok(self):
        self.assertEqual(protocol.decode_line("msgok 1").kind, Event.MSGOK)

    def test_empty_lines(self):
        for line in ("", "\n", "   \r\n"):
            with self.subTest(line=line):
                self.assertIsNone(protocol.decode_line(line))


if __name__ == "__main__":
    unittest.main()
