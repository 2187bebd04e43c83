"""
Client Configuration

Settings for the chat client. Values come from, in order of priority,
command-line flags (see run_client.py), environment variables and the
defaults below.

Environment variables:
    CHAT_HOST       Server host (default: localhost)
    CHAT_PORT       Server port (default: 1300)
    CHAT_LOG_LEVEL  Logging level (default: INFO)
"""

import os
from dataclasses import dataclass

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ClientConfig:
    """
    Configuration for the chat client.

    Attributes:
        host: Chat server host name or IP address
        port: Chat server TCP port
        log_level: Name of the logging level used by the runner
        encoding: Text encoding of protocol lines
        buffer_size: Number of bytes requested per socket read
        max_line_bytes: Longest line accepted from the server
    """
    host: str = "localhost"
    port: int = 1300
    log_level: str = "INFO"
    encoding: str = "utf-8"
    buffer_size: int = 4096
    max_line_bytes: int = 65536

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Create configuration from environment variables"""
        return cls(
            host=os.getenv("CHAT_HOST", "localhost"),
            port=int(os.getenv("CHAT_PORT", "1300")),
            log_level=os.getenv("CHAT_LOG_LEVEL", "INFO").upper(),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ValueError: If a value is out of range
        """
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")

        if self.log_level.upper() not in LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.max_line_bytes < 1:
            raise ValueError("max_line_bytes must be >= 1")
