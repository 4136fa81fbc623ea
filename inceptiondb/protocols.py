"""
Shared protocols for the InceptionDB client.

This module contains Protocol definitions used across the client, the CLI and
tests, so every logger implementation satisfies the same interface.
"""

from __future__ import annotations

from typing import Protocol


class LoggerProtocol(Protocol):
    """
    Protocol for logger - lets the client work with any logging implementation.

    Implementations:
    - CLILogger (cli/logger.py): Logs to stderr with optional verbose mode
    - NullLogger (below): No-op implementation, the client default
    """

    def info(self, message: str) -> None: ...
    def warning(self, message: str) -> None: ...
    def error(self, message: str) -> None: ...


class NullLogger:
    """
    No-op logger implementation for when logging is optional.

    Used by InceptionDBClient when the caller doesn't pass a logger.
    """

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass
