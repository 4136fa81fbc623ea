"""
CLI logger adapter - implements LoggerProtocol for command-line usage.

Writes to stderr so that stdout only carries JSON Lines output.
"""

from __future__ import annotations

import sys


class CLILogger:
    """
    Logger implementation for CLI (implements LoggerProtocol from protocols).

    Outputs messages to stderr with optional verbose mode.
    """

    def __init__(self, verbose: bool = False) -> None:
        """
        Initialize CLI logger.

        Args:
            verbose: If True, show info messages. If False, only warnings/errors.
        """
        self.verbose = verbose

    def info(self, message: str) -> None:
        """Log info message (only if verbose)."""
        if self.verbose:
            print(f'[INFO] {message}', file=sys.stderr)

    def warning(self, message: str) -> None:
        """Log warning message."""
        print(f'[WARNING] {message}', file=sys.stderr)

    def error(self, message: str) -> None:
        """Log error message."""
        print(f'[ERROR] {message}', file=sys.stderr)
