from __future__ import annotations

from typing import Optional


class AspectToolError(Exception):
    """Base error. ``exit_code`` is the status the CLI exits with."""

    exit_code = 1

    def __init__(self, message: str, exit_code: Optional[int] = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(AspectToolError):
    """Raised when the project configuration is missing a required value."""

    exit_code = 0


class ValidationError(AspectToolError):
    """Raised for bad user input: join points, targets, addresses, binaries."""

    exit_code = 0


class CompileError(AspectToolError):
    """Raised when the compiler cannot be started at all."""


class ChainError(AspectToolError):
    """Raised when talking to the chain node fails."""


class TransactionReverted(ChainError):
    def __init__(self, message: str, tx_hash: str, reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash
        self.reason = reason


class RegistryError(AspectToolError):
    """Raised when the local deployment record cannot be read or written."""
