#!/usr/bin/env python3
"""
errors.py

Typed failures raised by the declaration engine.

"Name not found" is deliberately absent: a failed lookup is an ordinary
outcome and is reported as ``None`` / :class:`~decl_kg.kg.LookupResult`.

Author: Eric G. Suchanek, PhD
"""

from __future__ import annotations


class DeclKGError(Exception):
    """Base class for every error raised by decl_kg."""


class RootNotFoundError(DeclKGError, FileNotFoundError):
    """The source root handed to the engine does not exist or is not a directory."""

    def __init__(self, root: str) -> None:
        super().__init__(f"Source root not found: {root}")
        self.root = root


class FileParseError(DeclKGError):
    """
    A single source file could not be parsed.

    :param file: Root-relative file path.
    :param message: Human-readable reason.
    :param line: 1-based line of the first syntax error, if known.
    """

    def __init__(self, file: str, message: str, line: int | None = None) -> None:
        where = f"{file}:{line}" if line is not None else file
        super().__init__(f"{where}: {message}")
        self.file = file
        self.message = message
        self.line = line


class ScanTimeoutError(DeclKGError, TimeoutError):
    """The full scan exceeded its wall-clock budget."""

    def __init__(self, budget: float, scanned: int, total: int) -> None:
        super().__init__(
            f"Scan exceeded {budget:.1f}s budget after {scanned}/{total} files"
        )
        self.budget = budget
        self.scanned = scanned
        self.total = total


class ConfigError(DeclKGError):
    """Raised when environment configuration cannot be interpreted."""
