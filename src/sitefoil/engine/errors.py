"""
Module: engine.errors

Purpose:
    Exception hierarchy for the mutation engine and corpus driver. Every
    kind except ConfigurationError is recoverable per file: the driver
    records it and carries on with the rest of the site.

Key Classes:
    - SitefoilError: Base class
    - UnreadableInput: File could not be read
    - UnclassifiableContent: Content kind could not be determined
    - ReassemblyInvariantViolation: Spans do not losslessly cover a document
    - ModelExhausted: Sampling requested from an empty model
    - OutputWriteFailure: Output file could not be written
    - ConfigurationError: Invalid configuration detected before processing
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class SitefoilError(Exception):
    """Base class for sitefoil errors."""
    pass


class UnreadableInput(SitefoilError):
    """A file could not be read (permissions, I/O error)."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot read {path}: {reason}")
        self.path = path
        self.reason = reason


class UnclassifiableContent(SitefoilError):
    """Content kind could not be determined; callers treat the file as opaque."""
    pass


class ReassemblyInvariantViolation(SitefoilError):
    """Tokenizer output or reassembled output does not match the input."""

    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} (at offset {offset})"
        super().__init__(message)
        self.offset = offset


class ModelExhausted(SitefoilError):
    """Sampling was requested from a model trained on no text."""
    pass


class OutputWriteFailure(SitefoilError):
    """An output file could not be written."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot write {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigurationError(SitefoilError, ValueError):
    """Unrecoverable configuration problem detected before processing begins."""
    pass
