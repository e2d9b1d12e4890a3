"""
Core Models Package

Immutable data models shared by the engine and the corpus driver.

All models in this package are frozen dataclasses. This ensures:
1. No accidental mutation while files are processed in parallel
2. Safe to share between worker threads
3. Can be used as dict keys or in sets
"""

from .content import ContentKind, SiteFile
from .decisions import MutationDecision
from .spans import Span, SpanKind
from .tokens import Casing, Token, is_word

__all__ = [
    "Casing",
    "ContentKind",
    "MutationDecision",
    "SiteFile",
    "Span",
    "SpanKind",
    "Token",
    "is_word",
]
