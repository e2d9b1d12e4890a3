"""
Module: engine.markov

Purpose:
    Order-k Markov language model trained on the site's own text.
    ModelBuilder accumulates counts during the inventory phase and freezes
    into an immutable MarkovModel for the mutation phase.
"""

from .builder import (
    BLOCK_ELEMENTS,
    SENTENCE_BREAK,
    ModelBuilder,
    is_sentence_break,
    token_stream,
)
from .model import MarkovModel
from .sampling import FrequencyTable

__all__ = [
    "BLOCK_ELEMENTS",
    "FrequencyTable",
    "MarkovModel",
    "ModelBuilder",
    "SENTENCE_BREAK",
    "is_sentence_break",
    "token_stream",
]
