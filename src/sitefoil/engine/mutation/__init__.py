"""
Module: engine.mutation

Purpose:
    Mutation policy and word exclusion rules.
"""

from .exclusions import is_eligible, protected_words
from .policy import MutationPolicy, count_words

__all__ = [
    "MutationPolicy",
    "count_words",
    "is_eligible",
    "protected_words",
]
