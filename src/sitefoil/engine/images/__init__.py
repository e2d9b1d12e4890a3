"""
Module: engine.images

Purpose:
    Image inventory, reference scanning and seeded image scrambling.
"""

from .inventory import ImageInventory
from .references import UrlReference, build_reference, find_references, resolve_reference
from .scrambler import ScramblePlan, plan_scramble, rewrite_tag, selection_count

__all__ = [
    "ImageInventory",
    "ScramblePlan",
    "UrlReference",
    "build_reference",
    "find_references",
    "plan_scramble",
    "resolve_reference",
    "rewrite_tag",
    "selection_count",
]
