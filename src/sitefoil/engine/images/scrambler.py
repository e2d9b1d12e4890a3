"""
Module: engine.images.scrambler

Purpose:
    Image scrambling. Marks round(f * N) distinct images of the inventory
    as replaceable and assigns each a different image from the whole
    inventory. In LINKS mode references in markup are rewritten; in BYTES
    mode the driver writes the substitute's bytes at the replaceable
    image's path.

Key Functions:
    - selection_count(): round-half-up of f * N
    - plan_scramble(): Seeded selection and substitution draws
    - rewrite_tag(): Point a tag's image references at substitutes

Key Classes:
    - ScramblePlan: Replaceable images and their substitutes

Dependencies:
    - random (std): Caller-provided seeded Random

Used By:
    - driver.pipeline: Builds the plan once per run
    - engine.content.mutate_content(): Rewrites references per document
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from sitefoil.core.models import Span, SpanKind

from ..config import ScrambleMode
from .inventory import ImageInventory
from .references import build_reference, find_references, resolve_reference

logger = logging.getLogger(__name__)


def selection_count(size: int, fraction: float) -> int:
    """
    Number of images to mark replaceable: round(fraction * size), halves up.

    Example:
        >>> selection_count(10, 0.4)
        4
        >>> selection_count(5, 0.5)
        3
    """
    return min(size, int(math.floor(fraction * size + 0.5)))


@dataclass(frozen=True)
class ScramblePlan:
    """
    Result of the image selection draws (immutable).

    Attributes:
        inventory: Inventory the plan was drawn from
        substitutes: Replaceable image -> substitute image
        mode: How the plan is applied

    Invariants:
        - No image maps to itself
        - Keys and values are inventory members
    """

    inventory: ImageInventory
    substitutes: Mapping[str, str] = field(default_factory=dict)
    mode: ScrambleMode = ScrambleMode.LINKS

    def __post_init__(self) -> None:
        """Validate and freeze the mapping."""
        for original, substitute in self.substitutes.items():
            if original == substitute:
                raise ValueError(f"image {original!r} substituted with itself")
            if original not in self.inventory or substitute not in self.inventory:
                raise ValueError(f"{original!r} -> {substitute!r} is not within the inventory")
        object.__setattr__(self, "substitutes", MappingProxyType(dict(self.substitutes)))

    @classmethod
    def empty(cls, inventory: Optional[ImageInventory] = None) -> ScramblePlan:
        return cls(inventory=inventory or ImageInventory())

    @property
    def replaceable(self) -> Tuple[str, ...]:
        return tuple(sorted(self.substitutes))

    def substitute_for(self, asset_id: Optional[str]) -> Optional[str]:
        if asset_id is None:
            return None
        return self.substitutes.get(asset_id)


def plan_scramble(
    inventory: ImageInventory,
    fraction: float,
    rng: random.Random,
    mode: ScrambleMode = ScrambleMode.LINKS,
) -> ScramblePlan:
    """
    Draw the replaceable set and substitutes.

    Selection is uniform without replacement over the inventory. Each
    substitute is uniform over the other N - 1 images.

    Args:
        inventory: All image assets in the site
        fraction: Share of images to replace, in [0, 1]
        rng: Seeded random source dedicated to image draws
        mode: How the plan will be applied

    Returns:
        ScramblePlan; empty when fewer than two images exist

    Example:
        >>> inv = ImageInventory.from_paths(f"{i}.png" for i in range(10))
        >>> len(plan_scramble(inv, 0.4, random.Random(1)).substitutes)
        4
    """
    size = len(inventory)
    count = selection_count(size, fraction)
    if size < 2 or count == 0:
        if count and size == 1:
            logger.warning("Only one image in the site; nothing to substitute it with")
        return ScramblePlan(inventory=inventory, mode=mode)

    selected = rng.sample(range(size), count)
    substitutes = {}
    for index in sorted(selected):
        other = rng.randrange(size - 1)
        if other >= index:
            other += 1
        substitutes[inventory[index]] = inventory[other]

    logger.info(
        f"Scrambling {count} of {size} images ({mode} mode)",
        extra={"images": size, "replaceable": count, "mode": str(mode)},
    )
    return ScramblePlan(inventory=inventory, substitutes=substitutes, mode=mode)


def rewrite_tag(
    span: Span,
    document_path: PurePosixPath,
    plan: ScramblePlan,
) -> Tuple[str, int]:
    """
    Rewrite the image references of one tag span.

    Args:
        span: Structural tag span
        document_path: Root-relative path of the document holding the tag
        plan: Scramble plan

    Returns:
        (new tag text, number of references rewritten)
    """
    if span.kind is not SpanKind.STRUCTURAL or span.tag is None or span.is_closing_tag:
        return span.text, 0
    if not plan.substitutes:
        return span.text, 0

    text = span.text
    rewritten = 0
    # Apply right to left so earlier offsets stay valid
    for ref in reversed(find_references(text, span.element)):
        substitute = plan.substitute_for(resolve_reference(ref.url, document_path))
        if substitute is None:
            continue
        new_url = build_reference(ref.url, substitute, document_path)
        text = text[:ref.start] + new_url + text[ref.end:]
        rewritten += 1
    return text, rewritten
