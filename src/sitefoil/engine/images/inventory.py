"""
Module: engine.images.inventory

Purpose:
    Deduplicated, indexed list of the image assets in a site. Paths are
    kept in sorted order so indices are stable regardless of the order in
    which parallel scans discover or merge them.

Key Classes:
    - ImageInventory: Immutable ordered set of root-relative image paths

Dependencies:
    - dataclasses (std)

Used By:
    - engine.images.scrambler: Selection and substitution draws by index
    - driver.pipeline: Built during the inventory phase
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, Optional, Tuple


@dataclass(frozen=True)
class ImageInventory:
    """
    Ordered, deduplicated image asset identifiers.

    Attributes:
        paths: Root-relative POSIX paths, sorted and unique

    Example:
        >>> inv = ImageInventory.from_paths(["b.png", "a.png", "b.png"])
        >>> inv.paths
        ('a.png', 'b.png')
        >>> inv.index_of("b.png")
        1
    """

    paths: Tuple[str, ...] = ()
    _index: Dict[str, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        """Normalize to sorted unique paths and build the index."""
        paths = tuple(sorted(set(self.paths)))
        object.__setattr__(self, "paths", paths)
        object.__setattr__(self, "_index", {path: i for i, path in enumerate(paths)})

    @classmethod
    def from_paths(cls, paths: Iterable[str]) -> ImageInventory:
        return cls(paths=tuple(paths))

    def merge(self, other: ImageInventory) -> ImageInventory:
        """Set union; associative and commutative."""
        return ImageInventory(paths=self.paths + other.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __contains__(self, path: object) -> bool:
        return path in self._index

    def __getitem__(self, index: int) -> str:
        return self.paths[index]

    def index_of(self, path: str) -> Optional[int]:
        return self._index.get(path)
