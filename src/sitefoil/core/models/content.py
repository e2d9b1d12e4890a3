"""
Module: content

Purpose:
    Provides ContentKind - the declared type of a site file - and SiteFile,
    the unit the corpus driver hands to the engine.

Key Classes:
    - ContentKind: MARKUP / PLAIN_TEXT / IMAGE / OPAQUE
    - SiteFile: A discovered file with its relative path and kind

Dependencies:
    - dataclasses (std)
    - pathlib (std)

Used By:
    - driver.classification: Assigns ContentKind
    - driver.walker: Builds SiteFile records
    - engine.tokenizer: Chooses markup or plain segmentation
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath


class ContentKind(str, Enum):
    """Declared kind of a site file."""
    MARKUP = "markup"          # Hypertext documents
    PLAIN_TEXT = "plain_text"
    IMAGE = "image"
    OPAQUE = "opaque"          # Passthrough (stylesheets, binaries, unknown)

    def __str__(self) -> str:
        return self.value

    @property
    def is_text(self) -> bool:
        """True for kinds whose words feed the Markov model."""
        return self in (ContentKind.MARKUP, ContentKind.PLAIN_TEXT)


@dataclass(frozen=True, slots=True)
class SiteFile:
    """
    A file discovered under a site root (immutable).

    Attributes:
        path: Absolute path on disk
        relative: POSIX path relative to the site root ("blog/index.html")
        kind: Classified content kind

    Example:
        >>> f = SiteFile(Path("/site/a/b.html"), PurePosixPath("a/b.html"), ContentKind.MARKUP)
        >>> f.asset_id
        'a/b.html'
    """

    path: Path
    relative: PurePosixPath
    kind: ContentKind

    @property
    def asset_id(self) -> str:
        """Root-relative identifier used by the image inventory."""
        return self.relative.as_posix()
