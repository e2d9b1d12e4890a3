"""
Module: engine.maze

Purpose:
    Link maze: static pages of Markov-generated text whose links lead only
    to further maze pages, plus the hidden anchor embedded in real pages
    to lead crawlers into the maze.

Key Functions:
    - random_link_name(): 4-15 random alphanumerics
    - maze_anchor(): Hidden <a> pointing into the maze
    - render_maze_page(): One HTML page of generated text
    - generate_maze_pages(): (name, bytes) pairs for a set of pages

Dependencies:
    - html (std): Escaping
    - engine.markov.MarkovModel: Text generation

Used By:
    - engine.content.mutate_content(): maze_anchor()
    - driver.pipeline.build_maze(): Writes pages to disk
"""

from __future__ import annotations

import html
import random
import string
from typing import Iterator, List, Optional, Sequence, Tuple

from .markov import MarkovModel

LINK_ALPHABET = string.ascii_letters + string.digits

# Per token, out of 256: below PARAGRAPH_ODDS ends the paragraph,
# below LINK_ODDS adds a link.
PARAGRAPH_ODDS = 5
LINK_ODDS = 10

DEFAULT_MIN_TOKENS = 250
DEFAULT_MAX_TOKENS = 12500


def random_link_name(rng: random.Random) -> str:
    length = rng.randrange(4, 16)
    return "".join(rng.choice(LINK_ALPHABET) for _ in range(length))


def _link_prefix(link_path: str) -> str:
    return "/" + link_path.strip("/")


def maze_anchor(link_path: str, rng: random.Random) -> Tuple[str, str]:
    """
    Build a hidden anchor into the maze.

    Returns:
        (href, anchor markup)

    Example:
        >>> href, anchor = maze_anchor("/maze", random.Random(0))
        >>> href.startswith("/maze/") and href.endswith(".html")
        True
    """
    name = random_link_name(rng)
    href = f"{_link_prefix(link_path)}/{name}.html"
    anchor = (
        f'<a href="{href}" rel="nofollow" aria-hidden="true" tabindex="-1" '
        f'style="display:none">{name}</a>'
    )
    return href, anchor


def render_maze_page(
    model: MarkovModel,
    title: str,
    rng: random.Random,
    *,
    link_path: str = "/maze",
    min_tokens: int = DEFAULT_MIN_TOKENS,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    link_names: Optional[Sequence[str]] = None,
) -> bytes:
    """
    Render one maze page.

    Args:
        model: Trained (non-empty) model
        title: Page title
        rng: Random source
        link_path: Path prefix of maze pages
        min_tokens: Minimum generated words (inclusive)
        max_tokens: Maximum generated words (exclusive)
        link_names: Pages to link to; random names when omitted

    Returns:
        UTF-8 HTML document

    Raises:
        ValueError: If min_tokens > max_tokens or min_tokens < 1
        ModelExhausted: If the model is empty
    """
    if min_tokens < 1 or min_tokens > max_tokens:
        raise ValueError(f"min_tokens ({min_tokens}) must be between 1 and max_tokens ({max_tokens})")
    count = rng.randrange(min_tokens, max_tokens) if max_tokens > min_tokens else min_tokens
    prefix = _link_prefix(link_path)

    parts: List[str] = [
        "<!doctype html><html lang=en><head><title>",
        html.escape(title),
        "</title></head><body><p>",
    ]
    for token in model.generate(count, rng):
        roll = rng.randrange(256)
        parts.append(" ")
        parts.append(html.escape(token))
        if roll < PARAGRAPH_ODDS:
            parts.append(".</p><p>")
        elif roll < LINK_ODDS:
            name = rng.choice(link_names) if link_names else random_link_name(rng)
            parts.append(f' <a href="{prefix}/{name}.html">{name}</a>')
    parts.append("</p></body></html>\n")
    return "".join(parts).encode("utf-8")


def generate_maze_pages(
    model: MarkovModel,
    count: int,
    rng: random.Random,
    *,
    link_path: str = "/maze",
    min_tokens: int = DEFAULT_MIN_TOKENS,
    max_tokens: int = DEFAULT_MAX_TOKENS,
) -> Iterator[Tuple[str, bytes]]:
    """
    Yield (file name, page bytes) for ``count`` distinct maze pages.

    Names are drawn up front so that every link on every page points at
    another page of the same set.
    """
    names: List[str] = []
    seen = set()
    while len(names) < count:
        name = random_link_name(rng)
        if name not in seen:
            seen.add(name)
            names.append(name)

    for name in names:
        page = render_maze_page(
            model, name, rng,
            link_path=link_path, min_tokens=min_tokens, max_tokens=max_tokens,
            link_names=names,
        )
        yield f"{name}.html", page
