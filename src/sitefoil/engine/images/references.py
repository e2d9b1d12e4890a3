"""
Module: engine.images.references

Purpose:
    Finds and rewrites asset references inside a single markup tag. Image
    files themselves are never read here; substitution happens by pointing
    references somewhere else.

Recognized references:
    - src, href, poster, data-src, data-original attribute values
    - each candidate URL of srcset / data-srcset
    - content of <meta> tags (og:image and friends)
    - url(...) inside inline style attributes

Key Functions:
    - find_references(): URL occurrences in a tag, with offsets
    - resolve_reference(): URL -> root-relative asset id (or None)
    - build_reference(): Asset id -> URL in the same style as the original

Dependencies:
    - re, posixpath, urllib.parse (std)

Used By:
    - engine.images.scrambler.rewrite_tag()
    - engine.content.scan_content()
"""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import List, Optional, Tuple
from urllib.parse import quote, unquote

_TAG_HEAD_RE = re.compile(r"</?[A-Za-z][A-Za-z0-9:_.-]*")
_ATTR_RE = re.compile(
    r"""(?P<name>[^\s"'>/=]+)"""
    r"""(?:\s*=\s*(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<uq>[^\s"'=<>`]+)))?"""
)
_STYLE_URL_RE = re.compile(r"""url\(\s*(?P<q>['"]?)(?P<url>[^'")]*?)(?P=q)\s*\)""", re.IGNORECASE)
_SRCSET_URL_RE = re.compile(r"(?:^|,)\s*(?P<url>[^\s,][^\s]*?)(?=\s|,|$)")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")

URL_ATTRIBUTES = frozenset({"src", "href", "poster", "data-src", "data-original"})
SRCSET_ATTRIBUTES = frozenset({"srcset", "data-srcset"})


@dataclass(frozen=True, slots=True)
class UrlReference:
    """
    One URL occurrence inside a tag.

    Attributes:
        start: Offset of the URL's first character within the tag text
        end: Offset one past the URL's last character
        url: The URL text as written
        attribute: Lowercase attribute name carrying it
    """

    start: int
    end: int
    url: str
    attribute: str


def _attribute_values(tag_text: str) -> List[Tuple[str, int, str]]:
    """Return (lowercase name, value offset, value) for attributes with values."""
    head = _TAG_HEAD_RE.match(tag_text)
    if head is None:
        return []
    values = []
    for match in _ATTR_RE.finditer(tag_text, head.end()):
        for group in ("dq", "sq", "uq"):
            if match.group(group) is not None:
                values.append((match.group("name").lower(), match.start(group), match.group(group)))
                break
    return values


def find_references(tag_text: str, element: Optional[str] = None) -> List[UrlReference]:
    """
    Find URL occurrences in a tag.

    Args:
        tag_text: Full tag text, e.g. '<img src="a.png" alt="">'
        element: Lowercase element name (enables <meta content=...>)

    Returns:
        References in order of appearance

    Example:
        >>> [r.url for r in find_references('<img src="a.png" srcset="b.png 2x, c.png 3x">')]
        ['a.png', 'b.png', 'c.png']
    """
    refs: List[UrlReference] = []
    for name, offset, value in _attribute_values(tag_text):
        if name in URL_ATTRIBUTES or (name == "content" and element == "meta"):
            stripped = value.strip()
            if stripped:
                lead = len(value) - len(value.lstrip())
                start = offset + lead
                refs.append(UrlReference(start, start + len(stripped), stripped, name))
        elif name in SRCSET_ATTRIBUTES:
            for m in _SRCSET_URL_RE.finditer(value):
                start = offset + m.start("url")
                refs.append(UrlReference(start, start + len(m.group("url")), m.group("url"), name))
        elif name == "style":
            for m in _STYLE_URL_RE.finditer(value):
                url = m.group("url").strip()
                if url:
                    start = offset + m.start("url") + (len(m.group("url")) - len(m.group("url").lstrip()))
                    refs.append(UrlReference(start, start + len(url), url, name))
    return refs


def _split_suffix(url: str) -> Tuple[str, str]:
    """Split 'a.png?v=2#x' into ('a.png', '?v=2#x')."""
    cut = len(url)
    for ch in "?#":
        pos = url.find(ch)
        if pos != -1:
            cut = min(cut, pos)
    return url[:cut], url[cut:]


def resolve_reference(url: str, document_path: PurePosixPath) -> Optional[str]:
    """
    Resolve a URL written in ``document_path`` to a root-relative asset id.

    External URLs (with a scheme or starting with //), fragments and
    references escaping the site root resolve to None.

    Example:
        >>> resolve_reference("../img/a.png?v=1", PurePosixPath("blog/post.html"))
        'img/a.png'
        >>> resolve_reference("/img/a.png", PurePosixPath("blog/post.html"))
        'img/a.png'
    """
    if not url or url.startswith("//") or _SCHEME_RE.match(url):
        return None
    path, _ = _split_suffix(url)
    if not path:
        return None
    path = unquote(path)
    if path.startswith("/"):
        resolved = posixpath.normpath(path.lstrip("/"))
    else:
        base = document_path.parent.as_posix()
        resolved = posixpath.normpath(posixpath.join(base, path))
    if resolved in (".", "") or resolved.startswith("../") or resolved == "..":
        return None
    return resolved


def build_reference(original_url: str, asset_id: str, document_path: PurePosixPath) -> str:
    """
    Build a URL to ``asset_id`` written in the same style as ``original_url``.

    Root-absolute originals stay root-absolute, relative ones stay relative
    to the document, and any query string or fragment is kept.

    Example:
        >>> build_reference("img/a.png?v=1", "img/b.png", PurePosixPath("index.html"))
        'img/b.png?v=1'
    """
    _, suffix = _split_suffix(original_url)
    if original_url.startswith("/"):
        path = "/" + asset_id
    else:
        path = posixpath.relpath(asset_id, start=document_path.parent.as_posix())
    return quote(path, safe="/-._~") + suffix
