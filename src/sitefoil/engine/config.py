"""
Module: engine.config

Purpose:
    Configuration dataclasses for the content-mutation engine. Provides
    immutable settings for the mutation rate, Markov order, exclusion rules
    and image scrambling.

Key Classes:
    - ExclusionRules: Which words are never mutated
    - MutationConfig: Rate, Markov order and exclusions
    - ScrambleConfig: Image substitution fraction and mode
    - EngineConfig: Main configuration for the engine

Key Functions:
    - load_config(): Read engine settings from a JSON file

Dependencies:
    - dataclasses: For frozen dataclass support
    - json (std): Settings files

Used By:
    - engine.mutation.policy: Uses MutationConfig
    - engine.images.scrambler: Uses ScrambleConfig
    - engine.content: Uses EngineConfig
    - driver.config: Embeds EngineConfig in RunConfig
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Tuple

logger = logging.getLogger(__name__)


# Matched against each contiguous run of text; any word overlapping a match
# is protected from mutation.
DEFAULT_EXCLUSION_PATTERNS: Tuple[str, ...] = (
    r"[A-Za-z][A-Za-z0-9+.-]*://\S+",         # URLs with a scheme
    r"\bwww\.\S+",                             # Bare www. hosts
    r"\S+@\S+\.\S+",                           # E-mail addresses
    r"\b\w+(?:\.\w+)+\(?\)?",                  # Dotted names: os.path, example.com
    r"\b\w*_\w*\b",                            # snake_case identifiers
    r"\b[a-z]+[A-Z]\w*\b",                     # camelCase identifiers
    r"(?<!\S)[~.]?/\S+",                       # Paths: /usr/bin, ./run
    r"`[^`]+`",                                # Inline code
)

DEFAULT_OPAQUE_ELEMENTS: FrozenSet[str] = frozenset({
    "script", "style", "pre", "code", "textarea",
    "svg", "math", "template", "noscript",
})


class ScrambleMode(str, Enum):
    """How replaceable images are substituted."""
    LINKS = "links"  # Rewrite references in markup
    BYTES = "bytes"  # Overwrite the image file's output with another image

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ExclusionRules:
    """
    Rules protecting non-prose words from mutation.

    Attributes:
        min_length: Words shorter than this are never mutated (default 3)
        exclude_words: Case-folded words that are never mutated
        skip_numeric: Never mutate words made only of digits (default True)
        patterns: Regexes; words overlapping a match are never mutated
    """
    min_length: int = 3
    exclude_words: FrozenSet[str] = frozenset()
    skip_numeric: bool = True
    patterns: Tuple[str, ...] = DEFAULT_EXCLUSION_PATTERNS

    def __post_init__(self) -> None:
        """Validate rules on construction."""
        if self.min_length < 1:
            raise ValueError(f"min_length must be >= 1: {self.min_length}")
        for pattern in self.patterns:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"invalid exclusion pattern {pattern!r}: {e}") from e
        # Normalize words so lookups match Token.text
        object.__setattr__(
            self, "exclude_words", frozenset(w.lower() for w in self.exclude_words)
        )


@dataclass(frozen=True)
class MutationConfig:
    """
    Configuration for word mutation.

    Attributes:
        rate: Per-word probability of replacement, in (0, 1] (default 0.20)
        order: Markov context length k (default 2)
        exclusions: Words protected from mutation
    """
    rate: float = 0.20
    order: int = 2
    exclusions: ExclusionRules = field(default_factory=ExclusionRules)

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not 0.0 < self.rate <= 1.0:
            raise ValueError(f"rate must be in (0, 1]: {self.rate}")
        if self.order < 1:
            raise ValueError(f"order must be >= 1: {self.order}")


@dataclass(frozen=True)
class ScrambleConfig:
    """
    Configuration for image scrambling.

    Attributes:
        fraction: Share of the image inventory marked replaceable, in [0, 1]
        mode: LINKS rewrites references, BYTES substitutes file contents
    """
    fraction: float = 0.4
    mode: ScrambleMode = ScrambleMode.LINKS

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        if not 0.0 <= self.fraction <= 1.0:
            raise ValueError(f"fraction must be in [0, 1]: {self.fraction}")

    @property
    def enabled(self) -> bool:
        return self.fraction > 0.0


@dataclass(frozen=True)
class EngineConfig:
    """
    Configuration for the content-mutation engine.

    Attributes:
        mutation: Word mutation settings
        scramble: Image scrambling settings
        opaque_elements: Elements whose bodies are copied verbatim
        maze_link_path: When set, a hidden link into this path is embedded
            before </body> of every markup document

    Example:
        >>> config = EngineConfig(mutation=MutationConfig(rate=0.1, order=3))
        >>> config.mutation.order
        3
    """
    mutation: MutationConfig = field(default_factory=MutationConfig)
    scramble: ScrambleConfig = field(default_factory=ScrambleConfig)
    opaque_elements: FrozenSet[str] = DEFAULT_OPAQUE_ELEMENTS
    maze_link_path: Optional[str] = None

    def __post_init__(self) -> None:
        """Normalize element names on construction."""
        object.__setattr__(
            self, "opaque_elements", frozenset(e.lower() for e in self.opaque_elements)
        )
        if self.maze_link_path is not None and not self.maze_link_path.strip("/"):
            raise ValueError(f"maze_link_path must name a path: {self.maze_link_path!r}")


# Flat settings-file keys -> (section, field)
_SETTINGS_KEYS: Dict[str, Tuple[Optional[str], str]] = {
    "rate": ("mutation", "rate"),
    "order": ("mutation", "order"),
    "min_length": ("exclusions", "min_length"),
    "exclude_words": ("exclusions", "exclude_words"),
    "skip_numeric": ("exclusions", "skip_numeric"),
    "exclusion_patterns": ("exclusions", "patterns"),
    "scramble_fraction": ("scramble", "fraction"),
    "scramble_mode": ("scramble", "mode"),
    "opaque_elements": (None, "opaque_elements"),
    "maze_link_path": (None, "maze_link_path"),
}


def settings_to_engine_config(
    settings: Dict[str, Any],
    base: Optional[EngineConfig] = None,
) -> EngineConfig:
    """
    Build an EngineConfig from flat settings, layered over ``base``.

    Unknown keys are ignored with a warning. Values are validated by the
    dataclass constructors.

    Args:
        settings: Flat mapping such as {"rate": 0.1, "scramble_mode": "bytes"}
        base: Configuration providing defaults for missing keys

    Returns:
        New EngineConfig

    Raises:
        ValueError: If a value fails validation
    """
    base = base or EngineConfig()
    sections: Dict[str, Dict[str, Any]] = {"mutation": {}, "exclusions": {}, "scramble": {}, "engine": {}}

    for key, value in settings.items():
        if key not in _SETTINGS_KEYS:
            logger.warning(f"Ignoring unknown setting: {key}")
            continue
        section, name = _SETTINGS_KEYS[key]
        if name in ("exclude_words", "opaque_elements"):
            value = frozenset(value)
        elif name == "patterns":
            value = tuple(value)
        elif name == "mode":
            value = ScrambleMode(value)
        sections[section or "engine"][name] = value

    def _merge(current: Any, overrides: Dict[str, Any]) -> Dict[str, Any]:
        values = {f.name: getattr(current, f.name) for f in fields(current)}
        values.update(overrides)
        return values

    exclusions = ExclusionRules(**_merge(base.mutation.exclusions, sections["exclusions"]))
    mutation = MutationConfig(**{**_merge(base.mutation, sections["mutation"]), "exclusions": exclusions})
    scramble = ScrambleConfig(**_merge(base.scramble, sections["scramble"]))
    return EngineConfig(**{
        **_merge(base, sections["engine"]),
        "mutation": mutation,
        "scramble": scramble,
    })


def load_config(path: Path, base: Optional[EngineConfig] = None) -> EngineConfig:
    """
    Load engine settings from a JSON file.

    Args:
        path: JSON file holding a flat object of settings
        base: Configuration providing defaults for missing keys

    Returns:
        EngineConfig with the file's settings applied

    Raises:
        FileNotFoundError: If path doesn't exist
        ValueError: If the file is not a JSON object or a value is invalid

    Example:
        >>> # settings.json: {"rate": 0.05, "order": 3, "scramble_fraction": 0.75}
        >>> config = load_config(Path("settings.json"))
    """
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"{path} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    logger.debug(f"Loaded {len(data)} settings from {path}")
    return settings_to_engine_config(data, base)
