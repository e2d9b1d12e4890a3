"""
Module: engine

Purpose:
    Content-mutation engine: structure-aware tokenizer, corpus Markov
    model, mutation policy, content reassembly and image scrambling.
    Operates on bytes and immutable models; knows nothing about
    directories.

Key Functions:
    - scan_content(): Inventory-phase contribution of one file
    - mutate_content(): Mutation-phase rewrite of one file
    - plan_scramble(): Seeded image selection

Key Classes:
    - EngineConfig: Configuration for the engine
    - MarkovModel / ModelBuilder: Corpus language model
    - ImageInventory / ScramblePlan: Image scrambling

Dependencies:
    - numpy: Cumulative weight arrays for sampling

Used By:
    - sitefoil.driver.pipeline: Two-phase corpus run
"""

from .config import (
    EngineConfig,
    ExclusionRules,
    MutationConfig,
    ScrambleConfig,
    ScrambleMode,
    load_config,
)
from .content import ContentResult, FileInventory, mutate_content, scan_content
from .errors import (
    ConfigurationError,
    ModelExhausted,
    OutputWriteFailure,
    ReassemblyInvariantViolation,
    SitefoilError,
    UnclassifiableContent,
    UnreadableInput,
)
from .images import ImageInventory, ScramblePlan, plan_scramble
from .markov import MarkovModel, ModelBuilder

__all__ = [
    "ConfigurationError",
    "ContentResult",
    "EngineConfig",
    "ExclusionRules",
    "FileInventory",
    "ImageInventory",
    "MarkovModel",
    "ModelBuilder",
    "ModelExhausted",
    "MutationConfig",
    "OutputWriteFailure",
    "ReassemblyInvariantViolation",
    "ScrambleConfig",
    "ScrambleMode",
    "ScramblePlan",
    "SitefoilError",
    "UnclassifiableContent",
    "UnreadableInput",
    "load_config",
    "mutate_content",
    "plan_scramble",
    "scan_content",
]
