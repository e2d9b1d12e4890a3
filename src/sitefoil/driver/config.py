"""
Module: driver.config

Purpose:
    Run configuration for a whole-site transform. Immutable, validated on
    construction; root directories are checked separately by
    validate_roots() before any file is touched.

Key Classes:
    - RunConfig: Input/output roots, engine settings, seed, workers

Dependencies:
    - dataclasses (std)
    - pathlib (std)

Used By:
    - driver.pipeline.run_site()
    - cli: Builds RunConfig from arguments
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sitefoil.engine.config import EngineConfig
from sitefoil.engine.errors import ConfigurationError


@dataclass(frozen=True)
class RunConfig:
    """
    Configuration for transforming a site (immutable).

    Attributes:
        input_root: Site to transform
        output_root: Where the mirrored, mutated site is written
        train_root: Optional separate corpus to train the model on
        engine: Engine settings
        seed: Random seed; None draws one per run (logged for reproduction)
        workers: Worker threads per phase (default 4)
        report_dir: Where timing/diagnostics JSON reports go (None = no reports)

    Example:
        >>> config = RunConfig(
        ...     input_root=Path("site"),
        ...     output_root=Path("public"),
        ...     seed=1234,
        ... )
    """

    input_root: Path
    output_root: Path
    train_root: Optional[Path] = None
    engine: EngineConfig = field(default_factory=EngineConfig)
    seed: Optional[int] = None
    workers: int = 4
    report_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        """Validate configuration on construction."""
        object.__setattr__(self, "input_root", Path(self.input_root))
        object.__setattr__(self, "output_root", Path(self.output_root))
        if self.train_root is not None:
            object.__setattr__(self, "train_root", Path(self.train_root))
        if self.report_dir is not None:
            object.__setattr__(self, "report_dir", Path(self.report_dir))
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1: {self.workers}")

    def validate_roots(self) -> None:
        """
        Check directories before processing begins.

        Raises:
            ConfigurationError: If the input root is missing, the output
                root overlaps the input root, or the output root is a file
        """
        input_root = self.input_root.resolve()
        output_root = self.output_root.resolve()

        if not input_root.is_dir():
            raise ConfigurationError(f"Input root is not a directory: {self.input_root}")
        if output_root.exists() and not output_root.is_dir():
            raise ConfigurationError(f"Output root is not a directory: {self.output_root}")
        if output_root == input_root:
            raise ConfigurationError("Output root must differ from input root")
        if output_root.is_relative_to(input_root):
            raise ConfigurationError(f"Output root {self.output_root} is inside input root {self.input_root}")
        if input_root.is_relative_to(output_root):
            raise ConfigurationError(f"Input root {self.input_root} is inside output root {self.output_root}")
        if self.train_root is not None and not self.train_root.is_dir():
            raise ConfigurationError(f"Training root is not a directory: {self.train_root}")
