"""
Module: driver.pipeline

Purpose:
    Main orchestrator for whole-site transforms. Runs the two phases over a
    directory tree: the inventory phase builds the corpus Markov model and
    image inventory; the mutation phase rewrites each file against those
    frozen, read-only results and mirrors the tree into the output root.

Key Functions:
    - run_site(): Transform an input site into an output site
    - build_maze(): Write a directory of static maze pages
    - resolve_seed(): Fixed seed or a freshly drawn one
    - file_rng(): Per-file random sub-stream

Key Classes:
    - RunResult: Counts, issues and status of a run
    - RunStatus: SUCCESS / PARTIAL

Dependencies:
    - concurrent.futures: Per-file parallelism in both phases
    - sitefoil.engine: Content engine
    - driver.write_queue: Atomic async output writes

Used By:
    - sitefoil.cli: `run` and `maze` commands
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sitefoil.core.models import ContentKind, SiteFile
from sitefoil.engine import (
    ConfigurationError,
    EngineConfig,
    FileInventory,
    ImageInventory,
    MarkovModel,
    ModelBuilder,
    ModelExhausted,
    ReassemblyInvariantViolation,
    ScrambleMode,
    ScramblePlan,
    UnreadableInput,
    mutate_content,
    plan_scramble,
    scan_content,
)
from sitefoil.engine.maze import DEFAULT_MAX_TOKENS, DEFAULT_MIN_TOKENS, generate_maze_pages
from sitefoil.engine.mutation import MutationPolicy

from .config import RunConfig
from .diagnostics import DiagnosticsCollector, FileIssue, IssueType
from .timing import TimingLog, timed_phase
from .walker import discover, discover_directories
from .write_queue import WriteQueue

logger = logging.getLogger(__name__)

TIMING_REPORT = "timing.json"
DIAGNOSTICS_REPORT = "diagnostics.json"

# Issues in these phases leave a file missing from the output tree
OUTPUT_PHASES = frozenset({"discovery", "mutation", "write"})


class RunStatus(str, Enum):
    """Overall outcome of a run."""
    SUCCESS = "success"
    PARTIAL = "partial"    # Some files missing from the output tree

    def __str__(self) -> str:
        return self.value

    @property
    def exit_code(self) -> int:
        return 0 if self is RunStatus.SUCCESS else 2


@dataclass
class RunResult:
    """
    Result of transforming a site.

    Attributes:
        seed: Seed the run used (log it to reproduce the run)
        output_root: Where the site was written
        files_processed: Files written to the output tree
        counts_by_kind: Files written per ContentKind value
        words_eligible: Words the policy was allowed to mutate
        words_mutated: Words replaced
        references_rewritten: Image references pointed at substitutes
        images_substituted: Image files overwritten with a substitute (bytes mode)
        replaceable_images: Images selected for scrambling
        issues: Per-file problems
        status: SUCCESS, or PARTIAL when any file is missing from the output
    """
    seed: int
    output_root: Path
    files_processed: int = 0
    counts_by_kind: Dict[str, int] = field(default_factory=dict)
    words_eligible: int = 0
    words_mutated: int = 0
    references_rewritten: int = 0
    images_substituted: int = 0
    replaceable_images: Tuple[str, ...] = ()
    issues: List[FileIssue] = field(default_factory=list)
    status: RunStatus = RunStatus.SUCCESS

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    def summary(self) -> str:
        kinds = ", ".join(f"{count} {kind}" for kind, count in sorted(self.counts_by_kind.items()))
        return (
            f"{self.status}: {self.files_processed} files ({kinds or 'none'}); "
            f"{self.words_mutated}/{self.words_eligible} words mutated; "
            f"{len(self.replaceable_images)} images scrambled; "
            f"{len(self.issues)} issues; seed {self.seed}"
        )


@dataclass
class _FileOutcome:
    """What the mutation phase decided to write for one file."""
    site_file: SiteFile
    data: Optional[bytes] = None        # Bytes to write, or
    copy_from: Optional[Path] = None    # file to copy verbatim
    words_eligible: int = 0
    words_mutated: int = 0
    references_rewritten: int = 0
    substituted: bool = False


def resolve_seed(seed: Optional[int]) -> int:
    """Return ``seed``, or draw a fresh one when it is None."""
    if seed is not None:
        return seed
    drawn = random.SystemRandom().randrange(2**32)
    logger.info(f"No seed given; using seed {drawn}", extra={"seed": drawn})
    return drawn


def file_rng(seed: int, phase: str, asset_id: str) -> random.Random:
    """
    Random sub-stream for one file.

    Keyed by the file's relative path, so results do not depend on which
    worker thread handles the file or in what order files complete.
    """
    return random.Random(f"{seed}:{phase}:{asset_id}")


def _read(site_file: SiteFile) -> bytes:
    try:
        return site_file.path.read_bytes()
    except OSError as e:
        raise UnreadableInput(site_file.path, e.strerror or str(e)) from e


def _scan_file(site_file: SiteFile, engine: EngineConfig, timing: TimingLog) -> FileInventory:
    with timed_phase(timing, "scan", file_id=site_file.asset_id):
        return scan_content(_read(site_file), site_file.kind, engine, document_path=site_file.relative)


def _inventory_phase(
    files: Iterable[SiteFile],
    engine: EngineConfig,
    workers: int,
    diagnostics: DiagnosticsCollector,
    timing: TimingLog,
) -> Tuple[ModelBuilder, Set[str]]:
    """
    Scan every text file in parallel and merge the per-file builders.

    Merging is commutative, so completion order does not affect the model.
    """
    builder = ModelBuilder(order=engine.mutation.order)
    references: Set[str] = set()
    text_files = [f for f in files if f.kind.is_text]

    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sitefoil-scan") as executor:
        futures = {executor.submit(_scan_file, f, engine, timing): f for f in text_files}
        for future in as_completed(futures):
            site_file = futures[future]
            try:
                inventory = future.result()
            except UnreadableInput as e:
                logger.warning(f"Not training on unreadable file: {e}", extra={"path": site_file.asset_id})
                diagnostics.add_issue(IssueType.UNREADABLE_INPUT, site_file.asset_id, "inventory", e.reason)
                continue
            except ReassemblyInvariantViolation as e:
                logger.warning(
                    f"Not training on {site_file.asset_id}: {e}",
                    extra={"path": site_file.asset_id},
                )
                diagnostics.add_issue(IssueType.REASSEMBLY_FALLBACK, site_file.asset_id, "inventory", str(e))
                continue
            builder.merge(inventory.builder)
            references.update(inventory.image_references)

    logger.info(
        f"Inventory: {len(text_files)} text files, {builder.tokens_seen} tokens, "
        f"{builder.context_count} contexts",
        extra={"text_files": len(text_files), "tokens": builder.tokens_seen},
    )
    return builder, references


def _mutate_text_file(
    site_file: SiteFile,
    model: MarkovModel,
    plan: ScramblePlan,
    policy: MutationPolicy,
    engine: EngineConfig,
    seed: int,
    diagnostics: DiagnosticsCollector,
) -> _FileOutcome:
    data = _read(site_file)
    try:
        result = mutate_content(
            data,
            site_file.kind,
            model,
            engine,
            file_rng(seed, "mutate", site_file.asset_id),
            scramble=plan,
            document_path=site_file.relative,
            policy=policy,
        )
    except ReassemblyInvariantViolation as e:
        logger.warning(
            f"Copying {site_file.asset_id} verbatim: {e}",
            extra={"path": site_file.asset_id, "kind": str(site_file.kind)},
        )
        diagnostics.add_issue(IssueType.REASSEMBLY_FALLBACK, site_file.asset_id, "mutation", str(e))
        return _FileOutcome(site_file, data=data)

    return _FileOutcome(
        site_file,
        data=result.output,
        words_eligible=result.words_eligible,
        words_mutated=result.words_mutated,
        references_rewritten=result.references_rewritten,
    )


def _process_file(
    site_file: SiteFile,
    config: RunConfig,
    model: MarkovModel,
    plan: ScramblePlan,
    policy: MutationPolicy,
    seed: int,
    diagnostics: DiagnosticsCollector,
    timing: TimingLog,
) -> _FileOutcome:
    """Decide the output of one file. Runs on a worker thread."""
    with timed_phase(timing, "mutate", file_id=site_file.asset_id):
        if site_file.kind.is_text:
            return _mutate_text_file(site_file, model, plan, policy, config.engine, seed, diagnostics)

        if site_file.kind is ContentKind.IMAGE:
            substitute = plan.substitute_for(site_file.asset_id) if plan.mode is ScrambleMode.BYTES else None
            if substitute is not None:
                logger.debug(f"Substituting {site_file.asset_id} with {substitute}")
                return _FileOutcome(site_file, copy_from=config.input_root / substitute, substituted=True)

        return _FileOutcome(site_file, copy_from=site_file.path)


def _mirror_directories(config: RunConfig) -> None:
    try:
        config.output_root.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigurationError(f"Cannot create output root {config.output_root}: {e}") from e
    for directory in discover_directories(config.input_root):
        try:
            (config.output_root / directory).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cannot create directory {directory}: {e}")


def run_site(config: RunConfig) -> RunResult:
    """
    Transform the site under ``config.input_root`` into ``config.output_root``.

    Pipeline:
    1. Validate roots and resolve the seed
    2. Discover and classify files (input, and training corpus if separate)
    3. Inventory phase: scan text files in parallel, merge, freeze the model
    4. Plan image scrambling
    5. Mutation phase: rewrite or copy each file in parallel, write atomically
    6. Save timing and diagnostics reports if requested

    Per-file problems never stop the run: a file that cannot be rewritten
    exactly is copied verbatim; a file that cannot be read or written is
    recorded and the run finishes as PARTIAL.

    Args:
        config: Run configuration

    Returns:
        RunResult with counts, issues and status

    Raises:
        ConfigurationError: If the roots are invalid (nothing is written)

    Example:
        >>> result = run_site(RunConfig(Path("site"), Path("public"), seed=7))
        >>> result.status
        <RunStatus.SUCCESS: 'success'>
    """
    config.validate_roots()
    seed = resolve_seed(config.seed)
    engine = config.engine
    timing = TimingLog()
    diagnostics = DiagnosticsCollector()

    # Step 1: Discover
    with timed_phase(timing, "discovery"):
        files = discover(config.input_root, diagnostics)
        if config.train_root is not None:
            train_files = discover(config.train_root, diagnostics, phase="training")
        else:
            train_files = files
    logger.info(
        f"Discovered {len(files)} files under {config.input_root}",
        extra={"input_root": str(config.input_root), "file_count": len(files)},
    )

    # Step 2: Inventory phase
    with timed_phase(timing, "inventory"):
        builder, references = _inventory_phase(train_files, engine, config.workers, diagnostics, timing)
        model = builder.freeze()
        inventory = ImageInventory.from_paths(f.asset_id for f in files if f.kind is ContentKind.IMAGE)
    if config.train_root is None:
        missing = references.difference(inventory)
        if missing:
            logger.debug(f"{len(missing)} referenced images are not in the site: {sorted(missing)[:5]}")

    # Step 3: Scramble plan
    if engine.scramble.enabled:
        plan = plan_scramble(inventory, engine.scramble.fraction, random.Random(f"{seed}:images"), engine.scramble.mode)
    else:
        plan = ScramblePlan.empty(inventory)

    # Step 4: Mutation phase
    result = RunResult(seed=seed, output_root=config.output_root, replaceable_images=plan.replaceable)
    policy = MutationPolicy(engine.mutation, model)
    _mirror_directories(config)

    with timed_phase(timing, "mutation"):
        with WriteQueue(max_workers=config.workers) as write_queue:
            with ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="sitefoil-mutate") as executor:
                futures = {
                    executor.submit(_process_file, f, config, model, plan, policy, seed, diagnostics, timing): f
                    for f in files
                }
                written: Dict[Path, SiteFile] = {}
                for future in as_completed(futures):
                    site_file = futures[future]
                    target = config.output_root / site_file.asset_id
                    try:
                        outcome = future.result()
                    except UnreadableInput as e:
                        logger.warning(f"Skipping unreadable file: {e}", extra={"path": site_file.asset_id})
                        diagnostics.add_issue(IssueType.UNREADABLE_INPUT, site_file.asset_id, "mutation", e.reason)
                        continue
                    except Exception as e:
                        logger.warning(
                            f"Failed to process {site_file.asset_id}, copying verbatim: {e}",
                            extra={"path": site_file.asset_id, "kind": str(site_file.kind), "error": str(e)},
                        )
                        diagnostics.add_issue(IssueType.PROCESSING_FALLBACK, site_file.asset_id, "mutation", str(e))
                        outcome = _FileOutcome(site_file, copy_from=site_file.path)

                    if outcome.data is not None:
                        write_queue.queue_bytes_write(outcome.data, target)
                    else:
                        write_queue.queue_copy(outcome.copy_from, target)
                    written[target] = site_file

                    result.words_eligible += outcome.words_eligible
                    result.words_mutated += outcome.words_mutated
                    result.references_rewritten += outcome.references_rewritten
                    result.images_substituted += int(outcome.substituted)

            failures = write_queue.wait_all()

    failed = set()
    for target, error in failures:
        site_file = written[target]
        failed.add(target)
        diagnostics.add_issue(IssueType.WRITE_FAILURE, site_file.asset_id, "write", error.reason)

    for target, site_file in written.items():
        if target not in failed:
            result.files_processed += 1
            kind = str(site_file.kind)
            result.counts_by_kind[kind] = result.counts_by_kind.get(kind, 0) + 1

    result.issues = diagnostics.issues
    if any(issue.issue_type.drops_output and issue.phase in OUTPUT_PHASES for issue in result.issues):
        result.status = RunStatus.PARTIAL

    # Step 5: Reports
    if config.report_dir is not None:
        timing.save(config.report_dir / TIMING_REPORT)
        diagnostics.generate_report(seed, config.input_root).save(config.report_dir / DIAGNOSTICS_REPORT)

    logger.debug(timing.summary())
    logger.info(
        f"Completed site run: {result.summary()}",
        extra={
            "output_root": str(config.output_root),
            "files_processed": result.files_processed,
            "words_mutated": result.words_mutated,
            "status": str(result.status),
            "seed": seed,
        },
    )
    return result


def build_maze(
    train_root: Path,
    output_dir: Path,
    *,
    count: int = 10,
    seed: Optional[int] = None,
    link_path: str = "/maze",
    min_tokens: int = DEFAULT_MIN_TOKENS,
    max_tokens: int = DEFAULT_MAX_TOKENS,
    engine: Optional[EngineConfig] = None,
    workers: int = 4,
) -> List[Path]:
    """
    Train on ``train_root`` and write ``count`` linked maze pages.

    Pages are named ``<random>.html`` and link only to each other under
    ``link_path``, so serve ``output_dir`` at that path.

    Returns:
        Paths of the written pages

    Raises:
        ConfigurationError: If train_root is not a directory or count < 1
        ValueError: If min_tokens > max_tokens
        ModelExhausted: If the corpus contains no text
        OutputWriteFailure: If a page cannot be written
    """
    train_root = Path(train_root)
    output_dir = Path(output_dir)
    if not train_root.is_dir():
        raise ConfigurationError(f"Training root is not a directory: {train_root}")
    if count < 1:
        raise ConfigurationError(f"count must be >= 1: {count}")
    if min_tokens < 1 or min_tokens > max_tokens:
        raise ValueError(f"min_tokens ({min_tokens}) must be between 1 and max_tokens ({max_tokens})")

    engine = engine or EngineConfig()
    seed = resolve_seed(seed)
    timing = TimingLog()
    diagnostics = DiagnosticsCollector()

    files = discover(train_root, diagnostics, phase="training")
    builder, _ = _inventory_phase(files, engine, workers, diagnostics, timing)
    model = builder.freeze()
    if model.is_empty:
        raise ModelExhausted(f"No text to train on under {train_root}")

    pages: List[Path] = []
    with WriteQueue(max_workers=workers) as write_queue:
        for name, page in generate_maze_pages(
            model, count, random.Random(f"{seed}:maze"),
            link_path=link_path, min_tokens=min_tokens, max_tokens=max_tokens,
        ):
            path = output_dir / name
            write_queue.queue_bytes_write(page, path)
            pages.append(path)
        failures = write_queue.wait_all()
    if failures:
        raise failures[0][1]

    logger.info(f"Wrote {len(pages)} maze pages to {output_dir}", extra={"pages": len(pages), "seed": seed})
    return pages
