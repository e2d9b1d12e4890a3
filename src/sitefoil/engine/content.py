"""
Module: engine.content

Purpose:
    Content engine. Orchestrates, per file, the inventory scan (model
    contribution + image references) and the mutation pass
    (tokenize -> decide -> rewrite references -> reassemble -> verify).

Key Functions:
    - scan_content(): Inventory-phase contribution of one file
    - mutate_content(): Mutation-phase rewrite of one file

Key Classes:
    - FileInventory: What one file contributes to the corpus model
    - ContentResult: Output bytes plus counts

Reassembly Invariant:
    Every span not replaced is emitted byte-for-byte. The output is
    re-tokenized and compared span by span with the input; any mismatch
    raises ReassemblyInvariantViolation and the driver falls back to a
    verbatim copy, so partially reassembled output is never written.

Dependencies:
    - engine.tokenizer: Spans
    - engine.markov: ModelBuilder / MarkovModel
    - engine.mutation: MutationPolicy
    - engine.images: Reference scanning and rewriting

Used By:
    - driver.pipeline: Both phases
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Dict, FrozenSet, List, Optional, Sequence

from sitefoil.core.models import ContentKind, MutationDecision, Span, SpanKind, is_word

from .config import EngineConfig, ScrambleMode
from .errors import ReassemblyInvariantViolation
from .images import ScramblePlan, find_references, resolve_reference, rewrite_tag
from .markov import MarkovModel, ModelBuilder
from .maze import maze_anchor
from .mutation import MutationPolicy, count_words, protected_words
from .tokenizer import decode_document, encode_document, tokenize_text, verify_coverage

logger = logging.getLogger(__name__)


@dataclass
class FileInventory:
    """
    Inventory-phase contribution of a single file.

    Attributes:
        builder: Transition counts from this file's text
        image_references: Root-relative targets of this file's references
        word_count: Number of Word spans
    """
    builder: ModelBuilder
    image_references: FrozenSet[str] = frozenset()
    word_count: int = 0


@dataclass
class ContentResult:
    """
    Result of mutating one file.

    Attributes:
        output: Bytes to write
        words_eligible: Words the policy was allowed to mutate
        words_mutated: Words replaced
        references_rewritten: Image references pointed at substitutes
        maze_link: Href of the embedded maze link, if any
        decisions: Per-word decisions (for inspection and tests)
    """
    output: bytes
    words_eligible: int = 0
    words_mutated: int = 0
    references_rewritten: int = 0
    maze_link: Optional[str] = None
    decisions: List[MutationDecision] = field(default_factory=list)


def _tokenize_checked(text: str, kind: ContentKind, config: EngineConfig) -> List[Span]:
    spans = tokenize_text(text, kind, config.opaque_elements)
    verify_coverage(text, spans)
    return spans


def scan_content(
    data: bytes,
    kind: ContentKind,
    config: EngineConfig,
    document_path: Optional[PurePosixPath] = None,
) -> FileInventory:
    """
    Scan one file for the inventory phase.

    Args:
        data: File bytes
        kind: MARKUP or PLAIN_TEXT
        config: Engine configuration
        document_path: Root-relative path, needed to resolve references

    Returns:
        FileInventory with a per-file ModelBuilder

    Raises:
        ReassemblyInvariantViolation: If tokenization is not lossless
    """
    text = decode_document(data)
    spans = _tokenize_checked(text, kind, config)

    builder = ModelBuilder(order=config.mutation.order)
    builder.train_spans(spans, protected_words(spans, config.mutation.exclusions))

    references = set()
    if kind is ContentKind.MARKUP and document_path is not None:
        for span in spans:
            if span.kind is SpanKind.STRUCTURAL and span.tag and not span.is_closing_tag:
                for ref in find_references(span.text, span.element):
                    target = resolve_reference(ref.url, document_path)
                    if target is not None:
                        references.add(target)

    return FileInventory(builder=builder, image_references=frozenset(references), word_count=count_words(spans))


def _verify_reassembly(
    spans: Sequence[Span],
    pieces: Sequence[str],
    output_text: str,
    kind: ContentKind,
    config: EngineConfig,
) -> None:
    """
    Check that only replaced words and rewritten tags changed.

    Raises:
        ReassemblyInvariantViolation: On the first disagreement
    """
    if len(pieces) != len(spans):
        raise ReassemblyInvariantViolation(f"{len(pieces)} pieces for {len(spans)} spans")
    for span, piece in zip(spans, pieces):
        if piece == span.text:
            continue
        if span.kind is SpanKind.WORD and is_word(piece):
            continue
        if span.kind is SpanKind.STRUCTURAL and span.tag is not None:
            continue
        raise ReassemblyInvariantViolation(f"{span.kind} span altered", offset=span.start)

    retokenized = tokenize_text(output_text, kind, config.opaque_elements)
    if len(retokenized) != len(spans):
        raise ReassemblyInvariantViolation(
            f"Output has {len(retokenized)} spans, input had {len(spans)}"
        )
    for before, after, piece in zip(spans, retokenized, pieces):
        if after.kind is not before.kind or after.text != piece:
            raise ReassemblyInvariantViolation("Output does not segment like input", offset=before.start)


def mutate_content(
    data: bytes,
    kind: ContentKind,
    model: MarkovModel,
    config: EngineConfig,
    rng: random.Random,
    *,
    scramble: Optional[ScramblePlan] = None,
    document_path: Optional[PurePosixPath] = None,
    policy: Optional[MutationPolicy] = None,
) -> ContentResult:
    """
    Mutate one text or markup file.

    Pipeline:
    1. Decode and tokenize; verify lossless coverage
    2. Decide per Word span (MutationPolicy)
    3. Rewrite image references in tags (markup, LINKS mode)
    4. Reassemble and verify
    5. Embed a maze link before </body> if configured

    Args:
        data: File bytes
        kind: MARKUP or PLAIN_TEXT
        model: Frozen corpus model (read-only)
        config: Engine configuration
        rng: Random source owned by this file
        scramble: Image scramble plan, if any
        document_path: Root-relative path of this file
        policy: Pre-built policy to share across files

    Returns:
        ContentResult with output bytes and counts

    Raises:
        ReassemblyInvariantViolation: If output cannot be reassembled exactly

    Example:
        >>> result = mutate_content(b"<p>The cat sat.</p>", ContentKind.MARKUP,
        ...                         model, EngineConfig(), random.Random(3))
        >>> result.output.startswith(b"<p>")
        True
    """
    text = decode_document(data)
    spans = _tokenize_checked(text, kind, config)

    policy = policy or MutationPolicy(config.mutation, model)
    decisions = policy.decide(spans, rng)

    pieces = [span.text for span in spans]
    words_mutated = 0
    for decision in decisions:
        if decision.mutate:
            pieces[decision.span_index] = decision.replacement
            words_mutated += 1

    references_rewritten = 0
    if (
        kind is ContentKind.MARKUP
        and scramble is not None
        and scramble.mode is ScrambleMode.LINKS
        and document_path is not None
    ):
        for index, span in enumerate(spans):
            if span.kind is SpanKind.STRUCTURAL and span.tag is not None:
                new_text, count = rewrite_tag(span, document_path, scramble)
                if count:
                    pieces[index] = new_text
                    references_rewritten += count

    output_text = "".join(pieces)
    _verify_reassembly(spans, pieces, output_text, kind, config)

    maze_link = None
    if kind is ContentKind.MARKUP and config.maze_link_path:
        insert_at = _body_close_index(spans)
        if insert_at is not None:
            maze_link, anchor = maze_anchor(config.maze_link_path, rng)
            pieces.insert(insert_at, anchor)
            output_text = "".join(pieces)

    logger.debug(
        f"Mutated {words_mutated} words, rewrote {references_rewritten} references"
        + (f" in {document_path}" if document_path else ""),
        extra={"words_mutated": words_mutated, "references_rewritten": references_rewritten},
    )

    return ContentResult(
        output=encode_document(output_text),
        words_eligible=sum(1 for d in decisions if d.eligible),
        words_mutated=words_mutated,
        references_rewritten=references_rewritten,
        maze_link=maze_link,
        decisions=decisions,
    )


def _body_close_index(spans: Sequence[Span]) -> Optional[int]:
    """Index of the last </body> tag span, or None."""
    for index in range(len(spans) - 1, -1, -1):
        if spans[index].tag == "/body":
            return index
    return None
