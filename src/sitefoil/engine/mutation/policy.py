"""
Module: engine.mutation.policy

Purpose:
    Mutation policy: decides, per Word span, whether to replace it and with
    what.

Algorithm:
    1. Find protected words (exclusion patterns, numbers)
    2. Walk the token stream, keeping a window of the k most recent
       *original* tokens (reset at sentence breaks, exactly as in training)
    3. For each eligible word, draw rng.random() < rate independently
    4. If selected, sample from the model with the original window and
       re-cast to the word's casing pattern

    Context always comes from the unmutated source, so one replacement
    never steers the next one away from the corpus statistics.

Key Classes:
    - MutationPolicy: Produces MutationDecisions for a document

Dependencies:
    - engine.markov: MarkovModel, token_stream
    - engine.mutation.exclusions: Protected/eligible words

Used By:
    - engine.content.mutate_content()
"""

from __future__ import annotations

import logging
import random
from collections import deque
from typing import Dict, List, Sequence

from sitefoil.core.models import MutationDecision, Span, SpanKind, is_word

from ..config import MutationConfig
from ..markov import SENTENCE_BREAK, MarkovModel, token_stream
from .exclusions import is_eligible, protected_words

logger = logging.getLogger(__name__)


class MutationPolicy:
    """
    Per-document mutation decisions against a shared, read-only model.

    The policy holds no per-document state, so one instance may be used
    from several threads as long as each call gets its own rng.

    Attributes:
        config: Mutation settings
        model: Frozen Markov model
        exhausted: True when the model is empty; the policy then never mutates

    Example:
        >>> policy = MutationPolicy(MutationConfig(rate=0.5), model)
        >>> decisions = policy.decide(spans, random.Random(7))
        >>> sum(d.mutate for d in decisions)
        3
    """

    def __init__(self, config: MutationConfig, model: MarkovModel):
        self.config = config
        self.model = model
        self.exhausted = model.is_empty
        if self.exhausted:
            logger.warning("Markov model is empty (no text in corpus); words will not be mutated")
        elif model.order != config.order:
            logger.debug(f"Model order {model.order} differs from configured order {config.order}")

    def decide(self, spans: Sequence[Span], rng: random.Random) -> List[MutationDecision]:
        """
        Produce one decision per Word span, in document order.

        Args:
            spans: Document spans from the tokenizer
            rng: Random source for this document

        Returns:
            MutationDecisions sorted by span index
        """
        rules = self.config.exclusions
        protected = protected_words(spans, rules)
        decisions: Dict[int, MutationDecision] = {
            index: MutationDecision.keep(index, spans[index].text, eligible=False)
            for index in protected
        }

        window: deque = deque(maxlen=self.model.order)
        for index, item in token_stream(spans, protected):
            if item is SENTENCE_BREAK:
                window.clear()
                continue

            word = spans[index].text
            if not is_eligible(word, rules):
                decisions[index] = MutationDecision.keep(index, word, eligible=False)
            elif self.exhausted or rng.random() >= self.config.rate:
                decisions[index] = MutationDecision.keep(index, word)
            else:
                replacement = item.recast(self.model.sample(tuple(window), rng))
                if is_word(replacement):
                    decisions[index] = MutationDecision(
                        span_index=index,
                        original=word,
                        mutate=True,
                        replacement=replacement,
                    )
                else:
                    # Re-casting changed the character class
                    logger.debug(f"Keeping {word!r}: replacement {replacement!r} is not a single word")
                    decisions[index] = MutationDecision.keep(index, word)
            window.append(item.text)

        return [decisions[index] for index in sorted(decisions)]


def count_words(spans: Sequence[Span]) -> int:
    """Number of Word spans in a document."""
    return sum(1 for span in spans if span.kind is SpanKind.WORD)
