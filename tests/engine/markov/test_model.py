"""
Unit Tests for FrequencyTable and MarkovModel sampling.
"""

import random
from collections import Counter

import pytest

from sitefoil.engine.errors import ModelExhausted
from sitefoil.engine.markov import FrequencyTable, MarkovModel, ModelBuilder


def trained(text, order=2):
    builder = ModelBuilder(order=order)
    builder.train(text.split())
    return builder.freeze()


class TestFrequencyTable:
    """Tests for cumulative-weight tables."""

    def test_from_counts_when_unsorted_then_tokens_sorted(self):
        table = FrequencyTable.from_counts({"dog": 3, "cat": 1})
        assert table.tokens == ("cat", "dog")
        assert list(table.cumulative) == [1, 4]
        assert table.total == 4

    def test_from_counts_when_zero_count_then_dropped(self):
        table = FrequencyTable.from_counts({"a": 0, "b": 2})
        assert table.tokens == ("b",)

    def test_from_counts_when_several_then_cumulative_running_totals(self):
        table = FrequencyTable.from_counts({"a": 2, "b": 5, "c": 1})
        assert list(table.cumulative) == [2, 7, 8]
        assert len(table) == 3

    def test_cumulative_when_frozen_then_read_only(self):
        table = FrequencyTable.from_counts({"a": 1})
        with pytest.raises(ValueError):
            table.cumulative[0] = 9

    def test_sample_when_empty_then_raises_error(self):
        with pytest.raises(ValueError, match="empty"):
            FrequencyTable.from_counts({}).sample(random.Random(0))

    def test_sample_when_many_draws_then_proportional_to_counts(self):
        # Arrange
        table = FrequencyTable.from_counts({"rare": 1, "common": 9})
        rng = random.Random(42)

        # Act
        draws = Counter(table.sample(rng) for _ in range(10_000))

        # Assert
        assert 0.87 < draws["common"] / 10_000 < 0.93

    def test_sample_when_single_candidate_then_always_it(self):
        table = FrequencyTable.from_counts({"only": 4})
        rng = random.Random(1)
        assert {table.sample(rng) for _ in range(20)} == {"only"}


class TestMarkovModel:
    """Tests for back-off sampling and generation."""

    def test_sample_when_context_known_then_uses_longest_context(self):
        model = trained("x a b c y a b c z a b c")
        rng = random.Random(0)
        assert {model.sample(("a", "b"), rng) for _ in range(30)} == {"c"}

    def test_sample_when_context_longer_than_order_then_truncated(self):
        model = trained("a b c", order=1)
        assert model.sample(("zzz", "qqq", "b"), random.Random(0)) == "c"

    def test_sample_when_context_unseen_then_backs_off(self):
        # Arrange
        model = trained("a b c")

        # Act
        table = model.table_for(("never", "seen"))

        # Assert
        assert table is model.tables[()]

    def test_sample_when_partial_context_known_then_backs_off_one_step(self):
        model = trained("a b c")
        assert model.table_for(("never", "b")) is model.tables[("b",)]

    def test_sample_when_empty_model_then_raises_model_exhausted(self):
        with pytest.raises(ModelExhausted):
            MarkovModel.empty().sample(("a",), random.Random(0))

    def test_sample_when_same_seed_then_same_token(self):
        model = trained("the cat sat on the mat and the dog sat on the rug")
        first = [model.sample(("the",), random.Random(5)) for _ in range(3)]
        second = [model.sample(("the",), random.Random(5)) for _ in range(3)]
        assert first == second

    def test_generate_when_count_then_tokens_from_vocabulary(self):
        model = trained("one two three two one three")
        tokens = model.generate(25, random.Random(3))
        assert len(tokens) == 25
        assert set(tokens) <= {"one", "two", "three"}

    def test_vocabulary_size_when_trained_then_distinct_tokens(self):
        model = trained("a b a c")
        assert model.vocabulary_size == 3
        assert not model.is_empty

    def test_tables_when_frozen_then_not_mutable(self):
        model = trained("a b")
        with pytest.raises(TypeError):
            model.tables[("x",)] = None
