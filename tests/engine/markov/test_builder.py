"""
Unit Tests for ModelBuilder and the training token stream.
"""

import pytest

from sitefoil.core.models import Span, SpanKind, Token
from sitefoil.engine.markov import SENTENCE_BREAK, ModelBuilder, token_stream
from sitefoil.engine.markov.builder import is_sentence_break
from sitefoil.engine.tokenizer import segment_text, tokenize_markup


def words(text):
    return text.split()


class TestTokenStream:
    """Tests for token_stream()."""

    def test_stream_when_sentence_punctuation_then_emits_break(self):
        # Arrange
        spans = segment_text("Hi there. Bye now")

        # Act
        items = [item for _, item in token_stream(spans)]

        # Assert
        assert items == [
            Token.from_word("Hi"), Token.from_word("there"), SENTENCE_BREAK,
            Token.from_word("Bye"), Token.from_word("now"),
        ]

    def test_stream_when_colon_then_no_break(self):
        items = [item for _, item in token_stream(segment_text("note: this"))]
        assert SENTENCE_BREAK not in items

    def test_stream_when_skip_given_then_word_omitted(self):
        spans = segment_text("go to example now")
        items = [item.text for _, item in token_stream(spans, skip={4})]
        assert items == ["go", "to", "now"]

    def test_stream_when_block_tag_then_break(self):
        spans = tokenize_markup("<p>one</p><p>two</p>", frozenset())
        items = [item for _, item in token_stream(spans)]
        assert items[0] is SENTENCE_BREAK
        assert [i.text for i in items if i is not SENTENCE_BREAK] == ["one", "two"]

    def test_stream_when_inline_tag_then_no_break(self):
        spans = tokenize_markup("one <b>two</b> three", frozenset())
        items = [item for _, item in token_stream(spans)]
        assert SENTENCE_BREAK not in items

    def test_is_sentence_break_when_opaque_then_true(self):
        assert is_sentence_break(Span(SpanKind.OPAQUE, 0, "<!-- x -->"))


class TestModelBuilder:
    """Tests for transition counting."""

    def test_init_when_order_zero_then_raises_error(self):
        with pytest.raises(ValueError, match="order must be >= 1"):
            ModelBuilder(order=0)

    def test_train_when_sequence_then_counts_every_context_length(self):
        # Arrange
        builder = ModelBuilder(order=2)

        # Act
        builder.train(words("the cat sat the cat ran"))

        # Assert
        assert builder.counts_for(()) == {"the": 2, "cat": 2, "sat": 1, "ran": 1}
        assert builder.counts_for(("the",)) == {"cat": 2}
        assert builder.counts_for(("the", "cat")) == {"sat": 1, "ran": 1}
        assert builder.counts_for(("cat", "sat")) == {"the": 1}
        assert builder.tokens_seen == 6

    def test_train_when_sentence_break_then_context_resets(self):
        builder = ModelBuilder(order=2)
        builder.train(["end", SENTENCE_BREAK, "start"])
        assert builder.counts_for(("end",)) == {}
        assert builder.counts_for(())["start"] == 1

    def test_train_spans_when_case_differs_then_counts_folded(self):
        builder = ModelBuilder(order=1)
        builder.train_spans(segment_text("The dog and the Dog"))
        assert builder.counts_for(())["the"] == 2
        assert builder.counts_for(("the",)) == {"dog": 2}

    def test_merge_when_order_differs_then_raises_error(self):
        with pytest.raises(ValueError, match="cannot merge"):
            ModelBuilder(order=2).merge(ModelBuilder(order=3))

    def test_merge_when_two_builders_then_counts_add(self):
        a = ModelBuilder(order=1)
        a.train(words("red fox"))
        b = ModelBuilder(order=1)
        b.train(words("red hen"))

        merged = a.merge(b)

        assert merged is a
        assert merged.counts_for(("red",)) == {"fox": 1, "hen": 1}
        assert merged.tokens_seen == 4

    def test_merge_when_order_of_merging_varies_then_same_model(self):
        """Merging is commutative: frozen tables are identical."""
        texts = ["a b c a b", "b c d", "c a a b"]

        def build(order_of_texts):
            total = ModelBuilder(order=2)
            for text in order_of_texts:
                part = ModelBuilder(order=2)
                part.train(words(text))
                total.merge(part)
            return total.freeze()

        forward = build(texts)
        backward = build(list(reversed(texts)))

        assert forward.tables.keys() == backward.tables.keys()
        for key in forward.tables:
            assert forward.tables[key].tokens == backward.tables[key].tokens
            assert list(forward.tables[key].cumulative) == list(backward.tables[key].cumulative)

    def test_freeze_when_nothing_trained_then_empty_model(self):
        model = ModelBuilder(order=2).freeze()
        assert model.is_empty
        assert model.context_count == 0


class TestCaseFolding:
    """Folded forms that are not a single word stay out of the model."""

    def test_train_when_dotted_capital_i_then_folded_form_skipped(self):
        # Arrange
        builder = ModelBuilder(order=1)
        token = Token.from_word("İstanbul")

        # Act
        builder.train([Token("visit"), token, Token("today")])

        # Assert
        assert token.text == "i\u0307stanbul"
        assert set(builder.counts_for(())) == {"visit", "today"}
        assert builder.tokens_seen == 2

    def test_train_when_folded_form_skipped_then_window_reset(self):
        builder = ModelBuilder(order=1)
        builder.train(["visit", "i\u0307stanbul", "today"])
        assert ("visit",) not in builder.freeze().tables
