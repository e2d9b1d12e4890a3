"""
Unit Tests for link-maze generation.
"""

import random
import re

import pytest

from sitefoil.engine.errors import ModelExhausted
from sitefoil.engine.markov import MarkovModel, ModelBuilder
from sitefoil.engine.maze import generate_maze_pages, maze_anchor, random_link_name, render_maze_page


@pytest.fixture
def model(corpus_text):
    builder = ModelBuilder(order=2)
    builder.train(corpus_text.lower().replace(".", "").split())
    return builder.freeze()


class TestLinkNames:
    """Tests for random link names."""

    def test_random_link_name_when_drawn_then_alphanumeric_4_to_15(self):
        rng = random.Random(0)
        for _ in range(200):
            name = random_link_name(rng)
            assert 4 <= len(name) <= 15
            assert name.isalnum() and name.isascii()

    def test_maze_anchor_when_path_given_then_hidden_link_under_path(self):
        href, anchor = maze_anchor("maze/", random.Random(1))
        assert re.fullmatch(r"/maze/[A-Za-z0-9]{4,15}\.html", href)
        assert f'href="{href}"' in anchor
        assert 'rel="nofollow"' in anchor
        assert "display:none" in anchor


class TestRenderMazePage:
    """Tests for render_maze_page()."""

    def test_render_when_model_trained_then_html_with_word_count_in_range(self, model):
        # Act
        page = render_maze_page(model, "Title", random.Random(2), min_tokens=50, max_tokens=60).decode("utf-8")

        # Assert
        assert page.startswith("<!doctype html>")
        assert "<title>Title</title>" in page
        body = re.sub(r"<[^>]+>", " ", page.split("<body>", 1)[1])
        words = re.findall(r"[a-z]+", body)
        assert len(words) >= 50

    def test_render_when_link_names_given_then_links_only_to_them(self, model):
        page = render_maze_page(
            model, "t", random.Random(3), min_tokens=1500, max_tokens=1501, link_names=["alpha", "beta"],
        ).decode("utf-8")
        targets = set(re.findall(r'href="([^"]+)"', page))
        assert targets
        assert targets <= {"/maze/alpha.html", "/maze/beta.html"}

    def test_render_when_min_greater_than_max_then_raises_error(self, model):
        with pytest.raises(ValueError, match="min_tokens"):
            render_maze_page(model, "t", random.Random(0), min_tokens=10, max_tokens=5)

    def test_render_when_model_empty_then_raises_model_exhausted(self):
        with pytest.raises(ModelExhausted):
            render_maze_page(MarkovModel.empty(), "t", random.Random(0), min_tokens=5, max_tokens=6)

    def test_render_when_title_has_markup_then_escaped(self, model):
        page = render_maze_page(model, "<b>x</b>", random.Random(0), min_tokens=1, max_tokens=2)
        assert b"&lt;b&gt;x&lt;/b&gt;" in page


class TestGenerateMazePages:
    """Tests for generate_maze_pages()."""

    def test_generate_when_count_then_distinct_mutually_linked_pages(self, model):
        # Act
        pages = list(generate_maze_pages(model, 5, random.Random(9), min_tokens=300, max_tokens=301))

        # Assert
        names = [name for name, _ in pages]
        assert len(set(names)) == 5
        valid = {f"/maze/{name}" for name in names}
        for _, page in pages:
            for target in re.findall(r'href="([^"]+)"', page.decode("utf-8")):
                assert target in valid

    def test_generate_when_same_seed_then_same_pages(self, model):
        first = list(generate_maze_pages(model, 2, random.Random(4), min_tokens=20, max_tokens=30))
        second = list(generate_maze_pages(model, 2, random.Random(4), min_tokens=20, max_tokens=30))
        assert first == second
