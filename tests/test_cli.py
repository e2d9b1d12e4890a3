"""
Tests for the sitefoil command line.
"""

import json

import pytest

from sitefoil import __version__
from sitefoil.cli import _build_parser, _engine_config, main
from sitefoil.engine.config import ScrambleMode


class TestParser:
    """Argument parsing."""

    def test_parse_when_run_flags_then_engine_settings(self, tmp_path):
        # Arrange
        args = _build_parser().parse_args([
            "run", "-i", "site", "-o", "public",
            "-p", "0.1", "--order", "3",
            "--scramble-images", "0.5", "--scramble-mode", "bytes",
            "--exclude", "Acme", "--exclude", "widget",
            "--maze-link", "/trap",
        ])

        # Act
        config = _engine_config(args)

        # Assert
        assert config.mutation.rate == 0.1
        assert config.mutation.order == 3
        assert config.mutation.exclusions.exclude_words == frozenset({"acme", "widget"})
        assert config.scramble.fraction == 0.5
        assert config.scramble.mode is ScrambleMode.BYTES
        assert config.maze_link_path == "/trap"

    def test_parse_when_config_file_then_flags_override_it(self, tmp_path):
        settings = tmp_path / "settings.json"
        settings.write_text(json.dumps({"rate": 0.5, "order": 4}))
        args = _build_parser().parse_args(["run", "-i", "s", "-o", "p", "--config", str(settings), "-p", "0.25"])
        config = _engine_config(args)
        assert config.mutation.rate == 0.25
        assert config.mutation.order == 4

    def test_parse_when_no_command_then_usage_error(self):
        with pytest.raises(SystemExit) as excinfo:
            _build_parser().parse_args([])
        assert excinfo.value.code == 2

    def test_version_when_requested_then_printed(self, capsys):
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["--version"])
        assert __version__ in capsys.readouterr().out


class TestMain:
    """End-to-end runs through main()."""

    def test_main_when_run_then_site_written_and_exit_zero(self, site_root, tmp_path, capsys):
        # Act
        code = main(["-q", "run", "-i", str(site_root), "-o", str(tmp_path / "public"), "--seed", "4"])

        # Assert
        assert code == 0
        assert (tmp_path / "public" / "index.html").exists()
        out = capsys.readouterr().out
        assert out.startswith("success:")
        assert "seed 4" in out

    def test_main_when_output_inside_input_then_exit_one(self, site_root):
        code = main(["-q", "run", "-i", str(site_root), "-o", str(site_root / "public")])
        assert code == 1
        assert not (site_root / "public").exists()

    def test_main_when_invalid_rate_then_exit_one(self, site_root, tmp_path):
        assert main(["-q", "run", "-i", str(site_root), "-o", str(tmp_path / "p"), "-p", "1.5"]) == 1

    def test_main_when_config_file_missing_then_exit_one(self, site_root, tmp_path):
        code = main(["-q", "run", "-i", str(site_root), "-o", str(tmp_path / "p"), "--config", str(tmp_path / "x.json")])
        assert code == 1

    def test_main_when_maze_then_pages_written(self, site_root, tmp_path, capsys):
        code = main([
            "-q", "maze", "-t", str(site_root), "-o", str(tmp_path / "maze"),
            "--count", "3", "--min-tokens", "10", "--max-tokens", "20", "--seed", "1",
        ])
        assert code == 0
        assert len(list((tmp_path / "maze").glob("*.html"))) == 3
        assert "Wrote 3 maze pages" in capsys.readouterr().out
