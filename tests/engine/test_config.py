"""
Unit Tests for engine configuration.
"""

import json

import pytest

from sitefoil.engine.config import (
    DEFAULT_OPAQUE_ELEMENTS,
    EngineConfig,
    ExclusionRules,
    MutationConfig,
    ScrambleConfig,
    ScrambleMode,
    load_config,
    settings_to_engine_config,
)


class TestDefaults:
    """Default values."""

    def test_defaults_when_constructed_then_documented_values(self):
        config = EngineConfig()
        assert config.mutation.rate == 0.20
        assert config.mutation.order == 2
        assert config.mutation.exclusions.min_length == 3
        assert config.scramble.fraction == 0.4
        assert config.scramble.mode is ScrambleMode.LINKS
        assert config.opaque_elements == DEFAULT_OPAQUE_ELEMENTS
        assert config.maze_link_path is None


class TestValidation:
    """Invalid values raise ValueError on construction."""

    @pytest.mark.parametrize("rate", [0.0, -0.1, 1.5])
    def test_mutation_when_rate_out_of_range_then_raises_error(self, rate):
        with pytest.raises(ValueError, match="rate must be in"):
            MutationConfig(rate=rate)

    def test_mutation_when_rate_one_then_allowed(self):
        assert MutationConfig(rate=1.0).rate == 1.0

    def test_mutation_when_order_zero_then_raises_error(self):
        with pytest.raises(ValueError, match="order must be >= 1"):
            MutationConfig(order=0)

    @pytest.mark.parametrize("fraction", [-0.01, 1.01])
    def test_scramble_when_fraction_out_of_range_then_raises_error(self, fraction):
        with pytest.raises(ValueError, match="fraction must be in"):
            ScrambleConfig(fraction=fraction)

    def test_scramble_when_fraction_zero_then_disabled(self):
        assert not ScrambleConfig(fraction=0.0).enabled
        assert ScrambleConfig(fraction=0.1).enabled

    def test_engine_when_maze_path_is_root_then_raises_error(self):
        with pytest.raises(ValueError, match="maze_link_path"):
            EngineConfig(maze_link_path="/")

    def test_engine_when_opaque_elements_mixed_case_then_lowercased(self):
        config = EngineConfig(opaque_elements=frozenset({"SCRIPT", "Pre"}))
        assert config.opaque_elements == frozenset({"script", "pre"})


class TestSettings:
    """Tests for settings_to_engine_config() and load_config()."""

    def test_settings_when_flat_keys_then_nested_config(self):
        # Act
        config = settings_to_engine_config({
            "rate": 0.1,
            "order": 3,
            "min_length": 5,
            "exclude_words": ["Sitefoil"],
            "scramble_fraction": 0.75,
            "scramble_mode": "bytes",
            "maze_link_path": "/trap",
        })

        # Assert
        assert config.mutation == MutationConfig(
            rate=0.1, order=3,
            exclusions=ExclusionRules(min_length=5, exclude_words=frozenset({"sitefoil"})),
        )
        assert config.scramble == ScrambleConfig(fraction=0.75, mode=ScrambleMode.BYTES)
        assert config.maze_link_path == "/trap"

    def test_settings_when_base_given_then_unspecified_values_kept(self):
        base = EngineConfig(mutation=MutationConfig(rate=0.5, order=4))
        config = settings_to_engine_config({"rate": 0.3}, base)
        assert config.mutation.rate == 0.3
        assert config.mutation.order == 4

    def test_settings_when_unknown_key_then_ignored(self):
        assert settings_to_engine_config({"colour": "blue"}) == EngineConfig()

    def test_settings_when_invalid_value_then_raises_error(self):
        with pytest.raises(ValueError):
            settings_to_engine_config({"scramble_mode": "sideways"})

    def test_load_config_when_json_file_then_applied(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"rate": 0.05, "opaque_elements": ["script"]}))
        config = load_config(path)
        assert config.mutation.rate == 0.05
        assert config.opaque_elements == frozenset({"script"})

    def test_load_config_when_not_object_then_raises_error(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError, match="JSON object"):
            load_config(path)

    def test_load_config_when_malformed_then_raises_error(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{rate: }")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_config(path)
