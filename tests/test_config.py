"""Tests for search configuration."""

import json

import pytest

from switch_engine_search.automaton import Rect
from switch_engine_search.config import SearchConfig


class TestSearchConfig:

    def test_defaults(self):
        config = SearchConfig()
        assert config.gens_per_quantum == 96
        assert config.displacement == (-8, -8)
        assert config.max_quantums == 100
        assert config.reset_quanta == (16, 40, 80)
        assert config.status_every == 1024

    @pytest.mark.parametrize("trial_index,expected", [
        (0, Rect(-3, 14, 20, 11)),
        (6, Rect(-3, 14, 26, 12)),
        (13, Rect(-3, 14, 26, 14)),
        (35, Rect(-3, 14, 20, 11)),
    ])
    def test_perturbation_jitter(self, trial_index, expected):
        assert SearchConfig().perturbation_rect(trial_index) == expected

    def test_protect_rect_trails_anchor(self):
        config = SearchConfig()
        assert config.anchor(16) == (-128, -128)
        assert config.protect_rect(16) == Rect(-208, -208, 180, 180)

    def test_protect_rect_contains_engine_at_each_reset(self):
        config = SearchConfig()
        for q in config.reset_quanta:
            rect = config.protect_rect(q)
            x, y = config.anchor(q)
            assert rect.x <= x < rect.right
            assert rect.y <= y < rect.bottom
            # The engine keeps protect_offset cells of clearance in its direction of travel.
            assert x - rect.x == config.protect_offset

    def test_replace_ignores_none(self):
        config = SearchConfig().replace(max_quantums=90, seed=None, output_dir="elsewhere")
        assert config.max_quantums == 90
        assert config.seed is None
        assert config.output_dir == "elsewhere"

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            SearchConfig(max_quantums=0)
        with pytest.raises(ValueError):
            SearchConfig(density_percent=150)
        with pytest.raises(ValueError):
            SearchConfig(rule="B3/S29")

    def test_json_round_trip(self, tmp_path):
        path = tmp_path / "config.json"
        config = SearchConfig(reset_quanta=(10, 20), seed=5)
        config.save(str(path))
        assert SearchConfig.from_json(str(path)) == config

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"max_quantums": 12, "reset_quanta": [4], "displacement": [-4, -4]}))
        config = SearchConfig.from_json(str(path))
        assert config.max_quantums == 12
        assert config.displacement == (-4, -4)
        assert config.gens_per_quantum == 96

    def test_unknown_keys_rejected(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"max_quanta": 12}))
        with pytest.raises(ValueError, match="max_quanta"):
            SearchConfig.from_json(str(path))


class TestGeometryValidation:
    """Settings that would let the engine or its reset square leave the grid."""

    def test_engine_path_must_stay_on_grid(self):
        # At 200 quanta the anchor reaches (-1600, -1600), far past the 880-cell margin.
        with pytest.raises(ValueError, match="leaves the grid"):
            SearchConfig(max_quantums=200)

    def test_longest_path_that_fits(self):
        config = SearchConfig(max_quantums=110)
        x, y = config.anchor(config.max_quantums)
        assert 0 <= x + config.origin[0] < config.grid_size

    def test_larger_grid_allows_longer_runs(self):
        config = SearchConfig(max_quantums=200, grid_size=2048, origin=(1800, 1800))
        assert config.max_quantums == 200

    def test_reset_square_must_fit_grid(self):
        with pytest.raises(ValueError, match="reset square"):
            SearchConfig(grid_size=850, origin=(880, 880))

    @pytest.mark.parametrize("offset", [0, 4, 176, 200])
    def test_protect_offset_must_surround_engine(self, offset):
        with pytest.raises(ValueError, match="protect_offset"):
            SearchConfig(protect_offset=offset)

    @pytest.mark.parametrize("quanta", [(0, 40), (16, 101), (-3,)])
    def test_reset_quanta_within_trial(self, quanta):
        with pytest.raises(ValueError, match="reset quantum"):
            SearchConfig(reset_quanta=quanta)

    def test_cli_style_override_is_validated(self):
        with pytest.raises(ValueError):
            SearchConfig().replace(max_quantums=200)
