"""
Tests for khukuri.yaml loading and search path assembly.
"""

import os

import pytest
from khukuri import RunConfig, ConfigError, load_config
from khukuri.config import (
    CONFIG_FILENAME, DEFAULT_MAX_CALL_DEPTH, KHUKURI_PATH,
    env_search_paths, find_config,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv(KHUKURI_PATH, raising=False)


class TestRunConfig:
    """Test building a config from parsed YAML data."""

    def test_defaults(self):
        config = RunConfig()
        assert config.search_paths == []
        assert config.max_call_depth == DEFAULT_MAX_CALL_DEPTH
        assert config.encoding == "utf-8"
        assert config.source is None

    def test_from_dict(self, tmp_path):
        config = RunConfig.from_dict(
            {"search_paths": ["lib"], "max_call_depth": 500, "encoding": "utf-8"},
            base_dir=tmp_path,
        )
        assert config.search_paths == [(tmp_path / "lib").resolve()]
        assert config.max_call_depth == 500

    def test_single_search_path_string(self, tmp_path):
        config = RunConfig.from_dict({"search_paths": "lib"}, base_dir=tmp_path)
        assert config.search_paths == [(tmp_path / "lib").resolve()]

    def test_empty_mapping_gives_defaults(self):
        config = RunConfig.from_dict({})
        assert config.max_call_depth == DEFAULT_MAX_CALL_DEPTH

    @pytest.mark.parametrize("data", [
        ["not", "a", "mapping"],
        {"search_paths": [1, 2]},
        {"search_paths": {"a": "b"}},
        {"max_call_depth": 0},
        {"max_call_depth": "many"},
        {"max_call_depth": True},
        {"encoding": 8},
    ])
    def test_invalid_values(self, data):
        with pytest.raises(ConfigError):
            RunConfig.from_dict(data)

    def test_add_search_paths_skips_duplicates(self, tmp_path):
        config = RunConfig()
        config.add_search_paths([tmp_path, str(tmp_path), tmp_path / "x"])
        assert config.search_paths == [tmp_path.resolve(), (tmp_path / "x").resolve()]

    def test_to_dict(self, tmp_path):
        config = RunConfig(search_paths=[tmp_path], max_call_depth=10)
        assert config.to_dict() == {
            "search_paths": [str(tmp_path)],
            "max_call_depth": 10,
            "encoding": "utf-8",
        }


class TestLoading:
    """Test reading khukuri.yaml from disk."""

    def test_load(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("search_paths:\n  - lib\n  - ../shared\nmax_call_depth: 300\n")
        config = RunConfig.load(path)
        assert config.search_paths == [
            (tmp_path / "lib").resolve(),
            (tmp_path.parent / "shared").resolve(),
        ]
        assert config.max_call_depth == 300
        assert config.source == path

    def test_empty_file(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("")
        assert RunConfig.load(path).search_paths == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RunConfig.load(tmp_path / "nai.yaml")

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text("search_paths: [lib\n")
        with pytest.raises(ConfigError):
            RunConfig.load(path)

    def test_find_config(self, tmp_path):
        assert find_config(tmp_path) is None
        (tmp_path / CONFIG_FILENAME).write_text("{}")
        assert find_config(tmp_path) == tmp_path / CONFIG_FILENAME


class TestLoadConfig:
    """Test merging of file, environment and command-line settings."""

    def test_no_config_anywhere(self, tmp_path):
        config = load_config(start_dir=tmp_path)
        assert config.source is None
        assert config.search_paths == []

    def test_found_next_to_program(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("max_call_depth: 42\n")
        assert load_config(start_dir=tmp_path).max_call_depth == 42

    def test_explicit_path_wins(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("max_call_depth: 42\n")
        other = tmp_path / "other.yaml"
        other.write_text("max_call_depth: 7\n")
        assert load_config(other, start_dir=tmp_path).max_call_depth == 7

    def test_env_and_extra_paths_appended(self, tmp_path, monkeypatch):
        (tmp_path / CONFIG_FILENAME).write_text("search_paths: [lib]\n")
        env_dir = tmp_path / "env"
        monkeypatch.setenv(KHUKURI_PATH, str(env_dir))
        config = load_config(start_dir=tmp_path, extra_paths=[tmp_path / "cli"])
        assert config.search_paths == [
            (tmp_path / "lib").resolve(),
            env_dir.resolve(),
            (tmp_path / "cli").resolve(),
        ]

    def test_env_search_paths_split(self, monkeypatch):
        monkeypatch.setenv(KHUKURI_PATH, os.pathsep.join(["/a", "", " /b "]))
        assert [str(p) for p in env_search_paths()] == ["/a", "/b"]

    def test_env_unset(self):
        assert env_search_paths() == []
