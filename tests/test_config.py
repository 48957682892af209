"""Tests for TOML configuration and path resolution."""

import tomllib

import pytest

from openmate.config import (
    CONFIG_FILENAME,
    CONFIG_VERSION,
    OpenMateConfig,
    load_config,
    load_or_create_config,
    save_config,
)
from openmate.paths import get_config_dir, get_store_file


class TestPaths:

    def test_config_dir_from_env(self, isolated_home):
        assert get_config_dir() == isolated_home

    def test_config_dir_default(self, monkeypatch, tmp_path):
        monkeypatch.delenv("OPENMATE_HOME")
        monkeypatch.setenv("HOME", str(tmp_path))
        assert get_config_dir() == tmp_path / ".openmate"

    def test_store_file_default(self, isolated_home):
        assert get_store_file() == isolated_home / "repos.json"

    def test_store_file_configured(self, tmp_path):
        assert get_store_file(tmp_path / "x.json") == tmp_path / "x.json"

    def test_store_file_env_beats_config(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OPENMATE_STORE_FILE", str(tmp_path / "env.json"))
        assert get_store_file(tmp_path / "cfg.json") == tmp_path / "env.json"


class TestConfig:

    def test_load_missing_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path)

    def test_load_or_create_writes_defaults(self, tmp_path):
        config = load_or_create_config(tmp_path / "cfg")
        assert config.version == CONFIG_VERSION
        assert config.store_file is None
        assert config.editors == {}
        with open(tmp_path / "cfg" / CONFIG_FILENAME, "rb") as f:
            data = tomllib.load(f)
        assert data["openmate"]["version"] == CONFIG_VERSION
        assert "store" not in data

    def test_save_and_load(self, tmp_path):
        original = OpenMateConfig(
            path=tmp_path,
            store_file=tmp_path / "repos.json",
            editors={"vs": ["/opt/code"], "ij": ["idea-eap", "/opt/idea/bin/idea.sh"]},
        )
        save_config(original)
        loaded = load_config(tmp_path)
        assert loaded.store_file == tmp_path / "repos.json"
        assert loaded.editors == original.editors
        assert loaded.created == original.created

    def test_load_existing_not_rewritten(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text('[openmate]\nversion = 1\ncreated = "then"\n')
        assert load_or_create_config(tmp_path).created == "then"

    def test_newer_version_rejected(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text("[openmate]\nversion = 99\n")
        with pytest.raises(ValueError, match="newer than supported"):
            load_config(tmp_path)

    def test_unknown_editor_rejected(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text('[editors]\nemacs = ["emacs"]\n')
        with pytest.raises(ValueError, match="Unknown editor"):
            load_config(tmp_path)

    def test_editor_candidates_must_be_strings(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text('[editors]\nvs = "code"\n')
        with pytest.raises(ValueError, match="list of strings"):
            load_config(tmp_path)

    def test_resolved_store_file(self, tmp_path, isolated_home):
        assert OpenMateConfig(path=tmp_path).resolved_store_file == isolated_home / "repos.json"
        configured = OpenMateConfig(path=tmp_path, store_file=tmp_path / "s.json")
        assert configured.resolved_store_file == tmp_path / "s.json"
