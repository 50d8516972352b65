"""Tests for configuration handling."""

import json

import pytest

from mcupdater.config import Config
from mcupdater.exceptions import UpdaterConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of the tests."""
    for name in (
        "MCUPDATER_SERVER",
        "MCUPDATER_PROFILE",
        "MCUPDATER_GAME_DIR",
        "MCUPDATER_LOG_FILE",
    ):
        monkeypatch.delenv(name, raising=False)


class TestConfig:
    """Tests for the Config class."""

    def test_empty_when_no_file(self, tmp_path):
        config = Config(config_dir=tmp_path)
        assert config.server is None
        assert config.profile is None
        assert config.is_configured() is False

    def test_save_and_reload(self, tmp_path):
        config = Config(config_dir=tmp_path / "mcupdater")

        path = config.save(server="https://mc.example.org", profile="survival")

        assert path == tmp_path / "mcupdater" / "config.json"
        reloaded = Config(config_dir=tmp_path / "mcupdater")
        assert reloaded.server == "https://mc.example.org"
        assert reloaded.profile == "survival"
        assert reloaded.is_configured() is True

    def test_save_merges_and_removes(self, tmp_path):
        config = Config(config_dir=tmp_path)
        config.save(server="https://a", profile="one", game_dir="/games/mc")

        config.save(profile="two", game_dir=None)

        data = json.loads(config.get_config_path().read_text(encoding="utf-8"))
        assert data == {"server": "https://a", "profile": "two"}

    def test_save_rejects_unknown_keys(self, tmp_path):
        with pytest.raises(UpdaterConfigError, match="api_key"):
            Config(config_dir=tmp_path).save(api_key="secret")

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        Config(config_dir=tmp_path).save(server="https://file", profile="file")
        monkeypatch.setenv("MCUPDATER_SERVER", "https://env")

        config = Config(config_dir=tmp_path)

        assert config.server == "https://env"
        assert config.profile == "file"

    def test_game_dir_and_log_file(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MCUPDATER_LOG_FILE", "/tmp/mcupdater.log")
        config = Config(config_dir=tmp_path)
        config.save(game_dir="/games/mc")

        assert config.game_dir == "/games/mc"
        assert config.log_file == "/tmp/mcupdater.log"

    def test_invalid_file_is_ignored(self, tmp_path):
        (tmp_path / "config.json").write_text("{broken", encoding="utf-8")
        assert Config(config_dir=tmp_path).server is None

    def test_non_object_file_is_ignored(self, tmp_path):
        (tmp_path / "config.json").write_text('["x"]', encoding="utf-8")
        assert Config(config_dir=tmp_path).server is None

    def test_unknown_keys_in_file_are_dropped(self, tmp_path):
        (tmp_path / "config.json").write_text(
            json.dumps({"server": "https://a", "token": "x"}), encoding="utf-8"
        )
        config = Config(config_dir=tmp_path)
        config.save(profile="p")

        data = json.loads(config.get_config_path().read_text(encoding="utf-8"))
        assert "token" not in data
