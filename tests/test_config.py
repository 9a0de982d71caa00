# Tests for config.py — settings and config-dir resolution/migration
# Created: 2026-10-18

from unittest.mock import patch

import pytest

from slackstatus.config import (
    APP_NAME,
    Settings,
    get_config_dir,
    get_config_file_path,
    migrate_legacy_file,
)
from slackstatus.errors import ConfigIOError


@pytest.fixture(autouse=True)
def _fresh_migration_state(monkeypatch):
    monkeypatch.setattr("slackstatus.config._migration_attempted", set())


@pytest.fixture
def dirs(tmp_path, monkeypatch):
    """A fake platform config root and a separate legacy directory."""
    root = tmp_path / "root"
    legacy = tmp_path / "home" / ".config" / APP_NAME
    legacy.mkdir(parents=True)
    monkeypatch.setattr("slackstatus.config._user_config_root", lambda: root)
    monkeypatch.setattr("slackstatus.config._legacy_config_dir", lambda: legacy)
    return root / APP_NAME, legacy


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("CLIENT_ID", "CLIENT_SECRET", "SLACK_STATUS_CLIENT_ID"):
            monkeypatch.delenv(name, raising=False)
        s = Settings(_env_file=None)
        assert s.listen_host == "localhost"
        assert s.listen_port == 8888
        assert s.listen_path == "/auth"
        assert s.client_id == ""
        assert s.config_dir is None

    def test_prefixed_env(self, monkeypatch):
        monkeypatch.setenv("SLACK_STATUS_LISTEN_PORT", "9999")
        monkeypatch.setenv("SLACK_STATUS_CLIENT_ID", "abc")
        s = Settings(_env_file=None)
        assert s.listen_port == 9999
        assert s.client_id == "abc"

    def test_legacy_env_names(self, monkeypatch):
        monkeypatch.delenv("SLACK_STATUS_CLIENT_ID", raising=False)
        monkeypatch.delenv("SLACK_STATUS_CLIENT_SECRET", raising=False)
        monkeypatch.setenv("CLIENT_ID", "old-id")
        monkeypatch.setenv("CLIENT_SECRET", "old-secret")
        s = Settings(_env_file=None)
        assert s.client_id == "old-id"
        assert s.client_secret == "old-secret"

    def test_init_by_field_name(self):
        s = Settings(_env_file=None, client_id="x", client_secret="y")
        assert (s.client_id, s.client_secret) == ("x", "y")


class TestConfigDir:
    def test_created_under_platform_root(self, dirs):
        current, _ = dirs
        assert get_config_dir() == current
        assert current.is_dir()

    def test_settings_override(self, tmp_path):
        d = tmp_path / "custom"
        assert get_config_dir(Settings(_env_file=None, config_dir=d)) == d
        assert d.is_dir()

    def test_uncreatable_dir(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ConfigIOError):
            get_config_dir(Settings(_env_file=None, config_dir=blocker / "sub"))

    def test_xdg_config_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        with patch("slackstatus.config.platform.system", return_value="Linux"):
            assert get_config_dir() == tmp_path / "xdg" / APP_NAME


class TestMigration:
    def test_moves_legacy_file(self, dirs):
        current, legacy = dirs
        (legacy / "config.json").write_text("{}")

        path = get_config_file_path("config.json")

        assert path == current / "config.json"
        assert path.read_text() == "{}"
        assert not (legacy / "config.json").exists()

    def test_existing_file_not_replaced(self, dirs):
        current, legacy = dirs
        current.mkdir(parents=True)
        (current / "config.json").write_text("new")
        (legacy / "config.json").write_text("old")

        path = get_config_file_path("config.json")

        assert path.read_text() == "new"
        assert (legacy / "config.json").read_text() == "old"

    def test_no_legacy_file(self, dirs):
        current, _ = dirs
        path = get_config_file_path("config.json")
        assert path == current / "config.json"
        assert not path.exists()

    def test_attempted_once_per_filename(self, dirs):
        current, legacy = dirs
        get_config_file_path("config.json")
        # Appears only after the first resolution: left where it is
        (legacy / "config.json").write_text("{}")
        get_config_file_path("config.json")
        assert (legacy / "config.json").exists()
        assert not (current / "config.json").exists()

    def test_each_filename_migrates_independently(self, dirs):
        current, legacy = dirs
        (legacy / "config.json").write_text("{}")
        (legacy / "token").write_text("t")
        get_config_file_path("config.json")
        get_config_file_path("token")
        assert (current / "config.json").exists()
        assert (current / "token").exists()

    def test_source_vanishing_is_not_an_error(self, tmp_path):
        target = tmp_path / "config.json"
        legacy = tmp_path / "legacy.json"
        legacy.write_text("{}")
        with patch("slackstatus.config.shutil.move", side_effect=FileNotFoundError):
            assert migrate_legacy_file("config.json", target, legacy) is False

    def test_move_failure_raises(self, tmp_path):
        target = tmp_path / "config.json"
        legacy = tmp_path / "legacy.json"
        legacy.write_text("{}")
        with patch("slackstatus.config.shutil.move", side_effect=PermissionError("denied")):
            with pytest.raises(ConfigIOError, match="error migrating old config"):
                migrate_legacy_file("config.json", target, legacy)

    def test_same_path_is_noop(self, tmp_path):
        path = tmp_path / "config.json"
        assert migrate_legacy_file("config.json", path, path) is False

    def test_settings_without_override_migrates(self, dirs):
        current, legacy = dirs
        (legacy / "config.json").write_text("{}")
        path = get_config_file_path("config.json", Settings(_env_file=None))
        assert path == current / "config.json"
        assert path.exists()


class TestOverrideDirSkipsMigration:
    def test_real_config_left_alone(self, tmp_path, monkeypatch):
        home = tmp_path / "home"
        real = home / ".config" / APP_NAME
        real.mkdir(parents=True)
        (real / "config.json").write_text('{"DefaultDomain": "acme"}')
        (real / "token").write_text("xoxp-real")
        monkeypatch.setenv("HOME", str(home))
        settings = Settings(_env_file=None, config_dir=tmp_path / "scratch")

        path = get_config_file_path("config.json", settings)
        token_path = get_config_file_path("token", settings)

        assert path == tmp_path / "scratch" / "config.json"
        assert not path.exists()
        assert not token_path.exists()
        assert (real / "config.json").read_text() == '{"DefaultDomain": "acme"}'
        assert (real / "token").read_text() == "xoxp-real"
