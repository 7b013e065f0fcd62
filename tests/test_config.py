from pathlib import Path

import pytest

from runner.config import Settings, application_dirs, load_settings, runtime_dir
from runner.errors import ConfigError


class TestLoadSettings:
    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "config.yml")
        assert settings.providers == ["applications", "runner"]
        assert settings.applications.prioritize_new is False
        assert settings.applications.actions is True
        assert settings.applications.show_generic is True

    def test_camel_case_keys(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text(
            "providers: [applications]\n"
            "provider_timeout: null\n"
            "applications:\n"
            "  prioritizeNew: true\n"
            "  actions: false\n"
            "  showGeneric: false\n",
            encoding="utf-8",
        )
        settings = load_settings(path)
        assert settings.providers == ["applications"]
        assert settings.provider_timeout is None
        assert settings.applications.prioritize_new is True
        assert settings.applications.actions is False
        assert settings.applications.show_generic is False

    def test_environment_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yml"
        path.write_text("terminal: foot\n", encoding="utf-8")
        monkeypatch.setenv("RUNNER_TERMINAL", "kitty")
        assert load_settings(path).terminal == "kitty"

    def test_config_path_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yml"
        path.write_text("providers: [runner]\n", encoding="utf-8")
        monkeypatch.setenv("RUNNER_CONFIG", str(path))
        assert load_settings().providers == ["runner"]

    def test_invalid_yaml_is_fatal(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("providers: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_invalid_values_are_fatal(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("provider_timeout: soon\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(path)

    def test_non_mapping_is_fatal(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_settings(path)


class TestPaths:
    def test_application_dirs_priority(self, monkeypatch):
        monkeypatch.setenv("XDG_DATA_HOME", "/home/u/.local/share")
        monkeypatch.setenv("XDG_DATA_DIRS", "/usr/local/share:/usr/share:/usr/share")
        assert application_dirs() == [
            Path("/home/u/.local/share/applications"),
            Path("/usr/local/share/applications"),
            Path("/usr/share/applications"),
        ]

    def test_application_dirs_defaults(self, monkeypatch):
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.delenv("XDG_DATA_DIRS", raising=False)
        dirs = application_dirs()
        assert dirs[0] == Path.home() / ".local" / "share" / "applications"
        assert dirs[1:] == [Path("/usr/local/share/applications"), Path("/usr/share/applications")]

    def test_socket_path(self, tmp_path):
        assert Settings(socket_path=str(tmp_path / "s.sock")).resolved_socket_path() == tmp_path / "s.sock"
        default = Settings(socket_path="").resolved_socket_path()
        assert default.name == "request.sock"
        assert default.parent == runtime_dir()

    def test_runtime_dir_is_private(self):
        assert runtime_dir().stat().st_mode & 0o077 == 0
