"""Tests for config discovery and the build context."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from mod_tools.config import (
    find_config,
    get_context,
    load_config,
    read_json,
    save_config,
    update_mod_info,
)
from mod_tools.errors import ConfigError
from mod_tools.paths import find_down, find_up, get_config_dir
from mod_tools.version import Version


class TestPaths:
    def test_config_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MOD_TOOLS_CONFIG_DIR", str(tmp_path / "cfg"))
        assert get_config_dir() == tmp_path / "cfg"

    def test_config_dir_xdg(self, monkeypatch, tmp_path):
        monkeypatch.delenv("MOD_TOOLS_CONFIG_DIR", raising=False)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        monkeypatch.setattr("mod_tools.paths.is_windows", lambda: False)
        assert get_config_dir() == tmp_path / "mod-tools"

    def test_find_up(self, tmp_path):
        (tmp_path / "marker.json").write_text("{}", encoding="utf-8")
        deep = tmp_path / "a" / "b"
        deep.mkdir(parents=True)
        assert find_up("marker.json", deep) == (tmp_path / "marker.json").resolve()
        assert find_up("nothing-here.json", deep) is None

    def test_find_down_skips_build_folders(self, tmp_path):
        (tmp_path / "obj").mkdir()
        (tmp_path / "obj" / "description.md").write_text("no", encoding="utf-8")
        (tmp_path / "Docs" / "More").mkdir(parents=True)
        (tmp_path / "Docs" / "More" / "description.md").write_text("yes", encoding="utf-8")
        assert find_down("description.md", tmp_path) == tmp_path / "Docs" / "More" / "description.md"


class TestLoad:
    def test_invalid_json(self, tmp_path):
        path = tmp_path / "modinfo.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError):
            read_json(path)

    def test_json_must_be_object(self, tmp_path):
        path = tmp_path / "modinfo.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigError):
            read_json(path)

    def test_missing_required(self, tmp_path):
        with pytest.raises(ConfigError, match="mod config mod"):
            load_config("mod", tmp_path)

    def test_missing_optional(self, tmp_path, monkeypatch):
        monkeypatch.setenv("MOD_TOOLS_CONFIG_DIR", str(tmp_path / "empty"))
        assert load_config("system", tmp_path, required=False) == {}

    def test_system_config_from_user_dir(self, tmp_path, monkeypatch):
        user_dir = tmp_path / "user"
        user_dir.mkdir()
        (user_dir / "systemconfig.json").write_text('{"githubToken": "abc"}', encoding="utf-8")
        monkeypatch.setenv("MOD_TOOLS_CONFIG_DIR", str(user_dir))
        project = tmp_path / "project"
        project.mkdir()
        assert find_config("system", project) == user_dir / "systemconfig.json"
        assert load_config("system", project) == {"githubToken": "abc"}


class TestContext:
    def test_build_paths(self, mod_project, tmp_path):
        context = get_context()
        assert context.build.base_dir == str(mod_project.resolve())
        assert context.build.source_dir == str(mod_project.resolve() / ".")
        assert context.build.target_dir == str(tmp_path / "RimWorld" / "Mods" / "MyMod")
        assert context.system == {}
        assert context.exclude == [".git", "*.pdb"]
        assert context.include == []
        assert context.author_name == "Fluffy"
        assert context.version == Version(1, 2, 3)

    def test_target_defaults_to_mod_name(self, mod_project, tmp_path):
        info = json.loads((mod_project / "modinfo.json").read_text(encoding="utf-8"))
        del info["targetDir"]
        (mod_project / "modinfo.json").write_text(json.dumps(info), encoding="utf-8")
        assert get_context().build.target_dir == str(tmp_path / "RimWorld" / "Mods" / "My Mod")

    def test_game_without_target_dir(self, mod_project):
        (mod_project.parent / "gameconfig.json").write_text('{"name": "RimWorld"}', encoding="utf-8")
        with pytest.raises(ConfigError, match="targetDir"):
            get_context()

    def test_missing_game_config(self, mod_project):
        (mod_project.parent / "gameconfig.json").unlink()
        with pytest.raises(ConfigError, match="gameconfig.json"):
            get_context()

    def test_string_author(self, mod_project):
        context = get_context()
        context.mod["author"] = "Someone"
        assert context.author_name == "Someone"

    def test_update_mod_info(self, mod_project):
        context = get_context()
        context.version = Version(2, 0, 0)
        update_mod_info(context)
        saved = json.loads((mod_project / "modinfo.json").read_text(encoding="utf-8"))
        assert saved["version"] == {"major": 2, "minor": 0, "build": 0}
        assert saved["name"] == "My Mod"


def test_save_config_defaults_to_existing_file(mod_project):
    path = save_config("game", {"name": "RimWorld", "targetDir": "x"})
    assert path == (mod_project.parent / "gameconfig.json").resolve()
    assert json.loads(Path(path).read_text(encoding="utf-8"))["targetDir"] == "x"
