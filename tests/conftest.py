"""Shared fixtures: fake and real git repositories holding version branches."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from mod_tools.colors import Colors
from mod_tools.config import BuildInfo, Context
from mod_tools.errors import GitError


def about_xml(
    name: str = "Test Mod",
    author: str = "Tester",
    package_id: str = "Tester.TestMod",
    description: str | None = None,
    load_before: list[str] | None = None,
    extra: str = "",
) -> str:
    parts = [
        '<?xml version="1.0" encoding="utf-8"?>',
        "<ModMetaData>",
        f"  <name>{name}</name>",
        f"  <author>{author}</author>",
        f"  <packageId>{package_id}</packageId>",
    ]
    if description is not None:
        parts.append(f"  <description>{description}</description>")
    if load_before is not None:
        parts.append("  <loadBefore>")
        parts.extend(f"    <li>{item}</li>" for item in load_before)
        parts.append("  </loadBefore>")
    if extra:
        parts.append(extra)
    parts.append("</ModMetaData>")
    return "\n".join(parts) + "\n"


class FakeGit:
    """In-memory stand-in for mod_tools.git.Git.

    Each branch is a {relative path: content} dict. checkout swaps the files
    of the current branch for those of the new one and leaves other files alone.
    """

    def __init__(self, repo_path: Path, branches: dict[str, dict[str, str]], current: str = "master"):
        self.repo_path = Path(repo_path)
        self.tree = branches
        self.current = current
        self.checkouts: list[str] = []
        self.fail_on: set[str] = set()
        self.changes: list[str] = []

    def branches(self) -> list[str]:
        return list(self.tree)

    def current_branch(self) -> str | None:
        return self.current

    def file_exists(self, ref: str, path: str) -> bool:
        return path in self.tree.get(ref, {})

    def checkout(self, branch: str) -> None:
        if branch in self.fail_on or branch not in self.tree:
            raise GitError(["checkout", branch], f"pathspec '{branch}' did not match")
        # like git, only tracked files are swapped; untracked ones stay
        for rel_path in self.tree.get(self.current, {}):
            path = self.repo_path / rel_path
            if path.is_file():
                path.unlink()
        for rel_path, content in self.tree[branch].items():
            path = self.repo_path / rel_path
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        self.current = branch
        self.checkouts.append(branch)

    def create_branch(self, branch: str) -> None:
        if branch in self.tree:
            raise GitError(["checkout", "-b", branch], f"a branch named '{branch}' already exists")
        self.tree[branch] = dict(self.tree.get(self.current, {}))
        self.current = branch

    def changed_files(self) -> list[str]:
        return list(self.changes)

    def config_value(self, key: str) -> str | None:
        return None


@pytest.fixture(autouse=True)
def plain_colors(monkeypatch):
    """Strip ANSI codes so output assertions stay readable."""
    for name in ("HEADER", "BLUE", "CYAN", "GREEN", "WARNING", "FAIL", "GRAY", "ENDC", "BOLD"):
        monkeypatch.setattr(Colors, name, "")


@pytest.fixture
def make_context(tmp_path):
    def _make(debug: bool = False, include=None, exclude=None) -> Context:
        base = tmp_path / "mod"
        base.mkdir(exist_ok=True)
        target = tmp_path / "out"
        game = {"name": "RimWorld", "targetDir": str(tmp_path / "Mods")}
        if include is not None:
            game["include"] = include
        if exclude is not None:
            game["exclude"] = exclude
        return Context(
            mod={"name": "Test Mod", "author": {"name": "Tester"}},
            game=game,
            system={},
            build=BuildInfo(base_dir=str(base), source_dir=str(base), target_dir=str(target)),
            debug=debug,
        )

    return _make


@pytest.fixture
def mod_project(tmp_path, monkeypatch):
    """A mod folder with modinfo.json inside a game folder holding gameconfig.json; cwd is the mod."""
    game_dir = tmp_path / "RimWorld"
    mods_dir = game_dir / "Mods"
    mods_dir.mkdir(parents=True)
    (game_dir / "Version.txt").write_text("1.4.3704 rev1000\n", encoding="utf-8")

    workspace = tmp_path / "workspace"
    mod_dir = workspace / "MyMod"
    mod_dir.mkdir(parents=True)

    (workspace / "gameconfig.json").write_text(
        json.dumps({"name": "RimWorld", "targetDir": str(mods_dir), "exclude": [".git", "*.pdb"]}),
        encoding="utf-8",
    )
    (mod_dir / "modinfo.json").write_text(
        json.dumps(
            {
                "name": "My Mod",
                "author": {"name": "Fluffy"},
                "version": {"major": 1, "minor": 2, "build": 3},
                "url": "https://example.com/mymod",
                "sourceDir": ".",
                "targetDir": "MyMod",
            }
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("MOD_TOOLS_CONFIG_DIR", str(tmp_path / "user-config"))
    monkeypatch.chdir(mod_dir)
    return mod_dir


def _git(repo: Path, *args: str) -> None:
    subprocess.run(["git", "-C", str(repo), *args], check=True, capture_output=True)


@pytest.fixture
def version_repo(tmp_path):
    """Real git repo with branches 1.0 and 1.1 (and master), checked out on master."""
    repo = tmp_path / "repo"
    repo.mkdir()
    subprocess.run(["git", "init", str(repo)], check=True, capture_output=True)
    _git(repo, "config", "user.email", "test@test.com")
    _git(repo, "config", "user.name", "Test")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/master")

    def write(rel_path: str, content: str) -> None:
        path = repo / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")

    write("About/About.xml", about_xml(description="old", package_id="Tester.Old"))
    write("Defs/a.xml", "<Defs>1.0</Defs>")
    write("Readme.md", "readme 1.0")
    _git(repo, "add", "-A")
    _git(repo, "commit", "-m", "1.0")
    _git(repo, "branch", "1.0")

    write("About/About.xml", about_xml(description="new", package_id="Tester.New"))
    write("Defs/a.xml", "<Defs>1.1</Defs>")
    write("Sounds/b.ogg", "sound")
    write("Readme.md", "readme 1.1")
    _git(repo, "add", "-A")
    _git(repo, "commit", "-m", "1.1")
    _git(repo, "branch", "1.1")
    _git(repo, "branch", "1.1-beta")
    return repo
