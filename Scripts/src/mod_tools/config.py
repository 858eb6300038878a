"""Configuration management for mod-tools.

Three JSON files describe a mod project:
- modinfo.json: the mod itself (name, author, version, dependencies, ...)
- gameconfig.json: the game (mods folder, include/exclude globs, ...)
- systemconfig.json: machine-specific tool paths and tokens

Each is found by walking up from the working directory, so a gameconfig.json
in a parent folder is shared by every mod below it.
"""
import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .errors import ConfigError, FileError
from .paths import ensure_dir, find_up, get_config_dir
from .version import Version, create_version, version_dict

MOD_CONFIG = 'modinfo.json'
GAME_CONFIG = 'gameconfig.json'
SYSTEM_CONFIG = 'systemconfig.json'

CONFIG_FILE_NAMES = {
    'mod': MOD_CONFIG,
    'game': GAME_CONFIG,
    'system': SYSTEM_CONFIG,
}

DEPENDENCY_TYPES = ('required', 'incompatible', 'loadBefore', 'loadAfter')


@dataclass
class BuildInfo:
    base_dir: str
    source_dir: str
    target_dir: str
    build_target: str = 'DEBUG'


@dataclass
class Context:
    """Everything a command needs: the three configs plus derived build paths."""
    mod: dict
    game: dict
    system: dict
    build: BuildInfo
    debug: bool = False

    @property
    def version(self) -> Version:
        return create_version(self.mod.get('version'))

    @version.setter
    def version(self, value: Version) -> None:
        self.mod['version'] = version_dict(value)

    @property
    def include(self) -> list[str]:
        return self.game.get('include') or []

    @property
    def exclude(self) -> list[str]:
        return self.game.get('exclude') or []

    @property
    def author_name(self) -> str:
        author = self.mod.get('author') or {}
        if isinstance(author, str):
            return author
        return author.get('name', '')

    @property
    def dependencies(self) -> list[dict]:
        return self.mod.get('dependencies') or []


def read_json(path: Union[str, Path]) -> dict:
    """Read a JSON config file, raising ConfigError if it is unreadable."""
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a JSON object in {path}")
    return data


def write_json(path: Union[str, Path], data: dict) -> Path:
    path = Path(path)
    try:
        ensure_dir(path.parent)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=4)
            f.write('\n')
    except OSError as e:
        raise FileError(f"Could not write {path}: {e}") from e
    return path


def find_config(resource: str, start: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Locate the config file for 'mod', 'game' or 'system'.

    The system config may also live in the user config dir.
    """
    filename = CONFIG_FILE_NAMES[resource]
    path = find_up(filename, start)
    if path is None and resource == 'system':
        user_path = get_config_dir() / filename
        if user_path.is_file():
            return user_path
    return path


def load_config(resource: str, start: Optional[Union[str, Path]] = None, required: bool = True) -> dict:
    """Load a config file by resource name.

    Returns an empty dict for a missing optional config.
    """
    path = find_config(resource, start)
    if path is None:
        if required:
            raise ConfigError(
                f"No {CONFIG_FILE_NAMES[resource]} found, please create one first. See `mod config {resource}`"
            )
        return {}
    return read_json(path)


def save_config(resource: str, data: dict, directory: Optional[Union[str, Path]] = None) -> Path:
    """Write a config file into directory (default: where the existing one lives, else cwd)."""
    if directory is None:
        existing = find_config(resource)
        if existing is not None:
            return write_json(existing, data)
        directory = os.getcwd()
    return write_json(Path(directory) / CONFIG_FILE_NAMES[resource], data)


def get_mod_dir(start: Optional[Union[str, Path]] = None) -> Path:
    """Directory containing modinfo.json."""
    path = find_config('mod', start)
    if path is None:
        raise ConfigError(
            f"{MOD_CONFIG} not found, make sure you are running this command from inside a mod directory."
        )
    return path.parent


def get_context(start: Optional[Union[str, Path]] = None, debug: bool = False) -> Context:
    """Read all configs and derive the build paths."""
    mod = load_config('mod', start)
    game = load_config('game', start)
    system = load_config('system', start, required=False)

    if 'targetDir' not in game:
        raise ConfigError(f"{GAME_CONFIG} has no targetDir")

    base_dir = get_mod_dir(start)
    target_name = mod.get('targetDir') or mod.get('name', base_dir.name)
    build = BuildInfo(
        base_dir=str(base_dir),
        source_dir=str(base_dir / mod.get('sourceDir', '.')),
        target_dir=str(Path(game['targetDir']) / target_name),
    )
    return Context(mod=mod, game=game, system=system, build=build, debug=debug)


def update_mod_info(context: Context) -> Path:
    """Write the (possibly modified) mod config back next to the project."""
    return write_json(Path(context.build.base_dir) / MOD_CONFIG, context.mod)
