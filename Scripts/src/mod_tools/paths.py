"""Cross-platform path handling for mod-tools.

On Linux: Uses XDG directories (~/.config/mod-tools/)
On Windows: Uses the package's parent directory for the user config
Project config files are found by walking up from the working directory.
"""
import os
import sys
from pathlib import Path
from typing import Optional, Union


def is_windows() -> bool:
    return sys.platform == 'win32'


def get_config_dir() -> Path:
    """Get the user config directory.

    Checks MOD_TOOLS_CONFIG_DIR env var first (for testing).
    Linux: XDG_CONFIG_HOME/mod-tools or ~/.config/mod-tools
    Windows: Same directory as the scripts
    """
    env_path = os.environ.get('MOD_TOOLS_CONFIG_DIR')
    if env_path:
        return Path(env_path).expanduser()

    if is_windows():
        return _get_script_dir()
    xdg_config = os.environ.get('XDG_CONFIG_HOME')
    if xdg_config:
        return Path(xdg_config) / 'mod-tools'
    return Path.home() / '.config' / 'mod-tools'


def find_up(filename: str, start: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """Search for a file in start dir (default: cwd) and its parents."""
    search_dir = Path(start if start is not None else os.getcwd()).resolve()
    while True:
        candidate = search_dir / filename
        if candidate.is_file():
            return candidate
        if search_dir.parent == search_dir:
            return None
        search_dir = search_dir.parent


def find_down(filename: str, start: Union[str, Path], max_depth: int = 5) -> Optional[Path]:
    """Find the first file called filename below start, breadth first.

    Build output and VCS folders are skipped.
    """
    skip_dirs = {'.git', '.vs', '.vscode', '.cache', 'bin', 'obj', 'packages', 'node_modules'}
    level = [Path(start)]
    for _ in range(max_depth + 1):
        next_level = []
        for directory in level:
            candidate = directory / filename
            if candidate.is_file():
                return candidate
            try:
                children = sorted(directory.iterdir())
            except OSError:
                continue
            next_level.extend(c for c in children if c.is_dir() and c.name not in skip_dirs)
        if not next_level:
            return None
        level = next_level
    return None


def _get_script_dir() -> Path:
    """Get the Scripts directory containing src/mod_tools."""
    return Path(__file__).parent.parent.parent


def ensure_dir(path: Union[str, Path]) -> None:
    """Create directory if it doesn't exist."""
    Path(path).mkdir(parents=True, exist_ok=True)
