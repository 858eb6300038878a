"""Single-version release steps: the update flow and release archives."""
from pathlib import Path
from typing import Optional

from .about import update_about
from .config import Context, update_mod_info
from .errors import ConfigError, ModToolsError
from .files import clear_directory, copy_directory, create_archive
from .git import Git
from .log import Task
from .merge import check_target
from .version import bump_version, version_string


def check_uncommitted_changes(context: Context, force: bool = False, git: Optional[Git] = None) -> list[str]:
    """Refuse to continue while the mod folder has uncommitted changes, unless forced."""
    git = git or Git(context.build.base_dir)
    changes = git.changed_files()
    if changes:
        listing = '\n- '.join(changes)
        if not force:
            raise ModToolsError(f"Local branch has uncommitted changes:\n- {listing}")
        Task.log('check uncommitted changes', 'warning', f"forced to continue despite uncommitted changes:\n- {listing}")
    return changes


def install_mod(context: Context) -> int:
    """Replace the installed mod with a filtered copy of the source folder."""
    check_target(context.build.source_dir, context.build.target_dir)
    task = Task.long('copy directory')
    try:
        clear_directory(context.build.target_dir)
        count = copy_directory(context.build.source_dir, context.build.target_dir, context.exclude)
    except ModToolsError:
        task.failure('aborted')
        raise
    task.success(f"{count} files → {context.build.target_dir}")
    return count


def update_mod(
    context: Context,
    bump: Optional[str] = 'build',
    force: bool = False,
    git: Optional[Git] = None
) -> None:
    """Bump the version, regenerate About.xml and install the mod into the game.

    bump=None keeps the current version.
    """
    check_uncommitted_changes(context, force, git)
    check_target(context.build.source_dir, context.build.target_dir)

    if bump:
        old_version = context.version
        context.version = bump_version(old_version, bump)
        Task.log('bump version', 'success', f"{old_version} → {context.version}")
    update_mod_info(context)

    if context.game.get('name') == 'RimWorld':
        update_about(context)

    install_mod(context)


def get_archive_path(context: Context) -> Path:
    """<archiveDir>/<mod name> v<version>.zip"""
    archive_dir = context.game.get('archiveDir')
    if not archive_dir:
        raise ConfigError("gameconfig.json has no archiveDir")
    name = context.mod.get('name') or Path(context.build.base_dir).name
    return Path(archive_dir) / f"{name} v{version_string(context.version)}.zip"


def create_release_archive(context: Context) -> Path:
    """Zip the installed (or merged) mod folder into the archive folder."""
    archive_path = get_archive_path(context)
    task = Task.long('create release archive')
    try:
        size = create_archive(context.build.target_dir, archive_path)
    except ModToolsError:
        task.failure('aborted')
        raise
    task.success(f"{archive_path} ({size / 1024:.1f} KB)")
    return archive_path
