"""File operations: glob-filtered listing, copying and archiving."""
import fnmatch
import os
import shutil
import zipfile
from pathlib import Path
from typing import Iterable, Optional, Union

from .errors import CopyError, FileError


def matches_any(rel_path: str, patterns: Iterable[str]) -> bool:
    """True if a glob matches the relative path or any single segment of it."""
    segments = rel_path.split('/')
    for pattern in patterns:
        if fnmatch.fnmatch(rel_path, pattern):
            return True
        if any(fnmatch.fnmatch(segment, pattern) for segment in segments):
            return True
    return False


def _is_included(rel_path: str, include: list[str], exclude: list[str], is_dir: bool) -> bool:
    if exclude and matches_any(rel_path, exclude):
        return False
    # include patterns select files; directories are always walked
    if is_dir or not include:
        return True
    return matches_any(rel_path, include)


def get_files(
    base_dir: Union[str, Path],
    include: Optional[list[str]] = None,
    exclude: Optional[list[str]] = None
) -> list[str]:
    """List files below base_dir as sorted '/'-separated relative paths.

    Files must match an include glob (if any are given) and no exclude glob.
    Excluded directories are not descended into.
    """
    include = include or []
    exclude = exclude or []
    base = os.path.abspath(base_dir)
    files = []

    for root, dirs, filenames in os.walk(base):
        rel_root = os.path.relpath(root, base).replace(os.sep, '/')
        prefix = '' if rel_root == '.' else rel_root + '/'

        dirs[:] = sorted(d for d in dirs if _is_included(prefix + d, include, exclude, is_dir=True))
        for filename in filenames:
            rel_path = prefix + filename
            if _is_included(rel_path, include, exclude, is_dir=False):
                files.append(rel_path)

    return sorted(files)


def copy_file(source: Union[str, Path], target: Union[str, Path]) -> None:
    """Copy one file, creating the target's parent directories. Raises CopyError."""
    try:
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
    except OSError as e:
        raise CopyError(str(source), str(target), e) from e


def clear_directory(directory: Union[str, Path]) -> None:
    """Remove a directory tree if it exists."""
    if not os.path.exists(directory):
        return
    try:
        shutil.rmtree(directory)
    except OSError as e:
        raise FileError(f"Could not clear {directory}: {e}") from e


def copy_directory(
    source: Union[str, Path],
    target: Union[str, Path],
    exclude: Optional[list[str]] = None
) -> int:
    """Copy every non-excluded file of source into target. Returns the number of files copied."""
    files = get_files(source, exclude=exclude)
    for rel_path in files:
        copy_file(Path(source) / rel_path, Path(target) / rel_path)
    return len(files)


def create_archive(source_dir: Union[str, Path], archive_path: Union[str, Path]) -> int:
    """Zip source_dir, stored under its own folder name. Returns the archive size in bytes."""
    source = Path(source_dir)
    if not source.is_dir():
        raise FileError(f"Nothing to archive, {source} does not exist")
    try:
        Path(archive_path).parent.mkdir(parents=True, exist_ok=True)
        with zipfile.ZipFile(archive_path, 'w', zipfile.ZIP_DEFLATED) as zipf:
            for rel_path in get_files(source):
                zipf.write(source / rel_path, f"{source.name}/{rel_path}")
    except OSError as e:
        raise FileError(f"Could not write {archive_path}: {e}") from e
    return os.path.getsize(archive_path)
