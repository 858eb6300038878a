"""Multi-version release merge using git branches.

A RimWorld mod that supports several game versions keeps one branch per
version, named ``major.minor`` (``1.0``, ``1.1``, ...). Merging walks those
branches in version order and builds a single release tree:

- every file is copied to ``<target>/<version>/<path>``
- files outside the versioned folders (see ``DEFAULT_FOLDER_RULES``) are also
  copied to ``<target>/<path>``, the last version walked wins
- the per-branch About.xml files are consolidated into one manifest, with
  ``...ByVersion`` entries for fields that differ between versions
- LoadFolders.xml maps each version from 1.1 on to its folder
"""
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Union

from .about import ABOUT_PATH, XML_DECLARATION, About, parse_about, write_about
from .config import Context
from .errors import FileError, GitError, MergeError, ModToolsError
from .files import copy_file, get_files
from .git import Git
from .log import Task
from .version import coerce, satisfies

VERSION_BRANCH_PATTERN = re.compile(r'^\d+\.\d+$')

# versions that get their own LoadFolders entry and unversioned-file warnings;
# 1.0 loads from the root folder by default
VERSIONED_LOADING_RANGE = '>= 1.1'

LOAD_FOLDERS_FILE = 'LoadFolders.xml'

ALWAYS_EXCLUDED = ['.git']

# About field -> field holding per-version values when versions disagree
VARIABLE_FIELDS = (
    ('description', 'descriptions_by_version'),
    ('mod_dependencies', 'mod_dependencies_by_version'),
    ('incompatible_with', 'incompatible_with_by_version'),
    ('load_before', 'load_before_by_version'),
    ('load_after', 'load_after_by_version'),
)


@dataclass(frozen=True)
class FolderRule:
    """Top level folders that hold version specific content for a range of game versions."""
    version_range: str
    folders: frozenset


DEFAULT_FOLDER_RULES = (
    FolderRule('1.0', frozenset({'Assemblies', 'Defs', 'Patches'})),
    FolderRule('>= 1.1', frozenset({'Assemblies', 'Defs', 'Patches', 'Sounds', 'Textures', 'Languages'})),
)


class VersionFolderClassifier:
    """Decides whether a file belongs to a version specific folder."""

    def __init__(self, rules: Sequence[FolderRule] = DEFAULT_FOLDER_RULES):
        self.rules = tuple(rules)

    def folders_for(self, version: str) -> frozenset:
        """Versioned folders of the first rule matching version, or none."""
        coerced = coerce(version)
        for rule in self.rules:
            if satisfies(coerced, rule.version_range):
                return rule.folders
        return frozenset()

    def is_versioned(self, file_path: str, version: str) -> bool:
        top_level = re.split(r'[\\/]', file_path)[0]
        return top_level in self.folders_for(version)


_default_classifier = VersionFolderClassifier()


def is_versioned(file_path: str, version: str) -> bool:
    """Classify with the default RimWorld folder rules."""
    return _default_classifier.is_versioned(file_path, version)


def filter_version_branches(branches: Iterable[str]) -> list[str]:
    """Keep 'major.minor' branch names, sorted by version."""
    versions = [b for b in branches if VERSION_BRANCH_PATTERN.match(b)]
    return sorted(versions, key=coerce)


def get_version_branches(base_dir: Union[str, Path], git: Optional[Git] = None) -> list[str]:
    git = git or Git(str(base_dir))
    return filter_version_branches(git.branches())


def create_version_branch(base_dir: Union[str, Path], name: str, git: Optional[Git] = None) -> str:
    """Create and check out a new branch, normally named after a game version."""
    git = git or Git(str(base_dir))
    if name in git.branches():
        raise MergeError(f"Branch {name} already exists")
    git.create_branch(name)
    if VERSION_BRANCH_PATTERN.match(name):
        Task.log('create branch', 'success', name)
    else:
        Task.log('create branch', 'warning', f"{name} is not a version branch (e.g. '1.4'), merge will skip it")
    return name


def walk_version_branches(git: Git, versions: Sequence[str]) -> Iterator[str]:
    """Check out each version in turn. A failed checkout raises GitError."""
    for version in versions:
        git.checkout(version)
        yield version


def reconcile_version(
    base_dir: Union[str, Path],
    target_dir: Union[str, Path],
    version: str,
    files: Iterable[str],
    classifier: VersionFolderClassifier = _default_classifier
) -> list[str]:
    """Copy the checked out files into the shared and the version folder.

    Returns files that live in the shared root although the version supports
    versioned folders. Raises CopyError if any copy fails.
    """
    base = Path(base_dir)
    target = Path(target_dir)
    warn_unversioned = satisfies(version, VERSIONED_LOADING_RANGE)
    unversioned = []

    for rel_path in files:
        source = base / rel_path
        if not classifier.is_versioned(rel_path, version):
            if warn_unversioned:
                unversioned.append(rel_path)
            copy_file(source, target / rel_path)
        copy_file(source, target / version / rel_path)

    return unversioned


def _differs(values: list) -> bool:
    distinct = []
    for value in values:
        if value not in distinct:
            distinct.append(value)
    return len(distinct) > 1


def consolidate_abouts(abouts: Sequence[About]) -> About:
    """Merge per-version manifests, in walk order, into one manifest.

    name, author and url come from the first manifest, packageId from the last.
    A variable field is shared when all versions agree, otherwise it is stored
    per version under 'v<version>' keys.
    """
    if not abouts:
        raise MergeError("No manifests to consolidate")

    first, last = abouts[0], abouts[-1]
    about = About(
        name=first.name,
        author=first.author,
        package_id=last.package_id,
        url=first.url,
        supported_versions=[a._version for a in abouts],
    )

    for field_name, by_version_name in VARIABLE_FIELDS:
        values = [getattr(a, field_name) for a in abouts]
        if _differs(values):
            setattr(about, by_version_name, {f"v{a._version}": getattr(a, field_name) for a in abouts})
        else:
            setattr(about, field_name, values[0])

    # 1.0 has no LoadFolders entry, so its description doubles as the default
    if not about.description:
        for snapshot in abouts:
            if snapshot._version == '1.0':
                about.description = snapshot.description
                break

    return about


def load_folders_to_xml(versions: Iterable[str]) -> str:
    root = ET.Element('loadFolders')
    for version in versions:
        if satisfies(version, VERSIONED_LOADING_RANGE):
            entry = ET.SubElement(root, f"v{version}")
            ET.SubElement(entry, 'li').text = version
    ET.indent(root, space='    ')
    return XML_DECLARATION + ET.tostring(root, encoding='unicode') + '\n'


def write_load_folders(versions: Iterable[str], target_dir: Union[str, Path]) -> Path:
    path = Path(target_dir) / LOAD_FOLDERS_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(load_folders_to_xml(versions))
    except OSError as e:
        raise FileError(f"Could not write {path}: {e}") from e
    return path


def check_target(base_dir: Union[str, Path], target_dir: Union[str, Path]) -> Optional[str]:
    """Make sure writing to target_dir cannot destroy base_dir.

    Raises MergeError if target_dir is base_dir or one of its parents. Returns
    the '/'-separated path of target_dir inside base_dir, or None if it lies
    outside.
    """
    base = Path(base_dir).resolve()
    target = Path(target_dir).resolve()
    if target == base or target in base.parents:
        raise MergeError(f"Target folder {target} contains the mod folder {base}, choose another target")
    try:
        return target.relative_to(base).as_posix()
    except ValueError:
        return None


def _outside(rel_path: str, folder: Optional[str]) -> bool:
    return not folder or (rel_path != folder and not rel_path.startswith(folder + '/'))


def _check_manifests(git: Git, versions: Sequence[str]) -> None:
    manifest = ABOUT_PATH.replace('\\', '/')
    missing = [v for v in versions if not git.file_exists(v, manifest)]
    if missing:
        raise MergeError(f"No {manifest} found on branch(es): {', '.join(missing)}")


def merge_versions(
    context: Context,
    git: Optional[Git] = None,
    classifier: Optional[VersionFolderClassifier] = None
) -> About:
    """Build a multi-version release of the mod in context.build.target_dir.

    Checks out every version branch in turn and restores the original branch
    afterwards. Any error aborts the whole merge; files already copied stay.
    """
    base_dir = context.build.base_dir
    target_dir = context.build.target_dir
    git = git or Git(base_dir)
    classifier = classifier or VersionFolderClassifier()
    exclude = ALWAYS_EXCLUDED + context.exclude
    nested_target = check_target(base_dir, target_dir)

    versions = get_version_branches(base_dir, git)
    if not versions:
        raise MergeError(f"No version branches (e.g. '1.4') found in {base_dir}")
    _check_manifests(git, versions)

    original_branch = git.current_branch()
    task = Task.long('merge versions')
    abouts = []
    try:
        for version in walk_version_branches(git, versions):
            files = [f for f in get_files(base_dir, context.include, exclude) if _outside(f, nested_target)]
            abouts.append(parse_about(Path(base_dir) / ABOUT_PATH, version))
            task.inform(f"{version}: merging {len(files)} files")

            unversioned = reconcile_version(base_dir, target_dir, version, files, classifier)
            if context.debug and unversioned:
                task.warn(f"{version}: {', '.join(unversioned)} not versioned.")

        about = consolidate_abouts(abouts)
        write_load_folders(versions, target_dir)
        write_about(about, Path(target_dir) / ABOUT_PATH)
    except ModToolsError:
        task.failure('aborted')
        raise
    finally:
        if original_branch:
            try:
                git.checkout(original_branch)
            except GitError as e:
                task.warn(f"could not switch back to {original_branch}: {e.detail}")

    task.success(', '.join(versions))
    return about
