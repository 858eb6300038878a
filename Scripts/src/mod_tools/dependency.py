"""Dependencies listed in modinfo.json.

Each entry looks like::

    {"type": "required", "id": "brrainz.harmony", "name": "Harmony", "steamId": 2009463077}

``type`` is one of required, incompatible, loadBefore or loadAfter. Only
required dependencies carry steamId and download.
"""
import re
from typing import Optional

from .config import DEPENDENCY_TYPES, Context, update_mod_info
from .errors import ConfigError
from .log import Task

PACKAGE_ID_PATTERN = re.compile(r'^(?:[a-z0-9]+\.)+[a-z0-9]+$', re.IGNORECASE)


def validate_dependency(dep) -> dict:
    """Raise ConfigError unless dep is a usable modinfo dependency entry."""
    if not isinstance(dep, dict):
        raise ConfigError(f"Invalid dependency in modinfo.json: {dep!r}")
    if not dep.get('id'):
        raise ConfigError(f"Dependency without an id in modinfo.json: {dep!r}")
    if dep.get('type') not in DEPENDENCY_TYPES:
        raise ConfigError(
            f"Dependency {dep['id']} has unknown type {dep.get('type')!r} "
            f"(expected one of {', '.join(DEPENDENCY_TYPES)})"
        )
    return dep


def create_dependency(
    dep_type: str,
    dep_id: str,
    name: Optional[str] = None,
    version: Optional[str] = None,
    steam_id: Optional[str] = None,
    download: Optional[str] = None
) -> dict:
    """Build a dependency entry, leaving out empty values."""
    if not PACKAGE_ID_PATTERN.match(dep_id or ''):
        raise ConfigError(f"'{dep_id}' is not a valid package id, e.g. 'brrainz.harmony'")
    if dep_type == 'required' and not name:
        raise ConfigError("Required dependencies need a name")

    dep = {'type': dep_type, 'id': dep_id, 'name': name, 'version': version}
    if dep_type == 'required':
        dep['steamId'] = int(steam_id) if steam_id and str(steam_id).isdigit() else steam_id
        dep['download'] = download
    dep = {key: value for key, value in dep.items() if value}
    return validate_dependency(dep)


def add_dependency(context: Context, dep: dict) -> dict:
    """Append dep to modinfo.json. The same id and version may only be listed once."""
    validate_dependency(dep)
    dependencies = context.mod.setdefault('dependencies', [])
    for existing in dependencies:
        if existing.get('id') == dep['id'] and existing.get('version') == dep.get('version'):
            raise ConfigError(
                f"Mod already contains a {existing.get('type')} dependency on {dep['id']} {dep.get('version', '*')}"
            )

    dependencies.append(dep)
    update_mod_info(context)
    Task.log('add dependency', 'success', f"{dep['type']} dependency on {dep['id']} {dep.get('version', '*')}")
    return dep


def remove_dependency(context: Context, dep_id: str) -> dict:
    """Remove the single dependency on dep_id from modinfo.json."""
    dependencies = context.dependencies
    matches = [dep for dep in dependencies if dep.get('id') == dep_id]
    if not matches:
        raise ConfigError(f"Mod does not have a dependency on {dep_id}")
    if len(matches) > 1:
        raise ConfigError(f"Mod has multiple dependencies on {dep_id}, remove them from modinfo.json by hand")

    context.mod['dependencies'] = [dep for dep in dependencies if dep.get('id') != dep_id]
    update_mod_info(context)
    removed = matches[0]
    Task.log('remove dependency', 'success', f"{removed.get('type')} dependency on {dep_id}")
    return removed


def list_dependencies(context: Context) -> list[dict]:
    dependencies = context.dependencies
    if not dependencies:
        Task.log('list dependencies', 'info', 'no dependencies listed')
    for dep in dependencies:
        Task.log(str(dep.get('id')), 'info', f"{dep.get('version', '*')} {dep.get('type')}")
    return dependencies
