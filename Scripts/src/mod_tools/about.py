"""RimWorld About.xml manifest model.

An About.xml looks like::

    <ModMetaData>
        <name>My Mod</name>
        <author>Me</author>
        <packageId>Me.MyMod</packageId>
        <supportedVersions>
            <li>1.4</li>
        </supportedVersions>
        <modDependencies>
            <li>
                <packageId>brrainz.harmony</packageId>
                <displayName>Harmony</displayName>
            </li>
        </modDependencies>
        <loadAfter>
            <li>brrainz.harmony</li>
        </loadAfter>
    </ModMetaData>

Multi-version manifests add ``<fieldByVersion>`` elements with one ``<vX.Y>``
child per game version.
"""
import os
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from .config import Context
from .dependency import validate_dependency
from .errors import ConfigError, FileError, ModToolsError
from .log import Task
from .paths import ensure_dir, find_down
from .version import Version, create_version

ABOUT_PATH = os.path.join('About', 'About.xml')
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
STEAM_WORKSHOP_URL = 'steam://url/CommunityFilePage/{}'


@dataclass
class ModDependency:
    package_id: str
    display_name: Optional[str] = None
    steam_workshop_url: Optional[str] = None
    download_url: Optional[str] = None


@dataclass
class About:
    name: str = ''
    author: str = ''
    package_id: str = ''
    url: Optional[str] = None
    supported_versions: list[str] = field(default_factory=list)

    description: Optional[str] = None
    mod_dependencies: Optional[list[ModDependency]] = None
    incompatible_with: Optional[list[str]] = None
    load_before: Optional[list[str]] = None
    load_after: Optional[list[str]] = None

    descriptions_by_version: Optional[dict] = None
    mod_dependencies_by_version: Optional[dict] = None
    incompatible_with_by_version: Optional[dict] = None
    load_before_by_version: Optional[dict] = None
    load_after_by_version: Optional[dict] = None

    # game version this snapshot was read under; never written
    _version: Optional[str] = field(default=None, compare=False, repr=False)


# About attribute -> (xml tag, kind)
FIELDS = {
    'name': ('name', 'text'),
    'author': ('author', 'text'),
    'package_id': ('packageId', 'text'),
    'url': ('url', 'text'),
    'supported_versions': ('supportedVersions', 'list'),
    'description': ('description', 'text'),
    'mod_dependencies': ('modDependencies', 'deps'),
    'incompatible_with': ('incompatibleWith', 'list'),
    'load_before': ('loadBefore', 'list'),
    'load_after': ('loadAfter', 'list'),
    'descriptions_by_version': ('descriptionsByVersion', 'versioned:text'),
    'mod_dependencies_by_version': ('modDependenciesByVersion', 'versioned:deps'),
    'incompatible_with_by_version': ('incompatibleWithByVersion', 'versioned:list'),
    'load_before_by_version': ('loadBeforeByVersion', 'versioned:list'),
    'load_after_by_version': ('loadAfterByVersion', 'versioned:list'),
}

DEPENDENCY_FIELDS = {
    'package_id': 'packageId',
    'display_name': 'displayName',
    'steam_workshop_url': 'steamWorkshopUrl',
    'download_url': 'downloadUrl',
}


def create_package_id(author: str, mod: str) -> str:
    """'<author>.<mod>' with everything but letters and dots removed."""
    return re.sub(r'[^a-zA-Z.]', '', f"{author}.{mod}")


def _text(element: ET.Element) -> str:
    return (element.text or '').strip()


def _parse_value(element: ET.Element, kind: str):
    if kind == 'text':
        return _text(element)
    if kind == 'list':
        return [_text(li) for li in element.findall('li')]
    if kind == 'deps':
        deps = []
        for li in element.findall('li'):
            values = {attr: li.findtext(tag) for attr, tag in DEPENDENCY_FIELDS.items()}
            values = {k: v.strip() for k, v in values.items() if v is not None}
            deps.append(ModDependency(package_id=values.pop('package_id', ''), **values))
        return deps
    if kind.startswith('versioned:'):
        inner = kind.split(':', 1)[1]
        return {child.tag: _parse_value(child, inner) for child in element}
    raise ValueError(f"Unknown field kind: {kind}")


def parse_about(source: Union[str, Path], version: Optional[str] = None) -> About:
    """Read an About.xml file into an About. Unknown elements are ignored."""
    try:
        root = ET.parse(source).getroot()
    except ET.ParseError as e:
        raise ConfigError(f"Invalid XML in {source}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Could not read {source}: {e}") from e
    return about_from_element(root, version)


def about_from_element(root: ET.Element, version: Optional[str] = None) -> About:
    values = {}
    for attr, (tag, kind) in FIELDS.items():
        element = root.find(tag)
        if element is not None:
            values[attr] = _parse_value(element, kind)
    about = About(**values)
    about._version = version
    return about


def _append_value(parent: ET.Element, tag: str, value, kind: str) -> None:
    if value is None:
        return
    element = ET.SubElement(parent, tag)
    if kind == 'text':
        element.text = value
    elif kind == 'list':
        for item in value:
            ET.SubElement(element, 'li').text = item
    elif kind == 'deps':
        for dep in value:
            li = ET.SubElement(element, 'li')
            for attr, dep_tag in DEPENDENCY_FIELDS.items():
                dep_value = getattr(dep, attr)
                if dep_value is not None:
                    ET.SubElement(li, dep_tag).text = str(dep_value)
    elif kind.startswith('versioned:'):
        inner = kind.split(':', 1)[1]
        for key, versioned_value in value.items():
            _append_value(element, key, versioned_value, inner)
    else:
        raise ValueError(f"Unknown field kind: {kind}")


def about_to_element(about: About) -> ET.Element:
    root = ET.Element('ModMetaData')
    for attr, (tag, kind) in FIELDS.items():
        _append_value(root, tag, getattr(about, attr), kind)
    return root


def about_to_xml(about: About) -> str:
    root = about_to_element(about)
    ET.indent(root, space='    ')
    return XML_DECLARATION + ET.tostring(root, encoding='unicode') + '\n'


def write_about(about: About, about_path: Union[str, Path]) -> None:
    """Write the manifest, creating the About folder if needed."""
    try:
        ensure_dir(Path(about_path).parent)
        with open(about_path, 'w', encoding='utf-8') as f:
            f.write(about_to_xml(about))
    except OSError as e:
        raise FileError(f"Could not write {about_path}: {e}") from e


def get_rimworld_version(context: Context) -> Version:
    """Read the installed game version from Version.txt next to the Mods folder."""
    version_path = Path(context.game['targetDir']).parent / 'Version.txt'
    try:
        content = version_path.read_text(encoding='utf-8')
    except OSError as e:
        raise ConfigError(f"Could not read RimWorld version from {version_path}: {e}") from e

    match = re.search(r'\d+\.\d+\.\d+', content)
    if not match:
        raise ConfigError(f"Could not find RimWorld version in {version_path}: {content!r}")
    return create_version(match.group(0))


def get_description(context: Context) -> Optional[str]:
    """Contents of the mod's description.md with placeholders filled in, if there is one."""
    description_path = find_down('description.md', context.build.base_dir)
    if description_path is None:
        return None

    content = description_path.read_text(encoding='utf-8').strip()
    content = content.replace('MOD_NAME', context.mod.get('name', ''))
    content = content.replace('AUTHOR_NAME', context.author_name)
    content = content.replace('MOD_VERSION', str(context.version))
    return content


def create_about(context: Context, game_version: Optional[Version] = None) -> About:
    """Build a single-version About from modinfo.json."""
    mod = context.mod
    if game_version is None:
        game_version = get_rimworld_version(context)

    about = About(
        name=mod.get('name', ''),
        author=context.author_name,
        package_id=create_package_id(context.author_name, mod.get('name', '')),
        url=mod.get('url'),
        supported_versions=[game_version.short],
        description=get_description(context),
    )

    by_type = {}
    for dep in context.dependencies:
        validate_dependency(dep)
        by_type.setdefault(dep.get('type'), []).append(dep)
    required = by_type.get('required', [])

    if required:
        about.mod_dependencies = [
            ModDependency(
                package_id=str(dep['id']),
                display_name=dep.get('name'),
                steam_workshop_url=STEAM_WORKSHOP_URL.format(dep['steamId']) if dep.get('steamId') else None,
                download_url=dep.get('download'),
            )
            for dep in required
        ]
    if by_type.get('incompatible'):
        about.incompatible_with = [str(dep['id']) for dep in by_type['incompatible']]
    if by_type.get('loadBefore'):
        about.load_before = [str(dep['id']) for dep in by_type['loadBefore']]

    # required dependencies must also load first
    after = [dep for dep in context.dependencies if dep.get('type') in ('loadAfter', 'required')]
    if after:
        about.load_after = [str(dep['id']) for dep in after]

    return about


def update_about(context: Context) -> Path:
    """Regenerate <mod>/About/About.xml from modinfo.json."""
    task = Task.long('update About.xml')
    about_path = Path(context.build.base_dir) / ABOUT_PATH
    try:
        write_about(create_about(context), about_path)
    except ModToolsError:
        task.failure('aborted')
        raise
    task.success(str(about_path.relative_to(context.build.base_dir)))
    return about_path
