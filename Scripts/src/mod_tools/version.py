"""Version parsing, comparison, bumping and range matching."""
import re
from typing import NamedTuple, Optional, Union

VERSION_PARTS = ('major', 'minor', 'build')

_COERCE_RE = re.compile(r'(\d+)(?:\.(\d+))?(?:\.(\d+))?')
_COMPARATOR_RE = re.compile(r'(<=|>=|<|>|=)?\s*v?(\d+)(?:\.(\d+))?(?:\.(\d+))?')


class Version(NamedTuple):
    major: int = 0
    minor: int = 0
    build: int = 0

    def __str__(self) -> str:
        return version_string(self)

    @property
    def short(self) -> str:
        """major.minor, as used for RimWorld version branches and folders."""
        return f"{self.major}.{self.minor}"


def create_version(value: Union[str, dict, Version, None]) -> Version:
    """Build a Version from 'major.minor.build', a modinfo version dict, or None.

    Missing parts default to 0; stray non-digit characters in a part are dropped.
    """
    if isinstance(value, Version):
        return value
    if value is None:
        return Version()
    if isinstance(value, dict):
        return Version(*(int(value.get(part) or 0) for part in VERSION_PARTS))

    numbers = []
    for part in value.split('.')[:3]:
        digits = re.sub(r'[^0-9]', '', part)
        numbers.append(int(digits) if digits else 0)
    return Version(*numbers)


def version_string(version: Union[Version, str]) -> str:
    if isinstance(version, str):
        return version
    return f"{version.major}.{version.minor}.{version.build}"


def version_dict(version: Version) -> dict:
    """The form stored in modinfo.json."""
    return version._asdict()


def coerce(value: Optional[str]) -> Optional[Version]:
    """Find the first version-looking number sequence in value, e.g. 'v1.3-beta' -> 1.3.0."""
    if not value:
        return None
    match = _COERCE_RE.search(value)
    if not match:
        return None
    return Version(*(int(g) if g else 0 for g in match.groups()))


def compare_versions(v1: Optional[str], v2: Optional[str]) -> int:
    """Compare versions. Returns 1 if v1 > v2, -1 if v1 < v2, 0 if equal."""
    c1, c2 = coerce(v1), coerce(v2)
    if c1 is None:
        return -1
    if c2 is None:
        return 1
    if c1 > c2:
        return 1
    if c1 < c2:
        return -1
    return 0


def _comparator_matches(version: Version, op: Optional[str], parts: tuple) -> bool:
    given = [int(p) for p in parts if p]
    if not op or op == '=':
        # partial versions match every version sharing the given parts ("1.0" matches 1.0.x)
        return tuple(version[:len(given)]) == tuple(given)

    bound = Version(*given)
    if op == '>=':
        return version >= bound
    if op == '>':
        if len(given) < 3:
            # ">1.1" means above the whole 1.1.x line
            return tuple(version[:len(given)]) > tuple(given)
        return version > bound
    if op == '<':
        return version < bound
    if op == '<=':
        if len(given) < 3:
            return tuple(version[:len(given)]) <= tuple(given)
        return version <= bound
    raise ValueError(f"Unknown comparator: {op}")


def satisfies(version: Union[str, Version, None], version_range: str) -> bool:
    """Check version against a range such as '1.0', '>= 1.1' or '>=1.1 <1.3'.

    Whitespace separated comparators must all match; '||' separates alternatives.
    """
    if not isinstance(version, Version):
        version = coerce(version)
    if version is None:
        return False

    for alternative in version_range.split('||'):
        comparators = _COMPARATOR_RE.findall(alternative)
        if not comparators:
            raise ValueError(f"Invalid version range: {version_range!r}")
        if all(_comparator_matches(version, op, (major, minor, build))
               for op, major, minor, build in comparators):
            return True
    return False


def bump_version(version: Version, part: str = 'build') -> Version:
    """Increment one part.

    build is a running counter and is never reset; a major bump resets minor.
    """
    if part == 'build':
        return version._replace(build=version.build + 1)
    if part == 'minor':
        return version._replace(minor=version.minor + 1)
    if part == 'major':
        return version._replace(major=version.major + 1, minor=0)
    raise ValueError(f"Unknown version part: {part} (expected one of {', '.join(VERSION_PARTS)})")


def set_version(
    version: Version,
    major: Optional[int] = None,
    minor: Optional[int] = None,
    build: Optional[int] = None
) -> Version:
    """Override the given parts, keeping the others."""
    return Version(
        version.major if major is None else major,
        version.minor if minor is None else minor,
        version.build if build is None else build,
    )
