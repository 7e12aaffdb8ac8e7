"""Publisher version helpers.

Every page carries the version of the tool that last wrote it. A change of
major or minor version means the rendered markup may differ, so such pages
are re-published even when their markdown did not change.
"""

import re

_MAJOR_MINOR = re.compile(r"^\s*v?(\d+)\.(\d+)")


def major_minor(version: str | None) -> tuple[int, int] | None:
    """Extract ``(major, minor)`` from a version string.

    Returns:
        The parsed pair, or ``None`` when the value is missing or does not
        start with two numeric components.

    Examples:
        >>> major_minor("1.4.2")
        (1, 4)
        >>> major_minor("dev") is None
        True
    """
    if not isinstance(version, str):
        return None
    match = _MAJOR_MINOR.match(version)
    if match is None:
        return None
    return int(match.group(1)), int(match.group(2))


def is_version_conflict(published: str | None, current: str) -> bool:
    """Return True when ``published`` must be considered stale.

    A missing or non-numeric published version always counts as a conflict.
    """
    published_pair = major_minor(published)
    if published_pair is None:
        return True
    return published_pair != major_minor(current)
