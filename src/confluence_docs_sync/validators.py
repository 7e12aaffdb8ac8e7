"""
Input validation helpers.

Argument checks run before any network call so malformed input fails fast
with a ``ValidationError`` instead of a confusing REST API response.
"""

from pathlib import Path
from urllib.parse import urlparse

from .errors import ValidationError

_TYPE_NAMES: dict[type, str] = {
    str: "string",
    int: "number",
    float: "number",
    bool: "boolean",
    dict: "object",
    list: "array",
}


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Argument name (e.g., "title")
        reason: Description of validation failure (e.g., "should be a string")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_type(
    name: str, value: object, expected: type, optional: bool = False
) -> None:
    """
    Check that ``value`` is an instance of ``expected``.

    Args:
        name: Argument name used in the error message
        value: The value to check
        expected: Expected Python type
        optional: Accept ``None`` as well

    Raises:
        ValidationError: If the value has the wrong type. Booleans are
            never accepted where a number is expected.
    """
    if optional and value is None:
        return
    type_name = _TYPE_NAMES.get(expected, expected.__name__)
    article = "an" if type_name[0] in "aeiou" else "a"
    if isinstance(value, bool) and expected is not bool:
        raise ValidationError(
            format_validation_error(name, f"should be {article} {type_name}")
        )
    if not isinstance(value, expected):
        raise ValidationError(
            format_validation_error(name, f"should be {article} {type_name}")
        )


def is_local_reference(target: str) -> bool:
    """Return True when ``target`` is not an absolute URL (no scheme/host)."""
    parsed = urlparse(target)
    return not parsed.scheme and not parsed.netloc


def safe_path(target: str, source: str | None, root: Path) -> str | None:
    """
    Resolve a reference found in a markdown page to a path under ``root``.

    ``target`` is resolved relative to the directory of ``source`` (the page
    path, relative to ``root``). A leading ``/`` makes ``target`` relative to
    ``root`` itself. Fragments and query strings are ignored.

    Args:
        target: Reference as written in the markdown (link or image src)
        source: Path of the referencing page relative to ``root``
        root: Content root every published file must live under

    Returns:
        The POSIX path of the existing file relative to ``root``, or ``None``
        when the reference escapes ``root`` or does not exist.

    Examples:
        >>> safe_path("../../../../etc/passwd", "docs/index.md", Path.cwd())
    """
    file_part = urlparse(target).path
    if not file_part:
        return None

    root = root.resolve()
    if file_part.startswith("/"):
        resolved = (root / file_part.lstrip("/")).resolve()
    else:
        base_dir = (root / source).parent if source else root
        resolved = (base_dir / file_part).resolve()

    if not resolved.is_relative_to(root) or not resolved.exists():
        return None
    return resolved.relative_to(root).as_posix()
