"""
File helpers shared by the API, the worker and the client.
"""

from urllib.parse import unquote, urlparse

# Size formatting constants
SIZE_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


def bytes_to_human_readable(size_bytes: int | None) -> str:
    """Format a size in bytes as a human-readable string.

    Args:
        size_bytes: Size in bytes.

    Returns:
        Human-readable size string (e.g., "5.4 GB", "128 KB").

    Examples:
        >>> bytes_to_human_readable(0)
        '0 B'
        >>> bytes_to_human_readable(1024)
        '1.0 KB'
        >>> bytes_to_human_readable(5 * 1024 * 1024)
        '5.0 MB'
    """
    if not size_bytes:
        return "0 B"

    size = float(size_bytes)
    unit_index = 0

    while size >= 1024 and unit_index < len(SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1

    if unit_index == 0:
        return f"{int(size)} B"
    return f"{size:.1f} {SIZE_UNITS[unit_index]}"


def get_file_name_from_url(url: str) -> str | None:
    """Return the last path segment of ``url``, or None when there is none."""
    try:
        path = urlparse(url).path
    except ValueError:
        return None

    name = unquote(path.rstrip("/").rsplit("/", 1)[-1]) if path else ""
    return name or None
