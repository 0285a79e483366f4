"""Text helpers shared by the dispatch emitter and the runtime dispatcher."""

from __future__ import annotations

_STATIC_PREFIX = "static "


def normalize_separators(file_path: str) -> str:
    """Use ``/`` as the only path separator."""
    return file_path.replace("\\", "/")


def compute_path_suffix(file_path: str) -> str:
    """Return the last two segments of a file path.

    Positional dispatch compares only this suffix so that generated tables do
    not embed machine-specific absolute paths.

    Examples:
        >>> compute_path_suffix(r"C:\\src\\app\\views\\main.py")
        'views/main.py'
        >>> compute_path_suffix("main.py")
        'main.py'
    """
    normalized = normalize_separators(file_path)
    parts = normalized.split("/")
    if len(parts) >= 2:
        return f"{parts[-2]}/{parts[-1]}"
    return normalized


def normalize_lambda_text(text: str) -> str:
    """Strip a leading ``static`` modifier from a captured argument text."""
    if text.startswith(_STATIC_PREFIX):
        return text[len(_STATIC_PREFIX):]
    return text


def path_matches_suffix(file_path: str, suffix: str) -> bool:
    """Case-insensitive ``endswith`` with separators normalized on both sides."""
    return normalize_separators(file_path).lower().endswith(normalize_separators(suffix).lower())
