"""General utility helper functions."""

from __future__ import annotations

from ..constants import TOKEN_LOG_SUFFIX_CHARS

__all__ = ["join_url", "mask_token"]


def mask_token(token: str | None, visible: int = TOKEN_LOG_SUFFIX_CHARS) -> str:
    """Return a log-safe rendering of a credential.

    Examples:
      None -> "<none>"
      "abc" -> "***"
      "eyJhbGciOi...XyZ9" -> "***XyZ9"
    """
    if not token:
        return "<none>"
    if visible <= 0 or len(token) <= visible * 2:
        return "***"
    return f"***{token[-visible:]}"


def join_url(base_url: str, path: str) -> str:
    """Join ``base_url`` and ``path`` with exactly one slash between them.

    Absolute URLs in ``path`` are returned unchanged.
    """
    if path.startswith(("http://", "https://")):
        return path
    if not path:
        return base_url
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"
