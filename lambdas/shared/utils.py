"""Utility functions for Chronicle RPG Lambda handlers."""


def extract_user_id(headers: dict[str, str] | None) -> str | None:
    """Extract user ID from request headers.

    Looks for the X-User-Id header (case-insensitive).

    Args:
        headers: Request headers dict

    Returns:
        User ID string or None if not found or blank
    """
    for key, value in (headers or {}).items():
        if key.lower() == "x-user-id":
            return value.strip() or None
    return None
