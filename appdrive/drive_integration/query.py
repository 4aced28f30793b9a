"""Drive v2 search query construction."""

from typing import Optional

from .schemas import APP_FOLDER_ID


def escape_literal(value: str) -> str:
    """Escape a value for use inside a single-quoted query literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def appfolder_query(title: Optional[str] = None) -> str:
    """
    Build a query selecting files in the application folder.

    Args:
        title: Exact title to match, if any

    Returns:
        Query string for the ``q`` parameter of files.list
    """
    query_parts = [f"'{APP_FOLDER_ID}' in parents"]

    if title is not None:
        query_parts.append(f"title = '{escape_literal(title)}'")

    return " and ".join(query_parts)
