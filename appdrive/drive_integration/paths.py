"""Folder path segmentation and the containment test used for listing and lookup."""

from typing import List, Sequence

from .schemas import PATH_SEPARATOR


def split_path(path: str) -> List[str]:
    """
    Split a folder path into its segments.

    Leading and trailing separators are ignored, so ``""`` and ``"/"`` are
    both the root and yield no segments.
    """
    stripped = path.strip(PATH_SEPARATOR)
    if not stripped:
        return []
    return stripped.split(PATH_SEPARATOR)


def is_sub_path(path_parts: Sequence[str], sub_path_parts: Sequence[str]) -> bool:
    """Whether ``sub_path_parts`` is a position-for-position prefix of ``path_parts``."""
    if len(sub_path_parts) > len(path_parts):
        return False
    return all(part == path_parts[i] for i, part in enumerate(sub_path_parts))


def is_in_path(file_folder_path: str, folder_path: str) -> bool:
    """
    Whether a stored folder path lies in or below ``folder_path``.

    ``is_in_path("a/b/c", "a/b")`` is true, ``is_in_path("a", "a/b")`` is not,
    and every path is in the root.
    """
    return is_sub_path(split_path(file_folder_path), split_path(folder_path))


def normalize_path(path: str) -> str:
    """Canonical form of a folder path, used as a lock key."""
    return PATH_SEPARATOR.join(split_path(path))
