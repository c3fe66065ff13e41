"""Remote path helpers.

Callers address files with free-form logical paths (``myfolder``,
``\\myfolder\\``, ``/myfolder/`` ...). Every remote call uses the canonical
form instead::

    /<root>[/<logical path>]

The canonical form always starts with ``/<root>``, uses forward slashes and
carries no trailing separator, so two spellings of the same folder always
address the same remote object.
"""

from __future__ import annotations

from typing import Tuple


def _to_forward_slashes(value: str) -> str:
    return value.replace("\\", "/")


def normalize_path(logical_path: str) -> str:
    """Return ``logical_path`` as ``/a/b`` or ``""`` for the root itself."""

    path = _to_forward_slashes(logical_path).strip()
    if path.endswith("/"):
        path = path[:-1]
    if path and not path.startswith("/"):
        path = "/" + path
    return path


def _clean_root(root: str) -> str:
    return _to_forward_slashes(root).strip().strip("/")


def to_remote_path(logical_path: str, root: str) -> str:
    """Map a logical path onto the canonical remote path under ``root``."""

    root = _clean_root(root)
    prefix = "/" + root if root else ""
    return (prefix + normalize_path(logical_path)) or "/"


def split_path(logical_path: str) -> Tuple[str, str]:
    """Split ``logical_path`` into ``(parent, leaf)`` at the last slash."""

    index = logical_path.rfind("/")
    if index < 0:
        return "", logical_path
    return logical_path[:index], logical_path[index + 1 :]


def join_remote(folder: str, leaf: str) -> str:
    return f"{folder.rstrip('/')}/{leaf}"


def is_folder_shaped(logical_path: str) -> bool:
    """True when the path denotes a folder (ends with a separator)."""

    return _to_forward_slashes(logical_path).strip().endswith("/")
