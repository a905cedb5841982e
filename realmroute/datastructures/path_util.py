"""Sharding-key path normalization."""

from __future__ import annotations

import re
from collections.abc import Iterable

from realmroute.datastructures.type_aliases import (
    PathSegment,
    SegmentPath,
    ShardingKey,
)

PATH_SEPARATOR = "/"
ROOT_PATH: ShardingKey = "/"

_VALID_SHARDING_KEY = re.compile(r"^/$|^(/[\w.\-]+)+$")


def normalize_path(path: ShardingKey) -> SegmentPath:
    """
    Split a sharding key into its ordered segments.

    One leading and one trailing separator are ignored; ``""`` and ``"/"``
    both denote the root and yield ``()``. Consecutive separators are not
    collapsed, so ``"/a//b"`` yields ``("a", "", "b")``.
    """
    if path in ("", PATH_SEPARATOR):
        return ()
    if path.startswith(PATH_SEPARATOR):
        path = path[1:]
    if path.endswith(PATH_SEPARATOR):
        path = path[:-1]
    if not path:
        return ()
    return tuple(path.split(PATH_SEPARATOR))


def join_path(segments: Iterable[PathSegment]) -> ShardingKey:
    """Render segments as an absolute sharding key (``()`` -> ``"/"``)."""
    return PATH_SEPARATOR + PATH_SEPARATOR.join(segments)


def is_valid_sharding_key(key: ShardingKey) -> bool:
    """True if ``key`` is absolute with non-empty word-like segments."""
    return bool(_VALID_SHARDING_KEY.match(key))
