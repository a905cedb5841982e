"""Central logging configuration helpers for realmroute."""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from realmroute.core.config import RealmRouteSettings

DEFAULT_LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | "
    "{name}:{function}:{line} - {message}"
)
PACKAGE_PREFIX = "realmroute."


def _in_scope(module_name: str, scopes: tuple[str, ...]) -> bool:
    # "datastructures" and "realmroute.datastructures" name the same scope.
    return any(
        module_name.startswith(scope)
        or module_name.startswith(f"{PACKAGE_PREFIX}{scope}")
        for scope in scopes
    )


def configure_logging(
    level: str,
    *,
    debug_scopes: Iterable[str] = (),
    colorize: bool = False,
) -> tuple[int, ...]:
    """Route loguru output to stderr at ``level``.

    DEBUG records from modules under any of ``debug_scopes`` are emitted
    through a second handler even when ``level`` is higher. Returns the
    loguru handler ids.
    """
    logger.remove()
    handler_ids = [
        logger.add(
            sys.stderr, level=level, format=DEFAULT_LOG_FORMAT, colorize=colorize
        )
    ]

    scopes = tuple(scope.strip() for scope in debug_scopes if scope.strip())
    if not scopes or level.upper() == "DEBUG":
        return tuple(handler_ids)

    def scoped_debug(record: Mapping[str, object]) -> bool:
        level_name = getattr(record.get("level"), "name", None)
        module_name = str(record.get("name") or "")
        return level_name == "DEBUG" and _in_scope(module_name, scopes)

    handler_ids.append(
        logger.add(
            sys.stderr,
            level="DEBUG",
            format=DEFAULT_LOG_FORMAT,
            colorize=colorize,
            filter=scoped_debug,
        )
    )
    return tuple(handler_ids)


def configure_logging_from_settings(settings: RealmRouteSettings) -> tuple[int, ...]:
    return configure_logging(
        settings.log_level,
        debug_scopes=settings.debug_scopes,
        colorize=settings.colorize_logs,
    )
