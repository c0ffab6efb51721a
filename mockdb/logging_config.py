"""Opt-in loguru output for the mock database.

The package keeps its logger disabled so tests using it stay quiet; call
``configure_logging`` to see collection and query activity.
"""
import sys
from typing import Optional

from loguru import logger

from .settings import MockDbSettings, settings

PACKAGE = "mockdb"
LOG_FORMAT = "{time:HH:mm:ss.SSS} | {level: <8} | {name}:{function} | {message}"
# Handler id loguru installs on import, writing everything to stderr at DEBUG
DEFAULT_HANDLER_ID = 0

_sink_id: Optional[int] = None


def _remove_default_handler() -> None:
    try:
        logger.remove(DEFAULT_HANDLER_ID)
    except ValueError:
        # Already removed by the application or an earlier call
        pass


def configure_logging(
    level: Optional[str] = None,
    sink=sys.stderr,
    config: Optional[MockDbSettings] = None,
) -> int:
    """Enable package logging and (re)install a single sink at ``level``.

    The level defaults to ``config.log_level`` (for example ``db.settings``)
    and then to the module-level settings. Loguru's default stderr handler is
    removed so package records only reach the sink installed here.
    """
    global _sink_id

    if _sink_id is not None:
        logger.remove(_sink_id)
    _remove_default_handler()

    level = (level or (config or settings).log_level).upper()
    _sink_id = logger.add(
        sink,
        level=level,
        format=LOG_FORMAT,
        filter=lambda record: record["name"].startswith(PACKAGE),
    )
    logger.enable(PACKAGE)
    return _sink_id


def disable_logging() -> None:
    """Silence package logging and drop the sink installed by configure_logging."""
    global _sink_id

    logger.disable(PACKAGE)
    if _sink_id is not None:
        logger.remove(_sink_id)
        _sink_id = None
