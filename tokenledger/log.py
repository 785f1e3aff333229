from __future__ import annotations

"""
Logging helpers.

Library modules log through ``logging.getLogger(__name__)`` and never touch
handlers. Entry points (the CLI) call :func:`configure_logging` once; it only
installs a default configuration when the root logger has no handlers, so
applications and test harnesses that already configured logging keep theirs.
"""

import logging
from typing import Final, Union

_DEFAULT_LOG_FORMAT: Final[str] = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_DEFAULT_LOG_FORMAT)
    pkg = logging.getLogger("tokenledger")
    pkg.setLevel(level)
    return pkg


__all__ = ["configure_logging"]
