"""
Logging setup for tools and applications embedding savekit.

Library modules only create loggers; handlers are installed here, once,
by whoever owns the process.
"""

from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(
    level: int | str = logging.INFO,
    log_file: str | Path | None = None,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    """
    Install console (and optionally rotating file) handlers on the
    'savekit' and 'features' loggers.

    Calling it again replaces the handlers it installed before.

    Returns:
        The 'savekit' logger
    """
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = [logging.StreamHandler()]

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._savekit_handler = True  # type: ignore[attr-defined]

    for name in ("savekit", "features"):
        target = logging.getLogger(name)
        target.setLevel(level)
        for old in [h for h in target.handlers if getattr(h, "_savekit_handler", False)]:
            target.removeHandler(old)
            old.close()
        for handler in handlers:
            target.addHandler(handler)

    return logging.getLogger("savekit")
