"""Logging setup for the tonewatch CLI.

Handlers come from the ``logging`` section of config.json. Secret values
(Crisp plugin key, Slack webhook URLs) are masked in every formatted line.
"""

from __future__ import annotations

import logging
import os
import re
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MASK = "***"

# httpx logs each request URL at INFO; Slack webhook URLs are credentials.
NOISY_LOGGERS = ("httpx", "httpcore")


class SecretMaskingFormatter(logging.Formatter):
    """Formatter that replaces known secret values with a mask."""

    def __init__(self, secrets: Iterable[str], fmt: str = LOG_FORMAT, datefmt: str = DATE_FORMAT) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        values = sorted({value for value in secrets if value}, key=len, reverse=True)
        self._pattern: Optional[re.Pattern[str]] = (
            re.compile("|".join(re.escape(value) for value in values)) if values else None
        )

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        if self._pattern is None:
            return text
        return self._pattern.sub(MASK, text)


def secret_values(redact: dict[str, Any]) -> list[str]:
    """Resolve the configured environment variable names to their values."""

    if not redact.get("enabled", False):
        return []
    return [value for value in (os.getenv(name) for name in redact.get("patterns", [])) if value]


def _file_handler(file_cfg: dict[str, Any], root: Path) -> RotatingFileHandler:
    path = Path(file_cfg.get("path", "logs/tonewatch.log"))
    if not path.is_absolute():
        path = root / path
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )


def configure_logging(config: dict[str, Any], root: Path) -> None:
    """Install console and/or rotating file handlers on the root logger."""

    if not config.get("enabled", True):
        return

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    formatter = SecretMaskingFormatter(secret_values(config.get("redact", {})))

    handlers: list[logging.Handler] = []
    if config.get("console", True):
        handlers.append(logging.StreamHandler())
    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_file_handler(file_cfg, root))
    if not handlers:
        return

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    logging.basicConfig(level=level, handlers=handlers, force=True)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
