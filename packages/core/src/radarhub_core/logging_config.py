"""Central logging configuration helper."""
from __future__ import annotations
import logging
import logging.config
import os
from io import StringIO
from pathlib import Path
import re

DEFAULT_CONFIG_PATHS = [
    Path("config/logging.ini"),
]


class RedactionFilter(logging.Filter):
    """Mask plaintext passwords before a record reaches any handler.

    User records carry their password in clear, so a logged record dump or
    update map must never leak it.
    """

    PATTERNS = [
        re.compile(r"(\"password\"\s*:\s*\")([^\"]*)(\")", re.IGNORECASE),
        re.compile(r"('password'\s*:\s*')([^']*)(')", re.IGNORECASE),
        re.compile(r"(\bpassword=)(\S+)()", re.IGNORECASE),
    ]

    @classmethod
    def redact(cls, s: str) -> str:
        out = s
        for pattern in cls.PATTERNS:
            out = pattern.sub(r"\1[REDACTED]\3", out)
        return out

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        # Format first when args are present so they are not applied twice.
        if record.args:
            record.msg = self.redact(record.getMessage())
            record.args = None
        elif isinstance(record.msg, str):
            record.msg = self.redact(record.msg)
        return True


def _attach(logger: logging.Logger, redactor: logging.Filter, seen: set) -> None:
    for h in logger.handlers:
        if id(h) in seen:
            continue
        h.addFilter(redactor)
        seen.add(id(h))
    logger.addFilter(redactor)


def configure_logging(level: str | None = None, config_file: str | os.PathLike[str] | None = None) -> None:
    """Configure logging using an INI template.

    If the config contains the placeholder __LOG_LEVEL__, it is replaced with
    the effective log level before passing to logging.config.fileConfig.
    """
    lvl = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    cfg_path: Path | None
    if config_file:
        cfg_path = Path(config_file)
    else:
        cfg_path = next((p for p in DEFAULT_CONFIG_PATHS if p.exists()), None)
    if not cfg_path or not cfg_path.exists():
        logging.basicConfig(level=getattr(logging, lvl, logging.INFO), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    else:
        text = cfg_path.read_text(encoding="utf-8").replace("__LOG_LEVEL__", lvl)
        logging.config.fileConfig(StringIO(text), disable_existing_loggers=False)

    redactor = RedactionFilter()
    seen_handlers: set = set()
    _attach(logging.getLogger(), redactor, seen_handlers)
    for name in list(logging.root.manager.loggerDict.keys()):  # type: ignore[attr-defined]
        logger_obj = logging.getLogger(name)
        _attach(logger_obj, redactor, seen_handlers)

__all__ = ["configure_logging", "RedactionFilter"]
