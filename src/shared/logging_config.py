"""
Logging setup for the web app and the launcher.

Call configure_logging() once at startup. Levels come from the environment:

    PRIMO_LOG_LEVEL=DEBUG                         root level (default INFO)
    PRIMO_LOG_LEVELS=src.shell=DEBUG,httpx=INFO   per-logger overrides
"""
import logging
import os
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def parse_level(name: str | None, default: int = logging.INFO) -> int:
    """Map a level name such as "debug" to its number; unknown names give default."""
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def parse_overrides(raw: str | None) -> dict[str, int]:
    """Parse "logger=LEVEL,logger=LEVEL"; malformed pairs are skipped."""
    overrides: dict[str, int] = {}
    for pair in (raw or "").split(","):
        logger_name, sep, level_name = pair.partition("=")
        if not sep or not logger_name.strip():
            continue
        level = parse_level(level_name, default=-1)
        if level >= 0:
            overrides[logger_name.strip()] = level
    return overrides


def configure_logging(level: int | None = None) -> None:
    """Configure the root logger, quiet noisy libraries, apply overrides."""
    if level is None:
        level = parse_level(os.environ.get("PRIMO_LOG_LEVEL"))
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=DATE_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    for name, override in parse_overrides(os.environ.get("PRIMO_LOG_LEVELS")).items():
        logging.getLogger(name).setLevel(override)
