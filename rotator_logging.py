# rotator_logging.py
from __future__ import annotations

import json
import logging
import logging.config
import sys
import time
from pathlib import Path
from typing import Optional

from rotator_errors import ConfigError

LOGGER = "rotator"

LOG_FORMAT = "%(asctime)s %(levelname)8s %(threadName)10.15s - %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


class UTCFormatter(logging.Formatter):
    converter = time.gmtime


def _default_console(level: int) -> None:
    logger = logging.getLogger(LOGGER)
    # 여러 번 불러도 handler 중복 X (이전 설정도 정리)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()

    # stdout 은 tee 데이터 전용이므로 진단 로그는 stderr 로만
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(UTCFormatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def _parse_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    name = (level or "INFO").strip().upper()
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ConfigError("parse log level", None, ValueError(f"unknown level: {level}"))
    return value


def config_logger(log_config: Optional[str] = None, level: str | int = "INFO") -> logging.Logger:
    """
    Build the logging context for the process and return the ``rotator`` logger.

    - no ``log_config``: stderr console handler, UTC timestamps
    - ``*.json``: ``logging.config.dictConfig``
    - anything else: ``logging.config.fileConfig`` (INI)
    """
    if not log_config:
        _default_console(_parse_level(level))
        return logging.getLogger(LOGGER)

    path = Path(log_config)
    if not path.is_file():
        raise ConfigError("load logging configuration", path, FileNotFoundError("no such file"))

    try:
        if path.suffix.lower() == ".json":
            with path.open("r", encoding="utf-8") as f:
                logging.config.dictConfig(json.load(f))
        else:
            logging.config.fileConfig(path, disable_existing_loggers=False)
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise ConfigError("load logging configuration", path, e) from e

    return logging.getLogger(LOGGER)


__all__ = ["config_logger", "LOGGER", "LOG_FORMAT", "UTCFormatter"]
