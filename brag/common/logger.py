"""
Logging setup for the brag list builder.

Messages carry the generation run id and the component that wrote them, so
one run can be followed across generator, fallback and store:

    2024-05-01 10:00:00 [INFO] brag.achievements.fallback: [run:3f9c2a1b] [fallback] Synthesized 2 fallback entries

Set DEBUG_MODE=true to get DEBUG output from every brag logger regardless of
LOG_LEVEL.
"""

import logging
import os
import sys
from typing import Any, MutableMapping, Optional, TextIO, Tuple

SIMPLE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
JSON_FORMAT = '{"time": "%(asctime)s", "level": "%(levelname)s", "name": "%(name)s", "message": "%(message)s"}'
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def debug_enabled() -> bool:
    return os.getenv("DEBUG_MODE", "false").lower() == "true"


class BragLogger(logging.LoggerAdapter):
    """
    Logger adapter that prefixes messages with run id and component.

    Usage:
        logger = get_logger(__name__, component="store")
        logger.bind(run_id=batch.run_id).info("Saved batch")
    """

    def __init__(self, logger: logging.Logger, run_id: Optional[str] = None, component: Optional[str] = None):
        super().__init__(logger, {"run_id": run_id, "component": component})

    @property
    def run_id(self) -> Optional[str]:
        return self.extra.get("run_id")

    @property
    def component(self) -> Optional[str]:
        return self.extra.get("component")

    def bind(self, run_id: Optional[str] = None, component: Optional[str] = None) -> "BragLogger":
        """Same underlying logger, with run_id/component replaced where given."""
        return BragLogger(self.logger, run_id=run_id or self.run_id, component=component or self.component)

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        tags = []
        if self.run_id:
            tags.append(f"[run:{self.run_id[:8]}]")
        if self.component:
            tags.append(f"[{self.component}]")
        if tags:
            msg = f"{' '.join(tags)} {msg}"
        return msg, kwargs


def setup_logging(level: str = "INFO", format: str = "simple", stream: Optional[TextIO] = None) -> None:
    """
    Configure the root logger with a single stream handler.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: "simple" for humans, "json" for log aggregators
        stream: Output stream (defaults to stdout)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(JSON_FORMAT if format == "json" else SIMPLE_FORMAT, datefmt=DATE_FORMAT))

    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)


def get_logger(name: str, run_id: Optional[str] = None, component: Optional[str] = None) -> BragLogger:
    """
    Get a brag logger.

    Args:
        name: Logger name (usually __name__)
        run_id: Optional generation run identifier
        component: Optional component name (e.g. "generator", "store")
    """
    logger = logging.getLogger(name)
    if debug_enabled():
        logger.setLevel(logging.DEBUG)
    return BragLogger(logger, run_id=run_id, component=component)
