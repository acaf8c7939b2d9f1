"""
Structured logging configuration using structlog.

The library only emits events; it never configures logging on import.
Applications call `configure_logging()` once, or configure structlog
themselves.

Usage:
    from topoplan._logging import get_logger

    logger = get_logger(__name__)
    logger.info("network_defined", network="VPC1", nodes=21)
"""

import logging
import sys

import structlog
from structlog.types import Processor

from topoplan.settings import get_settings

__all__ = ["configure_logging", "get_logger"]


def configure_logging(json_format: bool | None = None, log_level: str | None = None) -> None:
    """
    Configure structlog with stdlib integration.

    Args:
        json_format: If True, output JSON lines. If False, pretty console output.
            Defaults to the `log_json` setting.
        log_level: Minimum log level to output. Defaults to the `log_level` setting.
    """
    settings = get_settings()
    if json_format is None:
        json_format = settings.log_json
    if log_level is None:
        log_level = settings.log_level

    log_level_int = getattr(logging, log_level.upper(), logging.INFO)

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
        pre_chain.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=[
            *pre_chain,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    topoplan_logger = logging.getLogger("topoplan")
    topoplan_logger.handlers.clear()
    topoplan_logger.addHandler(handler)
    topoplan_logger.setLevel(log_level_int)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, typically __name__ of the calling module.
    """
    return structlog.get_logger(name)
