"""
Centralized logging configuration for TxGraph.

Module loggers carry no level of their own unless one is passed; they inherit
from the "txgraph" package logger, whose level get_config() sets from
TXGRAPH_LOG_LEVEL every time the configuration is (re)loaded.
"""

import logging
from typing import Optional


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance."""
    logger = logging.getLogger(name)
    if level is None:
        from txgraph.config import get_config

        get_config()
    else:
        logger.setLevel(getattr(logging, level))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
