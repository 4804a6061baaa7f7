"""Logging configuration from LoggingConfig."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from youtube_pubsub.application.feed_events import EVENTS_LOGGER_NAME
from youtube_pubsub.infrastructure.config.models import LoggingConfig


def configure_logging(config: LoggingConfig, verbose: bool = False) -> None:
    """
    Configure the root logger and the feed events logger.

    Args:
        config: Logging settings
        verbose: Force DEBUG level regardless of the configured level
    """
    level = logging.DEBUG if verbose else getattr(logging, config.level)
    formatter = logging.Formatter(config.format)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if config.file_path:
        root.addHandler(_rotating_handler(config.file_path, config, formatter))

    events = logging.getLogger(EVENTS_LOGGER_NAME)
    for handler in list(events.handlers):
        events.removeHandler(handler)
    events.setLevel(logging.INFO)
    if config.events_file_path:
        events.addHandler(
            _rotating_handler(
                config.events_file_path,
                config,
                logging.Formatter("%(asctime)s %(message)s"),
            )
        )


def _rotating_handler(
    path: str, config: LoggingConfig, formatter: logging.Formatter
) -> RotatingFileHandler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler
