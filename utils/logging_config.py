"""
Logging configuration for the application.
Sets up colorized console and optional rotating file logging.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler

import colorlog
from config.settings import LoggingConfig


def setup_logging(config: LoggingConfig) -> logging.Logger:
    """
    Setup application logging with console and file handlers.

    Args:
        config: Logging settings

    Returns:
        Configured root logger
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    # Console goes to stderr so JSON written to stdout stays clean
    console_handler = colorlog.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_formatter = colorlog.ColoredFormatter(
        '%(log_color)s%(levelname)-8s%(reset)s %(blue)s%(name)s%(reset)s: %(message)s',
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    )
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if config.log_to_file:
        config.log_dir.mkdir(parents=True, exist_ok=True)

        # Max 10MB per file, keep 5 backup files
        file_handler = RotatingFileHandler(
            config.log_dir / 'schema_graph.log',
            mode='a',
            maxBytes=10*1024*1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    # Suppress noisy loggers
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)
