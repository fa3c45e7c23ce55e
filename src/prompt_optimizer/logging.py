"""Logging configuration using loguru."""

import sys
from pathlib import Path

from loguru import logger
from loguru._logger import Logger as LoguruLogger

from prompt_optimizer.config import settings


def get_logger(name: str) -> LoguruLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance
    """
    # Remove default logger to avoid duplicates
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>",
        level=settings.log_level,
        colorize=True,
    )

    # File sinks are opt-in; the CLI and library are quiet on disk by default
    if settings.log_dir:
        log_dir = Path(settings.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "app.log",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
            "{name}:{function}:{line} - {message}",
            level="DEBUG",
            rotation="10 MB",
            retention="7 days",
            compression="zip",
        )

        logger.add(
            log_dir / "errors.log",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | "
            "{name}:{function}:{line} - {message}",
            level="ERROR",
            rotation="10 MB",
            retention="30 days",
            compression="zip",
        )

    bound_logger = logger.bind(name=name)
    return bound_logger  # type: ignore[return-value]


def prompt_preview(text: str, limit: int = 80) -> str:
    """Return prompt text for log lines, or a length marker when LOG_PROMPTS is off."""
    if not settings.LOG_PROMPTS:
        return f"<{len(text)} chars>"
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[:limit] + "..."
