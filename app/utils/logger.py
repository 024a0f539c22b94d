import logging
import sys
from typing import Optional
from pathlib import Path


def setup_logger(
    name: str = "gita_backend",
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
) -> logging.Logger:
    """
    Set up a logger with console and optional file handlers

    Handlers go on the root logger so the per-module loggers returned by
    get_logger() share them.

    Args:
        name: Logger name
        level: Logging level
        log_file: Optional file path for logging
        log_format: Log message format

    Returns:
        Configured logger instance
    """
    root = logging.getLogger()
    logger = logging.getLogger(name)

    # Avoid adding handlers multiple times
    if getattr(root, "_gita_configured", False):
        return logger

    root.setLevel(level)

    # Create formatter
    formatter = logging.Formatter(log_format)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    # File handler (optional)
    if log_file:
        # Create logs directory if it doesn't exist
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root._gita_configured = True
    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance

    Args:
        name: Logger name (optional)

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f"gita_backend.{name}")
    return logging.getLogger("gita_backend")


def log_database_operation(operation: str):
    """
    Decorator to log database operations

    Args:
        operation: Description of the database operation
    """
    def decorator(func):
        def wrapper(*args, **kwargs):
            log = get_logger("database")
            log.debug(f"Starting database operation: {operation}")

            try:
                result = func(*args, **kwargs)
                log.debug(f"Database operation '{operation}' completed successfully")
                return result
            except Exception as e:
                log.error(f"Database operation '{operation}' failed: {str(e)}", exc_info=True)
                raise
        return wrapper
    return decorator
