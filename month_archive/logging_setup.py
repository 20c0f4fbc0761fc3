#!/usr/bin/env python3
"""
Logging setup for the month archive job.
Self-contained logging configuration without external dependencies.
"""
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "month_archive"


def setup_archive_logging(
    log_dir: Optional[Path] = None,
    log_level: str = "INFO",
    console_level: str = "INFO",
    file_level: str = "DEBUG"
) -> logging.Logger:
    """
    Set up console and file logging for a run.

    Args:
        log_dir: Directory for log files; None logs to the console only
        log_level: Root logging level
        console_level: Console handler level
        file_level: File handler level

    Returns:
        The package root logger
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(getattr(logging, log_level.upper()))

    # Clear existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    # Console handler with clean format
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, console_level.upper()))
    console_handler.setFormatter(logging.Formatter(
        '[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)

        # Main log file with rotation
        main_file_handler = logging.handlers.RotatingFileHandler(
            str(log_dir / "month_archive.log"),
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        main_file_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - [%(levelname)s] - %(message)s'
        ))
        main_file_handler.setLevel(getattr(logging, file_level.upper()))
        root_logger.addHandler(main_file_handler)

        # Error-only log file
        error_handler = logging.FileHandler(str(log_dir / "month_archive_errors.log"))
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - [%(levelname)s] - [%(filename)s:%(lineno)d] - %(message)s'
        ))
        root_logger.addHandler(error_handler)

    # Suppress noisy third-party libraries
    for lib in ("boto3", "botocore", "s3transfer", "urllib3"):
        logging.getLogger(lib).setLevel(logging.WARNING)

    root_logger.info("=" * 80)
    root_logger.info("Month Archive Logging Initialized")
    if log_dir is not None:
        root_logger.info(f"Log directory: {log_dir.absolute()}")
    root_logger.info(f"Console level: {console_level}")
    root_logger.info("=" * 80)

    return root_logger


def get_archive_logger(module_name: str) -> logging.Logger:
    """
    Get a logger under the month_archive namespace.

    Args:
        module_name: Module name, dotted paths are reduced to the last part

    Returns:
        Logger instance
    """
    if '.' in module_name:
        module_name = module_name.split('.')[-1]
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{module_name}")


def log_operation_start(logger: logging.Logger, operation: str, **kwargs) -> None:
    """Log the start of a major operation, with context at debug level."""
    logger.info(f"Starting {operation}")
    for key, value in kwargs.items():
        logger.debug(f"  {key}: {value}")


def log_operation_complete(
    logger: logging.Logger,
    operation: str,
    success: bool = True,
    duration: Optional[float] = None,
    **kwargs
) -> None:
    """
    Log the completion of a major operation.

    Args:
        logger: Logger instance
        operation: Operation name
        success: Whether operation succeeded
        duration: Operation duration in seconds
        **kwargs: Additional results to log
    """
    status = "completed successfully" if success else "failed"
    duration_str = f" in {duration:.2f}s" if duration else ""

    log_func = logger.info if success else logger.error
    log_func(f"{operation} {status}{duration_str}")

    for key, value in kwargs.items():
        logger.debug(f"  {key}: {value}")
