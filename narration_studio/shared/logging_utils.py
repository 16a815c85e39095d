"""
Logging utilities for the application.
"""
import logging


def setup_logging(service_name: str, log_level: str = "INFO") -> logging.Logger:
    """
    Setup logging configuration for a service.

    Args:
        service_name: Name of the service for log identification
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(service_name)
    logger.setLevel(getattr(logging, log_level.upper()))

    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            f"%(asctime)s - {service_name} - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def set_level(log_level: str, *service_names: str) -> None:
    """Apply ``log_level`` to loggers already created with :func:`setup_logging`."""
    level = getattr(logging, log_level.upper())
    for name in service_names:
        logging.getLogger(name).setLevel(level)
