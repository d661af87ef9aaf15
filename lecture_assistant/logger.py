"""
Logging configuration for the application
"""
import logging
import logging.config

from .config import LOGGING_CONFIG, LOGS_DIR, IS_CLOUD_DEPLOYMENT

_configured = False


def _console_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)

    # Only add handler if not already present
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(logging.INFO)
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Set up and return a logger with the specified name.

    Args:
        name: Logger name (usually __name__ of the calling module)

    Returns:
        logging.Logger: Configured logger instance
    """
    global _configured

    # For cloud deployment, use simpler console-only logging
    if IS_CLOUD_DEPLOYMENT:
        return _console_logger(name)

    if _configured:
        return logging.getLogger(name)

    # For local deployment, use full logging config with file handlers
    try:
        LOGS_DIR.mkdir(exist_ok=True, parents=True)
        logging.config.dictConfig(LOGGING_CONFIG)
        _configured = True
        return logging.getLogger(name)
    except (OSError, PermissionError, ValueError) as e:
        # dictConfig wraps handler failures in ValueError
        print(f"Warning: Could not set up file logging: {e}. Using console logging only.")
        return _console_logger(name)
