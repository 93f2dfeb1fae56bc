"""Centralized logging configuration with environment variable support."""

import os
import logging
import sys
from pythonjsonlogger import jsonlogger


class LoggingConfig:
    """Centralized logging configuration."""
    
    # Environment variable defaults
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_REQUEST_ID_HEADER = os.environ.get("LOG_REQUEST_ID_HEADER", "X-Request-ID")
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))
    
    _configured = False
    
    @classmethod
    def setup_logging(cls, force: bool = False) -> None:
        """Configure the root logger based on environment variables."""
        if cls._configured and not force:
            return
        
        root_logger = logging.getLogger()
        level = getattr(logging, cls.LOG_LEVEL, logging.INFO)
        root_logger.setLevel(level)
        root_logger.handlers.clear()
        
        # stdout for serverless runtimes
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        
        if cls.LOG_FORMAT == "json":
            formatter = jsonlogger.JsonFormatter(
                "%(timestamp)s %(levelname)s %(name)s %(message)s",
                timestamp=True
            )
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
        
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
        
        # Suppress noisy third-party loggers
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("supabase").setLevel(logging.WARNING)
        logging.getLogger("postgrest").setLevel(logging.WARNING)
        
        cls._configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
