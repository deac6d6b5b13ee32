"""
Centralized Logging Configuration for the CV Match API
"""
import functools
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Any

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-34s | %(funcName)-20s:%(lineno)-4d | %(message)s",
    "json": '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "function": "%(funcName)s", "line": %(lineno)d, "message": "%(message)s"}'
}

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("httpx", "httpcore")


def setup_logging(
    level: str = "INFO",
    log_dir: str = "logs",
    enable_console: bool = True,
    enable_file: bool = True,
    format_style: str = "detailed"
) -> None:
    """
    Setup centralized logging configuration

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for cvmatch_YYYYMMDD.log and cvmatch_errors_YYYYMMDD.log
        enable_console: Enable console logging
        enable_file: Enable file logging
        format_style: Format style ('simple', 'detailed', 'json')
    """
    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "main": {
                "format": FORMATS.get(format_style, FORMATS["detailed"]),
                "datefmt": "%Y-%m-%d %H:%M:%S"
            },
            "detailed": {
                "format": FORMATS["detailed"],
                "datefmt": "%Y-%m-%d %H:%M:%S"
            }
        },
        "handlers": {},
        "loggers": {
            "": {  # Root logger
                "level": level,
                "handlers": [],
                "propagate": False
            },
            "uvicorn": {
                "level": "INFO",
                "handlers": [],
                "propagate": False
            },
            "uvicorn.access": {
                "level": "INFO",
                "handlers": [],
                "propagate": False
            },
            **{name: {"level": "WARNING"} for name in QUIET_LOGGERS}
        }
    }

    if enable_console:
        config["handlers"]["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "main",
            "stream": "ext://sys.stdout"
        }
        for name in ("", "uvicorn", "uvicorn.access"):
            config["loggers"][name]["handlers"].append("console")

    log_file = None
    if enable_file:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d')
        log_file = directory / f"cvmatch_{stamp}.log"

        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "detailed",
            "filename": str(log_file),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf8"
        }
        config["handlers"]["error_file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "ERROR",
            "formatter": "detailed",
            "filename": str(directory / f"cvmatch_errors_{stamp}.log"),
            "maxBytes": 10485760,
            "backupCount": 5,
            "encoding": "utf8"
        }
        config["loggers"][""]["handlers"].extend(["file", "error_file"])
        config["loggers"]["uvicorn"]["handlers"].append("file")

    logging.config.dictConfig(config)

    logger = logging.getLogger("cvmatch.logging")
    logger.info(f"Logging configured - Level: {level}, Console: {enable_console}, File: {log_file or 'disabled'}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the cvmatch namespace

    Args:
        name: Logger name (usually __name__)
    """
    if name == "cvmatch" or name.startswith("cvmatch."):
        return logging.getLogger(name)
    return logging.getLogger(f"cvmatch.{name}")


def configure_for_environment():
    """Configure logging based on ENVIRONMENT, LOG_LEVEL, LOG_FORMAT and LOG_DIR"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("LOG_FORMAT", "detailed").lower()
    log_dir = os.getenv("LOG_DIR", "logs")

    if environment == "production":
        setup_logging(level=log_level, log_dir=log_dir, format_style=log_format)
    elif environment == "development":
        setup_logging(level="DEBUG", log_dir=log_dir, format_style="detailed")
    elif environment == "testing":
        setup_logging(level="WARNING", enable_file=False, format_style="simple")
    else:
        setup_logging(level=log_level, log_dir=log_dir)


def log_api_call(operation: str):
    """
    Decorator to log API endpoint calls with their duration
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(f"api.{func.__module__}")
            start_time = time.perf_counter()
            logger.info(f"API {operation} started")
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                execution_time = time.perf_counter() - start_time
                logger.info(f"API {operation} failed after {execution_time:.3f}s: {e.__class__.__name__}")
                raise
            execution_time = time.perf_counter() - start_time
            logger.info(f"API {operation} completed in {execution_time:.3f}s")
            return result

        return wrapper
    return decorator


class PerformanceMonitor:
    """Context manager for timing an operation with logging"""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.debug(f"Starting {self.operation_name}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self.start_time) * 1000

        if exc_type is not None:
            self.logger.warning(
                f"{self.operation_name} ended after {self.elapsed_ms:.2f}ms: {exc_type.__name__}"
            )
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms "
                f"(exceeded threshold {self.threshold_ms}ms)"
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
        return False
