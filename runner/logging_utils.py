import logging
import time
from typing import Optional


def setup_logger(name: str = "runner", level: str = "INFO") -> logging.Logger:
    """Setup standardized logger for runner components."""
    logger = logging.getLogger(name)

    if not logger.handlers:  # Avoid duplicate handlers
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger


def get_logger(component: str) -> logging.Logger:
    """Child logger under the shared "runner" handler."""
    return logging.getLogger(f"runner.{component}")


def log_request(logger: logging.Logger,
                command: str,
                duration_ms: float,
                success: bool,
                query: Optional[str] = None,
                providers: Optional[list] = None,
                result_count: Optional[int] = None,
                identifier: Optional[str] = None,
                error: Optional[str] = None) -> None:
    """Log one request/response exchange in a structured format."""

    log_data = {
        "command": command,
        "success": success,
        "duration_ms": round(duration_ms, 1)
    }

    if query is not None:
        # Long queries are not useful in the log
        log_data["query"] = query if len(query) <= 100 else query[:97] + "..."

    if providers is not None:
        log_data["providers"] = providers

    if result_count is not None:
        log_data["results"] = result_count

    if identifier:
        log_data["identifier"] = identifier

    if error:
        log_data["error"] = error
        logger.error(f"{command} failed: {log_data}")
    else:
        logger.info(f"{command} done: {log_data}")


def measure_time(func):
    """Simple decorator to measure execution time."""
    def wrapper(*args, **kwargs):
        start_time = time.time()
        result = func(*args, **kwargs)
        duration_ms = (time.time() - start_time) * 1000
        return result, duration_ms
    return wrapper
