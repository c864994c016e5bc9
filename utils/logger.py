"""Logging configuration for VarSwitch."""

import logging
import re
from logging.handlers import RotatingFileHandler

from utils.constants import APP_NAME, CONFIG_DIR, LOG_FILE

# Values that look like API keys (sk-..., sk-ant-...) or bearer tokens
_SECRET_PATTERN = re.compile(r"\b(sk-[A-Za-z0-9_\-]{4})[A-Za-z0-9_\-]{8,}([A-Za-z0-9_\-]{4})\b")
_BEARER_PATTERN = re.compile(r"(Bearer\s+)\S+", re.IGNORECASE)


def redact(text: str) -> str:
    """Mask anything in ``text`` that looks like a credential."""
    text = _SECRET_PATTERN.sub(r"\1****\2", text)
    return _BEARER_PATTERN.sub(r"\1****", text)


class RedactingFilter(logging.Filter):
    """Keeps tokens out of log files even when a message embeds one."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(level: int = logging.INFO) -> None:
    """
    Set up logging with rotating file handler.

    Args:
        level: Logging level (default: INFO)
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    redacting_filter = RedactingFilter()

    # File handler with rotation (3 files, 1MB each)
    file_handler = RotatingFileHandler(
        LOG_FILE,
        maxBytes=1048576,  # 1MB
        backupCount=3,
        encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    file_handler.addFilter(redacting_filter)

    # Console handler for warnings and errors
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(redacting_filter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logging.info("=" * 60)
    logging.info(f"{APP_NAME} - Logging initialized")
    logging.info(f"Log file: {LOG_FILE}")
    logging.info("=" * 60)
