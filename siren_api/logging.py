import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s %(levelname)s [%(name)s] %(funcName)s:%(lineno)d %(message)s'
SIMPLE_FORMAT = '%(asctime)s %(levelname)s %(message)s'

DESIGN_LOGGERS = [
    'siren_api.design.architect',
    'siren_api.design.automation',
    'siren_api.design.repository',
    'siren_api.design.router',
    'siren_api.generation',
]

STRUCTURED_EXTRAS = ('document_id', 'phase', 'operation', 'user_id', 'error')


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[Path] = None,
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
    enable_structured_logging: bool = False,
) -> None:
    """Configure logging with optional file rotation and structured output."""

    # Environment overrides the requested level
    env_level = os.getenv('SIREN_LOG_LEVEL', '').upper()
    if env_level in ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']:
        level = getattr(logging, env_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)

    if enable_structured_logging:
        console_formatter = StructuredFormatter()
    else:
        console_formatter = logging.Formatter(LOG_FORMAT)

    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        file_handler.setLevel(level)

        if enable_structured_logging:
            file_formatter = StructuredFormatter()
        else:
            file_formatter = logging.Formatter(LOG_FORMAT)

        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    configure_design_loggers(level)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging configured - Level: {logging.getLevelName(level)}")
    if log_file:
        logger.info(f"Log file: {log_file}")


def configure_design_loggers(level: int) -> None:
    """Configure loggers for the design workflow components."""
    for logger_name in DESIGN_LOGGERS:
        logging.getLogger(logger_name).setLevel(level)

    # boto3 floods DEBUG output with wire-level detail
    if level == logging.DEBUG:
        logging.getLogger('botocore').setLevel(logging.INFO)


class StructuredFormatter(logging.Formatter):
    """Structured JSON formatter for production logging."""

    def format(self, record: logging.LogRecord) -> str:
        import json
        from datetime import datetime, timezone

        log_entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        for key in STRUCTURED_EXTRAS:
            if hasattr(record, key):
                log_entry[key] = getattr(record, key)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


def log_design_operation(
    logger: logging.Logger,
    operation: str,
    document_id: Optional[str] = None,
    phase: Optional[str] = None,
    user_id: Optional[str] = None,
    level: int = logging.INFO,
    **kwargs
) -> None:
    """Log a design operation with structured context."""
    extra = {'operation': operation}
    if document_id:
        extra['document_id'] = document_id
    if phase:
        extra['phase'] = phase
    if user_id:
        extra['user_id'] = user_id

    extra.update(kwargs)

    logger.log(level, operation, extra=extra)
