"""
Logging Configuration - Structured logging setup

Development runs get readable stdlib formatting; production runs get JSON
through structlog.

License: MIT
"""

import logging
import logging.config
import sys
import os
import json
from typing import Optional
from datetime import datetime

import structlog

# Attributes every LogRecord has; anything else came in through ``extra=``.
_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
    "lineno", "funcName", "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "exc_info", "exc_text", "stack_info", "message", "taskName",
}


def setup_logging(
    level: str = "INFO",
    format_type: str = "simple",
    log_file: Optional[str] = None,
    environment: Optional[str] = None,
) -> None:
    """
    Setup logging for the RAG chat service.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: Format type ('simple', 'detailed', 'json')
        log_file: Optional log file path
        environment: 'production' switches to structlog JSON output
    """
    log_level = os.getenv("LOG_LEVEL", level).upper()
    log_format = os.getenv("LOG_FORMAT", format_type).lower()
    log_file_path = os.getenv("LOG_FILE", log_file)
    environment = environment or os.getenv("ENVIRONMENT", "development")

    if environment == "production":
        setup_production_logging(log_level, log_file_path)
    else:
        setup_standard_logging(log_level, log_format, log_file_path)

    configure_external_loggers()


def setup_production_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Setup production logging with structured JSON format.

    Args:
        level: Logging level
        log_file: Optional log file path
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "json",
            "stream": sys.stdout,
        }
    }

    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "json",
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                # Renders stdlib records and structlog events alike as JSON
                "json": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processor": structlog.processors.JSONRenderer(),
                    "foreign_pre_chain": [
                        structlog.stdlib.add_logger_name,
                        structlog.stdlib.add_log_level,
                        structlog.stdlib.ExtraAdder(),
                        structlog.processors.TimeStamper(fmt="iso"),
                    ],
                }
            },
            "handlers": handlers,
            "root": {"level": level, "handlers": list(handlers.keys())},
        }
    )

    logger = logging.getLogger(__name__)
    logger.info(
        "Production logging configured",
        extra={"level": level, "file_logging": log_file is not None},
    )


def setup_standard_logging(
    level: str = "INFO",
    format_type: str = "simple",
    log_file: Optional[str] = None,
) -> None:
    """
    Setup standard Python logging.

    Args:
        level: Logging level
        format_type: Format type
        log_file: Optional log file path
    """
    formatters = {
        "simple": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(funcName)s - %(message)s"
        },
        "json": {"()": "rag_chat.infrastructure.logging_config.JSONFormatter"},
    }
    if format_type not in formatters:
        format_type = "simple"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_type,
            "stream": sys.stdout,
        }
    }

    if log_file:
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": format_type,
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": formatters,
            "handlers": handlers,
            "root": {"level": level, "handlers": list(handlers.keys())},
        }
    )

    logging.getLogger(__name__).debug(f"Logging configured: level={level}, format={format_type}")


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for stdlib logging.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                log_entry[key] = value

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def configure_external_loggers() -> None:
    """
    Configure logging levels for external libraries.
    """
    external_loggers = {
        "urllib3.connectionpool": "WARNING",
        "openai": "WARNING",
        "httpx": "WARNING",
        "httpcore": "WARNING",
        "pinecone": "WARNING",
        "chromadb": "WARNING",
    }

    for logger_name, level in external_loggers.items():
        logging.getLogger(logger_name).setLevel(getattr(logging, level))
