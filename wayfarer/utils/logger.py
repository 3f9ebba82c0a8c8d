# wayfarer/utils/logger.py
"""
Centralized logging setup for the Wayfarer framework.

This module configures the root logger with a JSON formatter on stdout and,
when `logging.conversation_log_dir` is configured, a per-conversation JSONL
transcript sink. Every module obtains its logger through `setup_logger`.
"""
import logging
import sys
from typing import Any, MutableMapping

from pythonjsonlogger import jsonlogger

from wayfarer.utils.config import get_config
from wayfarer.utils.log_sinks import ConversationIdFilter, JsonlFileHandler

_LOGGING_CONFIGURED = False

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(conversation_id)s %(message)s"


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """Extends the standard logging adapter to support structured logging.

    A dictionary passed via `extra=` is nested under `extra_data` so that the
    JSON formatter emits it as one object instead of mixing it into the
    record's own attributes.
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        original_extra_content = kwargs.get("extra")
        if original_extra_content is not None:
            kwargs["extra"] = {"extra_data": original_extra_content}
        return msg, kwargs


def _configure_root() -> None:
    root_logger = logging.getLogger()
    config = get_config()
    logging_cfg = config.get("logging", {}) or {}
    log_level_str = str(logging_cfg.get("level", "info")).upper()

    level = getattr(logging, log_level_str, logging.INFO)
    root_logger.setLevel(level)

    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
    console_handler.addFilter(ConversationIdFilter())
    root_logger.addHandler(console_handler)

    transcript_dir = logging_cfg.get("conversation_log_dir")
    if transcript_dir:
        file_handler = JsonlFileHandler(logs_dir=str(transcript_dir))
        file_handler.setFormatter(jsonlogger.JsonFormatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)

    root_logger.info(
        f"Root logger configured with JSON stdout handler. Level: {log_level_str}"
    )


def setup_logger(name: str) -> StructuredLoggerAdapter:
    """Sets up the root logger once and returns a structured child logger.

    :param name: The name of the logger, typically `__name__`.
    :type name: str
    :return: A `StructuredLoggerAdapter` instance ready for use.
    :rtype: StructuredLoggerAdapter
    """
    global _LOGGING_CONFIGURED

    if not _LOGGING_CONFIGURED:
        _configure_root()
        _LOGGING_CONFIGURED = True

    return StructuredLoggerAdapter(logging.getLogger(name), {})
