# wayfarer/utils/log_sinks.py
"""
Custom logging components for the Wayfarer framework.

A context variable carries the id of the conversation whose turn is running,
so any logger in the call stack (provider adapters, the tool executor, the
driver) can be correlated with a conversation without passing the id around.
"""
import contextvars
import logging
from pathlib import Path
from typing import Optional

conversation_id_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "conversation_id", default=None
)


class ConversationIdFilter(logging.Filter):
    """
    A logging filter that injects the current conversation_id from the
    contextvar into the log record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Adds the conversation_id to the log record.

        :param record: The log record being processed.
        :type record: logging.LogRecord
        :return: Always returns True to allow the record to be processed.
        :rtype: bool
        """
        record.conversation_id = conversation_id_context.get()
        return True


class JsonlFileHandler(logging.Handler):
    """
    Writes records to one JSON Lines transcript per conversation.

    Records emitted outside of a conversation turn are skipped; those are
    process-level logs and only go to the console handler.
    """

    def __init__(self, logs_dir: str):
        super().__init__()
        self.logs_dir = Path(logs_dir)
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        self.addFilter(ConversationIdFilter())

    def emit(self, record: logging.LogRecord):
        conversation_id = getattr(record, "conversation_id", None)
        if not conversation_id:
            return

        try:
            log_file = self.logs_dir / f"{conversation_id}.jsonl"
            line = self.format(record)
            with log_file.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except Exception:
            self.handleError(record)
