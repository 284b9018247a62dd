"""Logging configuration helpers."""

import logging

CONTEXT_FIELDS = (
    "environment",
    "transaction_id",
    "user_id",
    "role",
    "party_id",
    "status",
    "requested",
    "error",
)


class ContextFormatter(logging.Formatter):
    """Append relay context passed through ``extra`` as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{name}={getattr(record, name)}"
            for name in CONTEXT_FIELDS
            if hasattr(record, name)
        )
        return f"{line} [{context}]" if context else line


def configure_logging(level: str = "INFO") -> None:
    """Configure the relay_broker logger with a single stream handler."""
    logger = logging.getLogger("relay_broker")
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
