# connection_bot/infra/logging_config.py
import logging
import sys
import json
from datetime import datetime, timezone

# Record attributes attached by LogContext
_CONTEXT_FIELDS = ("chat_id", "step")

# Libraries whose INFO chatter drowns out the bot's own logs
_NOISY_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "aiohttp.access": logging.WARNING,
}

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


def mask_chat_id(chat_id: str) -> str:
    """Mask a chat identifier for logging.

    Example: ``mask_chat_id("123456789")`` → ``"1234***"``
    """
    chat_id = str(chat_id)
    if len(chat_id) <= 4:
        return "***"
    return chat_id[:4] + "***"


def _record_context(record: logging.LogRecord) -> dict:
    context = {}
    for name in _CONTEXT_FIELDS:
        if hasattr(record, name):
            value = getattr(record, name)
            context[name] = mask_chat_id(value) if name == "chat_id" else value
    return context


def _record_time(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for prod log shipping."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": _record_time(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        payload.update(_record_context(record))

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        # Hebrew and Russian stay readable
        return json.dumps(payload, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output for local runs."""

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelname, _RESET)
        stamp = _record_time(record).strftime("%H:%M:%S")

        context = " ".join(f"{('chat' if k == 'chat_id' else k)}={v}" for k, v in _record_context(record).items())
        where = f"{record.name} [{context}]" if context else record.name

        line = f"{stamp} {color}{record.levelname:<8}{_RESET} {where}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: str = "INFO", use_json: bool = False) -> None:
    """
    Route all logging to stdout through a single handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_json: JSON lines instead of colored console output
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if use_json else ConsoleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)

    for name, noisy_level in _NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(noisy_level)

    root.info("Logging configured: level=%s, json=%s", level, use_json)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext(logging.LoggerAdapter):
    """Logger adapter stamping records with the chat id and wizard step."""

    def __init__(
            self,
            logger: logging.Logger,
            chat_id: str | None = None,
            step: int | None = None,
    ):
        context = {"chat_id": chat_id, "step": step}
        super().__init__(logger, {k: v for k, v in context.items() if v is not None})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}
        return msg, kwargs
