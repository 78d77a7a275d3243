import json
import logging
import os
import sys

# Loggers of HTTP libraries; silenced below verbosity 3.
_NOISY_LOGGERS = ("urllib3", "requests", "charset_normalizer")

_TEXT_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
_FILE_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """Single-line JSON formatter for structured output.

    Produces one JSON object per log record with fields: ts, level, logger, msg.
    Exception info is included as an "exc" field when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def level_for_verbosity(verbosity: int) -> int:
    """Map a 0-3 verbosity to a logging level.

    0 defers to ``LOG_LEVEL`` (default WARNING), 1 is INFO, 2 and 3 are DEBUG.
    """
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    env_level = os.getenv("LOG_LEVEL", "WARNING").upper()
    return getattr(logging, env_level, logging.WARNING)


def setup_logging(
    verbosity: int = 0,
    log_file: str | None = None,
    debug_format: str = "text",
) -> None:
    """
    Configure logging for a sync run.

    Records always go to stderr so stdout stays free for CI annotations.

    Args:
        verbosity: Diagnostic level 0-3.
        log_file: Optional file that receives a copy of every record.
        debug_format: "text" (default) or "json" for structured output.

    Environment variables:
        LOG_LEVEL: Logging level used when verbosity is 0. Default: WARNING.
    """
    log_level = level_for_verbosity(verbosity)

    def _formatter(fmt: str) -> logging.Formatter:
        if debug_format == "json":
            return JsonFormatter(datefmt=_DATEFMT)
        return logging.Formatter(fmt, datefmt=_DATEFMT)

    handlers: list[logging.Handler] = []
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(_formatter(_TEXT_FORMAT))
    handlers.append(stderr_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(_formatter(_FILE_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    noisy_level = logging.DEBUG if verbosity >= 3 else logging.WARNING
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
