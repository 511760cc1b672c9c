"""
Logging for the Bones client.

setup_logging() installs two handlers on the root logger:
  - console: coloured one-liners, or JSON when LOG_FORMAT=json
  - bones.log under paths.LOG_DIR: always JSON, rotated at 5MB

Both carry RedactTokens, because the HTTP client logs error bodies and
URLs that can echo a bearer token or a login password back.

Calling setup_logging() again (every create_app() does) swaps out only the
handlers it installed itself; handlers added by anyone else stay put.
"""
import json
import logging
import logging.handlers
import os
import re
from datetime import datetime, timezone

from bones.core import paths
from bones.core.settings import get_setting

LOG_FILE = "bones.log"
MAX_BYTES = 5_000_000
BACKUPS = 5
NOISY_LOGGERS = ("urllib3", "werkzeug", "PIL", "reportlab")

# Marks handlers owned by setup_logging
_OWNER_ATTR = "_bones_handler"

# Attributes every LogRecord has; anything else came in through extra=
_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {
    "message", "asctime", "taskName"}

# Context shown after the message on the console, in this order
_CONTEXT_KEYS = (("quote_id", "quote"), ("order_id", "order"), ("job_id", "job"),
                 ("customer_id", "customer"), ("status", "http"))

_SECRET_PATTERNS = (
    (re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*"), r"\1****"),
    (re.compile(r"""(['"](?:token|password)['"]\s*:\s*['"])[^'"]*(['"])"""), r"\1****\2"),
)


def redact(text: str) -> str:
    for pattern, repl in _SECRET_PATTERNS:
        text = pattern.sub(repl, text)
    return text


class RedactTokens(logging.Filter):
    """Masks bearer tokens and token/password fields in the rendered message."""

    def filter(self, record):
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg, record.args = cleaned, None
        return True


def record_extras(record) -> dict:
    return {k: v for k, v in vars(record).items()
            if k not in _RECORD_ATTRS and not k.startswith("_")}


class JSONFormatter(logging.Formatter):
    """One JSON object per line: fixed fields, then whatever came in extra=."""

    def format(self, record):
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(record_extras(record))
        if record.exc_info and record.exc_info[0]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """HH:MM:SS [L] logger: message  quote=q-1 http=502"""
    COLORS = {
        "DEBUG": "\033[36m", "INFO": "\033[32m",
        "WARNING": "\033[33m", "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record):
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{ts} [{record.levelname[0]}] {record.name}: {record.getMessage()}"
        context = " ".join(f"{label}={getattr(record, key)}"
                           for key, label in _CONTEXT_KEYS
                           if getattr(record, key, None) is not None)
        if context:
            line = f"{line}  {context}"
        if record.exc_info and record.exc_info[0]:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        if not self.color:
            return line
        return f"{self.COLORS.get(record.levelname, '')}{line}{self.RESET}"


def _own(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNER_ATTR, True)
    handler.addFilter(RedactTokens())
    return handler


def _remove_owned(root: logging.Logger):
    for handler in [h for h in root.handlers if getattr(h, _OWNER_ATTR, False)]:
        root.removeHandler(handler)
        handler.close()


def setup_logging(level=None, json_logs=None, log_dir=None):
    """
    Configure logging for the full application.

    Args:
        level: Override log level (default: LOG_LEVEL, else INFO)
        json_logs: Force JSON on the console (default: LOG_FORMAT=json)
        log_dir: Where bones.log goes (default: paths.LOG_DIR)

    Returns the log file path, or None when file logging is off.
    """
    level = (level or get_setting("log_level") or "INFO").upper()
    if json_logs is None:
        json_logs = get_setting("log_format").lower() == "json"
    log_dir = log_dir or paths.LOG_DIR

    root = logging.getLogger()
    root.setLevel(getattr(logging, level, logging.INFO))
    _remove_owned(root)

    console = logging.StreamHandler()
    tty = hasattr(console.stream, "isatty") and console.stream.isatty()
    console.setFormatter(JSONFormatter() if json_logs else HumanFormatter(color=tty))
    root.addHandler(_own(console))

    log_path = os.path.join(log_dir, LOG_FILE)
    try:
        os.makedirs(log_dir, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=MAX_BYTES, backupCount=BACKUPS, encoding="utf-8")
    except OSError as e:
        logging.getLogger("bones").warning("File logging disabled: %s", e)
        log_path = None
    else:
        fh.setFormatter(JSONFormatter())
        root.addHandler(_own(fh))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("bones").info("Logging initialized (%s, %s)", level,
                                    "json" if json_logs else "human")
    return log_path
