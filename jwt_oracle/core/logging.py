"""jwt-oracle logging.

Library modules only ask for loggers through get_logger(). Handlers are
installed by whoever embeds the library (the Alembic environment does it for
migrations) by calling setup_logging().

Records may carry revocation context through ``extra=``; the keys listed in
RECORD_FIELDS are rendered by both formatters. Compact JWTs that end up in a
message are masked before any handler writes them out.
"""

import json
import logging
import re
import sys
from typing import Any, Literal

from jwt_oracle.core.config import Settings
from jwt_oracle.core.config import settings as default_settings

LOGGER_NAME = "jwt_oracle"

# Revocation context a record may carry via extra=
RECORD_FIELDS = ("token_key", "expired_at", "removed")

DEV_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# header.payload.signature, header always starts with {" base64url encoded
_COMPACT_JWT_RE = re.compile(r"eyJ[A-Za-z0-9_-]*\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")

REDACTED = "<redacted jwt>"

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def redact_tokens(text: str) -> str:
    """Replace every compact JWT in text."""
    return _COMPACT_JWT_RE.sub(REDACTED, text)


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    return {name: getattr(record, name) for name in RECORD_FIELDS if hasattr(record, name)}


class TokenRedactionFilter(logging.Filter):
    """Masks bearer tokens in messages so they never reach a log sink."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_tokens(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line, revocation context as top-level keys."""

    def __init__(self):
        super().__init__(datefmt="%Y-%m-%dT%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


class DevFormatter(logging.Formatter):
    """Readable lines with revocation context appended as key=value pairs."""

    def __init__(self):
        super().__init__(DEV_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = record_context(record)
        if context:
            line += " " + " ".join(f"{key}={value}" for key, value in context.items())
        return line


def setup_logging(
    level: str | None = None,
    format_type: Literal["structured", "dev"] | None = None,
    config: Settings | None = None,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        level: Log level, defaults to LOG_LEVEL
        format_type: 'structured' for JSON, 'dev' for readable, defaults to LOG_FORMAT
        config: Settings to read the defaults from
    """
    config = config or default_settings
    level = (level or config.log_level).upper()
    format_type = format_type or config.log_format

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if format_type == "structured" else DevFormatter())
    handler.addFilter(TokenRedactionFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # SQL statements only when debugging
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if level == "DEBUG" else logging.WARNING
    )

    get_logger("logging").debug(f"Logging configured: level={level}, format={format_type}")


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the jwt_oracle namespace."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
