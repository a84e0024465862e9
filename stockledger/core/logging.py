import json
import logging
from datetime import datetime, timezone
from typing import Optional

from stockledger.config import Settings, get_settings

# Passed through ``extra=`` by the ledger services; copied into JSON records when set.
CONTEXT_FIELDS = ("product_id", "session_id", "job_id", "user")

# Chatty third-party loggers kept at WARNING unless LOG_SQL is on.
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def setup_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if settings.LOG_JSON:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                fmt="%(asctime)s %(levelname)s %(name)s - %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)

    sql_level = logging.INFO if settings.LOG_SQL else logging.WARNING
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(sql_level)


__all__ = ["CONTEXT_FIELDS", "JsonFormatter", "setup_logging"]
