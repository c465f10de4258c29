import json
import logging
from logging.config import dictConfig

CHUNK_LOGGERS = ("chunkstore.storage", "chunkstore.concat")
# botocore logs every request at DEBUG, including signed headers
NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


def setup_logging(level: str = "INFO", *, json_output: bool = True) -> None:
    level = level.upper()
    loggers: dict[str, dict] = {
        "chunkstore.startup": {
            "handlers": ["startup_console"],
            "level": level,
            "propagate": False,
        }
    }
    for name in CHUNK_LOGGERS:
        loggers[name] = {"level": level}
    for name in NOISY_LOGGERS:
        loggers[name] = {"level": "WARNING"}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "json": {
                    "()": JsonFormatter,
                },
                "plain": {
                    "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_output else "plain",
                },
                "startup_console": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                },
            },
            "root": {
                "level": level,
                "handlers": ["console"],
            },
            "loggers": loggers,
        }
    )


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``extra={"extra": {...}}`` fields are inlined."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)
