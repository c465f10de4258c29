import logging
import time
from contextlib import contextmanager
from typing import Generator

from chunkstore.infra.observability.metrics import (
    CHUNK_OPERATION_LATENCY,
    CHUNK_OPERATIONS,
)

logger = logging.getLogger("chunkstore.storage")


@contextmanager
def observe_operation(operation: str, chunk_name: str) -> Generator[None, None, None]:
    """Count, time and log one chunk storage operation."""
    start = time.perf_counter()
    try:
        yield
    except Exception as exc:
        elapsed = time.perf_counter() - start
        CHUNK_OPERATIONS.labels(operation=operation, outcome="error").inc()
        CHUNK_OPERATION_LATENCY.labels(operation=operation).observe(elapsed)
        error_code = getattr(exc, "error_code", "unknown_error")
        logger.log(
            logging.WARNING if error_code != "storage_error" else logging.ERROR,
            "chunk_operation_failed operation=%s chunk=%s error_code=%s duration_ms=%.3f error=%s",
            operation,
            chunk_name,
            error_code,
            round(elapsed * 1000, 3),
            exc,
            extra={
                "extra": {
                    "operation": operation,
                    "chunk": chunk_name,
                    "error_code": error_code,
                    "duration_ms": round(elapsed * 1000, 3),
                }
            },
        )
        raise

    elapsed = time.perf_counter() - start
    CHUNK_OPERATIONS.labels(operation=operation, outcome="success").inc()
    CHUNK_OPERATION_LATENCY.labels(operation=operation).observe(elapsed)
    logger.debug(
        "chunk_operation operation=%s chunk=%s duration_ms=%.3f",
        operation,
        chunk_name,
        round(elapsed * 1000, 3),
        extra={
            "extra": {
                "operation": operation,
                "chunk": chunk_name,
                "duration_ms": round(elapsed * 1000, 3),
            }
        },
    )
