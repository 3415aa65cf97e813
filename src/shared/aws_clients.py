"""S3 access for manifest sources and the normalizer Lambda.

Both entry points share one cached client per process. Transient S3
failures (throttling, SlowDown, 5xx) are retried here with jittered
exponential backoff; everything else surfaces as the original
ClientError so callers can report it.
"""

import random
import time
from functools import lru_cache
from typing import Any, Callable

import boto3
from aws_lambda_powertools import Logger
from botocore.config import Config
from botocore.exceptions import ClientError

from .config import get_settings
from .exceptions import RetryableError

logger = Logger(service="mpd-sources")

# botocore retries connection-level failures on its own; ClientError
# retries are left to retry_with_backoff.
S3_CONFIG = Config(
    retries={"max_attempts": 2, "mode": "standard"},
    connect_timeout=5,
    read_timeout=30,
)

# S3 error codes worth another attempt
RETRYABLE_ERROR_CODES = frozenset({
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "RequestTimeout",
    "InternalError",
    "ServiceUnavailable",
})

JITTER = 0.25


@lru_cache(maxsize=1)
def get_s3_client() -> Any:
    """Get the process-wide S3 client for the configured region."""
    return boto3.client(
        "s3",
        region_name=get_settings().aws_region,
        config=S3_CONFIG,
    )


def is_retryable_error(error: ClientError) -> bool:
    """Check whether an S3 error is transient.

    A known throttling/availability code or any 5xx status qualifies.
    """
    if error.response.get("Error", {}).get("Code", "") in RETRYABLE_ERROR_CODES:
        return True
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
    return status >= 500


def backoff_delay(attempt: int, base_delay: float, max_delay: float) -> float:
    """Delay before retry number ``attempt`` (0-based), with ±25% jitter."""
    delay = min(base_delay * (2**attempt), max_delay)
    return delay * random.uniform(1 - JITTER, 1 + JITTER)


def retry_with_backoff(
    func: Callable[[], Any],
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    operation: str = "S3 request",
) -> Any:
    """Call ``func`` until it succeeds or retries run out.

    Args:
        func: Zero-argument callable issuing one S3 request
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry (seconds)
        max_delay: Upper bound for a single delay before jitter (seconds)
        operation: Name used in logs and errors (e.g., 'GetObject')

    Returns:
        Whatever ``func`` returns

    Raises:
        RetryableError: If every attempt failed with a transient error
        ClientError: On the first non-transient error
    """
    attempts = max_retries + 1
    last_error = None

    for attempt in range(attempts):
        try:
            return func()
        except ClientError as e:
            if not is_retryable_error(e):
                raise
            last_error = e

        if attempt < max_retries:
            delay = backoff_delay(attempt, base_delay, max_delay)
            logger.warning(
                "Transient S3 error, retrying",
                extra={
                    "operation": operation,
                    "attempt": attempt + 1,
                    "delay_seconds": round(delay, 3),
                    "error_code": last_error.response.get("Error", {}).get("Code"),
                },
            )
            time.sleep(delay)

    raise RetryableError(
        f"{operation} failed after {attempts} attempts",
        original_error=last_error,
        details={"operation": operation, "attempts": attempts},
    )


def clear_client_cache() -> None:
    """Drop the cached client so the next call builds a fresh one."""
    get_s3_client.cache_clear()
