"""Manifest sources: local paths and s3:// URIs.

Reading and writing bytes is plumbing around the codec. S3 calls are
wrapped in ``retry_with_backoff``; transient errors are retried with
exponential backoff, anything else propagates as ClientError.
"""

from pathlib import Path

from aws_lambda_powertools import Logger

from ..shared.aws_clients import get_s3_client, retry_with_backoff
from ..shared.config import get_settings
from ..shared.exceptions import ManifestSourceError
from .codec import decode, encode
from .models import MPD

logger = Logger(service="mpd-sources")

S3_SCHEME = "s3://"
MPD_CONTENT_TYPE = "application/dash+xml"


def parse_s3_uri(uri: str) -> tuple[str, str]:
    """Split an s3://bucket/key URI.

    Raises:
        ManifestSourceError: If the URI has no bucket or no key

    Example:
        >>> parse_s3_uri("s3://manifests/live/stream.mpd")
        ('manifests', 'live/stream.mpd')
    """
    if not uri.startswith(S3_SCHEME):
        raise ManifestSourceError(f"Not an S3 URI: {uri}", {"location": uri})

    bucket, _, key = uri[len(S3_SCHEME):].partition("/")
    if not bucket or not key:
        raise ManifestSourceError(
            f"S3 URI must include bucket and key: {uri}",
            {"location": uri},
        )
    return bucket, key


def read_s3_object(bucket: str, key: str) -> bytes:
    """Download an object body with retry on transient errors."""
    settings = get_settings()
    s3_client = get_s3_client()

    response = retry_with_backoff(
        lambda: s3_client.get_object(Bucket=bucket, Key=key),
        max_retries=settings.max_retries,
        base_delay=settings.retry_delay_seconds,
        max_delay=settings.retry_max_delay_seconds,
        operation="GetObject",
    )
    data = response["Body"].read()

    logger.debug("Downloaded manifest", extra={"bucket": bucket, "key": key, "size_bytes": len(data)})
    return data


def write_s3_object(bucket: str, key: str, data: bytes) -> None:
    """Upload manifest bytes with retry on transient errors."""
    settings = get_settings()
    s3_client = get_s3_client()

    retry_with_backoff(
        lambda: s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=data,
            ContentType=MPD_CONTENT_TYPE,
        ),
        max_retries=settings.max_retries,
        base_delay=settings.retry_delay_seconds,
        max_delay=settings.retry_max_delay_seconds,
        operation="PutObject",
    )

    logger.debug("Uploaded manifest", extra={"bucket": bucket, "key": key, "size_bytes": len(data)})


def read_manifest(location: str | Path) -> bytes:
    """Read manifest bytes from a local path or an s3:// URI.

    Raises:
        ManifestSourceError: If a local file does not exist
        ClientError: For non-retryable S3 errors
        RetryableError: If S3 retries are exhausted
    """
    location = str(location)
    if location.startswith(S3_SCHEME):
        return read_s3_object(*parse_s3_uri(location))

    path = Path(location)
    if not path.is_file():
        raise ManifestSourceError(f"Manifest file not found: {location}", {"location": location})
    return path.read_bytes()


def write_manifest(location: str | Path, data: bytes) -> None:
    """Write manifest bytes to a local path or an s3:// URI."""
    location = str(location)
    if location.startswith(S3_SCHEME):
        write_s3_object(*parse_s3_uri(location), data)
        return

    Path(location).write_bytes(data)


def load(location: str | Path) -> MPD:
    """Read and decode a manifest."""
    return decode(read_manifest(location))


def dump(mpd: MPD, location: str | Path) -> None:
    """Encode and write a manifest."""
    write_manifest(location, encode(mpd))
