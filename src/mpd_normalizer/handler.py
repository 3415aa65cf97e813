"""Lambda handler that normalizes uploaded MPD manifests.

This Lambda is triggered by S3 PutObject events when a manifest is
uploaded to the input bucket.

Flow:
1. Receive S3 event
2. Download manifest
3. Decode and re-encode in canonical form
4. Upload to the output bucket under the configured prefix
"""

import json
from urllib.parse import unquote_plus
from typing import Any

from aws_lambda_powertools import Logger, Metrics
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.data_classes import S3Event, event_source
from aws_lambda_powertools.utilities.typing import LambdaContext

from ..mpd.codec import decode, encode
from ..mpd.sources import read_s3_object, write_s3_object
from ..shared.config import Settings, get_settings
from ..shared.exceptions import MPDParseError

logger = Logger(service="mpd-normalizer")
metrics = Metrics(service="mpd-normalizer", namespace="MPDCodec")


@logger.inject_lambda_context(log_event=True)
@metrics.log_metrics(capture_cold_start_metric=True)
@event_source(data_class=S3Event)
def handler(event: S3Event, context: LambdaContext) -> dict[str, Any]:
    """Normalize every manifest named in an S3 event.

    Args:
        event: S3 PutObject event
        context: Lambda context

    Returns:
        Response listing the normalized output locations

    Raises:
        MPDParseError: If a manifest cannot be decoded
    """
    settings = get_settings()
    results = []
    skipped = 0

    for record in event.records:
        bucket = record.s3.bucket.name
        key = unquote_plus(record.s3.get_object.key)

        if is_own_output(bucket, key, settings):
            logger.info("Skipping normalized output", extra={"bucket": bucket, "key": key})
            skipped += 1
            continue

        logger.info(
            "Processing manifest",
            extra={
                "bucket": bucket,
                "key": key,
                "event_time": record.event_time,
                "event_name": record.event_name,
            },
        )

        try:
            original = read_s3_object(bucket, key)
            mpd = decode(original)
            canonical = encode(mpd)

            output_key = settings.output_key(key)
            write_s3_object(settings.output_bucket, output_key, canonical)

        except MPDParseError as e:
            logger.error(
                "Manifest parse failed",
                extra={
                    "error": e.to_dict(),
                    "bucket": bucket,
                    "key": key,
                },
            )
            metrics.add_metric(name="ManifestParseErrors", unit=MetricUnit.Count, value=1)
            raise

        except Exception:
            logger.exception(
                "Unexpected error processing manifest",
                extra={"bucket": bucket, "key": key},
            )
            metrics.add_metric(name="ManifestProcessingErrors", unit=MetricUnit.Count, value=1)
            raise

        changed = canonical != original
        logger.info(
            "Normalized manifest",
            extra={
                "key": key,
                "output_key": output_key,
                "periods": len(mpd.periods),
                "changed": changed,
            },
        )
        metrics.add_metric(name="ManifestsNormalized", unit=MetricUnit.Count, value=1)

        results.append({
            "source": f"s3://{bucket}/{key}",
            "output": f"s3://{settings.output_bucket}/{output_key}",
            "changed": changed,
        })

    return {
        "statusCode": 200,
        "body": json.dumps({
            "message": f"Normalized {len(results)} manifest(s)",
            "results": results,
            "skipped": skipped,
        }),
    }


def is_own_output(bucket: str, key: str, settings: Settings) -> bool:
    """Check whether an event refers to a manifest this Lambda wrote.

    Only possible when input and output share a bucket; the output prefix
    then marks keys that are already canonical.
    """
    if bucket != settings.output_bucket or not settings.output_prefix:
        return False
    return key.startswith(f"{settings.output_prefix}/")
