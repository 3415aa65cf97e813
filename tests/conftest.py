"""Pytest configuration and shared fixtures.

This module provides:
- AWS credential mocking for moto
- Pre-configured S3 client and buckets
- Sample manifests (canonical fixtures and document models)
- Environment variable setup and cache resets
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Generator

import boto3
import pytest
from moto import mock_aws

# Set dummy AWS credentials BEFORE importing any application code
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"

# Set application environment variables
os.environ["INPUT_BUCKET"] = "test-input-bucket"
os.environ["OUTPUT_BUCKET"] = "test-output-bucket"
os.environ["OUTPUT_PREFIX"] = "normalized"
os.environ["RETRY_DELAY_SECONDS"] = "0"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["POWERTOOLS_METRICS_NAMESPACE"] = "MPDCodec"

from src.mpd.conditional import ConditionalUint  # noqa: E402
from src.mpd.models import (  # noqa: E402
    MPD,
    AdaptationSet,
    Descriptor,
    Period,
    Representation,
    SegmentTemplate,
    SegmentTimelineEntry,
)
from src.shared.aws_clients import clear_client_cache  # noqa: E402
from src.shared.config import clear_settings_cache  # noqa: E402

FIXTURES_DIR = Path(__file__).parent / "fixtures"

LIVE_PROFILE = "urn:mpeg:dash:profile:isoff-live:2011"
DASH_NAMESPACE = "urn:mpeg:dash:schema:mpd:2011"


@pytest.fixture(autouse=True)
def reset_caches() -> Generator[None, None, None]:
    """Drop cached settings and clients so each test sees its own environment."""
    clear_settings_cache()
    clear_client_cache()
    yield
    clear_settings_cache()
    clear_client_cache()


# =============================================================================
# AWS Fixtures
# =============================================================================


@pytest.fixture
def s3_client() -> Generator[Any, None, None]:
    """S3 client backed by moto; application clients created inside share it."""
    with mock_aws():
        yield boto3.client("s3", region_name="us-east-1")


@pytest.fixture
def s3_buckets(s3_client: Any) -> dict[str, str]:
    """Create the input and output buckets named in the environment."""
    s3_client.create_bucket(Bucket="test-input-bucket")
    s3_client.create_bucket(Bucket="test-output-bucket")
    return {
        "input": "test-input-bucket",
        "output": "test-output-bucket",
    }


# =============================================================================
# Sample Data Fixtures
# =============================================================================


@pytest.fixture
def live_mpd_bytes() -> bytes:
    """Canonical dynamic manifest with DRM and segment timelines."""
    return (FIXTURES_DIR / "live_cenc.mpd").read_bytes()


@pytest.fixture
def vod_mpd_bytes() -> bytes:
    """Canonical static manifest with number-based segment templates."""
    return (FIXTURES_DIR / "vod_segment_template.mpd").read_bytes()


@pytest.fixture
def minimal_mpd() -> MPD:
    """Smallest valid document: profiles only."""
    return MPD(profiles=LIVE_PROFILE)


@pytest.fixture
def sample_mpd() -> MPD:
    """Document exercising every level of the tree."""
    return MPD(
        xmlns=DASH_NAMESPACE,
        type="static",
        media_presentation_duration="PT10M",
        min_buffer_time="PT2S",
        profiles=LIVE_PROFILE,
        periods=[
            Period(
                id="p0",
                adaptation_sets=[
                    AdaptationSet(
                        id=1,
                        mime_type="video/mp4",
                        segment_alignment=ConditionalUint(flag=True),
                        start_with_sap=1,
                        content_protections=[
                            Descriptor(
                                scheme_id_uri="urn:mpeg:dash:mp4protection:2011",
                                value="cenc",
                                default_kid="08e36702-8f33-436c-a5dd-60ffe5571e60",
                            ),
                        ],
                        segment_template=SegmentTemplate(
                            timescale=90000,
                            media="$Number$.m4s",
                            initialization="init.mp4",
                            segment_timeline=[
                                SegmentTimelineEntry(t=0, d=180000, r=2),
                                SegmentTimelineEntry(d=90000),
                            ],
                        ),
                        representations=[
                            Representation(id="720p", width=1280, height=720, bandwidth=3000000),
                            Representation(id="360p", width=640, height=360, bandwidth=800000),
                        ],
                    ),
                ],
            ),
        ],
    )


@pytest.fixture
def write_manifest_file(tmp_path: Path) -> Callable[[str, bytes], Path]:
    """Write manifest bytes to a temporary file and return its path."""

    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return _write


# =============================================================================
# Lambda Fixtures
# =============================================================================


@dataclass
class FakeLambdaContext:
    function_name: str = "mpd-normalizer"
    function_version: str = "$LATEST"
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:mpd-normalizer"
    memory_limit_in_mb: int = 256
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"
    log_group_name: str = "/aws/lambda/mpd-normalizer"
    log_stream_name: str = "2024/01/15/[$LATEST]abcdef"

    def get_remaining_time_in_millis(self) -> int:
        return 30000


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    """Minimal Lambda context accepted by Powertools decorators."""
    return FakeLambdaContext()


@pytest.fixture
def s3_put_event() -> Callable[..., dict]:
    """Build an S3 PutObject event for one or more manifest keys."""

    def _event(*keys: str, bucket: str = "test-input-bucket") -> dict:
        return {
            "Records": [
                {
                    "eventVersion": "2.1",
                    "eventSource": "aws:s3",
                    "awsRegion": "us-east-1",
                    "eventTime": "2024-01-15T10:00:00.000Z",
                    "eventName": "ObjectCreated:Put",
                    "s3": {
                        "bucket": {
                            "name": bucket,
                            "arn": f"arn:aws:s3:::{bucket}",
                        },
                        "object": {
                            "key": key,
                            "size": 2048,
                            "eTag": "abc123",
                        },
                    },
                }
                for key in keys
            ]
        }

    return _event
