"""MPEG-DASH MPD codec.

This module handles:
- Decoding MPD XML into a mutable document model
- Projecting the model onto the exact wire shape
- Encoding canonical MPD XML (self-closing empty elements)
- Reading and writing manifests from local paths or S3
"""

from .codec import decode, encode, encode_to
from .conditional import ConditionalUint
from .models import (
    MPD,
    AdaptationSet,
    Descriptor,
    Period,
    Pssh,
    Representation,
    SegmentTemplate,
    SegmentTimelineEntry,
)
from .projection import project

__all__ = [
    # Codec
    "decode",
    "encode",
    "encode_to",
    "project",
    # Models
    "ConditionalUint",
    "MPD",
    "Period",
    "AdaptationSet",
    "Representation",
    "Descriptor",
    "Pssh",
    "SegmentTemplate",
    "SegmentTimelineEntry",
]
