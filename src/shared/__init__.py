"""Shared utilities for the MPD codec and its plumbing."""

from .config import Settings, get_settings
from .exceptions import (
    MPDCodecError,
    MPDParseError,
    MPDEncodeError,
    ManifestSourceError,
    RetryableError,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Exceptions
    "MPDCodecError",
    "MPDParseError",
    "MPDEncodeError",
    "ManifestSourceError",
    "RetryableError",
]
