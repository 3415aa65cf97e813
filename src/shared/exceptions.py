"""Exceptions raised by the MPD codec and its S3 plumbing.

Every error carries a stable ``error_code`` and a ``details`` dict so it
can be logged as structured JSON or printed by the CLI with ``--json``.

    MPDCodecError
    ├── MPDParseError         input is not a decodable MPD
    ├── MPDEncodeError        encoded bytes could not be written
    ├── ManifestSourceError   bad manifest location
    └── RetryableError        S3 kept failing transiently
"""

from typing import Any


class MPDCodecError(Exception):
    """Base class: message plus machine-readable code and context."""

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and CLI output.

        The text goes under ``error_message``: ``message`` is a reserved
        LogRecord attribute and cannot be passed through ``extra``.
        """
        return {
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.error_code!r}, {self.message!r})"


class MPDParseError(MPDCodecError):
    """Raised by decode on the first problem found.

    Covers malformed XML, a root other than MPD, a missing required
    attribute (MPD@profiles, S@d) and attribute text outside its type's
    lexical space. ``details`` names the element and attribute when known.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "MPD_PARSE_ERROR", details)

    @property
    def element(self) -> str | None:
        return self.details.get("element")

    @property
    def attribute(self) -> str | None:
        return self.details.get("attribute")


def _with_cause(details: dict[str, Any] | None, cause: Exception | None) -> dict[str, Any]:
    merged = dict(details or {})
    if cause is not None:
        merged["original_error"] = str(cause)
        merged["original_error_type"] = type(cause).__name__
    return merged


class MPDEncodeError(MPDCodecError):
    """Raised by encode_to when the sink rejects the bytes.

    Encoding in memory cannot fail for a valid document.
    """

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "MPD_ENCODE_ERROR", _with_cause(details, original_error))
        self.original_error = original_error


class ManifestSourceError(MPDCodecError):
    """Raised for an unusable location: malformed s3:// URI or missing file."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, "MANIFEST_SOURCE_ERROR", details)


class RetryableError(MPDCodecError):
    """Raised when a transient S3 failure outlasted every retry."""

    def __init__(
        self,
        message: str,
        original_error: Exception | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, "RETRYABLE_ERROR", _with_cause(details, original_error))
        self.original_error = original_error
