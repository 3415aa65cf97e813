"""Round-trip MPD manifests through the codec.

Usage:
    mpd-roundtrip manifest.mpd

    # Write the canonical form somewhere else (local path or S3)
    mpd-roundtrip s3://bucket/live/stream.mpd -o normalized/stream.mpd

    # Exit 1 when the input is not already canonical
    mpd-roundtrip manifest.mpd --check
"""

import argparse
import json
import sys

from botocore.exceptions import ClientError

from ..shared.exceptions import MPDCodecError, MPDEncodeError
from .codec import decode, encode, encode_to
from .sources import read_manifest, write_manifest

EXIT_OK = 0
EXIT_NOT_CANONICAL = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpd-roundtrip",
        description="Decode an MPD manifest and re-encode it in canonical form",
    )
    parser.add_argument(
        "source",
        help="Manifest location: local path or s3://bucket/key",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "-o", "--output",
        help="Destination for the canonical manifest (default: stdout)",
    )
    mode.add_argument(
        "--check",
        action="store_true",
        help="Only report whether the source is already canonical",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output errors and check results in JSON format",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the mpd-roundtrip command."""
    args = build_parser().parse_args(argv)

    try:
        original = read_manifest(args.source)
        mpd = decode(original)
    except (MPDCodecError, ClientError) as e:
        _report_error(e, args.json)
        return EXIT_ERROR

    if not args.output and not args.check:
        try:
            encode_to(mpd, sys.stdout.buffer)
        except MPDEncodeError as e:
            _report_error(e, args.json)
            return EXIT_ERROR
        return EXIT_OK

    canonical = encode(mpd)

    if args.check:
        is_canonical = canonical == original
        if args.json:
            print(json.dumps({"source": args.source, "canonical": is_canonical}))
        elif is_canonical:
            print(f"{args.source}: canonical")
        else:
            print(f"{args.source}: not canonical")
        return EXIT_OK if is_canonical else EXIT_NOT_CANONICAL

    try:
        write_manifest(args.output, canonical)
    except (MPDCodecError, ClientError, OSError) as e:
        _report_error(e, args.json)
        return EXIT_ERROR

    return EXIT_OK


def _report_error(error: Exception, as_json: bool) -> None:
    if as_json:
        if isinstance(error, MPDCodecError):
            payload = error.to_dict()
        elif isinstance(error, ClientError):
            # botocore may raise a modeled subclass such as NoSuchKey
            payload = {
                "error_code": error.response.get("Error", {}).get("Code", "ClientError"),
                "error_message": str(error),
                "details": {"operation": error.operation_name},
            }
        else:
            payload = {
                "error_code": type(error).__name__,
                "error_message": str(error),
                "details": {},
            }
        print(json.dumps(payload), file=sys.stderr)
    else:
        print(f"Error: {error}", file=sys.stderr)


if __name__ == "__main__":
    sys.exit(main())
