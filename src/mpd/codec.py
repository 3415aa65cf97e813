"""Decode and encode MPD documents.

Decoding walks an ElementTree parse of the input directly into the
document model. Encoding projects the model onto the wire model,
serializes it with two-space indentation, then canonicalizes empty
elements into self-closing form:

    <Representation id="1" bandwidth="500000"></Representation>
    -> <Representation id="1" bandwidth="500000"/>

ElementTree can only write ``<Tag />`` (with a space) natively, so the
serializer is run with explicit open/close pairs and the pair is
collapsed afterwards. The rewrite is line-oriented and relies on
``ElementTree.indent`` leaving a childless element's close tag on the
same line, immediately after its open tag.
"""

import io
import re
import xml.etree.ElementTree as ET
from typing import BinaryIO, Callable, TypeVar

from aws_lambda_powertools import Logger

from ..shared.exceptions import MPDEncodeError, MPDParseError
from .conditional import UINT64_MAX, ConditionalUint
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
from .wire import MPD_TAG, to_element

logger = Logger(service="mpd-codec")

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'
INDENT = "  "

_EMPTY_ELEMENT_RE = re.compile(r"<([A-Za-z_][\w.:-]*)((?:\s[^<>]*)?)></\1>")
_UINT_RE = re.compile(r"[0-9]+")
_INT_RE = re.compile(r"[+-]?[0-9]+")

T = TypeVar("T")


# =============================================================================
# Encode
# =============================================================================


def encode(mpd: MPD) -> bytes:
    """Encode a document as canonical MPD XML.

    Args:
        mpd: Document to encode (not modified)

    Returns:
        UTF-8 bytes: declaration line, two-space indented tree with
        self-closing empty elements, trailing newline

    Example:
        >>> mpd = MPD(profiles="urn:mpeg:dash:profile:isoff-live:2011")
        >>> encode(mpd).decode().splitlines()[1]
        '<MPD profiles="urn:mpeg:dash:profile:isoff-live:2011"/>'
    """
    root = to_element(project(mpd))
    ET.indent(root, space=INDENT)

    buffer = io.StringIO()
    ET.ElementTree(root).write(buffer, encoding="unicode", short_empty_elements=False)

    body = collapse_empty_elements(buffer.getvalue())
    data = (XML_DECLARATION + body + "\n").encode("utf-8")

    logger.debug(
        "Encoded MPD",
        extra={"periods": len(mpd.periods), "size_bytes": len(data)},
    )
    return data


def encode_to(mpd: MPD, sink: BinaryIO) -> int:
    """Encode a document and write it to a binary sink.

    Returns:
        Number of bytes written

    Raises:
        MPDEncodeError: If the sink fails to accept the bytes
    """
    data = encode(mpd)
    try:
        sink.write(data)
        sink.flush()
    except OSError as e:
        raise MPDEncodeError("Failed to write encoded MPD", original_error=e)
    return len(data)


def collapse_empty_elements(text: str) -> str:
    """Rewrite ``<Tag ...></Tag>`` pairs into ``<Tag .../>``, line by line.

    Only a close tag that immediately follows its own open tag on the
    same line is collapsed; elements with content are left alone.
    """
    return "".join(
        _EMPTY_ELEMENT_RE.sub(r"<\1\2/>", line)
        for line in text.splitlines(keepends=True)
    )


# =============================================================================
# Decode
# =============================================================================


def decode(data: bytes) -> MPD:
    """Parse MPD XML into the document model.

    Args:
        data: Raw document bytes

    Returns:
        Populated MPD

    Raises:
        MPDParseError: On malformed XML, an unexpected root element, a
            missing required attribute or an invalid attribute value
    """
    root, declared = _parse_tree(data)

    root_tag = _local(root.tag)
    if root_tag != MPD_TAG:
        raise MPDParseError(
            f"Invalid root element: expected '{MPD_TAG}', got '{root_tag}'",
            {"actual_root": root_tag},
        )

    mpd = _parse_mpd(root, declared)
    logger.debug(
        "Decoded MPD",
        extra={"periods": len(mpd.periods), "size_bytes": len(data)},
    )
    return mpd


def _parse_tree(data: bytes) -> tuple[ET.Element, dict[ET.Element, dict[str, str]]]:
    """Parse bytes, recording the namespaces each element declares itself.

    ElementTree drops xmlns attributes from the tree, so they are
    collected from start-ns events, which precede the start event of
    the declaring element.
    """
    declared: dict[ET.Element, dict[str, str]] = {}
    pending: dict[str, str] = {}
    root = None

    try:
        for event, item in ET.iterparse(io.BytesIO(data), events=("start-ns", "start")):
            if event == "start-ns":
                prefix, uri = item
                pending[prefix] = uri
                continue
            if root is None:
                root = item
            if pending:
                declared[item] = pending
                pending = {}
    except ET.ParseError as e:
        raise MPDParseError(
            f"Invalid XML format: {e}",
            {"parse_error": str(e), "position": getattr(e, "position", None)},
        )

    return root, declared


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(parent: ET.Element, tag: str) -> list[ET.Element]:
    return [child for child in parent if _local(child.tag) == tag]


def _child(parent: ET.Element, tag: str) -> ET.Element | None:
    for child in parent:
        if _local(child.tag) == tag:
            return child
    return None


def _get_attr(elem: ET.Element, name: str) -> str | None:
    """Get an attribute by local name, with or without a namespace prefix."""
    value = elem.get(name)
    if value is not None:
        return value
    suffix = "}" + name
    for key, value in elem.attrib.items():
        if key.endswith(suffix):
            return value
    return None


def _get_required_attr(elem: ET.Element, name: str) -> str:
    value = _get_attr(elem, name)
    if value is None:
        raise MPDParseError(
            f"Missing required attribute: {name}",
            {"element": _local(elem.tag), "attribute": name},
        )
    return value


def _convert(
    elem: ET.Element,
    name: str,
    value: str,
    converter: Callable[[str], T | None],
    expected: str,
) -> T:
    result = converter(value)
    if result is None:
        raise MPDParseError(
            f"Invalid value {value!r} for attribute '{name}': expected {expected}",
            {"element": _local(elem.tag), "attribute": name, "value": value},
        )
    return result


def _to_uint(value: str) -> int | None:
    if _UINT_RE.fullmatch(value) and int(value) <= UINT64_MAX:
        return int(value)
    return None


def _to_int(value: str) -> int | None:
    if _INT_RE.fullmatch(value):
        return int(value)
    return None


def _to_bool(value: str) -> bool | None:
    return {"true": True, "false": False, "1": True, "0": False}.get(value)


def _get_uint(elem: ET.Element, name: str) -> int | None:
    value = _get_attr(elem, name)
    if value is None:
        return None
    return _convert(elem, name, value, _to_uint, "unsigned integer")


def _get_required_uint(elem: ET.Element, name: str) -> int:
    value = _get_required_attr(elem, name)
    return _convert(elem, name, value, _to_uint, "unsigned integer")


def _get_int(elem: ET.Element, name: str) -> int | None:
    value = _get_attr(elem, name)
    if value is None:
        return None
    return _convert(elem, name, value, _to_int, "integer")


def _get_bool(elem: ET.Element, name: str) -> bool | None:
    value = _get_attr(elem, name)
    if value is None:
        return None
    return _convert(elem, name, value, _to_bool, "boolean")


def _get_conditional(elem: ET.Element, name: str) -> ConditionalUint:
    value = _get_attr(elem, name)
    if value is None:
        return ConditionalUint()
    return ConditionalUint.parse(value, attribute=name, element=_local(elem.tag))


def _get_child_text(parent: ET.Element, tag: str) -> str | None:
    """Get the stripped text of an optional child; "" when present but empty."""
    elem = _child(parent, tag)
    if elem is None:
        return None
    return (elem.text or "").strip()


def _parse_mpd(root: ET.Element, declared: dict[ET.Element, dict[str, str]]) -> MPD:
    namespaces = declared.get(root, {})
    return MPD(
        xmlns=namespaces.get(""),
        id=_get_attr(root, "id"),
        type=_get_attr(root, "type"),
        publish_time=_get_attr(root, "publishTime"),
        minimum_update_period=_get_attr(root, "minimumUpdatePeriod"),
        availability_start_time=_get_attr(root, "availabilityStartTime"),
        media_presentation_duration=_get_attr(root, "mediaPresentationDuration"),
        min_buffer_time=_get_attr(root, "minBufferTime"),
        suggested_presentation_delay=_get_attr(root, "suggestedPresentationDelay"),
        time_shift_buffer_depth=_get_attr(root, "timeShiftBufferDepth"),
        profiles=_get_required_attr(root, "profiles"),
        scte35_namespace=namespaces.get("scte35"),
        schema_location=_get_attr(root, "schemaLocation"),
        base_url=_get_child_text(root, "BaseURL"),
        periods=[_parse_period(p, declared) for p in _children(root, "Period")],
    )


def _parse_period(elem: ET.Element, declared: dict[ET.Element, dict[str, str]]) -> Period:
    return Period(
        start=_get_attr(elem, "start"),
        id=_get_attr(elem, "id"),
        duration=_get_attr(elem, "duration"),
        adaptation_sets=[
            _parse_adaptation_set(a, declared) for a in _children(elem, "AdaptationSet")
        ],
    )


def _parse_adaptation_set(
    elem: ET.Element,
    declared: dict[ET.Element, dict[str, str]],
) -> AdaptationSet:
    return AdaptationSet(
        id=_get_uint(elem, "id"),
        mime_type=_get_attr(elem, "mimeType"),
        content_type=_get_attr(elem, "contentType"),
        segment_alignment=_get_conditional(elem, "segmentAlignment"),
        start_with_sap=_get_uint(elem, "startWithSAP"),
        bitstream_switching=_get_bool(elem, "bitstreamSwitching"),
        subsegment_alignment=_get_conditional(elem, "subsegmentAlignment"),
        subsegment_starts_with_sap=_get_uint(elem, "subsegmentStartsWithSAP"),
        lang=_get_attr(elem, "lang"),
        par=_get_attr(elem, "par"),
        width=_get_attr(elem, "width"),
        height=_get_attr(elem, "height"),
        max_width=_get_attr(elem, "maxWidth"),
        max_height=_get_attr(elem, "maxHeight"),
        frame_rate=_get_attr(elem, "frameRate"),
        codecs=_get_attr(elem, "codecs"),
        content_protections=[
            _parse_descriptor(d, declared) for d in _children(elem, "ContentProtection")
        ],
        supplemental_property=_parse_optional_descriptor(
            elem, "SupplementalProperty", declared
        ),
        role=_parse_optional_descriptor(elem, "Role", declared),
        segment_template=_parse_segment_template(_child(elem, "SegmentTemplate")),
        representations=[
            _parse_representation(r, declared) for r in _children(elem, "Representation")
        ],
    )


def _parse_representation(
    elem: ET.Element,
    declared: dict[ET.Element, dict[str, str]],
) -> Representation:
    return Representation(
        id=_get_attr(elem, "id"),
        width=_get_uint(elem, "width"),
        height=_get_uint(elem, "height"),
        sar=_get_attr(elem, "sar"),
        frame_rate=_get_attr(elem, "frameRate"),
        bandwidth=_get_uint(elem, "bandwidth"),
        audio_sampling_rate=_get_attr(elem, "audioSamplingRate"),
        codecs=_get_attr(elem, "codecs"),
        mime_type=_get_attr(elem, "mimeType"),
        audio_channel_configuration=_parse_optional_descriptor(
            elem, "AudioChannelConfiguration", declared
        ),
        content_protections=[
            _parse_descriptor(d, declared) for d in _children(elem, "ContentProtection")
        ],
        base_url=_get_child_text(elem, "BaseURL"),
        segment_template=_parse_segment_template(_child(elem, "SegmentTemplate")),
    )


def _parse_optional_descriptor(
    parent: ET.Element,
    tag: str,
    declared: dict[ET.Element, dict[str, str]],
) -> Descriptor | None:
    elem = _child(parent, tag)
    if elem is None:
        return None
    return _parse_descriptor(elem, declared)


def _parse_descriptor(
    elem: ET.Element,
    declared: dict[ET.Element, dict[str, str]],
) -> Descriptor:
    pssh = None
    pssh_elem = _child(elem, "pssh")
    if pssh_elem is not None:
        pssh = Pssh(
            cenc_namespace=declared.get(pssh_elem, {}).get("cenc"),
            value=(pssh_elem.text or "").strip() or None,
        )

    return Descriptor(
        scheme_id_uri=_get_attr(elem, "schemeIdUri"),
        value=_get_attr(elem, "value"),
        default_kid=_get_attr(elem, "default_KID"),
        cenc_namespace=declared.get(elem, {}).get("cenc"),
        pssh=pssh,
    )


def _parse_segment_template(elem: ET.Element | None) -> SegmentTemplate | None:
    if elem is None:
        return None

    entries = []
    timeline = _child(elem, "SegmentTimeline")
    if timeline is not None:
        for s in _children(timeline, "S"):
            entries.append(SegmentTimelineEntry(
                t=_get_uint(s, "t"),
                d=_get_required_uint(s, "d"),
                r=_get_int(s, "r"),
            ))

    return SegmentTemplate(
        timescale=_get_uint(elem, "timescale"),
        media=_get_attr(elem, "media"),
        initialization=_get_attr(elem, "initialization"),
        start_number=_get_uint(elem, "startNumber"),
        duration=_get_uint(elem, "duration"),
        presentation_time_offset=_get_uint(elem, "presentationTimeOffset"),
        segment_timeline=entries,
    )
