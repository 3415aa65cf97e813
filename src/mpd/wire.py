"""Wire model: the exact shape the serializer walks.

Each wire field carries its XML name in ``Annotated`` metadata:
- ``Attr("cenc:default_KID")`` renders an attribute (omitted when None)
- ``Child("ContentProtection")`` renders one child element per model
- ``Text()`` renders the element's character content

Field declaration order is output order. Prefixed names are written
verbatim, so the namespace declarations they rely on are themselves
wire fields (``xmlns:cenc``, ``xmlns:xsi``) filled in by the projection.
Callers never build wire models; see ``projection.project``.
"""

import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field

from .conditional import ConditionalUint

MPD_TAG = "MPD"


@dataclass(frozen=True)
class Attr:
    name: str


@dataclass(frozen=True)
class Child:
    tag: str


@dataclass(frozen=True)
class Text:
    pass


class WireElement(BaseModel):
    model_config = ConfigDict(extra="forbid")


class PsshWire(WireElement):
    xmlns_cenc: Annotated[str | None, Attr("xmlns:cenc")] = None
    value: Annotated[str | None, Text()] = None


class DescriptorWire(WireElement):
    scheme_id_uri: Annotated[str | None, Attr("schemeIdUri")] = None
    value: Annotated[str | None, Attr("value")] = None
    default_kid: Annotated[str | None, Attr("cenc:default_KID")] = None
    xmlns_cenc: Annotated[str | None, Attr("xmlns:cenc")] = None
    pssh: Annotated[PsshWire | None, Child("cenc:pssh")] = None


class SWire(WireElement):
    t: Annotated[int | None, Attr("t")] = None
    d: Annotated[int, Attr("d")]
    r: Annotated[int | None, Attr("r")] = None


class SegmentTimelineWire(WireElement):
    entries: Annotated[list[SWire], Child("S")] = Field(default_factory=list)


class SegmentTemplateWire(WireElement):
    timescale: Annotated[int | None, Attr("timescale")] = None
    media: Annotated[str | None, Attr("media")] = None
    initialization: Annotated[str | None, Attr("initialization")] = None
    start_number: Annotated[int | None, Attr("startNumber")] = None
    duration: Annotated[int | None, Attr("duration")] = None
    presentation_time_offset: Annotated[int | None, Attr("presentationTimeOffset")] = None
    segment_timeline: Annotated[SegmentTimelineWire | None, Child("SegmentTimeline")] = None


class BaseURLWire(WireElement):
    value: Annotated[str | None, Text()] = None


class RepresentationWire(WireElement):
    id: Annotated[str | None, Attr("id")] = None
    width: Annotated[int | None, Attr("width")] = None
    height: Annotated[int | None, Attr("height")] = None
    sar: Annotated[str | None, Attr("sar")] = None
    frame_rate: Annotated[str | None, Attr("frameRate")] = None
    bandwidth: Annotated[int | None, Attr("bandwidth")] = None
    audio_sampling_rate: Annotated[str | None, Attr("audioSamplingRate")] = None
    mime_type: Annotated[str | None, Attr("mimeType")] = None
    codecs: Annotated[str | None, Attr("codecs")] = None
    audio_channel_configuration: Annotated[
        DescriptorWire | None, Child("AudioChannelConfiguration")
    ] = None
    content_protections: Annotated[
        list[DescriptorWire], Child("ContentProtection")
    ] = Field(default_factory=list)
    base_url: Annotated[BaseURLWire | None, Child("BaseURL")] = None
    segment_template: Annotated[SegmentTemplateWire | None, Child("SegmentTemplate")] = None


class AdaptationSetWire(WireElement):
    id: Annotated[int | None, Attr("id")] = None
    mime_type: Annotated[str | None, Attr("mimeType")] = None
    content_type: Annotated[str | None, Attr("contentType")] = None
    segment_alignment: Annotated[ConditionalUint, Attr("segmentAlignment")] = Field(
        default_factory=ConditionalUint
    )
    start_with_sap: Annotated[int | None, Attr("startWithSAP")] = None
    bitstream_switching: Annotated[bool | None, Attr("bitstreamSwitching")] = None
    subsegment_alignment: Annotated[ConditionalUint, Attr("subsegmentAlignment")] = Field(
        default_factory=ConditionalUint
    )
    subsegment_starts_with_sap: Annotated[int | None, Attr("subsegmentStartsWithSAP")] = None
    lang: Annotated[str | None, Attr("lang")] = None
    par: Annotated[str | None, Attr("par")] = None
    width: Annotated[str | None, Attr("width")] = None
    height: Annotated[str | None, Attr("height")] = None
    max_width: Annotated[str | None, Attr("maxWidth")] = None
    max_height: Annotated[str | None, Attr("maxHeight")] = None
    frame_rate: Annotated[str | None, Attr("frameRate")] = None
    codecs: Annotated[str | None, Attr("codecs")] = None
    content_protections: Annotated[
        list[DescriptorWire], Child("ContentProtection")
    ] = Field(default_factory=list)
    supplemental_property: Annotated[
        DescriptorWire | None, Child("SupplementalProperty")
    ] = None
    role: Annotated[DescriptorWire | None, Child("Role")] = None
    segment_template: Annotated[SegmentTemplateWire | None, Child("SegmentTemplate")] = None
    representations: Annotated[
        list[RepresentationWire], Child("Representation")
    ] = Field(default_factory=list)


class PeriodWire(WireElement):
    start: Annotated[str | None, Attr("start")] = None
    id: Annotated[str | None, Attr("id")] = None
    duration: Annotated[str | None, Attr("duration")] = None
    adaptation_sets: Annotated[
        list[AdaptationSetWire], Child("AdaptationSet")
    ] = Field(default_factory=list)


class MPDWire(WireElement):
    xmlns: Annotated[str | None, Attr("xmlns")] = None
    xmlns_xsi: Annotated[str | None, Attr("xmlns:xsi")] = None
    xmlns_cenc: Annotated[str | None, Attr("xmlns:cenc")] = None
    xmlns_scte35: Annotated[str | None, Attr("xmlns:scte35")] = None
    schema_location: Annotated[str | None, Attr("xsi:schemaLocation")] = None
    id: Annotated[str | None, Attr("id")] = None
    type: Annotated[str | None, Attr("type")] = None
    publish_time: Annotated[str | None, Attr("publishTime")] = None
    minimum_update_period: Annotated[str | None, Attr("minimumUpdatePeriod")] = None
    availability_start_time: Annotated[str | None, Attr("availabilityStartTime")] = None
    media_presentation_duration: Annotated[
        str | None, Attr("mediaPresentationDuration")
    ] = None
    min_buffer_time: Annotated[str | None, Attr("minBufferTime")] = None
    suggested_presentation_delay: Annotated[
        str | None, Attr("suggestedPresentationDelay")
    ] = None
    time_shift_buffer_depth: Annotated[str | None, Attr("timeShiftBufferDepth")] = None
    profiles: Annotated[str, Attr("profiles")]
    base_url: Annotated[BaseURLWire | None, Child("BaseURL")] = None
    periods: Annotated[list[PeriodWire], Child("Period")] = Field(default_factory=list)


def _marker(field: Any) -> Attr | Child | Text:
    for item in field.metadata:
        if isinstance(item, (Attr, Child, Text)):
            return item
    raise TypeError(f"Wire field has no XML marker: {field!r}")


def _attr_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, ConditionalUint):
        return value.to_attr()
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_element(tag: str, wire: WireElement) -> ET.Element:
    """Walk a wire model into an ElementTree element.

    Attributes are set in field order; absent values produce no
    attribute. Child fields may hold one model, None, or a list.
    """
    elem = ET.Element(tag)

    for name, field in type(wire).model_fields.items():
        marker = _marker(field)
        value = getattr(wire, name)

        if isinstance(marker, Attr):
            text = _attr_text(value)
            if text is not None:
                elem.set(marker.name, text)
        elif isinstance(marker, Text):
            if value is not None:
                elem.text = value
        elif isinstance(value, list):
            for item in value:
                elem.append(build_element(marker.tag, item))
        elif value is not None:
            elem.append(build_element(marker.tag, value))

    return elem


def to_element(wire: MPDWire) -> ET.Element:
    """Build the MPD root element from its wire model."""
    return build_element(MPD_TAG, wire)
