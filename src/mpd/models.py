"""Pydantic models for the MPD document tree.

This module defines the caller-facing, mutable document model:
- MPD root with its periods
- Periods, adaptation sets and representations
- Descriptors (ContentProtection, Role, SupplementalProperty,
  AudioChannelConfiguration) and their cenc:pssh payloads
- Segment templates and their timelines

Every optional field defaults to None, meaning "absent". None is never
conflated with 0, False or "": a field set to a falsy value is written.
Sequences keep insertion order, which is also document order.
"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from .conditional import UINT64_MAX, ConditionalUint

UnsignedInt = Annotated[int, Field(ge=0, le=UINT64_MAX)]


class _Node(BaseModel):
    model_config = ConfigDict(validate_assignment=True, extra="forbid")


class Pssh(_Node):
    """Protection-system-specific header carried as cenc:pssh."""

    cenc_namespace: str | None = Field(
        default=None,
        description="xmlns:cenc declared on the pssh element itself",
    )
    value: str | None = Field(
        default=None,
        description="Base64 payload (element character content)",
    )


class Descriptor(_Node):
    """Represents XSD's DescriptorType.

    Used for ContentProtection, Role, SupplementalProperty and
    AudioChannelConfiguration elements.
    """

    scheme_id_uri: str | None = Field(
        default=None,
        description="Scheme URI (e.g., 'urn:mpeg:dash:mp4protection:2011')",
    )
    value: str | None = None
    default_kid: str | None = Field(
        default=None,
        description="Default key id, written as cenc:default_KID",
    )
    cenc_namespace: str | None = Field(
        default=None,
        description="xmlns:cenc declared on the descriptor element itself",
    )
    pssh: Pssh | None = None


class SegmentTimelineEntry(_Node):
    """One S element of a SegmentTimeline.

    ``r`` is kept as an opaque signed integer; negative values are not
    interpreted.
    """

    t: UnsignedInt | None = None
    d: UnsignedInt
    r: int | None = None


class SegmentTemplate(_Node):
    """Represents XSD's SegmentTemplateType."""

    timescale: UnsignedInt | None = None
    media: str | None = None
    initialization: str | None = None
    start_number: UnsignedInt | None = None
    duration: UnsignedInt | None = None
    presentation_time_offset: UnsignedInt | None = None
    segment_timeline: list[SegmentTimelineEntry] = Field(default_factory=list)


class Representation(_Node):
    """Represents XSD's RepresentationType: one encoded variant."""

    id: str | None = None
    width: UnsignedInt | None = None
    height: UnsignedInt | None = None
    sar: str | None = None
    frame_rate: str | None = None
    bandwidth: UnsignedInt | None = None
    audio_sampling_rate: str | None = None
    codecs: str | None = None
    mime_type: str | None = None
    audio_channel_configuration: Descriptor | None = None
    content_protections: list[Descriptor] = Field(default_factory=list)
    base_url: str | None = None
    segment_template: SegmentTemplate | None = None


class AdaptationSet(_Node):
    """Represents XSD's AdaptationSetType.

    Geometry hints (width, height, frame_rate, par, ...) are strings
    because the schema permits ratio and fractional forms.
    """

    id: UnsignedInt | None = None
    mime_type: str | None = None
    content_type: str | None = None
    segment_alignment: ConditionalUint = Field(default_factory=ConditionalUint)
    start_with_sap: UnsignedInt | None = None
    bitstream_switching: bool | None = None
    subsegment_alignment: ConditionalUint = Field(default_factory=ConditionalUint)
    subsegment_starts_with_sap: UnsignedInt | None = None
    lang: str | None = None
    par: str | None = None
    width: str | None = None
    height: str | None = None
    max_width: str | None = None
    max_height: str | None = None
    frame_rate: str | None = None
    codecs: str | None = None
    content_protections: list[Descriptor] = Field(default_factory=list)
    supplemental_property: Descriptor | None = None
    role: Descriptor | None = None
    segment_template: SegmentTemplate | None = None
    representations: list[Representation] = Field(default_factory=list)


class Period(_Node):
    """Represents XSD's PeriodType: a time-bounded part of the presentation."""

    start: str | None = None
    id: str | None = None
    duration: str | None = None
    adaptation_sets: list[AdaptationSet] = Field(default_factory=list)


class MPD(_Node):
    """Root of a Media Presentation Description.

    Namespace declarations that only exist for serialization
    (xmlns:xsi, xmlns:cenc on the root) are not part of this model;
    they are derived when the document is encoded.

    Example:
        >>> mpd = MPD(profiles="urn:mpeg:dash:profile:isoff-live:2011")
        >>> mpd.periods.append(Period(id="0"))
    """

    xmlns: str | None = Field(
        default=None,
        description="Default namespace (e.g., 'urn:mpeg:dash:schema:mpd:2011')",
    )
    id: str | None = None
    type: str | None = Field(
        default=None,
        description="Presentation type ('static' or 'dynamic')",
    )
    publish_time: str | None = None
    minimum_update_period: str | None = None
    availability_start_time: str | None = None
    media_presentation_duration: str | None = None
    min_buffer_time: str | None = None
    suggested_presentation_delay: str | None = None
    time_shift_buffer_depth: str | None = None
    profiles: str = Field(
        description="Comma-separated DASH profile URNs",
    )
    scte35_namespace: str | None = Field(
        default=None,
        description="Value of xmlns:scte35 on the root",
    )
    schema_location: str | None = Field(
        default=None,
        description="Value of xsi:schemaLocation on the root",
    )
    base_url: str | None = None
    periods: list[Period] = Field(default_factory=list)

    def iter_descriptors(self):
        """Yield every descriptor in the tree, in document order."""
        for period in self.periods:
            for adaptation_set in period.adaptation_sets:
                yield from adaptation_set.content_protections
                if adaptation_set.supplemental_property is not None:
                    yield adaptation_set.supplemental_property
                if adaptation_set.role is not None:
                    yield adaptation_set.role
                for representation in adaptation_set.representations:
                    if representation.audio_channel_configuration is not None:
                        yield representation.audio_channel_configuration
                    yield from representation.content_protections
