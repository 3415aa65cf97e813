"""Projection of the document model onto the wire model.

``project`` is pure and total: it never mutates its input, never fails
for a valid document, and builds fresh containers for every node so the
wire tree never aliases the caller's document. Scalars (str, int, bool)
and ConditionalUint values are immutable and are shared as-is.

Namespace declarations needed only for serialization are added here:
- xmlns:xsi on the root when a schema location is set
- xmlns:cenc on the root when any descriptor is DRM-related
- xmlns:scte35 on the root when the caller set its namespace
"""

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
from .wire import (
    AdaptationSetWire,
    BaseURLWire,
    DescriptorWire,
    MPDWire,
    PeriodWire,
    PsshWire,
    RepresentationWire,
    SegmentTemplateWire,
    SegmentTimelineWire,
    SWire,
)

XSI_NAMESPACE = "http://www.w3.org/2001/XMLSchema-instance"
CENC_NAMESPACE = "urn:mpeg:cenc:2013"


def project(mpd: MPD) -> MPDWire:
    """Build the wire model for one encode call.

    Args:
        mpd: Document to project (left untouched)

    Returns:
        MPDWire ready for ``wire.to_element``
    """
    return MPDWire(
        xmlns=mpd.xmlns,
        xmlns_xsi=XSI_NAMESPACE if mpd.schema_location is not None else None,
        xmlns_cenc=CENC_NAMESPACE if uses_cenc(mpd) else None,
        xmlns_scte35=mpd.scte35_namespace,
        schema_location=mpd.schema_location,
        id=mpd.id,
        type=mpd.type,
        publish_time=mpd.publish_time,
        minimum_update_period=mpd.minimum_update_period,
        availability_start_time=mpd.availability_start_time,
        media_presentation_duration=mpd.media_presentation_duration,
        min_buffer_time=mpd.min_buffer_time,
        suggested_presentation_delay=mpd.suggested_presentation_delay,
        time_shift_buffer_depth=mpd.time_shift_buffer_depth,
        profiles=mpd.profiles,
        base_url=_project_base_url(mpd.base_url),
        periods=[_project_period(p) for p in mpd.periods],
    )


def uses_cenc(mpd: MPD) -> bool:
    """Check whether the root must declare the cenc namespace.

    True when the tree has a ContentProtection descriptor, or any
    descriptor whose output carries a cenc-prefixed name.
    """
    for period in mpd.periods:
        for adaptation_set in period.adaptation_sets:
            if adaptation_set.content_protections:
                return True
            if any(r.content_protections for r in adaptation_set.representations):
                return True

    return any(
        d.default_kid is not None or d.pssh is not None
        for d in mpd.iter_descriptors()
    )


def _project_base_url(base_url: str | None) -> BaseURLWire | None:
    if base_url is None:
        return None
    return BaseURLWire(value=base_url)


def _project_period(period: Period) -> PeriodWire:
    return PeriodWire(
        start=period.start,
        id=period.id,
        duration=period.duration,
        adaptation_sets=[_project_adaptation_set(a) for a in period.adaptation_sets],
    )


def _project_adaptation_set(adaptation_set: AdaptationSet) -> AdaptationSetWire:
    return AdaptationSetWire(
        id=adaptation_set.id,
        mime_type=adaptation_set.mime_type,
        content_type=adaptation_set.content_type,
        segment_alignment=adaptation_set.segment_alignment,
        start_with_sap=adaptation_set.start_with_sap,
        bitstream_switching=adaptation_set.bitstream_switching,
        subsegment_alignment=adaptation_set.subsegment_alignment,
        subsegment_starts_with_sap=adaptation_set.subsegment_starts_with_sap,
        lang=adaptation_set.lang,
        par=adaptation_set.par,
        width=adaptation_set.width,
        height=adaptation_set.height,
        max_width=adaptation_set.max_width,
        max_height=adaptation_set.max_height,
        frame_rate=adaptation_set.frame_rate,
        codecs=adaptation_set.codecs,
        content_protections=[
            _project_descriptor(d) for d in adaptation_set.content_protections
        ],
        supplemental_property=_project_optional_descriptor(
            adaptation_set.supplemental_property
        ),
        role=_project_optional_descriptor(adaptation_set.role),
        segment_template=_project_segment_template(adaptation_set.segment_template),
        representations=[
            _project_representation(r) for r in adaptation_set.representations
        ],
    )


def _project_representation(representation: Representation) -> RepresentationWire:
    return RepresentationWire(
        id=representation.id,
        width=representation.width,
        height=representation.height,
        sar=representation.sar,
        frame_rate=representation.frame_rate,
        bandwidth=representation.bandwidth,
        audio_sampling_rate=representation.audio_sampling_rate,
        mime_type=representation.mime_type,
        codecs=representation.codecs,
        audio_channel_configuration=_project_optional_descriptor(
            representation.audio_channel_configuration
        ),
        content_protections=[
            _project_descriptor(d) for d in representation.content_protections
        ],
        base_url=_project_base_url(representation.base_url),
        segment_template=_project_segment_template(representation.segment_template),
    )


def _project_optional_descriptor(descriptor: Descriptor | None) -> DescriptorWire | None:
    if descriptor is None:
        return None
    return _project_descriptor(descriptor)


def _project_descriptor(descriptor: Descriptor) -> DescriptorWire:
    return DescriptorWire(
        scheme_id_uri=descriptor.scheme_id_uri,
        value=descriptor.value,
        default_kid=descriptor.default_kid,
        xmlns_cenc=descriptor.cenc_namespace,
        pssh=_project_pssh(descriptor.pssh),
    )


def _project_pssh(pssh: Pssh | None) -> PsshWire | None:
    if pssh is None:
        return None
    return PsshWire(
        xmlns_cenc=pssh.cenc_namespace,
        value=pssh.value,
    )


def _project_segment_template(
    template: SegmentTemplate | None,
) -> SegmentTemplateWire | None:
    if template is None:
        return None

    timeline = None
    if template.segment_timeline:
        timeline = SegmentTimelineWire(
            entries=[_project_timeline_entry(s) for s in template.segment_timeline],
        )

    return SegmentTemplateWire(
        timescale=template.timescale,
        media=template.media,
        initialization=template.initialization,
        start_number=template.start_number,
        duration=template.duration,
        presentation_time_offset=template.presentation_time_offset,
        segment_timeline=timeline,
    )


def _project_timeline_entry(entry: SegmentTimelineEntry) -> SWire:
    return SWire(t=entry.t, d=entry.d, r=entry.r)
