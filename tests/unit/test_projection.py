"""Unit tests for the document-to-wire projection."""

import pytest

from src.mpd.conditional import ConditionalUint
from src.mpd.models import (
    MPD,
    AdaptationSet,
    Descriptor,
    Period,
    Pssh,
    Representation,
    SegmentTemplate,
    SegmentTimelineEntry,
)
from src.mpd.projection import CENC_NAMESPACE, XSI_NAMESPACE, project, uses_cenc
from src.mpd.wire import to_element

LIVE_PROFILE = "urn:mpeg:dash:profile:isoff-live:2011"


def _with_adaptation_set(**kwargs) -> MPD:
    return MPD(
        profiles=LIVE_PROFILE,
        periods=[Period(adaptation_sets=[AdaptationSet(**kwargs)])],
    )


class TestProjection:
    """Tests for structural copying."""

    def test_copies_fields(self, sample_mpd: MPD):
        """Every modeled field reaches the wire model."""
        wire = project(sample_mpd)

        assert wire.profiles == sample_mpd.profiles
        assert wire.xmlns == sample_mpd.xmlns
        assert wire.media_presentation_duration == "PT10M"
        adaptation_set = wire.periods[0].adaptation_sets[0]
        assert adaptation_set.id == 1
        assert adaptation_set.segment_alignment == ConditionalUint(flag=True)
        assert [r.id for r in adaptation_set.representations] == ["720p", "360p"]
        assert adaptation_set.content_protections[0].default_kid == (
            "08e36702-8f33-436c-a5dd-60ffe5571e60"
        )
        timeline = adaptation_set.segment_template.segment_timeline
        assert [(s.t, s.d, s.r) for s in timeline.entries] == [(0, 180000, 2), (None, 90000, None)]

    def test_does_not_alias_containers(self, sample_mpd: MPD):
        """Mutating the document after projection leaves the wire model unchanged."""
        wire = project(sample_mpd)
        adaptation_set = sample_mpd.periods[0].adaptation_sets[0]

        sample_mpd.periods.append(Period(id="extra"))
        adaptation_set.representations.clear()
        adaptation_set.content_protections[0].default_kid = "changed"
        adaptation_set.segment_template.segment_timeline.append(SegmentTimelineEntry(d=1))

        projected = wire.periods[0].adaptation_sets[0]
        assert len(wire.periods) == 1
        assert len(projected.representations) == 2
        assert projected.content_protections[0].default_kid == (
            "08e36702-8f33-436c-a5dd-60ffe5571e60"
        )
        assert len(projected.segment_template.segment_timeline.entries) == 2

    def test_does_not_modify_document(self, sample_mpd: MPD):
        """Projection is read-only with respect to its input."""
        before = sample_mpd.model_copy(deep=True)

        project(sample_mpd)

        assert sample_mpd == before

    def test_absent_stays_absent(self, minimal_mpd: MPD):
        """Unset optional fields project to None."""
        wire = project(minimal_mpd)

        assert wire.base_url is None
        assert wire.id is None
        assert wire.periods == []

    def test_empty_timeline_dropped(self):
        """A template without entries has no timeline on the wire."""
        wire = project(_with_adaptation_set(segment_template=SegmentTemplate(timescale=1)))

        assert wire.periods[0].adaptation_sets[0].segment_template.segment_timeline is None


class TestNamespacePolicy:
    """Tests for namespace declarations added during projection."""

    def test_plain_document_declares_nothing(self, minimal_mpd: MPD):
        """No optional feature, no optional declaration."""
        root = to_element(project(minimal_mpd))

        assert list(root.attrib) == ["profiles"]

    def test_xsi_follows_schema_location(self):
        """xmlns:xsi is emitted exactly when schemaLocation is set."""
        with_location = MPD(profiles=LIVE_PROFILE, schema_location="urn:a a.xsd")

        wire = project(with_location)

        assert wire.xmlns_xsi == XSI_NAMESPACE
        assert wire.schema_location == "urn:a a.xsd"
        assert project(MPD(profiles=LIVE_PROFILE)).xmlns_xsi is None

    def test_scte35_follows_caller_value(self):
        """xmlns:scte35 carries the caller's namespace."""
        mpd = MPD(profiles=LIVE_PROFILE, scte35_namespace="urn:scte:scte35:2014:xml+bin")

        assert project(mpd).xmlns_scte35 == "urn:scte:scte35:2014:xml+bin"
        assert project(MPD(profiles=LIVE_PROFILE)).xmlns_scte35 is None

    @pytest.mark.parametrize("mpd", [
        _with_adaptation_set(content_protections=[Descriptor(scheme_id_uri="urn:a")]),
        _with_adaptation_set(representations=[
            Representation(content_protections=[Descriptor(value="cenc")]),
        ]),
        _with_adaptation_set(role=Descriptor(default_kid="k")),
        _with_adaptation_set(supplemental_property=Descriptor(pssh=Pssh(value="AAAA"))),
        _with_adaptation_set(representations=[
            Representation(audio_channel_configuration=Descriptor(default_kid="k")),
        ]),
    ], ids=[
        "adaptation-set-protection",
        "representation-protection",
        "role-key-id",
        "supplemental-pssh",
        "audio-channel-key-id",
    ])
    def test_cenc_declared_when_used(self, mpd: MPD):
        """xmlns:cenc is emitted on the root when DRM descriptors are present."""
        assert uses_cenc(mpd)
        assert project(mpd).xmlns_cenc == CENC_NAMESPACE

    def test_cenc_absent_without_drm(self):
        """Plain descriptors do not pull in the cenc namespace."""
        mpd = _with_adaptation_set(
            role=Descriptor(scheme_id_uri="urn:mpeg:dash:role:2011", value="main"),
            representations=[Representation(
                audio_channel_configuration=Descriptor(scheme_id_uri="urn:c", value="2"),
            )],
        )

        assert not uses_cenc(mpd)
        assert project(mpd).xmlns_cenc is None

    def test_element_level_cenc_is_caller_data(self):
        """Descriptor and pssh declarations are emitted only when set."""
        mpd = _with_adaptation_set(content_protections=[
            Descriptor(value="a"),
            Descriptor(value="b", cenc_namespace=CENC_NAMESPACE,
                       pssh=Pssh(cenc_namespace=CENC_NAMESPACE, value="AAAA")),
        ])

        first, second = project(mpd).periods[0].adaptation_sets[0].content_protections

        assert first.xmlns_cenc is None
        assert second.xmlns_cenc == CENC_NAMESPACE
        assert second.pssh.xmlns_cenc == CENC_NAMESPACE

    def test_root_attribute_order(self):
        """Namespace declarations precede schemaLocation and the MPD attributes."""
        mpd = MPD(
            xmlns="urn:mpeg:dash:schema:mpd:2011",
            id="x",
            type="static",
            profiles=LIVE_PROFILE,
            scte35_namespace="urn:scte:scte35:2014:xml+bin",
            schema_location="urn:a a.xsd",
            periods=[Period(adaptation_sets=[
                AdaptationSet(content_protections=[Descriptor(value="cenc")]),
            ])],
        )

        root = to_element(project(mpd))

        assert list(root.attrib) == [
            "xmlns",
            "xmlns:xsi",
            "xmlns:cenc",
            "xmlns:scte35",
            "xsi:schemaLocation",
            "id",
            "type",
            "profiles",
        ]
