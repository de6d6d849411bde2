"""Property-based tests for manifest parsing and input-property resolution."""

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from capstage.models.captions import StylePreset
from capstage.rendering.props import parse_manifest, resolve_input_props
from tests.property.conftest import captions_strategy, generate_brolls

pytestmark = pytest.mark.property

VIDEO_URL = "http://127.0.0.1:5000/video"


class TestManifestProperties:
    @given(captions=captions_strategy)
    @settings(max_examples=50)
    def test_flat_array_equals_object_form(self, captions):
        """A bare caption array parses the same as an object with no B-rolls."""
        assert parse_manifest(captions) == parse_manifest({"captions": captions, "bRolls": []})

    @given(captions=captions_strategy, b_rolls=generate_brolls())
    @settings(max_examples=50)
    def test_entry_counts_preserved(self, captions, b_rolls):
        manifest = parse_manifest({"captions": captions, "bRolls": b_rolls})
        assert len(manifest.captions) == len(captions)
        assert [b.id for b in manifest.b_rolls] == [b["id"] for b in b_rolls]

    @given(junk=st.one_of(st.none(), st.integers(), st.text(), st.dictionaries(st.text(), st.integers())))
    @settings(max_examples=50)
    def test_non_list_fields_default_empty(self, junk):
        manifest = parse_manifest({"captions": junk, "bRolls": junk})
        assert manifest.captions == []
        assert manifest.b_rolls == []


class TestInputPropsProperties:
    @given(
        captions=captions_strategy,
        b_rolls=generate_brolls(),
        style=st.sampled_from(list(StylePreset)),
    )
    @settings(max_examples=50)
    def test_captions_sorted_by_start(self, captions, b_rolls, style):
        manifest = parse_manifest({"captions": captions, "bRolls": b_rolls})
        props = resolve_input_props(VIDEO_URL, manifest.captions, manifest.b_rolls, style)
        starts = [c["start"] for c in props["captions"]]
        assert starts == sorted(starts)
        assert props["videoSrc"] == VIDEO_URL
        assert props["stylePreset"] == style.value
        assert "durationInSeconds" not in props

    @given(b_rolls=generate_brolls(max_size=6), resolve_mask=st.lists(st.booleans(), min_size=6, max_size=6))
    @settings(max_examples=50)
    def test_engine_sees_resolved_url_or_original(self, b_rolls, resolve_mask):
        entries = parse_manifest({"bRolls": b_rolls}).b_rolls
        staged = [
            e.with_resolved_url(f"http://127.0.0.1:5000/broll/{e.id}.bin") if resolve_mask[i] else e
            for i, e in enumerate(entries)
        ]
        props = resolve_input_props(VIDEO_URL, [], staged, StylePreset.BOTTOM)
        for original, entry, engine_entry in zip(entries, staged, props["bRolls"]):
            expected = entry.resolved_url if entry.is_resolved else original.src
            assert engine_entry["src"] == expected
            assert "resolved_url" not in engine_entry
            assert engine_entry["durationSeconds"] == original.duration_seconds
            assert entry.src == original.src

    @given(duration=st.floats(min_value=0.001, max_value=3600, allow_nan=False))
    @settings(max_examples=30)
    def test_positive_duration_forwarded(self, duration):
        props = resolve_input_props(VIDEO_URL, [], [], StylePreset.TOP, duration)
        assert props["durationInSeconds"] == duration
