"""Tests for building, encoding, and decoding the metadata header."""
from __future__ import annotations

import base64
import dataclasses
import json

import pytest

from ai_policies.core.composition import (
    Metadata,
    MetadataCodec,
    PositionalStrategy,
    PriorityTierStrategy,
)
from ai_policies.core.config import CompositionSettings
from ai_policies.core.utils import content_hash
from helpers.partials import make_config, make_partial

TIERS = ["core", "domain", "stack", "team"]


@pytest.fixture
def codec(settings: CompositionSettings) -> MetadataCodec:
    return MetadataCodec(settings)


def _sample(**overrides) -> Metadata:
    fields = dict(
        packages={"@acme/core": "1.2.0", "@acme/team": "0.3.1"},
        content_hash="1a2b3c",
        generated_at="2026-01-15T12:30:00.000Z",
        partials=[
            {"id": "security", "packageName": "@acme/core"},
            {"id": "style", "packageName": "@acme/team"},
        ],
        protected_partials=["security"],
    )
    fields.update(overrides)
    return Metadata(**fields)


def _header_with(payload: str) -> str:
    return f"<!--\nAI-POLICIES-META: {payload}\nGenerated at: x\nPackages: \n-->\n\nbody"


class TestEncode:
    def test_header_layout(self, codec: MetadataCodec) -> None:
        header = codec.encode(_sample())
        lines = header.split("\n")

        assert lines[0] == "<!--"
        assert lines[1].startswith("AI-POLICIES-META: ")
        assert lines[2] == "Generated at: 2026-01-15T12:30:00.000Z"
        assert lines[3] == "Packages: @acme/core@1.2.0, @acme/team@0.3.1"
        assert lines[4] == "-->"

    def test_payload_is_camel_case_json(self, codec: MetadataCodec) -> None:
        encoded = codec.encode(_sample()).split("\n")[1].split(": ", 1)[1]

        payload = json.loads(base64.b64decode(encoded))

        assert set(payload) == {"packages", "contentHash", "generatedAt", "partials", "protectedPartials"}

    def test_attach_separates_header_with_one_blank_line(self, codec: MetadataCodec) -> None:
        metadata = _sample()
        assert codec.attach(metadata, "body") == codec.encode(metadata) + "\n\nbody"
        assert codec.attach(metadata, "") == codec.encode(metadata) + "\n"


class TestDecode:
    def test_round_trip(self, codec: MetadataCodec) -> None:
        original = _sample()
        assert codec.decode(codec.encode(original)) == original

    def test_round_trip_with_settings_snapshot(self, codec: MetadataCodec) -> None:
        original = _sample(
            protected_partials=None,
            settings={"order": TIERS, "protectedLayers": [], "teamAppend": False},
            partials=[{"id": "a", "packageName": "@acme/core", "layer": "core", "weight": 10}],
        )
        assert codec.decode(codec.encode(original)) == original

    def test_decodes_from_full_document(self, codec: MetadataCodec) -> None:
        original = _sample()
        document = codec.attach(original, "# Policies\n\nbody")
        assert codec.decode(document) == original

    def test_missing_header(self, codec: MetadataCodec) -> None:
        assert codec.decode("# Just markdown") is None
        assert codec.decode("") is None
        assert codec.decode(None) is None

    @pytest.mark.parametrize(
        "payload",
        [
            "!!!notbase64!!!",
            "abc",
            base64.b64encode(b"not json").decode(),
            base64.b64encode(b"[1, 2]").decode(),
            base64.b64encode(b'{"partials": "nope"}').decode(),
            base64.b64encode(b"\xff\xfe\xfd").decode(),
        ],
    )
    def test_malformed_payload_returns_none(self, codec: MetadataCodec, payload: str) -> None:
        assert codec.decode(_header_with(payload)) is None

    def test_strip_removes_header(self, codec: MetadataCodec) -> None:
        document = codec.attach(_sample(), "# Policies\n\nbody")
        assert codec.strip(document) == "# Policies\n\nbody"

    def test_custom_label(self) -> None:
        codec = MetadataCodec(
            CompositionSettings({"composition": {"metadata": {"label": "X-META"}}}, use_env=False)
        )
        header = codec.encode(_sample())

        assert "\nX-META: " in header
        assert codec.decode(header) == _sample()


class TestNormalization:
    def test_timestamp_and_settings_are_ignored(self) -> None:
        a = _sample(settings={"order": ["core"]})
        b = _sample(generated_at="2030-01-01T00:00:00.000Z", settings={"order": ["team"]})

        assert a != b
        assert a.semantically_equal(b)
        assert MetadataCodec.normalized(a) == MetadataCodec.normalized(b)

    def test_content_hash_differences_matter(self) -> None:
        assert not _sample().semantically_equal(_sample(content_hash="ffff"))


class TestBuild:
    def test_positional_metadata(self, codec: MetadataCodec, fixed_time) -> None:
        partials = [
            make_partial("b", package="@acme/team", version="0.3.1", source_index=1),
            make_partial("a", package="@acme/core", version="1.2.0"),
        ]

        metadata = codec.build(
            partials,
            "merged body",
            strategy=PositionalStrategy(),
            config=make_config(),
            protected_ids=frozenset({"a"}),
            generated_at=fixed_time,
        )

        assert metadata.packages == {"@acme/core": "1.2.0", "@acme/team": "0.3.1"}
        assert list(metadata.packages) == ["@acme/core", "@acme/team"]
        assert metadata.content_hash == content_hash("merged body")
        assert metadata.generated_at == "2026-01-15T12:30:00.000Z"
        assert metadata.partials == [
            {"id": "b", "packageName": "@acme/team"},
            {"id": "a", "packageName": "@acme/core"},
        ]
        assert metadata.protected_partials == ["a"]
        assert metadata.settings is None

    def test_priority_metadata(self, codec: MetadataCodec, fixed_time) -> None:
        metadata = codec.build(
            [make_partial("a", tier="core", weight=10)],
            "body",
            strategy=PriorityTierStrategy(TIERS),
            config=make_config(model="priority", tier_order=TIERS),
            protected_ids=frozenset(),
            generated_at=fixed_time,
        )

        assert metadata.partials == [
            {"id": "a", "packageName": "@acme/core", "layer": "core", "weight": 10}
        ]
        assert metadata.protected_partials is None
        assert metadata.settings == {"order": TIERS, "protectedLayers": [], "teamAppend": False}

    def test_build_defaults_timestamp_to_now(self, codec: MetadataCodec) -> None:
        metadata = codec.build(
            [],
            "",
            strategy=PositionalStrategy(),
            config=make_config(),
            protected_ids=frozenset(),
        )
        assert metadata.generated_at.endswith("Z")
        assert metadata.packages == {}
        assert metadata.partials == []

    def test_round_trip_of_built_metadata_except_timestamp(self, codec: MetadataCodec, fixed_time) -> None:
        built = codec.build(
            [make_partial("a")],
            "body",
            strategy=PositionalStrategy(),
            config=make_config(),
            protected_ids=frozenset(),
            generated_at=fixed_time,
        )

        decoded = codec.decode(codec.encode(built))

        assert decoded is not None
        assert dataclasses.replace(decoded, generated_at="") == dataclasses.replace(built, generated_at="")
