"""Tests for variant resolution."""

import logging

import pytest

from prism.manifest import Manifest, Variant, resolve_variant, select_variant
from prism.manifest.variants import resolve_variant_name


@pytest.fixture
def two_variants() -> Manifest:
    return Manifest(
        name="pkg",
        version="1.0.0",
        description="d",
        variants={
            "minimal": Variant(description="Minimal", include=["commands/core/*"]),
            "full": Variant(description="Full", include=["**/*"]),
        },
    )


class TestResolveVariant:
    """Tests for resolve_variant."""

    def test_declared_variant(self, two_variants: Manifest) -> None:
        """Should return the named variant."""
        assert resolve_variant(two_variants, "full").description == "Full"

    def test_unknown_falls_back_to_first(self, two_variants: Manifest, caplog) -> None:
        """Should fall back to the first declared variant."""
        with caplog.at_level(logging.DEBUG, logger="prism"):
            variant = resolve_variant(two_variants, "missing")

        assert variant is two_variants.variants["minimal"]
        assert "not declared" in caplog.text

    def test_none_falls_back_to_first(self, two_variants: Manifest) -> None:
        """Should treat no name like an unknown one."""
        assert resolve_variant(two_variants, None) is two_variants.variants["minimal"]

    def test_no_variants(self) -> None:
        """Should return the synthetic default when nothing is declared."""
        manifest = Manifest(name="pkg", version="1.0.0", description="d", variants={})

        variant = resolve_variant(manifest, "anything")

        assert variant.include == ["**/*"]
        assert variant.exclude == []

    def test_default_manifest_variant(self) -> None:
        """Should resolve the inserted default variant."""
        manifest = Manifest(name="pkg", version="1.0.0", description="d")

        assert resolve_variant(manifest, "default").include == ["**/*"]

    def test_parser_delegates(self, parser, two_variants: Manifest) -> None:
        """Should be reachable through the parser."""
        assert parser.resolve_variant(two_variants, "full") is two_variants.variants["full"]


class TestResolveVariantName:
    """Tests for resolve_variant_name."""

    def test_declared(self, two_variants: Manifest) -> None:
        assert resolve_variant_name(two_variants, "full") == "full"

    def test_fallback(self, two_variants: Manifest) -> None:
        assert resolve_variant_name(two_variants, "nope") == "minimal"

    def test_no_variants(self) -> None:
        manifest = Manifest(name="pkg", version="1.0.0", description="d", variants={})

        assert resolve_variant_name(manifest, None) == "default"


class TestSelectVariant:
    """Tests for picking a variant when none was requested."""

    def test_preferred(self, manifest: Manifest) -> None:
        """Should honour a declared preference."""
        assert select_variant(manifest, "full") == "full"

    def test_standard(self, manifest: Manifest) -> None:
        """Should pick standard when there is no usable preference."""
        assert select_variant(manifest) == "standard"
        assert select_variant(manifest, "unknown") == "standard"

    def test_first_declared(self, two_variants: Manifest) -> None:
        """Should pick the first variant without standard."""
        assert select_variant(two_variants) == "minimal"
