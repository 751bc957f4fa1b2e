"""Tests for manifest parsing, normalization and validation."""

import logging
from pathlib import Path
from textwrap import dedent

import pytest

from prism.errors import ValidationError
from prism.manifest import (
    DEFAULT_VARIANT_NAME,
    Manifest,
    ManifestParser,
    StructureItem,
    SystemDependency,
)
from prism.manifest.parser import find_destructive_command


def minimal_doc(**overrides) -> dict:
    doc = {
        "name": "my-pkg",
        "version": "1.0.0",
        "description": "A package",
        "structure": {"commands": [{"source": "commands/", "dest": ".claude/commands/"}]},
    }
    doc.update(overrides)
    return doc


class TestParseYaml:
    """Tests for parsing manifest text."""

    def test_parse_full_manifest(self, parser: ManifestParser, manifest_yaml: str) -> None:
        """Should parse every section of a manifest."""
        manifest = parser.parse_yaml(manifest_yaml)

        assert manifest.name == "test-pkg"
        assert manifest.version == "1.0.0"
        assert manifest.author == "Test Author"
        assert manifest.license == "MIT"
        assert manifest.id == "test-pkg@1.0.0"
        assert manifest.variant_names == ["minimal", "standard", "full"]
        assert manifest.structure["commands"][0] == StructureItem(
            source="commands/", dest=".claude/commands/{name}/"
        )
        assert manifest.structure["claude_config"][0].pattern == "CLAUDE.md"
        assert manifest.hooks == {"postInstall": 'echo "installed"'}

    def test_system_dependencies(self, parser: ManifestParser, manifest_yaml: str) -> None:
        """Should normalize system dependencies with their flags."""
        manifest = parser.parse_yaml(manifest_yaml)

        git, jq = manifest.dependencies.system
        assert git == SystemDependency(name="git", required=True)
        assert jq.required is False
        assert jq.install == "brew install jq"

    def test_invalid_yaml(self, parser: ManifestParser) -> None:
        """Should reject text that is not YAML."""
        with pytest.raises(ValidationError, match="Invalid YAML in manifest"):
            parser.parse_yaml("name: [unclosed")

    def test_non_mapping_document(self, parser: ManifestParser) -> None:
        """Should reject a document that is not a mapping."""
        with pytest.raises(ValidationError, match="Manifest must be a valid object"):
            parser.parse_yaml("- a\n- b\n")

    def test_parse_file(self, parser: ManifestParser, package_dir: Path) -> None:
        """Should parse a manifest from disk."""
        manifest = parser.parse_file(package_dir / "prism-package.yaml")

        assert manifest.name == "test-pkg"

    def test_parse_missing_file(self, parser: ManifestParser, tmp_path: Path) -> None:
        """Should report an unreadable manifest as a validation error."""
        with pytest.raises(ValidationError, match="Failed to parse manifest"):
            parser.parse_file(tmp_path / "missing.yaml")

    def test_parse_without_validation(self, parser: ManifestParser) -> None:
        """Should skip rule checks when validate=False."""
        content = dedent("""
            name: no-structure
            version: 1.0.0
            description: Nothing to install
        """)

        manifest = parser.parse_yaml(content, validate=False)

        assert manifest.structure == {}
        with pytest.raises(ValidationError, match="must define file structure"):
            parser.validate(manifest)


class TestNormalize:
    """Tests for manifest normalization."""

    def test_defaults(self, parser: ManifestParser) -> None:
        """Should fill in documented defaults."""
        manifest = parser.normalize(minimal_doc())

        assert manifest.author == "Unknown"
        assert manifest.license == "MIT"
        assert manifest.keywords == []
        assert manifest.hooks == {}
        assert manifest.ignore == ["node_modules", ".git", ".DS_Store"]
        assert manifest.repository is None

    def test_default_variant_inserted(self, parser: ManifestParser) -> None:
        """Should insert a default variant matching everything."""
        manifest = parser.normalize(minimal_doc())

        assert list(manifest.variants) == [DEFAULT_VARIANT_NAME]
        assert manifest.variants["default"].include == ["**/*"]
        assert manifest.variants["default"].exclude == []

    @pytest.mark.parametrize("field", ["name", "version", "description"])
    def test_missing_required_field(self, parser: ManifestParser, field: str) -> None:
        """Should reject a manifest missing an identity field."""
        doc = minimal_doc()
        del doc[field]

        with pytest.raises(ValidationError, match=f"Missing required field: {field}"):
            parser.normalize(doc)

    @pytest.mark.parametrize("version", ["1.0", "1", "v1.0.0", "latest"])
    def test_invalid_version(self, parser: ManifestParser, version: str) -> None:
        """Should reject versions that are not full semver."""
        with pytest.raises(ValidationError, match="Invalid version format"):
            parser.normalize(minimal_doc(version=version))

    @pytest.mark.parametrize("version", ["1.0.0", "0.1.2", "1.0.0-beta.1", "2.0.0+build.5"])
    def test_valid_version(self, parser: ManifestParser, version: str) -> None:
        """Should accept semver versions with prerelease and build parts."""
        assert parser.normalize(minimal_doc(version=version)).version == version

    def test_yaml_float_version_rejected(self, parser: ManifestParser) -> None:
        """Should reject an unquoted 1.0 read as a number."""
        content = "name: pkg\nversion: 1.0\ndescription: d\n"

        with pytest.raises(ValidationError, match="Invalid version format: 1.0"):
            parser.parse_yaml(content, validate=False)

    @pytest.mark.parametrize("name", ["My-Pkg", "my pkg", "pkg!", "pkg.name"])
    def test_invalid_name(self, parser: ManifestParser, name: str) -> None:
        """Should reject names outside [a-z0-9-_]."""
        with pytest.raises(ValidationError, match="Package name must contain only"):
            parser.normalize(minimal_doc(name=name))

    def test_string_structure_item(self, parser: ManifestParser) -> None:
        """Should expand a bare string into source == dest."""
        manifest = parser.normalize(minimal_doc(structure={"rules": ["rules/"]}))

        assert manifest.structure["rules"] == [StructureItem(source="rules/", dest="rules/")]

    def test_single_structure_item(self, parser: ManifestParser) -> None:
        """Should wrap a single item into a one-item list."""
        structure = {"scripts": {"source": "scripts/", "dest": "bin/"}}

        manifest = parser.normalize(minimal_doc(structure=structure))

        assert len(manifest.structure["scripts"]) == 1
        assert manifest.structure["scripts"][0].dest == "bin/"

    def test_structure_item_aliases(self, parser: ManifestParser) -> None:
        """Should accept from/to and destination keys."""
        structure = {
            "commands": [
                {"from": "a/", "to": "b/"},
                {"source": "c/", "destination": "d/"},
            ]
        }

        items = parser.normalize(minimal_doc(structure=structure)).structure["commands"]

        assert (items[0].source, items[0].dest) == ("a/", "b/")
        assert (items[1].source, items[1].dest) == ("c/", "d/")

    def test_invalid_structure_item(self, parser: ManifestParser) -> None:
        """Should reject items that are neither strings nor mappings."""
        with pytest.raises(ValidationError, match="Invalid structure item"):
            parser.normalize(minimal_doc(structure={"commands": [42]}))

    def test_variants_not_autofilled(self, parser: ManifestParser) -> None:
        """Should leave missing description and include empty."""
        manifest = parser.normalize(minimal_doc(variants={"lite": {}}))

        assert manifest.variants["lite"].description == ""
        assert manifest.variants["lite"].include == []

    def test_system_dependency_string(self, parser: ManifestParser) -> None:
        """Should expand a bare string into a required dependency."""
        manifest = parser.normalize(minimal_doc(dependencies={"system": "git"}))

        assert manifest.dependencies.system == [SystemDependency(name="git")]

    def test_unknown_hook(self, parser: ManifestParser) -> None:
        """Should reject hooks for unknown lifecycle events."""
        with pytest.raises(ValidationError, match="Unknown hook: onBoot"):
            parser.normalize(minimal_doc(hooks={"onBoot": "echo hi"}))

    def test_non_string_hook(self, parser: ManifestParser) -> None:
        """Should reject hook bodies that are not strings."""
        with pytest.raises(ValidationError, match="must be a string script"):
            parser.normalize(minimal_doc(hooks={"postInstall": ["echo", "hi"]}))

    def test_platform_compat_alias(self, parser: ManifestParser) -> None:
        """Should read claudeCode as platform compatibility."""
        manifest = parser.normalize(minimal_doc(claudeCode={"minVersion": "1.0.0"}))

        assert manifest.platform_compat.min_version == "1.0.0"
        assert manifest.platform_compat.max_version is None

    def test_normalize_is_idempotent(self, parser: ManifestParser, manifest_yaml: str) -> None:
        """Should produce the same manifest when normalizing twice."""
        once = parser.parse_yaml(manifest_yaml)

        twice = parser.normalize(once)

        assert twice == once
        assert parser.normalize(twice.to_dict()) == once

    def test_normalize_accepts_manifest(self, parser: ManifestParser) -> None:
        """Should accept an already normalized manifest."""
        manifest = Manifest(name="pkg", version="1.0.0", description="d")

        assert parser.normalize(manifest) == manifest


class TestValidate:
    """Tests for manifest rule validation."""

    def test_valid_manifest(self, parser: ManifestParser, manifest: Manifest) -> None:
        """Should accept the sample manifest."""
        assert parser.validate(manifest) is True

    def test_empty_structure(self, parser: ManifestParser) -> None:
        """Should require at least one structure entry."""
        manifest = parser.normalize(minimal_doc(structure={}))

        with pytest.raises(ValidationError, match="Package must define file structure"):
            parser.validate(manifest)

    def test_invalid_structure_type(self, parser: ManifestParser) -> None:
        """Should reject unknown structure types."""
        manifest = parser.normalize(minimal_doc(structure={"widgets": ["widgets/"]}))

        with pytest.raises(ValidationError, match="Invalid structure type: widgets"):
            parser.validate(manifest)

    def test_item_missing_dest(self, parser: ManifestParser) -> None:
        """Should reject items without a destination."""
        manifest = parser.normalize(minimal_doc(structure={"commands": [{"source": "c/"}]}))

        with pytest.raises(ValidationError, match="missing source or dest"):
            parser.validate(manifest)

    @pytest.mark.parametrize("name", ["Minimal", "1st", "with_underscore", "-lead"])
    def test_invalid_variant_name(self, parser: ManifestParser, name: str) -> None:
        """Should reject variant names outside ^[a-z][a-z0-9-]*$."""
        variants = {name: {"description": "d", "include": ["**/*"]}}
        manifest = parser.normalize(minimal_doc(variants=variants))

        with pytest.raises(ValidationError, match="Invalid variant name"):
            parser.validate(manifest)

    def test_variant_missing_description(self, parser: ManifestParser) -> None:
        """Should require a description on every variant."""
        manifest = parser.normalize(minimal_doc(variants={"lite": {"include": ["**/*"]}}))

        with pytest.raises(ValidationError, match="Variant lite missing description"):
            parser.validate(manifest)

    def test_variant_missing_include(self, parser: ManifestParser) -> None:
        """Should require include patterns on every variant."""
        manifest = parser.normalize(minimal_doc(variants={"lite": {"description": "Lite"}}))

        with pytest.raises(ValidationError, match="must specify include patterns"):
            parser.validate(manifest)

    def test_recommended_variants_warning(self, parser: ManifestParser, caplog) -> None:
        """Should warn when none of minimal/standard/full is declared."""
        variants = {"lite": {"description": "Lite", "include": ["**/*"]}}
        manifest = parser.normalize(minimal_doc(variants=variants))

        with caplog.at_level(logging.WARNING, logger="prism"):
            parser.validate(manifest)

        assert "Consider adding recommended variants" in caplog.text

    def test_no_warning_for_default_variant(self, parser: ManifestParser, caplog) -> None:
        """Should not warn about the synthetic default variant."""
        manifest = parser.normalize(minimal_doc())

        with caplog.at_level(logging.WARNING, logger="prism"):
            parser.validate(manifest)

        assert "recommended variants" not in caplog.text

    def test_invalid_system_range(self, parser: ManifestParser) -> None:
        """Should reject malformed system dependency ranges."""
        deps = {"system": [{"name": "node", "version": ">= banana"}]}
        manifest = parser.normalize(minimal_doc(dependencies=deps))

        with pytest.raises(ValidationError, match="Invalid version range for node"):
            parser.validate(manifest)

    @pytest.mark.parametrize("spec", ["", "not-a-range"])
    def test_invalid_package_range(self, parser: ManifestParser, spec: str) -> None:
        """Should reject empty or malformed package dependency ranges."""
        manifest = parser.normalize(minimal_doc(dependencies={"prism": {"base": spec}}))

        with pytest.raises(ValidationError, match="Invalid version range for base"):
            parser.validate(manifest)

    def test_valid_package_ranges(self, parser: ManifestParser) -> None:
        """Should accept npm-style ranges."""
        deps = {"prism": {"a": "^1.0.0", "b": "~2.1", "c": ">=1.0.0 <2.0.0", "d": "1.x"}}
        manifest = parser.normalize(minimal_doc(dependencies=deps))

        assert parser.validate(manifest) is True

    def test_system_dependency_missing_name(self, parser: ManifestParser) -> None:
        """Should require a name on system dependencies."""
        manifest = parser.normalize(minimal_doc(dependencies={"system": [{"required": True}]}))

        with pytest.raises(ValidationError, match="System dependency missing name"):
            parser.validate(manifest)

    def test_empty_hook(self, parser: ManifestParser) -> None:
        """Should reject blank hook scripts."""
        manifest = parser.normalize(minimal_doc(hooks={"postInstall": "   "}))

        with pytest.raises(ValidationError, match="must be a non-empty string"):
            parser.validate(manifest)

    def test_dangerous_hook(self, parser: ManifestParser) -> None:
        """Should reject hooks that wipe the filesystem root."""
        manifest = parser.normalize(minimal_doc(hooks={"postInstall": "rm -rf /"}))

        with pytest.raises(ValidationError, match="dangerous command"):
            parser.validate(manifest)


class TestFindDestructiveCommand:
    """Tests for destructive hook detection."""

    @pytest.mark.parametrize(
        "script",
        [
            "rm -rf /",
            "rm -rf /*",
            "rm -r -f /",
            "rm -fr ~",
            "rm --recursive --force $HOME",
            "echo hi && rm -rf ~/",
            "rm --no-preserve-root -rf /tmp",
            'rm -rf "/"',
            'rm -rf "$HOME"',
            "rm -rf '/*'",
            'rm -rf "${HOME}/"',
        ],
    )
    def test_destructive(self, script: str) -> None:
        """Should flag recursive deletes of root or home."""
        assert find_destructive_command(script) is not None

    @pytest.mark.parametrize(
        "script",
        [
            "rm -rf /tmp/build",
            "rm -rf ./dist",
            "rm -f /",
            "rm -rf ~/cache/my-pkg",
            'rm -rf "$HOME/cache"',
            'rm -rf "/tmp"',
            "echo done",
        ],
    )
    def test_safe(self, script: str) -> None:
        """Should not flag scoped or non-recursive deletes."""
        assert find_destructive_command(script) is None


class TestCreateTemplate:
    """Tests for the starter manifest."""

    def test_template_is_valid(self, parser: ManifestParser) -> None:
        """Should render a manifest that parses and validates."""
        manifest = parser.parse_yaml(parser.create_template(name="my-ext"))

        assert manifest.name == "my-ext"
        assert manifest.variant_names == ["minimal", "standard", "full"]
        assert manifest.dependencies.system[0].name == "git"
        assert "postInstall" in manifest.hooks

    def test_template_without_repository(self, parser: ManifestParser) -> None:
        """Should omit the repository when none is given."""
        manifest = parser.parse_yaml(parser.create_template(repository=None))

        assert manifest.repository is None
