"""Shared pytest fixtures for prism tests."""

from pathlib import Path
from textwrap import dedent

import pytest

from prism.manifest import Manifest, ManifestParser

MANIFEST_YAML = dedent("""
    name: test-pkg
    version: 1.0.0
    description: A test package
    author: Test Author

    structure:
      commands:
        - source: commands/
          dest: .claude/commands/{name}/
      scripts:
        - source: scripts/
          dest: .claude/scripts/{name}/
      claude_config:
        - source: config/
          dest: .claude/
          pattern: CLAUDE.md

    variants:
      minimal:
        description: Core commands only
        include:
          - "commands/core/*"
      standard:
        description: Commands and scripts
        include:
          - "commands/**"
          - "scripts/*"
          - "config/*"
      full:
        description: Everything
        include:
          - "**/*"

    dependencies:
      system:
        - name: git
          required: true
        - name: jq
          required: false
          install: brew install jq

    hooks:
      postInstall: echo "installed"
""").lstrip()


@pytest.fixture
def parser() -> ManifestParser:
    """Create a manifest parser."""
    return ManifestParser()


@pytest.fixture
def manifest_yaml() -> str:
    """Manifest text of the sample package."""
    return MANIFEST_YAML


@pytest.fixture
def package_dir(tmp_path: Path) -> Path:
    """Create a sample package directory."""
    pkg = tmp_path / "test-pkg"
    (pkg / "commands" / "core").mkdir(parents=True)
    (pkg / "commands" / "extra").mkdir(parents=True)
    (pkg / "scripts").mkdir()
    (pkg / "config").mkdir()

    (pkg / "prism-package.yaml").write_text(MANIFEST_YAML)
    (pkg / "README.md").write_text("# test-pkg\n")
    (pkg / "commands" / "core" / "a.md").write_text("# Command A\n")
    (pkg / "commands" / "core" / "b.md").write_text("# Command B\n")
    (pkg / "commands" / "extra" / "c.md").write_text("# Command C\n")

    script = pkg / "scripts" / "run.sh"
    script.write_text("#!/bin/sh\necho run\n")
    script.chmod(0o755)

    (pkg / "config" / "CLAUDE.md").write_text("Use test-pkg commands.\n")
    return pkg


@pytest.fixture
def manifest(parser: ManifestParser, package_dir: Path) -> Manifest:
    """Parsed manifest of the sample package."""
    return parser.parse_file(package_dir / "prism-package.yaml")


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create an empty project directory."""
    project = tmp_path / "project"
    project.mkdir()
    return project
