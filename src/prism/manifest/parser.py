"""
Manifest parsing, normalization and validation.

Manifests are YAML documents named ``prism-package.yaml``:

```yaml
name: my-extension
version: 1.0.0
description: My extension
author: Jane Doe

structure:
  commands:
    - source: commands/
      dest: .claude/commands/{name}/

variants:
  minimal:
    description: Core functionality only
    include: ["commands/core/*"]
  full:
    description: Everything
    include: ["**/*"]

dependencies:
  system:
    - name: git
  prism:
    base-tools: ^1.0.0

hooks:
  postInstall: echo "installed"
```

Normalization (shape) and validation (rules) are separate pure steps, so a
caller can normalize once and validate as often as it likes.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from prism.errors import ValidationError
from prism.logging import get_logger
from prism.manifest.models import (
    DEFAULT_IGNORE,
    DEFAULT_PATTERN,
    DEFAULT_VARIANT_NAME,
    RECOMMENDED_VARIANTS,
    Dependencies,
    HookEvent,
    Manifest,
    PlatformCompat,
    StructureItem,
    StructureType,
    SystemDependency,
    Variant,
    default_variant,
)
from prism.manifest.variants import resolve_variant
from prism.versions import is_valid_range, is_valid_version

logger = get_logger("manifest.parser")

NAME_PATTERN = re.compile(r"^[a-z0-9-_]+$")
VARIANT_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$")
REQUIRED_FIELDS = ("name", "version", "description")

# Recursive delete aimed at the filesystem root or the home directory
_RM_TARGET = re.compile(
    r"\brm\s+(?P<flags>(?:-{1,2}[\w-]+\s+)+)"
    r"(?P<quote>[\"']?)(?P<target>/\*?|~/?|\$HOME/?|\$\{HOME\}/?)(?P=quote)(?=$|[\s;&|)])"
)


def _is_recursive_flag(flag: str) -> bool:
    if flag.startswith("--"):
        return flag == "--recursive"
    return "r" in flag or "R" in flag


def find_destructive_command(script: str) -> str | None:
    """Return the first unconditionally destructive command in *script*."""
    if "--no-preserve-root" in script:
        return "--no-preserve-root"
    for match in _RM_TARGET.finditer(script):
        if any(_is_recursive_flag(flag) for flag in match.group("flags").split()):
            return match.group(0).strip()
    return None


class ManifestParser:
    """Parses ``prism-package.yaml`` documents into :class:`Manifest` objects."""

    def parse_file(self, path: Path, validate: bool = True) -> Manifest:
        """Parse a manifest file."""
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ValidationError(f"Failed to parse manifest: {e}") from e
        return self.parse_yaml(content, validate=validate)

    def parse_yaml(self, content: str, validate: bool = True) -> Manifest:
        """
        Parse YAML text into a normalized manifest.

        Args:
            content: Manifest document text
            validate: Also run :meth:`validate` on the result

        Raises:
            ValidationError: If the text is not a valid manifest
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ValidationError(f"Invalid YAML in manifest: {e}") from e

        manifest = self.normalize(data)
        if validate:
            self.validate(manifest)
        return manifest

    # ------------------------------------------------------------------
    # Normalization
    # ------------------------------------------------------------------

    def normalize(self, raw: Any) -> Manifest:
        """
        Translate a parsed document into a :class:`Manifest`.

        Identity fields are checked here since nothing downstream can work
        without them; every other rule is left to :meth:`validate`.
        """
        if isinstance(raw, Manifest):
            raw = raw.to_dict()
        if not isinstance(raw, Mapping):
            raise ValidationError("Manifest must be a valid object")

        for key in REQUIRED_FIELDS:
            if raw.get(key) in (None, ""):
                raise ValidationError(f"Missing required field: {key}")

        version = str(raw["version"])
        if not is_valid_version(version):
            raise ValidationError(f"Invalid version format: {version}")

        name = str(raw["name"])
        if not NAME_PATTERN.match(name):
            raise ValidationError(
                "Package name must contain only lowercase letters, numbers, "
                "hyphens, and underscores"
            )

        keywords = raw.get("keywords")
        ignore = raw.get("ignore")

        return Manifest(
            name=name,
            version=version,
            description=str(raw["description"]),
            author=str(raw.get("author") or "Unknown"),
            license=str(raw.get("license") or "MIT"),
            repository=raw.get("repository") or None,
            homepage=raw.get("homepage") or None,
            keywords=[str(k) for k in keywords] if isinstance(keywords, list) else [],
            platform_compat=self._normalize_platform(
                raw.get("platformCompat", raw.get("claudeCode"))
            ),
            structure=self.normalize_structure(raw.get("structure") or {}),
            variants=self.normalize_variants(raw.get("variants") or {}),
            dependencies=self.normalize_dependencies(raw.get("dependencies") or {}),
            hooks=self.normalize_hooks(raw.get("hooks") or {}),
            ignore=[str(p) for p in ignore] if isinstance(ignore, list) else list(DEFAULT_IGNORE),
        )

    def normalize_structure(self, structure: Any) -> dict[str, list[StructureItem]]:
        """Normalize the structure mapping; single items become one-item lists."""
        if not isinstance(structure, Mapping):
            raise ValidationError("Package structure must be a mapping of types to items")

        normalized: dict[str, list[StructureItem]] = {}
        for kind, value in structure.items():
            items = value if isinstance(value, list) else [value]
            normalized[str(kind)] = [self.normalize_structure_item(item) for item in items]
        return normalized

    def normalize_structure_item(self, item: Any) -> StructureItem:
        """Normalize one structure item from string or mapping form."""
        if isinstance(item, str):
            return StructureItem(source=item, dest=item)

        if isinstance(item, Mapping):
            exclude = item.get("exclude")
            return StructureItem(
                source=str(item.get("source") or item.get("from") or ""),
                dest=str(
                    item.get("dest") or item.get("to") or item.get("destination") or ""
                ),
                pattern=str(item.get("pattern") or DEFAULT_PATTERN),
                exclude=[str(p) for p in exclude] if isinstance(exclude, list) else [],
            )

        raise ValidationError(f"Invalid structure item: {item!r}")

    def normalize_variants(self, variants: Any) -> dict[str, Variant]:
        """Normalize variants, inserting the default variant when none exist."""
        if not isinstance(variants, Mapping):
            raise ValidationError("Variants must be a mapping of names to variants")

        if not variants:
            return {DEFAULT_VARIANT_NAME: default_variant()}

        normalized: dict[str, Variant] = {}
        for name, variant in variants.items():
            data = variant if isinstance(variant, Mapping) else {}
            include = data.get("include")
            exclude = data.get("exclude")
            normalized[str(name)] = Variant(
                description=str(data.get("description") or ""),
                include=[str(p) for p in include] if isinstance(include, list) else [],
                exclude=[str(p) for p in exclude] if isinstance(exclude, list) else [],
            )
        return normalized

    def normalize_dependencies(self, dependencies: Any) -> Dependencies:
        """Normalize system and package dependencies."""
        if not isinstance(dependencies, Mapping):
            raise ValidationError("Dependencies must be a mapping")

        system_raw = dependencies.get("system") or []
        if not isinstance(system_raw, list):
            system_raw = [system_raw]

        prism_raw = dependencies.get("prism") or {}
        if not isinstance(prism_raw, Mapping):
            raise ValidationError("Package dependencies must map names to version ranges")

        return Dependencies(
            system=[self.normalize_system_dependency(dep) for dep in system_raw],
            prism={
                str(name): "" if spec is None else str(spec) for name, spec in prism_raw.items()
            },
        )

    def normalize_system_dependency(self, dep: Any) -> SystemDependency:
        """Normalize a system dependency from string or mapping form."""
        if isinstance(dep, str):
            return SystemDependency(name=dep)

        if isinstance(dep, Mapping):
            version = dep.get("version")
            install = dep.get("install")
            return SystemDependency(
                name=str(dep.get("name") or ""),
                required=dep.get("required") is not False,
                version=str(version) if version not in (None, "") else None,
                install=str(install) if install else None,
            )

        raise ValidationError(f"Invalid system dependency: {dep!r}")

    def normalize_hooks(self, hooks: Any) -> dict[str, str]:
        """Normalize hooks; unknown events and non-string bodies are rejected."""
        if not isinstance(hooks, Mapping):
            raise ValidationError("Hooks must be a mapping of events to scripts")

        valid = HookEvent.values()
        normalized: dict[str, str] = {}
        for event, script in hooks.items():
            if event not in valid:
                raise ValidationError(
                    f"Unknown hook: {event}. Valid hooks are: {', '.join(valid)}"
                )
            if not isinstance(script, str):
                raise ValidationError(f"Hook {event} must be a string script")
            normalized[event] = script
        return normalized

    @staticmethod
    def _normalize_platform(data: Any) -> PlatformCompat:
        if not isinstance(data, Mapping):
            return PlatformCompat()
        min_version = data.get("minVersion")
        max_version = data.get("maxVersion")
        return PlatformCompat(
            min_version=str(min_version) if min_version is not None else None,
            max_version=str(max_version) if max_version is not None else None,
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self, manifest: Manifest) -> bool:
        """
        Check a normalized manifest against every structural rule.

        Raises:
            ValidationError: On the first rule that fails
        """
        self.validate_structure(manifest)
        self.validate_variants(manifest.variants)
        self.validate_dependencies(manifest.dependencies)
        self.validate_hooks(manifest.hooks)
        return True

    def validate_structure(self, manifest: Manifest) -> None:
        if not manifest.structure:
            raise ValidationError("Package must define file structure")

        valid_types = StructureType.values()
        for kind, items in manifest.structure.items():
            if kind not in valid_types:
                raise ValidationError(
                    f"Invalid structure type: {kind}. Valid types: {', '.join(valid_types)}"
                )
            for item in items:
                if not item.source or not item.dest:
                    raise ValidationError(
                        f"Structure item missing source or dest: {item.to_dict()}"
                    )

    def validate_variants(self, variants: Mapping[str, Variant]) -> None:
        if not variants:
            return

        for name, variant in variants.items():
            if not VARIANT_NAME_PATTERN.match(name):
                raise ValidationError(
                    f"Invalid variant name: {name}. Must start with letter and contain "
                    "only lowercase letters, numbers, and hyphens."
                )
            if not variant.description:
                raise ValidationError(f"Variant {name} missing description")
            if not variant.include:
                raise ValidationError(f"Variant {name} must specify include patterns")

        synthetic = list(variants) == [DEFAULT_VARIANT_NAME]
        if not synthetic and not any(v in variants for v in RECOMMENDED_VARIANTS):
            logger.warning(
                "Consider adding recommended variants: %s", ", ".join(RECOMMENDED_VARIANTS)
            )

    def validate_dependencies(self, dependencies: Dependencies) -> None:
        for dep in dependencies.system:
            if not dep.name:
                raise ValidationError("System dependency missing name")
            if dep.version and not is_valid_range(dep.version):
                raise ValidationError(f"Invalid version range for {dep.name}: {dep.version}")

        for name, spec in dependencies.prism.items():
            if not name:
                raise ValidationError("PRISM dependency name must be a non-empty string")
            if not is_valid_range(spec) or not spec.strip():
                raise ValidationError(f"Invalid version range for {name}: {spec}")

    def validate_hooks(self, hooks: Mapping[str, str]) -> None:
        for name, script in hooks.items():
            if not script or not isinstance(script, str) or not script.strip():
                raise ValidationError(f"Hook {name} must be a non-empty string")

            dangerous = find_destructive_command(script)
            if dangerous:
                raise ValidationError(f"Hook {name} contains dangerous command: {dangerous}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def resolve_variant(self, manifest: Manifest, name: str | None) -> Variant:
        """Resolve a variant by name; see :func:`prism.manifest.variants.resolve_variant`."""
        return resolve_variant(manifest, name)

    def create_template(
        self,
        name: str = "my-extension",
        version: str = "1.0.0",
        description: str = "My Claude Code extension",
        author: str = "Your Name",
        license: str = "MIT",
        repository: str | None = "github.com/user/repo",
    ) -> str:
        """Render a starter manifest for a new package."""
        template: dict[str, Any] = {
            "name": name,
            "version": version,
            "description": description,
            "author": author,
            "license": license,
        }
        if repository:
            template["repository"] = repository

        template.update(
            {
                "platformCompat": {"minVersion": "1.0.0"},
                "structure": {
                    "commands": [
                        {"source": "commands/", "dest": ".claude/commands/{name}/"},
                    ],
                },
                "variants": {
                    "minimal": {
                        "description": "Core functionality only",
                        "include": ["commands/core/*"],
                    },
                    "standard": {
                        "description": "Recommended features",
                        "include": ["commands/*", "scripts/*"],
                    },
                    "full": {
                        "description": "All features including experimental",
                        "include": ["**/*"],
                    },
                },
                "dependencies": {"system": [{"name": "git", "required": True}]},
                "hooks": {"postInstall": f'echo "{name} installed successfully!"'},
            }
        )
        return yaml.safe_dump(template, sort_keys=False, default_flow_style=False)
