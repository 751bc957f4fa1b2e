"""
Lifecycle hook execution.

Hooks are shell scripts declared in the manifest under a lifecycle event
(``postInstall`` and so on). They run in the project root with the package
identity exported through ``PRISM_*`` environment variables. Scripts are not
sandboxed.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from prism.errors import HookError
from prism.logging import get_logger
from prism.manifest.models import HookEvent, Manifest

logger = get_logger("hooks")


@dataclass
class HookResult:
    """Outcome of a hook run."""

    event: str
    exit_code: int
    output: str = ""
    error: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def hook_environment(
    manifest: Manifest,
    project_root: Path,
    variant: str = "default",
    base: dict[str, str] | None = None,
) -> dict[str, str]:
    """Build the environment a hook runs with."""
    env = dict(os.environ if base is None else base)
    env.update(
        {
            "PRISM_PACKAGE_NAME": manifest.name,
            "PRISM_PACKAGE_VERSION": manifest.version,
            "PRISM_VARIANT": variant or "default",
            "PRISM_PROJECT_ROOT": str(project_root),
        }
    )
    return env


class HookRunner:
    """Runs manifest hooks through the shell."""

    def __init__(
        self,
        project_root: Path,
        shell: str = "/bin/bash",
        timeout: float | None = None,
        runner: Callable[..., Any] = subprocess.run,
    ) -> None:
        self.project_root = Path(project_root)
        self.shell = shell
        self.timeout = timeout
        self._runner = runner

    def run(
        self,
        manifest: Manifest,
        event: HookEvent | str,
        variant: str = "default",
    ) -> HookResult | None:
        """
        Run the hook for *event*, if the manifest declares one.

        Returns:
            The hook result, or None when no hook is declared

        Raises:
            HookError: If the hook exits non-zero or times out
        """
        event = HookEvent(event).value
        script = manifest.hooks.get(event)
        if not script:
            return None

        logger.info("Running %s hook for %s", event, manifest.name)
        try:
            completed = self._runner(
                [self.shell, "-c", script],
                cwd=str(self.project_root),
                env=hook_environment(manifest, self.project_root, variant),
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise HookError(
                f"Hook {event} timed out after {self.timeout}s", hook=event
            ) from e

        result = HookResult(
            event=event,
            exit_code=completed.returncode,
            output=completed.stdout or "",
            error=completed.stderr or "",
        )
        if not result.success:
            raise HookError(
                f"Hook {event} failed with exit code {result.exit_code}: {result.error.strip()}",
                hook=event,
                exit_code=result.exit_code,
            )
        return result
