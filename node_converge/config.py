"""Configuration objects for node-converge."""

from dataclasses import dataclass
from pathlib import Path

from .scheduler.service import DEFAULT_PARALLELISM


@dataclass
class ConvergeConfig:
    """Configuration for a convergence run."""

    parallelism: int = DEFAULT_PARALLELISM
    """Maximum number of tasks applied at once by the local target."""

    root: Path = Path("/")
    """Filesystem root the local target reads and writes under."""

    fail_on_missing_artifact: bool = False
    """Abort the build when no artifact matches the node."""

    dry_run: bool = False
    """Find and diff tasks without applying anything."""

    catalog: Path | None = None
    """Artifact catalog file replacing the built-in catalog."""
