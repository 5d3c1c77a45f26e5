"""Exceptions related to node-converge."""

from typing import Any

__all__ = [
    "ConvergeException",
    "ConfigurationError",
    "MissingArtifactError",
    "BuildError",
    "DuplicateTaskError",
    "DanglingDependencyError",
    "CycleError",
    "TaskApplyError",
    "DependencyFailedError",
    "RenderError",
    "CommandException",
    "HashMismatchError",
]


class ConvergeException(Exception):
    """Generic base exception used for this library."""


class ConfigurationError(ConvergeException):
    """Raised when the cluster or node configuration is not usable."""


class MissingArtifactError(ConvergeException):
    """Raised when no catalog artifact matches and policy requires one."""


class BuildError(ConvergeException):
    """Raised when the emitted task set can never be applied."""


class DuplicateTaskError(BuildError):
    """Raised when two builders register different state for one identity."""

    def __init__(
        self,
        identity: Any,
        existing: Any,
        new: Any,
        existing_builder: str | None,
        new_builder: str | None,
    ) -> None:
        super().__init__(
            f"Task {identity} registered with conflicting desired state by "
            f"{existing_builder or 'unknown'} ({existing}) and "
            f"{new_builder or 'unknown'} ({new})"
        )
        self.identity = identity
        self.existing = existing
        self.new = new
        self.existing_builder = existing_builder
        self.new_builder = new_builder


class DanglingDependencyError(BuildError):
    """Raised when a task depends on a task that was never registered."""

    def __init__(self, identity: Any, missing: Any) -> None:
        super().__init__(f"Task {identity} depends on missing task {missing}")
        self.identity = identity
        self.missing = missing


class CycleError(BuildError):
    """Raised when the task dependencies contain a cycle."""

    def __init__(self, members: list[Any]) -> None:
        cycle = " -> ".join(str(member) for member in members)
        super().__init__(f"Dependency cycle detected: {cycle}")
        self.members = members


class TaskApplyError(ConvergeException):
    """Raised when a task's corrective action fails against the live environment."""

    def __init__(self, identity: Any, message: str | None) -> None:
        super().__init__(f"Task {identity} failed: {message or 'Unknown error'}")
        self.identity = identity
        self.message = message


class DependencyFailedError(TaskApplyError):
    """Raised when a task is skipped because one of its dependencies failed."""

    def __init__(self, identity: Any, dependency: Any) -> None:
        super().__init__(identity, f"dependency {dependency} did not apply")
        self.dependency = dependency


class RenderError(ConvergeException):
    """Raised when a task can not be serialized by a rendering target."""


class CommandException(ConvergeException):
    """Raised when there is a failure running a subcommand."""


class HashMismatchError(ConvergeException):
    """Raised when downloaded content does not match the expected hash."""
