"""Generation of service manager unit files.

A unit file is a sectioned key/value document. Keys may repeat within a
section and are rendered in the order they were set.
"""

import logging

__all__ = [
    "Manifest",
]

_LOGGER = logging.getLogger(__name__)


class Manifest:
    """Builder for a systemd unit file."""

    def __init__(self) -> None:
        """Initialize Manifest."""
        self._sections: dict[str, list[tuple[str, str]]] = {}

    def set(self, section: str, key: str, value: str) -> None:
        """Append a key to the section, creating the section if needed."""
        self._sections.setdefault(section, []).append((key, value))

    def get(self, section: str, key: str) -> list[str]:
        """Return all values set for the key in the section."""
        return [v for k, v in self._sections.get(section, []) if k == key]

    @property
    def sections(self) -> list[str]:
        return list(self._sections)

    def render(self) -> str:
        """Render the unit file contents."""
        lines: list[str] = []
        for section, entries in self._sections.items():
            if lines:
                lines.append("")
            lines.append(f"[{section}]")
            lines.extend(f"{key}={value}" for key, value in entries)
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.render()
