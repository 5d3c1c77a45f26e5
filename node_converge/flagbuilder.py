"""Build daemon command line flags from a configuration dataclass.

Fields opt in by declaring a `flag` name in their field metadata. Unset
values are omitted and the flags are sorted by name so the output is stable.
"""

import dataclasses
import shlex
from typing import Any

from .exceptions import ConfigurationError

__all__ = [
    "build_flags",
]


def _format_value(name: str, value: Any) -> list[str]:
    if isinstance(value, bool):
        return [f"--{name}={'true' if value else 'false'}"]
    if isinstance(value, (int, float, str)):
        return [f"--{name}={shlex.quote(str(value))}"]
    if isinstance(value, (list, tuple)):
        return [arg for item in value for arg in _format_value(name, item)]
    raise ConfigurationError(f"Unsupported value for flag --{name}: {value!r}")


def build_flags(config: Any) -> str:
    """Return the flags for the set fields of `config` joined by spaces."""
    if not dataclasses.is_dataclass(config):
        raise ConfigurationError(f"Can not build flags from {type(config).__name__}")
    flags: list[tuple[str, list[str]]] = []
    for field in dataclasses.fields(config):
        if not (name := field.metadata.get("flag")):
            continue
        value = getattr(config, field.name)
        if value is None or value == "" or value == []:
            continue
        flags.append((name, _format_value(name, value)))
    flags.sort(key=lambda item: item[0])
    return " ".join(arg for _, args in flags for arg in args)
