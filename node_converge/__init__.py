"""
.. include:: ../README.md
"""

__all__ = [
    "catalog",
    "builder",
    "graph",
    "tasks",
    "target",
    "orchestrator",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
