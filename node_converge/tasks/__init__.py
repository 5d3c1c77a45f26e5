"""Units of desired state emitted by builders.

Each task kind manages one thing on the node or in the cloud account and
knows how to observe it, converge it and render it.
"""

from .task import Task, TaskId, RenderedResource
from .file import File, FileType
from .package import Package
from .archive import Archive
from .chattr import Chattr
from .service import Service
from .cloud import CloudResource

__all__ = [
    "Task",
    "TaskId",
    "RenderedResource",
    "File",
    "FileType",
    "Package",
    "Archive",
    "Chattr",
    "Service",
    "CloudResource",
]
