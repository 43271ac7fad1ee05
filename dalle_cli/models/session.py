"""
Per-session records: the images a session has produced and its busy state.
"""

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from dalle_cli.cli.progress_manager import ProgressIndicator
    from dalle_cli.media.downloader import DownloadJob


@dataclass(frozen=True)
class ImageDescriptor:
    """One image returned by the generation service."""

    url: str


@dataclass(frozen=True)
class ImageEntry:
    """An image known to a session: where it lives locally and where it came from."""

    path: Path
    url: str


@dataclass
class GenerationResult:
    """Outcome of a generation call; `error` is set instead of raising."""

    images: list[ImageDescriptor] = field(default_factory=list)
    error: str | None = None


@dataclass(frozen=True)
class SessionInfo:
    """Read-only snapshot of a session."""

    session_id: int
    name: str
    image_count: int
    n: int
    size: str
    user: str
    requesting: bool
    downloading: bool

    def as_dict(self) -> dict[str, Any]:
        return {
            "id": self.session_id,
            "name": self.name,
            "images": self.image_count,
            "n": self.n,
            "size": self.size,
            "user": self.user or "-",
            "requesting": self.requesting,
            "downloading": self.downloading,
        }


@dataclass
class Session:
    """
    Mutable state of one image-generation session.

    The record is owned by its display surface. `downloading` is derived from
    the outstanding jobs, so it is true exactly when a job is still in flight.
    """

    session_id: int
    surface: Any = field(repr=False)
    images: list[ImageEntry] = field(default_factory=list)
    requesting: bool = False
    jobs: dict[str, "DownloadJob"] = field(default_factory=dict, repr=False)
    indicator: "ProgressIndicator | None" = field(default=None, repr=False)
    request_task: asyncio.Future | None = field(default=None, repr=False)
    closed: bool = False
    idle_event: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def __post_init__(self):
        self.idle_event.set()

    @property
    def name(self) -> str:
        return self.surface.name

    @property
    def downloading(self) -> bool:
        return bool(self.jobs)

    @property
    def busy(self) -> bool:
        return self.requesting or self.downloading
