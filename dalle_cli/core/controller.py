"""
Drives one session through its request -> download -> display cycle.

Everything here runs on the event loop thread. Completions of the generation
call and of each download arrive as done-callbacks, one at a time, so session
state is never mutated concurrently and needs no locks.
"""

import asyncio
import functools
import logging
from pathlib import Path
from typing import Any, Protocol

from rich.markup import escape
from rich.rule import Rule
from rich.text import Text

from dalle_cli.cli.progress_manager import ProgressManager
from dalle_cli.exceptions import (
    BusyError,
    EmptyPromptError,
    RemoteCallError,
    SessionClosedError,
)
from dalle_cli.media.downloader import DownloadJob, Fetcher, fetch_url_to_file
from dalle_cli.media.renderer import render_image
from dalle_cli.models.config import SessionConfig
from dalle_cli.models.session import (
    GenerationResult,
    ImageDescriptor,
    ImageEntry,
    Session,
    SessionInfo,
)
from dalle_cli.storage.cache import CacheManager
from dalle_cli.utils.formatting import shorten_prompt
from dalle_cli.utils.path import image_file_name

log = logging.getLogger(__name__)


class ImageGenerator(Protocol):
    async def generate_images(
        self, prompt: str, n: int, size: str, user: str = ""
    ) -> GenerationResult: ...


class SessionController:
    """Orchestrates prompt submission, batch downloads and their completion."""

    def __init__(
        self,
        config: SessionConfig,
        generator: ImageGenerator,
        cache: CacheManager,
        progress_manager: ProgressManager,
        fetcher: Fetcher = fetch_url_to_file,
        clear_cache_on_close: bool = True,
    ):
        self.config = config
        self.generator = generator
        self.cache = cache
        self.progress_manager = progress_manager
        self.fetcher = fetcher
        self.clear_cache_on_close = clear_cache_on_close

    def attach(self, session: Session) -> None:
        """Prepares a fresh session and arranges teardown when its surface closes."""
        session.indicator = self.progress_manager.indicator(session.name)
        session.surface.on_close(lambda _surface: self.teardown(session))

    # Queries

    def is_busy(self, session: Session) -> bool:
        return session.busy

    def info(self, session: Session) -> SessionInfo:
        return SessionInfo(
            session_id=session.session_id,
            name=session.name,
            image_count=len(session.images),
            n=self.config.n,
            size=self.config.size,
            user=self.config.user,
            requesting=session.requesting,
            downloading=session.downloading,
        )

    async def wait_until_idle(self, session: Session) -> None:
        await session.idle_event.wait()

    # Request

    def submit(self, session: Session, prompt: str) -> asyncio.Future:
        """
        Starts a generation request for `prompt` and returns without waiting.

        Raises:
            EmptyPromptError: If the prompt is empty or whitespace.
            BusyError: If the session is still requesting or downloading.
            SessionClosedError: If the session has been torn down.
        """
        if session.closed:
            raise SessionClosedError(f"{session.name} has been closed.")
        if not prompt or not prompt.strip():
            raise EmptyPromptError("Prompt is empty.")
        if session.busy:
            raise BusyError(
                f"{session.name} is busy "
                f"({'requesting' if session.requesting else 'downloading'}); "
                "wait for the current batch to finish."
            )

        prompt = prompt.strip()
        session.surface.append(
            Text.assemble(("Prompt: ", "bold cyan"), (prompt, "white"))
        )
        session.requesting = True
        session.idle_event.clear()
        session.indicator.start(f"requesting: {escape(shorten_prompt(prompt))}")
        log.debug(f"Session {session.session_id}: submitted prompt '{prompt}'")

        task = asyncio.ensure_future(
            self.generator.generate_images(
                prompt, self.config.n, self.config.size, self.config.user
            )
        )
        session.request_task = task
        task.add_done_callback(functools.partial(self._on_generation_done, session))
        return task

    def _on_generation_done(self, session: Session, task: asyncio.Future) -> None:
        if session.closed or task.cancelled():
            return
        session.request_task = None
        session.requesting = False

        exc = task.exception()
        if exc is not None:
            result = GenerationResult(error=f"{type(exc).__name__}: {exc}")
        else:
            result = task.result()

        if result.error:
            error = RemoteCallError(result.error)
            log.error(f"[red]Session {session.session_id}: {escape(str(error))}[/red]")
            session.surface.append(
                Text.assemble(("✗ Request failed: ", "bold red"), str(error))
            )
            self._set_idle(session)
            return

        self._start_downloads(session, result.images)

    # Downloads

    def _start_downloads(self, session: Session, images: list[ImageDescriptor]) -> None:
        if not images:
            self._set_idle(session)
            return

        # Every destination is prepared before any job starts, so a failure
        # here leaves no job running and no entry in `images`.
        first_ordinal = len(session.images)
        try:
            dest_paths = [
                self.cache.image_path(
                    session.session_id, image_file_name(first_ordinal + offset)
                )
                for offset in range(len(images))
            ]
        except OSError as e:
            self._abort_batch(session, e)
            return

        for image, dest_path in zip(images, dest_paths):
            job = DownloadJob.start(
                image.url,
                dest_path,
                functools.partial(self._on_download_done, session),
                session_id=session.session_id,
                fetcher=self.fetcher,
            )
            session.jobs[job.dest_path] = job
            session.images.append(ImageEntry(path=Path(job.dest_path), url=image.url))

        session.indicator.start(f"downloading {len(session.jobs)} image(s)")

    def _abort_batch(self, session: Session, error: OSError) -> None:
        log.error(
            f"[red]Session {session.session_id}: could not prepare downloads: "
            f"{escape(str(error))}[/red]"
        )
        session.surface.append(
            Text.assemble(("✗ Could not prepare downloads: ", "bold red"), str(error))
        )
        self._set_idle(session)

    def _on_download_done(self, session: Session, dest_path: str, source_url: str) -> None:
        if session.closed or session.jobs.pop(dest_path, None) is None:
            return

        self._insert_image(session, dest_path)

        if session.jobs:
            session.indicator.start(f"downloading {len(session.jobs)} image(s)")
            return

        session.surface.append(Rule(style="dim"))
        self._set_idle(session)
        log.debug(f"Session {session.session_id}: batch complete")

    def _insert_image(self, session: Session, dest_path: str) -> None:
        if not Path(dest_path).is_file():
            log.warning(
                f"[yellow]Session {session.session_id}: nothing to display at "
                f"'{escape(dest_path)}'[/yellow]"
            )
            return
        session.surface.append(render_image(dest_path, self.config.display_width))

    def _set_idle(self, session: Session) -> None:
        session.requesting = False
        if session.indicator is not None:
            session.indicator.stop()
        session.idle_event.set()

    # Destruction

    def teardown(self, session: Session) -> int:
        """
        Cancels everything the session has in flight and drops its cache.

        Returns the number of download jobs that were cancelled.
        """
        if session.closed:
            return 0
        session.closed = True

        if session.request_task is not None and not session.request_task.done():
            session.request_task.cancel()
        session.request_task = None

        jobs, session.jobs = session.jobs, {}
        cancelled = sum(1 for job in jobs.values() if job.cancel())

        self._set_idle(session)
        if self.clear_cache_on_close:
            self.cache.clear(session.session_id)
        log.debug(
            f"Session {session.session_id}: torn down, {cancelled} download(s) cancelled"
        )
        return cancelled


def session_of(surface: Any) -> Session:
    """Returns the session record carried by a surface."""
    session = getattr(surface, "session", None)
    if not isinstance(session, Session):
        raise TypeError(f"{surface!r} is not a session surface")
    return session
