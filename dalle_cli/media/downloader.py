"""
Handles the low-level downloading of generated images over HTTP, and the
`DownloadJob` handle that runs one transfer in the background.
"""

import asyncio
import logging
import os
from collections.abc import Awaitable, Callable
from pathlib import Path

import aiofiles
import aiohttp

from dalle_cli.exceptions import DownloadFailure

log = logging.getLogger(__name__)

Fetcher = Callable[[str, str], Awaitable[None]]
CompletionCallback = Callable[[str, str], None]

CHUNK_SIZE = 65536  # 64 KB

_connection_pool: aiohttp.ClientSession | None = None
_pool_lock = asyncio.Lock()


async def get_connection_pool(max_connections: int = 10) -> aiohttp.ClientSession:
    """
    Gets or creates a shared aiohttp ClientSession for downloads.

    This function ensures that only one connection pool is created for the
    lifetime of the application run.
    """
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            return _connection_pool

        connector = aiohttp.TCPConnector(
            limit=max_connections * 2,
            limit_per_host=max_connections,
            ttl_dns_cache=600,
            enable_cleanup_closed=True,
        )
        timeout = aiohttp.ClientTimeout(total=None, sock_connect=15, sock_read=60)
        _connection_pool = aiohttp.ClientSession(connector=connector, timeout=timeout)
        log.debug(f"Created download pool with limit_per_host={max_connections}")

    return _connection_pool


async def close_connection_pool() -> None:
    """Closes the shared global connection pool."""
    global _connection_pool
    async with _pool_lock:
        if _connection_pool and not _connection_pool.closed:
            await _connection_pool.close()
            _connection_pool = None
            log.debug("Shared downloader connection pool closed.")


async def fetch_url_to_file(
    url: str,
    destination_path: str,
    max_attempts: int = 3,
    base_delay: float = 1.0,
) -> None:
    """
    Streams `url` into `destination_path`.

    The body is written to a `.part` file that is renamed into place only once
    complete, so a file at `destination_path` is always a whole image. The
    partial file is removed on failure or cancellation.

    Raises:
        DownloadFailure: If every attempt failed.
    """
    temp_path = f"{destination_path}.part"
    last_exception: Exception | None = None
    try:
        for attempt in range(1, max_attempts + 1):
            try:
                session = await get_connection_pool()
                async with session.get(url, allow_redirects=True) as response:
                    response.raise_for_status()
                    async with aiofiles.open(temp_path, "wb") as f:
                        async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                            await f.write(chunk)
                await asyncio.to_thread(os.replace, temp_path, destination_path)
                return
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
                log.debug(
                    f"Download attempt {attempt}/{max_attempts} for "
                    f"'{os.path.basename(destination_path)}' failed: {e}."
                )
                if attempt < max_attempts:
                    await asyncio.sleep(base_delay * (2 ** (attempt - 1)))
    finally:
        if os.path.exists(temp_path):
            try:
                os.remove(temp_path)
            except OSError:
                pass

    raise DownloadFailure(
        f"Could not download '{os.path.basename(destination_path)}': {last_exception}"
    )


class DownloadJob:
    """
    One in-flight transfer of a remote image to a local path.

    The completion callback receives `(dest_path, source_url)` exactly once
    when the transfer ends, whether it succeeded or failed. A cancelled job
    never reports completion.
    """

    def __init__(
        self,
        source_url: str,
        dest_path: str | Path,
        on_complete: CompletionCallback,
        session_id: int | None = None,
        fetcher: Fetcher = fetch_url_to_file,
    ):
        self.source_url = source_url
        self.dest_path = str(dest_path)
        self.session_id = session_id
        self._on_complete = on_complete
        self._fetcher = fetcher
        self._task: asyncio.Task | None = None
        self._cancelled = False
        self._notified = False
        self.succeeded: bool | None = None

    @classmethod
    def start(
        cls,
        source_url: str,
        dest_path: str | Path,
        on_complete: CompletionCallback,
        session_id: int | None = None,
        fetcher: Fetcher = fetch_url_to_file,
    ) -> "DownloadJob":
        """Begins the transfer on the running loop and returns immediately."""
        job = cls(source_url, dest_path, on_complete, session_id, fetcher)
        job._task = asyncio.get_running_loop().create_task(job._run())
        job._task.add_done_callback(job._finished)
        log.debug(f"Session {session_id}: started download of '{job.dest_path}'")
        return job

    @property
    def done(self) -> bool:
        return self._task is None or self._task.done()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    async def _run(self) -> None:
        try:
            await self._fetcher(self.source_url, self.dest_path)
            self.succeeded = True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.succeeded = False
            log.warning(
                f"[yellow]Session {self.session_id}: download of "
                f"'{os.path.basename(self.dest_path)}' failed: {e}[/yellow]"
            )

    def _finished(self, task: asyncio.Task) -> None:
        if self._cancelled or task.cancelled() or self._notified:
            return
        self._notified = True
        self._on_complete(self.dest_path, self.source_url)

    def cancel(self) -> bool:
        """
        Terminates the transfer. Cancelling a finished or already cancelled job
        is a no-op and returns False.
        """
        if self._cancelled or self._notified:
            return False
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        log.debug(f"Session {self.session_id}: cancelled download of '{self.dest_path}'")
        return True
