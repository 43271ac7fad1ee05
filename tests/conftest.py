"""
Shared pytest fixtures: an in-memory console, a fake generation service and a
fetcher whose downloads finish only when a test releases them.
"""

import asyncio
import io
from pathlib import Path

import pytest
from rich.console import Console

from dalle_cli.cli.display import Display
from dalle_cli.cli.progress_manager import ProgressManager
from dalle_cli.core.controller import SessionController
from dalle_cli.core.lifecycle import SessionLifecycleManager
from dalle_cli.core.registry import InstanceRegistry
from dalle_cli.exceptions import DownloadFailure
from dalle_cli.models.config import SessionConfig
from dalle_cli.models.session import GenerationResult, ImageDescriptor
from dalle_cli.storage.cache import CacheManager

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


class FakeGenerator:
    """Stands in for the image service; optionally holds calls on a gate."""

    def __init__(self):
        self.calls: list[tuple[str, int, str, str]] = []
        self.result: GenerationResult | None = None
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def generate_images(self, prompt, n, size, user=""):
        self.calls.append((prompt, n, size, user))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        batch = len(self.calls)
        return GenerationResult(
            images=[
                ImageDescriptor(url=f"https://images.example/{batch}-{i}.png")
                for i in range(n)
            ]
        )


class GatedFetcher:
    """Holds every download until `release` is called for its path."""

    def __init__(self):
        self.gates: dict[str, asyncio.Event] = {}
        self.failing: set[str] = set()
        self.started: list[str] = []
        self.finished: list[str] = []

    def _gate(self, dest: str | Path) -> asyncio.Event:
        return self.gates.setdefault(str(dest), asyncio.Event())

    async def __call__(self, url: str, dest: str) -> None:
        self.started.append(dest)
        await self._gate(dest).wait()
        self.finished.append(dest)
        if dest in self.failing:
            raise DownloadFailure(f"could not fetch {url}")
        Path(dest).write_bytes(PNG_BYTES)

    def release(self, dest: str | Path, fail: bool = False) -> None:
        if fail:
            self.failing.add(str(dest))
        self._gate(dest).set()

    def release_all(self) -> None:
        for dest in list(self.started):
            self.release(dest)


async def eventually(predicate, timeout: float = 2.0) -> None:
    """Lets the loop run until `predicate()` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def wait_until():
    return eventually


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=100, force_terminal=False)


@pytest.fixture
def config(tmp_path):
    return SessionConfig(
        api_key="sk-test",
        user="tester",
        n=2,
        size="512x512",
        display_width=40,
        cache_dir=str(tmp_path / "cache"),
        config_path=str(tmp_path),
    )


@pytest.fixture
def cache(config):
    return CacheManager(Path(config.cache_dir))


@pytest.fixture
def display(console):
    return Display(console)


@pytest.fixture
def progress(console):
    return ProgressManager(console)


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def fetcher():
    return GatedFetcher()


@pytest.fixture
def registry():
    return InstanceRegistry()


@pytest.fixture
def controller(config, generator, cache, progress, fetcher):
    return SessionController(config, generator, cache, progress, fetcher=fetcher)


@pytest.fixture
def lifecycle(controller, display, cache, registry):
    return SessionLifecycleManager(controller, display, cache, registry=registry)
