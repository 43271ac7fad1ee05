import asyncio
from pathlib import Path

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from dalle_cli.exceptions import DownloadFailure
from dalle_cli.media.downloader import (
    DownloadJob,
    close_connection_pool,
    fetch_url_to_file,
)
from dalle_cli.media.renderer import render_image

from .conftest import PNG_BYTES


@pytest.fixture
def completions():
    return []


def _recorder(completions):
    return lambda dest, url: completions.append((dest, url))


@pytest.mark.asyncio
async def test_job_reports_success_once(tmp_path, fetcher, completions, wait_until):
    dest = tmp_path / "0.png"
    job = DownloadJob.start(
        "https://x/0.png", dest, _recorder(completions), session_id=3, fetcher=fetcher
    )
    assert not job.done

    fetcher.release(dest)
    await wait_until(lambda: completions)
    await asyncio.sleep(0.01)

    assert completions == [(str(dest), "https://x/0.png")]
    assert job.succeeded is True
    assert dest.read_bytes() == PNG_BYTES


@pytest.mark.asyncio
async def test_job_reports_failure_once(tmp_path, fetcher, completions, wait_until):
    dest = tmp_path / "0.png"
    job = DownloadJob.start(
        "https://x/0.png", dest, _recorder(completions), fetcher=fetcher
    )

    fetcher.release(dest, fail=True)
    await wait_until(lambda: completions)
    await asyncio.sleep(0.01)

    assert completions == [(str(dest), "https://x/0.png")]
    assert job.succeeded is False
    assert not dest.exists()


@pytest.mark.asyncio
async def test_cancelled_job_never_reports(tmp_path, fetcher, completions):
    dest = tmp_path / "0.png"
    job = DownloadJob.start(
        "https://x/0.png", dest, _recorder(completions), fetcher=fetcher
    )
    await asyncio.sleep(0)

    assert job.cancel() is True
    assert job.cancel() is False
    fetcher.release(dest)
    await asyncio.sleep(0.05)

    assert completions == []
    assert job.cancelled
    assert job.done


@pytest.mark.asyncio
async def test_cancel_after_completion_is_noop(
    tmp_path, fetcher, completions, wait_until
):
    dest = tmp_path / "0.png"
    job = DownloadJob.start(
        "https://x/0.png", dest, _recorder(completions), fetcher=fetcher
    )
    fetcher.release(dest)
    await wait_until(lambda: completions)

    assert job.cancel() is False
    assert not job.cancelled


async def _image_handler(request):
    return web.Response(body=PNG_BYTES, content_type="image/png")


async def _missing_handler(request):
    raise web.HTTPNotFound()


@pytest.fixture
def image_app():
    app = web.Application()
    app.router.add_get("/image.png", _image_handler)
    app.router.add_get("/missing.png", _missing_handler)
    return app


@pytest.mark.asyncio
async def test_fetch_writes_file(tmp_path, image_app):
    dest = tmp_path / "0.png"
    async with TestServer(image_app) as server:
        try:
            await fetch_url_to_file(str(server.make_url("/image.png")), str(dest))
        finally:
            await close_connection_pool()

    assert dest.read_bytes() == PNG_BYTES
    assert not Path(f"{dest}.part").exists()


@pytest.mark.asyncio
async def test_fetch_raises_after_attempts(tmp_path, image_app):
    dest = tmp_path / "0.png"
    async with TestServer(image_app) as server:
        try:
            with pytest.raises(DownloadFailure):
                await fetch_url_to_file(
                    str(server.make_url("/missing.png")),
                    str(dest),
                    max_attempts=2,
                    base_delay=0,
                )
        finally:
            await close_connection_pool()

    assert not dest.exists()
    assert not Path(f"{dest}.part").exists()


def test_render_requires_existing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        render_image(tmp_path / "absent.png", 40)


def test_render_builds_panel(tmp_path):
    image = tmp_path / "0.png"
    image.write_bytes(PNG_BYTES)

    panel = render_image(image, 40)

    assert panel.width == 40
    assert "0.png" in str(panel.title)
