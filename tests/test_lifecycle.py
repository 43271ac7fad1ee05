from pathlib import Path

import pytest

from dalle_cli.core.controller import session_of
from dalle_cli.exceptions import AlreadyExistsError
from dalle_cli.models.session import ImageEntry
from dalle_cli.utils.path import session_name


def test_create_new_allocates_sequential_ids(lifecycle):
    first = lifecycle.create_new()
    second = lifecycle.create_new()

    assert session_of(first).session_id == 0
    assert session_of(second).session_id == 1
    assert first.name == session_name(0)
    assert second.name == session_name(1)


def test_create_new_focuses_fresh_session(lifecycle, display):
    surface = lifecycle.create_new()
    session = session_of(surface)

    assert display.focused is surface
    assert surface.visible
    assert session.images == []
    assert not session.busy
    assert session.indicator is not None


def test_create_new_clears_the_namespace(lifecycle, cache):
    stale = cache.image_path(0, "0.png")
    stale.write_bytes(b"old")

    lifecycle.create_new()

    assert not stale.exists()


def test_create_new_refuses_existing_name(lifecycle, display, registry):
    display.create(session_name(0))

    with pytest.raises(AlreadyExistsError):
        lifecycle.create_new()

    assert len(registry) == 0


def test_open_or_create_creates_when_nothing_exists(lifecycle, registry):
    surface = lifecycle.open_or_create()

    assert registry.live_sessions() == [surface]


def test_open_or_create_prefers_visible_session(lifecycle, registry):
    lifecycle.create_new()
    second = lifecycle.create_new()

    assert lifecycle.open_or_create() is second
    assert len(registry.live_sessions()) == 2


def test_open_or_create_falls_back_to_first_live(lifecycle, display):
    first = lifecycle.create_new()
    second = lifecycle.create_new()
    display.kill(second)

    assert not first.visible
    assert lifecycle.open_or_create() is first
    assert first.visible


def test_destroyed_id_is_reused_with_its_name(lifecycle, display, registry):
    first = lifecycle.create_new()
    lifecycle.create_new()
    display.kill(first)

    assert registry.next_available_id() == 0
    reborn = lifecycle.create_new()
    assert session_of(reborn).session_id == 0
    assert reborn.name == session_name(0)
    assert reborn is not first


def test_restart_keeps_name_and_resets_state(lifecycle, registry):
    surface = lifecycle.create_new()
    old_session = session_of(surface)
    old_session.images.append(ImageEntry(path=Path("0.png"), url="https://x/0.png"))

    restarted = lifecycle.restart(surface)

    assert restarted is not None
    assert restarted is not surface
    assert restarted.name == surface.name
    assert not surface.is_live()
    assert old_session.closed
    new_session = session_of(restarted)
    assert new_session.session_id == old_session.session_id
    assert new_session.images == []
    assert new_session.jobs == {}
    assert registry.lookup(new_session.session_id) is restarted


def test_restart_of_dead_surface_is_noop(lifecycle, display, registry):
    surface = lifecycle.create_new()
    display.kill(surface)

    assert lifecycle.restart(surface) is None
    assert registry.live_sessions() == []


@pytest.mark.asyncio
async def test_restart_cancels_outstanding_downloads(
    lifecycle, controller, fetcher, wait_until
):
    surface = lifecycle.create_new()
    session = session_of(surface)
    controller.submit(session, "a lighthouse")
    await wait_until(lambda: len(fetcher.started) == 2)

    restarted = lifecycle.restart(surface)

    assert session.jobs == {}
    assert not session.downloading
    assert session_of(restarted).jobs == {}
    assert not session_of(restarted).busy


def test_find_returns_live_surfaces_only(lifecycle, display):
    surface = lifecycle.create_new()
    assert lifecycle.find(0) is surface

    display.kill(surface)
    assert lifecycle.find(0) is None
