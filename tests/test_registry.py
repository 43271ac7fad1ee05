import gc
import random

import pytest

from dalle_cli.core.registry import InstanceRegistry, get_registry


class StubSurface:
    def __init__(self, live=True, visible=False):
        self.live = live
        self.visible = visible

    def is_live(self):
        return self.live


def test_empty_registry_starts_at_zero():
    assert InstanceRegistry().next_available_id() == 0


def test_all_live_bindings_yield_next_integer():
    registry = InstanceRegistry()
    surfaces = [StubSurface() for _ in range(3)]
    for i, surface in enumerate(surfaces):
        registry.register(i, surface)

    assert registry.next_available_id() == 3


def test_smallest_dead_binding_is_reused():
    registry = InstanceRegistry()
    surfaces = [StubSurface() for _ in range(4)]
    for i, surface in enumerate(surfaces):
        registry.register(i, surface)

    surfaces[2].live = False
    surfaces[1].live = False

    assert registry.next_available_id() == 1


def test_registry_does_not_keep_surfaces_alive():
    registry = InstanceRegistry()
    keep = StubSurface()
    registry.register(0, StubSurface())
    registry.register(1, keep)
    gc.collect()

    assert registry.lookup(0) is None
    assert registry.next_available_id() == 0
    assert registry.live_sessions() == [keep]


def test_register_overwrites_prior_binding():
    registry = InstanceRegistry()
    old, new = StubSurface(live=False), StubSurface()
    registry.register(0, old)
    registry.register(0, new)

    assert len(registry) == 1
    assert registry.lookup(0) is new


def test_register_rejects_negative_ids():
    with pytest.raises(ValueError):
        InstanceRegistry().register(-1, StubSurface())


def test_live_and_visible_sessions():
    registry = InstanceRegistry()
    a, b, c = StubSurface(), StubSurface(live=False), StubSurface(visible=True)
    for i, surface in enumerate((a, b, c)):
        registry.register(i, surface)

    assert registry.live_sessions() == [a, c]
    assert registry.visible_sessions() == [c]


def test_dead_surface_is_not_visible():
    registry = InstanceRegistry()
    surface = StubSurface(visible=True)
    registry.register(0, surface)
    surface.live = False

    assert registry.visible_sessions() == []


def test_next_id_never_collides_with_live_session():
    rng = random.Random(1234)
    registry = InstanceRegistry()
    live: dict[int, StubSurface] = {}

    for _ in range(500):
        if live and rng.random() < 0.4:
            victim = rng.choice(sorted(live))
            live.pop(victim).live = False
        else:
            session_id = registry.next_available_id()
            assert session_id not in live
            surface = StubSurface()
            registry.register(session_id, surface)
            live[session_id] = surface

        assert sorted(s for s in live) == sorted(
            i for i in range(len(registry)) if registry.lookup(i) is not None
        )


def test_get_registry_is_process_wide():
    assert get_registry() is get_registry()
