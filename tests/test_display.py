from rich.text import Text

from dalle_cli.cli.display import Display


def _output(console):
    return console.file.getvalue()


def test_hidden_surface_records_without_echo(display, console):
    surface = display.create("first")

    surface.append(Text("hello"))

    assert surface.transcript[0].plain == "hello"
    assert "hello" not in _output(console)


def test_focus_replays_transcript(display, console):
    surface = display.create("first")
    surface.append(Text("earlier line"))

    display.focus(surface)

    assert display.focused is surface
    assert surface.visible
    assert "first" in _output(console)
    assert "earlier line" in _output(console)


def test_focus_hides_other_surfaces(display):
    first = display.focus(display.create("first"))
    second = display.focus(display.create("second"))

    assert not first.visible
    assert second.visible
    assert display.focused is second


def test_visible_surface_echoes(display, console):
    surface = display.focus(display.create("first"))
    surface.append(Text("live line"))

    assert "live line" in _output(console)


def test_echo_can_be_disabled(console):
    display = Display(console, echo=False)
    display.focus(display.create("quiet")).append(Text("nothing"))

    assert _output(console) == ""


def test_kill_runs_hooks_once(display):
    surface = display.focus(display.create("first"))
    closed = []
    surface.on_close(closed.append)

    assert display.kill(surface) is True
    assert display.kill(surface) is False

    assert closed == [surface]
    assert not surface.is_live()
    assert not surface.visible
    assert display.focused is None
    assert display.get("first") is None


def test_dead_surface_ignores_appends(display):
    surface = display.create("first")
    display.kill(surface)

    surface.append(Text("late"))

    assert surface.transcript == []


def test_kill_ignores_stale_surface_with_same_name(display):
    old = display.create("first")
    display.kill(old)
    new = display.create("first")

    assert display.kill(old) is False
    assert new.is_live()


def test_progress_indicator_is_idempotent(progress):
    indicator = progress.indicator("DALL-E <0>")

    indicator.start("requesting")
    indicator.start("downloading 2 image(s)")
    assert indicator.active
    assert progress.active_count == 1

    indicator.stop()
    indicator.stop()
    assert not indicator.active
    assert progress.active_count == 0
