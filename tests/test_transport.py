import pytest

from models import BrowserEntry, EntryKind, PlayerState
from transport import PlaybackTransport


def _entries(*names):
    out = []
    for name in names:
        if name.endswith("/"):
            out.append(BrowserEntry(f"/music/{name[:-1]}", name[:-1], EntryKind.DIRECTORY))
        elif name == "..":
            out.append(BrowserEntry("/", "..", EntryKind.PARENT))
        else:
            out.append(BrowserEntry(f"/music/{name}", name, EntryKind.FILE))
    return tuple(out)


ABC = _entries("A.mp3", "B.mp3", "C.mp3")


@pytest.fixture
def transport(engine, clock):
    return PlaybackTransport(engine, clock=clock)


def test_select_starts_playing(transport, engine):
    assert transport.select(ABC, 1)

    assert transport.state == PlayerState.PLAYING
    assert transport.current_index == 1
    assert transport.track.path == "/music/B.mp3"
    assert transport.total_sec == 120.0
    assert engine.played == ["/music/B.mp3"]


def test_select_ignores_directories_and_bad_index(transport, engine):
    entries = _entries("..", "sub/", "A.mp3")

    assert not transport.select(entries, 0)
    assert not transport.select(entries, 1)
    assert not transport.select(entries, 5)
    assert transport.state == PlayerState.STOPPED
    assert engine.played == []


def test_unknown_duration_uses_default(transport, engine):
    engine.duration = None
    transport.select(ABC, 0)
    assert transport.total_sec == 180.0


def test_end_of_track_with_continuous_play_wraps_to_first(transport, engine):
    transport.continuous_play = True
    transport.select(ABC, 2)
    engine.queue_empty = True

    transport.tick()

    assert transport.state == PlayerState.PLAYING
    assert transport.current_index == 0
    assert transport.track.path == "/music/A.mp3"


def test_end_of_track_without_continuous_play_stops(transport, engine):
    transport.select(ABC, 2)
    engine.queue_empty = True

    transport.tick()

    assert transport.state == PlayerState.STOPPED
    assert transport.current_index == 2
    assert transport.elapsed_sec == 0.0


@pytest.mark.parametrize("continuous", [False, True])
def test_next_and_previous_from_middle(transport, continuous):
    transport.continuous_play = continuous
    transport.select(ABC, 1)
    assert transport.next()
    assert transport.current_index == 2

    transport.select(ABC, 1)
    assert transport.previous()
    assert transport.current_index == 0


def test_next_skips_directories(transport):
    entries = _entries("..", "A.mp3", "sub/", "B.mp3")
    transport.select(entries, 1)

    assert transport.next()
    assert transport.current_index == 3


def test_next_off_the_end_stops_without_continuous(transport):
    transport.select(ABC, 2)

    assert not transport.next()
    assert transport.state == PlayerState.STOPPED
    assert transport.current_index == 2


def test_previous_never_wraps(transport):
    transport.continuous_play = True
    transport.select(ABC, 0)

    assert not transport.previous()
    assert transport.current_index == 0
    assert transport.state == PlayerState.PLAYING


def test_next_without_track_is_noop(transport, engine):
    assert not transport.next()
    assert not transport.previous()
    assert engine.calls == []


def test_failed_select_keeps_prior_state(transport, engine):
    transport.select(ABC, 0)
    engine.failing.add("/music/B.mp3")

    assert not transport.select(ABC, 1)

    assert transport.state == PlayerState.PLAYING
    assert transport.current_index == 0
    assert transport.track.path == "/music/A.mp3"
    assert "B.mp3" in transport.error

    transport.select(ABC, 2)
    assert transport.error is None


def test_failed_auto_advance_stops_without_retry(transport, engine):
    transport.continuous_play = True
    transport.select(ABC, 1)
    engine.failing.add("/music/C.mp3")
    engine.queue_empty = True

    transport.tick()

    assert transport.state == PlayerState.STOPPED
    assert transport.error
    played = list(engine.played)
    transport.tick()
    assert engine.played == played


def test_toggle_pauses_then_restarts_from_top(transport, engine, clock):
    transport.select(ABC, 0)
    clock.advance(30)
    transport.tick()
    assert transport.elapsed_sec == pytest.approx(30.0)

    transport.toggle()
    assert transport.state == PlayerState.PAUSED
    assert ("pause", None) in engine.calls

    transport.toggle()
    assert transport.state == PlayerState.PLAYING
    assert transport.elapsed_sec == 0.0
    assert engine.played == ["/music/A.mp3", "/music/A.mp3"]


def test_toggle_from_stopped_replays_selected_track(transport, engine):
    transport.select(ABC, 1)
    transport.stop()
    assert transport.state == PlayerState.STOPPED

    transport.toggle()
    assert transport.state == PlayerState.PLAYING
    assert engine.played[-1] == "/music/B.mp3"


def test_toggle_without_track_does_nothing(transport, engine):
    transport.toggle()
    assert transport.state == PlayerState.STOPPED
    assert engine.calls == []


def test_elapsed_is_capped_at_total(transport, clock):
    transport.select(ABC, 0)
    clock.advance(500)
    transport.tick()

    assert transport.elapsed_sec == transport.total_sec == 120.0


def test_paused_tick_does_not_advance(transport, engine):
    transport.select(ABC, 0)
    transport.toggle()
    engine.queue_empty = True

    transport.tick()

    assert transport.state == PlayerState.PAUSED


def test_toggle_continuous_has_no_transition(transport):
    transport.toggle_continuous()
    assert transport.continuous_play
    assert transport.state == PlayerState.STOPPED
    transport.toggle_continuous()
    assert not transport.continuous_play


def test_pause_and_stop_clear_previous_error(transport, engine):
    transport.select(ABC, 0)
    engine.failing.add("/music/B.mp3")
    transport.select(ABC, 1)
    assert transport.error

    transport.toggle()
    assert transport.state == PlayerState.PAUSED
    assert transport.error is None

    transport.select(ABC, 1)
    assert transport.error
    transport.stop()
    assert transport.error is None
