"""Tests for the run loop, action dispatch and rendering."""

import io
from unittest.mock import MagicMock, patch

import pytest
from blessed import Terminal
from blessed.keyboard import Keystroke

from nightride.core.config import Config
from nightride.domain.playback.exceptions import ChannelUnavailable, ProcessSpawnError
from nightride.domain.state import AppState
from nightride.domain.stations import build_stations
from nightride.domain.track import Track
from nightride.ui.app import handle_action, main_loop
from nightride.ui.keys import NEXT_STATION, QUIT, SEARCH, TOGGLE_PAUSE, VOLUME_UP
from nightride.ui.rendering import render, status_lines


class FakeClock:
    """Monotonic clock that only moves when the fake terminal waits."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _fake_term(clock, keys):
    """A terminal whose inkey waits out its timeout and then returns keys in order."""
    keys = iter(keys)
    term = MagicMock()

    def inkey(timeout=None):
        key = next(keys)
        if not key and timeout:
            clock.now += timeout
        return Keystroke(key)

    term.inkey.side_effect = inkey
    return term


class TestHandleAction:
    """Tests for handle_action."""

    def test_quit(self, config):
        assert handle_action(QUIT, AppState(), config) is True

    def test_success_clears_feedback(self, fake_mpv, config):
        state = AppState(is_paused=False, feedback="old message")
        assert handle_action(TOGGLE_PAUSE, state, config) is False
        assert state.is_paused is True
        assert state.feedback is None

    def test_player_error_becomes_feedback(self, config):
        state = AppState(volume=50.0)
        handle_action(VOLUME_UP, state, config)
        assert state.volume == 50.0
        assert state.feedback.startswith("volume up failed")

    def test_spawn_error_is_fatal(self, config):
        with patch.dict(
            "nightride.ui.app.ACTION_HANDLERS",
            {NEXT_STATION: MagicMock(side_effect=ProcessSpawnError("no mpv"))},
        ):
            with pytest.raises(ProcessSpawnError):
                handle_action(NEXT_STATION, AppState(), config)

    def test_search_without_track(self, config):
        state = AppState()
        handle_action(SEARCH, state, config)
        assert state.feedback == "No track information yet"

    def test_search_with_track(self, config):
        state = AppState(feedback="old")
        with patch("nightride.ui.app.search_current_track", return_value=True) as search:
            handle_action(SEARCH, state, config)
        search.assert_called_once_with(state, config)
        assert state.feedback is None


class TestMainLoop:
    """Tests for main_loop."""

    def test_runs_actions_until_quit(self, fake_mpv, config):
        clock = FakeClock()
        term = _fake_term(clock, ["p", "q"])

        with patch("nightride.ui.app.render"):
            state = main_loop(term, AppState(), config, clock=clock)

        assert fake_mpv.properties["pause"] is True
        assert state.is_paused is True

    def test_polls_once_per_interval(self, config):
        config.ui.polling_interval = 1.0
        clock = FakeClock()
        term = _fake_term(clock, ["", "", "q"])

        with patch("nightride.ui.app.render"), patch(
            "nightride.ui.app.reconcile"
        ) as reconcile:
            main_loop(term, AppState(), config, clock=clock)

        assert reconcile.call_count == 3
        timeouts = [c.kwargs["timeout"] for c in term.inkey.call_args_list]
        assert timeouts == [1.0, 1.0, 1.0]

    def test_action_triggers_immediate_poll(self, config):
        clock = FakeClock()
        term = _fake_term(clock, ["x", "p", "q"])

        with patch("nightride.ui.app.render"), patch(
            "nightride.ui.app.reconcile"
        ) as reconcile, patch("nightride.ui.app.handle_action", side_effect=[False, True]) as handle:
            main_loop(term, AppState(), config, clock=clock)

        # Initial poll, then one right after "p"; "x" is unbound and time never moved
        assert reconcile.call_count == 2
        assert [c.args[0] for c in handle.call_args_list] == [TOGGLE_PAUSE, QUIT]

    def test_spawn_error_propagates(self, config):
        clock = FakeClock()
        term = _fake_term(clock, ["n"])

        with patch("nightride.ui.app.render"), patch.dict(
            "nightride.ui.app.ACTION_HANDLERS",
            {NEXT_STATION: MagicMock(side_effect=ProcessSpawnError("no mpv"))},
        ):
            with pytest.raises(ProcessSpawnError):
                main_loop(term, AppState(), config, clock=clock)

    def test_player_gone_keeps_running(self, config):
        clock = FakeClock()
        term = _fake_term(clock, ["p", "q"])

        with patch("nightride.ui.app.render"), patch.dict(
            "nightride.ui.app.ACTION_HANDLERS",
            {TOGGLE_PAUSE: MagicMock(side_effect=ChannelUnavailable("gone"))},
        ):
            state = main_loop(term, AppState(), config, clock=clock)

        assert "gone" in state.feedback


class TestRendering:
    """Tests for the status screen."""

    def test_status_lines(self):
        stations = build_stations(Config().stations)
        state = AppState(
            station=1,
            is_paused=False,
            volume=85.0,
            current_track=Track(title="Neon Drive", artist="Kavinsky", album="Outrun"),
        )
        assert status_lines(state, stations) == [
            "Station: chillsynth",
            "State:   playing",
            "Track:   Neon Drive by Kavinsky (Outrun)",
            "Volume:  85",
        ]

    def test_unknown_track(self):
        stations = build_stations(Config().stations)
        lines = status_lines(AppState(), stations)
        assert lines[1] == "State:   paused"
        assert lines[2] == "Track:   ..."

    def test_render_draws_status_and_feedback(self, capsys, monkeypatch):
        monkeypatch.setattr(Terminal, "width", 80)
        monkeypatch.setattr(Terminal, "height", 24)
        term = Terminal(stream=io.StringIO(), force_styling=None)
        stations = build_stations(Config().stations)

        render(term, AppState(feedback="next station failed"), stations, "Nightride FM")

        out = capsys.readouterr().out
        assert "Nightride FM" in out
        assert "Station: nightride" in out
        assert "next station failed" in out
        assert "q quit" in out
