"""Tests for remote press dispatch."""

import pytest

from playback_container.core.config import Config, PlayerConfig
from playback_container.core.scheduler import ManualScheduler
from playback_container.domain.overlay import (
    OverlayState,
    PlaybackContainerState,
    PlaybackStatus,
    PressPhase,
    RemoteButton,
    RemoteControlHandler,
    ScrubDirection,
    SupplementDescriptor,
)
from playback_container.simulation import (
    SimulatedEngine,
    SimulatedManager,
    SimulatedPresentation,
)


@pytest.fixture
def remote(state: PlaybackContainerState, config: Config) -> RemoteControlHandler:
    return RemoteControlHandler(state, config.player)


def press(remote: RemoteControlHandler, button: RemoteButton) -> None:
    remote.handle_press(button, PressPhase.BEGAN)
    remote.handle_press(button, PressPhase.ENDED)


class TestArrows:
    def test_right_arrow_tap_jumps_forward(
        self, remote: RemoteControlHandler, engine: SimulatedEngine
    ) -> None:
        press(remote, RemoteButton.RIGHT_ARROW)
        assert engine.commands == [("jump_forward", 15.0)]

    def test_left_arrow_uses_backward_interval(
        self, state: PlaybackContainerState, engine: SimulatedEngine
    ) -> None:
        remote = RemoteControlHandler(state, PlayerConfig(jump_backward_interval=10.0))

        press(remote, RemoteButton.LEFT_ARROW)

        assert engine.commands == [("jump_backward", 10.0)]
        assert state.skip_indicator_text == "−:10"

    def test_default_player_config(self, state: PlaybackContainerState) -> None:
        remote = RemoteControlHandler(state)
        assert remote.skip_amount(ScrubDirection.FORWARD) == 15.0
        assert remote.skip_amount(ScrubDirection.BACKWARD) == 15.0

    def test_press_ignored_while_scrubbing(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        engine: SimulatedEngine,
    ) -> None:
        state.set_scrubbing(True)

        remote.handle_press(RemoteButton.RIGHT_ARROW, PressPhase.BEGAN)

        assert engine.commands == []
        assert state.hold_session is None

    def test_press_ignored_with_action_buttons_focused(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        engine: SimulatedEngine,
    ) -> None:
        state.set_action_buttons_focused(True)

        press(remote, RemoteButton.LEFT_ARROW)

        assert engine.commands == []

    def test_release_of_other_arrow_is_ignored(
        self, remote: RemoteControlHandler, state: PlaybackContainerState
    ) -> None:
        remote.handle_press(RemoteButton.RIGHT_ARROW, PressPhase.BEGAN)
        remote.handle_press(RemoteButton.LEFT_ARROW, PressPhase.ENDED)

        assert state.is_scrubbing_direction(ScrubDirection.FORWARD)

    def test_cancelled_press_ends_session(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        engine: SimulatedEngine,
        scheduler: ManualScheduler,
    ) -> None:
        remote.handle_press(RemoteButton.RIGHT_ARROW, PressPhase.BEGAN)
        scheduler.advance(1.0)

        remote.handle_press(RemoteButton.RIGHT_ARROW, PressPhase.CANCELLED)

        assert state.hold_session is None
        assert engine.commands[-1][0] == "set_position"

    def test_changed_phase_is_ignored(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        engine: SimulatedEngine,
    ) -> None:
        remote.handle_press(RemoteButton.RIGHT_ARROW, PressPhase.CHANGED)

        assert engine.commands == []
        assert state.hold_session is None


class TestPlayPause:
    def test_shows_overlay_and_toggles(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        manager: SimulatedManager,
    ) -> None:
        remote.handle_press(RemoteButton.PLAY_PAUSE, PressPhase.BEGAN)

        assert state.is_presenting_overlay
        assert manager.playback_status is PlaybackStatus.PAUSED

    def test_acts_once_per_press(
        self, remote: RemoteControlHandler, manager: SimulatedManager
    ) -> None:
        press(remote, RemoteButton.PLAY_PAUSE)
        assert manager.playback_status is PlaybackStatus.PAUSED

        press(remote, RemoteButton.PLAY_PAUSE)
        assert manager.playback_status is PlaybackStatus.PLAYING

    def test_observed_pause_pins_overlay(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        scheduler: ManualScheduler,
    ) -> None:
        state.observe_playback_status()

        remote.handle_press(RemoteButton.PLAY_PAUSE, PressPhase.BEGAN)
        scheduler.advance(30.0)

        assert state.is_presenting_overlay
        assert not state.timer.is_armed


class TestMenu:
    def test_closes_supplement_first(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        presentation: SimulatedPresentation,
    ) -> None:
        state.set_overlay_visible(True)
        state.select_supplement(SupplementDescriptor(id="episodes"))

        remote.handle_press(RemoteButton.MENU, PressPhase.BEGAN)

        assert not state.is_presenting_supplement
        assert state.is_presenting_overlay
        assert presentation.supplement_requests == [True, False]

    def test_hides_visible_overlay(
        self, remote: RemoteControlHandler, state: PlaybackContainerState
    ) -> None:
        state.set_overlay_visible(True)

        remote.handle_press(RemoteButton.MENU, PressPhase.BEGAN)

        assert state.overlay_state is OverlayState.HIDDEN

    def test_leaves_playback_when_hidden(
        self,
        remote: RemoteControlHandler,
        engine: SimulatedEngine,
        presentation: SimulatedPresentation,
    ) -> None:
        press(remote, RemoteButton.MENU)

        assert engine.commands == [("stop", None)]
        assert presentation.dismissed


class TestOtherButtons:
    @pytest.mark.parametrize(
        "button", [RemoteButton.SELECT, RemoteButton.UP_ARROW, RemoteButton.DOWN_ARROW]
    )
    def test_shows_hidden_overlay(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        button: RemoteButton,
    ) -> None:
        remote.handle_press(button, PressPhase.BEGAN)
        assert state.is_presenting_overlay

    def test_select_keeps_overlay_alive(
        self,
        remote: RemoteControlHandler,
        state: PlaybackContainerState,
        scheduler: ManualScheduler,
    ) -> None:
        state.set_overlay_visible(True)
        scheduler.advance(4.0)

        remote.handle_press(RemoteButton.SELECT, PressPhase.BEGAN)
        scheduler.advance(4.0)

        assert state.is_presenting_overlay

    def test_ended_phase_does_nothing(
        self, remote: RemoteControlHandler, state: PlaybackContainerState
    ) -> None:
        remote.handle_press(RemoteButton.SELECT, PressPhase.ENDED)
        assert state.overlay_state is OverlayState.HIDDEN

    def test_locked_overlay_stays_locked(
        self, remote: RemoteControlHandler, state: PlaybackContainerState
    ) -> None:
        state.set_gesture_locked(True)

        remote.handle_press(RemoteButton.SELECT, PressPhase.BEGAN)

        assert state.is_gesture_locked
