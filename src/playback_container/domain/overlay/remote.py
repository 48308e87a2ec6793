"""
Remote control press dispatch.

Maps remote/keyboard press events onto the container: arrows drive
hold-to-scrub, play/pause toggles playback, menu walks back out of
supplement -> overlay -> playback.
"""

from enum import Enum
from typing import Optional

from loguru import logger

from playback_container.core.config import PlayerConfig

from .container import PlaybackContainerState
from .models import ScrubDirection


class RemoteButton(Enum):
    PLAY_PAUSE = "play_pause"
    LEFT_ARROW = "left_arrow"
    RIGHT_ARROW = "right_arrow"
    UP_ARROW = "up_arrow"
    DOWN_ARROW = "down_arrow"
    SELECT = "select"
    MENU = "menu"


class PressPhase(Enum):
    BEGAN = "began"
    CHANGED = "changed"
    ENDED = "ended"
    CANCELLED = "cancelled"


_ARROW_DIRECTIONS = {
    RemoteButton.LEFT_ARROW: ScrubDirection.BACKWARD,
    RemoteButton.RIGHT_ARROW: ScrubDirection.FORWARD,
}


class RemoteControlHandler:
    """Translates press events into container operations."""

    def __init__(
        self,
        state: PlaybackContainerState,
        player_config: Optional[PlayerConfig] = None,
    ) -> None:
        self.state = state
        self.player_config = player_config or PlayerConfig()

    def skip_amount(self, direction: ScrubDirection) -> float:
        if direction is ScrubDirection.FORWARD:
            return self.player_config.jump_forward_interval
        return self.player_config.jump_backward_interval

    def handle_press(self, button: RemoteButton, phase: PressPhase) -> None:
        direction = _ARROW_DIRECTIONS.get(button)
        if direction is not None:
            self._handle_arrow(direction, phase)
            return

        # Everything else acts once per press
        if phase is not PressPhase.BEGAN:
            return

        if button is RemoteButton.PLAY_PAUSE:
            self._show_overlay_or_register_activity()
            manager = self.state.manager
            if manager is not None:
                manager.toggle_play_pause()
        elif button is RemoteButton.MENU:
            self._handle_menu()
        else:
            self._show_overlay_or_register_activity()

    def _handle_arrow(self, direction: ScrubDirection, phase: PressPhase) -> None:
        state = self.state
        if phase is PressPhase.BEGAN:
            if state.is_scrubbing or state.is_action_buttons_focused:
                logger.debug(f"Ignoring {direction.value} press while busy")
                return
            state.handle_arrow_press_began(direction, self.skip_amount(direction))
        elif phase in (PressPhase.ENDED, PressPhase.CANCELLED):
            if state.is_scrubbing_direction(direction):
                state.handle_arrow_press_ended()

    def _handle_menu(self) -> None:
        state = self.state
        if state.is_presenting_supplement:
            state.close_supplement()
        elif state.is_presenting_overlay:
            state.set_overlay_visible(False)
        else:
            # Overlay already hidden - leave playback
            manager = state.manager
            proxy = manager.proxy if manager is not None else None
            if proxy is not None:
                proxy.stop()
            presentation = state.presentation
            if presentation is not None:
                presentation.dismiss()
            logger.info("Menu pressed with overlay hidden, leaving playback")

    def _show_overlay_or_register_activity(self) -> None:
        if not self.state.is_presenting_overlay:
            self.state.set_overlay_visible(True)
        else:
            self.state.register_activity()
