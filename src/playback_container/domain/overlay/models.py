"""
Overlay domain models.

State enums, the supplement descriptor, the per-press hold-scrub session and
the immutable snapshot published to listeners.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple, Optional


class OverlayState(Enum):
    """Visibility of the transport overlay.

    LOCKED means gestures are disabled and the overlay cannot be shown.
    """

    HIDDEN = "hidden"
    VISIBLE = "visible"
    LOCKED = "locked"


class SupplementState(Enum):
    """Whether an auxiliary panel is displayed."""

    CLOSED = "closed"
    OPEN = "open"


class ScrubState(Enum):
    """Whether the user is actively scrubbing the timeline."""

    IDLE = "idle"
    SCRUBBING = "scrubbing"


class ScrubDirection(Enum):
    """Direction for timeline scrubbing."""

    FORWARD = "forward"
    BACKWARD = "backward"

    @property
    def sign(self) -> float:
        return 1.0 if self is ScrubDirection.FORWARD else -1.0


class PlaybackStatus(Enum):
    """Requested playback status reported by the playback manager."""

    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class SupplementDescriptor:
    """Identity of an auxiliary panel (episode list, track picker, ...).

    Two descriptors refer to the same panel when their ids match.
    """

    id: str
    title: str = ""


@dataclass
class HoldScrubSession:
    """State of a single arrow press, from press-began to release."""

    direction: ScrubDirection
    press_start_time: float
    base_skip_amount: float
    is_accelerating: bool = False
    scrubbed_position: float = 0.0
    acceleration: float = 1.0  # Factor applied on the most recent tick


class ContainerSnapshot(NamedTuple):
    """Immutable view of the container state handed to listeners."""

    overlay_state: OverlayState = OverlayState.HIDDEN
    supplement_state: SupplementState = SupplementState.CLOSED
    scrub_state: ScrubState = ScrubState.IDLE
    selected_supplement: Optional[SupplementDescriptor] = None
    is_guest_supplement: bool = False
    skip_indicator_text: Optional[str] = None
    scrubbed_seconds: float = 0.0
    preview_image: Any = None
    is_presenting_playback_controls: bool = False
    presentation_controller_should_dismiss: bool = True
    is_compact: bool = False
    is_aspect_filled: bool = False
    is_action_buttons_focused: bool = False
    animated: bool = False  # Whether the last overlay transition asked for animation

    @property
    def is_presenting_overlay(self) -> bool:
        return self.overlay_state is OverlayState.VISIBLE

    @property
    def is_presenting_supplement(self) -> bool:
        return self.supplement_state is SupplementState.OPEN

    @property
    def is_scrubbing(self) -> bool:
        return self.scrub_state is ScrubState.SCRUBBING

    @property
    def is_gesture_locked(self) -> bool:
        return self.overlay_state is OverlayState.LOCKED
