"""Overlay domain - state machine around the video surface.

This domain handles:
- Overlay visibility, gesture lock and the idle auto-hide timer
- Supplement panel selection
- Scrubbing, hold-to-scrub acceleration and seek commits
- Trickplay preview fetching while scrubbing
- Remote press dispatch
"""

# Models
from .models import (
    ContainerSnapshot,
    HoldScrubSession,
    OverlayState,
    PlaybackStatus,
    ScrubDirection,
    ScrubState,
    SupplementDescriptor,
    SupplementState,
)

# Collaborator contracts
from .collaborators import (
    MediaEngineProxy,
    PlaybackManager,
    PresentationController,
    PreviewImageProvider,
)

# Components
from .timer import PokeIntervalTimer
from .preview import PreviewImageLoader
from .container import PlaybackContainerState
from .remote import PressPhase, RemoteButton, RemoteControlHandler

# Scrub helpers
from .scrub import (
    acceleration_factor,
    clamp_position,
    format_scrub_delta,
    format_skip_duration,
    format_skip_indicator,
    next_scrub_position,
)

__all__ = [
    # Models
    "ContainerSnapshot",
    "HoldScrubSession",
    "OverlayState",
    "PlaybackStatus",
    "ScrubDirection",
    "ScrubState",
    "SupplementDescriptor",
    "SupplementState",
    # Collaborators
    "MediaEngineProxy",
    "PlaybackManager",
    "PresentationController",
    "PreviewImageProvider",
    # Components
    "PokeIntervalTimer",
    "PreviewImageLoader",
    "PlaybackContainerState",
    "PressPhase",
    "RemoteButton",
    "RemoteControlHandler",
    # Scrub helpers
    "acceleration_factor",
    "clamp_position",
    "format_scrub_delta",
    "format_skip_duration",
    "format_skip_indicator",
    "next_scrub_position",
]
