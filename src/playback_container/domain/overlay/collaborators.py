"""
Contracts for the collaborators the container talks to.

None of these are owned by the container: the manager and presentation are
held weakly and the engine proxy is looked up through the manager on every
command, so any of them may be gone at any time.
"""

from typing import Any, Callable, Optional, Protocol

from .models import PlaybackStatus


class MediaEngineProxy(Protocol):
    """Fire-and-forget commands to the underlying player."""

    def jump_forward(self, seconds: float) -> None: ...

    def jump_backward(self, seconds: float) -> None: ...

    def set_position(self, seconds: float) -> None: ...

    def stop(self) -> None: ...


class PreviewImageProvider(Protocol):
    """Asynchronous trickplay image lookup."""

    async def image_for(self, position: float) -> Optional[Any]: ...


class PlaybackManager(Protocol):
    """Owner of the current item and its playback status."""

    @property
    def proxy(self) -> Optional[MediaEngineProxy]: ...

    @property
    def playback_status(self) -> PlaybackStatus: ...

    @property
    def position(self) -> float:
        """Current committed playback position in seconds."""
        ...

    @property
    def runtime(self) -> Optional[float]:
        """Total runtime in seconds, None for unbounded streams."""
        ...

    @property
    def preview_image_provider(self) -> Optional[PreviewImageProvider]: ...

    def toggle_play_pause(self) -> None: ...

    def add_status_listener(
        self, callback: Callable[[PlaybackStatus], None]
    ) -> Callable[[], None]:
        """Register a status callback; returns an unsubscribe function."""
        ...


class PresentationController(Protocol):
    """Router/presentation layer hosting the supplement container."""

    def present_supplement_container(self, present: bool) -> None: ...

    def dismiss(self) -> None: ...
