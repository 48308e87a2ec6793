"""
Playback container state machine.

Single authority for everything layered over the video surface: overlay
visibility, supplement panels, scrubbing, hold-to-scrub acceleration and the
idle auto-hide timer. All mutation happens on one scheduler, so timer
callbacks and user input never interleave mid-transition.

Idle timer invariant: the timer is armed iff the overlay is VISIBLE, no
supplement is OPEN, scrubbing is IDLE and playback is not PAUSED. Every
transition that touches one of those four inputs goes through
_sync_idle_timer().
"""

import asyncio
import itertools
import weakref
from typing import Any, AsyncIterable, Callable, Optional

from loguru import logger

from playback_container.core.config import Config
from playback_container.core.scheduler import Scheduler, TimerHandle, cancel_handle

from .collaborators import (
    MediaEngineProxy,
    PlaybackManager,
    PresentationController,
    PreviewImageProvider,
)
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
from .preview import PreviewImageLoader
from .scrub import (
    acceleration_factor,
    clamp_position,
    format_scrub_delta,
    format_skip_indicator,
    next_scrub_position,
)
from .timer import PokeIntervalTimer

SnapshotListener = Callable[[ContainerSnapshot], None]


class PlaybackContainerState:
    """Overlay, supplement and scrub state for one playback session.

    Create one per playback session and call close() when the session ends.
    Listeners registered with subscribe() receive a fresh ContainerSnapshot
    after every mutation that changes it.
    """

    def __init__(
        self,
        scheduler: Optional[Scheduler] = None,
        config: Optional[Config] = None,
        manager: Optional[PlaybackManager] = None,
        presentation: Optional[PresentationController] = None,
    ) -> None:
        if scheduler is None:
            scheduler = asyncio.get_running_loop()
        self._scheduler = scheduler
        self._config = config or Config()

        overlay_config = self._config.overlay
        self.timer = PokeIntervalTimer(
            scheduler, overlay_config.idle_hide_delay, name="idle"
        )
        self.jump_progress_timer = PokeIntervalTimer(
            scheduler, overlay_config.jump_progress_delay, name="jump-progress"
        )
        self._preview = PreviewImageLoader(on_change=self._on_preview_image)

        # Primary state
        self._overlay_state = OverlayState.HIDDEN
        self._supplement_state = SupplementState.CLOSED
        self._scrub_state = ScrubState.IDLE
        self._playback_status = PlaybackStatus.PLAYING
        self._animated = False

        # Secondary state
        self._selected_supplement: Optional[SupplementDescriptor] = None
        self._is_guest_supplement = False
        self._is_compact = False
        self._is_aspect_filled = False
        self._is_action_buttons_focused = False
        self._skip_indicator_text: Optional[str] = None
        self._scrubbed_seconds = 0.0
        self.last_tap_location: Optional[tuple[float, float]] = None

        # Hold-to-scrub
        self._session: Optional[HoldScrubSession] = None
        self._hold_handle: Optional[TimerHandle] = None
        self._tick_handle: Optional[TimerHandle] = None
        self._indicator_clear_handle: Optional[TimerHandle] = None
        self._indicator_tokens = itertools.count(1)
        self._indicator_token = 0

        # Collaborators are observed, never owned
        self._manager_ref: Optional[weakref.ReferenceType] = None
        self._presentation_ref: Optional[weakref.ReferenceType] = None
        self.manager = manager
        self.presentation = presentation

        self._listeners: list[SnapshotListener] = []
        self._status_unsubscribe: Optional[Callable[[], None]] = None
        self._status_task: Optional[asyncio.Task] = None
        self._unsubscribe_timers = [
            self.timer.subscribe(self._on_idle_timeout),
            self.jump_progress_timer.subscribe(self._on_jump_progress_timeout),
        ]
        self._last_snapshot = self.snapshot()

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    @property
    def manager(self) -> Optional[PlaybackManager]:
        return self._manager_ref() if self._manager_ref is not None else None

    @manager.setter
    def manager(self, manager: Optional[PlaybackManager]) -> None:
        self._manager_ref = weakref.ref(manager) if manager is not None else None
        if manager is not None:
            self._playback_status = manager.playback_status

    @property
    def presentation(self) -> Optional[PresentationController]:
        return self._presentation_ref() if self._presentation_ref is not None else None

    @presentation.setter
    def presentation(self, presentation: Optional[PresentationController]) -> None:
        self._presentation_ref = (
            weakref.ref(presentation) if presentation is not None else None
        )

    def _proxy(self) -> Optional[MediaEngineProxy]:
        manager = self.manager
        return manager.proxy if manager is not None else None

    def _runtime(self) -> Optional[float]:
        manager = self.manager
        return manager.runtime if manager is not None else None

    def _preview_provider(self) -> Optional[PreviewImageProvider]:
        manager = self.manager
        return manager.preview_image_provider if manager is not None else None

    def _present_supplement_container(self, present: bool) -> None:
        presentation = self.presentation
        if presentation is None:
            logger.debug("No presentation controller, dropping supplement request")
            return
        presentation.present_supplement_container(present)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def overlay_state(self) -> OverlayState:
        return self._overlay_state

    @property
    def supplement_state(self) -> SupplementState:
        return self._supplement_state

    @property
    def scrub_state(self) -> ScrubState:
        return self._scrub_state

    @property
    def playback_status(self) -> PlaybackStatus:
        return self._playback_status

    @property
    def is_presenting_overlay(self) -> bool:
        return self._overlay_state is OverlayState.VISIBLE

    @property
    def is_presenting_supplement(self) -> bool:
        return self._supplement_state is SupplementState.OPEN

    @property
    def is_scrubbing(self) -> bool:
        return self._scrub_state is ScrubState.SCRUBBING

    @property
    def is_gesture_locked(self) -> bool:
        return self._overlay_state is OverlayState.LOCKED

    @property
    def is_presenting_playback_controls(self) -> bool:
        if self._overlay_state is not OverlayState.VISIBLE:
            return False
        if self._supplement_state is SupplementState.CLOSED:
            return True
        # Compact layouts keep the transport bar alongside an open supplement
        return self._is_compact

    @property
    def selected_supplement(self) -> Optional[SupplementDescriptor]:
        return self._selected_supplement

    @property
    def is_guest_supplement(self) -> bool:
        return self._is_guest_supplement

    @property
    def is_action_buttons_focused(self) -> bool:
        return self._is_action_buttons_focused

    @property
    def skip_indicator_text(self) -> Optional[str]:
        return self._skip_indicator_text

    @property
    def scrubbed_seconds(self) -> float:
        return self._scrubbed_seconds

    @property
    def preview_image(self) -> Any:
        return self._preview.image

    @property
    def hold_session(self) -> Optional[HoldScrubSession]:
        return self._session

    def snapshot(self) -> ContainerSnapshot:
        """Current state as an immutable snapshot."""
        return ContainerSnapshot(
            overlay_state=self._overlay_state,
            supplement_state=self._supplement_state,
            scrub_state=self._scrub_state,
            selected_supplement=self._selected_supplement,
            is_guest_supplement=self._is_guest_supplement,
            skip_indicator_text=self._skip_indicator_text,
            scrubbed_seconds=self._scrubbed_seconds,
            preview_image=self._preview.image,
            is_presenting_playback_controls=self.is_presenting_playback_controls,
            presentation_controller_should_dismiss=(
                self._supplement_state is SupplementState.CLOSED
            ),
            is_compact=self._is_compact,
            is_aspect_filled=self._is_aspect_filled,
            is_action_buttons_focused=self._is_action_buttons_focused,
            animated=self._animated,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a snapshot listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        snapshot = self.snapshot()
        if snapshot == self._last_snapshot:
            return
        self._last_snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)

    # ------------------------------------------------------------------
    # Idle timer
    # ------------------------------------------------------------------

    def _idle_timer_should_run(self) -> bool:
        return (
            self._overlay_state is OverlayState.VISIBLE
            and self._supplement_state is SupplementState.CLOSED
            and self._scrub_state is ScrubState.IDLE
            and self._playback_status is not PlaybackStatus.PAUSED
        )

    def _sync_idle_timer(self) -> None:
        if self._idle_timer_should_run():
            self.timer.poke()
        else:
            self.timer.stop()

    def _on_idle_timeout(self) -> None:
        if not self._idle_timer_should_run():
            logger.debug("Idle timeout ignored, overlay is in use")
            return
        logger.debug("Idle timeout, hiding overlay")
        self._apply_overlay_state(OverlayState.HIDDEN, animated=True)

    def register_activity(self) -> None:
        """Restart the idle countdown after user interaction with the overlay."""
        if self._idle_timer_should_run():
            self.timer.poke()

    # ------------------------------------------------------------------
    # Overlay
    # ------------------------------------------------------------------

    def _apply_overlay_state(self, state: OverlayState, animated: bool) -> None:
        if state is not self._overlay_state:
            logger.debug(f"Overlay {self._overlay_state.value} -> {state.value}")
        self._overlay_state = state
        self._animated = animated
        self._sync_idle_timer()
        self._publish()

    def set_overlay_visible(self, visible: bool, animated: bool = True) -> None:
        """Show or hide the overlay. Ignored while gestures are locked."""
        if self.is_gesture_locked:
            logger.debug("Gestures locked, ignoring overlay visibility request")
            return
        target = OverlayState.VISIBLE if visible else OverlayState.HIDDEN
        self._apply_overlay_state(target, animated)

    def toggle_overlay(self) -> None:
        self.set_overlay_visible(self._overlay_state is not OverlayState.VISIBLE)

    def set_gesture_locked(self, locked: bool) -> None:
        """Lock gestures (forces LOCKED) or unlock them (always lands on HIDDEN)."""
        target = OverlayState.LOCKED if locked else OverlayState.HIDDEN
        self._apply_overlay_state(target, animated=False)

    # ------------------------------------------------------------------
    # Scrubbing
    # ------------------------------------------------------------------

    def _apply_scrub_state(self, state: ScrubState) -> None:
        if state is not self._scrub_state:
            logger.debug(f"Scrub {self._scrub_state.value} -> {state.value}")
        self._scrub_state = state
        if state is ScrubState.IDLE:
            # Published by the calling operation once the transition is complete
            self._preview.clear(notify=False)
        self._sync_idle_timer()

    def set_scrubbing(self, active: bool) -> None:
        self._apply_scrub_state(ScrubState.SCRUBBING if active else ScrubState.IDLE)
        self._publish()

    def set_scrubbed_seconds(self, seconds: float) -> None:
        """Move the scrub position (progress bar drag path)."""
        self._update_scrubbed(clamp_position(seconds, self._runtime()))
        self._publish()

    def _update_scrubbed(self, seconds: float) -> None:
        self._scrubbed_seconds = seconds
        if self._scrub_state is ScrubState.SCRUBBING:
            self._preview.request(self._preview_provider(), seconds)

    def _on_preview_image(self, image: Any) -> None:
        self._publish()

    # ------------------------------------------------------------------
    # Supplements
    # ------------------------------------------------------------------

    def _apply_selected_supplement(
        self, descriptor: Optional[SupplementDescriptor]
    ) -> None:
        self._selected_supplement = descriptor
        state = SupplementState.OPEN if descriptor is not None else SupplementState.CLOSED
        if state is not self._supplement_state:
            logger.debug(f"Supplement {self._supplement_state.value} -> {state.value}")
        self._supplement_state = state
        if state is SupplementState.CLOSED:
            self._is_guest_supplement = False
        self._sync_idle_timer()

    def select_supplement(
        self, descriptor: Optional[SupplementDescriptor], is_guest: bool = False
    ) -> None:
        """Toggle a supplement: selecting the open one closes it, another one opens."""
        self._is_guest_supplement = is_guest

        current_id = self._selected_supplement.id if self._selected_supplement else None
        new_id = descriptor.id if descriptor is not None else None

        if new_id == current_id:
            self._apply_selected_supplement(None)
            self._present_supplement_container(False)
        else:
            self._apply_selected_supplement(descriptor)
            self._present_supplement_container(descriptor is not None)

        self._publish()

    def close_supplement(self) -> None:
        if self._selected_supplement is not None:
            self.select_supplement(self._selected_supplement)

    # ------------------------------------------------------------------
    # Playback status
    # ------------------------------------------------------------------

    def handle_playback_status(self, status: PlaybackStatus) -> None:
        """Keep the overlay up while paused, resume auto-hide while playing."""
        self._playback_status = status
        if status is PlaybackStatus.PAUSED:
            if self._overlay_state is OverlayState.HIDDEN:
                self._apply_overlay_state(OverlayState.VISIBLE, animated=True)
            self.timer.stop()
        else:
            self._sync_idle_timer()
        self._publish()

    def observe_playback_status(
        self, stream: Optional[AsyncIterable[PlaybackStatus]] = None
    ) -> None:
        """Follow playback status from the manager, or from ``stream`` if given.

        With no stream the manager's listener API is used and its current
        status applies immediately. A stream is consumed on an asyncio task,
        so that form needs a running loop.
        """
        self._stop_status_observation()

        if stream is not None:
            self._status_task = asyncio.get_running_loop().create_task(
                self._consume_status_stream(stream)
            )
            return

        manager = self.manager
        if manager is None:
            logger.debug("No playback manager to observe")
            return

        handler = weakref.WeakMethod(self.handle_playback_status)

        def listener(status: PlaybackStatus) -> None:
            method = handler()
            if method is not None:
                method(status)

        self._status_unsubscribe = manager.add_status_listener(listener)
        self.handle_playback_status(manager.playback_status)

    async def _consume_status_stream(
        self, stream: AsyncIterable[PlaybackStatus]
    ) -> None:
        async for status in stream:
            self.handle_playback_status(status)

    def _stop_status_observation(self) -> None:
        if self._status_unsubscribe is not None:
            self._status_unsubscribe()
            self._status_unsubscribe = None
        if self._status_task is not None:
            self._status_task.cancel()
            self._status_task = None

    # ------------------------------------------------------------------
    # Hold-to-scrub
    # ------------------------------------------------------------------

    def handle_arrow_press_began(
        self, direction: ScrubDirection, skip_amount: float
    ) -> None:
        """Skip immediately, then start accelerated scrubbing if the press is held."""
        # Orphaned timers from a previous press must not fire into this one
        self._cancel_scrub_timers()
        self._invalidate_indicator_clear()
        if self._session is not None and self._session.is_accelerating:
            self._apply_scrub_state(ScrubState.IDLE)

        self._session = HoldScrubSession(
            direction=direction,
            press_start_time=self._scheduler.time(),
            base_skip_amount=skip_amount,
            scrubbed_position=self._scrubbed_seconds,
        )

        self._perform_skip(direction, skip_amount)

        self._hold_handle = self._scheduler.call_later(
            self._config.overlay.hold_threshold, self._on_hold_threshold
        )
        self._publish()

    def handle_arrow_press_ended(self) -> None:
        """Commit an accelerated scrub if one is running and schedule the indicator clear."""
        cancel_handle(self._hold_handle)
        self._hold_handle = None

        session = self._session
        if session is not None and session.is_accelerating:
            cancel_handle(self._tick_handle)
            self._tick_handle = None
            session.is_accelerating = False
            self._apply_scrub_state(ScrubState.IDLE)

            proxy = self._proxy()
            if proxy is not None:
                logger.debug(f"Committing hold-scrub seek to {session.scrubbed_position:.1f}s")
                proxy.set_position(session.scrubbed_position)
            else:
                logger.debug("No media engine, dropping hold-scrub seek")

        self._session = None
        self._schedule_indicator_clear()
        self._publish()

    def cleanup_scrubbing(self) -> None:
        """Cancel every scrub timer and discard any hold session. Safe to repeat."""
        self._cancel_scrub_timers()
        self._invalidate_indicator_clear()

        if self._session is not None and self._session.is_accelerating:
            self._apply_scrub_state(ScrubState.IDLE)

        self._session = None
        self._skip_indicator_text = None
        self._publish()

    def is_scrubbing_direction(self, direction: ScrubDirection) -> bool:
        """True while a press session runs in exactly ``direction``."""
        return self._session is not None and self._session.direction is direction

    def _perform_skip(self, direction: ScrubDirection, skip_amount: float) -> None:
        proxy = self._proxy()
        if proxy is None:
            logger.debug("No media engine, dropping skip")
        elif direction is ScrubDirection.FORWARD:
            proxy.jump_forward(skip_amount)
        else:
            proxy.jump_backward(skip_amount)
        self._skip_indicator_text = format_skip_indicator(direction, skip_amount)

    def _on_hold_threshold(self) -> None:
        self._hold_handle = None
        session = self._session
        if session is None:
            return

        runtime = self._runtime()
        if runtime is None or runtime <= 0:
            logger.debug("Runtime unknown, hold-scrub acceleration disabled")
            return

        session.is_accelerating = True
        manager = self.manager
        if manager is not None:
            session.scrubbed_position = manager.position
        self._scrubbed_seconds = session.scrubbed_position
        self._apply_scrub_state(ScrubState.SCRUBBING)
        logger.debug(
            f"Hold-scrub {session.direction.value} from {session.scrubbed_position:.1f}s"
        )

        self._schedule_acceleration_tick()
        self._publish()

    def _schedule_acceleration_tick(self) -> None:
        self._tick_handle = self._scheduler.call_later(
            self._config.overlay.acceleration_tick_interval,
            self._on_acceleration_tick,
        )

    def _on_acceleration_tick(self) -> None:
        self._tick_handle = None
        session = self._session
        if session is None or not session.is_accelerating:
            return

        scrub_config = self._config.scrub
        elapsed = self._scheduler.time() - session.press_start_time
        factor = acceleration_factor(
            elapsed,
            max_acceleration=scrub_config.max_acceleration,
            ramp_rate=scrub_config.acceleration_ramp_rate,
        )
        session.acceleration = factor
        session.scrubbed_position = next_scrub_position(
            session.scrubbed_position,
            session.direction,
            session.base_skip_amount,
            factor,
            self._runtime(),
        )
        self._update_scrubbed(session.scrubbed_position)

        manager = self.manager
        committed = manager.position if manager is not None else 0.0
        self._skip_indicator_text = format_scrub_delta(
            session.scrubbed_position, committed, session.direction
        )

        self._schedule_acceleration_tick()
        self._publish()

    def _cancel_scrub_timers(self) -> None:
        cancel_handle(self._hold_handle)
        cancel_handle(self._tick_handle)
        self._hold_handle = None
        self._tick_handle = None

    def _invalidate_indicator_clear(self) -> None:
        cancel_handle(self._indicator_clear_handle)
        self._indicator_clear_handle = None
        self._indicator_token = next(self._indicator_tokens)

    def _schedule_indicator_clear(self) -> None:
        self._invalidate_indicator_clear()
        token = self._indicator_token
        self._indicator_clear_handle = self._scheduler.call_later(
            self._config.overlay.skip_indicator_clear_delay,
            self._clear_skip_indicator,
            token,
        )

    def _clear_skip_indicator(self, token: int) -> None:
        if token != self._indicator_token:
            logger.debug(f"Stale skip indicator clear (token {token}) ignored")
            return
        self._indicator_clear_handle = None
        self._skip_indicator_text = None
        self._publish()

    # ------------------------------------------------------------------
    # Passive flags
    # ------------------------------------------------------------------

    def set_compact(self, compact: bool) -> None:
        self._is_compact = compact
        self._publish()

    def set_aspect_filled(self, filled: bool) -> None:
        self._is_aspect_filled = filled
        self._publish()

    def set_action_buttons_focused(self, focused: bool) -> None:
        self._is_action_buttons_focused = focused
        self._publish()

    def record_tap(self, location: tuple[float, float]) -> None:
        """Remember a tap location until the jump-progress window lapses."""
        self.last_tap_location = location
        self.jump_progress_timer.poke()

    def _on_jump_progress_timeout(self) -> None:
        self.last_tap_location = None

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Tear down every timer, observer and pending fetch. Safe to repeat."""
        self.cleanup_scrubbing()
        self.timer.stop()
        self.jump_progress_timer.stop()
        self._stop_status_observation()
        self._preview.clear()
        for unsubscribe in self._unsubscribe_timers:
            unsubscribe()
        self._unsubscribe_timers = []
        self._listeners.clear()
        logger.debug("Playback container closed")
