"""
In-process simulation of the container's collaborators.

A scripted run drives a PlaybackContainerState on a ManualScheduler with a
simulated engine, manager and presentation layer, and records every snapshot
and engine command. Used by the ``simulate`` CLI command and by the tests.

Script format (JSON): either a list of events or an object with an
``events`` list plus optional ``runtime``, ``position`` and ``paused`` keys.
Each event has an ``at`` time in seconds and a ``type``:

- ``press``: ``button`` (RemoteButton value), ``phase`` (PressPhase value)
- ``status``: ``value`` ("playing" | "paused")
- ``overlay``: ``visible`` (bool), optional ``animated``
- ``toggle_overlay``
- ``lock``: ``locked`` (bool)
- ``scrub``: ``active`` (bool)
- ``supplement``: ``id`` (str or null), optional ``title``, ``guest``
- ``compact``: ``value`` (bool)
- ``wait``: no-op, only advances the clock
"""

import asyncio
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, NamedTuple, Optional

from loguru import logger

from playback_container.core.config import Config
from playback_container.core.scheduler import ManualScheduler
from playback_container.domain.overlay import (
    ContainerSnapshot,
    PlaybackContainerState,
    PlaybackStatus,
    PressPhase,
    RemoteButton,
    RemoteControlHandler,
    SupplementDescriptor,
)


class ScriptError(ValueError):
    """Raised for malformed simulation scripts."""


class SimulatedEngine:
    """Media engine that tracks a position against the scheduler clock."""

    def __init__(
        self,
        scheduler: ManualScheduler,
        runtime: Optional[float] = None,
        position: float = 0.0,
        rate: float = 1.0,
        playing: bool = True,
    ) -> None:
        self._scheduler = scheduler
        self.runtime = runtime
        self.rate = rate
        self.playing = playing
        self._anchor_position = position
        self._anchor_time = scheduler.time()
        self.commands: list[tuple[str, Optional[float]]] = []

    @property
    def position(self) -> float:
        position = self._anchor_position
        if self.playing:
            position += (self._scheduler.time() - self._anchor_time) * self.rate
        position = max(0.0, position)
        if self.runtime is not None:
            position = min(self.runtime, position)
        return position

    def _rebase(self, position: float) -> None:
        self._anchor_position = position
        self._anchor_time = self._scheduler.time()
        # Re-read through the property so the stored anchor is clamped
        self._anchor_position = self.position

    def jump_forward(self, seconds: float) -> None:
        self.commands.append(("jump_forward", seconds))
        self._rebase(self.position + seconds)

    def jump_backward(self, seconds: float) -> None:
        self.commands.append(("jump_backward", seconds))
        self._rebase(self.position - seconds)

    def set_position(self, seconds: float) -> None:
        self.commands.append(("set_position", seconds))
        self._rebase(seconds)

    def stop(self) -> None:
        self.commands.append(("stop", None))
        self._rebase(self.position)
        self.playing = False

    def set_playing(self, playing: bool) -> None:
        self._rebase(self.position)
        self.playing = playing


class StaticPreviewProvider:
    """Preview provider returning a label for the requested position."""

    def __init__(self, delay: float = 0.0) -> None:
        self.delay = delay
        self.requests: list[float] = []

    async def image_for(self, position: float) -> Optional[Any]:
        self.requests.append(position)
        if self.delay:
            await asyncio.sleep(self.delay)
        return f"preview@{position:.1f}"


class SimulatedManager:
    """Playback manager owning a SimulatedEngine."""

    def __init__(
        self,
        engine: Optional[SimulatedEngine],
        runtime: Optional[float] = None,
        status: PlaybackStatus = PlaybackStatus.PLAYING,
        preview_image_provider: Optional[StaticPreviewProvider] = None,
    ) -> None:
        self.engine = engine
        self._runtime = runtime
        self._status = status
        self.preview_image_provider = preview_image_provider
        self._listeners: list[Callable[[PlaybackStatus], None]] = []
        if engine is not None:
            engine.set_playing(status is PlaybackStatus.PLAYING)

    @property
    def proxy(self) -> Optional[SimulatedEngine]:
        return self.engine

    @property
    def playback_status(self) -> PlaybackStatus:
        return self._status

    @property
    def position(self) -> float:
        return self.engine.position if self.engine is not None else 0.0

    @property
    def runtime(self) -> Optional[float]:
        return self._runtime

    def add_status_listener(
        self, callback: Callable[[PlaybackStatus], None]
    ) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def set_status(self, status: PlaybackStatus) -> None:
        self._status = status
        if self.engine is not None:
            self.engine.set_playing(status is PlaybackStatus.PLAYING)
        for callback in list(self._listeners):
            callback(status)

    def toggle_play_pause(self) -> None:
        if self._status is PlaybackStatus.PLAYING:
            self.set_status(PlaybackStatus.PAUSED)
        else:
            self.set_status(PlaybackStatus.PLAYING)


class SimulatedPresentation:
    """Presentation layer that records supplement and dismiss requests."""

    def __init__(self) -> None:
        self.supplement_requests: list[bool] = []
        self.dismissed = False

    def present_supplement_container(self, present: bool) -> None:
        self.supplement_requests.append(present)

    def dismiss(self) -> None:
        self.dismissed = True


class TimelineEntry(NamedTuple):
    """One recorded moment of a simulation run."""

    time: float
    label: str
    snapshot: ContainerSnapshot


@dataclass
class SimulationResult:
    """Everything recorded by run_script."""

    timeline: list[TimelineEntry] = field(default_factory=list)
    commands: list[tuple[str, Optional[float]]] = field(default_factory=list)
    supplement_requests: list[bool] = field(default_factory=list)
    dismissed: bool = False
    final: ContainerSnapshot = ContainerSnapshot()


def _require(event: dict, key: str, index: int) -> Any:
    if key not in event:
        raise ScriptError(f"Event #{index} ({event.get('type')}) is missing '{key}'")
    return event[key]


def _parse_enum(enum_cls: Any, value: Any, index: int) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise ScriptError(
            f"Event #{index}: invalid {enum_cls.__name__} '{value}' (expected one of: {valid})"
        ) from None


def _apply_event(
    state: PlaybackContainerState,
    remote: RemoteControlHandler,
    manager: SimulatedManager,
    event: dict,
    index: int,
) -> str:
    """Apply one script event and return its timeline label."""
    event_type = event.get("type")

    if event_type == "press":
        button = _parse_enum(RemoteButton, _require(event, "button", index), index)
        phase = _parse_enum(PressPhase, _require(event, "phase", index), index)
        remote.handle_press(button, phase)
        return f"press {button.value} {phase.value}"

    if event_type == "status":
        status = _parse_enum(PlaybackStatus, _require(event, "value", index), index)
        manager.set_status(status)
        return f"status {status.value}"

    if event_type == "overlay":
        visible = bool(_require(event, "visible", index))
        state.set_overlay_visible(visible, animated=bool(event.get("animated", True)))
        return f"overlay {'show' if visible else 'hide'}"

    if event_type == "toggle_overlay":
        state.toggle_overlay()
        return "toggle overlay"

    if event_type == "lock":
        locked = bool(_require(event, "locked", index))
        state.set_gesture_locked(locked)
        return "lock" if locked else "unlock"

    if event_type == "scrub":
        active = bool(_require(event, "active", index))
        state.set_scrubbing(active)
        return f"scrub {'start' if active else 'end'}"

    if event_type == "supplement":
        supplement_id = _require(event, "id", index)
        descriptor = (
            SupplementDescriptor(id=str(supplement_id), title=event.get("title", ""))
            if supplement_id is not None
            else None
        )
        state.select_supplement(descriptor, is_guest=bool(event.get("guest", False)))
        return f"supplement {supplement_id}"

    if event_type == "compact":
        state.set_compact(bool(_require(event, "value", index)))
        return "compact"

    if event_type == "wait":
        return "wait"

    raise ScriptError(f"Event #{index}: unknown event type '{event_type}'")


def run_script(
    events: list[dict],
    runtime: Optional[float] = 3600.0,
    position: float = 0.0,
    paused: bool = False,
    settle: float = 0.0,
    config: Optional[Config] = None,
) -> SimulationResult:
    """Drive a container through ``events`` on a virtual clock.

    Args:
        events: Script events, each with an ``at`` time and a ``type``
        runtime: Item runtime in seconds, None for an unbounded stream
        position: Starting playback position
        paused: Start with playback paused
        settle: Extra seconds to run after the last event so timers can fire
        config: Configuration to build the container with

    Returns:
        SimulationResult with the recorded timeline and collaborator calls

    Raises:
        ScriptError: If an event is malformed
    """
    ordered = []
    for index, event in enumerate(events):
        if not isinstance(event, dict):
            raise ScriptError(f"Event #{index} must be an object, got {type(event).__name__}")
        try:
            at = float(event.get("at", 0.0))
        except (TypeError, ValueError):
            raise ScriptError(f"Event #{index}: 'at' must be a number") from None
        if at < 0:
            raise ScriptError(f"Event #{index}: 'at' must not be negative")
        ordered.append((at, index, event))
    ordered.sort(key=lambda item: (item[0], item[1]))

    config = config or Config()
    scheduler = ManualScheduler()
    engine = SimulatedEngine(scheduler, runtime=runtime, position=position)
    status = PlaybackStatus.PAUSED if paused else PlaybackStatus.PLAYING
    manager = SimulatedManager(engine, runtime=runtime, status=status)
    presentation = SimulatedPresentation()

    state = PlaybackContainerState(
        scheduler=scheduler, config=config, manager=manager, presentation=presentation
    )
    remote = RemoteControlHandler(state, config.player)
    result = SimulationResult()

    def record(snapshot: ContainerSnapshot) -> None:
        result.timeline.append(TimelineEntry(scheduler.time(), "state", snapshot))

    unsubscribe = state.subscribe(record)
    state.observe_playback_status()

    try:
        for at, index, event in ordered:
            scheduler.advance_to(at)
            label = _apply_event(state, remote, manager, event, index)
            result.timeline.append(TimelineEntry(scheduler.time(), label, state.snapshot()))
            logger.debug(f"t={scheduler.time():.2f} {label}")

        if settle > 0:
            scheduler.advance(settle)
    finally:
        result.final = state.snapshot()
        unsubscribe()
        state.close()

    result.commands = list(engine.commands)
    result.supplement_requests = list(presentation.supplement_requests)
    result.dismissed = presentation.dismissed
    return result


def load_script(path: Path) -> dict:
    """Read a simulation script file.

    Returns:
        Dict with ``events`` and any run options found in the file

    Raises:
        ScriptError: If the file is not a valid script
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ScriptError(f"Invalid JSON in {path}: {e}") from e

    if isinstance(data, list):
        return {"events": data}
    if not (isinstance(data, dict) and isinstance(data.get("events"), list)):
        raise ScriptError(f"{path} must contain an event list or an object with 'events'")

    script = dict(data)
    if "runtime" in script and script["runtime"] is not None:
        script["runtime"] = _number_option(script, "runtime", path)
        if script["runtime"] <= 0:
            raise ScriptError(f"{path}: 'runtime' must be positive or null")
    if "position" in script:
        script["position"] = _number_option(script, "position", path)
        if script["position"] < 0:
            raise ScriptError(f"{path}: 'position' must not be negative")
    if "paused" in script and not isinstance(script["paused"], bool):
        raise ScriptError(f"{path}: 'paused' must be true or false")
    return script


def _number_option(script: dict, key: str, path: Path) -> float:
    value = script[key]
    # bool is an int subclass but never a valid time
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ScriptError(f"{path}: '{key}' must be a number, got {value!r}")
    return float(value)
