"""Shared fixtures for playback container tests.

Everything runs on a ManualScheduler so timer behaviour is deterministic.
The simulated engine uses rate=0.0 so the playback position only moves on
explicit jumps and seeks.
"""

import pytest

from playback_container.core.config import Config
from playback_container.core.scheduler import ManualScheduler
from playback_container.domain.overlay import PlaybackContainerState
from playback_container.simulation import (
    SimulatedEngine,
    SimulatedManager,
    SimulatedPresentation,
)

RUNTIME = 3600.0
START_POSITION = 600.0


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def config() -> Config:
    return Config()


@pytest.fixture
def engine(scheduler: ManualScheduler) -> SimulatedEngine:
    return SimulatedEngine(scheduler, runtime=RUNTIME, position=START_POSITION, rate=0.0)


@pytest.fixture
def manager(engine: SimulatedEngine) -> SimulatedManager:
    return SimulatedManager(engine, runtime=RUNTIME)


@pytest.fixture
def presentation() -> SimulatedPresentation:
    return SimulatedPresentation()


@pytest.fixture
def state(
    scheduler: ManualScheduler,
    config: Config,
    manager: SimulatedManager,
    presentation: SimulatedPresentation,
):
    container = PlaybackContainerState(
        scheduler=scheduler, config=config, manager=manager, presentation=presentation
    )
    yield container
    container.close()
