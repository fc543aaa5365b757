import pytest

from craftbot.config import (
    BehaviorConfig,
    ChatConfig,
    Config,
    CraftingConfig,
    HarvestConfig,
    NavigationConfig,
    StorageConfig,
)
from craftbot.core.state import AgentState
from craftbot.persistence.event_log import EventLog
from craftbot.persistence.settings import SettingsStore
from craftbot.sim.world import SimWorld
from craftbot.systems.movement.navigation import Navigator


class FakeClock:
    """Manually advanced clock for cooldown tests."""

    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def world():
    return SimWorld(username="Bot", position=(0, 64, 0))


@pytest.fixture
def state():
    return AgentState()


@pytest.fixture
def nav_config():
    return NavigationConfig(
        stuck_check_interval=0.01,
        attempt_timeout=5.0,
        retry_backoff=0.0,
        smart_retry_backoff=0.0,
        door_wait=0.0,
    )


@pytest.fixture
def behavior():
    return BehaviorConfig(chest_location=(10, 64, -55))


@pytest.fixture
def harvest():
    return HarvestConfig(settle_delay=0.0, drop_wait=0.0, drop_settle=0.0, item_timeout=0.5)


@pytest.fixture
def crafting():
    return CraftingConfig()


@pytest.fixture
def storage():
    return StorageConfig()


@pytest.fixture
def event_log():
    return EventLog()


@pytest.fixture
def settings():
    return SettingsStore()


@pytest.fixture
def navigator(world, state, nav_config, behavior):
    return Navigator(world, state, nav_config, behavior)


@pytest.fixture
def config(nav_config, behavior, harvest):
    cfg = Config()
    cfg.navigation = nav_config
    cfg.behavior = behavior
    cfg.harvest = harvest
    cfg.chat = ChatConfig(message_delay=0.0)
    return cfg
