"""Simple configuration loader for craftbot."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


CONFIG_PATH = Path(__file__).resolve().parents[1] / "config.yaml"


DEFAULT_LOG_TYPES = [
    "oak_log",
    "birch_log",
    "spruce_log",
    "jungle_log",
    "acacia_log",
    "dark_oak_log",
    "mangrove_log",
    "cherry_log",
]

DEFAULT_AXE_PRIORITY = [
    "netherite_axe",
    "diamond_axe",
    "iron_axe",
    "golden_axe",
    "stone_axe",
    "wooden_axe",
]

DEFAULT_WEAPON_PRIORITY = [
    "netherite_axe",
    "diamond_axe",
    "netherite_sword",
    "diamond_sword",
    "iron_axe",
    "iron_sword",
    "stone_axe",
    "stone_sword",
    "golden_axe",
    "golden_sword",
    "wooden_axe",
    "wooden_sword",
]

DEFAULT_ARMOR_MATERIALS = ["netherite", "diamond", "iron", "chainmail", "golden", "leather"]


@dataclass
class BotConfig:
    """Identity of the bot inside the world."""

    username: str = "Lumberjack"
    owner: Optional[str] = None


@dataclass
class BridgeConfig:
    """Connection settings for the HTTP game bridge."""

    base_url: str = "http://127.0.0.1:3000"
    timeout: float = 10.0
    sync_interval: float = 0.25


@dataclass
class BehaviorConfig:
    """Radii and thresholds shared by the behaviours."""

    chop_radius: int = 64
    farm_radius: int = 200
    follow_distance: float = 1.0
    combat_radius: float = 16.0
    retreat_health: float = 6.0
    attack_range: float = 3.0
    bow_range: float = 32.0
    chest_location: tuple[float, float, float] = (10.0, 63.0, -55.0)
    chest_search_radius: float = 10.0
    deposit_threshold: int = 64
    return_after_chop: bool = True


@dataclass
class NavigationConfig:
    """Retry, stuck detection and timeout settings for the navigator."""

    max_retries: int = 3
    default_tolerance: float = 2.0
    tolerance_step: float = 2.0
    stuck_check_interval: float = 3.0
    stuck_distance: float = 1.0
    stuck_limit: int = 3
    attempt_timeout: float = 60.0
    retry_backoff: float = 2.0
    smart_retry_backoff: float = 1.0
    door_radius: float = 2.0
    door_wait: float = 0.5
    explore_distance: float = 50.0
    block_search_distance: float = 64.0
    home_skip_distance: float = 5.0


@dataclass
class CombatConfig:
    """Cooldowns and weapon preferences for the combat engager."""

    use_bow: bool = True
    attack_cooldown: float = 0.6
    bow_cooldown: float = 1.0
    bow_charge_ticks: int = 20
    ranged_factor: float = 2.0
    retreat_distance: float = 20.0
    auto_equip_weapon: bool = True
    weapon_priority: List[str] = field(default_factory=lambda: list(DEFAULT_WEAPON_PRIORITY))


@dataclass
class ArmorConfig:
    """Armor material preference, best first."""

    auto_equip: bool = True
    material_priority: List[str] = field(default_factory=lambda: list(DEFAULT_ARMOR_MATERIALS))


@dataclass
class HarvestConfig:
    """Settings for log chopping and crop harvesting."""

    log_types: List[str] = field(default_factory=lambda: list(DEFAULT_LOG_TYPES))
    crop: str = "sugar_cane"
    recently_harvested_seconds: float = 30.0
    batch_size: int = 10
    max_crop_height: int = 3
    settle_delay: float = 0.2
    drop_wait: float = 0.5
    drop_settle: float = 1.0
    log_collect_radius: float = 10.0
    crop_collect_radius: float = 16.0
    item_timeout: float = 8.0
    tree_radius: int = 2
    tree_height: int = 10


@dataclass
class CraftingConfig:
    """Crafting table search and tool preferences."""

    auto_craft_axe: bool = True
    table_search_radius: float = 64.0
    table_reach: float = 4.0
    axe_priority: List[str] = field(default_factory=lambda: list(DEFAULT_AXE_PRIORITY))


@dataclass
class StorageConfig:
    max_container_attempts: int = 5


@dataclass
class AutoEatConfig:
    enabled: bool = True
    min_spacing: float = 2.0


@dataclass
class SchedulerConfig:
    """Poll intervals in seconds."""

    combat_interval: float = 0.5
    eat_interval: float = 1.0
    farm_interval: float = 0.5
    inventory_interval: float = 5.0
    snapshot_interval: float = 30.0
    events_interval: float = 0.1


@dataclass
class ChatConfig:
    prefix: str = ""
    message_delay: float = 0.6


@dataclass
class LoggingConfig:
    """Logging levels applied by :mod:`craftbot.main`."""

    global_level: str = "INFO"
    verbose_polls: bool = False
    module_levels: Dict[str, str] = field(default_factory=dict)


@dataclass
class Config:
    """Top level configuration dataclass."""

    bot: BotConfig = field(default_factory=BotConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    behavior: BehaviorConfig = field(default_factory=BehaviorConfig)
    navigation: NavigationConfig = field(default_factory=NavigationConfig)
    combat: CombatConfig = field(default_factory=CombatConfig)
    armor: ArmorConfig = field(default_factory=ArmorConfig)
    harvest: HarvestConfig = field(default_factory=HarvestConfig)
    crafting: CraftingConfig = field(default_factory=CraftingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    auto_eat: AutoEatConfig = field(default_factory=AutoEatConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    chat: ChatConfig = field(default_factory=ChatConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    settings_path: Optional[str] = "data/data.json"
    paths: Optional[Dict[str, str]] = None
    cache: Optional[Dict[str, Any]] = None


def _section(cls: type, data: Dict[str, Any] | None) -> Any:
    """Build dataclass ``cls`` from ``data`` ignoring unknown keys."""

    data = data or {}
    defaults = cls()
    kwargs: Dict[str, Any] = {}
    for name, fld in defaults.__dataclass_fields__.items():
        if name not in data or data[name] is None:
            continue
        value = data[name]
        current = getattr(defaults, name)
        # Annotations are strings under postponed evaluation.
        kind = fld.type if isinstance(fld.type, str) else getattr(fld.type, "__name__", "")
        if kind == "bool" or isinstance(current, bool):
            value = bool(value)
        elif kind == "float":
            value = float(value)
        elif kind == "int":
            value = int(value)
        elif isinstance(current, tuple):
            value = tuple(float(v) for v in value)
        elif isinstance(current, list):
            value = list(value)
        elif isinstance(current, dict):
            value = dict(value)
        kwargs[name] = value
    return cls(**kwargs)


def _parse_config(data: dict[str, Any]) -> Config:
    """Convert raw ``data`` into :class:`Config`."""

    settings = data.get("settings") or {}
    logging_data = dict(data.get("logging") or {})
    if logging_data.get("global_level"):
        logging_data["global_level"] = str(logging_data["global_level"]).upper()

    return Config(
        bot=_section(BotConfig, data.get("bot")),
        bridge=_section(BridgeConfig, data.get("bridge")),
        behavior=_section(BehaviorConfig, data.get("behavior")),
        navigation=_section(NavigationConfig, data.get("navigation")),
        combat=_section(CombatConfig, data.get("combat")),
        armor=_section(ArmorConfig, data.get("armor")),
        harvest=_section(HarvestConfig, data.get("harvest")),
        crafting=_section(CraftingConfig, data.get("crafting")),
        storage=_section(StorageConfig, data.get("storage")),
        auto_eat=_section(AutoEatConfig, data.get("auto_eat")),
        scheduler=_section(SchedulerConfig, data.get("scheduler")),
        chat=_section(ChatConfig, data.get("chat")),
        logging=_section(LoggingConfig, logging_data),
        settings_path=settings.get("path", "data/data.json"),
        paths=data.get("paths"),
        cache=data.get("cache"),
    )


def load_config(path: Path = CONFIG_PATH) -> Config:
    """Load configuration from ``path`` and return a :class:`Config`."""

    path = Path(path)
    if path.is_file():
        raw = yaml.safe_load(path.read_text()) or {}
    else:
        raw = {}
    return _parse_config(raw)


# Load configuration at module import time.
CONFIG = load_config()


__all__ = [
    "CONFIG",
    "Config",
    "BotConfig",
    "BridgeConfig",
    "BehaviorConfig",
    "NavigationConfig",
    "CombatConfig",
    "ArmorConfig",
    "HarvestConfig",
    "CraftingConfig",
    "StorageConfig",
    "AutoEatConfig",
    "SchedulerConfig",
    "ChatConfig",
    "LoggingConfig",
    "load_config",
]
