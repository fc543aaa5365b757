from pathlib import Path

from craftbot import main as craftbot_main
from craftbot.config import CONFIG, BehaviorConfig, Config, HarvestConfig, load_config


def test_config_module_loads_project_yaml():
    assert isinstance(CONFIG, Config)
    assert isinstance(CONFIG.behavior, BehaviorConfig)
    assert isinstance(CONFIG.harvest, HarvestConfig)
    assert CONFIG.behavior.chest_location == (10.0, 63.0, -55.0)
    assert CONFIG.behavior.deposit_threshold == 64
    assert CONFIG.navigation.stuck_limit == 3
    assert CONFIG.harvest.crop == "sugar_cane"
    assert CONFIG.paths["event_log"] == "logs/events.jsonl"


def test_missing_file_gives_defaults(tmp_path: Path):
    cfg = load_config(tmp_path / "absent.yaml")
    assert cfg.behavior.retreat_health == 6
    assert cfg.settings_path == "data/data.json"
    assert cfg.paths is None


def test_partial_yaml_overrides_and_coerces(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "behavior:\n"
        "  deposit_threshold: 32\n"
        "  retreat_health: 4\n"
        "  chest_location: [1, 2, 3]\n"
        "  unknown_key: 5\n"
        "navigation:\n"
        "  max_retries: null\n"
        "logging:\n"
        "  global_level: debug\n"
        "settings:\n"
        "  path: custom.json\n",
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.behavior.deposit_threshold == 32
    assert cfg.behavior.retreat_health == 4.0
    assert isinstance(cfg.behavior.retreat_health, float)
    assert cfg.behavior.chest_location == (1.0, 2.0, 3.0)
    assert cfg.navigation.max_retries == 3
    assert cfg.logging.global_level == "DEBUG"
    assert cfg.settings_path == "custom.json"


def test_load_settings_env_overrides(tmp_path: Path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("bot:\n  username: FromYaml\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CRAFTBOT_BRIDGE_URL", "http://bridge:4000")
    monkeypatch.delenv("CRAFTBOT_USERNAME", raising=False)

    cfg = craftbot_main.load_settings(path)

    assert cfg.bot.username == "FromYaml"
    assert cfg.bridge.base_url == "http://bridge:4000"

    monkeypatch.setenv("CRAFTBOT_USERNAME", "EnvBot")
    assert craftbot_main.load_settings(path).bot.username == "EnvBot"


def test_parse_args():
    args = craftbot_main.parse_args(["--sim", "--config", "other.yaml"])
    assert args.sim
    assert args.config == "other.yaml"
    assert not craftbot_main.parse_args([]).sim


def test_integer_yaml_values_become_floats_for_float_fields(tmp_path: Path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "navigation:\n"
        "  tolerance_step: 3\n"
        "  door_radius: 4\n"
        "  max_retries: 5\n"
        "armor:\n"
        "  auto_equip: 0\n"
        "  material_priority: [iron, leather]\n",
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert isinstance(cfg.navigation.tolerance_step, float)
    assert cfg.navigation.tolerance_step == 3.0
    assert isinstance(cfg.navigation.door_radius, float)
    assert isinstance(cfg.navigation.max_retries, int)
    assert cfg.navigation.max_retries == 5
    assert cfg.armor.auto_equip is False
    assert cfg.armor.material_priority == ["iron", "leather"]


def test_float_fields_default_to_floats(tmp_path: Path):
    cfg = load_config(tmp_path / "absent.yaml")

    assert isinstance(cfg.behavior.retreat_health, float)
    assert isinstance(cfg.navigation.tolerance_step, float)
    assert cfg.armor.auto_equip is True
    assert cfg.combat.auto_equip_weapon is True
