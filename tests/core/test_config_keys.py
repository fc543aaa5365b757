import yaml
from pathlib import Path


def test_config_contains_expected_sections():
    data = yaml.safe_load((Path(__file__).resolve().parents[2] / "config.yaml").read_text())
    assert data["behavior"]["chest_location"] == [10, 63, -55]
    assert data["navigation"]["stuck_check_interval"] == 3.0
    assert data["harvest"]["recently_harvested_seconds"] == 30
    assert data["settings"]["path"] == "data/data.json"
    assert data["paths"]["event_log"] == "logs/events.jsonl"
