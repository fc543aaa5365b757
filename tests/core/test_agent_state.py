import pytest

from craftbot.core.state import AgentState, Mood
from craftbot.core.vec import Vec3
from craftbot.core.world import Item


def test_set_task_switches_mood():
    state = AgentState()
    state.set_task("farm", "Looking for sugar cane")
    assert state.mood is Mood.GATHERING
    state.set_task("something_else")
    assert state.mood is Mood.WORKING


def test_complete_and_cancel_are_name_guarded():
    state = AgentState()
    state.set_task("chop", "Chopping")

    assert not state.complete_task("farm")
    assert not state.cancel_task("navigate")
    assert state.task_name() == "chop"

    assert state.complete_task("chop")
    assert state.current_task is None
    assert state.mood is Mood.IDLE
    assert state.statistics.tasks_completed == 1
    assert not state.complete_task()


def test_cancel_does_not_count_completion():
    state = AgentState()
    state.set_task("deposit")
    assert state.cancel_task()
    assert state.statistics.tasks_completed == 0
    assert state.is_idle()


def test_claim_task_respects_running_task():
    state = AgentState()
    state.set_task("combat", "Fighting zombie")

    assert not state.claim_task("chop", replace=("follow", "navigate"))
    assert state.task_name() == "combat"

    state.set_task("follow", "Following Alex")
    assert state.claim_task("chop", "Looking for trees", replace=("follow", "navigate"))
    assert state.task_name() == "chop"
    assert state.claim_task("chop", "Again")


def test_update_task_only_touches_named_task():
    state = AgentState()
    state.set_task("chop", "Looking for trees")
    state.update_task("Harvesting", "farm")
    assert state.current_task.description == "Looking for trees"
    state.update_task("Chopping log", "chop")
    assert state.current_task.description == "Chopping log"


def test_clearing_other_task_keeps_combat_mood():
    state = AgentState()
    state.set_task("chop")
    state.set_mood(Mood.COMBAT)
    state.complete_task("chop")
    assert state.mood is Mood.COMBAT


def test_set_mood_ignores_unknown():
    state = AgentState()
    assert state.set_mood("working")
    assert not state.set_mood("furious")
    assert state.mood is Mood.WORKING


def test_statistics_are_monotonic():
    state = AgentState()
    assert state.statistics.increment("logs_chopped", 3) == 3
    with pytest.raises(ValueError):
        state.statistics.increment("logs_chopped", -1)
    with pytest.raises(KeyError):
        state.statistics.increment("start_time")
    with pytest.raises(KeyError):
        state.statistics.increment("nope")


def test_memory_and_players():
    now = [50.0]
    state = AgentState(clock=lambda: now[0])
    state.remember("crafting_table", (1, 64, 2))
    assert state.recall("crafting_table") == Vec3(1, 64, 2)
    state.forget("crafting_table")
    assert state.recall("crafting_table") is None

    state.remember_player("Alex", (3, 64, 3))
    assert state.known_players["Alex"]["last_seen"] == 50.0


def test_inventory_summary_and_snapshot():
    state = AgentState(owner="Steve")
    state.update_inventory(
        [
            Item("oak_log", 5, 0),
            Item("birch_planks", 4, 1),
            Item("stick", 2, 2),
            Item("wooden_axe", 1, 3),
            Item("stone_sword", 1, 4),
        ]
    )
    assert state.inventory.logs == 5
    assert state.inventory.planks == 4
    assert state.inventory.sticks == 2
    assert [a["name"] for a in state.inventory.axes] == ["wooden_axe"]
    assert [t["name"] for t in state.inventory.tools] == ["stone_sword"]

    state.set_task("chop", "Chopping")
    snap = state.snapshot()
    assert snap["task"]["name"] == "chop"
    assert snap["mood"] == "working"
    assert snap["owner"] == "Steve"
    assert snap["inventory"]["logs"] == 5
