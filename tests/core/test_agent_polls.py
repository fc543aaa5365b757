import asyncio

import pytest

from craftbot.core.agent import Agent
from craftbot.persistence.event_log import EventLog
from craftbot.persistence.settings import SettingsStore


@pytest.fixture
def agent(world, config):
    return Agent(world, config, settings=SettingsStore(), event_log=EventLog())


def test_polls_registered(agent):
    names = [p.name for p in agent.scheduler]
    assert names == ["events", "combat", "eat", "farm", "inventory", "snapshot", "chat"]


def test_own_chat_is_ignored(agent):
    async def main():
        return agent.handle_chat(agent.username, "pos")

    assert asyncio.run(main()) is None


def test_chat_command_runs_and_queues_reply(agent, world):
    world.add_player("Steve", (1, 64, 1))

    async def main():
        task = agent.handle_chat("Steve", "pos")
        return await task

    result = asyncio.run(main())

    assert result.message == "I am at 0, 64, 0"
    assert agent.chat.pending == ["I am at 0, 64, 0"]
    assert "Steve" in agent.state.known_players


def test_events_poll_dispatches_chat_and_reply_is_sent(agent, world):
    world.say("Steve", "inv")

    async def main():
        await agent.poll_events()
        await asyncio.gather(*list(agent._command_tasks))
        await agent.chat.flush_one()

    asyncio.run(main())

    assert world.chat_log == ["Inventory is empty!"]


def test_events_poll_counts_death(agent, world):
    world.die()

    asyncio.run(agent.poll_events())

    assert agent.state.statistics.deaths == 1


def test_farm_poll_guards(agent, world):
    world.add_block("sand", (4, 63, 0))
    world.add_block("sugar_cane", (4, 64, 0))
    world.add_block("sugar_cane", (4, 65, 0))

    assert asyncio.run(agent.poll_farm()) is None

    agent.settings.set_auto_farm(True)
    agent.state.set_task("combat", "Fighting zombie")
    assert asyncio.run(agent.poll_farm()) is None
    agent.state.cancel_task()

    agent.farmer.is_farming = True
    assert asyncio.run(agent.poll_farm()) is None
    agent.farmer.is_farming = False

    result = asyncio.run(agent.poll_farm())
    assert result.success
    assert agent.state.statistics.plants_harvested == 1


def test_inventory_poll_updates_summary(agent, world):
    world.give("oak_log", 4)

    asyncio.run(agent.poll_inventory())

    assert agent.state.inventory.logs == 4


def test_tick_once_records_poll_timings(agent):
    from craftbot.utils.observer import poll_stats

    asyncio.run(agent.scheduler.tick_once())

    stats = poll_stats()
    assert stats["events"]["samples"] >= 1
    assert all(p.errors == 0 for p in agent.scheduler)


def test_shutdown_cancels_running_command(agent, world, nav_config):
    nav_config.stuck_limit = 1000
    world.stall = True

    async def main():
        task = agent.handle_chat("Steve", "goto 50 64 50")
        await asyncio.sleep(0.05)
        await agent.shutdown()
        return task

    task = asyncio.run(main())

    assert task.cancelled()
    assert world.goal is None
    assert not agent.scheduler.running


def test_respawn_event_equips_loadout(agent, world):
    world.give("iron_sword")
    world.give("iron_helmet")
    world.give("leather_boots")
    world.die()
    world.respawn()

    asyncio.run(agent.poll_events())

    assert agent.state.statistics.deaths == 1
    assert world.held == "iron_sword"
    assert world.worn["head"] == "iron_helmet"
    assert world.worn["feet"] == "leather_boots"


def test_loadout_respects_disabled_auto_equip(agent, world):
    agent.config.armor.auto_equip = False
    agent.config.combat.auto_equip_weapon = False
    world.give("iron_sword")
    world.give("iron_helmet")
    world.respawn()

    asyncio.run(agent.poll_events())

    assert world.held is None
    assert world.worn["head"] is None


def test_run_equips_loadout_on_start(agent, world):
    world.give("stone_sword")
    world.give("chainmail_chestplate")

    asyncio.run(agent.run(asyncio.sleep(0.05)))

    assert world.held == "stone_sword"
    assert world.worn["torso"] == "chainmail_chestplate"
    assert not agent.scheduler.running
