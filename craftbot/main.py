"""Bot bootstrap and run loop."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from pathlib import Path
from typing import Any, Optional, Sequence

from dotenv import load_dotenv

from .config import CONFIG, Config, load_config
from .core.agent import Agent
from .scenarios.forest_scenario import ForestScenario
from .utils.cli.command_parser import poll_console_line, start_console_thread, stop_console_thread


log_level_str = CONFIG.logging.global_level
numeric_level = getattr(logging, log_level_str, logging.INFO)
logging.basicConfig(
    level=numeric_level,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    force=True
)
logger = logging.getLogger(__name__)

# Apply per-module levels if defined
if CONFIG.logging.module_levels:
    for module_name, level_str in CONFIG.logging.module_levels.items():
        module_numeric_level = getattr(logging, level_str.upper(), None)
        if module_numeric_level is not None:
            logging.getLogger(module_name).setLevel(module_numeric_level)
        else:
            logger.warning("Invalid log level '%s' for module '%s' in config.", level_str, module_name)

# Seconds of simulated walking per sim poll
SIM_STEP = 0.05


def load_settings(config_path: str | Path = Path("config.yaml")) -> Config:
    """Read ``.env`` and the YAML config; environment variables win."""

    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    actual_config_path = Path(config_path)
    if not actual_config_path.is_file():
        project_root_config = Path(__file__).resolve().parents[1] / "config.yaml"
        if project_root_config.is_file():
            actual_config_path = project_root_config
    cfg = load_config(actual_config_path)

    bridge_url = os.getenv("CRAFTBOT_BRIDGE_URL")
    if bridge_url:
        cfg.bridge.base_url = bridge_url
    username = os.getenv("CRAFTBOT_USERNAME")
    if username:
        cfg.bot.username = username
    return cfg


def bootstrap_sim(cfg: Config) -> Agent:
    """Build an agent inside the offline forest scenario."""

    from .sim.world import SimWorld

    world = SimWorld(username=cfg.bot.username, tick_seconds=0.05)
    scenario = ForestScenario()
    scenario.setup(world)
    logger.info("[Bootstrap] Scenario '%s' ready", scenario.get_name())

    agent = Agent(world, cfg)

    def step() -> None:
        world.step(SIM_STEP)

    def console() -> None:
        line = poll_console_line()
        while line is not None:
            world.say(ForestScenario.OPERATOR, line)
            line = poll_console_line()

    agent.scheduler.register("sim", SIM_STEP, step)
    agent.scheduler.register("console", 0.1, console)
    return agent


async def bootstrap_bridge(cfg: Config) -> Agent:
    """Connect to the game bridge and build an agent around it."""

    from .bridge.client import BridgeWorld

    world = BridgeWorld(cfg.bridge, cfg.bot.username)
    await world.connect()
    return Agent(world, cfg)


def _log_statistics(agent: Agent) -> None:
    stats = agent.state.statistics
    logger.info(
        "Session over after %ds: %d logs, %d plants, %d axes, %d items deposited, %d kills, %d deaths",
        int(agent.state.uptime()),
        stats.logs_chopped,
        stats.plants_harvested,
        stats.axes_crafted,
        stats.items_deposited,
        stats.mobs_killed,
        stats.deaths,
    )


async def run(cfg: Config, sim: bool = False) -> Agent:
    agent: Optional[Agent] = None
    world: Any = None
    try:
        if sim:
            agent = bootstrap_sim(cfg)
            start_console_thread()
        else:
            agent = await bootstrap_bridge(cfg)
        world = agent.world
        await agent.run()
    finally:
        if sim:
            stop_console_thread()
        close = getattr(world, "close", None)
        if close is not None:
            await close()
        if agent is not None:
            _log_statistics(agent)
    return agent


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="craftbot", description="Run the block-world bot.")
    parser.add_argument("--sim", action="store_true", help="run in the offline forest scenario")
    parser.add_argument("--config", default="config.yaml", help="path to the YAML config")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    cfg = load_settings(args.config)
    logger.info("Starting %s (%s)", cfg.bot.username, "sim" if args.sim else cfg.bridge.base_url)
    try:
        asyncio.run(run(cfg, sim=args.sim))
    except KeyboardInterrupt:
        logger.info("KeyboardInterrupt caught. Shutting down...")


if __name__ == "__main__":
    main()
