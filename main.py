"""Invest & Learn entrypoint -- wires all components together and starts the server.

Usage:
    python main.py
    python main.py --config /path/to/config.yaml
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import random

from aiohttp import web

from core.bus import AsyncIOBus
from core.config import AppConfig, load_config
from core.data.store import Store
from core.duration import duration_seconds
from engine.session import TradingSession
from ledger.engine import Ledger
from progression.store import ProgressionStore
from scheduler.runner import SimulationClock
from server import create_app
from simulator.engine import MarketSimulator


def setup_logging(level: str) -> None:
    """Configure logging for the application."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Quiet down noisy libraries
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Invest & Learn paper-trading simulator")
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to config.yaml (default: ~/.investlearn/config.yaml)",
    )
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help="Path to .env file (default: ~/.investlearn/.env)",
    )
    return parser.parse_args()


def build_session(config: AppConfig) -> TradingSession:
    """Construct the session and everything it owns from config."""
    rng = random.Random(config.market.seed)
    simulator = MarketSimulator(config.market, rng=rng)
    ledger = Ledger(config.ledger)

    store = Store(config.home_path)
    progress = ProgressionStore(store, ledger, storage_key=config.storage.storage_key)
    progress.load()

    events_dir = config.home_path / "events" if config.storage.audit_events else None
    bus = AsyncIOBus(events_dir=events_dir)

    return TradingSession(
        simulator=simulator,
        ledger=ledger,
        progress=progress,
        bus=bus,
        rng=rng,
    )


async def run(config_path: str | None = None, env_path: str | None = None) -> None:
    """Initialize all components, start the clock and the server."""
    config = load_config(config_path=config_path, env_path=env_path)
    logging.getLogger().setLevel(getattr(logging, config.logging.level.upper(), logging.INFO))
    logger = logging.getLogger("investlearn")
    logger.info("Configuration loaded from %s", config.home_path)

    session = build_session(config)
    clock = SimulationClock(session.tick, interval=duration_seconds(config.clock.tick_interval))

    app = create_app(config=config, session=session, clock=clock)

    await clock.start()

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, config.server.host, config.server.port)
    await site.start()

    logger.info(
        "Invest & Learn running at http://%s:%d",
        config.server.host,
        config.server.port,
    )
    logger.info("State directory: %s", config.home_path)

    # Run until interrupted
    try:
        await asyncio.Event().wait()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        logger.info("Shutting down...")
        await clock.stop()
        await runner.cleanup()
        logger.info("Shutdown complete")


def main() -> None:
    args = parse_args()
    setup_logging("INFO")
    try:
        asyncio.run(run(config_path=args.config, env_path=args.env))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
