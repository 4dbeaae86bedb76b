"""Shared fixtures."""

import random
from decimal import Decimal

import pytest

from core.config import LedgerConfig, MarketConfig
from core.data.store import Store
from engine.session import TradingSession
from ledger.engine import Ledger
from progression.store import ProgressionStore
from simulator.engine import MarketSimulator


@pytest.fixture
def ledger():
    return Ledger(LedgerConfig())


@pytest.fixture
def simulator():
    return MarketSimulator(MarketConfig(), rng=random.Random(1234))


@pytest.fixture
def store(tmp_path):
    return Store(tmp_path)


@pytest.fixture
def progress(store, ledger):
    return ProgressionStore(store, ledger)


@pytest.fixture
def session(simulator, ledger, progress):
    """Session over a market where every instrument sits exactly at its starting price."""
    market = simulator.seed(
        {"ACME": Decimal("120"), "NOVA": Decimal("42"), "SPARK": Decimal("8.5")},
        now=1_700_000_000_000,
    )
    return TradingSession(
        simulator=simulator,
        ledger=ledger,
        progress=progress,
        market=market,
        rng=random.Random(7),
    )
