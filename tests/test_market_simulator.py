"""
Tests for the market simulator.

Covers:
- Seeding (history length, spacing, last point == starting price)
- Tick purity and reproducibility under a fixed seed
- Price floor and bounded history over long runs
- Forced news shocks and clamping
"""

import random
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from pydantic import ValidationError

from core.config import MarketConfig
from core.models.market import Market, PricePoint, PriceSeries
from simulator.engine import HOUR_MS, MarketSimulator

NOW = 1_700_000_000_000


class TestSeed:

    def test_seed_history_shape(self, simulator):
        market = simulator.seed({"ACME": Decimal("120")}, now=NOW)
        series = market.instruments["ACME"]

        assert market.as_of == NOW
        assert len(series.history) == 30
        assert series.history[-1].timestamp == NOW
        assert series.history[0].timestamp == NOW - 29 * HOUR_MS
        stamps = [p.timestamp for p in series.history]
        assert stamps == sorted(stamps)

    def test_seed_ends_at_starting_price(self, simulator):
        market = simulator.seed({"ACME": 120, "SPARK": 8.5}, now=NOW)
        assert market.price_of("ACME") == Decimal("120.00")
        assert market.price_of("SPARK") == Decimal("8.50")
        for series in market.instruments.values():
            assert series.current_price == series.history[-1].price

    def test_seed_noise_is_bounded(self, simulator):
        market = simulator.seed({"ORION": Decimal("320")}, now=NOW)
        for point in market.instruments["ORION"].history:
            # |noise| <= 0.55 * 0.02
            assert abs(point.price - Decimal("320")) <= Decimal("320") * Decimal("0.011") + Decimal("0.01")

    def test_seed_prices_have_two_decimals(self, simulator):
        market = simulator.seed({"NOVA": Decimal("42")}, now=NOW)
        for point in market.instruments["NOVA"].history:
            assert point.price == point.price.quantize(Decimal("0.01"))

    def test_seed_uses_config_instruments_by_default(self, simulator):
        market = simulator.seed(now=NOW)
        assert set(market.symbols) == {"ACME", "NOVA", "SPARK", "ORION"}

    def test_seed_rejects_non_positive_start(self, simulator):
        with pytest.raises(ValueError):
            simulator.seed({"BAD": 0}, now=NOW)

    def test_seed_history_respects_max_history(self):
        sim = MarketSimulator(MarketConfig(history_length=50, max_history=20), rng=random.Random(0))
        market = sim.seed({"ACME": 120}, now=NOW)
        assert len(market.instruments["ACME"].history) == 20
        assert market.price_of("ACME") == Decimal("120.00")


class TestTick:

    def test_tick_appends_one_point(self, simulator):
        market = simulator.seed({"ACME": 120}, now=NOW)
        nxt = simulator.tick(market, now=NOW + 5000)

        series = nxt.instruments["ACME"]
        assert nxt.as_of == NOW + 5000
        assert len(series.history) == 31
        assert series.history[-1].timestamp == NOW + 5000
        assert series.current_price == series.history[-1].price

    def test_tick_does_not_mutate_input(self, simulator):
        market = simulator.seed({"ACME": 120, "NOVA": 42}, now=NOW)
        before = market.model_dump_json()
        simulator.tick(market, now=NOW + 1)
        assert market.model_dump_json() == before

    def test_tick_is_reproducible_with_same_seed(self):
        config = MarketConfig()
        base = MarketSimulator(config, rng=random.Random(99)).seed(now=NOW)

        a = MarketSimulator(config, rng=random.Random(5))
        b = MarketSimulator(config, rng=random.Random(5))
        ma, mb = base, base
        for i in range(50):
            ma = a.tick(ma, now=NOW + i)
            mb = b.tick(mb, now=NOW + i)
        assert ma == mb

    def test_tick_accepts_explicit_rng(self, simulator):
        market = simulator.seed({"ACME": 120}, now=NOW)
        first = simulator.tick(market, now=NOW + 1, rng=random.Random(3))
        second = simulator.tick(market, now=NOW + 1, rng=random.Random(3))
        assert first == second

    def test_drift_stays_within_one_percent_without_jumps(self):
        sim = MarketSimulator(MarketConfig(jump_probability=0.0), rng=random.Random(11))
        market = sim.seed({"ACME": 120}, now=NOW)
        for i in range(200):
            last = market.price_of("ACME")
            market = sim.tick(market, now=NOW + i)
            assert abs(market.price_of("ACME") - last) <= last * Decimal("0.01") + Decimal("0.01")

    def test_forced_jump_moves_price_in_absolute_units(self):
        sim = MarketSimulator(
            MarketConfig(jump_probability=1.0, drift_pct=0.0, jump_size=5.0),
            rng=random.Random(4),
        )
        market = sim.seed({"ORION": 320}, now=NOW)
        nxt = sim.tick(market, now=NOW + 1)
        move = nxt.price_of("ORION") - Decimal("320.00")
        assert abs(move) <= Decimal("5.00")

    def test_crash_is_clamped_to_floor(self):
        sim = MarketSimulator(
            MarketConfig(jump_probability=1.0, drift_pct=0.0, jump_size=1000.0, price_floor=Decimal("0.10")),
            rng=random.Random(0),
        )
        market = sim.seed({"PENNY": Decimal("0.10")}, now=NOW)
        for i in range(100):
            market = sim.tick(market, now=NOW + i)
            assert market.price_of("PENNY") >= Decimal("0.10")

    def test_scenario_e_thousand_ticks_from_spark(self):
        sim = MarketSimulator(MarketConfig(), rng=random.Random(2024))
        market = sim.seed({"SPARK": Decimal("8.50")}, now=NOW)
        lengths = []
        for i in range(1000):
            market = sim.tick(market, now=NOW + i * 5000)
            series = market.instruments["SPARK"]
            assert series.current_price >= Decimal("0.1")
            assert all(p.price >= Decimal("0.1") for p in series.history)
            lengths.append(len(series.history))

        assert max(lengths) == 100
        assert lengths[-1] == 100
        assert lengths[100:] == [100] * 900


@settings(max_examples=30, deadline=None)
@given(
    seed=st.integers(min_value=0, max_value=2**32 - 1),
    start=st.decimals(min_value=Decimal("0.10"), max_value=Decimal("500"), places=2,
                      allow_nan=False, allow_infinity=False),
    ticks=st.integers(min_value=1, max_value=150),
    max_history=st.integers(min_value=1, max_value=60),
)
def test_floor_and_history_bound_hold_for_any_run(seed, start, ticks, max_history):
    sim = MarketSimulator(MarketConfig(max_history=max_history), rng=random.Random(seed))
    market = sim.seed({"X": start}, now=NOW)
    for i in range(ticks):
        market = sim.tick(market, now=NOW + i)
        series = market.instruments["X"]
        assert series.current_price >= sim.floor
        assert len(series.history) <= max_history
        assert series.current_price == series.history[-1].price


class TestModels:

    def test_series_rejects_mismatched_current_price(self):
        with pytest.raises(ValidationError):
            PriceSeries(
                symbol="ACME",
                current_price=Decimal("1.00"),
                history=(PricePoint(timestamp=0, price=Decimal("2.00")),),
            )

    def test_price_point_rejects_non_positive(self):
        with pytest.raises(ValidationError):
            PricePoint(timestamp=0, price=0)

    def test_append_truncates_from_front(self):
        series = PriceSeries(
            symbol="ACME",
            current_price=Decimal("3"),
            history=tuple(PricePoint(timestamp=i, price=Decimal(i + 1)) for i in range(3)),
        )
        nxt = series.append(PricePoint(timestamp=3, price=Decimal("4")), max_length=3)
        assert [p.timestamp for p in nxt.history] == [1, 2, 3]
        assert nxt.current_price == Decimal("4.00")
        assert len(series.history) == 3

    def test_market_key_must_match_symbol(self):
        series = PriceSeries(symbol="ACME", current_price=Decimal("1"))
        with pytest.raises(ValidationError):
            Market(as_of=0, instruments={"NOVA": series})
