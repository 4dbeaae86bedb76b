"""Market simulator -- seeds synthetic price histories and advances them tick by tick.

Each tick is a pure transformation: it reads a Market snapshot and returns a
new one. The only other input is the random generator passed in at
construction, so a seeded generator gives a reproducible price path.

Per-instrument update rule:
    drift = last * uniform(-drift_pct, +drift_pct)
    jump  = uniform(-jump_size, +jump_size) with probability jump_probability, else 0
    next  = max(floor, round2(last + drift + jump))
"""

from __future__ import annotations

import logging
import random
from collections.abc import Mapping
from decimal import Decimal

from core.config import MarketConfig
from core.models.market import Market, PricePoint, PriceSeries, now_millis
from core.money import round2, to_decimal

logger = logging.getLogger(__name__)

HOUR_MS = 3_600_000

# Centre of the seed noise; slightly below 0.5 so seeded histories lean upward.
SEED_NOISE_BIAS = 0.45
SEED_NOISE_SCALE = 0.02


class MarketSimulator:
    """Owns the price-update rule for a set of instruments.

    Usage:
        sim = MarketSimulator(MarketConfig(), rng=random.Random(42))
        market = sim.seed({"ACME": Decimal("120")})
        market = sim.tick(market)
    """

    def __init__(
        self,
        config: MarketConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._config = config or MarketConfig()
        if rng is None:
            rng = random.Random(self._config.seed)
        self._rng = rng

    @property
    def config(self) -> MarketConfig:
        return self._config

    @property
    def floor(self) -> Decimal:
        return self._config.price_floor

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def seed(
        self,
        instruments: Mapping[str, Decimal | float | int] | None = None,
        now: int | None = None,
        rng: random.Random | None = None,
    ) -> Market:
        """Build the initial Market with a synthetic history for every instrument.

        History points are one hour apart and end at `now`. Early points
        carry the most noise; the last point is exactly the starting price.
        """
        if instruments is None:
            instruments = self._config.instruments
        now = now_millis() if now is None else now
        rng = rng or self._rng

        series = {
            symbol: self._seed_series(symbol, round2(start), now, rng)
            for symbol, start in instruments.items()
        }
        logger.info(
            "Seeded market with %d instruments (%d points each)",
            len(series), self._config.history_length,
        )
        return Market(as_of=now, instruments=series)

    def _seed_series(
        self,
        symbol: str,
        start: Decimal,
        now: int,
        rng: random.Random,
    ) -> PriceSeries:
        if start <= 0:
            raise ValueError(f"Starting price for {symbol} must be positive, got {start}")

        n = self._config.history_length
        points = []
        for i in range(n):
            damping = (n - 1 - i) / n
            noise = (rng.random() - SEED_NOISE_BIAS) * SEED_NOISE_SCALE * damping
            price = self._clamp(round2(start * (1 + to_decimal(noise))))
            points.append(PricePoint(timestamp=now - (n - 1 - i) * HOUR_MS, price=price))

        history = tuple(points[-self._config.max_history:])
        return PriceSeries(symbol=symbol, current_price=history[-1].price, history=history)

    # ------------------------------------------------------------------
    # Ticking
    # ------------------------------------------------------------------

    def tick(
        self,
        market: Market,
        now: int | None = None,
        rng: random.Random | None = None,
    ) -> Market:
        """Advance every instrument by one step and return the next Market.

        `market` is left untouched. Never raises for a valid Market.
        """
        now = now_millis() if now is None else now
        rng = rng or self._rng
        instruments = {
            symbol: series.append(
                PricePoint(timestamp=now, price=self.next_price(series.current_price, rng)),
                self._config.max_history,
            )
            for symbol, series in market.instruments.items()
        }
        return Market(as_of=now, instruments=instruments)

    def next_price(self, last: Decimal, rng: random.Random | None = None) -> Decimal:
        """Apply one step of the update rule to a single price."""
        cfg = self._config
        rng = rng or self._rng
        drift = last * to_decimal(rng.uniform(-cfg.drift_pct, cfg.drift_pct))
        jump = Decimal(0)
        if rng.random() < cfg.jump_probability:
            jump = to_decimal(rng.uniform(-cfg.jump_size, cfg.jump_size))
            logger.debug("News shock: %+.2f on %s", jump, last)
        return self._clamp(round2(last + drift + jump))

    def _clamp(self, price: Decimal) -> Decimal:
        return max(self.floor, price)
