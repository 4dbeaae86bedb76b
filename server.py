"""Lightweight aiohttp server -- JSON API for the presentation layer.

Read routes return snapshots; write routes turn requests into session
commands. The server never touches market or ledger state directly.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from aiohttp import web
from pydantic import ValidationError

from core.errors import UnknownInstrumentError, UnknownLessonError
from core.models.ledger import TradeIntent
from core.money import to_json_number

if TYPE_CHECKING:
    from core.config import AppConfig
    from core.models.progression import ProgressionState
    from engine.session import TradingSession
    from scheduler.runner import SimulationClock

logger = logging.getLogger(__name__)


def create_app(
    config: AppConfig,
    session: TradingSession,
    clock: SimulationClock | None = None,
) -> web.Application:
    """Create and configure the aiohttp application."""
    app = web.Application()

    # Store references for route handlers
    app["config"] = config
    app["session"] = session
    app["clock"] = clock

    # Register routes
    app.router.add_get("/health", handle_health)
    app.router.add_get("/market", handle_get_market)
    app.router.add_get("/market/{symbol}", handle_get_instrument)
    app.router.add_get("/state", handle_get_state)
    app.router.add_get("/portfolio", handle_get_portfolio)
    app.router.add_get("/leaderboard", handle_get_leaderboard)
    app.router.add_get("/lessons", handle_get_lessons)
    app.router.add_post("/trades", handle_trade)
    app.router.add_post("/lessons/{lesson_id}/complete", handle_complete_lesson)
    app.router.add_post("/premium", handle_premium)
    app.router.add_post("/reset", handle_reset)

    return app


def _session(request: web.Request) -> TradingSession:
    return request.app["session"]


def _state_body(state: ProgressionState) -> dict:
    """Progression state for API clients: the blob layout, cash as a JSON number."""
    return {**state.to_blob(), "cash": to_json_number(state.cash)}


# ---------------------------------------------------------------------------
# Read routes
# ---------------------------------------------------------------------------

async def handle_health(request: web.Request) -> web.Response:
    """GET /health -- health check."""
    clock: SimulationClock | None = request.app["clock"]
    market = _session(request).market_snapshot()
    return web.json_response({
        "status": "ok",
        "clock_running": bool(clock and clock.running),
        "ticks": clock.tick_count if clock else 0,
        "as_of": market.as_of,
    })


async def handle_get_market(request: web.Request) -> web.Response:
    """GET /market -- current price of every instrument (no history)."""
    market = _session(request).market_snapshot()
    return web.json_response({
        "as_of": market.as_of,
        "prices": {symbol: float(price) for symbol, price in market.prices().items()},
    })


async def handle_get_instrument(request: web.Request) -> web.Response:
    """GET /market/{symbol} -- one instrument with its full history."""
    symbol = request.match_info["symbol"]
    series = _session(request).market_snapshot().instruments.get(symbol)
    if series is None:
        return web.json_response({"error": f"Unknown instrument: {symbol}"}, status=404)
    return web.json_response(series.model_dump(mode="json"))


async def handle_get_state(request: web.Request) -> web.Response:
    """GET /state -- the user's persisted progression state."""
    return web.json_response(_state_body(_session(request).progression()))


async def handle_get_portfolio(request: web.Request) -> web.Response:
    """GET /portfolio -- holdings marked to the current prices."""
    return web.json_response(_session(request).portfolio().model_dump(mode="json"))


async def handle_get_leaderboard(request: web.Request) -> web.Response:
    entries = _session(request).leaderboard()
    return web.json_response([e.model_dump(mode="json") for e in entries])


async def handle_get_lessons(request: web.Request) -> web.Response:
    session = _session(request)
    completed = set(session.progression().completed_lessons)
    return web.json_response([
        {**lesson.model_dump(mode="json"), "completed": lesson.id in completed}
        for lesson in session.lessons
    ])


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

async def handle_trade(request: web.Request) -> web.Response:
    """POST /trades -- execute a paper trade.

    Body: {"symbol": "ACME", "side": "buy", "quantity": 10}
    """
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return web.json_response({"error": "Invalid JSON"}, status=400)

    try:
        intent = TradeIntent.model_validate(body)
    except ValidationError as exc:
        return web.json_response(
            {"error": "Invalid trade intent", "details": json.loads(exc.json())},
            status=400,
        )

    try:
        result = await _session(request).trade(intent)
    except UnknownInstrumentError as exc:
        return web.json_response({"error": str(exc)}, status=404)

    body = {
        "accepted": result.accepted,
        "reason": result.reason.value if result.reason else None,
        "message": result.message,
        "price": float(result.price),
        "cost": float(result.cost),
        "xp_awarded": result.xp_awarded,
        "state": _state_body(_session(request).progression()),
    }
    return web.json_response(body, status=200 if result.accepted else 409)


async def handle_complete_lesson(request: web.Request) -> web.Response:
    """POST /lessons/{lesson_id}/complete -- award lesson XP (first completion only)."""
    try:
        lesson_id = int(request.match_info["lesson_id"])
    except ValueError:
        return web.json_response({"error": "lesson_id must be an integer"}, status=400)

    try:
        state, awarded = await _session(request).complete_lesson(lesson_id)
    except UnknownLessonError as exc:
        return web.json_response({"error": str(exc)}, status=404)

    return web.json_response({"xp_awarded": awarded, "state": _state_body(state)})


async def handle_premium(request: web.Request) -> web.Response:
    """POST /premium -- the cosmetic subscription flow."""
    state = await _session(request).subscribe()
    return web.json_response(_state_body(state))


async def handle_reset(request: web.Request) -> web.Response:
    """POST /reset -- wipe progress back to defaults."""
    state = await _session(request).reset()
    return web.json_response(_state_body(state))
