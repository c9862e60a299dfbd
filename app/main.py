"""
FastAPI Application - Live Price Feed & Swap Quote API

Exposes the price feed, swap quotes and (simulated) swap submission over
REST and WebSocket. The API only renders what the core produces and
forwards intents to it; all feed and quote logic lives in services/.

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

Docs:
    - Swagger: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
"""

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from typing import List
from contextlib import asynccontextmanager

from core.config import settings, validate_configuration
from core.errors import SwapSubmissionError, TransportError
from core.logging import logger
from core.schemas import FeedSnapshot, QuoteResult, SwapReceipt, SwapRequest, Token
from services.event_bus import FEED_STATE_TOPIC, bus
from services.feed_controller import get_feed_controller
from services.quote_engine import DeterministicBalanceProvider, quote_for_state
from services.swap_submitter import SwapSubmitter


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("=== Application Starting ===")
    try:
        validate_configuration()
        await feed_controller.start()
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info("=== Shutting Down ===")
    try:
        await feed_controller.stop()
        logger.info("=== Shutdown Complete ===")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Swap Feed API",
    description=(
        "Live token prices and swap quotes for the demo swap form.\n\n"
        "## REST Endpoints\n"
        "- `GET /feed` - Feed status, token catalog and refresh countdown\n"
        "- `GET /tokens` - Token catalog (sorted by symbol)\n"
        "- `POST /feed/refresh` - Refresh prices now\n"
        "- `GET /balances/{symbol}` - Available balance of a token\n"
        "- `GET /quote` - Quote a swap (`from_symbol`, `to_symbol`, `amount`)\n"
        "- `POST /swap` - Submit a swap (simulated)\n"
        "- `GET /health` - Health check\n\n"
        "## WebSocket Streams\n"
        "- `ws://{host}/ws/feed` - Current feed state, then every state change\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

feed_controller = get_feed_controller()
balances = DeterministicBalanceProvider()
submitter = SwapSubmitter()


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root():
    """API information."""
    state = feed_controller.get_state()
    return {
        "name": "Swap Feed API",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs",
        "feed": state.status.value,
        "tokens": len(state.catalog),
    }


@app.get("/health", tags=["System"])
async def health_check():
    """Healthy once prices were loaded; degraded while the feed is failing."""
    state = feed_controller.get_state()
    return {
        "status": "healthy" if state.is_ready else "degraded",
        "feed": state.status.value,
        "stale": feed_controller.is_stale,
        "last_updated": state.last_updated.isoformat() if state.last_updated else None,
    }


# ============================================
# Price Feed Endpoints
# ============================================

@app.get("/feed", response_model=FeedSnapshot, tags=["Prices"])
async def get_feed():
    """Feed status, catalog, last update and seconds until the next refresh."""
    return feed_controller.snapshot()


@app.get("/tokens", response_model=List[Token], tags=["Prices"])
async def get_tokens():
    """Token catalog, one entry per symbol, sorted by symbol."""
    return list(feed_controller.get_state().catalog)


@app.post("/feed/refresh", response_model=FeedSnapshot, tags=["Prices"])
async def refresh_feed():
    """
    Refresh prices immediately.

    Returns 502 with the transport message when the price source fails;
    the previous catalog stays available through GET /feed.
    """
    try:
        await feed_controller.refresh()
    except TransportError as e:
        raise HTTPException(status_code=502, detail=e.message)
    return feed_controller.snapshot()


# ============================================
# Quote & Swap Endpoints
# ============================================

@app.get("/balances/{symbol}", tags=["Swap"])
async def get_balance(symbol: str):
    """Balance available for a token of the catalog."""
    if not any(token.symbol == symbol for token in feed_controller.get_state().catalog):
        raise HTTPException(status_code=404, detail=f"Unknown token: {symbol}")
    return {"symbol": symbol, "balance": balances.balance_of(symbol)}


@app.get("/quote", response_model=QuoteResult, tags=["Swap"])
async def get_quote(
    from_symbol: str = Query(..., description="Token to pay (e.g., ETH)"),
    to_symbol: str = Query(..., description="Token to receive (e.g., BTC)"),
    amount: float = Query(..., description="Amount of the token to pay"),
):
    """
    Quote a swap. Invalid quotes are returned with is_valid=false and an
    invalid_reason, not as errors.
    """
    return quote_for_state(feed_controller.get_state(), from_symbol, to_symbol, amount, balances)


@app.post("/swap", response_model=SwapReceipt, tags=["Swap"])
async def submit_swap(request: SwapRequest):
    """
    Submit a swap (simulated execution).

    409 when the quote is not valid or another swap is being submitted.
    """
    quote = quote_for_state(
        feed_controller.get_state(), request.from_symbol, request.to_symbol, request.amount, balances
    )
    if not quote.is_valid:
        raise HTTPException(status_code=409, detail=f"Swap not allowed: {quote.invalid_reason.value}")

    try:
        receipt = await submitter.submit(quote)
    except SwapSubmissionError as e:
        raise HTTPException(status_code=502, detail=f"Swap failed: {e}")

    if receipt is None:
        raise HTTPException(status_code=409, detail="Another swap is being submitted")
    return receipt


# ============================================
# WebSocket Endpoints
# ============================================

@app.websocket("/ws/feed")
async def websocket_feed(websocket: WebSocket):
    """
    Feed state stream: the current state first, then each published state.

    Example:
        ws://localhost:8000/ws/feed
    """
    await websocket.accept()
    logger.info("WS connected: feed")
    queue = await bus.subscribe(FEED_STATE_TOPIC)
    try:
        await websocket.send_json(feed_controller.get_state().model_dump(mode="json"))
        while True:
            event = await queue.get()
            await websocket.send_json(event)
    except WebSocketDisconnect:
        logger.info("WS disconnected: feed")
    except Exception as e:
        logger.error(f"WS error feed: {e}")
        try:
            await websocket.close(code=1011, reason="Internal error")
        except RuntimeError:
            # Socket already closed by the peer
            pass
    finally:
        await bus.unsubscribe(FEED_STATE_TOPIC, queue)
        logger.info("WS ended: feed")
