"""
Main FastAPI application entry point.
"""

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

import numpy as np
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from premium_engine.cache import config_cache
from premium_engine.errors import QuoteValidationError, RatingConfigError
from premium_engine.middleware import PerformanceMiddleware
from premium_engine.routers import quotes, market
from premium_engine.services.market import MarketState
from premium_engine.services.quote import tick_market
from premium_engine.settings import get_settings

logger = logging.getLogger("premium_engine")

settings = get_settings()


async def drift_market_periodically(app: FastAPI, interval_seconds: float):
    """Tick the market on a fixed interval until cancelled; a failed tick is logged and skipped."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            tick_market(app.state.market, app.state.drift_rng)
        except Exception as e:
            logger.exception(f"Market tick failed | error={str(e)}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Warm the config cache, run the market drift ticker, stop it on shutdown."""
    logger.info("Starting Dynamic Premium Engine...")

    rating = config_cache.get_rating_config()
    rules = config_cache.get_explanation_rules()
    logger.info(f"Config cache warmed up: {len(rating['risk']['weights'])} risk factors, "
                f"{len(rules)} explanation rules")

    if settings.market_tick_seconds > 0:
        app.state.drift_task = asyncio.create_task(
            drift_market_periodically(app, settings.market_tick_seconds)
        )
        logger.info(f"Market drift ticker started | interval_s={settings.market_tick_seconds}")

    logger.info("Startup complete")
    yield

    task = app.state.drift_task
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        app.state.drift_task = None
    logger.info("Shutdown complete")


app = FastAPI(
    title="Dynamic Premium Engine",
    description="Risk scoring, simulated market adjustment and itemized premium quotes",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Market state and its drift generator live for the whole process
app.state.market = MarketState.from_config()
app.state.drift_rng = np.random.default_rng(settings.market_seed)
app.state.drift_task = None

app.add_middleware(PerformanceMiddleware)

# Add CORS middleware (outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(QuoteValidationError)
async def quote_validation_error_handler(request: Request, exc: QuoteValidationError):
    logger.warning(
        f"Quote rejected | request_id={getattr(request.state, 'request_id', 'unknown')} | "
        f"errors={'; '.join(exc.errors)}"
    )
    return JSONResponse(status_code=422, content={"detail": exc.errors})


@app.exception_handler(RatingConfigError)
async def rating_config_error_handler(request: Request, exc: RatingConfigError):
    logger.error(f"Rating configuration error | error={exc}")
    return JSONResponse(status_code=500, content={"detail": "Rating configuration unavailable"})


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Dynamic Premium Engine", "status": "healthy"}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "market_ticks": app.state.market.snapshot().tick_count
    }

app.include_router(quotes.router, prefix="/v1", tags=["quotes"])
app.include_router(market.router, prefix="/v1", tags=["market"])

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
