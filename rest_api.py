"""
CloudCost REST API

FastAPI application comparing compute, storage and data transfer costs across
AWS, Azure and Google Cloud. API endpoints are organized into separate router
modules in the api/ directory.
"""
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cloudcost.cache import PricingCache
from cloudcost.config import Settings, settings as default_settings
from cloudcost.logger import logger
from cloudcost.pricing_aggregator import PricingAggregator

# Import API routers
from api import compare, health, pricing


# =============================================================================
# Lifespan Context Manager
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events."""
    print("")
    logger.info("🚀 Starting CloudCost API...")
    config: Settings = app.state.settings
    if not config.GCP_API_KEY:
        logger.warning("⚠️ GCP_API_KEY is not set. GCP prices will use static rates.")
    logger.info(f"✅ API ready. Pricing cache TTL: {config.PRICING_CACHE_TTL_SECONDS}s")

    yield

    # Cache is in-memory only; nothing to persist on shutdown
    logger.info(f"👋 Shutting down. {len(app.state.cache)} cached pricing entries discarded.")


# =============================================================================
# Error Handlers
# =============================================================================

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and out-of-range values are client errors (400)."""
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.info(f"Rejected request to {request.url.path}: {details}")
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


# =============================================================================
# FastAPI App Initialization
# =============================================================================

def create_app(
    settings: Optional[Settings] = None,
    cache: Optional[PricingCache] = None,
    aggregator: Optional[PricingAggregator] = None,
) -> FastAPI:
    """
    Build the application.

    The pricing cache and aggregator are created here, once per application,
    and handed to the routes through app.state. Tests pass their own.
    """
    settings = settings or default_settings
    if cache is None:
        cache = PricingCache(
            ttl_seconds=settings.PRICING_CACHE_TTL_SECONDS,
            max_entries=settings.PRICING_CACHE_MAX_ENTRIES or None,
        )
    if aggregator is None:
        aggregator = PricingAggregator.from_settings(cache=cache, settings=settings)

    app = FastAPI(
        title="CloudCost REST API",
        version="1.0",
        description=(
            "Estimates compute, storage and data transfer costs on **AWS**, **Azure** and "
            "**Google Cloud** from live list prices, and recommends the cheapest single "
            "provider or per-category mix. Unavailable pricing sources are replaced by "
            "static rates, so a comparison always succeeds."
        ),
        openapi_tags=[
            {"name": "Comparison", "description": "Cost comparison across providers."},
            {"name": "Pricing", "description": "Normalized provider rates and the pricing cache."},
            {"name": "Health", "description": "Liveness probe."},
        ],
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.cache = cache
    app.state.aggregator = aggregator

    # CORS (the web UI is served from a separate origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    # =========================================================================
    # Include Routers
    # =========================================================================

    app.include_router(compare.router)
    app.include_router(pricing.router)
    app.include_router(health.router)

    return app


app = create_app()


def main():
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT)


if __name__ == "__main__":
    main()
