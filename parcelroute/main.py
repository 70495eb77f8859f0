"""
Delivery Pricing API - Entry Point

This module initializes the FastAPI application with configuration
validation and a provider status report on startup.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import Config, load_config, ConfigurationError
from .errors import DeliveryPricingError
from .i18n import available_locales, get_localizer, negotiate_locale
from .processing.pipeline import DeliveryPricingPipeline
from .api.routes import router, set_pipeline

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


def _request_locale(request: Request, default: str) -> str:
    lang = request.query_params.get("lang")
    if lang and lang in available_locales():
        return lang
    return negotiate_locale(request.headers.get("accept-language"), default)


async def pricing_error_handler(request: Request, exc: DeliveryPricingError) -> JSONResponse:
    """Map core errors to localized JSON; operator problems are logged, not shown."""
    config: Optional[Config] = getattr(request.app.state, "config", None)
    default_locale = config.default_locale if config else "ru"
    localizer = get_localizer(_request_locale(request, default_locale))

    if exc.audience == "operator":
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    else:
        logger.info(f"{type(exc).__name__} on {request.url.path}: {exc}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.code,
            "message": localizer.user_message(exc),
            "retryable": exc.retryable,
        },
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown."""
    # Startup
    logger.info("=" * 60)
    logger.info("DELIVERY PRICING API - STARTING")
    logger.info("=" * 60)

    if getattr(app.state, "pipeline", None) is None:
        try:
            config = app.state.config or load_config()
            pipeline = DeliveryPricingPipeline(config)
        except ConfigurationError as e:
            logger.error("=" * 60)
            logger.error("CONFIGURATION ERROR")
            logger.error("=" * 60)
            logger.error(str(e))
            logger.error("See .env.example and parcelroute/config.yaml.")
            logger.error("=" * 60)
            sys.exit(1)

        app.state.config = config
        app.state.pipeline = pipeline
        set_pipeline(pipeline)

    config = app.state.config
    logger.info(
        f"Geocoder: {config.geocoder_provider} "
        f"(fallbacks: {', '.join(config.geocoder_fallbacks) or 'none'}), "
        f"router: {config.router_provider}, pricing: {config.pricing_engine}"
    )
    for api, available in config.validate_apis().items():
        status = "CONFIGURED" if available else "NOT CONFIGURED"
        logger.info(f"  {api}: {status}")
    logger.info(f"Server ready on {config.backend_host}:{config.backend_port}")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await app.state.pipeline.close()
    logger.info("Shutdown complete")


def create_app(
    config: Optional[Config] = None,
    pipeline: Optional[DeliveryPricingPipeline] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None and pipeline is not None:
        config = pipeline.config
    if config is None:
        # Load config early to get CORS origins; lifespan reports failures
        try:
            config = load_config()
        except ConfigurationError:
            config = None

    app = FastAPI(
        title="Delivery Pricing API",
        description="Address search, routing and tiered delivery pricing",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.pipeline = pipeline
    if pipeline is not None:
        set_pipeline(pipeline)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins if config else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(DeliveryPricingError, pricing_error_handler)
    app.include_router(router, prefix="/api")

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    # Load config to get port
    config = load_config()

    uvicorn.run(
        "parcelroute.main:app",
        host=config.backend_host,
        port=config.backend_port,
        reload=False,
    )
