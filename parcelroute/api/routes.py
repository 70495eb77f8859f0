"""FastAPI route definitions."""

import asyncio
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect

from ..errors import ConfigurationError, DeliveryPricingError
from ..i18n import get_localizer, negotiate_locale
from ..models.geo import AddressCandidate, GeoPoint
from ..models.pricing import PriceQuote, PricingTier
from ..models.requests import PriceRequest, TierValidationResponse
from ..processing.pipeline import DeliveryPricingPipeline
from ..processing.pricing import validate_tiers
from ..processing.suggest import AddressSuggester

logger = logging.getLogger(__name__)

router = APIRouter()


# Dependency to get pipeline instance (set in main.py)
_pipeline: Optional[DeliveryPricingPipeline] = None


def get_pipeline() -> DeliveryPricingPipeline:
    """Get the pipeline instance."""
    if _pipeline is None:
        raise HTTPException(status_code=503, detail="Pipeline not initialized")
    return _pipeline


def set_pipeline(pipeline: Optional[DeliveryPricingPipeline]):
    """Set the pipeline instance (called from main.py)."""
    global _pipeline
    _pipeline = pipeline


Pipeline = Annotated[DeliveryPricingPipeline, Depends(get_pipeline)]


@router.get("/health")
async def health_check(pipeline: Pipeline):
    """Health check endpoint - does NOT call providers to preserve quotas."""
    return {"status": "ok", "message": "Pipeline initialized"}


@router.get("/providers")
async def list_providers(pipeline: Pipeline):
    """Which providers are selected and which have credentials."""
    config = pipeline.config
    return {
        "geocoder": config.geocoder_provider,
        "geocoder_fallbacks": list(config.geocoder_fallbacks),
        "router": config.router_provider,
        "pricing": config.pricing_engine,
        "configured": config.validate_apis(),
    }


@router.get("/addresses/search", response_model=list[AddressCandidate])
async def search_address(pipeline: Pipeline, query: str):
    """Forward geocoding."""
    return await pipeline.search_address(query)


@router.get("/addresses/suggest", response_model=list[AddressCandidate])
async def suggest_address(pipeline: Pipeline, query: str = ""):
    """Autocomplete for a partially typed address. Clients debounce before calling."""
    return await pipeline.suggest(query)


@router.get("/addresses/reverse", response_model=Optional[AddressCandidate])
async def reverse_geocode(
    pipeline: Pipeline,
    lat: Annotated[float, Query(ge=-90, le=90)],
    lon: Annotated[float, Query(ge=-180, le=180)],
):
    """Reverse geocoding; null when nothing is there."""
    return await pipeline.reverse_geocode(GeoPoint(lat=lat, lon=lon))


@router.post("/price", response_model=PriceQuote)
async def calculate_price(request: PriceRequest, pipeline: Pipeline):
    """Main price calculation endpoint."""
    return await pipeline.calculate_delivery_price(
        pickup=request.pickup,
        dropoff=request.dropoff,
        tiers=request.tiers,
    )


@router.get("/tiers", response_model=list[PricingTier])
async def default_tiers(pipeline: Pipeline):
    """Tiers applied when a price request carries none."""
    return list(pipeline.config.default_tiers)


@router.post("/tiers/validate", response_model=TierValidationResponse)
async def check_tiers(tiers: list[PricingTier], pipeline: Pipeline, lang: Optional[str] = None):
    """Admin-side validation of a tier table before it is saved."""
    try:
        warnings = validate_tiers(tiers)
    except ConfigurationError as e:
        # The admin is the operator here, so the exact problem is shown
        return TierValidationResponse(
            valid=False, warnings=[e.localized(lang or pipeline.config.default_locale)]
        )
    return TierValidationResponse(valid=True, warnings=warnings)


@router.websocket("/addresses/suggest/ws")
async def suggest_stream(websocket: WebSocket):
    """
    Server-side debounced autocomplete.

    The client sends the input text on every keystroke; only queries that stay
    unchanged for the debounce window are answered.
    """
    pipeline = get_pipeline()
    config = pipeline.config
    locale = negotiate_locale(websocket.headers.get("accept-language"), config.default_locale)
    localizer = get_localizer(locale)
    suggester = AddressSuggester(
        pipeline.search_address,
        delay_s=config.debounce_ms / 1000,
        min_length=config.min_query_length,
        limit=config.max_suggestions,
    )
    pending: set[asyncio.Task] = set()

    async def answer(query: str):
        # Runs as a detached task: nothing may escape it
        try:
            suggestions = await suggester.suggest(query)
        except DeliveryPricingError as e:
            logger.warning(f"Suggestion for '{query}' failed: {e}")
            payload = {"query": query, "error": e.code, "message": localizer.user_message(e)}
        except Exception:
            logger.exception(f"Suggestion for '{query}' crashed, nothing sent")
            return
        else:
            if suggestions is None:
                return
            payload = {"query": query, "suggestions": [c.model_dump(mode="json") for c in suggestions]}

        try:
            await websocket.send_json(payload)
        except Exception as e:
            # Socket closed while the search was running
            logger.info(f"Dropped suggestion for '{query}': {e!r}")

    await websocket.accept()
    try:
        while True:
            query = await websocket.receive_text()
            task = asyncio.create_task(answer(query))
            pending.add(task)
            task.add_done_callback(pending.discard)
    except WebSocketDisconnect:
        for task in pending:
            task.cancel()
