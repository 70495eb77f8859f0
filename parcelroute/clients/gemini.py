"""
Gemini-backed price advisor.

An alternative PriceCalculator: the model is given an already-routed distance
and the tier table and answers with a price and explanation. Output is not
deterministic, so this is opt-in (pricing.engine: gemini) and the tier engine
remains the default.
"""

import json
import logging
import math
from typing import Any, Optional, Sequence

from google import genai
from google.genai import types
from pydantic import BaseModel, Field

from ..config import require_credential
from ..errors import ProviderError, ValidationError
from ..i18n import Localizer, get_localizer
from ..models.pricing import PriceBreakdown, PricingPolicy, PricingTier
from ..processing.pricing import round_distance

logger = logging.getLogger(__name__)


class ModelPriceAnswer(BaseModel):
    """Structured output requested from the model."""
    price: float = Field(description="Delivery price taken from the tier table")
    tier_range: Optional[str] = Field(default=None, description="Range string of the applied tier")
    explanation: str = Field(description="One sentence explaining which tier was applied")


class GeminiPriceAdvisor:
    """
    Ask Gemini to price a delivery from a tier table.

    FREE TIER: Google AI Studio provides free access.
    """

    SYSTEM_INSTRUCTION = """You price courier deliveries.
You receive a route distance in kilometres and a list of pricing tiers.
Each tier has a range ("N-M", "N+" or "N", kilometres, inclusive) and a flat price.
Pick the tier whose range contains the distance; if several match, pick the one with
the smallest lower bound. If none matches, apply the tier with the largest lower bound
and say that the distance exceeds the configured tiers.
Never invent prices that are not in the table."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        localizer: Optional[Localizer] = None,
        currency: str = "руб.",
        client: Any = None,
    ):
        self.api_key = api_key
        self.model_name = model
        self.localizer = localizer or get_localizer("ru")
        self.currency = currency
        self._client = client

    @property
    def client(self):
        if self._client is None:
            key = require_credential(self.api_key, "Gemini", "GEMINI_API_KEY", "the Gemini API")
            self._client = genai.Client(api_key=key)
            logger.info(f"[GeminiPriceAdvisor] Using model: {self.model_name}")
        return self._client

    def _prompt(self, distance_km: float, tiers: Sequence[PricingTier]) -> str:
        table = json.dumps([t.model_dump() for t in tiers], ensure_ascii=False, indent=2)
        return f"""
<distance_km>{distance_km:.2f}</distance_km>

<tiers>
{table}
</tiers>

<output_instructions>
Answer in language "{self.localizer.locale}". Prices are in {self.currency}.
</output_instructions>
"""

    async def price(self, distance_km: float, tiers: Sequence[PricingTier]) -> PriceBreakdown:
        if distance_km is None or not math.isfinite(distance_km) or distance_km < 0:
            raise ValidationError("invalid_distance", distance=distance_km)
        distance = round_distance(distance_km)

        if not tiers:
            return PriceBreakdown(
                distance_km=distance,
                price=0,
                explanation=self.localizer.text("no_tier"),
                policy=PricingPolicy.NO_TIERS,
            )

        client = self.client
        try:
            response = await client.aio.models.generate_content(
                model=self.model_name,
                contents=self._prompt(distance, tiers),
                config=types.GenerateContentConfig(
                    system_instruction=self.SYSTEM_INSTRUCTION,
                    response_mime_type="application/json",
                    response_schema=ModelPriceAnswer,
                    temperature=0.0,
                    max_output_tokens=512,
                ),
            )
            answer = ModelPriceAnswer.model_validate_json(response.text)
        except Exception as e:
            logger.exception("[GeminiPriceAdvisor] pricing request failed")
            raise ProviderError(service="Gemini", detail=str(e)) from e

        tier = next((t for t in tiers if t.range == answer.tier_range), None)
        return PriceBreakdown(
            distance_km=distance,
            price=answer.price,
            explanation=answer.explanation,
            tier=tier,
            policy=PricingPolicy.MODEL,
        )
