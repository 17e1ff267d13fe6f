"""Knowledge-based price estimates from a generative model."""

import structlog
from pydantic import ValidationError

from cellar import bottle_sizes, config
from cellar.gemini import TextGenerator, parse_model_json
from cellar.models import PriceEstimate, PriceResult, PriceSource

logger = structlog.get_logger(__name__)

PRICE_PROMPT = """You are a wine expert. Estimate the retail price in {currency} for this wine:
{description}

Based on your knowledge of wine prices, provide a realistic price estimate.
Consider the producer's reputation, the region, the vintage quality, and typical market prices.
{size_note}
Return ONLY valid JSON (no markdown, no code blocks, just the JSON object):
{{
  "price_min": 15.99,
  "price_max": 25.99,
  "price_avg": 19.99,
  "confidence": "medium",
  "reasoning": "Brief explanation"
}}

"confidence" must be one of "high", "medium" or "low".
If you don't know this wine well enough to estimate, return:
{{
  "price_min": null,
  "price_max": null,
  "price_avg": null,
  "confidence": "low",
  "reasoning": "Unknown wine"
}}"""

SIZE_NOTE = """
IMPORTANT - bottle size: this is a {name} bottle ({volume}), equivalent to {equivalent:g} standard 750ml bottles.
Large-format bottles typically command a 2-3x premium per liter over standard bottles because they are rarer.
Adjust your estimate for this bottle size accordingly; do not quote the standard bottle price.
"""


def describe_wine(
    producer: str,
    vintage: int | None = None,
    region: str | None = None,
    bottle_size: str | None = bottle_sizes.STANDARD,
) -> str:
    parts = [producer]
    if vintage:
        parts.append(f"vintage {vintage}")
    if region:
        parts.append(f"from {region}")
    if not bottle_sizes.is_standard(bottle_size):
        parts.append(bottle_sizes.format_bottle_size(bottle_size))
    return ", ".join(parts)


def build_price_prompt(
    producer: str,
    vintage: int | None = None,
    region: str | None = None,
    bottle_size: str | None = bottle_sizes.STANDARD,
    currency: str = config.DEFAULT_CURRENCY,
) -> str:
    size_note = ""
    size = bottle_sizes.lookup(bottle_size)
    if size and size.id != bottle_sizes.STANDARD:
        size_note = SIZE_NOTE.format(
            name=size.display_name,
            volume=size.volume_label,
            equivalent=size.standard_bottle_equivalent,
        )
    return PRICE_PROMPT.format(
        currency=currency,
        description=describe_wine(producer, vintage, region, bottle_size),
        size_note=size_note,
    )


def gate_estimate(estimate: PriceEstimate, currency: str = config.DEFAULT_CURRENCY) -> PriceResult:
    """
    Turn a decoded estimate into a PriceResult.

    Low-confidence answers and answers without an average are never
    surfaced. Raises ValidationError when the numbers are inconsistent.
    """
    if estimate.price_avg is None or estimate.confidence == "low":
        return PriceResult.empty()
    return PriceResult(
        price_min=estimate.price_min,
        price_max=estimate.price_max,
        price_avg=estimate.price_avg,
        source=PriceSource.GENERATIVE_ESTIMATE,
        currency=currency,
        confidence=estimate.confidence,
    )


class GeminiPriceEstimator:
    """Fallback price source that asks the model what it knows."""

    name = "gemini"

    def __init__(self, generator: TextGenerator, currency: str = config.DEFAULT_CURRENCY):
        self._generator = generator
        self.currency = currency

    async def estimate(
        self,
        producer: str,
        vintage: int | None = None,
        region: str | None = None,
        bottle_size: str | None = bottle_sizes.STANDARD,
    ) -> PriceResult:
        """
        Estimate a price for the wine.

        Generation failures (including quota errors) propagate to the caller;
        unparseable or low-confidence answers yield an empty result.
        """
        prompt = build_price_prompt(producer, vintage, region, bottle_size, self.currency)
        raw = await self._generator.generate(prompt)

        try:
            estimate = parse_model_json(raw, PriceEstimate)
            result = gate_estimate(estimate, self.currency)
        except ValidationError as e:
            logger.warning(
                "Unusable price estimate from model",
                producer=producer,
                vintage=vintage,
                error=str(e),
                raw=raw[:200],
            )
            return PriceResult.empty()

        if result.found:
            logger.info(
                "Model price estimate accepted",
                producer=producer,
                vintage=vintage,
                bottle_size=bottle_size,
                price_avg=result.price_avg,
                confidence=estimate.confidence,
            )
        else:
            logger.info(
                "Model price estimate suppressed",
                producer=producer,
                vintage=vintage,
                confidence=estimate.confidence,
                reasoning=estimate.reasoning,
            )
        return result
