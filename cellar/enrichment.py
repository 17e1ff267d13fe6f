"""Wine record enrichment functionality."""

from typing import Any

import structlog
from pydantic import ValidationError

from cellar import bottle_sizes, config
from cellar.gemini import GenerationError, QuotaExceededError, TextGenerator, parse_model_json
from cellar.models import EnrichmentResult, PriceQuery, PriceResult, WineDescription, WineRecord
from cellar.pricing import PriceResolver

logger = structlog.get_logger(__name__)

DESCRIPTIVE_FIELDS = (
    "region",
    "country",
    "appellation",
    "grape_variety",
    "tasting_notes",
    "food_pairing",
    "drinking_window",
    "winemaker_info",
)

PRICE_FIELDS = ("price_min", "price_max", "price_avg")

DESCRIPTION_PROMPT = """You are a wine expert. Look up information about this wine:
{identity}

Return ONLY valid JSON (no markdown, no code blocks):
{{
  "region": "Wine region (e.g., Bordeaux, Burgundy, Champagne, Napa Valley)",
  "country": "Country of origin",
  "appellation": "Specific appellation if known (e.g., Saint-Émilion Grand Cru, Pauillac)",
  "grape_variety": "Main grape varieties used",
  "tasting_notes": "Brief description of taste profile, body, aromas (2-3 sentences)",
  "food_pairing": ["dish1", "dish2", "dish3"],
  "drinking_window": "e.g., 2024-2030 or Drink now",
  "winemaker_info": "Brief info about the producer/chateau (1-2 sentences)"
}}

If you cannot find reliable information about a field, set it to null.
Focus on accuracy - only include information you are confident about."""


def is_empty(value: Any) -> bool:
    """Blank strings and empty lists count as missing, like null."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return not value
    return False


def missing_fields(record: WineRecord, fields: tuple[str, ...] = DESCRIPTIVE_FIELDS) -> list[str]:
    return [f for f in fields if is_empty(getattr(record, f))]


def build_description_prompt(record: WineRecord) -> str:
    lines = [f"Producer/Chateau: {record.producer}"]
    if record.wine_name:
        lines.append(f"Wine Name: {record.wine_name}")
    if record.vintage:
        lines.append(f"Vintage: {record.vintage}")
    if record.color:
        lines.append(f"Type: {record.color}")
    return DESCRIPTION_PROMPT.format(identity="\n".join(lines))


def _merge(updates: dict[str, Any], record: WineRecord, field: str, value: Any) -> None:
    """Add ``field`` only if the record lacks it and there is a value to add."""
    if is_empty(getattr(record, field, None)) and not is_empty(value):
        updates[field] = value


class WineEnricher:
    """
    Fill the gaps of a saved wine record without touching populated fields.

    Runs two phases once each: descriptive metadata from the model, then a
    price lookup. The caller persists the returned update set.
    """

    def __init__(self, generator: TextGenerator, resolver: PriceResolver):
        self._generator = generator
        self._resolver = resolver

    async def describe(self, record: WineRecord) -> WineDescription | None:
        """
        Ask the model for descriptive metadata about the wine.

        Returns None when the answer cannot be decoded. Generation errors
        propagate.
        """
        raw = await self._generator.generate(build_description_prompt(record))
        try:
            return parse_model_json(raw, WineDescription)
        except ValidationError as e:
            logger.warning(
                "Unusable wine description from model",
                wine_id=record.id,
                producer=record.producer,
                error=str(e),
                raw=raw[:200],
            )
            return None

    async def enrich(self, record: WineRecord | dict[str, Any]) -> EnrichmentResult:
        """
        Compute the enrichment update set for a stored wine.

        Args:
            record: The stored wine, as a WineRecord or a raw row mapping

        Returns:
            EnrichmentResult holding only fields that were empty on the record
        """
        if not isinstance(record, WineRecord):
            record = WineRecord.model_validate(record)

        log = logger.bind(wine_id=record.id, producer=record.producer, vintage=record.vintage)
        updates: dict[str, Any] = {}
        quota_exceeded = False

        # Phase 1: descriptive metadata
        missing = missing_fields(record)
        if missing:
            log.info("Enriching wine description", missing=missing)
            description = None
            try:
                description = await self.describe(record)
            except QuotaExceededError as e:
                quota_exceeded = True
                log.warning("Description enrichment hit the API quota", error=str(e))
            except GenerationError as e:
                log.warning("Description enrichment failed", error=str(e))
            except Exception as e:
                log.warning("Description enrichment raised unexpectedly", error=str(e), exc_info=True)

            if description is not None:
                for field in missing:
                    _merge(updates, record, field, getattr(description, field))

        # Phase 2: price; a stored 0 counts as no price
        if not record.price_avg:
            query = PriceQuery(
                producer=record.producer,
                vintage=record.vintage,
                region=updates.get("region") or record.region,
                bottle_size=record.bottle_size or bottle_sizes.STANDARD,
            )
            try:
                price = await self._resolver.resolve(query)
            except Exception as e:
                log.warning("Price enrichment failed", error=str(e), exc_info=True)
                price = PriceResult.empty()
            quota_exceeded = quota_exceeded or price.quota_exceeded
            if price.found:
                for field in PRICE_FIELDS:
                    value = getattr(price, field)
                    if not getattr(record, field) and value is not None:
                        updates[field] = value
                _merge(updates, record, "price_source", price.source.value)
                _merge(updates, record, "currency", price.currency or config.DEFAULT_CURRENCY)

        result = EnrichmentResult(updates=updates, quota_exceeded=quota_exceeded)
        if result.is_empty:
            log.info("Wine already fully enriched or nothing found", quota_exceeded=quota_exceeded)
        else:
            log.info("Wine enriched", enriched_fields=result.enriched_fields)
        return result
