"""Wine label extraction from bottle photos."""

import structlog
from pydantic import ValidationError

from cellar import bottle_sizes
from cellar.gemini import (
    GenerationError,
    InlineImage,
    QuotaExceededError,
    TextGenerator,
    parse_model_json,
)
from cellar.models import LabelExtraction, PriceQuery, QuickLabelExtraction, ScanResult
from cellar.pricing import PriceResolver

logger = structlog.get_logger(__name__)

# Only what is printed on the label; the rest is filled in by enrichment
QUICK_EXTRACTION_PROMPT = """Look at this wine bottle label and extract ONLY what you can clearly READ on the label.
Return ONLY valid JSON (no markdown, no code blocks):

{
  "chateau": "Producer/Chateau/Domaine name from label",
  "wine_name": "Specific wine name if visible and different from chateau, otherwise null",
  "vintage": 2020,
  "color": "red or white or rosé or sparkling or champagne or dessert",
  "region": null,
  "country": null,
  "grape_variety": null,
  "appellation": null
}

CRITICAL RULES:
- ONLY extract chateau/producer name and vintage - these are MOST IMPORTANT
- For color: determine from label design, bottle shape, or wine color if visible
- Set region/country/grape_variety/appellation to null - these will be looked up later
- Do NOT guess or infer information that is not clearly printed on the label
- If vintage is not visible, set to null"""

EXTRACTION_PROMPT = """Analyze this wine bottle label image and extract comprehensive wine information.
Return ONLY valid JSON with these fields (no markdown, no code blocks, just the JSON object):

{
  "chateau": "Producer/Chateau/Winery name",
  "wine_name": "Specific wine name if different from chateau, otherwise null",
  "vintage": 2020,
  "region": "Wine region (e.g., Bordeaux, Burgundy, Napa Valley, Rioja)",
  "appellation": "Specific appellation (e.g., Saint-Émilion Grand Cru, Pauillac)",
  "country": "Country of origin",
  "grape_variety": "Primary grape(s) - if not visible, infer from region",
  "color": "red or white or rosé or sparkling or champagne or dessert",
  "alcohol_pct": 13.5,
  "winemaker_info": "Brief description of the château/winery - its history, reputation, style (2-3 sentences)",
  "food_pairing": ["grilled lamb", "aged cheese", "beef stew"],
  "tasting_notes": "Expected taste profile - body, tannins, fruit notes, finish",
  "drinking_window": "e.g., 2024-2030 or 'Drink now'",
  "confidence": {
    "chateau": 0.95,
    "vintage": 0.90,
    "region": 0.85
  }
}

IMPORTANT:
- Focus on accuracy for chateau/producer name and vintage year - these are the most critical fields
- For food_pairing: suggest 3-5 specific dishes that pair well
- If a field is not visible AND cannot be inferred, set it to null
- Return ONLY the JSON object, no additional text or formatting"""


class LabelExtractionError(Exception):
    """The label could not be read."""


class LabelReader:
    """Reads wine metadata off a label photo with a vision model."""

    def __init__(self, generator: TextGenerator):
        self._generator = generator

    async def read_label(
        self, image: InlineImage, quick: bool = False
    ) -> LabelExtraction | QuickLabelExtraction:
        """
        Extract wine metadata from a label image.

        The quick mode only reads what is printed; the full mode also asks
        for the model's knowledge about the wine.

        Raises:
            QuotaExceededError: API quota hit, the caller should retry later.
            LabelExtractionError: the model failed or answered garbage.
        """
        prompt, schema = (
            (QUICK_EXTRACTION_PROMPT, QuickLabelExtraction)
            if quick
            else (EXTRACTION_PROMPT, LabelExtraction)
        )
        try:
            raw = await self._generator.generate(prompt, image=image)
        except QuotaExceededError:
            raise
        except GenerationError as e:
            logger.warning("Label extraction call failed", quick=quick, error=str(e))
            raise LabelExtractionError("Failed to extract wine information from image") from e

        try:
            extraction = parse_model_json(raw, schema)
        except ValidationError as e:
            logger.warning("Unreadable label extraction", quick=quick, error=str(e), raw=raw[:200])
            raise LabelExtractionError("Failed to extract wine information from image") from e

        logger.info(
            "Label read",
            quick=quick,
            chateau=extraction.chateau,
            vintage=extraction.vintage,
        )
        return extraction


async def scan_label(
    reader: LabelReader,
    resolver: PriceResolver,
    image: InlineImage,
    bottle_size: str | None = None,
    quick: bool = False,
) -> ScanResult:
    """
    Read a label and price the wine when a producer could be read.

    The bottle size given by the caller wins; otherwise it is guessed from
    the label text.
    """
    wine = await reader.read_label(image, quick=quick)

    size = bottle_size
    if not bottle_sizes.lookup(size):
        size = bottle_sizes.detect_bottle_size(" ".join(filter(None, [wine.chateau, wine.wine_name])))

    price = None
    if wine.chateau and wine.chateau.strip():
        price = await resolver.resolve(
            PriceQuery(producer=wine.chateau, vintage=wine.vintage, region=wine.region, bottle_size=size)
        )
    return ScanResult(wine=wine, price=price, bottle_size=size)
