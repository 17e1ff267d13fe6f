"""Vivino search-results scraping and heuristic price extraction."""

import re
import statistics
from urllib.parse import quote

import httpx
import structlog
from bs4 import BeautifulSoup, Comment

from cellar import config
from cellar.models import PriceResult, PriceSource

logger = structlog.get_logger(__name__)

HEADERS = {
    "User-Agent": config.USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

# Vivino renames its CSS classes often; match anything that smells like a price
PRICE_SELECTOR = '[class*="price" i], [data-testid*="price" i]'

# "€12.99", "EUR 12,99", "12,99 €", "1.234,50 EUR"
PRICE_RE = re.compile(
    r"(?:€|\bEUR)\s*(\d[\d.,]*)"
    r"|(\d[\d.,]*[.,]\d{2})\s*(?:€|EUR\b)",
    re.I,
)
CURRENCY_RE = re.compile(r"€|\bEUR\b", re.I)

_SKIP_TAGS = {"script", "style", "noscript", "template"}


class ScrapeError(Exception):
    """Base class for marketplace scraping failures."""


class ScrapeTransportError(ScrapeError):
    """The marketplace could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


def parse_price_token(token: str) -> float | None:
    """
    Turn a matched amount like '1.234,50' or '45.50' into a float.

    The last separator is the decimal one unless it is followed by exactly
    three digits, in which case every separator is a thousands separator.
    So "€1.500" is 1500, never 1.5.
    """
    s = re.sub(r"[^\d.,]", "", token or "").strip(".,")
    if not s:
        return None

    separators = [c for c in s if c in ".,"]
    if separators:
        last = separators[-1]
        head, _, tail = s.rpartition(last)
        if len(tail) == 3:
            s = re.sub(r"[.,]", "", s)
        else:
            s = re.sub(r"[.,]", "", head) + "." + tail

    try:
        return float(s)
    except ValueError:
        return None


def _prices_in_text(text: str) -> list[float]:
    prices = []
    for m in PRICE_RE.finditer(text or ""):
        value = parse_price_token(m.group(1) or m.group(2))
        if value is not None:
            prices.append(value)
    return prices


def _has_currency(text) -> bool:
    return bool(text) and CURRENCY_RE.search(text) is not None


def extract_prices(html: str) -> list[float]:
    """
    Extract plausible prices from a search-results page.

    Two passes over the document: elements whose class or test id mentions
    a price, then every text node carrying a currency symbol regardless of
    markup. Values outside (0, MAX_PLAUSIBLE_PRICE) are dropped. The result
    is deduplicated and sorted ascending.
    """
    if not html:
        return []

    soup = BeautifulSoup(html, "lxml")
    candidates: list[float] = []

    for el in soup.select(PRICE_SELECTOR):
        candidates.extend(_prices_in_text(el.get_text(" ", strip=True)))
    class_hits = len(candidates)

    for node in soup.find_all(string=_has_currency):
        if isinstance(node, Comment) or (node.parent and node.parent.name in _SKIP_TAGS):
            continue
        candidates.extend(_prices_in_text(str(node)))

    prices = sorted({p for p in candidates if config.is_price_valid(p)})
    logger.debug(
        "Price candidates extracted",
        class_hits=class_hits,
        text_hits=len(candidates) - class_hits,
        kept=len(prices),
    )
    return prices


def aggregate_prices(prices: list[float], currency: str = config.DEFAULT_CURRENCY) -> PriceResult:
    """Collapse scraped prices into a min/max/average result."""
    unique = sorted(set(prices))
    if not unique:
        return PriceResult.empty()

    low, high = unique[0], unique[-1]
    avg = round(statistics.fmean(unique), 2)
    # rounding must not push the average outside the observed range
    avg = min(max(avg, low), high)
    return PriceResult(
        price_min=low,
        price_max=high,
        price_avg=avg,
        source=PriceSource.SCRAPED_MARKETPLACE,
        currency=currency,
    )


def search_url(query: str, base_url: str = config.VIVINO_SEARCH_URL) -> str:
    return f"{base_url}{quote(query)}"


class VivinoScraper:
    """Best-effort price source backed by Vivino's search page."""

    name = "vivino"

    def __init__(self, client: httpx.AsyncClient, base_url: str = config.VIVINO_SEARCH_URL):
        self._client = client
        self._base_url = base_url

    async def fetch(self, query: str) -> str:
        """GET the search-results page for ``query`` and return its HTML."""
        url = search_url(query, self._base_url)
        logger.debug("Fetching Vivino search page", url=url)
        try:
            response = await self._client.get(url, headers=HEADERS, follow_redirects=True)
        except httpx.HTTPError as e:
            raise ScrapeTransportError(f"Vivino request failed: {e}") from e

        if not response.is_success:
            raise ScrapeTransportError(
                f"Vivino request failed: {response.status_code}",
                status_code=response.status_code,
            )
        return response.text

    async def scrape(self, query: str) -> PriceResult:
        html = await self.fetch(query)
        result = aggregate_prices(extract_prices(html))
        if result.found:
            logger.info(
                "Vivino prices found",
                query=query,
                price_min=result.price_min,
                price_max=result.price_max,
                price_avg=result.price_avg,
            )
        else:
            logger.info("No Vivino prices found", query=query)
        return result
