"""Layered price resolution: marketplace scrape first, model estimate second."""

from typing import Protocol

import structlog

from cellar.gemini import GenerationError, QuotaExceededError
from cellar.models import PriceQuery, PriceResult
from cellar.query import build_search_query
from cellar.vivino import ScrapeError

logger = structlog.get_logger(__name__)


class PriceScraper(Protocol):
    """Anything that can turn a free-text search into a price."""

    async def scrape(self, query: str) -> PriceResult: ...


class PriceEstimator(Protocol):
    async def estimate(
        self,
        producer: str,
        vintage: int | None = None,
        region: str | None = None,
        bottle_size: str | None = None,
    ) -> PriceResult: ...


class PriceResolver:
    """
    Resolve a wine's price from the configured sources in priority order.

    Each layer is tried at most once. Failures of either layer are logged
    and treated as "no price from this layer"; when nothing is found the
    canonical empty PriceResult is returned instead of raising.
    """

    def __init__(
        self,
        scraper: PriceScraper | None = None,
        estimator: PriceEstimator | None = None,
    ):
        self.scraper = scraper
        self.estimator = estimator

    async def resolve(self, query: PriceQuery) -> PriceResult:
        search = build_search_query(query.producer, query.vintage, query.region, query.bottle_size)
        log = logger.bind(search=search, bottle_size=query.bottle_size)

        if self.scraper is not None:
            try:
                result = await self.scraper.scrape(search)
                if result.found:
                    log.info("Price resolved", source=result.source.value, price_avg=result.price_avg)
                    return result
                log.info("Scraper found no price, trying estimator")
            except ScrapeError as e:
                log.warning("Scraping failed, trying estimator", error=str(e))
            except Exception as e:
                log.warning("Scraper raised unexpectedly, trying estimator", error=str(e), exc_info=True)

        quota_exceeded = False
        if self.estimator is not None:
            try:
                result = await self.estimator.estimate(
                    query.producer, query.vintage, query.region, query.bottle_size
                )
                if result.found:
                    log.info("Price resolved", source=result.source.value, price_avg=result.price_avg)
                    return result
            except QuotaExceededError as e:
                quota_exceeded = True
                log.warning("Price estimation hit the API quota", error=str(e))
            except GenerationError as e:
                log.warning("Price estimation failed", error=str(e))
            except Exception as e:
                log.warning("Estimator raised unexpectedly", error=str(e), exc_info=True)

        log.info("No price found")
        return PriceResult.empty(quota_exceeded=quota_exceeded)


async def get_wine_price(
    resolver: PriceResolver,
    producer: str,
    vintage: int | None = None,
    region: str | None = None,
    bottle_size: str | None = None,
) -> PriceResult:
    """Convenience wrapper taking the identity fields directly."""
    query = PriceQuery(producer=producer, vintage=vintage, region=region, bottle_size=bottle_size)
    return await resolver.resolve(query)
