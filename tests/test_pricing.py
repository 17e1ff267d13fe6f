"""Tests for layered price resolution."""

from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from cellar.gemini import GenerationError, QuotaExceededError
from cellar.models import PriceQuery, PriceResult, PriceSource
from cellar.pricing import PriceResolver, get_wine_price
from cellar.vivino import ScrapeTransportError

SCRAPED = PriceResult(price_min=45.5, price_max=52.0, price_avg=48.75, source=PriceSource.SCRAPED_MARKETPLACE)
ESTIMATED = PriceResult(
    price_min=550.0, price_max=750.0, price_avg=650.0, source=PriceSource.GENERATIVE_ESTIMATE, confidence="medium"
)
EMPTY = {"price_min": None, "price_max": None, "price_avg": None, "source": None, "currency": "EUR"}


def _scraper(result=None, error=None) -> AsyncMock:
    scraper = AsyncMock()
    scraper.scrape.return_value = result
    scraper.scrape.side_effect = error
    return scraper


def _estimator(result=None, error=None) -> AsyncMock:
    estimator = AsyncMock()
    estimator.estimate.return_value = result
    estimator.estimate.side_effect = error
    return estimator


def _empty_fields(result: PriceResult) -> dict:
    return result.model_dump(include=set(EMPTY), mode="json")


@pytest.fixture
def query() -> PriceQuery:
    return PriceQuery(producer="Château Margaux", vintage=2015, region="Bordeaux", bottle_size="magnum")


class TestResolve:
    """Tests for PriceResolver.resolve."""

    @pytest.mark.asyncio
    async def test_scraper_result_wins(self, query) -> None:
        """Test the estimator is never called when scraping finds a price."""
        scraper = _scraper(SCRAPED)
        estimator = _estimator(ESTIMATED)

        result = await PriceResolver(scraper, estimator).resolve(query)

        assert result is SCRAPED
        scraper.scrape.assert_awaited_once_with("Château Margaux 2015 Bordeaux magnum 1.5L")
        estimator.estimate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scraper_error_falls_back_to_estimator(self, query) -> None:
        scraper = _scraper(error=ScrapeTransportError("Vivino request failed: 403", status_code=403))
        estimator = _estimator(ESTIMATED)

        result = await PriceResolver(scraper, estimator).resolve(query)

        assert result.source == PriceSource.GENERATIVE_ESTIMATE
        assert result.price_avg == 650.0
        estimator.estimate.assert_awaited_once_with("Château Margaux", 2015, "Bordeaux", "magnum")

    @pytest.mark.asyncio
    async def test_empty_scrape_falls_back_to_estimator(self, query) -> None:
        scraper = _scraper(PriceResult.empty())
        estimator = _estimator(ESTIMATED)

        result = await PriceResolver(scraper, estimator).resolve(query)

        assert result is ESTIMATED
        scraper.scrape.assert_awaited_once()
        estimator.estimate.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("scrape_error,estimate_error", [
        (ScrapeTransportError("down"), GenerationError("boom")),
        (ScrapeTransportError("down"), None),
        (None, GenerationError("boom")),
        (None, None),
    ])
    async def test_total_failure_returns_empty(self, query, scrape_error, estimate_error) -> None:
        """Test nothing found never raises and yields the canonical empty result."""
        scraper = _scraper(PriceResult.empty(), error=scrape_error)
        estimator = _estimator(PriceResult.empty(), error=estimate_error)

        result = await PriceResolver(scraper, estimator).resolve(query)

        assert _empty_fields(result) == EMPTY
        assert result.quota_exceeded is False
        assert scraper.scrape.await_count == 1
        assert estimator.estimate.await_count == 1

    @pytest.mark.asyncio
    async def test_quota_error_flags_result(self, query) -> None:
        scraper = _scraper(PriceResult.empty())
        estimator = _estimator(error=QuotaExceededError("quota"))

        result = await PriceResolver(scraper, estimator).resolve(query)

        assert not result.found
        assert result.quota_exceeded is True

    @pytest.mark.asyncio
    async def test_without_scraper(self, query) -> None:
        estimator = _estimator(ESTIMATED)
        result = await PriceResolver(estimator=estimator).resolve(query)
        assert result is ESTIMATED

    @pytest.mark.asyncio
    async def test_without_any_source(self, query) -> None:
        result = await PriceResolver().resolve(query)
        assert _empty_fields(result) == EMPTY

    @pytest.mark.asyncio
    async def test_arbitrary_scraper_error_falls_back(self, query) -> None:
        """Test any scraper exception falls through to the estimator."""
        scraper = _scraper(error=RuntimeError("markup changed"))
        estimator = _estimator(ESTIMATED)

        result = await PriceResolver(scraper, estimator).resolve(query)

        assert result is ESTIMATED
        estimator.estimate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_both_layers_raising_returns_empty(self, query) -> None:
        scraper = _scraper(error=ValueError("parse"))
        estimator = _estimator(error=ConnectionError("reset by peer"))

        result = await PriceResolver(scraper, estimator).resolve(query)

        assert _empty_fields(result) == EMPTY
        assert result.quota_exceeded is False


class TestGetWinePrice:
    """Tests for the get_wine_price convenience wrapper."""

    @pytest.mark.asyncio
    async def test_builds_query(self) -> None:
        scraper = _scraper(SCRAPED)
        result = await get_wine_price(PriceResolver(scraper), "Caymus", 2019, None, None)

        assert result is SCRAPED
        scraper.scrape.assert_awaited_once_with("Caymus 2019")

    @pytest.mark.asyncio
    async def test_blank_producer_is_a_programming_error(self) -> None:
        with pytest.raises(ValidationError):
            await get_wine_price(PriceResolver(), "  ")
