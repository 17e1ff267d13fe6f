"""Live tests for Vivino integration."""

import os

import httpx
import pytest

from cellar import config
from cellar.models import PriceSource
from cellar.vivino import ScrapeError, VivinoScraper


@pytest.mark.live
class TestLiveVivino:
    """Live tests against the actual Vivino website."""

    @pytest.fixture(autouse=True)
    def check_live_tests_enabled(self):
        """Skip live tests unless LIVE_TESTS=1 environment variable is set."""
        if os.getenv("LIVE_TESTS") != "1":
            pytest.skip("Live tests are disabled. Set LIVE_TESTS=1 to enable.")

    @pytest.mark.asyncio
    async def test_scrape_well_known_wine(self) -> None:
        """Test scraping prices for a stable, widely listed wine."""
        async with httpx.AsyncClient(timeout=10.0) as client:
            scraper = VivinoScraper(client)
            try:
                result = await scraper.scrape("Dom Perignon Champagne")
            except ScrapeError as e:
                pytest.xfail(f"Live Vivino scrape failed: {e}")

        if not result.found:
            pytest.skip("No prices on the search page (rate limiting or markup changes)")

        assert result.source == PriceSource.SCRAPED_MARKETPLACE
        assert result.price_min <= result.price_avg <= result.price_max
        assert config.is_price_valid(result.price_avg)
