"""Tests for HTML price extraction functionality."""

from cellar.models import PriceSource
from cellar.vivino import aggregate_prices, extract_prices


class TestExtractPrices:
    """Tests for the extract_prices function."""

    def test_extract_price_classes(self) -> None:
        """Test extracting from price-named elements."""
        html = """
        <html>
        <body>
            <span class="price-value">€45.50</span>
            <span class="price-value">€52.00</span>
        </body>
        </html>
        """

        assert extract_prices(html) == [45.50, 52.00]

    def test_class_match_is_case_insensitive(self) -> None:
        """Test that Price, price and PRICE class fragments all match."""
        html = """
        <div>
            <div class="addToCartButton__Price"><span>12,99</span> <span>€</span></div>
            <div class="wine-price-value">EUR 18.50</div>
            <div data-testid="wineCardPrice">€ 21</div>
        </div>
        """

        assert extract_prices(html) == [12.99, 18.50, 21.0]

    def test_full_text_fallback(self) -> None:
        """Test prices are found without any price-named markup."""
        html = """
        <article>
            <h2>Château Margaux 2015</h2>
            <p>Available from €649.00 at selected merchants</p>
            <p>Magnum: 1.320,00 €</p>
        </article>
        """

        assert extract_prices(html) == [649.0, 1320.0]

    def test_sanity_bounds(self) -> None:
        """Test that zero and absurd amounts are discarded."""
        html = """
        <div class="price">€0.00</div>
        <div class="price">€12000</div>
        <div class="price">€9999.99</div>
        <div class="price">€35</div>
        """

        assert extract_prices(html) == [35.0, 9999.99]

    def test_duplicates_removed_and_sorted(self) -> None:
        """Test duplicates across heuristics collapse into one value."""
        html = """
        <ul>
            <li class="price">€30.00</li>
            <li class="price">€19.99</li>
            <li><span>Only €30</span></li>
            <li class="price"><span class="price-inner">€25,00</span></li>
        </ul>
        """

        assert extract_prices(html) == [19.99, 25.0, 30.0]

    def test_ignores_scripts_and_comments(self) -> None:
        """Test script, style and comment content does not produce prices."""
        html = """
        <html>
        <head>
            <script>window.__state = {"label": "€999.00"};</script>
            <style>.x:after { content: "€5.00"; }</style>
        </head>
        <body>
            <!-- old price €777.00 -->
            <p>Now €40.00</p>
        </body>
        </html>
        """

        assert extract_prices(html) == [40.0]

    def test_no_currency_amounts(self) -> None:
        """Test pages without euro amounts yield nothing."""
        html = """
        <div class="price">$45.99</div>
        <p>Rated 4.3 from 1,234 ratings</p>
        <p>Call 0800 123 456</p>
        """

        assert extract_prices(html) == []

    def test_empty_html(self) -> None:
        assert extract_prices("") == []

    def test_identical_html_identical_result(self) -> None:
        """Test extraction is deterministic."""
        html = '<span class="price">€10.00</span><p>€14,50</p><div class="Price">€12.25</div>'
        first = aggregate_prices(extract_prices(html))
        second = aggregate_prices(extract_prices(html))

        assert first == second
        assert first.model_dump_json() == second.model_dump_json()


class TestAggregatePrices:
    """Tests for collapsing price candidates into a result."""

    def test_scenario_two_prices(self) -> None:
        """Test the classic two-price scenario."""
        result = aggregate_prices([45.50, 52.00])

        assert result.price_min == 45.50
        assert result.price_max == 52.00
        assert result.price_avg == 48.75
        assert result.source == PriceSource.SCRAPED_MARKETPLACE
        assert result.currency == "EUR"

    def test_average_rounded_to_cents(self) -> None:
        result = aggregate_prices([10.0, 10.0, 20.0, 11.0])
        # duplicates collapse before averaging: (10 + 11 + 20) / 3
        assert result.price_avg == 13.67

    def test_single_price(self) -> None:
        result = aggregate_prices([19.99])
        assert result.price_min == result.price_max == result.price_avg == 19.99

    def test_min_avg_max_ordering(self) -> None:
        test_cases = [
            [1.0, 2.0, 3.0],
            [0.01, 9999.99],
            [12.345, 12.346],
            [45.5, 45.5, 45.5],
            [3.333, 3.334, 3.335],
        ]
        for prices in test_cases:
            result = aggregate_prices(prices)
            assert result.price_min <= result.price_avg <= result.price_max, prices

    def test_empty(self) -> None:
        result = aggregate_prices([])
        assert not result.found
        assert result.source is None
        assert result.currency == "EUR"
