"""Tests for drinking window classification."""

import pytest

from cellar.drinking import get_drinking_status

YEAR = 2026


class TestGetDrinkingStatus:
    """Tests for get_drinking_status."""

    @pytest.mark.parametrize("window", [None, "", "   "])
    def test_missing_window(self, window) -> None:
        info = get_drinking_status(window, current_year=YEAR)
        assert info.status == "unknown"
        assert info.description == "No drinking window specified"

    @pytest.mark.parametrize("window", ["Drink now", "Ready to drink", "Drink anytime"])
    def test_drink_now_phrases(self, window) -> None:
        info = get_drinking_status(window, current_year=YEAR)
        assert info.status == "drink-now"
        assert info.urgency == 2

    @pytest.mark.parametrize("window,status,urgency,description", [
        ("2030-2045", "too-young", 0, "Wait 4 years more (from 2030)"),
        ("2027-2035", "too-young", 0, "Wait 1 year more (from 2027)"),
        ("2010-2020", "past-peak", 3, "6 years past optimal window"),
        ("2015-2025", "past-peak", 3, "1 year past optimal window"),
        ("2020-2026", "drink-soon", 3, "Last year of optimal window"),
        ("2020-2027", "drink-soon", 3, "Last year of optimal window"),
        ("2020-2028", "drink-soon", 2, "2 years left in optimal window"),
        ("2024 – 2035", "drink-now", 1, "Optimal until 2035 (9 years)"),
    ])
    def test_year_ranges(self, window, status, urgency, description) -> None:
        info = get_drinking_status(window, current_year=YEAR)
        assert info.status == status
        assert info.urgency == urgency
        assert info.description == description

    @pytest.mark.parametrize("window,status,description", [
        ("From 2030", "too-young", "Wait until 2030"),
        ("After 2020", "drink-now", "Ready since 2020"),
        ("Until 2025", "past-peak", "Should have been drunk by 2025"),
        ("Drink by 2028", "drink-soon", "Drink before 2028"),
        ("Best before 2035", "drink-now", "Best before 2035"),
    ])
    def test_single_year(self, window, status, description) -> None:
        info = get_drinking_status(window, current_year=YEAR)
        assert info.status == status
        assert info.description == description

    def test_unparseable_window_kept_verbatim(self) -> None:
        info = get_drinking_status("Cellar for a decade", current_year=YEAR)
        assert info.status == "unknown"
        assert info.description == "Cellar for a decade"

    def test_bare_year_is_unknown(self) -> None:
        assert get_drinking_status("2030", current_year=YEAR).status == "unknown"

    def test_defaults_to_current_year(self) -> None:
        assert get_drinking_status("1990-1995").status == "past-peak"
