"""
Tests for the eatbydate shelf-life scraper.
"""

from unittest.mock import Mock

import pytest

from tossittime.errors import FetchError, ValidationError
from tossittime.recipe_import.fetcher import FetchedPage
from tossittime.shelf_life import ShelfLifeScraper, extract_days, food_url


def page(html):
    return FetchedPage(url="https://www.eatbydate.com/milk/", html=html, status_code=200, domain="eatbydate.com")


class TestFoodUrl:

    def test_slug(self):
        assert food_url("  Cream Cheese ") == "https://www.eatbydate.com/cream-cheese/"

    def test_punctuation_dropped(self):
        assert food_url("Ben's Rice") == "https://www.eatbydate.com/bens-rice/"


class TestExtractDays:

    def test_table(self):
        html = """
        <table>
          <tr><th>Item</th><th>Refrigerator</th></tr>
          <tr><td>Milk</td><td>7 days</td></tr>
        </table>
        """
        assert extract_days(html, "refrigerator") == 7

    def test_prose_with_keyword_after_days(self):
        html = "<html><body><p>Once opened, milk lasts 5 days in the fridge.</p></body></html>"
        assert extract_days(html, "refrigerator") == 5

    def test_prose_with_keyword_before_days(self):
        html = "<div>Freezer: 90 days</div>"
        assert extract_days(html, "freezer") == 90

    def test_storage_type_selects_keywords(self):
        html = "<ul><li>Pantry 30 days</li><li>Refrigerator 10 days</li></ul>"
        assert extract_days(html, "pantry") == 30
        assert extract_days(html, "refrigerator") == 10

    def test_out_of_range_rejected(self):
        assert extract_days("<ul><li>Freezer 0 days</li></ul>", "freezer") is None
        assert extract_days("<p>Freezer: 20000 days</p>", "freezer") is None

    def test_no_match(self):
        assert extract_days("<p>Nothing useful here.</p>", "refrigerator") is None


class TestShelfLifeScraper:

    def test_lookup(self):
        fetcher = Mock()
        fetcher.fetch.return_value = page("<ul><li>Refrigerator 7 days</li></ul>")

        result = ShelfLifeScraper(fetcher).lookup("Milk", "Refrigerator")

        fetcher.fetch.assert_called_once_with("https://www.eatbydate.com/milk/")
        assert result.to_dict() == {
            "foodName": "Milk",
            "storageType": "refrigerator",
            "days": 7,
            "source": "eatbydate",
        }

    def test_missing_page_is_none(self):
        fetcher = Mock()
        fetcher.fetch.side_effect = FetchError("Failed to fetch recipe page: 404 Not Found", status_code=404)
        assert ShelfLifeScraper(fetcher).lookup("unobtainium") is None

    def test_other_fetch_errors_propagate(self):
        fetcher = Mock()
        fetcher.fetch.side_effect = FetchError("Failed to fetch recipe page: 503", status_code=503)
        with pytest.raises(FetchError) as exc_info:
            ShelfLifeScraper(fetcher).lookup("milk")
        assert exc_info.value.status_code == 503

    def test_no_phrase_is_none(self):
        fetcher = Mock()
        fetcher.fetch.return_value = page("<p>About us</p>")
        assert ShelfLifeScraper(fetcher).lookup("milk", "freezer") is None

    @pytest.mark.parametrize("food, storage", [("", "pantry"), ("   ", "pantry"), ("milk", "garage")])
    def test_bad_input(self, food, storage):
        fetcher = Mock()
        with pytest.raises(ValidationError):
            ShelfLifeScraper(fetcher).lookup(food, storage)
        fetcher.fetch.assert_not_called()
