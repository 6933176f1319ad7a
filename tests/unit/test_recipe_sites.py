"""
Tests for favorite recipe-site search links.
"""

from datetime import date

from tossittime.data.models import FoodItem
from tossittime.recipe_sites import RecipeSite, build_search_url, generate_suggested_query


ALLRECIPES = RecipeSite(
    label="Allrecipes",
    base_url="https://www.allrecipes.com",
    search_template_url="https://www.allrecipes.com/search?q={query}",
)


def item(name, expiration=None, thaw=None):
    return FoodItem(id=name, user_id="u1", name=name, expiration_date=expiration, thaw_date=thaw)


class TestBuildSearchUrl:

    def test_query_is_encoded(self):
        url = build_search_url(ALLRECIPES, "chicken & rice")
        assert url == "https://www.allrecipes.com/search?q=chicken%20%26%20rice"

    def test_unreserved_marks_kept(self):
        assert build_search_url(ALLRECIPES, "mom's pie!") == "https://www.allrecipes.com/search?q=mom's%20pie!"

    def test_falls_back_to_base_url(self):
        no_template = RecipeSite(label="Blog", base_url="https://blog.example.com")
        no_placeholder = RecipeSite(
            label="Odd", base_url="https://odd.example.com", search_template_url="https://odd.example.com/search"
        )
        assert build_search_url(no_template, "eggs") == "https://blog.example.com"
        assert build_search_url(no_placeholder, "eggs") == "https://odd.example.com"


class TestGenerateSuggestedQuery:

    def test_two_soonest_expiring(self):
        items = [
            item("rice"),
            item("spinach", expiration=date(2025, 11, 25)),
            item("chicken", thaw=date(2025, 11, 24)),
            item("yogurt", expiration=date(2025, 12, 1)),
        ]
        assert generate_suggested_query(items) == "chicken spinach"

    def test_single_and_empty(self):
        assert generate_suggested_query([item("milk", expiration=date(2025, 11, 30))]) == "milk"
        assert generate_suggested_query([item("rice")]) == ""
        assert generate_suggested_query([]) == ""
