"""
Integration tests for recipe import: fetch -> strategies -> AI parsing.

The fetcher is mocked at the HTTP session; extraction runs for real.
"""

from unittest.mock import Mock

import pytest
import requests

from tossittime.errors import ExtractionError, FetchError, LLMError, ValidationError
from tossittime.llm_provider import NullLLMProvider
from tossittime.recipe_import import HtmlFetcher, RecipeImporter
from tossittime.recipe_import.fetcher import USER_AGENT, FetchedPage, source_domain, validate_url
from tossittime.recipe_import.importer import merge_usage

NO_RECIPE_HTML = "<html><body><p>Beef stew. You need beef and carrots and patience.</p></body></html>"


def fetcher_for(html, url="https://www.example.com/recipe"):
    fetcher = Mock()
    fetcher.fetch.return_value = FetchedPage(url=url, html=html, status_code=200, domain=source_domain(url))
    return fetcher


def make_importer(fetcher, provider=None):
    return RecipeImporter(fetcher, provider or NullLLMProvider(), model="test-model")


class TestHtmlFetcher:

    def make_session(self, **response):
        session = Mock()
        session.headers = {}
        session.get.return_value = Mock(**response)
        return session

    def test_fetch_sends_user_agent(self):
        session = self.make_session(ok=True, status_code=200, text="<html></html>", reason="OK")
        page = HtmlFetcher(timeout=5, session=session).fetch("https://www.example.com/r")

        assert session.headers["User-Agent"] == USER_AGENT
        session.get.assert_called_once_with("https://www.example.com/r", timeout=5)
        assert page.domain == "example.com"
        assert page.html == "<html></html>"

    def test_upstream_status_preserved(self):
        session = self.make_session(ok=False, status_code=403, text="", reason="Forbidden")
        with pytest.raises(FetchError) as exc_info:
            HtmlFetcher(session=session).fetch("https://example.com/r")
        assert exc_info.value.status_code == 403
        assert "403 Forbidden" in str(exc_info.value)

    def test_transport_failure_is_500(self):
        session = self.make_session()
        session.get.side_effect = requests.ConnectionError("name resolution failed")
        with pytest.raises(FetchError) as exc_info:
            HtmlFetcher(session=session).fetch("https://example.com/r")
        assert exc_info.value.status_code == 500


class TestUrlHelpers:

    @pytest.mark.parametrize("url, message", [
        (None, "URL is required"),
        ("   ", "URL is required"),
        ("not a url", "Invalid URL format"),
        ("ftp://example.com/recipe", "Invalid URL format"),
    ])
    def test_validate_url(self, url, message):
        with pytest.raises(ValidationError, match=message):
            validate_url(url)

    def test_source_domain(self):
        assert source_domain("https://WWW.Example.com/a?b=c") == "example.com"
        assert source_domain("https://cooking.nytimes.com/r/1") == "cooking.nytimes.com"


class TestMergeUsage:

    def test_sums(self):
        a = {"promptTokens": 10, "completionTokens": 5, "totalTokens": 15}
        b = {"promptTokens": 1, "completionTokens": 2, "totalTokens": 3}
        assert merge_usage(a, None, b) == {"promptTokens": 11, "completionTokens": 7, "totalTokens": 18}

    def test_none_when_empty(self):
        assert merge_usage(None, None) is None


class TestRecipeImporter:

    def test_structured_data_without_llm(self, json_ld_recipe_html):
        result = make_importer(fetcher_for(json_ld_recipe_html)).import_recipe(
            "https://www.example.com/recipe", user_id="u1"
        )

        assert result.strategy == "structured_data"
        assert result.title == "Lemon Garlic Chicken"
        assert result.ingredients[-1] == "Salt and pepper to taste"
        assert result.source_domain == "example.com"
        assert result.parsed_ingredients == []
        assert "usage" not in result.to_dict()

    def test_ai_parsing_keeps_raw_ingredients(self, json_ld_recipe_html, scripted_llm):
        provider = scripted_llm({
            "parsedIngredients": [
                {"name": "chicken thighs", "quantity": 2, "unit": "lbs"},
                {"name": "garlic", "quantity": 3, "unit": None},
                {"name": "lemon juice", "quantity": 0.25, "unit": "cup"},
                {"name": "salt and pepper", "quantity": None, "unit": None},
            ]
        })
        importer = make_importer(fetcher_for(json_ld_recipe_html), provider)

        result = importer.import_recipe("https://www.example.com/recipe")

        assert result.ingredients[0] == "2 lbs chicken thighs"
        assert [p.unit for p in result.parsed_ingredients] == ["lb", None, "c", None]
        assert result.usage == {"promptTokens": 120, "completionTokens": 40, "totalTokens": 160}
        assert len(provider.calls) == 1

    def test_quantified_lines_skip_ai_parsing(self, plain_list_html, scripted_llm):
        provider = scripted_llm()
        html = plain_list_html.replace("<li>SERVE WARM WITH SYRUP</li>", "")

        result = make_importer(fetcher_for(html), provider).import_recipe("https://www.example.com/recipe")

        assert result.strategy == "generic"
        assert result.image_url == "https://example.com/pancakes.jpg"
        assert provider.calls == []
        assert result.usage is None

    def test_ai_parse_failure_keeps_import(self, json_ld_recipe_html, scripted_llm):
        provider = scripted_llm("definitely not json")
        result = make_importer(fetcher_for(json_ld_recipe_html), provider).import_recipe(
            "https://www.example.com/recipe"
        )
        assert len(result.ingredients) == 4
        assert result.parsed_ingredients == []
        assert result.usage is None

    def test_ai_fallback_extraction(self, scripted_llm):
        provider = scripted_llm({"title": "Beef Stew", "ingredients": ["1 lb beef", "2 carrots"]})

        result = make_importer(fetcher_for(NO_RECIPE_HTML), provider).import_recipe(
            "https://www.example.com/recipe"
        )

        assert result.strategy == "ai"
        assert result.title == "Beef Stew"
        assert result.ingredients == ["1 lb beef", "2 carrots"]
        assert result.usage["totalTokens"] == 160

    def test_premium_usage_covers_both_calls(self, scripted_llm):
        provider = scripted_llm(
            {"title": "Beef Stew", "ingredients": ["1 lb beef", "2 carrots"]},
            {"parsedIngredients": [{"name": "beef", "quantity": 1, "unit": "lb"}, {"name": "carrots", "quantity": 2}]},
        )

        result = make_importer(fetcher_for(NO_RECIPE_HTML), provider).import_recipe(
            "https://www.example.com/recipe", is_premium=True
        )

        assert result.usage == {"promptTokens": 240, "completionTokens": 80, "totalTokens": 320}
        assert [str(p) for p in result.parsed_ingredients] == ["1 lb beef", "2 carrots"]

    def test_nothing_found(self):
        with pytest.raises(ExtractionError, match="No ingredients found on this page"):
            make_importer(fetcher_for(NO_RECIPE_HTML)).import_recipe("https://www.example.com/recipe")

    def test_ai_failure_reported_as_no_ingredients(self, scripted_llm):
        provider = scripted_llm(LLMError("rate limited"))
        with pytest.raises(ExtractionError, match="No ingredients found on this page") as exc_info:
            make_importer(fetcher_for(NO_RECIPE_HTML), provider).import_recipe("https://www.example.com/recipe")
        assert isinstance(exc_info.value.__cause__, LLMError)
        assert exc_info.value.status_code == 422

    def test_invalid_url_never_fetched(self):
        fetcher = Mock()
        with pytest.raises(ValidationError):
            make_importer(fetcher).import_recipe("example.com/recipe")
        fetcher.fetch.assert_not_called()

    def test_fetch_error_propagates(self):
        fetcher = Mock()
        fetcher.fetch.side_effect = FetchError("Failed to fetch recipe page: 404 Not Found", status_code=404)
        with pytest.raises(FetchError) as exc_info:
            make_importer(fetcher).import_recipe("https://www.example.com/missing")
        assert exc_info.value.status_code == 404
