"""
Recipe import orchestration: fetch, extract, optionally AI-parse.

Strategy order: structured data, site-specific, generic heuristics,
AI fallback. The first strategy that yields ingredients wins.
"""

import logging
from typing import Any, Dict, List, Optional

from ..data.models import RecipeImportResult
from ..errors import ExtractionError, TossItTimeError
from ..ingredient_ai import AIIngredientParser
from ..ingredient_parser import should_use_ai_parsing
from ..llm_provider import LLMProvider
from .ai_extractor import AIRecipeExtractor
from .fetcher import HtmlFetcher, validate_url
from .generic import extract_generic, page_metadata
from .site_specific import extract_site_specific
from .strategies import RecipePage, Strategy, run_strategies
from .structured_data import extract_structured_data

logger = logging.getLogger(__name__)


def merge_usage(*usages: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Sum token counts of several completion calls; None when there were none."""
    present = [u for u in usages if u]
    if not present:
        return None
    keys = ("promptTokens", "completionTokens", "totalTokens")
    return {key: sum(u.get(key, 0) or 0 for u in present) for key in keys}


class RecipeImporter:
    """Imports a recipe's title, image and ingredients from a URL."""

    def __init__(
        self,
        fetcher: HtmlFetcher,
        provider: LLMProvider,
        model: str,
        text_limit: int = 8000,
        max_tokens: int = 2000,
    ):
        self.fetcher = fetcher
        self.ai_extractor = AIRecipeExtractor(provider, model, text_limit=text_limit, max_tokens=max_tokens)
        self.ingredient_parser = AIIngredientParser(provider, model, max_tokens=max_tokens)
        self.provider = provider

    @property
    def strategies(self) -> List[Strategy]:
        return [
            ("structured_data", extract_structured_data),
            ("site_specific", extract_site_specific),
            ("generic", extract_generic),
            ("ai", self.ai_extractor),
        ]

    def import_recipe(
        self,
        url: str,
        user_id: Optional[str] = None,
        is_premium: bool = False,
    ) -> RecipeImportResult:
        """
        Import a recipe from url.

        Raises:
            ValidationError: missing or malformed URL
            FetchError: page could not be fetched (carries upstream status)
            ExtractionError: no strategy found any ingredients, including
                when the AI fallback itself failed
        """
        url = validate_url(url)
        logger.info(f"[IMPORT] Importing {url} (user={user_id}, premium={is_premium})")

        fetched = self.fetcher.fetch(url)
        page = RecipePage(url=url, domain=fetched.domain, html=fetched.html)

        outcome = run_strategies(page, self.strategies)
        if outcome.found is None:
            error = outcome.last_error
            if error is not None:
                logger.error(f"[IMPORT] No strategy succeeded for {url}, last error: {error}")
            raise ExtractionError("No ingredients found on this page") from error

        found = outcome.found
        image_url = found.image_url or page_metadata(page.soup).image_url
        extraction_usage = self.ai_extractor.last_usage if found.strategy == "ai" else None

        parsed_ingredients = []
        parse_usage = None
        if should_use_ai_parsing(found.ingredients, is_premium) and not self.provider.is_null:
            try:
                parse_result = self.ingredient_parser.parse(
                    found.ingredients, is_premium=is_premium, user_id=user_id
                )
                parsed_ingredients = parse_result.parsed_ingredients
                parse_usage = parse_result.usage
            except TossItTimeError as e:
                logger.warning(f"[IMPORT] AI ingredient parsing failed, keeping raw lines: {e}")

        return RecipeImportResult(
            title=found.title,
            ingredients=list(found.ingredients),
            source_url=url,
            source_domain=page.domain,
            image_url=image_url,
            parsed_ingredients=parsed_ingredients,
            usage=merge_usage(extraction_usage, parse_usage),
            strategy=found.strategy,
        )
