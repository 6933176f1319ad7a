"""
AI fallback extraction: ask the model for the title and ingredient list
when no markup-based strategy found anything.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from ..errors import LLMError
from ..llm_provider import LLMProvider, complete_json
from .generic import UNTITLED
from .strategies import Found, NotFound, RecipePage, StrategyError, StrategyResult

logger = logging.getLogger(__name__)

STRATEGY_NAME = "ai"
DEFAULT_TEXT_LIMIT = 8000

SYSTEM_PROMPT = (
    "You are a recipe parser. Extract the recipe title and the list of ingredients "
    "from the provided page text. Respond with a single JSON object and nothing else."
)

EXTRACTION_PROMPT = """Extract the recipe from this web page text.

Return JSON in exactly this shape:
{{"title": "Recipe title", "ingredients": ["1 cup flour", "2 eggs"]}}

Rules:
- One string per ingredient line, with quantities and units as written
- Do not include instructions, nutrition facts, or section headings
- If the page has no recipe, return {{"title": "", "ingredients": []}}

Page text:
{text}"""


def html_to_text(html: str, limit: int = DEFAULT_TEXT_LIMIT) -> str:
    """Strip scripts, styles and tags, collapse whitespace and truncate."""
    text = re.sub(r"<script\b[^>]*>.*?</script>", " ", html or "", flags=re.IGNORECASE | re.DOTALL)
    text = re.sub(r"<style\b[^>]*>.*?</style>", " ", text, flags=re.IGNORECASE | re.DOTALL)
    text = re.sub(r"<[^>]+>", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text[:limit]


class AIRecipeExtractor:
    """Single-shot LLM extraction. No retries."""

    def __init__(
        self,
        provider: LLMProvider,
        model: str,
        text_limit: int = DEFAULT_TEXT_LIMIT,
        max_tokens: int = 2000,
    ):
        self.provider = provider
        self.model = model
        self.text_limit = text_limit
        self.max_tokens = max_tokens
        self.last_usage: Optional[Dict[str, Any]] = None

    def __call__(self, page: RecipePage) -> StrategyResult:
        return self.extract(page)

    def extract(self, page: RecipePage) -> StrategyResult:
        self.last_usage = None
        if self.provider.is_null:
            return NotFound(strategy=STRATEGY_NAME, reason="no LLM configured")

        text = html_to_text(page.html, self.text_limit)
        if not text:
            return NotFound(strategy=STRATEGY_NAME, reason="page has no text")

        logger.info(f"[IMPORT] AI extraction for {page.url} ({len(text)} chars)")
        try:
            data, usage = complete_json(
                self.provider,
                model=self.model,
                prompt=EXTRACTION_PROMPT.format(text=text),
                system=SYSTEM_PROMPT,
                max_tokens=self.max_tokens,
            )
        except LLMError as e:
            return StrategyError(strategy=STRATEGY_NAME, error=e)

        self.last_usage = usage
        ingredients = _string_list(data.get("ingredients"))
        if not ingredients:
            return NotFound(strategy=STRATEGY_NAME, reason="model found no ingredients")

        return Found(
            strategy=STRATEGY_NAME,
            title=(data.get("title") or "").strip() or UNTITLED,
            ingredients=ingredients,
        )


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if v is not None and str(v).strip()]
