"""
Structured-data extraction: schema.org Recipe in JSON-LD, then microdata.

Ingredients come back exactly as the page publishes them in
recipeIngredient; no plausibility filtering is applied here.
"""

import json
import logging
import re
from typing import Any, Dict, Iterator, List, Optional

from bs4 import BeautifulSoup

from .generic import UNTITLED, page_metadata
from .strategies import Found, NotFound, RecipePage, StrategyResult

logger = logging.getLogger(__name__)

STRATEGY_NAME = "structured_data"

_JSON_LD_SCRIPT = re.compile(
    r"<script[^>]*type\s*=\s*[\"']application/ld\+json[\"'][^>]*>(.*?)</script>",
    re.IGNORECASE | re.DOTALL,
)


def _iter_json_ld_items(data: Any) -> Iterator[Dict[str, Any]]:
    """Flatten top-level arrays and @graph containers into plain items."""
    if isinstance(data, list):
        for entry in data:
            yield from _iter_json_ld_items(entry)
    elif isinstance(data, dict):
        yield data
        graph = data.get("@graph")
        if isinstance(graph, list):
            for entry in graph:
                yield from _iter_json_ld_items(entry)


def _is_recipe(item: Dict[str, Any]) -> bool:
    item_type = item.get("@type")
    if isinstance(item_type, list):
        return "Recipe" in item_type
    return item_type == "Recipe"


def _ingredient_text(entry: Any) -> str:
    if isinstance(entry, str):
        return entry
    if isinstance(entry, dict):
        return entry.get("text") or entry.get("name") or ""
    return str(entry)


def _image_url(image: Any) -> Optional[str]:
    if isinstance(image, str):
        return image
    if isinstance(image, list) and image:
        return _image_url(image[0])
    if isinstance(image, dict):
        return image.get("url")
    return None


def recipe_from_json_ld(data: Any) -> Optional[Found]:
    """First schema.org Recipe with a non-empty recipeIngredient, as a Found."""
    for item in _iter_json_ld_items(data):
        if not _is_recipe(item):
            continue
        raw = item.get("recipeIngredient")
        if isinstance(raw, str):
            raw = [raw]
        if not isinstance(raw, list) or not raw:
            continue

        ingredients = [text for text in (_ingredient_text(entry) for entry in raw) if text]
        if not ingredients:
            continue

        return Found(
            strategy=STRATEGY_NAME,
            title=item.get("name") or item.get("headline") or UNTITLED,
            ingredients=ingredients,
            image_url=_image_url(item.get("image")),
        )
    return None


def _load_json(text: str) -> Any:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        logger.debug(f"Skipping malformed JSON-LD block: {e}")
        return None


def extract_json_ld_from_html(html: str) -> Optional[Found]:
    """Regex-only JSON-LD extraction for callers without a parsed DOM."""
    for match in _JSON_LD_SCRIPT.finditer(html or ""):
        found = recipe_from_json_ld(_load_json(match.group(1).strip()))
        if found:
            return found
    return None


def extract_json_ld(soup: BeautifulSoup) -> Optional[Found]:
    for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
        found = recipe_from_json_ld(_load_json(script.string or script.get_text()))
        if found:
            return found
    return None


def extract_microdata(soup: BeautifulSoup) -> Optional[Found]:
    """schema.org microdata: itemprop="recipeIngredient" elements."""
    ingredients: List[str] = []
    for element in soup.select('[itemprop="recipeIngredient"]'):
        text = element.get_text(" ", strip=True)
        if text:
            ingredients.append(text)
    if not ingredients:
        return None

    title_element = soup.select_one('[itemprop="name"]')
    title = title_element.get_text(strip=True) if title_element else ""
    metadata = page_metadata(soup)

    return Found(
        strategy=STRATEGY_NAME,
        title=title or metadata.title,
        ingredients=ingredients,
        image_url=metadata.image_url,
    )


def extract_structured_data(page: RecipePage) -> StrategyResult:
    """JSON-LD first, then microdata."""
    found = extract_json_ld(page.soup) or extract_microdata(page.soup)
    if found:
        return found
    return NotFound(strategy=STRATEGY_NAME, reason="no schema.org Recipe")
