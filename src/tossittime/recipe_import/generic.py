"""
Generic heuristic ingredient extraction for pages without structured data.

Three passes, first hit wins:
1. Known ingredient-list CSS selectors used by common recipe plugins
2. The first list following an "Ingredients" heading
3. Any list that mostly looks like ingredients
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from .plausibility import is_valid_ingredient
from .strategies import Found, NotFound, RecipePage, StrategyResult

logger = logging.getLogger(__name__)

STRATEGY_NAME = "generic"
UNTITLED = "Untitled Recipe"

INGREDIENT_SELECTORS = (
    ".ingredients li",
    ".recipe-ingredients li",
    ".ingredient-list li",
    ".ingredients-list li",
    '[class*="ingredient"] li',
    '[class*="ingredients"] li',
    ".wprm-recipe-ingredient",
    ".tasty-recipes-ingredients li",
    ".recipe-ingredients__list li",
    ".o-Ingredients__a-ListItem",
    '[itemprop="ingredients"] li',
    "[data-ingredient]",
)

HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
HEADING_SIBLING_LIMIT = 10

MIN_LIST_ITEMS = 3
MAX_LIST_ITEMS = 30
MIN_PLAUSIBLE_RATIO = 0.6


@dataclass
class PageMetadata:
    title: str
    image_url: Optional[str] = None


def element_text(element: Tag) -> str:
    """Visible text of an element with whitespace collapsed."""
    return re.sub(r"\s+", " ", element.get_text(" ", strip=True)).strip()


def _meta_content(soup: BeautifulSoup, prop: str) -> Optional[str]:
    tag = soup.find("meta", attrs={"property": prop}) or soup.find("meta", attrs={"name": prop})
    content = tag.get("content") if tag else None
    return content.strip() if content and content.strip() else None


def page_metadata(soup: BeautifulSoup) -> PageMetadata:
    """Title (<title>, og:title, first <h1>) and og:image of a page."""
    title = None
    if soup.title and soup.title.get_text(strip=True):
        title = soup.title.get_text(strip=True)
    if not title:
        title = _meta_content(soup, "og:title")
    if not title:
        h1 = soup.find("h1")
        title = element_text(h1) if h1 else None

    return PageMetadata(title=title or UNTITLED, image_url=_meta_content(soup, "og:image"))


def _plausible_items(elements: List[Tag]) -> List[str]:
    items = []
    for element in elements:
        text = element_text(element)
        if is_valid_ingredient(text):
            items.append(text)
    return items


def extract_by_selectors(soup: BeautifulSoup) -> List[str]:
    for selector in INGREDIENT_SELECTORS:
        items = _plausible_items(soup.select(selector))
        if items:
            logger.debug(f"Selector {selector!r} matched {len(items)} ingredients")
            return items
    return []


def _is_ingredients_heading(heading: Tag) -> bool:
    text = heading.get_text(" ", strip=True).lower()
    return "ingredients" in text and "substitutions" not in text


def extract_after_heading(soup: BeautifulSoup) -> List[str]:
    """Items of the first list following the first "Ingredients" heading."""
    heading = next((h for h in soup.find_all(HEADING_TAGS) if _is_ingredients_heading(h)), None)
    if heading is None:
        return []

    for sibling in heading.find_next_siblings(limit=HEADING_SIBLING_LIMIT):
        if sibling.name in ("ul", "ol"):
            list_element = sibling
        else:
            list_element = sibling.find(["ul", "ol"])
        if list_element is None:
            continue
        items = _plausible_items(list_element.find_all("li"))
        if items:
            return items
    return []


def extract_plausible_list(soup: BeautifulSoup) -> List[str]:
    """
    First <ul>/<ol> of 3-30 items where most items pass the filter.

    The whole list is returned once accepted, including the items that
    did not pass individually.
    """
    for list_element in soup.find_all(["ul", "ol"]):
        items = [element_text(li) for li in list_element.find_all("li")]
        if not MIN_LIST_ITEMS <= len(items) <= MAX_LIST_ITEMS:
            continue
        valid = sum(1 for text in items if is_valid_ingredient(text))
        if valid >= MIN_LIST_ITEMS and valid >= len(items) * MIN_PLAUSIBLE_RATIO:
            return [text for text in items if text]
    return []


def extract_generic(page: RecipePage) -> StrategyResult:
    soup = page.soup
    ingredients = (
        extract_by_selectors(soup)
        or extract_after_heading(soup)
        or extract_plausible_list(soup)
    )
    if not ingredients:
        return NotFound(strategy=STRATEGY_NAME)

    metadata = page_metadata(soup)
    return Found(
        strategy=STRATEGY_NAME,
        title=metadata.title,
        ingredients=ingredients,
        image_url=metadata.image_url,
    )
