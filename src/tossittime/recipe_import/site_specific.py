"""
Extractors for sites whose markup defeats both structured data and the
generic heuristics. Register new sites in SITE_EXTRACTORS.
"""

import logging
from typing import Callable, Dict, List, Optional

from bs4 import BeautifulSoup

from .generic import element_text, page_metadata
from .plausibility import is_valid_ingredient
from .strategies import Found, NotFound, RecipePage, StrategyResult

logger = logging.getLogger(__name__)

STRATEGY_NAME = "site_specific"


def extract_billyparisi(page: RecipePage) -> List[str]:
    """billyparisi.com: the ingredient list follows a "US Customary" unit toggle."""
    marker = page.html.find("US Customary")
    if marker == -1:
        return []

    fragment = BeautifulSoup(page.html[marker:], "html.parser")
    list_element = fragment.find(["ul", "ol"])
    if list_element is None:
        return []

    items = []
    for li in list_element.find_all("li"):
        text = element_text(li)
        if text and is_valid_ingredient(text):
            items.append(text)
    return items


SITE_EXTRACTORS: Dict[str, Callable[[RecipePage], List[str]]] = {
    "billyparisi.com": extract_billyparisi,
}


def find_site_extractor(domain: str) -> Optional[Callable[[RecipePage], List[str]]]:
    for fragment, extractor in SITE_EXTRACTORS.items():
        if fragment in domain:
            return extractor
    return None


def extract_site_specific(page: RecipePage) -> StrategyResult:
    extractor = find_site_extractor(page.domain)
    if extractor is None:
        return NotFound(strategy=STRATEGY_NAME, reason=f"no extractor for {page.domain}")

    ingredients = extractor(page)
    if not ingredients:
        return NotFound(strategy=STRATEGY_NAME)

    metadata = page_metadata(page.soup)
    return Found(
        strategy=STRATEGY_NAME,
        title=metadata.title,
        ingredients=ingredients,
        image_url=metadata.image_url,
    )
