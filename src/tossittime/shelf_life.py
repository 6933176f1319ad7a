"""
Shelf-life lookup scraped from eatbydate.com.

Finds how many days a food keeps in a given storage location by scanning
the food's page for "<storage keyword> ... N days" phrases.
"""

import logging
import re
from typing import Callable, Iterable, List, Optional

from bs4 import BeautifulSoup

from .data.models import STORAGE_TYPES, ShelfLifeResult
from .errors import FetchError, ValidationError
from .recipe_import.fetcher import HtmlFetcher

logger = logging.getLogger(__name__)

BASE_URL = "https://www.eatbydate.com"
SOURCE_NAME = "eatbydate"
MAX_DAYS = 10000

STORAGE_KEYWORDS = {
    "refrigerator": ("refrigerator", "refrigerated", "fridge", "cold storage"),
    "freezer": ("freezer", "frozen", "freeze"),
    "pantry": ("pantry", "room temperature", "shelf", "cupboard", "cabinet"),
}


def food_url(food_name: str) -> str:
    """https://www.eatbydate.com/<food-name-slug>/"""
    slug = re.sub(r"\s+", "-", food_name.strip().lower())
    slug = re.sub(r"[^a-z0-9-]", "", slug)
    return f"{BASE_URL}/{slug}/"


def _valid_days(value: str) -> Optional[int]:
    days = int(value)
    return days if 0 < days < MAX_DAYS else None


def _list_patterns(keyword: str) -> List[re.Pattern]:
    return [re.compile(re.escape(keyword) + r"[^\d]*(\d+)\s*days?", re.IGNORECASE)]


def _prose_patterns(keyword: str) -> List[re.Pattern]:
    kw = re.escape(keyword)
    return [
        re.compile(kw + r"[:\s]+(\d+)\s*days?", re.IGNORECASE),
        re.compile(r"(\d+)\s*days?[^.]*" + kw, re.IGNORECASE),
    ]


def _search_texts(
    texts: Iterable[str],
    keywords: Iterable[str],
    patterns: Callable[[str], List[re.Pattern]],
) -> Optional[int]:
    keywords = list(keywords)
    for text in texts:
        for keyword in keywords:
            for pattern in patterns(keyword):
                match = pattern.search(text)
                if match:
                    days = _valid_days(match.group(1))
                    if days:
                        return days
    return None


def extract_days(html: str, storage_type: str) -> Optional[int]:
    """
    Days of shelf life for storage_type found in an eatbydate page.

    Tries tables and lists first, then paragraphs and sections, then the
    whole body text.
    """
    soup = BeautifulSoup(html, "html.parser")
    keywords = STORAGE_KEYWORDS[storage_type]

    def texts(tags):
        return (element.get_text(" ", strip=True) for element in soup.find_all(tags))

    days = _search_texts(texts(["table", "ul", "ol", "dl"]), keywords, _list_patterns)
    if days:
        return days

    days = _search_texts(texts(["p", "div", "article", "section"]), keywords, _prose_patterns)
    if days:
        return days

    body = soup.body or soup
    body_text = body.get_text(" ", strip=True)
    return _search_texts(
        [body_text], keywords, lambda kw: _list_patterns(kw) + _prose_patterns(kw)
    )


class ShelfLifeScraper:
    """Looks up shelf life by food name and storage type."""

    def __init__(self, fetcher: HtmlFetcher):
        self.fetcher = fetcher

    def lookup(self, food_name: str, storage_type: str = "refrigerator") -> Optional[ShelfLifeResult]:
        """
        Returns:
            ShelfLifeResult, or None when the page or a matching phrase
            does not exist

        Raises:
            ValidationError: empty food name or unknown storage type
            FetchError: the page could not be fetched (other than 404)
        """
        if not food_name or not food_name.strip():
            raise ValidationError("foodName is required")
        storage_type = (storage_type or "refrigerator").lower()
        if storage_type not in STORAGE_TYPES:
            raise ValidationError(f"storageType must be one of: {', '.join(STORAGE_TYPES)}")

        url = food_url(food_name)
        try:
            page = self.fetcher.fetch(url)
        except FetchError as e:
            if e.status_code == 404:
                logger.info(f"No eatbydate page for {food_name!r}")
                return None
            raise

        days = extract_days(page.html, storage_type)
        if days is None:
            logger.info(f"No {storage_type} shelf life found for {food_name!r}")
            return None

        return ShelfLifeResult(
            food_name=food_name.strip(),
            storage_type=storage_type,
            days=days,
            source=SOURCE_NAME,
        )
