"""Favorite recipe-site search links, seeded from soon-to-expire pantry items."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional
from urllib.parse import quote

from .data.models import FoodItem

QUERY_PLACEHOLDER = "{query}"
SUGGESTED_ITEM_COUNT = 2


@dataclass
class RecipeSite:
    label: str
    base_url: str
    search_template_url: Optional[str] = None
    enabled: bool = True


def build_search_url(site: RecipeSite, query: str) -> str:
    """Search URL for query, or the site's base URL when it has no usable template."""
    template = site.search_template_url
    if not template or QUERY_PLACEHOLDER not in template:
        return site.base_url
    return template.replace(QUERY_PLACEHOLDER, quote(query, safe="-_.!~*'()"), 1)


def _use_by(item: FoodItem) -> Optional[date]:
    return item.expiration_date or item.thaw_date


def generate_suggested_query(items: Iterable[FoodItem]) -> str:
    """Names of the one or two items expiring soonest, space-separated."""
    dated = [item for item in items if _use_by(item)]
    dated.sort(key=_use_by)
    return " ".join(item.name for item in dated[:SUGGESTED_ITEM_COUNT])
