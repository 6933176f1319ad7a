"""Recipe import from arbitrary recipe URLs."""

from .fetcher import HtmlFetcher, source_domain, validate_url
from .importer import RecipeImporter
from .plausibility import is_valid_ingredient

__all__ = [
    "HtmlFetcher",
    "RecipeImporter",
    "is_valid_ingredient",
    "source_domain",
    "validate_url",
]
