"""
Ingredient plausibility filter.

Shared by the site-specific and generic extractors to tell ingredient
lines apart from headings, instructions and recipe metadata.
"""

import re

from ..units import VULGAR_FRACTIONS

MAX_INGREDIENT_LENGTH = 200
MAX_UNQUANTIFIED_LENGTH = 150
MIN_UNQUANTIFIED_LENGTH = 3

# Section words that never appear in a real ingredient line
DENYLIST = (
    "instructions",
    "directions",
    "method",
    "prep time",
    "cook time",
    "servings",
    "course",
    "cuisine",
    "metric",
    "customary",
    "nutrition",
)

# "Shallots - These add a mild sweetness that ..." style explanations
_DESCRIPTIVE_DASH = re.compile(r"[-–—]\s*[A-Z][^-–—]{20,}")
_LEADING_QUANTITY = re.compile(r"^[\d\s" + "".join(VULGAR_FRACTIONS) + r"]+")
_ALL_CAPS_HEADING = re.compile(r"^[A-Z][A-Z\s]{10,}$")


def is_valid_ingredient(text: str) -> bool:
    """Return True if text looks like an ingredient line."""
    if not text:
        return False

    text = text.strip()
    if not text or len(text) > MAX_INGREDIENT_LENGTH:
        return False

    lower = text.lower()
    if any(word in lower for word in DENYLIST):
        return False

    if _DESCRIPTIVE_DASH.search(text):
        return False

    leading = _LEADING_QUANTITY.match(text)
    if leading and leading.group(0).strip():
        return True

    if len(text) < MIN_UNQUANTIFIED_LENGTH or len(text) > MAX_UNQUANTIFIED_LENGTH:
        return False

    return not _ALL_CAPS_HEADING.match(text)
