"""
Local (non-AI) ingredient quantity parsing and name normalization.

Used by the planner to match recipe ingredient lines against pantry and
shopping-list items, and by the importer to decide whether a recipe's
ingredient lines need the AI parser at all.
"""

import re
from dataclasses import dataclass
from typing import List, Optional

from .units import COOKING_DESCRIPTORS, MEASUREMENT_WORDS, VULGAR_FRACTIONS

_FRACTION_CHARS = "".join(VULGAR_FRACTIONS)

# "1 1/2", "1/2", "1½", "½", "2.5", "2-3"
_QUANTITY_PATTERN = re.compile(
    r"^\s*("
    r"\d+\s+\d+\s*/\s*\d+"
    r"|\d+\s*/\s*\d+"
    r"|\d*\s*[" + _FRACTION_CHARS + r"]"
    r"|\d+(?:\.\d+)?\s*[-–]\s*\d+(?:\.\d+)?"
    r"|\d+(?:\.\d+)?"
    r")"
)

_UNIT_PATTERN = re.compile(
    r"^\s*(" + "|".join(sorted(MEASUREMENT_WORDS, key=len, reverse=True)) + r")\.?(?=\s|$)",
    re.IGNORECASE,
)

_LEADING_QUANTITY = re.compile(r"^[\d\s" + _FRACTION_CHARS + r"]+")

_DESCRIPTOR_PATTERN = re.compile(
    r"\b(" + "|".join(re.escape(d) for d in sorted(COOKING_DESCRIPTORS, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)

AI_PARSE_LENGTH_THRESHOLD = 100


@dataclass
class ParsedQuantity:
    """Result of splitting an ingredient line into quantity, unit and name."""
    quantity: Optional[float]
    unit: Optional[str]
    item_name: str

    def to_dict(self) -> dict:
        return {"quantity": self.quantity, "unit": self.unit, "itemName": self.item_name}


def _quantity_to_float(text: str) -> Optional[float]:
    """Convert a matched quantity token to a float.

    Ranges ("2-3") resolve to their upper bound.
    """
    text = text.strip()

    range_match = re.match(r"^(\d+(?:\.\d+)?)\s*[-–]\s*(\d+(?:\.\d+)?)$", text)
    if range_match:
        return max(float(range_match.group(1)), float(range_match.group(2)))

    mixed = re.match(r"^(\d+)\s+(\d+)\s*/\s*(\d+)$", text)
    if mixed:
        whole, num, den = (int(g) for g in mixed.groups())
        return whole + num / den if den else None

    fraction = re.match(r"^(\d+)\s*/\s*(\d+)$", text)
    if fraction:
        num, den = (int(g) for g in fraction.groups())
        return num / den if den else None

    if text and text[-1] in VULGAR_FRACTIONS:
        whole = text[:-1].strip()
        return (int(whole) if whole else 0) + VULGAR_FRACTIONS[text[-1]]

    try:
        return float(text)
    except ValueError:
        return None


def parse_ingredient_quantity(text: str) -> ParsedQuantity:
    """
    Split an ingredient line into quantity, measurement word and item name.

    Args:
        text: Raw ingredient line, e.g. "1/2 cup diced onions"

    Returns:
        ParsedQuantity; quantity and unit are None when absent.
        The unit is the measurement word as written (lowercased), not
        the canonical abbreviation.
    """
    remaining = (text or "").strip()
    quantity = None
    unit = None

    match = _QUANTITY_PATTERN.match(remaining)
    if match:
        quantity = _quantity_to_float(match.group(1))
        remaining = remaining[match.end():]

    unit_match = _UNIT_PATTERN.match(remaining)
    if unit_match and quantity is not None:
        unit = unit_match.group(1).lower()
        remaining = remaining[unit_match.end():]

    remaining = remaining.strip()
    if remaining.lower().startswith("of "):
        remaining = remaining[3:].strip()

    return ParsedQuantity(quantity=quantity, unit=unit, item_name=remaining)


def normalize_item_name(name: str) -> str:
    """Lowercase, trim, collapse whitespace and drop punctuation."""
    if not name:
        return ""
    text = re.sub(r"[^\w\s]", "", name.lower())
    return re.sub(r"\s+", " ", text).strip()


def clean_ingredient_name(name: str) -> str:
    """Remove cooking descriptors and parentheticals from an ingredient name.

    "diced onions" -> "onions", "butter, softened" -> "butter".
    Falls back to the stripped input when nothing would remain.
    """
    if not name:
        return ""

    text = re.sub(r"\([^)]*\)", " ", name)
    text = _DESCRIPTOR_PATTERN.sub(" ", text)
    text = re.sub(r"\s*,\s*", ", ", text)
    text = re.sub(r"\s+", " ", text).strip(" ,;-")
    # Trailing "and"/"or" left behind by "chopped and peeled"
    text = re.sub(r"^(?:and|or)\s+|\s+(?:and|or)$", "", text, flags=re.IGNORECASE).strip(" ,")

    return text or name.strip()


def ingredient_key(text: str) -> str:
    """Matching key for an ingredient line or a pantry/shopping item name."""
    parsed = parse_ingredient_quantity(text)
    return normalize_item_name(clean_ingredient_name(parsed.item_name))


def has_leading_quantity(text: str) -> bool:
    stripped = (text or "").strip()
    match = _LEADING_QUANTITY.match(stripped)
    return bool(match and match.group(0).strip())


def should_use_ai_parsing(ingredients: List[str], is_premium: bool = False) -> bool:
    """
    Decide whether a batch of ingredient lines should go through the AI parser.

    Premium users always get AI parsing. Otherwise it is only worth the
    call when some line has no leading quantity or is unusually long.
    """
    if is_premium:
        return True
    return any(
        not has_leading_quantity(line) or len(line) > AI_PARSE_LENGTH_THRESHOLD
        for line in ingredients
    )

