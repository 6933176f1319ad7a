"""
Canonical unit vocabulary for ingredient parsing.

Single source for every table the parsers and the planner share:
- Canonical unit abbreviations returned by the AI ingredient parser
- Alias table mapping plurals and spelled-out names onto those abbreviations
- Cooking descriptors stripped from ingredient names
- Measurement words recognised by the local quantity parser
"""

import re
from typing import Dict, FrozenSet, Optional, Tuple

# =============================================================================
# CANONICAL UNITS
# =============================================================================
CANONICAL_UNITS: FrozenSet[str] = frozenset({
    "c", "pt", "qt", "gal",     # volume (US)
    "oz", "lb",                 # weight (US)
    "g", "kg",                  # weight (metric)
    "ml", "l",                  # volume (metric)
})

# Lowercased alias -> canonical abbreviation
UNIT_ALIASES: Dict[str, str] = {
    "c": "c", "cup": "c", "cups": "c",
    "pt": "pt", "pint": "pt", "pints": "pt",
    "qt": "qt", "quart": "qt", "quarts": "qt",
    "gal": "gal", "gallon": "gal", "gallons": "gal",
    "oz": "oz", "ounce": "oz", "ounces": "oz",
    "lb": "lb", "lbs": "lb", "pound": "lb", "pounds": "lb",
    "g": "g", "gram": "g", "grams": "g",
    "kg": "kg", "kilogram": "kg", "kilograms": "kg",
    "ml": "ml", "milliliter": "ml", "milliliters": "ml",
    "millilitre": "ml", "millilitres": "ml",
    "l": "l", "liter": "l", "liters": "l", "litre": "l", "litres": "l",
}

# =============================================================================
# COOKING DESCRIPTORS
# =============================================================================
# Stripped from ingredient names by the premium AI prompt and by
# clean_ingredient_name() before pantry matching.
COOKING_DESCRIPTORS: Tuple[str, ...] = (
    "chopped", "diced", "minced", "sliced", "grated", "crushed", "whole",
    "ground", "dried", "fresh", "frozen", "canned", "raw", "cooked",
    "peeled", "seeded", "stemmed", "trimmed", "julienned", "cubed",
    "shredded", "crumbled", "mashed", "pureed", "whipped", "beaten",
    "softened", "melted", "warmed", "cooled", "room temperature",
    "large", "small", "medium", "extra large", "extra small",
    "thin", "thick", "fine", "coarse", "rough", "smooth",
    "optional", "to taste", "as needed", "for garnish",
)

# =============================================================================
# MEASUREMENT WORDS (local quantity parser)
# =============================================================================
MEASUREMENT_WORDS: Tuple[str, ...] = (
    "cups", "cup", "tablespoons", "tablespoon", "tbsp", "teaspoons",
    "teaspoon", "tsp", "ounces", "ounce", "oz", "pounds", "pound", "lbs",
    "lb", "kilograms", "kilogram", "kg", "grams", "gram", "g",
    "milliliters", "milliliter", "ml", "liters", "liter", "l",
    "pieces", "piece", "cloves", "clove", "cans", "can", "packages",
    "package", "bottles", "bottle", "jars", "jar", "boxes", "box",
    "bags", "bag", "containers", "container",
)

VULGAR_FRACTIONS: Dict[str, float] = {
    "½": 0.5, "¼": 0.25, "¾": 0.75, "⅓": 1 / 3, "⅔": 2 / 3,
    "⅛": 0.125, "⅜": 0.375, "⅝": 0.625, "⅞": 0.875,
}


def normalize_unit(unit: Optional[str]) -> Optional[str]:
    """Map a free-text unit onto the canonical vocabulary.

    Handles plurals, trailing periods ("oz.", "c.") and the capital "L"
    liter. Anything outside the allow-list becomes None, so the function
    is idempotent and never returns free text.

    >>> normalize_unit("Cups")
    'c'
    >>> normalize_unit("L.")
    'l'
    >>> normalize_unit("pinch") is None
    True
    """
    if not unit or not isinstance(unit, str):
        return None

    key = re.sub(r"\.+$", "", unit.strip()).strip().lower()
    if not key:
        return None

    return UNIT_ALIASES.get(key)
