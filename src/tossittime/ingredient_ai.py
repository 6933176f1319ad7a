"""
AI ingredient parsing: split ingredient lines into name, quantity and a
canonical unit with one model call per batch.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .data.models import ParsedIngredient
from .errors import LLMError, ValidationError
from .llm_provider import LLMProvider, complete_json, require_llm_provider
from .units import CANONICAL_UNITS, COOKING_DESCRIPTORS, normalize_unit

logger = logging.getLogger(__name__)

FEATURE_NAME = "ingredient_parsing"

SYSTEM_PROMPT = (
    "You are a precise ingredient parser for a kitchen inventory app. "
    "Always answer with a single JSON object and nothing else."
)

BASE_PROMPT = """Parse each ingredient line below into name, quantity and unit.

Return JSON in exactly this shape:
{{"parsedIngredients": [{{"name": "flour", "quantity": 2, "unit": "c"}}]}}

Rules:
- Return one entry per input line, in the same order
- quantity is a number (convert fractions: "1/2" -> 0.5) or null
- unit must be one of: {units}, or null when the line uses any other unit or none
- name is the ingredient itself, without the quantity or unit
{premium_rules}
Ingredients:
{lines}"""

PREMIUM_RULES = """- Remove cooking descriptors from name ({descriptors})
- Keep the core ingredient only, e.g. "2 large eggs, beaten" -> name "eggs"
"""


@dataclass
class IngredientParseResult:
    parsed_ingredients: List[ParsedIngredient]
    model: str
    usage: Optional[Dict[str, Any]] = None
    user_id: Optional[str] = None
    feature: str = FEATURE_NAME

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parsedIngredients": [p.to_dict() for p in self.parsed_ingredients],
            "usage": self.usage,
            "userId": self.user_id,
            "feature": self.feature,
            "model": self.model,
        }


def build_prompt(ingredients: List[str], is_premium: bool = False) -> str:
    premium_rules = ""
    if is_premium:
        premium_rules = PREMIUM_RULES.format(descriptors=", ".join(COOKING_DESCRIPTORS))
    return BASE_PROMPT.format(
        units=", ".join(sorted(CANONICAL_UNITS)),
        premium_rules=premium_rules,
        lines="\n".join(f"- {line}" for line in ingredients),
    )


def _coerce_quantity(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return None


def normalize_parsed_entry(entry: Any) -> Optional[ParsedIngredient]:
    """Coerce one model entry into a ParsedIngredient with a canonical unit."""
    if isinstance(entry, str):
        return ParsedIngredient(name=entry.strip())
    if not isinstance(entry, dict):
        return None
    name = str(entry.get("name") or "").strip()
    if not name:
        return None
    return ParsedIngredient(
        name=name,
        quantity=_coerce_quantity(entry.get("quantity")),
        unit=normalize_unit(entry.get("unit")),
    )


class AIIngredientParser:
    """Batch ingredient parser backed by the configured LLM provider."""

    def __init__(self, provider: Optional[LLMProvider], model: str, max_tokens: int = 2000):
        self.provider = provider
        self.model = model
        self.max_tokens = max_tokens

    def parse(
        self,
        ingredients: List[str],
        is_premium: bool = False,
        user_id: Optional[str] = None,
    ) -> IngredientParseResult:
        """
        Parse a batch of ingredient lines.

        Raises:
            ValidationError: empty or non-list input
            ConfigurationError: no real LLM provider configured
            LLMError: the model call failed or returned unusable JSON
        """
        if not isinstance(ingredients, list) or not ingredients:
            raise ValidationError("Ingredients array is required")

        lines = [str(line).strip() for line in ingredients if line is not None and str(line).strip()]
        if not lines:
            raise ValidationError("Ingredients array is required")

        provider = require_llm_provider(self.provider)

        logger.info(f"Parsing {len(lines)} ingredients (premium={is_premium}, user={user_id})")
        data, usage = complete_json(
            provider,
            model=self.model,
            prompt=build_prompt(lines, is_premium),
            system=SYSTEM_PROMPT,
            max_tokens=self.max_tokens,
        )

        entries = data.get("parsedIngredients")
        if not isinstance(entries, list):
            raise LLMError("Model response is missing parsedIngredients")

        parsed = [p for p in (normalize_parsed_entry(e) for e in entries) if p is not None]

        return IngredientParseResult(
            parsed_ingredients=parsed,
            model=self.model,
            usage=usage,
            user_id=user_id,
        )
