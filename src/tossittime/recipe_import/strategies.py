"""
Extraction strategy results and the dispatcher that runs them in order.

Each strategy is a callable taking a RecipePage and returning one of
Found, NotFound or StrategyError. The dispatcher returns the first Found
and otherwise reports every miss and failure.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence, Tuple, Union

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


@dataclass
class RecipePage:
    """A fetched page, parsed once and shared by every strategy."""
    url: str
    domain: str
    html: str
    _soup: Optional[BeautifulSoup] = field(default=None, repr=False)

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            self._soup = BeautifulSoup(self.html, "html.parser")
        return self._soup


@dataclass
class Found:
    strategy: str
    title: str
    ingredients: List[str]
    image_url: Optional[str] = None


@dataclass
class NotFound:
    strategy: str
    reason: str = "no ingredients found"


@dataclass
class StrategyError:
    strategy: str
    error: Exception


StrategyResult = Union[Found, NotFound, StrategyError]
Strategy = Tuple[str, Callable[[RecipePage], StrategyResult]]


@dataclass
class DispatchOutcome:
    found: Optional[Found]
    misses: List[NotFound] = field(default_factory=list)
    errors: List[StrategyError] = field(default_factory=list)

    @property
    def last_error(self) -> Optional[Exception]:
        return self.errors[-1].error if self.errors else None


def run_strategies(page: RecipePage, strategies: Sequence[Strategy]) -> DispatchOutcome:
    """
    Run strategies in order until one finds ingredients.

    A strategy that raises is recorded as a StrategyError and the
    dispatcher moves on; a Found with an empty ingredient list counts as
    a miss.
    """
    outcome = DispatchOutcome(found=None)

    for name, strategy in strategies:
        try:
            result = strategy(page)
        except Exception as e:
            logger.warning(f"[IMPORT] Strategy {name} failed for {page.url}: {e}", exc_info=True)
            result = StrategyError(strategy=name, error=e)

        if isinstance(result, Found):
            if result.ingredients:
                logger.info(
                    f"[IMPORT] {name} found {len(result.ingredients)} ingredients on {page.domain}"
                )
                outcome.found = result
                return outcome
            result = NotFound(strategy=name)

        if isinstance(result, StrategyError):
            outcome.errors.append(result)
        else:
            outcome.misses.append(result)
        logger.debug(f"[IMPORT] {name}: {result}")

    return outcome
