"""
Pytest configuration and shared fixtures.

Fixtures are reusable test setup that can be injected into tests.
"""

import json
import shutil
import tempfile
from datetime import datetime
from types import SimpleNamespace

import pytest

from tossittime.config import Settings
from tossittime.data.database import DatabaseInterface
from tossittime.llm_provider import LLMProvider


class ScriptedLLMProvider(LLMProvider):
    """
    Provider that answers with pre-scripted texts, in order.

    Records every request so tests can assert on prompts and call counts.
    An Exception in the script is raised instead of answered.
    """

    def __init__(self, *answers, input_tokens=120, output_tokens=40):
        self.answers = list(answers)
        self.calls = []
        self.input_tokens = input_tokens
        self.output_tokens = output_tokens

    def create_message(self, model, max_tokens, messages, system=None, **kwargs):
        self.calls.append({"model": model, "messages": messages, "system": system, **kwargs})
        if not self.answers:
            raise AssertionError("ScriptedLLMProvider ran out of answers")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        if not isinstance(answer, str):
            answer = json.dumps(answer)
        return SimpleNamespace(
            content=[SimpleNamespace(type="text", text=answer)],
            usage=SimpleNamespace(input_tokens=self.input_tokens, output_tokens=self.output_tokens),
            model=model,
        )

    @property
    def is_null(self):
        return False

    @property
    def last_prompt(self):
        return self.calls[-1]["messages"][0]["content"]


class FakeTimer:
    """Stands in for threading.Timer; fire() runs the callback synchronously."""

    created = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.function(*self.args, **self.kwargs)


@pytest.fixture
def temp_db_dir():
    """
    Create a temporary database directory for testing.

    This fixture is automatically cleaned up after each test.
    """
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir)


@pytest.fixture
def db(temp_db_dir):
    """
    Create a fresh DatabaseInterface for each test.

    Usage in tests:
        def test_something(db):
            db.add_food_item("user-1", "Eggs", quantity=6)
    """
    return DatabaseInterface(db_dir=temp_db_dir)


@pytest.fixture
def settings(temp_db_dir):
    """Settings pointing at the temp database, with no real LLM."""
    return Settings(db_dir=temp_db_dir, use_null_llm=True, log_dir=temp_db_dir)


@pytest.fixture
def scripted_llm():
    """Factory: scripted_llm(answer1, answer2, ...) -> ScriptedLLMProvider."""
    return ScriptedLLMProvider


@pytest.fixture
def fake_timer():
    FakeTimer.created = []
    return FakeTimer


@pytest.fixture
def frozen_now():
    return datetime(2025, 11, 23, 12, 0, 0)  # a Sunday


@pytest.fixture
def json_ld_recipe_html():
    """Page with a JSON-LD Recipe and a decoy <ul> of ingredient-like items."""
    recipe = {
        "@context": "https://schema.org",
        "@graph": [
            {"@type": "WebPage", "name": "Lemon Chicken | Example Kitchen"},
            {
                "@type": ["Recipe", "NewsArticle"],
                "name": "Lemon Garlic Chicken",
                "image": ["https://example.com/img/chicken.jpg", "https://example.com/img/other.jpg"],
                "recipeIngredient": [
                    "2 lbs chicken thighs",
                    "3 cloves garlic, minced",
                    "1/4 cup lemon juice",
                    "Salt and pepper to taste",
                ],
            },
        ],
    }
    return f"""
    <html>
      <head>
        <title>Lemon Chicken | Example Kitchen</title>
        <script type="application/ld+json">{{ not json at all </script>
        <script type="application/ld+json">{json.dumps(recipe)}</script>
      </head>
      <body>
        <ul class="ingredients">
          <li>1 cup decoy flour</li>
          <li>2 decoy eggs</li>
          <li>3 tbsp decoy butter</li>
        </ul>
      </body>
    </html>
    """


@pytest.fixture
def plain_list_html():
    """No structured data, no known selectors: one mostly-plausible list."""
    return """
    <html>
      <head>
        <title>Grandma's Pancakes</title>
        <meta property="og:image" content="https://example.com/pancakes.jpg">
      </head>
      <body>
        <h1>Grandma's Pancakes</h1>
        <ul>
          <li>Home</li>
          <li>About</li>
        </ul>
        <ul>
          <li>2 cups flour</li>
          <li>1 1/2 cups milk</li>
          <li>2 eggs</li>
          <li>1 tsp salt</li>
          <li>SERVE WARM WITH SYRUP</li>
        </ul>
      </body>
    </html>
    """
