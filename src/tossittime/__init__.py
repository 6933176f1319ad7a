"""
TossItTime kitchen services.

Recipe import, ingredient parsing, shelf-life lookup and the meal
planner's ingredient reservation logic.
"""

__version__ = "0.1.0"
