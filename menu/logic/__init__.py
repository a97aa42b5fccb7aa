"""Core business logic layer.

Subpackages:
- pricing: suggested price, bulk price rules, ingredient cost markup
- menu: per-item bulk edits, search/filter/sort
- reporting: ingredient usage analytics

Everything here is pure: functions take domain objects and return new values.
"""
__all__ = ["pricing", "menu", "reporting"]
