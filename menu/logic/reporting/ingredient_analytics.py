"""Ingredient usage analytics over the current menu.

Revenue per ingredient is an estimate: every ingredient of an item is
credited with INGREDIENT_REVENUE_SHARE of that item's revenue.
"""
from collections import defaultdict
from typing import Dict, Any, Iterable, List

from menu.domain.Ingredient import IngredientCategory
from menu.utilities.constants import INGREDIENT_REVENUE_SHARE


def _ingredient_based(items) -> list:
    return [item for item in items if item.ingredient_based and item.ingredients]


def _usage(items) -> Dict[str, Dict[str, float]]:
    usage = defaultdict(lambda: {'count': 0, 'total_quantity': 0.0})
    for item in items:
        for s in item.ingredients:
            usage[s.ingredient_id]['count'] += 1
            usage[s.ingredient_id]['total_quantity'] += s.quantity
    return usage


def compute_usage_stats(catalog, items: Iterable) -> List[Dict[str, Any]]:
    """Per-ingredient stats for every catalog ingredient, most used first.

    Each entry:
      { 'ingredient_id', 'name', 'category', 'usage_count', 'total_quantity',
        'average_quantity', 'revenue', 'popularity_score', 'cost', 'profitability' }
    popularity_score is relative to the most used ingredient (0-100).
    """
    items = list(items)
    usage = _usage(items)
    based = _ingredient_based(items)
    max_usage = max((u['count'] for u in usage.values()), default=0)

    stats = []
    for ing in catalog:
        u = usage.get(ing.id, {'count': 0, 'total_quantity': 0.0})
        count, total_quantity = u['count'], u['total_quantity']
        revenue = sum((item.revenue or 0) * INGREDIENT_REVENUE_SHARE for item in based
                      if any(s.ingredient_id == ing.id for s in item.ingredients))
        cost = total_quantity * ing.base_cost
        stats.append({
            'ingredient_id': ing.id,
            'name': ing.name,
            'category': ing.category.value,
            'usage_count': count,
            'total_quantity': total_quantity,
            'average_quantity': total_quantity / count if count else 0.0,
            'revenue': revenue,
            'popularity_score': (count / max_usage) * 100 if max_usage else 0.0,
            'cost': cost,
            'profitability': ((revenue - cost) / revenue) * 100 if revenue > 0 else 0.0,
        })
    stats.sort(key=lambda s: s['popularity_score'], reverse=True)
    return stats


def compute_category_stats(catalog, items: Iterable) -> List[Dict[str, Any]]:
    """Utilization and margin per ingredient category, highest revenue first."""
    usage_stats = compute_usage_stats(catalog, items)
    result = []
    for category in IngredientCategory:
        in_category = [s for s in usage_stats if s['category'] == category.value]
        used = [s for s in in_category if s['usage_count'] > 0]
        revenue = sum(s['revenue'] for s in in_category)
        cost = sum(s['cost'] for s in in_category)
        result.append({
            'category': category.value,
            'total_ingredients': len(in_category),
            'used_ingredients': len(used),
            'utilization_rate': (len(used) / len(in_category)) * 100 if in_category else 0.0,
            'total_revenue': revenue,
            'total_cost': cost,
            'profit_margin': ((revenue - cost) / revenue) * 100 if revenue > 0 else 0.0,
        })
    result.sort(key=lambda c: c['total_revenue'], reverse=True)
    return result


def compute_overall_stats(catalog, items: Iterable) -> Dict[str, Any]:
    items = list(items)
    usage_stats = compute_usage_stats(catalog, items)
    based = _ingredient_based(items)
    return {
        'total_ingredients': len(catalog),
        'used_ingredients': sum(1 for s in usage_stats if s['usage_count'] > 0),
        'total_menu_items': len(items),
        'ingredient_based_items': len(based),
        'average_ingredients_per_item': (sum(len(i.ingredients) for i in based) / len(based)) if based else 0.0,
        'total_revenue': sum(s['revenue'] for s in usage_stats),
        'total_cost': sum(s['cost'] for s in usage_stats),
    }


def top_ingredients(catalog, items: Iterable, limit: int = 5, category: str = None) -> List[Dict[str, Any]]:
    """The ``limit`` most used ingredients that appear on at least one item."""
    stats = [s for s in compute_usage_stats(catalog, items) if s['usage_count'] > 0]
    if category:
        stats = [s for s in stats if s['category'] == category]
    return stats[:limit]
