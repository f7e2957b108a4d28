"""
Percentage to grade resolution.

A scale is a list of tiers, each covering ``[min_percentage, max_percentage]``
inclusive. Tiers may overlap or leave gaps; resolution is still
deterministic:

- tiers are scanned by descending ``min_percentage`` and the first one
  containing the percentage wins, so on overlap the highest floor wins;
- tiers sharing a ``min_percentage`` keep their input order;
- a percentage no tier covers (including ``None`` and out-of-range values)
  resolves to ``UNRESOLVED_GRADE``.
"""
from decimal import Decimal

from core.utils import to_decimal
from . import config


def _ordered(tiers):
    # sorted() is stable, so equal floors keep input order
    return sorted(tiers, key=lambda t: to_decimal(t.min_percentage), reverse=True)


def resolve_tier(tiers, percentage):
    """The tier covering ``percentage``, or None."""
    if percentage is None:
        return None
    pct = to_decimal(percentage)
    for tier in _ordered(tiers):
        if to_decimal(tier.min_percentage) <= pct <= to_decimal(tier.max_percentage):
            return tier
    return None


def resolve_grade(tiers, percentage):
    """Grade label for ``percentage``; never raises on unmatched input."""
    tier = resolve_tier(tiers, percentage)
    if tier is None:
        return config.UNRESOLVED_GRADE
    return tier.grade


def get_default_scale():
    """
    The scale flagged as default, else the first by name, else None.
    """
    from .models import GradingScale

    scale = GradingScale.objects.filter(is_default=True).order_by('name').first()
    if scale is None:
        scale = GradingScale.objects.order_by('name').first()
    return scale


def find_tier_problems(tiers):
    """
    Overlaps and gaps between consecutive tiers, lowest band first.

    Tiers are stored with two decimal places, so a gap is any space wider
    than 0.01 between one tier's ceiling and the next tier's floor.
    Returns a list of ``{'type', 'lower', 'upper', 'detail'}`` dicts.
    """
    problems = []
    step = Decimal('0.01')
    ordered = sorted(tiers, key=lambda t: (to_decimal(t.min_percentage), to_decimal(t.max_percentage)))

    for lower, upper in zip(ordered, ordered[1:]):
        lower_max = to_decimal(lower.max_percentage)
        upper_min = to_decimal(upper.min_percentage)
        if upper_min <= lower_max:
            problems.append({
                'type': 'overlap',
                'lower': lower.grade,
                'upper': upper.grade,
                'detail': f"{upper.grade} starts at {upper_min} but {lower.grade} ends at {lower_max}",
            })
        elif upper_min - lower_max > step:
            problems.append({
                'type': 'gap',
                'lower': lower.grade,
                'upper': upper.grade,
                'detail': f"No grade between {lower_max} and {upper_min}",
            })

    return problems
