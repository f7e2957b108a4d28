from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET

from core.decorators import admin_required
from ..grading import find_tier_problems
from ..models import GradingScale


@require_GET
@admin_required
def grading_scale_detail(request, pk):
    """A scale's tiers, highest first, with overlap and gap diagnostics."""
    scale = get_object_or_404(GradingScale, pk=pk)
    tiers = list(scale.tiers.order_by('-min_percentage'))

    return JsonResponse({
        'id': str(scale.pk),
        'name': scale.name,
        'academic_year': scale.academic_year,
        'is_default': scale.is_default,
        'tiers': [
            {
                'grade': t.grade,
                'min_percentage': str(t.min_percentage),
                'max_percentage': str(t.max_percentage),
                'grade_point': str(t.grade_point) if t.grade_point is not None else None,
            }
            for t in tiers
        ],
        'problems': find_tier_problems(tiers),
    })
