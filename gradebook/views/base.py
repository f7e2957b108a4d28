"""Common helpers for the gradebook views."""
from django.core.exceptions import ValidationError
from django.http import Http404

from ..models import GradingScale


def get_requested_scale(request):
    """
    The scale named by ``?scale=<id>``, or None for the default scale.
    """
    scale_id = request.GET.get('scale')
    if not scale_id:
        return None
    try:
        scale = GradingScale.objects.filter(pk=scale_id).first()
    except ValidationError:
        scale = None
    if scale is None:
        raise Http404("Grading scale not found")
    return scale
