"""Attendance register view: read and upsert a class's attendance for a date."""
import json
import logging

from django.http import Http404, JsonResponse
from django.shortcuts import get_object_or_404
from django.utils.dateparse import parse_date
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from core.decorators import teacher_or_admin_required
from core.upsert import BatchValidationError
from ..attendance import attendance_sheet, mark_all, save_attendance
from ..models import Class
from ..utils import can_mark_attendance

logger = logging.getLogger(__name__)


def _parse_date_or_404(value):
    try:
        parsed = parse_date(value)
    except ValueError:
        parsed = None
    if parsed is None:
        raise Http404(f"Invalid date: {value}")
    return parsed


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@teacher_or_admin_required
def attendance_register(request, pk, date):
    """
    GET returns the register for the date; POST saves it.

    POST body: ``{"records": [{student_id, status, remarks}], "mark_all": "present"}``
    where ``mark_all`` is optional and overrides every row's status.
    """
    class_obj = get_object_or_404(Class, pk=pk)
    target_date = _parse_date_or_404(date)

    if not can_mark_attendance(request.user, class_obj):
        return JsonResponse({'error': 'You are not assigned to this class.'}, status=403)

    if request.method == 'GET':
        return JsonResponse({
            'class_id': class_obj.pk,
            'date': target_date.isoformat(),
            'records': attendance_sheet(class_obj, target_date),
        })

    try:
        data = json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Request body must be JSON'}, status=400)

    rows = data.get('records')
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        return JsonResponse({'error': 'records must be a list of objects'}, status=400)
    if data.get('mark_all'):
        rows = mark_all(rows, data['mark_all'])

    try:
        summary = save_attendance(class_obj, target_date, rows, marked_by=request.user)
    except BatchValidationError as e:
        return JsonResponse(e.as_dict(), status=400)

    return JsonResponse({'class_id': class_obj.pk, 'date': target_date.isoformat(), **summary})
