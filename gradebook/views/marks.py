import json
import logging

from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from core.decorators import teacher_or_admin_required
from core.upsert import BatchValidationError
from ..marks import marks_sheet, save_marks
from ..models import ExamSubject
from ..utils import can_edit_marks

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(['GET', 'POST'])
@teacher_or_admin_required
def marks_sheet_view(request, pk):
    """
    GET returns the marks sheet of an exam subject; POST saves it.

    POST body: ``{"marks": [{student_id, marks_obtained, remarks}]}``.
    A blank ``marks_obtained`` leaves the student unmarked.
    """
    exam_subject = get_object_or_404(
        ExamSubject.objects.select_related('exam__class_assigned', 'subject'),
        pk=pk
    )
    if not can_edit_marks(request.user, exam_subject):
        return JsonResponse({'error': 'You are not assigned to this subject.'}, status=403)

    if request.method == 'GET':
        return JsonResponse({
            'exam_subject_id': str(exam_subject.pk),
            'subject': exam_subject.subject.name,
            'max_marks': exam_subject.max_marks,
            'passing_marks': exam_subject.passing_marks,
            'marks': marks_sheet(exam_subject),
        })

    try:
        data = json.loads(request.body or b'{}')
    except (ValueError, UnicodeDecodeError):
        return JsonResponse({'error': 'Request body must be JSON'}, status=400)

    rows = data.get('marks')
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        return JsonResponse({'error': 'marks must be a list of objects'}, status=400)

    try:
        summary = save_marks(exam_subject, rows, entered_by=request.user)
    except BatchValidationError as e:
        return JsonResponse(e.as_dict(), status=400)

    return JsonResponse({'exam_subject_id': str(exam_subject.pk), **summary})
