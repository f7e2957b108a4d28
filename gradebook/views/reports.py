import logging

from django.contrib.auth import get_user_model
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET

from core.decorators import api_login_required, teacher_or_admin_required
from ..models import Exam
from ..reports import build_class_report_cards, can_view_report, load_report_card
from .base import get_requested_scale

logger = logging.getLogger(__name__)


def _exam_header(exam):
    return {
        'id': exam.pk,
        'name': exam.name,
        'exam_type': exam.exam_type,
        'class': str(exam.class_assigned),
        'academic_year': exam.academic_year,
    }


@require_GET
@teacher_or_admin_required
def report_card_list(request, pk):
    """Report cards for every student in the exam's class."""
    exam = get_object_or_404(Exam.objects.select_related('class_assigned'), pk=pk)
    scale = get_requested_scale(request)

    cards = build_class_report_cards(exam, scale)
    return JsonResponse({
        'exam': _exam_header(exam),
        'report_cards': [
            {
                'student_id': student.pk,
                'full_name': student.full_name or student.email,
                **card.as_dict(),
            }
            for student, card in cards
        ],
    })


@require_GET
@api_login_required
def report_card_detail(request, pk, student_id):
    """One student's report card; students may only view their own."""
    exam = get_object_or_404(Exam.objects.select_related('class_assigned'), pk=pk)
    student = get_object_or_404(get_user_model(), pk=student_id)

    if not can_view_report(request.user, student):
        return JsonResponse({'error': 'Access denied'}, status=403)

    card = load_report_card(student, exam, get_requested_scale(request))
    return JsonResponse({
        'exam': _exam_header(exam),
        'student': {'id': student.pk, 'full_name': student.full_name, 'email': student.email},
        **card.as_dict(),
    })
