import logging

from django.contrib.auth import get_user_model
from django.http import JsonResponse
from django.utils import timezone
from django.views.decorators.http import require_GET

from accounts.models import ApprovalRequest
from academics.models import AttendanceRecord, Class
from academics.utils import get_current_class, get_todays_slots
from gradebook.grading import get_default_scale
from gradebook.models import Exam, ExamSubject, StudentMark
from .choices import ApprovalStatus
from .dashboard import (
    admin_summary, latest_exam_result, student_summary, teacher_summary,
)
from .decorators import api_login_required, is_school_admin

logger = logging.getLogger(__name__)

RECENT_MARKS_LIMIT = 20


def _class_info(class_obj):
    if class_obj is None:
        return None
    return {'id': class_obj.pk, 'name': class_obj.name, 'section': class_obj.section}


def _slot_info(slot):
    return {
        'subject': slot.subject.name,
        'class': str(slot.class_assigned),
        'start_time': slot.start_time.strftime('%H:%M'),
        'end_time': slot.end_time.strftime('%H:%M'),
        'room': slot.room,
    }


def admin_dashboard(user, today):
    User = get_user_model()
    users = list(User.objects.values('role', 'status'))
    return admin_summary(
        users=users,
        pending_approvals=ApprovalRequest.objects.filter(status=ApprovalStatus.PENDING).count(),
        class_count=Class.objects.count(),
        attendance_statuses=AttendanceRecord.objects.filter(date=today).values_list('status', flat=True),
        upcoming_exams=Exam.objects.filter(end_date__gte=today).count(),
    )


def teacher_dashboard(user, today):
    classes = list(Class.objects.filter(class_teacher=user))
    class_ids = [c.id for c in classes]

    marked_class_ids = AttendanceRecord.objects.filter(
        class_assigned_id__in=class_ids, date=today
    ).values_list('class_assigned_id', flat=True)

    exam_subject_ids = list(ExamSubject.objects.filter(
        exam__class_assigned_id__in=class_ids
    ).values_list('id', flat=True))
    marked_exam_subject_ids = StudentMark.objects.filter(
        exam_subject_id__in=exam_subject_ids
    ).values_list('exam_subject_id', flat=True)

    summary = teacher_summary(classes, marked_class_ids, exam_subject_ids, marked_exam_subject_ids)
    summary['assigned_classes'] = [_class_info(c) for c in summary['assigned_classes']]
    summary['pending_attendance'] = [_class_info(c) for c in summary['pending_attendance']]
    return summary


def student_dashboard(user, today):
    class_obj = get_current_class(user)
    statuses = []
    slots = []
    if class_obj is not None:
        statuses = AttendanceRecord.objects.filter(
            student=user, class_assigned=class_obj
        ).values_list('status', flat=True)
        slots = get_todays_slots(user, class_obj, today)

    # Unmarked papers count 0 against their max, as on the report card.
    marks = [
        {
            'exam_id': m.exam_subject.exam_id,
            'exam_name': m.exam_subject.exam.name,
            'marks_obtained': m.marks_obtained,
            'max_marks': m.exam_subject.max_marks,
        }
        for m in StudentMark.objects.filter(
            student=user
        ).select_related('exam_subject__exam').order_by('-created_at')[:RECENT_MARKS_LIMIT]
    ]
    scale = get_default_scale()
    tiers = list(scale.tiers.all()) if scale else []

    summary = student_summary(class_obj, statuses, slots, latest_exam_result(marks, tiers))
    summary['class'] = _class_info(summary['class'])
    summary['todays_slots'] = [_slot_info(s) for s in summary['todays_slots']]
    return summary


@require_GET
@api_login_required
def dashboard(request):
    """Dashboard summary for the requesting user's role."""
    user = request.user
    today = timezone.localdate()

    if is_school_admin(user):
        role, data = 'admin', admin_dashboard(user, today)
    elif user.is_teacher:
        role, data = 'teacher', teacher_dashboard(user, today)
    elif user.is_student:
        role, data = 'student', student_dashboard(user, today)
    else:
        return JsonResponse({'error': 'Your account is awaiting approval.'}, status=403)

    return JsonResponse({'role': role, **data})
