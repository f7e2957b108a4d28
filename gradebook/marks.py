"""
Marks entry: validation and upsert of one exam subject's marks sheet.
"""
import logging

from core.models import AuditLog
from core.upsert import BatchValidationError, apply_write_plan, index_by_key, reconcile
from core.utils import to_decimal
from academics.utils import get_class_students
from .forms import MarkEntryForm
from .models import StudentMark

logger = logging.getLogger(__name__)

KEY_FIELDS = ('exam_subject_id', 'student_id')
VALUE_FIELDS = ('marks_obtained', 'remarks')
AUDIT_FIELDS = ('entered_by_id',)


def is_unmarked(mark):
    """Rows without a mark are skipped and never overwrite a stored mark."""
    return mark.marks_obtained is None


def parse_mark_rows(exam_subject, rows, entered_by=None):
    """
    Validate submitted rows and build unsaved ``StudentMark`` objects.

    Each mark must lie within ``[0, max_marks]``. The first violation rejects
    the whole batch with ``BatchValidationError``; values are never clamped.
    """
    max_marks = to_decimal(exam_subject.max_marks)
    enrolled_ids = set(
        get_class_students(exam_subject.exam.class_assigned).values_list('id', flat=True)
    )
    marks = []

    for index, row in enumerate(rows, 1):
        form = MarkEntryForm(data=row)
        if not form.is_valid():
            field, errors = next(iter(form.errors.items()))
            raise BatchValidationError(
                f"Row {index}: {field}: {errors[0]}",
                student_id=row.get('student_id') if isinstance(row, dict) else None,
                field=field,
                value=row.get(field) if isinstance(row, dict) else None,
            )

        student_id = form.cleaned_data['student_id']
        obtained = form.cleaned_data['marks_obtained']

        if student_id not in enrolled_ids:
            raise BatchValidationError(
                f"Row {index}: student {student_id} is not enrolled in {exam_subject.exam.class_assigned}",
                student_id=student_id,
                field='student_id',
            )
        if obtained is not None and obtained < 0:
            raise BatchValidationError(
                f"Marks for student {student_id} cannot be below 0",
                student_id=student_id,
                field='marks_obtained',
                bound=0,
                value=obtained,
            )
        if obtained is not None and obtained > max_marks:
            raise BatchValidationError(
                f"Marks for student {student_id} cannot exceed {exam_subject.max_marks}",
                student_id=student_id,
                field='marks_obtained',
                bound=exam_subject.max_marks,
                value=obtained,
            )

        marks.append(StudentMark(
            exam_subject=exam_subject,
            student_id=student_id,
            marks_obtained=obtained,
            remarks=form.cleaned_data['remarks'],
            entered_by=entered_by,
        ))

    return marks


def save_marks(exam_subject, rows, entered_by=None):
    """
    Upsert the marks sheet of ``exam_subject``.

    Rows with a blank mark are skipped. Returns the
    created/updated/unchanged/skipped counts.
    """
    try:
        incoming = parse_mark_rows(exam_subject, rows, entered_by)
    except BatchValidationError as e:
        logger.warning(f"Rejected marks for {exam_subject}: {e.messages[0]}")
        raise

    existing = index_by_key(
        StudentMark.objects.filter(
            exam_subject=exam_subject,
            student_id__in=[m.student_id for m in incoming],
        ),
        KEY_FIELDS,
    )

    plan = reconcile(incoming, existing, KEY_FIELDS, VALUE_FIELDS, AUDIT_FIELDS, is_unset=is_unmarked)
    apply_write_plan(StudentMark, plan, KEY_FIELDS, VALUE_FIELDS, AUDIT_FIELDS)

    summary = plan.summary()
    if plan.has_writes:
        AuditLog.record(
            'marks_saved',
            performed_by=entered_by,
            exam_subject_id=str(exam_subject.pk),
            **summary,
        )
    logger.info(f"Marks saved for {exam_subject}: {summary}")
    return summary


def marks_sheet(exam_subject):
    """Every enrolled student with their stored mark, or None when unmarked."""
    stored = {m.student_id: m for m in StudentMark.objects.filter(exam_subject=exam_subject)}
    sheet = []
    for student in get_class_students(exam_subject.exam.class_assigned):
        mark = stored.get(student.id)
        obtained = mark.marks_obtained if mark else None
        sheet.append({
            'student_id': student.id,
            'full_name': student.full_name or student.email,
            'marks_obtained': str(obtained) if obtained is not None else None,
            'remarks': mark.remarks if mark else '',
        })
    return sheet
