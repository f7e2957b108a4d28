"""
Attendance register: parsing, validation and upsert of a class's daily
attendance.
"""
import logging

from core.models import AuditLog
from core.upsert import BatchValidationError, apply_write_plan, index_by_key, reconcile
from .forms import AttendanceEntryForm
from .models import AttendanceRecord
from .utils import get_class_students

logger = logging.getLogger(__name__)

KEY_FIELDS = ('student_id', 'class_assigned_id', 'date')
VALUE_FIELDS = ('status', 'remarks')
AUDIT_FIELDS = ('marked_by_id',)


def mark_all(rows, status):
    """
    Set every row in a register to ``status``.

    A convenience applied to the submitted rows before they are saved; the
    save itself never fills in statuses.
    """
    return [{**row, 'status': status} for row in rows]


def parse_attendance_rows(class_obj, date, rows, marked_by=None):
    """
    Validate submitted rows and build unsaved ``AttendanceRecord`` objects.

    The whole batch is rejected with ``BatchValidationError`` on the first
    invalid row; nothing is written.
    """
    enrolled_ids = set(get_class_students(class_obj).values_list('id', flat=True))
    records = []

    for index, row in enumerate(rows, 1):
        form = AttendanceEntryForm(data=row)
        if not form.is_valid():
            field, errors = next(iter(form.errors.items()))
            raise BatchValidationError(
                f"Row {index}: {field}: {errors[0]}",
                student_id=row.get('student_id') if isinstance(row, dict) else None,
                field=field,
                value=row.get(field) if isinstance(row, dict) else None,
            )

        student_id = form.cleaned_data['student_id']
        if student_id not in enrolled_ids:
            raise BatchValidationError(
                f"Row {index}: student {student_id} is not enrolled in {class_obj}",
                student_id=student_id,
                field='student_id',
            )

        records.append(AttendanceRecord(
            student_id=student_id,
            class_assigned=class_obj,
            date=date,
            status=form.cleaned_data['status'],
            remarks=form.cleaned_data['remarks'],
            marked_by=marked_by,
        ))

    return records


def save_attendance(class_obj, date, rows, marked_by=None):
    """
    Upsert the attendance register of ``class_obj`` on ``date``.

    Returns the created/updated/unchanged/skipped counts. Saving the same
    register twice leaves the stored rows as they were after the first save.
    """
    try:
        incoming = parse_attendance_rows(class_obj, date, rows, marked_by)
    except BatchValidationError as e:
        logger.warning(f"Rejected attendance for {class_obj} on {date}: {e.messages[0]}")
        raise

    existing = index_by_key(
        AttendanceRecord.objects.filter(
            class_assigned=class_obj,
            date=date,
            student_id__in=[r.student_id for r in incoming],
        ),
        KEY_FIELDS,
    )

    plan = reconcile(incoming, existing, KEY_FIELDS, VALUE_FIELDS, AUDIT_FIELDS)
    apply_write_plan(AttendanceRecord, plan, KEY_FIELDS, VALUE_FIELDS, AUDIT_FIELDS)

    summary = plan.summary()
    if plan.has_writes:
        AuditLog.record(
            'attendance_saved',
            performed_by=marked_by,
            class_id=class_obj.pk,
            date=date.isoformat(),
            **summary,
        )
    logger.info(f"Attendance saved for {class_obj} on {date}: {summary}")
    return summary


def attendance_sheet(class_obj, date):
    """
    The register for ``class_obj`` on ``date``: every enrolled student with
    their stored status, or None when not yet marked.
    """
    records = {
        r.student_id: r
        for r in AttendanceRecord.objects.filter(class_assigned=class_obj, date=date)
    }
    sheet = []
    for student in get_class_students(class_obj):
        record = records.get(student.id)
        sheet.append({
            'student_id': student.id,
            'full_name': student.full_name or student.email,
            'status': record.status if record else None,
            'remarks': record.remarks if record else '',
        })
    return sheet
