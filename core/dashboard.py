"""
Dashboard aggregation.

Pure reductions over collections that the dashboard views have already
fetched. Nothing here touches the database, so every function can be fed
plain dicts or model instances.
"""
from .choices import ApprovalStatus, PRESENT_STATUSES, Role
from .utils import whole_percentage


def _value(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def count_by(items, field):
    """
    Histogram of ``items`` grouped by ``field``.

    Returns ``[{'name': ..., 'value': ...}]`` ordered by the first time each
    value was seen, so charts keep a stable ordering between requests.
    Items with an empty discriminator are ignored.
    """
    counts = {}
    for item in items:
        key = _value(item, field)
        if key in (None, ''):
            continue
        counts[key] = counts.get(key, 0) + 1
    return [{'name': name, 'value': value} for name, value in counts.items()]


def attendance_rate(statuses):
    """
    Share of present/late statuses as a whole-number percentage.

    Returns None when there are no records: "unavailable", not 0%.
    """
    statuses = list(statuses)
    if not statuses:
        return None
    present = sum(1 for status in statuses if status in PRESENT_STATUSES)
    return whole_percentage(present, len(statuses))


def admin_summary(users, pending_approvals, class_count, attendance_statuses, upcoming_exams):
    """Counters for the admin dashboard."""
    users = list(users)
    role_distribution = count_by(users, 'role')
    role_counts = {str(row['name']): row['value'] for row in role_distribution}

    return {
        'total_users': len(users),
        'total_students': role_counts.get(Role.STUDENT.value, 0),
        'total_teachers': role_counts.get(Role.TEACHER.value, 0),
        'pending_approvals': pending_approvals,
        'active_users': sum(1 for u in users if _value(u, 'status') == ApprovalStatus.APPROVED),
        'total_classes': class_count,
        'today_attendance_rate': attendance_rate(attendance_statuses),
        'upcoming_exams': upcoming_exams,
        'role_distribution': role_distribution,
    }


def teacher_summary(classes, marked_class_ids, exam_subject_ids, marked_exam_subject_ids):
    """
    Classes still waiting for today's register and exam subjects without a
    single mark entered.
    """
    classes = list(classes)
    marked_class_ids = set(marked_class_ids)
    marked_exam_subject_ids = set(marked_exam_subject_ids)

    pending_attendance = [c for c in classes if _value(c, 'id') not in marked_class_ids]
    pending_marks = [es for es in exam_subject_ids if es not in marked_exam_subject_ids]

    return {
        'assigned_classes': classes,
        'pending_attendance': pending_attendance,
        'pending_marks': len(pending_marks),
    }


def latest_exam_result(marks, tiers):
    """
    Percentage and grade for the most recent exam in ``marks``.

    ``marks`` must be ordered newest first; each item carries ``exam_id``,
    ``exam_name``, ``marks_obtained`` and ``max_marks``. Returns None when
    there are no marks or the exam has no marks possible.
    """
    from gradebook.grading import resolve_grade

    by_exam = {}
    for mark in marks:
        exam_id = _value(mark, 'exam_id')
        if exam_id is None:
            continue
        entry = by_exam.setdefault(exam_id, {
            'exam_name': _value(mark, 'exam_name') or 'Exam',
            'obtained': 0,
            'max': 0,
        })
        entry['obtained'] += _value(mark, 'marks_obtained') or 0
        entry['max'] += _value(mark, 'max_marks') or 0

    if not by_exam:
        return None

    latest = next(iter(by_exam.values()))
    pct = whole_percentage(latest['obtained'], latest['max'])
    if pct is None:
        return None

    return {
        'exam_name': latest['exam_name'],
        'percentage': pct,
        'grade': resolve_grade(tiers, pct),
    }


def student_summary(class_obj, attendance_statuses, todays_slots, latest_result):
    return {
        'class': class_obj,
        'attendance_rate': attendance_rate(attendance_statuses),
        'todays_slots': list(todays_slots),
        'latest_result': latest_result,
    }
