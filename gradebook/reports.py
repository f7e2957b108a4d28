"""
Report card aggregation.

A report card is derived on every read from an exam's subjects, one
student's marks and a grading scale. It is never persisted.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from academics.utils import get_class_students
from core.choices import ReportResult
from core.decorators import is_teacher_or_admin
from core.utils import percentage, to_decimal
from . import config
from .grading import get_default_scale, resolve_grade
from .models import ExamSubject, StudentMark

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubjectResult:
    subject_name: str
    subject_code: str
    max_marks: int
    passing_marks: int
    marks_obtained: Optional[Decimal]
    percentage: Optional[Decimal]
    grade: str
    passed: bool

    @property
    def is_graded(self):
        return self.marks_obtained is not None

    def as_dict(self):
        return {
            'subject_name': self.subject_name,
            'subject_code': self.subject_code,
            'max_marks': self.max_marks,
            'passing_marks': self.passing_marks,
            'marks_obtained': str(self.marks_obtained) if self.is_graded else None,
            'percentage': str(self.percentage) if self.percentage is not None else None,
            'grade': self.grade,
            'passed': self.passed,
        }


@dataclass(frozen=True)
class ReportCard:
    subjects: tuple
    total_obtained: Decimal
    total_max: int
    overall_percentage: Decimal
    overall_grade: str
    all_passed: bool
    result: str
    has_marks: bool

    def as_dict(self):
        return {
            'subjects': [s.as_dict() for s in self.subjects],
            'total_obtained': str(self.total_obtained),
            'total_max': self.total_max,
            'overall_percentage': str(self.overall_percentage),
            'overall_grade': self.overall_grade,
            'all_passed': self.all_passed,
            'result': self.result,
            'has_marks': self.has_marks,
        }


def _subject_result(exam_subject, mark, tiers):
    subject = exam_subject.subject
    obtained = mark.marks_obtained if mark is not None else None

    if obtained is None:
        return SubjectResult(
            subject_name=subject.name,
            subject_code=subject.code,
            max_marks=exam_subject.max_marks,
            passing_marks=exam_subject.passing_marks,
            marks_obtained=None,
            percentage=None,
            grade=config.UNGRADED_LABEL,
            passed=False,
        )

    obtained = to_decimal(obtained)
    pct = percentage(obtained, exam_subject.max_marks)
    return SubjectResult(
        subject_name=subject.name,
        subject_code=subject.code,
        max_marks=exam_subject.max_marks,
        passing_marks=exam_subject.passing_marks,
        marks_obtained=obtained,
        percentage=pct,
        grade=resolve_grade(tiers, pct),
        passed=obtained >= to_decimal(exam_subject.passing_marks),
    )


def build_report_card(exam_subjects, marks, tiers):
    """
    Aggregate one student's marks for an exam into a ``ReportCard``.

    Args:
        exam_subjects: ExamSubject-like objects (``id``, ``subject``,
            ``max_marks``, ``passing_marks``), in display order.
        marks: the student's marks; each has ``exam_subject_id`` and
            ``marks_obtained``. Subjects without a mark are ungraded.
        tiers: grade tiers of the scale to resolve against.

    An ungraded subject counts 0 towards the total obtained but its maximum
    still counts towards the total possible.
    """
    tiers = list(tiers)
    marks_by_subject = {m.exam_subject_id: m for m in marks}

    subjects = tuple(
        _subject_result(es, marks_by_subject.get(es.id), tiers)
        for es in exam_subjects
    )

    total_obtained = sum((s.marks_obtained for s in subjects if s.is_graded), Decimal('0'))
    total_max = sum(s.max_marks for s in subjects)
    overall_percentage = percentage(total_obtained, total_max)

    complete = bool(subjects) and all(s.is_graded for s in subjects)
    all_passed = complete and all(s.passed for s in subjects)
    if not complete:
        result = ReportResult.INCOMPLETE
    elif all_passed:
        result = ReportResult.PASS
    else:
        result = ReportResult.FAIL

    return ReportCard(
        subjects=subjects,
        total_obtained=total_obtained,
        total_max=total_max,
        overall_percentage=overall_percentage,
        overall_grade=resolve_grade(tiers, overall_percentage),
        all_passed=all_passed,
        result=result.value,
        has_marks=any(s.is_graded for s in subjects),
    )


def _scale_tiers(scale):
    scale = scale or get_default_scale()
    if scale is None:
        logger.warning("No grading scale configured; all grades will be unresolved")
        return []
    return list(scale.tiers.all())


def _exam_subjects(exam):
    return list(
        ExamSubject.objects.filter(exam=exam)
        .select_related('subject')
        .order_by('subject__name')
    )


def load_report_card(student, exam, scale=None):
    """Fetch everything one student's card needs and build it."""
    exam_subjects = _exam_subjects(exam)
    marks = list(StudentMark.objects.filter(
        student=student,
        exam_subject_id__in=[es.id for es in exam_subjects],
    ))
    return build_report_card(exam_subjects, marks, _scale_tiers(scale))


def build_class_report_cards(exam, scale=None):
    """
    Report cards for every student enrolled in the exam's class.

    Returns ``[(student, ReportCard)]`` ordered by student name.
    """
    exam_subjects = _exam_subjects(exam)
    tiers = _scale_tiers(scale)
    students = list(get_class_students(exam.class_assigned))

    marks_by_student = {}
    for mark in StudentMark.objects.filter(
        exam_subject_id__in=[es.id for es in exam_subjects],
        student_id__in=[s.id for s in students],
    ):
        marks_by_student.setdefault(mark.student_id, []).append(mark)

    return [
        (student, build_report_card(exam_subjects, marks_by_student.get(student.id, []), tiers))
        for student in students
    ]


def can_view_report(user, student):
    """Admins and teachers see every card; students only their own."""
    if user is None or not user.is_authenticated:
        return False
    if is_teacher_or_admin(user):
        return True
    return getattr(user, 'is_student', False) and user.pk == student.pk
