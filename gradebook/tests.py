import io
import json
from decimal import Decimal
from types import SimpleNamespace

import openpyxl
from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.test import Client, SimpleTestCase, TestCase, override_settings
from django.urls import reverse

from academics.models import Class, ClassSubject, StudentClass, Subject
from accounts.tokens import issue_token
from core.choices import ReportResult
from core.models import AuditLog
from core.upsert import BatchValidationError
from .forms import GradeTierForm
from .grading import find_tier_problems, get_default_scale, resolve_grade, resolve_tier
from .marks import save_marks
from .models import MAX_MARKS_LIMIT, Exam, ExamSubject, GradeTier, GradingScale, StudentMark
from .reports import build_class_report_cards, build_report_card, can_view_report, load_report_card
from .utils import can_edit_marks

User = get_user_model()


def tier(grade, low, high, point=None):
    return SimpleNamespace(
        grade=grade,
        min_percentage=Decimal(str(low)),
        max_percentage=Decimal(str(high)),
        grade_point=point,
    )


def exam_subject(pk, name, max_marks, passing_marks):
    return SimpleNamespace(
        id=pk,
        subject=SimpleNamespace(name=name, code=name[:3].upper()),
        max_marks=max_marks,
        passing_marks=passing_marks,
    )


def mark(exam_subject_id, obtained):
    return SimpleNamespace(
        exam_subject_id=exam_subject_id,
        marks_obtained=None if obtained is None else Decimal(str(obtained)),
    )


STANDARD_TIERS = [
    tier('A+', 90, 100),
    tier('A', 80, '89.99'),
    tier('F', 0, '39.99'),
]


# =============================================================================
# GRADE RESOLUTION
# =============================================================================

class ResolveGradeTests(SimpleTestCase):
    """Tests for resolve_grade."""

    def test_inclusive_bounds(self):
        self.assertEqual(resolve_grade(STANDARD_TIERS, Decimal('90')), 'A+')
        self.assertEqual(resolve_grade(STANDARD_TIERS, Decimal('100')), 'A+')
        self.assertEqual(resolve_grade(STANDARD_TIERS, Decimal('89.99')), 'A')
        self.assertEqual(resolve_grade(STANDARD_TIERS, Decimal('0')), 'F')

    def test_gap_is_unresolved(self):
        self.assertEqual(resolve_grade(STANDARD_TIERS, Decimal('55')), 'N/A')
        self.assertEqual(resolve_grade(STANDARD_TIERS, Decimal('89.995')), 'N/A')

    def test_out_of_range_and_none(self):
        self.assertEqual(resolve_grade(STANDARD_TIERS, Decimal('120')), 'N/A')
        self.assertEqual(resolve_grade(STANDARD_TIERS, Decimal('-5')), 'N/A')
        self.assertEqual(resolve_grade(STANDARD_TIERS, None), 'N/A')

    def test_empty_scale(self):
        self.assertEqual(resolve_grade([], Decimal('75')), 'N/A')

    def test_highest_floor_wins_on_overlap(self):
        tiers = [tier('B', 60, 80), tier('A', 75, 100)]
        self.assertEqual(resolve_grade(tiers, Decimal('78')), 'A')
        self.assertEqual(resolve_grade(tiers, Decimal('70')), 'B')

    def test_input_order_does_not_matter(self):
        self.assertEqual(resolve_grade(list(reversed(STANDARD_TIERS)), Decimal('85')), 'A')

    def test_equal_floors_keep_input_order(self):
        tiers = [tier('X', 50, 100), tier('Y', 50, 100)]
        self.assertEqual(resolve_grade(tiers, Decimal('60')), 'X')
        self.assertEqual(resolve_grade(list(reversed(tiers)), Decimal('60')), 'Y')

    def test_accepts_ints_and_floats(self):
        self.assertEqual(resolve_grade(STANDARD_TIERS, 95), 'A+')
        self.assertEqual(resolve_grade(STANDARD_TIERS, 82.5), 'A')

    def test_resolve_tier_returns_tier(self):
        tiers = [tier('A', 80, 100, point=Decimal('4.00'))]
        self.assertEqual(resolve_tier(tiers, 85).grade_point, Decimal('4.00'))
        self.assertIsNone(resolve_tier(tiers, 10))

    @override_settings(GRADEBOOK_UNRESOLVED_GRADE='-')
    def test_unresolved_label_is_configurable(self):
        self.assertEqual(resolve_grade([], 50), '-')


class TierProblemTests(SimpleTestCase):

    def test_contiguous_scale_has_no_problems(self):
        tiers = [tier('A', 80, 100), tier('B', 60, '79.99'), tier('F', 0, '59.99')]
        self.assertEqual(find_tier_problems(tiers), [])

    def test_gap_and_overlap(self):
        problems = find_tier_problems(STANDARD_TIERS + [tier('B', 70, 80)])
        kinds = [(p['type'], p['lower'], p['upper']) for p in problems]
        self.assertIn(('gap', 'F', 'B'), kinds)
        self.assertIn(('overlap', 'B', 'A'), kinds)


# =============================================================================
# REPORT CARD AGGREGATION
# =============================================================================

class BuildReportCardTests(SimpleTestCase):
    """Tests for build_report_card."""

    def test_single_graded_subject(self):
        card = build_report_card(
            [exam_subject(1, 'Mathematics', 100, 40)],
            [mark(1, 85)],
            STANDARD_TIERS,
        )
        subject = card.subjects[0]
        self.assertEqual(subject.percentage, Decimal('85.00'))
        self.assertEqual(subject.grade, 'A')
        self.assertTrue(subject.passed)
        self.assertEqual(card.overall_percentage, Decimal('85.00'))
        self.assertEqual(card.overall_grade, 'A')
        self.assertTrue(card.all_passed)
        self.assertEqual(card.result, ReportResult.PASS)

    def test_ungraded_subject_counts_as_zero(self):
        card = build_report_card(
            [exam_subject(1, 'Mathematics', 50, 20), exam_subject(2, 'English', 50, 20)],
            [mark(1, 45)],
            STANDARD_TIERS,
        )
        ungraded = card.subjects[1]
        self.assertIsNone(ungraded.marks_obtained)
        self.assertIsNone(ungraded.percentage)
        self.assertEqual(ungraded.grade, '—')
        self.assertFalse(ungraded.passed)

        self.assertEqual(card.total_obtained, Decimal('45'))
        self.assertEqual(card.total_max, 100)
        self.assertEqual(card.overall_percentage, Decimal('45.00'))
        self.assertFalse(card.all_passed)
        self.assertEqual(card.result, ReportResult.INCOMPLETE)
        self.assertTrue(card.has_marks)

    def test_explicit_null_mark_is_ungraded(self):
        card = build_report_card([exam_subject(1, 'Mathematics', 100, 40)], [mark(1, None)], STANDARD_TIERS)
        self.assertFalse(card.subjects[0].is_graded)
        self.assertFalse(card.has_marks)

    def test_failed_subject(self):
        card = build_report_card(
            [exam_subject(1, 'Mathematics', 100, 40), exam_subject(2, 'English', 100, 40)],
            [mark(1, 95), mark(2, 39)],
            STANDARD_TIERS,
        )
        self.assertFalse(card.subjects[1].passed)
        self.assertFalse(card.all_passed)
        self.assertEqual(card.result, ReportResult.FAIL)
        self.assertEqual(card.overall_percentage, Decimal('67.00'))
        self.assertEqual(card.overall_grade, 'N/A')

    def test_passing_mark_is_inclusive(self):
        card = build_report_card([exam_subject(1, 'Mathematics', 100, 40)], [mark(1, 40)], STANDARD_TIERS)
        self.assertTrue(card.subjects[0].passed)

    def test_no_subjects(self):
        card = build_report_card([], [], STANDARD_TIERS)
        self.assertEqual(card.subjects, ())
        self.assertEqual(card.total_max, 0)
        self.assertEqual(card.overall_percentage, Decimal('0.00'))
        self.assertFalse(card.all_passed)
        self.assertEqual(card.result, ReportResult.INCOMPLETE)
        self.assertFalse(card.has_marks)

    def test_half_up_rounding(self):
        # 2 of 3 is 66.666...; 0.01 of 200 is exactly 0.005
        card = build_report_card([exam_subject(1, 'Mathematics', 3, 1)], [mark(1, 2)], [])
        self.assertEqual(card.subjects[0].percentage, Decimal('66.67'))
        card = build_report_card([exam_subject(1, 'Mathematics', 200, 1)], [mark(1, '0.01')], [])
        self.assertEqual(card.subjects[0].percentage, Decimal('0.01'))

    def test_overall_uses_raw_totals(self):
        card = build_report_card(
            [exam_subject(1, 'Mathematics', 3, 0), exam_subject(2, 'English', 3, 0)],
            [mark(1, 1), mark(2, 1)],
            [],
        )
        self.assertEqual(card.overall_percentage, Decimal('33.33'))

    def test_marks_for_other_subjects_are_ignored(self):
        card = build_report_card([exam_subject(1, 'Mathematics', 100, 40)], [mark(1, 50), mark(99, 100)], [])
        self.assertEqual(card.total_obtained, Decimal('50'))

    def test_as_dict(self):
        card = build_report_card([exam_subject(1, 'Mathematics', 100, 40)], [mark(1, 85)], STANDARD_TIERS)
        data = card.as_dict()
        self.assertEqual(data['overall_percentage'], '85.00')
        self.assertEqual(data['subjects'][0]['grade'], 'A')
        self.assertEqual(data['result'], 'PASS')


# =============================================================================
# DATABASE-BACKED TESTS
# =============================================================================

class GradebookTestCase(TestCase):
    """Base test case: one class, two subjects, one exam, a default scale."""

    def setUp(self):
        self.admin = User.objects.create_school_admin(email='admin@school.com', password='testpass123')
        self.teacher = User.objects.create_teacher(email='teacher@school.com', password='testpass123')
        self.other_teacher = User.objects.create_teacher(email='other@school.com', password='testpass123')

        self.class_obj = Class.objects.create(name='Grade 8', section='A', academic_year='2025-2026')
        self.math = Subject.objects.create(name='Mathematics', code='MATH')
        self.english = Subject.objects.create(name='English', code='ENG')
        ClassSubject.objects.create(class_assigned=self.class_obj, subject=self.math, teacher=self.teacher)

        self.students = [
            User.objects.create_student(email=f'student{i}@school.com', full_name=f'Student {i}')
            for i in (1, 2)
        ]
        for student in self.students:
            StudentClass.objects.create(student=student, class_assigned=self.class_obj, academic_year='2025-2026')

        self.exam = Exam.objects.create(
            name='Mid-Term 2025',
            class_assigned=self.class_obj,
            academic_year='2025-2026',
        )
        self.math_paper = ExamSubject.objects.create(exam=self.exam, subject=self.math, max_marks=100, passing_marks=40)
        self.english_paper = ExamSubject.objects.create(exam=self.exam, subject=self.english, max_marks=50, passing_marks=20)

        self.scale = GradingScale.objects.create(name='Standard', academic_year='2025-2026', is_default=True)
        for grade, low, high in [('A+', 90, 100), ('A', 80, '89.99'), ('B', 60, '79.99'), ('C', 40, '59.99'), ('F', 0, '39.99')]:
            GradeTier.objects.create(
                scale=self.scale, grade=grade,
                min_percentage=Decimal(str(low)), max_percentage=Decimal(str(high)),
            )


class ModelTests(GradebookTestCase):

    def test_scale_resolve(self):
        self.assertEqual(self.scale.resolve(Decimal('85.00')), 'A')
        self.assertEqual(self.scale.resolve_tier(Decimal('50')).grade, 'C')

    def test_default_scale(self):
        GradingScale.objects.create(name='Alpha')
        self.assertEqual(get_default_scale(), self.scale)
        self.scale.is_default = False
        self.scale.save()
        self.assertEqual(get_default_scale().name, 'Alpha')

    def test_tier_min_above_max_is_invalid(self):
        bad = GradeTier(scale=self.scale, grade='Z', min_percentage=Decimal('60'), max_percentage=Decimal('50'))
        with self.assertRaises(ValidationError):
            bad.full_clean()

    def test_tier_form(self):
        form = GradeTierForm(data={'grade': 'Z', 'min_percentage': '70', 'max_percentage': '60'})
        self.assertFalse(form.is_valid())
        form = GradeTierForm(data={'grade': 'Z', 'min_percentage': '60', 'max_percentage': '70'})
        self.assertTrue(form.is_valid())

    def test_exam_subject_passing_above_max_is_invalid(self):
        paper = ExamSubject(exam=self.exam, subject=Subject.objects.create(name='Science', code='SCI'),
                            max_marks=50, passing_marks=60)
        with self.assertRaises(ValidationError):
            paper.full_clean()

    def test_exam_subject_check_constraint(self):
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                ExamSubject.objects.filter(pk=self.math_paper.pk).update(passing_marks=150)

    def test_max_marks_fits_mark_precision(self):
        paper = ExamSubject(exam=self.exam, subject=Subject.objects.create(name='Science', code='SCI'),
                            max_marks=20000, passing_marks=100)
        with self.assertRaises(ValidationError):
            paper.full_clean()
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                ExamSubject.objects.filter(pk=self.math_paper.pk).update(max_marks=20000)

    def test_full_marks_on_largest_paper(self):
        self.math_paper.max_marks = MAX_MARKS_LIMIT
        self.math_paper.save()
        save_marks(self.math_paper, [{'student_id': self.students[0].id, 'marks_obtained': MAX_MARKS_LIMIT}])
        mark = StudentMark.objects.get(exam_subject=self.math_paper, student=self.students[0])
        self.assertEqual(mark.marks_obtained, Decimal('9999'))

    def test_one_mark_per_student_and_subject(self):
        StudentMark.objects.create(exam_subject=self.math_paper, student=self.students[0], marks_obtained=10)
        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                StudentMark.objects.create(exam_subject=self.math_paper, student=self.students[0], marks_obtained=20)


class SaveMarksTests(GradebookTestCase):

    def rows(self, *values):
        return [
            {'student_id': student.id, 'marks_obtained': value}
            for student, value in zip(self.students, values)
        ]

    def test_create_then_update(self):
        summary = save_marks(self.math_paper, self.rows('85', '30'), entered_by=self.teacher)
        self.assertEqual(summary['created'], 2)

        summary = save_marks(self.math_paper, self.rows('85', '42.5'), entered_by=self.teacher)
        self.assertEqual(summary, {'created': 0, 'updated': 1, 'unchanged': 1, 'skipped': 0})
        self.assertEqual(
            StudentMark.objects.get(student=self.students[1]).marks_obtained,
            Decimal('42.50'),
        )
        self.assertEqual(StudentMark.objects.count(), 2)
        self.assertEqual(AuditLog.objects.filter(action='marks_saved').count(), 2)

    def test_identical_resave_is_noop(self):
        save_marks(self.math_paper, self.rows('85', '30'), entered_by=self.teacher)
        snapshot = list(StudentMark.objects.order_by('student_id').values())

        summary = save_marks(self.math_paper, self.rows('85.00', 30), entered_by=self.admin)

        self.assertEqual(summary['unchanged'], 2)
        self.assertEqual(list(StudentMark.objects.order_by('student_id').values()), snapshot)
        self.assertEqual(AuditLog.objects.filter(action='marks_saved').count(), 1)

    def test_blank_marks_are_skipped(self):
        save_marks(self.math_paper, self.rows('85', '30'), entered_by=self.teacher)

        summary = save_marks(self.math_paper, self.rows('', None), entered_by=self.teacher)

        self.assertEqual(summary['skipped'], 2)
        self.assertEqual(
            sorted(StudentMark.objects.values_list('marks_obtained', flat=True)),
            [Decimal('30.00'), Decimal('85.00')],
        )

    def test_blank_mark_for_new_student_writes_nothing(self):
        save_marks(self.math_paper, self.rows(''), entered_by=self.teacher)
        self.assertFalse(StudentMark.objects.exists())

    def test_above_max_rejects_batch(self):
        with self.assertRaises(BatchValidationError) as ctx:
            save_marks(self.math_paper, self.rows('50', '101'), entered_by=self.teacher)

        error = ctx.exception
        self.assertEqual(error.student_id, self.students[1].id)
        self.assertEqual(error.bound, 100)
        self.assertFalse(StudentMark.objects.exists())

    def test_negative_rejects_batch(self):
        with self.assertRaises(BatchValidationError) as ctx:
            save_marks(self.english_paper, self.rows('-1', '10'), entered_by=self.teacher)
        self.assertEqual(ctx.exception.bound, 0)
        self.assertFalse(StudentMark.objects.exists())

    def test_bounds_are_inclusive(self):
        summary = save_marks(self.english_paper, self.rows('0', '50'), entered_by=self.teacher)
        self.assertEqual(summary['created'], 2)

    def test_non_numeric_mark(self):
        with self.assertRaises(BatchValidationError) as ctx:
            save_marks(self.math_paper, self.rows('eighty'), entered_by=self.teacher)
        self.assertEqual(ctx.exception.field, 'marks_obtained')

    def test_student_not_in_class(self):
        outsider = User.objects.create_student(email='outsider@school.com')
        with self.assertRaises(BatchValidationError):
            save_marks(self.math_paper, [{'student_id': outsider.id, 'marks_obtained': '10'}], self.teacher)

    def test_entered_by_only_changes_with_value(self):
        save_marks(self.math_paper, self.rows('85'), entered_by=self.teacher)
        save_marks(self.math_paper, self.rows('85'), entered_by=self.admin)
        self.assertEqual(StudentMark.objects.get().entered_by, self.teacher)

        save_marks(self.math_paper, self.rows('86'), entered_by=self.admin)
        self.assertEqual(StudentMark.objects.get().entered_by, self.admin)


class GradedExamTestCase(GradebookTestCase):
    """Student 1 has both papers marked; student 2 has none."""

    def setUp(self):
        super().setUp()
        save_marks(self.math_paper, [{'student_id': self.students[0].id, 'marks_obtained': '85'}], self.teacher)
        save_marks(self.english_paper, [{'student_id': self.students[0].id, 'marks_obtained': '45'}], self.teacher)


class ReportLoadingTests(GradedExamTestCase):

    def test_load_report_card(self):
        card = load_report_card(self.students[0], self.exam)

        self.assertEqual([s.subject_name for s in card.subjects], ['English', 'Mathematics'])
        self.assertEqual(card.subjects[0].grade, 'A+')
        self.assertEqual(card.total_obtained, Decimal('130'))
        self.assertEqual(card.total_max, 150)
        self.assertEqual(card.overall_percentage, Decimal('86.67'))
        self.assertEqual(card.overall_grade, 'A')
        self.assertEqual(card.result, ReportResult.PASS)

    def test_load_with_explicit_scale(self):
        strict = GradingScale.objects.create(name='Strict')
        GradeTier.objects.create(scale=strict, grade='P', min_percentage=0, max_percentage=100)
        card = load_report_card(self.students[0], self.exam, scale=strict)
        self.assertEqual(card.overall_grade, 'P')

    def test_no_scale_configured(self):
        GradingScale.objects.all().delete()
        card = load_report_card(self.students[0], self.exam)
        self.assertEqual(card.overall_grade, 'N/A')

    def test_class_report_cards(self):
        cards = build_class_report_cards(self.exam)

        self.assertEqual([student for student, _ in cards], self.students)
        second = cards[1][1]
        self.assertFalse(second.has_marks)
        self.assertEqual(second.result, ReportResult.INCOMPLETE)
        self.assertEqual(second.overall_percentage, Decimal('0.00'))

    def test_can_view_report(self):
        own, other = self.students
        self.assertTrue(can_view_report(self.admin, own))
        self.assertTrue(can_view_report(self.teacher, own))
        self.assertTrue(can_view_report(own, own))
        self.assertFalse(can_view_report(own, other))


class GradebookViewTests(GradedExamTestCase):

    def auth(self, user):
        return {'HTTP_AUTHORIZATION': f'Bearer {issue_token(user)}'}

    def test_marks_sheet_get(self):
        response = self.client.get(
            reverse('gradebook:marks_sheet', args=[self.math_paper.pk]), **self.auth(self.teacher)
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['max_marks'], 100)
        self.assertEqual([m['marks_obtained'] for m in data['marks']], ['85.00', None])

    def test_marks_sheet_post(self):
        response = self.client.post(
            reverse('gradebook:marks_sheet', args=[self.math_paper.pk]),
            data=json.dumps({'marks': [{'student_id': self.students[1].id, 'marks_obtained': 55}]}),
            content_type='application/json',
            **self.auth(self.teacher)
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['created'], 1)

    def test_marks_out_of_range_returns_400(self):
        response = self.client.post(
            reverse('gradebook:marks_sheet', args=[self.english_paper.pk]),
            data=json.dumps({'marks': [{'student_id': self.students[1].id, 'marks_obtained': 51}]}),
            content_type='application/json',
            **self.auth(self.admin)
        )
        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertEqual(data['student_id'], self.students[1].id)
        self.assertEqual(data['bound'], '50')

    def test_teacher_without_subject_forbidden(self):
        self.assertFalse(can_edit_marks(self.other_teacher, self.math_paper))
        response = self.client.get(
            reverse('gradebook:marks_sheet', args=[self.math_paper.pk]), **self.auth(self.other_teacher)
        )
        self.assertEqual(response.status_code, 403)

    def post_marks_with_session(self, client, **extra):
        client.force_login(self.teacher)
        return client.post(
            reverse('gradebook:marks_sheet', args=[self.math_paper.pk]),
            data=json.dumps({'marks': [{'student_id': self.students[1].id, 'marks_obtained': 1}]}),
            content_type='text/plain',
            **extra
        )

    def test_session_post_without_csrf_token_rejected(self):
        response = self.post_marks_with_session(Client(enforce_csrf_checks=True))
        self.assertEqual(response.status_code, 403)
        self.assertFalse(
            StudentMark.objects.filter(exam_subject=self.math_paper, student=self.students[1]).exists()
        )

    def test_session_post_with_csrf_token_accepted(self):
        client = Client(enforce_csrf_checks=True)
        client.cookies['csrftoken'] = 'a' * 32
        response = self.post_marks_with_session(client, HTTP_X_CSRFTOKEN='a' * 32)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['created'], 1)

    def test_bearer_post_needs_no_csrf_token(self):
        response = Client(enforce_csrf_checks=True).post(
            reverse('gradebook:marks_sheet', args=[self.math_paper.pk]),
            data=json.dumps({'marks': [{'student_id': self.students[1].id, 'marks_obtained': 1}]}),
            content_type='application/json',
            **self.auth(self.teacher)
        )
        self.assertEqual(response.status_code, 200)

    def test_report_card_list(self):
        response = self.client.get(
            reverse('gradebook:report_card_list', args=[self.exam.pk]), **self.auth(self.teacher)
        )
        self.assertEqual(response.status_code, 200)
        cards = response.json()['report_cards']
        self.assertEqual(len(cards), 2)
        self.assertEqual(cards[0]['overall_percentage'], '86.67')
        self.assertEqual(cards[1]['result'], 'INCOMPLETE')

    def test_report_card_list_forbidden_for_students(self):
        response = self.client.get(
            reverse('gradebook:report_card_list', args=[self.exam.pk]), **self.auth(self.students[0])
        )
        self.assertEqual(response.status_code, 403)

    def test_student_views_own_card(self):
        own, other = self.students
        response = self.client.get(
            reverse('gradebook:report_card_detail', args=[self.exam.pk, own.pk]), **self.auth(own)
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['overall_grade'], 'A')

        response = self.client.get(
            reverse('gradebook:report_card_detail', args=[self.exam.pk, other.pk]), **self.auth(own)
        )
        self.assertEqual(response.status_code, 403)

    def test_unknown_scale_param(self):
        url = reverse('gradebook:report_card_list', args=[self.exam.pk])
        response = self.client.get(url, {'scale': 'not-a-uuid'}, **self.auth(self.admin))
        self.assertEqual(response.status_code, 404)

    def test_export(self):
        response = self.client.get(
            reverse('gradebook:report_cards_export', args=[self.exam.pk]), **self.auth(self.admin)
        )
        self.assertEqual(response.status_code, 200)
        self.assertIn('attachment;', response['Content-Disposition'])

        wb = openpyxl.load_workbook(io.BytesIO(response.content))
        ws = wb.active
        headers = [c.value for c in ws[1]]
        self.assertEqual(headers[:4], ['Student', 'Email', 'ENG (/50)', 'MATH (/100)'])
        self.assertEqual(ws.cell(row=2, column=1).value, 'Student 1')
        self.assertEqual(ws.cell(row=2, column=headers.index('Grade') + 1).value, 'A')
        self.assertEqual(ws.cell(row=3, column=3).value, '—')

    def test_grading_scale_detail(self):
        GradeTier.objects.create(scale=self.scale, grade='D', min_percentage=Decimal('35'), max_percentage=Decimal('45'))
        response = self.client.get(
            reverse('gradebook:grading_scale_detail', args=[self.scale.pk]), **self.auth(self.admin)
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['tiers'][0]['grade'], 'A+')
        self.assertTrue(any(p['type'] == 'overlap' for p in data['problems']))
