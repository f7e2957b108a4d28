from datetime import date, time
from decimal import Decimal
from types import SimpleNamespace

from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone

from accounts.models import ApprovalRequest
from academics.models import AttendanceRecord, Class, StudentClass, Subject, TimetableSlot
from gradebook.models import Exam, ExamSubject, GradeTier, GradingScale, StudentMark
from .choices import AttendanceStatus, Role
from .dashboard import (
    admin_summary, attendance_rate, count_by, latest_exam_result, student_summary, teacher_summary,
)
from .models import AuditLog
from .upsert import BatchValidationError, WritePlan, apply_write_plan, index_by_key, reconcile
from .utils import percentage, round2, whole_percentage

User = get_user_model()


class UtilsTests(SimpleTestCase):

    def test_round2_half_up(self):
        self.assertEqual(round2(Decimal('2.345')), Decimal('2.35'))
        self.assertEqual(round2(Decimal('2.344')), Decimal('2.34'))
        self.assertEqual(round2(0.125), Decimal('0.13'))

    def test_percentage(self):
        self.assertEqual(percentage(1, 3), Decimal('33.33'))
        self.assertEqual(percentage(85, 100), Decimal('85.00'))
        self.assertEqual(percentage(5, 0), Decimal('0.00'))

    def test_whole_percentage(self):
        self.assertEqual(whole_percentage(1, 2), 50)
        self.assertEqual(whole_percentage(1, 8), 13)
        self.assertEqual(whole_percentage(2, 3), 67)
        self.assertIsNone(whole_percentage(3, 0))


# =============================================================================
# RECONCILER
# =============================================================================

def row(student_id, status, remarks='', marked_by_id=None):
    return SimpleNamespace(
        student_id=student_id,
        class_assigned_id=1,
        date=date(2025, 10, 6),
        status=status,
        remarks=remarks,
        marked_by_id=marked_by_id,
    )


KEY = ('student_id', 'class_assigned_id', 'date')
VALUES = ('status', 'remarks')


class ReconcileTests(SimpleTestCase):

    def test_new_keys_are_created(self):
        plan = reconcile([row(1, 'present'), row(2, 'absent')], {}, KEY, VALUES)
        self.assertEqual(len(plan.to_create), 2)
        self.assertTrue(plan.has_writes)

    def test_changed_row_is_updated_in_place(self):
        stored = row(1, 'present', marked_by_id=10)
        stored.pk = 99
        existing = index_by_key([stored], KEY)

        plan = reconcile([row(1, 'late', marked_by_id=11)], existing, KEY, VALUES, ('marked_by_id',))

        self.assertEqual(plan.to_update, [stored])
        self.assertEqual(stored.status, 'late')
        self.assertEqual(stored.marked_by_id, 11)
        self.assertEqual(stored.pk, 99)

    def test_unchanged_row_keeps_audit_fields(self):
        stored = row(1, 'present', marked_by_id=10)
        plan = reconcile([row(1, 'present', marked_by_id=11)], index_by_key([stored], KEY), KEY, VALUES, ('marked_by_id',))

        self.assertEqual(plan.unchanged, [stored])
        self.assertEqual(stored.marked_by_id, 10)
        self.assertFalse(plan.has_writes)

    def test_unset_rows_are_skipped(self):
        stored = row(1, 'present')
        plan = reconcile(
            [row(1, None), row(2, None)],
            index_by_key([stored], KEY),
            KEY, VALUES,
            is_unset=lambda r: r.status is None,
        )
        self.assertEqual(len(plan.skipped), 2)
        self.assertEqual(stored.status, 'present')
        self.assertEqual(plan.summary(), {'created': 0, 'updated': 0, 'unchanged': 0, 'skipped': 2})

    def test_last_duplicate_wins(self):
        plan = reconcile([row(1, 'absent'), row(2, 'present'), row(1, 'late')], {}, KEY, VALUES)
        self.assertEqual([(r.student_id, r.status) for r in plan.to_create], [(2, 'present'), (1, 'late')])

    def test_missing_rows_are_not_inferred(self):
        existing = index_by_key([row(1, 'present'), row(2, 'present')], KEY)
        plan = reconcile([row(1, 'present')], existing, KEY, VALUES)
        self.assertEqual(plan.summary(), {'created': 0, 'updated': 0, 'unchanged': 1, 'skipped': 0})

    def test_batch_error_as_dict(self):
        error = BatchValidationError('too high', student_id=7, field='marks_obtained', bound=100, value=Decimal('101'))
        self.assertEqual(error.as_dict(), {
            'error': 'too high',
            'student_id': 7,
            'field': 'marks_obtained',
            'bound': '100',
            'value': '101',
        })


class ApplyWritePlanTests(TestCase):

    def setUp(self):
        self.teacher = User.objects.create_teacher(email='teacher@school.com')
        self.student = User.objects.create_student(email='student@school.com')
        self.class_obj = Class.objects.create(name='Grade 8', academic_year='2025-2026')
        self.day = date(2025, 10, 6)

    def record(self, status):
        return AttendanceRecord(
            student=self.student,
            class_assigned=self.class_obj,
            date=self.day,
            status=status,
            marked_by=self.teacher,
        )

    def test_insert_racing_an_existing_row_overwrites_it(self):
        """A plan built before another writer inserted the same key still succeeds."""
        first = self.record(AttendanceStatus.ABSENT)
        first.save()

        plan = WritePlan(to_create=[self.record(AttendanceStatus.LATE)])
        apply_write_plan(AttendanceRecord, plan, KEY, VALUES, ('marked_by_id',))

        self.assertEqual(AttendanceRecord.objects.count(), 1)
        stored = AttendanceRecord.objects.get()
        self.assertEqual(stored.pk, first.pk)
        self.assertEqual(stored.status, AttendanceStatus.LATE)

    def test_empty_plan_writes_nothing(self):
        apply_write_plan(AttendanceRecord, WritePlan(), KEY, VALUES)
        self.assertFalse(AttendanceRecord.objects.exists())


# =============================================================================
# DASHBOARD AGGREGATION
# =============================================================================

class DashboardAggregationTests(SimpleTestCase):

    def test_count_by_first_seen_order(self):
        items = [{'role': 'teacher'}, {'role': 'student'}, {'role': 'teacher'}, {'role': ''}, {'role': None}]
        self.assertEqual(count_by(items, 'role'), [
            {'name': 'teacher', 'value': 2},
            {'name': 'student', 'value': 1},
        ])

    def test_count_by_objects(self):
        items = [SimpleNamespace(status='present'), SimpleNamespace(status='present')]
        self.assertEqual(count_by(items, 'status'), [{'name': 'present', 'value': 2}])

    def test_attendance_rate(self):
        self.assertIsNone(attendance_rate([]))
        self.assertEqual(attendance_rate(['present', 'late', 'absent']), 67)
        self.assertEqual(attendance_rate(['present', 'excused']), 50)
        self.assertEqual(attendance_rate(['absent']), 0)
        # 1 of 8 is 12.5, rounded half up
        self.assertEqual(attendance_rate(['present'] + ['absent'] * 7), 13)

    def test_admin_summary(self):
        users = [
            {'role': 'admin', 'status': 'approved'},
            {'role': 'teacher', 'status': 'approved'},
            {'role': 'student', 'status': 'approved'},
            {'role': 'student', 'status': 'approved'},
            {'role': '', 'status': 'pending'},
        ]
        summary = admin_summary(users, 1, 3, ['present', 'absent'], 2)

        self.assertEqual(summary['total_users'], 5)
        self.assertEqual(summary['total_students'], 2)
        self.assertEqual(summary['total_teachers'], 1)
        self.assertEqual(summary['active_users'], 4)
        self.assertEqual(summary['pending_approvals'], 1)
        self.assertEqual(summary['total_classes'], 3)
        self.assertEqual(summary['today_attendance_rate'], 50)
        self.assertEqual(summary['upcoming_exams'], 2)
        self.assertEqual(summary['role_distribution'][0], {'name': 'admin', 'value': 1})

    def test_admin_summary_without_attendance(self):
        self.assertIsNone(admin_summary([], 0, 0, [], 0)['today_attendance_rate'])

    def test_teacher_summary(self):
        classes = [{'id': 1}, {'id': 2}]
        summary = teacher_summary(classes, [1, 1], ['a', 'b', 'c'], ['b'])
        self.assertEqual(summary['pending_attendance'], [{'id': 2}])
        self.assertEqual(summary['pending_marks'], 2)

    def test_latest_exam_result(self):
        tiers = [SimpleNamespace(grade='B', min_percentage=60, max_percentage=79.99)]
        marks = [
            {'exam_id': 2, 'exam_name': 'Final', 'marks_obtained': Decimal('35'), 'max_marks': 50},
            {'exam_id': 2, 'exam_name': 'Final', 'marks_obtained': Decimal('40'), 'max_marks': 50},
            {'exam_id': 1, 'exam_name': 'Midterm', 'marks_obtained': Decimal('10'), 'max_marks': 50},
        ]
        self.assertEqual(latest_exam_result(marks, tiers), {'exam_name': 'Final', 'percentage': 75, 'grade': 'B'})
        self.assertIsNone(latest_exam_result([], tiers))

    def test_student_summary(self):
        summary = student_summary({'id': 1}, ['present', 'absent'], [], None)
        self.assertEqual(summary['attendance_rate'], 50)
        self.assertEqual(summary['todays_slots'], [])


class DashboardViewTests(TestCase):

    def setUp(self):
        self.today = timezone.localdate()
        self.admin = User.objects.create_school_admin(email='admin@school.com')
        self.teacher = User.objects.create_teacher(email='teacher@school.com')
        self.student = User.objects.create_student(email='student@school.com', full_name='Ama')
        self.pending = User.objects.create_user(email='pending@school.com')
        ApprovalRequest.objects.create(user=self.pending, requested_role=Role.TEACHER)

        self.class_obj = Class.objects.create(name='Grade 8', section='A', academic_year='2025-2026', class_teacher=self.teacher)
        StudentClass.objects.create(student=self.student, class_assigned=self.class_obj, academic_year='2025-2026')
        AttendanceRecord.objects.create(
            student=self.student, class_assigned=self.class_obj, date=self.today, status=AttendanceStatus.LATE
        )

        subject = Subject.objects.create(name='Mathematics', code='MATH')
        TimetableSlot.objects.create(
            class_assigned=self.class_obj, subject=subject, teacher=self.teacher,
            day_of_week=self.today.isoweekday(), start_time=time(8, 0), end_time=time(9, 0),
        )
        exam = Exam.objects.create(name='Mid-Term', class_assigned=self.class_obj,
                                   academic_year='2025-2026', end_date=self.today)
        paper = ExamSubject.objects.create(exam=exam, subject=subject, max_marks=50, passing_marks=20)
        ExamSubject.objects.create(exam=exam, subject=Subject.objects.create(name='English', code='ENG'))
        StudentMark.objects.create(exam_subject=paper, student=self.student, marks_obtained=Decimal('42'))

        scale = GradingScale.objects.create(name='Standard', is_default=True)
        GradeTier.objects.create(scale=scale, grade='A', min_percentage=80, max_percentage=100)

    def get(self, user):
        self.client.force_login(user)
        return self.client.get(reverse('core:dashboard'))

    def test_admin_dashboard(self):
        data = self.get(self.admin).json()
        self.assertEqual(data['role'], 'admin')
        self.assertEqual(data['total_users'], 4)
        self.assertEqual(data['pending_approvals'], 1)
        self.assertEqual(data['active_users'], 3)
        self.assertEqual(data['today_attendance_rate'], 100)
        self.assertEqual(data['upcoming_exams'], 1)

    def test_teacher_dashboard(self):
        data = self.get(self.teacher).json()
        self.assertEqual(data['role'], 'teacher')
        self.assertEqual(len(data['assigned_classes']), 1)
        self.assertEqual(data['pending_attendance'], [])
        self.assertEqual(data['pending_marks'], 1)

    def test_student_dashboard(self):
        data = self.get(self.student).json()
        self.assertEqual(data['role'], 'student')
        self.assertEqual(data['class']['name'], 'Grade 8')
        self.assertEqual(data['attendance_rate'], 100)
        self.assertEqual(len(data['todays_slots']), 1)
        self.assertEqual(data['latest_result'], {'exam_name': 'Mid-Term', 'percentage': 84, 'grade': 'A'})

    def test_student_dashboard_counts_unmarked_paper(self):
        english = ExamSubject.objects.get(subject__code='ENG')
        StudentMark.objects.create(exam_subject=english, student=self.student, marks_obtained=None)
        data = self.get(self.student).json()
        self.assertEqual(data['latest_result'], {'exam_name': 'Mid-Term', 'percentage': 28, 'grade': 'N/A'})

    def test_pending_user_forbidden(self):
        self.assertEqual(self.get(self.pending).status_code, 403)

    def test_anonymous_unauthorized(self):
        self.assertEqual(self.client.get(reverse('core:dashboard')).status_code, 401)


class AuditLogTests(TestCase):

    def test_record(self):
        admin = User.objects.create_school_admin(email='admin@school.com')
        entry = AuditLog.record('student_created', performed_by=admin, class_id=3)
        self.assertEqual(entry.details, {'class_id': 3})
        self.assertEqual(entry.performed_by, admin)
