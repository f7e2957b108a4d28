"""
Tests for the academics app.

Focuses on:
- Attendance register upsert (idempotence, validation, last write wins)
- Attendance permissions
- Attendance and timetable endpoints
"""
import json
from datetime import date, time

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone

from accounts.tokens import issue_token
from core.choices import AttendanceStatus
from core.models import AuditLog
from core.upsert import BatchValidationError
from .attendance import attendance_sheet, mark_all, save_attendance
from .models import AttendanceRecord, Class, ClassSubject, StudentClass, Subject, TimetableSlot
from .utils import can_mark_attendance, get_class_students, get_current_class, get_todays_slots

User = get_user_model()


# =============================================================================
# BASE TEST CASE
# =============================================================================

class AcademicsTestCase(TestCase):
    """Base test case with a class of three enrolled students."""

    def setUp(self):
        self.admin = User.objects.create_school_admin(email='admin@school.com', password='testpass123')
        self.teacher = User.objects.create_teacher(email='teacher@school.com', password='testpass123')
        self.other_teacher = User.objects.create_teacher(email='other@school.com', password='testpass123')

        self.class_obj = Class.objects.create(
            name='Grade 8',
            section='A',
            academic_year='2025-2026',
            class_teacher=self.teacher,
        )
        self.students = [
            User.objects.create_student(email=f'student{i}@school.com', full_name=f'Student {i}')
            for i in range(1, 4)
        ]
        for student in self.students:
            StudentClass.objects.create(
                student=student,
                class_assigned=self.class_obj,
                academic_year='2025-2026',
            )
        self.date = date(2025, 10, 6)

    def rows(self, *statuses):
        return [
            {'student_id': student.id, 'status': status}
            for student, status in zip(self.students, statuses)
        ]


# =============================================================================
# ATTENDANCE UPSERT
# =============================================================================

class SaveAttendanceTests(AcademicsTestCase):

    def test_first_save_creates_rows(self):
        summary = save_attendance(
            self.class_obj, self.date,
            self.rows('present', 'absent', 'late'),
            marked_by=self.teacher,
        )
        self.assertEqual(summary, {'created': 3, 'updated': 0, 'unchanged': 0, 'skipped': 0})
        self.assertEqual(AttendanceRecord.objects.count(), 3)
        self.assertTrue(AuditLog.objects.filter(action='attendance_saved').exists())

    def test_resave_with_one_change(self):
        """Re-saving with one student switched to excused updates only that row."""
        save_attendance(self.class_obj, self.date, self.rows('present', 'absent', 'late'), self.teacher)
        before = {
            r.student_id: (r.pk, r.created_at, r.updated_at)
            for r in AttendanceRecord.objects.all()
        }

        summary = save_attendance(
            self.class_obj, self.date,
            self.rows('present', 'excused', 'late'),
            self.teacher,
        )

        self.assertEqual(summary['updated'], 1)
        self.assertEqual(summary['unchanged'], 2)
        self.assertEqual(AttendanceRecord.objects.count(), 3)

        records = {r.student_id: r for r in AttendanceRecord.objects.all()}
        s1, s2, s3 = self.students
        self.assertEqual(records[s1.id].status, AttendanceStatus.PRESENT)
        self.assertEqual(records[s2.id].status, AttendanceStatus.EXCUSED)
        self.assertEqual(records[s3.id].status, AttendanceStatus.LATE)

        # Identity and creation time survive the update
        for student_id, record in records.items():
            pk, created_at, updated_at = before[student_id]
            self.assertEqual(record.pk, pk)
            self.assertEqual(record.created_at, created_at)
        self.assertEqual(records[s1.id].updated_at, before[s1.id][2])

    def test_identical_resave_is_noop(self):
        rows = self.rows('present', 'absent', 'late')
        save_attendance(self.class_obj, self.date, rows, self.teacher)
        snapshot = list(AttendanceRecord.objects.order_by('pk').values())

        summary = save_attendance(self.class_obj, self.date, rows, self.admin)

        self.assertEqual(summary, {'created': 0, 'updated': 0, 'unchanged': 3, 'skipped': 0})
        self.assertEqual(list(AttendanceRecord.objects.order_by('pk').values()), snapshot)
        # marked_by is not rewritten when nothing changed
        self.assertFalse(AttendanceRecord.objects.filter(marked_by=self.admin).exists())

    def test_invalid_status_rejects_whole_batch(self):
        save_attendance(self.class_obj, self.date, self.rows('present', 'absent', 'late'), self.teacher)

        rows = self.rows('absent', 'present', 'sick')
        with self.assertRaises(BatchValidationError) as ctx:
            save_attendance(self.class_obj, self.date, rows, self.teacher)

        self.assertEqual(ctx.exception.field, 'status')
        self.assertEqual(ctx.exception.student_id, self.students[2].id)
        # Earlier valid rows in the batch were not written
        statuses = dict(AttendanceRecord.objects.values_list('student_id', 'status'))
        self.assertEqual(statuses[self.students[0].id], AttendanceStatus.PRESENT)
        self.assertEqual(statuses[self.students[1].id], AttendanceStatus.ABSENT)

    def test_student_not_in_class_is_rejected(self):
        outsider = User.objects.create_student(email='outsider@school.com')
        rows = self.rows('present') + [{'student_id': outsider.id, 'status': 'present'}]

        with self.assertRaises(BatchValidationError) as ctx:
            save_attendance(self.class_obj, self.date, rows, self.teacher)

        self.assertEqual(ctx.exception.student_id, outsider.id)
        self.assertFalse(AttendanceRecord.objects.exists())

    def test_duplicate_student_in_batch_last_wins(self):
        student = self.students[0]
        rows = [
            {'student_id': student.id, 'status': 'absent'},
            {'student_id': student.id, 'status': 'late'},
        ]
        summary = save_attendance(self.class_obj, self.date, rows, self.teacher)

        self.assertEqual(summary['created'], 1)
        self.assertEqual(AttendanceRecord.objects.get(student=student).status, AttendanceStatus.LATE)

    def test_other_dates_untouched(self):
        save_attendance(self.class_obj, self.date, self.rows('absent', 'absent', 'absent'), self.teacher)
        save_attendance(self.class_obj, date(2025, 10, 7), self.rows('present', 'present', 'present'), self.teacher)

        self.assertEqual(
            AttendanceRecord.objects.filter(date=self.date, status=AttendanceStatus.ABSENT).count(), 3
        )

    def test_partial_register_does_not_fill_missing_students(self):
        save_attendance(self.class_obj, self.date, self.rows('present'), self.teacher)
        self.assertEqual(AttendanceRecord.objects.count(), 1)

    def test_mark_all(self):
        rows = mark_all(self.rows('present', 'absent', 'late'), AttendanceStatus.EXCUSED)
        self.assertEqual({r['status'] for r in rows}, {AttendanceStatus.EXCUSED})
        self.assertEqual([r['student_id'] for r in rows], [s.id for s in self.students])

    def test_attendance_sheet(self):
        save_attendance(self.class_obj, self.date, self.rows('late'), self.teacher)
        sheet = attendance_sheet(self.class_obj, self.date)

        self.assertEqual(len(sheet), 3)
        by_id = {row['student_id']: row for row in sheet}
        self.assertEqual(by_id[self.students[0].id]['status'], AttendanceStatus.LATE)
        self.assertIsNone(by_id[self.students[1].id]['status'])


# =============================================================================
# UTILITIES
# =============================================================================

class AcademicsUtilsTests(AcademicsTestCase):

    def test_get_class_students_ordered_by_name(self):
        self.assertEqual(list(get_class_students(self.class_obj)), self.students)

    def test_enrollment_in_other_year_is_ignored(self):
        late_joiner = User.objects.create_student(email='late@school.com')
        StudentClass.objects.create(student=late_joiner, class_assigned=self.class_obj, academic_year='2024-2025')
        self.assertNotIn(late_joiner, get_class_students(self.class_obj))

    def test_get_current_class(self):
        self.assertEqual(get_current_class(self.students[0]), self.class_obj)
        self.assertIsNone(get_current_class(self.teacher))

    def test_can_mark_attendance(self):
        self.assertTrue(can_mark_attendance(self.admin, self.class_obj))
        self.assertTrue(can_mark_attendance(self.teacher, self.class_obj))
        self.assertFalse(can_mark_attendance(self.other_teacher, self.class_obj))
        self.assertFalse(can_mark_attendance(self.students[0], self.class_obj))

        subject = Subject.objects.create(name='Mathematics', code='MATH')
        ClassSubject.objects.create(class_assigned=self.class_obj, subject=subject, teacher=self.other_teacher)
        self.assertTrue(can_mark_attendance(self.other_teacher, self.class_obj))

    def test_todays_slots(self):
        today = timezone.localdate()
        subject = Subject.objects.create(name='Mathematics', code='MATH')
        slot = TimetableSlot.objects.create(
            class_assigned=self.class_obj,
            subject=subject,
            teacher=self.teacher,
            day_of_week=today.isoweekday(),
            start_time=time(8, 0),
            end_time=time(9, 0),
        )
        TimetableSlot.objects.create(
            class_assigned=self.class_obj,
            subject=subject,
            teacher=self.teacher,
            day_of_week=today.isoweekday() % 7 + 1,
            start_time=time(8, 0),
            end_time=time(9, 0),
        )

        self.assertEqual(list(get_todays_slots(self.students[0])), [slot])
        self.assertEqual(list(get_todays_slots(self.teacher)), [slot])
        self.assertEqual(list(get_todays_slots(self.other_teacher)), [])


# =============================================================================
# VIEWS
# =============================================================================

class AttendanceViewTests(AcademicsTestCase):

    def url(self, day=None):
        return reverse('academics:attendance_register', args=[self.class_obj.pk, day or self.date.isoformat()])

    def post(self, body, user):
        return self.client.post(
            self.url(),
            data=json.dumps(body),
            content_type='application/json',
            HTTP_AUTHORIZATION=f'Bearer {issue_token(user)}',
        )

    def test_save_and_read_register(self):
        response = self.post({'records': self.rows('present', 'absent', 'late')}, self.teacher)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['created'], 3)

        self.client.force_login(self.teacher)
        response = self.client.get(self.url())
        self.assertEqual(response.status_code, 200)
        statuses = [r['status'] for r in response.json()['records']]
        self.assertEqual(statuses, ['present', 'absent', 'late'])

    def test_mark_all_option(self):
        response = self.post({'records': self.rows('absent', 'absent', 'absent'), 'mark_all': 'present'}, self.teacher)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(AttendanceRecord.objects.filter(status=AttendanceStatus.PRESENT).count(), 3)

    def test_invalid_row_returns_400(self):
        response = self.post({'records': self.rows('present', 'asleep')}, self.teacher)
        self.assertEqual(response.status_code, 400)
        data = response.json()
        self.assertEqual(data['student_id'], self.students[1].id)
        self.assertEqual(data['field'], 'status')
        self.assertFalse(AttendanceRecord.objects.exists())

    def test_records_must_be_list(self):
        response = self.post({'records': 'present'}, self.teacher)
        self.assertEqual(response.status_code, 400)

    def test_unassigned_teacher_forbidden(self):
        response = self.post({'records': self.rows('present')}, self.other_teacher)
        self.assertEqual(response.status_code, 403)

    def test_student_forbidden(self):
        response = self.post({'records': self.rows('present')}, self.students[0])
        self.assertEqual(response.status_code, 403)

    def test_anonymous_unauthorized(self):
        response = self.client.get(self.url())
        self.assertEqual(response.status_code, 401)

    def test_invalid_date(self):
        self.client.force_login(self.admin)
        response = self.client.get(self.url('2025-13-45'))
        self.assertEqual(response.status_code, 404)


class TimetableViewTests(AcademicsTestCase):

    def test_student_sees_class_slots(self):
        subject = Subject.objects.create(name='English', code='ENG')
        TimetableSlot.objects.create(
            class_assigned=self.class_obj,
            subject=subject,
            teacher=self.teacher,
            day_of_week=timezone.localdate().isoweekday(),
            start_time=time(10, 0),
            end_time=time(11, 0),
            room='B2',
        )
        self.client.force_login(self.students[0])
        response = self.client.get(reverse('academics:timetable_today'))

        self.assertEqual(response.status_code, 200)
        slots = response.json()['slots']
        self.assertEqual(len(slots), 1)
        self.assertEqual(slots[0]['subject'], 'English')
        self.assertEqual(slots[0]['start_time'], '10:00')
