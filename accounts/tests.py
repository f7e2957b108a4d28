import json
from unittest import mock

from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.test import Client, TestCase, override_settings
from django.urls import reverse

from academics.models import Class, StudentClass
from core.choices import ApprovalStatus, Role
from core.models import AuditLog
from .models import ApprovalRequest
from .provisioning import SYMBOLS, generate_temp_password
from .tokens import introspect_token, issue_token, token_from_header

User = get_user_model()


class UserManagerTests(TestCase):
    """Tests for the custom UserManager."""

    def test_create_user(self):
        """Test creating a regular user with email."""
        user = User.objects.create_user(
            email='test@example.com',
            password='testpass123'
        )
        self.assertEqual(user.email, 'test@example.com')
        self.assertTrue(user.check_password('testpass123'))
        self.assertFalse(user.is_staff)
        self.assertFalse(user.is_superuser)
        self.assertEqual(user.role, '')
        self.assertEqual(user.status, ApprovalStatus.PENDING)

    def test_create_user_without_email_raises_error(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email='', password='testpass123')

    def test_create_user_normalizes_email(self):
        """Test that email is normalized (lowercase domain)."""
        user = User.objects.create_user(
            email='test@EXAMPLE.COM',
            password='testpass123'
        )
        self.assertEqual(user.email, 'test@example.com')

    def test_create_superuser(self):
        user = User.objects.create_superuser(
            email='admin@example.com',
            password='adminpass123'
        )
        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)
        self.assertEqual(user.role, Role.ADMIN)
        self.assertEqual(user.role_label, 'Super Admin')

    def test_create_superuser_without_is_staff_raises_error(self):
        with self.assertRaises(ValueError):
            User.objects.create_superuser(
                email='admin@example.com',
                password='adminpass123',
                is_staff=False
            )

    def test_role_helpers(self):
        teacher = User.objects.create_teacher(email='teacher@school.com', password='pass12345')
        student = User.objects.create_student(email='student@school.com', password='pass12345')
        admin = User.objects.create_school_admin(email='principal@school.com', password='pass12345')

        self.assertTrue(teacher.is_teacher)
        self.assertFalse(teacher.is_student)
        self.assertTrue(student.is_student)
        self.assertTrue(admin.is_school_admin)
        self.assertEqual(student.role_label, 'Student')
        self.assertEqual(student.status, ApprovalStatus.APPROVED)

    def test_str_prefers_full_name(self):
        user = User.objects.create_user(email='ama@school.com', full_name='Ama Mensah')
        self.assertEqual(str(user), 'Ama Mensah')


class AccessTokenTests(TestCase):

    def setUp(self):
        self.user = User.objects.create_teacher(email='teacher@school.com', password='teacherpass123')

    def test_issue_and_introspect(self):
        token = issue_token(self.user)
        self.assertEqual(introspect_token(token), self.user)

    def test_tampered_token_is_rejected(self):
        token = issue_token(self.user)
        self.assertIsNone(introspect_token(token[:-2] + 'xx'))
        self.assertIsNone(introspect_token('not-a-token'))

    def test_password_change_revokes_token(self):
        token = issue_token(self.user)
        self.user.set_password('a-new-password-456')
        self.user.save()
        self.assertIsNone(introspect_token(token))

    def test_inactive_user_is_rejected(self):
        token = issue_token(self.user)
        self.user.is_active = False
        self.user.save()
        self.assertIsNone(introspect_token(token))

    @override_settings(ACCESS_TOKEN_MAX_AGE=-1)
    def test_expired_token_is_rejected(self):
        token = issue_token(self.user)
        self.assertIsNone(introspect_token(token))

    def test_token_from_header(self):
        self.assertEqual(token_from_header('Bearer abc'), 'abc')
        self.assertEqual(token_from_header('bearer abc '), 'abc')
        self.assertIsNone(token_from_header('Basic abc'))
        self.assertIsNone(token_from_header(''))
        self.assertIsNone(token_from_header(None))

    def test_obtain_token_view(self):
        response = self.client.post(
            reverse('accounts:token'),
            data=json.dumps({'email': 'teacher@school.com', 'password': 'teacherpass123'}),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['role'], Role.TEACHER)
        self.assertEqual(introspect_token(data['token']), self.user)

    def test_obtain_token_wrong_password(self):
        response = self.client.post(
            reverse('accounts:token'),
            data=json.dumps({'email': 'teacher@school.com', 'password': 'wrong'}),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 401)
        self.assertIn('error', response.json())


class TempPasswordTests(TestCase):

    def test_contains_every_character_class(self):
        for _ in range(20):
            password = generate_temp_password()
            self.assertEqual(len(password), 12)
            self.assertTrue(any(c.isupper() for c in password))
            self.assertTrue(any(c.islower() for c in password))
            self.assertTrue(any(c.isdigit() for c in password))
            self.assertTrue(any(c in SYMBOLS for c in password))

    def test_minimum_length(self):
        self.assertEqual(len(generate_temp_password(4)), 8)
        self.assertEqual(len(generate_temp_password(20)), 20)


class CreateStudentViewTests(TestCase):
    """Tests for the student-provisioning endpoint."""

    def setUp(self):
        self.url = reverse('accounts:create_student')
        self.teacher = User.objects.create_teacher(email='teacher@school.com', password='teacherpass123')
        self.class_obj = Class.objects.create(name='Grade 8', section='A', academic_year='2025-2026')

    def _post(self, body, user=None, raw=None):
        headers = {}
        if user is not None:
            headers['HTTP_AUTHORIZATION'] = f'Bearer {issue_token(user)}'
        return self.client.post(
            self.url,
            data=raw if raw is not None else json.dumps(body),
            content_type='application/json',
            **headers
        )

    def test_teacher_creates_student(self):
        response = self._post({
            'full_name': 'Kofi Boateng',
            'email': 'kofi@school.com',
            'phone': '0241234567',
            'date_of_birth': '2012-05-01',
            'class_id': self.class_obj.pk,
        }, user=self.teacher)

        self.assertEqual(response.status_code, 200)
        data = response.json()
        student = User.objects.get(pk=data['user_id'])
        self.assertEqual(student.role, Role.STUDENT)
        self.assertEqual(student.status, ApprovalStatus.APPROVED)
        self.assertEqual(student.phone, '0241234567')
        self.assertTrue(student.must_change_password)
        self.assertTrue(student.check_password(data['temp_password']))
        self.assertTrue(StudentClass.objects.filter(
            student=student, class_assigned=self.class_obj, academic_year='2025-2026'
        ).exists())
        self.assertTrue(AuditLog.objects.filter(action='student_created', target_user=student).exists())
        self.assertEqual(response['Access-Control-Allow-Origin'], '*')

    def test_missing_fields(self):
        response = self._post({'full_name': 'Kofi Boateng'}, user=self.teacher)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error'], 'full_name and email are required')

    def test_invalid_json(self):
        response = self._post(None, user=self.teacher, raw='{not json')
        self.assertEqual(response.status_code, 400)

    def test_duplicate_email(self):
        User.objects.create_student(email='kofi@school.com', password='pass12345')
        response = self._post({'full_name': 'Kofi', 'email': 'kofi@school.com'}, user=self.teacher)
        self.assertEqual(response.status_code, 400)
        self.assertIn('already exists', response.json()['error'])

    def test_missing_token(self):
        response = self._post({'full_name': 'Kofi', 'email': 'kofi@school.com'})
        self.assertEqual(response.status_code, 401)

    def test_invalid_token(self):
        response = self.client.post(
            self.url,
            data=json.dumps({'full_name': 'Kofi', 'email': 'kofi@school.com'}),
            content_type='application/json',
            HTTP_AUTHORIZATION='Bearer garbage',
        )
        self.assertEqual(response.status_code, 401)

    def test_student_caller_forbidden(self):
        student = User.objects.create_student(email='s@school.com', password='pass12345')
        response = self._post({'full_name': 'Kofi', 'email': 'kofi@school.com'}, user=student)
        self.assertEqual(response.status_code, 403)
        self.assertFalse(User.objects.filter(email='kofi@school.com').exists())

    def test_unknown_class_keeps_created_account(self):
        response = self._post({
            'full_name': 'Kofi',
            'email': 'kofi@school.com',
            'class_id': 9999,
        }, user=self.teacher)
        self.assertEqual(response.status_code, 400)
        self.assertIn('9999', response.json()['error'])
        # Earlier steps are not rolled back
        self.assertTrue(User.objects.filter(email='kofi@school.com', role=Role.STUDENT).exists())

    def test_database_failure_returns_500(self):
        with mock.patch('academics.models.StudentClass.objects.create', side_effect=DatabaseError('boom')):
            response = self._post({
                'full_name': 'Kofi',
                'email': 'kofi@school.com',
                'class_id': self.class_obj.pk,
            }, user=self.teacher)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()['error'], 'boom')

    def test_options_preflight(self):
        response = self.client.options(self.url)
        self.assertEqual(response.status_code, 200)
        self.assertIn('authorization', response['Access-Control-Allow-Headers'])

    def test_get_not_allowed(self):
        response = self.client.get(self.url)
        self.assertEqual(response.status_code, 405)


class ApprovalTests(TestCase):

    def setUp(self):
        self.admin = User.objects.create_school_admin(email='admin@school.com', password='adminpass123')
        self.applicant = User.objects.create_user(email='new@school.com', password='pass12345', full_name='New Teacher')
        self.request = ApprovalRequest.objects.create(user=self.applicant, requested_role=Role.TEACHER)

    def test_list_requires_admin(self):
        self.client.force_login(self.applicant)
        response = self.client.get(reverse('accounts:approval_list'))
        self.assertEqual(response.status_code, 403)

    def test_list_pending(self):
        self.client.force_login(self.admin)
        response = self.client.get(reverse('accounts:approval_list'))
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['count'], 1)
        self.assertEqual(data['requests'][0]['email'], 'new@school.com')

    def test_approve_grants_role(self):
        self.client.force_login(self.admin)
        response = self.client.post(
            reverse('accounts:approval_review', args=[self.request.pk]),
            data=json.dumps({'action': 'approve'}),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 200)
        self.applicant.refresh_from_db()
        self.assertEqual(self.applicant.role, Role.TEACHER)
        self.assertEqual(self.applicant.status, ApprovalStatus.APPROVED)
        self.assertTrue(AuditLog.objects.filter(action='approval_reviewed').exists())

    def test_reject_keeps_role_empty(self):
        self.client.force_login(self.admin)
        self.client.post(
            reverse('accounts:approval_review', args=[self.request.pk]),
            data=json.dumps({'action': 'reject', 'note': 'Unknown applicant'}),
            content_type='application/json',
        )
        self.applicant.refresh_from_db()
        self.request.refresh_from_db()
        self.assertEqual(self.applicant.role, '')
        self.assertEqual(self.applicant.status, ApprovalStatus.REJECTED)
        self.assertEqual(self.request.review_note, 'Unknown applicant')
        self.assertEqual(self.request.reviewed_by, self.admin)

    def test_already_reviewed(self):
        self.request.review(self.admin, approved=True)
        self.client.force_login(self.admin)
        response = self.client.post(
            reverse('accounts:approval_review', args=[self.request.pk]),
            data=json.dumps({'action': 'reject'}),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 400)

    def test_invalid_action(self):
        self.client.force_login(self.admin)
        response = self.client.post(
            reverse('accounts:approval_review', args=[self.request.pk]),
            data=json.dumps({'action': 'maybe'}),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 400)


class PasswordChangeTests(TestCase):

    def test_clears_must_change_password_and_reissues_token(self):
        user = User.objects.create_student(
            email='s@school.com', password='Temp#Pass123', must_change_password=True
        )
        old_token = issue_token(user)
        response = self.client.post(
            reverse('accounts:password_change'),
            data=json.dumps({
                'old_password': 'Temp#Pass123',
                'new_password1': 'Sturdy-Horse-Battery-42',
                'new_password2': 'Sturdy-Horse-Battery-42',
            }),
            content_type='application/json',
            HTTP_AUTHORIZATION=f'Bearer {old_token}',
        )
        self.assertEqual(response.status_code, 200)
        user.refresh_from_db()
        self.assertFalse(user.must_change_password)
        self.assertIsNone(introspect_token(old_token))
        self.assertEqual(introspect_token(response.json()['token']), user)

    def test_session_request_without_csrf_token_rejected(self):
        user = User.objects.create_student(email='s@school.com', password='Temp#Pass123')
        client = Client(enforce_csrf_checks=True)
        client.force_login(user)
        response = client.post(
            reverse('accounts:password_change'),
            data=json.dumps({
                'old_password': 'Temp#Pass123',
                'new_password1': 'Sturdy-Horse-Battery-42',
                'new_password2': 'Sturdy-Horse-Battery-42',
            }),
            content_type='application/json',
        )
        self.assertEqual(response.status_code, 403)
        user.refresh_from_db()
        self.assertTrue(user.check_password('Temp#Pass123'))
