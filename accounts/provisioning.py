"""
Student provisioning.

Creates a student account on behalf of an admin or teacher as a best-effort
sequential chain: account with a generated temporary password, student role,
profile details, then optional class enrollment. Steps are not rolled back
when a later one fails; the first failure is reported to the caller.
"""
import logging
import secrets
import string

from django.contrib.auth import get_user_model
from django.db import DatabaseError, IntegrityError, transaction

from core.choices import ApprovalStatus, Role
from core.models import AuditLog
from gradebook import config

logger = logging.getLogger(__name__)

SYMBOLS = '!@#$%^&*'


class ProvisioningError(Exception):
    """A provisioning step failed; ``status`` is the HTTP status to report."""

    def __init__(self, message, status=400):
        super().__init__(message)
        self.message = message
        self.status = status


def generate_temp_password(length=None):
    """
    Generate a strong temporary password containing at least one upper-case
    letter, lower-case letter, digit and symbol.
    """
    length = max(length or config.TEMP_PASSWORD_LENGTH, 8)
    required = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(SYMBOLS),
    ]
    alphabet = string.ascii_letters + string.digits + SYMBOLS
    chars = required + [secrets.choice(alphabet) for _ in range(length - len(required))]
    secrets.SystemRandom().shuffle(chars)
    return ''.join(chars)


def provision_student(caller, full_name, email, phone='', date_of_birth=None,
                      address='', class_id=None):
    """
    Run the provisioning chain and return ``{'user_id', 'temp_password'}``.

    Raises ``ProvisioningError`` with the first failure encountered.
    """
    from academics.models import Class, StudentClass

    User = get_user_model()
    email = User.objects.normalize_email(email)

    if User.objects.filter(email__iexact=email).exists():
        raise ProvisioningError(f"A user with email '{email}' already exists.")

    temp_password = generate_temp_password()

    # Step 1: account
    try:
        with transaction.atomic():
            user = User.objects.create_user(
                email=email,
                password=temp_password,
                full_name=full_name,
                must_change_password=True,
            )
    except IntegrityError:
        raise ProvisioningError(f"A user with email '{email}' already exists.")

    try:
        # Step 2: role
        user.role = Role.STUDENT
        user.save(update_fields=['role'])

        # Step 3: profile
        user.phone = phone or ''
        user.address = address or ''
        user.date_of_birth = date_of_birth
        user.status = ApprovalStatus.APPROVED
        user.save(update_fields=['phone', 'address', 'date_of_birth', 'status'])

        # Step 4: enrollment
        if class_id:
            class_obj = Class.objects.filter(pk=class_id).first()
            if class_obj is None:
                raise ProvisioningError(f"Class {class_id} does not exist.")
            StudentClass.objects.create(
                student=user,
                class_assigned=class_obj,
                academic_year=class_obj.academic_year,
            )
    except DatabaseError as e:
        logger.exception(f"Provisioning chain failed for {email}")
        raise ProvisioningError(str(e), status=500) from e

    AuditLog.record(
        'student_created',
        performed_by=caller,
        target_user=user,
        class_id=class_id,
    )
    logger.info(f"Provisioned student {user.pk} ({email}) by {caller}")

    return {'user_id': user.pk, 'temp_password': temp_password}
