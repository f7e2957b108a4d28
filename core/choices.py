from django.db import models
from django.utils.translation import gettext_lazy as _


class Role(models.TextChoices):
    ADMIN = 'admin', _('Admin')
    TEACHER = 'teacher', _('Teacher')
    STUDENT = 'student', _('Student')


class ApprovalStatus(models.TextChoices):
    PENDING = 'pending', _('Pending')
    APPROVED = 'approved', _('Approved')
    REJECTED = 'rejected', _('Rejected')


class AttendanceStatus(models.TextChoices):
    PRESENT = 'present', _('Present')
    ABSENT = 'absent', _('Absent')
    LATE = 'late', _('Late')
    EXCUSED = 'excused', _('Excused')


# Present and Late both count towards the attendance rate
PRESENT_STATUSES = (AttendanceStatus.PRESENT, AttendanceStatus.LATE)


class ReportResult(models.TextChoices):
    PASS = 'PASS', _('Pass')
    FAIL = 'FAIL', _('Fail')
    INCOMPLETE = 'INCOMPLETE', _('Incomplete')


class Weekday(models.IntegerChoices):
    MONDAY = 1, _('Monday')
    TUESDAY = 2, _('Tuesday')
    WEDNESDAY = 3, _('Wednesday')
    THURSDAY = 4, _('Thursday')
    FRIDAY = 5, _('Friday')
    SATURDAY = 6, _('Saturday')
    SUNDAY = 7, _('Sunday')
