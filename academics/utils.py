"""
Utility functions for the academics module: enrollment lookups and the
permission checks shared by attendance and marks entry.
"""
from django.contrib.auth import get_user_model
from django.utils import timezone

from core.decorators import is_school_admin


def get_class_students(class_obj):
    """Students enrolled in ``class_obj`` for its academic year, ordered by name."""
    User = get_user_model()
    return User.objects.filter(
        enrollments__class_assigned=class_obj,
        enrollments__academic_year=class_obj.academic_year,
    ).distinct().order_by('full_name', 'email')


def get_current_class(student):
    """The class a student is enrolled in, most recent enrollment first."""
    enrollment = student.enrollments.select_related(
        'class_assigned'
    ).order_by('-created_at').first()
    return enrollment.class_assigned if enrollment else None


def can_mark_attendance(user, class_obj):
    """Admins, the class teacher, or a subject teacher of the class."""
    from .models import ClassSubject

    if is_school_admin(user):
        return True
    if not getattr(user, 'is_teacher', False):
        return False
    if class_obj.class_teacher_id == user.pk:
        return True
    return ClassSubject.objects.filter(class_assigned=class_obj, teacher=user).exists()


def get_todays_slots(user, class_obj=None, day=None):
    """
    Today's timetable for a user: the class timetable for students, the
    lessons they teach for teachers.
    """
    from .models import TimetableSlot

    day = day or timezone.localdate()
    slots = TimetableSlot.for_day(day).select_related('subject', 'class_assigned', 'teacher')

    if getattr(user, 'is_student', False):
        class_obj = class_obj or get_current_class(user)
        if class_obj is None:
            return TimetableSlot.objects.none()
        return slots.filter(class_assigned=class_obj)
    if getattr(user, 'is_teacher', False):
        return slots.filter(teacher=user)
    if class_obj is not None:
        return slots.filter(class_assigned=class_obj)
    return slots
