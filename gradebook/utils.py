"""
Permission helpers for the gradebook views.
"""
from academics.models import ClassSubject
from core.decorators import is_school_admin


def can_edit_marks(user, exam_subject):
    """
    Check if a user can enter marks for an exam subject.

    Returns True if:
    - User is superuser or school admin
    - User is the class teacher of the exam's class
    - User is the teacher assigned to this subject for the exam's class
    """
    if is_school_admin(user):
        return True

    if not getattr(user, 'is_teacher', False):
        return False

    class_obj = exam_subject.exam.class_assigned
    if class_obj.class_teacher_id == user.pk:
        return True

    return ClassSubject.objects.filter(
        class_assigned=class_obj,
        subject_id=exam_subject.subject_id,
        teacher=user
    ).exists()
