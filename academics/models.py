from django.conf import settings
from django.db import models
from django.utils import timezone

from core.choices import AttendanceStatus, Weekday


class Class(models.Model):
    """
    A class/classroom grouping of students for one academic year.
    """
    name = models.CharField(
        max_length=50,
        help_text="e.g., Grade 8, Form 2"
    )
    section = models.CharField(
        max_length=10,
        blank=True,
        help_text="A, B, C, etc."
    )
    grade_level = models.CharField(max_length=20, blank=True)
    academic_year = models.CharField(
        max_length=20,
        help_text="e.g., 2025-2026"
    )
    class_teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='homeroom_classes',
        help_text="The form tutor or class teacher responsible for this class."
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name', 'section']
        verbose_name = "Class"
        verbose_name_plural = "Classes"
        unique_together = ['name', 'section', 'academic_year']

    def __str__(self):
        return f"{self.name} - {self.section}" if self.section else self.name


class Subject(models.Model):
    """A subject taught at the school."""
    name = models.CharField(
        max_length=100,
        help_text="e.g., Mathematics, English Language"
    )
    code = models.CharField(
        max_length=20,
        unique=True,
        help_text="e.g., MATH, ENG"
    )
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['name']
        verbose_name = "Subject"
        verbose_name_plural = "Subjects"

    def __str__(self):
        return self.name


class ClassSubject(models.Model):
    """
    Links a Class to a Subject and assigns a specific Teacher.
    """
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='subjects'
    )
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        related_name='class_allocations'
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='subject_assignments'
    )

    class Meta:
        unique_together = ['class_assigned', 'subject']
        verbose_name = "Subject Allocation"
        verbose_name_plural = "Subject Allocations"

    def __str__(self):
        return f"{self.subject.name} - {self.class_assigned}"


class StudentClass(models.Model):
    """Enrollment of a student in a class for an academic year."""
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='enrollments'
    )
    academic_year = models.CharField(max_length=20)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ['student', 'class_assigned', 'academic_year']
        verbose_name = "Enrollment"
        verbose_name_plural = "Enrollments"

    def __str__(self):
        return f"{self.student} in {self.class_assigned}"


class TimetableSlot(models.Model):
    """
    A weekly lesson: subject taught to a class on a given day and time.
    """
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='timetable_slots'
    )
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        related_name='timetable_slots'
    )
    teacher = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='timetable_slots'
    )
    day_of_week = models.PositiveSmallIntegerField(choices=Weekday.choices)
    start_time = models.TimeField()
    end_time = models.TimeField()
    room = models.CharField(max_length=50, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['day_of_week', 'start_time']
        verbose_name = "Timetable Slot"
        verbose_name_plural = "Timetable Slots"

    def __str__(self):
        return f"{self.class_assigned} - {self.subject} ({self.get_day_of_week_display()} {self.start_time:%H:%M})"

    @classmethod
    def for_day(cls, day=None):
        """Slots scheduled on ``day`` (defaults to today)."""
        day = day or timezone.localdate()
        return cls.objects.filter(day_of_week=day.isoweekday())


class AttendanceRecord(models.Model):
    """
    One student's attendance for one class on one date.
    Written only through ``academics.attendance.save_attendance``.
    """
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='attendance_records'
    )
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='attendance_records'
    )
    date = models.DateField(default=timezone.localdate)
    status = models.CharField(
        max_length=10,
        choices=AttendanceStatus.choices,
        default=AttendanceStatus.PRESENT
    )
    remarks = models.CharField(max_length=200, blank=True)
    marked_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='attendance_marked'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-date', 'student']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'class_assigned', 'date'],
                name='attendance_student_class_date_uniq'
            ),
        ]
        indexes = [
            models.Index(fields=['class_assigned', 'date'], name='attendance_class_date_idx'),
        ]

    def __str__(self):
        return f"{self.student} - {self.class_assigned} {self.date}: {self.get_status_display()}"
