import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models

from academics.models import Class, Subject
from .grading import resolve_grade, resolve_tier

# Largest paper a StudentMark.marks_obtained (6 digits, 2 places) can hold.
MAX_MARKS_LIMIT = 9999


class GradingScale(models.Model):
    """A named percentage-to-grade mapping (e.g., Standard 2025-2026)."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=100,
        unique=True,
        help_text='Name of the grading scale (e.g., Standard, Senior Cycle)'
    )
    academic_year = models.CharField(max_length=20, blank=True)
    is_default = models.BooleanField(
        default=False,
        help_text='Scale used for report cards when none is chosen'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'grading_scale'
        ordering = ['name']
        verbose_name = 'Grading Scale'
        verbose_name_plural = 'Grading Scales'

    def __str__(self):
        return f"{self.name} ({self.academic_year})" if self.academic_year else self.name

    def resolve(self, percentage):
        """Grade label for ``percentage`` on this scale."""
        return resolve_grade(self.tiers.all(), percentage)

    def resolve_tier(self, percentage):
        return resolve_tier(self.tiers.all(), percentage)


class GradeTier(models.Model):
    """One band of a grading scale (e.g., A = 80-89.99)."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    scale = models.ForeignKey(
        GradingScale,
        on_delete=models.CASCADE,
        related_name='tiers',
        db_index=True
    )
    grade = models.CharField(
        max_length=10,
        help_text='Grade label (e.g., A+, A, B, F)'
    )
    min_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text='Minimum percentage for this grade (inclusive)'
    )
    max_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        validators=[MinValueValidator(0), MaxValueValidator(100)],
        help_text='Maximum percentage for this grade (inclusive)'
    )
    grade_point = models.DecimalField(
        max_digits=4,
        decimal_places=2,
        null=True,
        blank=True,
        help_text='Optional grade point (e.g., 4.00 for A+)'
    )

    def __str__(self):
        return f"{self.grade} ({self.min_percentage}-{self.max_percentage}%)"

    def clean(self):
        """Overlaps and gaps are allowed; an inverted band is not."""
        if (
            self.min_percentage is not None
            and self.max_percentage is not None
            and self.min_percentage > self.max_percentage
        ):
            raise ValidationError('Minimum percentage cannot be greater than maximum percentage')

    class Meta:
        db_table = 'grade_tier'
        ordering = ['scale', '-min_percentage']
        verbose_name = 'Grade Tier'
        verbose_name_plural = 'Grade Tiers'


class Exam(models.Model):
    """An examination sitting for one class."""

    class ExamType(models.TextChoices):
        MIDTERM = 'midterm', 'Midterm'
        FINAL = 'final', 'Final'
        UNIT_TEST = 'unit_test', 'Unit Test'
        QUIZ = 'quiz', 'Quiz'

    name = models.CharField(max_length=100, help_text='e.g., Mid-Term Exam 2025')
    exam_type = models.CharField(
        max_length=20,
        choices=ExamType.choices,
        default=ExamType.MIDTERM
    )
    class_assigned = models.ForeignKey(
        Class,
        on_delete=models.CASCADE,
        related_name='exams'
    )
    academic_year = models.CharField(max_length=20)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='exams_created'
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'exam'
        ordering = ['-start_date', '-created_at']
        verbose_name = 'Exam'
        verbose_name_plural = 'Exams'

    def __str__(self):
        return f"{self.name} - {self.class_assigned}"

    def clean(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValidationError('Start date cannot be after end date')


class ExamSubject(models.Model):
    """A subject sat in an exam, with its maximum and passing marks."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    exam = models.ForeignKey(
        Exam,
        on_delete=models.CASCADE,
        related_name='exam_subjects'
    )
    subject = models.ForeignKey(
        Subject,
        on_delete=models.CASCADE,
        related_name='exam_subjects'
    )
    max_marks = models.PositiveIntegerField(
        default=100,
        validators=[MinValueValidator(1), MaxValueValidator(MAX_MARKS_LIMIT)]
    )
    passing_marks = models.PositiveIntegerField(default=35)
    exam_date = models.DateField(null=True, blank=True)

    class Meta:
        db_table = 'exam_subject'
        ordering = ['exam', 'subject__name']
        verbose_name = 'Exam Subject'
        verbose_name_plural = 'Exam Subjects'
        constraints = [
            models.UniqueConstraint(fields=['exam', 'subject'], name='exam_subject_uniq'),
            models.CheckConstraint(condition=models.Q(max_marks__gt=0), name='exam_subject_max_positive'),
            models.CheckConstraint(
                condition=models.Q(max_marks__lte=MAX_MARKS_LIMIT),
                name='exam_subject_max_within_limit'
            ),
            models.CheckConstraint(
                condition=models.Q(passing_marks__lte=models.F('max_marks')),
                name='exam_subject_passing_within_max'
            ),
        ]

    def __str__(self):
        return f"{self.exam.name} - {self.subject.name}"

    def clean(self):
        if self.max_marks is not None and self.max_marks <= 0:
            raise ValidationError({'max_marks': 'Maximum marks must be greater than zero'})
        if self.max_marks is not None and self.max_marks > MAX_MARKS_LIMIT:
            raise ValidationError({'max_marks': f'Maximum marks cannot exceed {MAX_MARKS_LIMIT}'})
        if self.passing_marks is not None and self.max_marks is not None and self.passing_marks > self.max_marks:
            raise ValidationError({'passing_marks': 'Passing marks cannot exceed maximum marks'})


class StudentMark(models.Model):
    """
    A student's mark for one exam subject.
    Written only through ``gradebook.marks.save_marks``.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    exam_subject = models.ForeignKey(
        ExamSubject,
        on_delete=models.CASCADE,
        related_name='marks',
        db_index=True
    )
    student = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='marks',
        db_index=True
    )
    marks_obtained = models.DecimalField(
        max_digits=6,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(Decimal('0'))]
    )
    remarks = models.CharField(max_length=200, blank=True)
    entered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='marks_entered'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'student_mark'
        ordering = ['exam_subject', 'student']
        verbose_name = 'Student Mark'
        verbose_name_plural = 'Student Marks'
        constraints = [
            models.UniqueConstraint(fields=['exam_subject', 'student'], name='student_mark_uniq'),
        ]

    def __str__(self):
        return f"{self.student} - {self.exam_subject}: {self.marks_obtained}/{self.exam_subject.max_marks}"
