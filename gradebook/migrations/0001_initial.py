import uuid

import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('academics', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='GradingScale',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('name', models.CharField(help_text='Name of the grading scale (e.g., Standard, Senior Cycle)', max_length=100, unique=True)),
                ('academic_year', models.CharField(blank=True, max_length=20)),
                ('is_default', models.BooleanField(default=False, help_text='Scale used for report cards when none is chosen')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Grading Scale',
                'verbose_name_plural': 'Grading Scales',
                'db_table': 'grading_scale',
                'ordering': ['name'],
            },
        ),
        migrations.CreateModel(
            name='GradeTier',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('grade', models.CharField(help_text='Grade label (e.g., A+, A, B, F)', max_length=10)),
                ('min_percentage', models.DecimalField(decimal_places=2, help_text='Minimum percentage for this grade (inclusive)', max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('max_percentage', models.DecimalField(decimal_places=2, help_text='Maximum percentage for this grade (inclusive)', max_digits=5, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('grade_point', models.DecimalField(blank=True, decimal_places=2, help_text='Optional grade point (e.g., 4.00 for A+)', max_digits=4, null=True)),
                ('scale', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='tiers', to='gradebook.gradingscale')),
            ],
            options={
                'verbose_name': 'Grade Tier',
                'verbose_name_plural': 'Grade Tiers',
                'db_table': 'grade_tier',
                'ordering': ['scale', '-min_percentage'],
            },
        ),
        migrations.CreateModel(
            name='Exam',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(help_text='e.g., Mid-Term Exam 2025', max_length=100)),
                ('exam_type', models.CharField(choices=[('midterm', 'Midterm'), ('final', 'Final'), ('unit_test', 'Unit Test'), ('quiz', 'Quiz')], default='midterm', max_length=20)),
                ('academic_year', models.CharField(max_length=20)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('end_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('class_assigned', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='exams', to='academics.class')),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='exams_created', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Exam',
                'verbose_name_plural': 'Exams',
                'db_table': 'exam',
                'ordering': ['-start_date', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ExamSubject',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('max_marks', models.PositiveIntegerField(default=100, validators=[django.core.validators.MinValueValidator(1), django.core.validators.MaxValueValidator(9999)])),
                ('passing_marks', models.PositiveIntegerField(default=35)),
                ('exam_date', models.DateField(blank=True, null=True)),
                ('exam', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='exam_subjects', to='gradebook.exam')),
                ('subject', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='exam_subjects', to='academics.subject')),
            ],
            options={
                'verbose_name': 'Exam Subject',
                'verbose_name_plural': 'Exam Subjects',
                'db_table': 'exam_subject',
                'ordering': ['exam', 'subject__name'],
                'constraints': [
                    models.UniqueConstraint(fields=('exam', 'subject'), name='exam_subject_uniq'),
                    models.CheckConstraint(condition=models.Q(('max_marks__gt', 0)), name='exam_subject_max_positive'),
                    models.CheckConstraint(condition=models.Q(('max_marks__lte', 9999)), name='exam_subject_max_within_limit'),
                    models.CheckConstraint(condition=models.Q(('passing_marks__lte', models.F('max_marks'))), name='exam_subject_passing_within_max'),
                ],
            },
        ),
        migrations.CreateModel(
            name='StudentMark',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('marks_obtained', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0'))])),
                ('remarks', models.CharField(blank=True, max_length=200)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('entered_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='marks_entered', to=settings.AUTH_USER_MODEL)),
                ('exam_subject', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to='gradebook.examsubject')),
                ('student', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='marks', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Student Mark',
                'verbose_name_plural': 'Student Marks',
                'db_table': 'student_mark',
                'ordering': ['exam_subject', 'student'],
                'constraints': [models.UniqueConstraint(fields=('exam_subject', 'student'), name='student_mark_uniq')],
            },
        ),
    ]
