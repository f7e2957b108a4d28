from django.contrib import admin

from unfold.admin import ModelAdmin, TabularInline

from .forms import GradeTierForm
from .models import Exam, ExamSubject, GradeTier, GradingScale, StudentMark


class GradeTierInline(TabularInline):
    model = GradeTier
    form = GradeTierForm
    extra = 0
    ordering = ('-min_percentage',)


@admin.register(GradingScale)
class GradingScaleAdmin(ModelAdmin):
    list_display = ('name', 'academic_year', 'is_default', 'created_at')
    list_filter = ('is_default', 'academic_year')
    search_fields = ('name',)
    inlines = [GradeTierInline]


class ExamSubjectInline(TabularInline):
    model = ExamSubject
    extra = 0


@admin.register(Exam)
class ExamAdmin(ModelAdmin):
    list_display = ('name', 'exam_type', 'class_assigned', 'academic_year', 'start_date', 'end_date')
    list_filter = ('exam_type', 'academic_year')
    search_fields = ('name',)
    inlines = [ExamSubjectInline]


@admin.register(StudentMark)
class StudentMarkAdmin(ModelAdmin):
    list_display = ('student', 'exam_subject', 'marks_obtained', 'entered_by', 'updated_at')
    list_filter = ('exam_subject__exam',)
    search_fields = ('student__email', 'student__full_name')
    readonly_fields = ('created_at', 'updated_at')
