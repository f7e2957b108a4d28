from django.contrib import admin

from unfold.admin import ModelAdmin, TabularInline

from .models import AttendanceRecord, Class, ClassSubject, StudentClass, Subject, TimetableSlot


class ClassSubjectInline(TabularInline):
    model = ClassSubject
    extra = 0
    autocomplete_fields = ('subject',)


@admin.register(Class)
class ClassAdmin(ModelAdmin):
    list_display = ('name', 'section', 'grade_level', 'academic_year', 'class_teacher')
    list_filter = ('academic_year', 'grade_level')
    search_fields = ('name', 'section')
    inlines = [ClassSubjectInline]


@admin.register(Subject)
class SubjectAdmin(ModelAdmin):
    list_display = ('name', 'code')
    search_fields = ('name', 'code')


@admin.register(StudentClass)
class StudentClassAdmin(ModelAdmin):
    list_display = ('student', 'class_assigned', 'academic_year', 'created_at')
    list_filter = ('academic_year', 'class_assigned')
    search_fields = ('student__email', 'student__full_name')


@admin.register(TimetableSlot)
class TimetableSlotAdmin(ModelAdmin):
    list_display = ('class_assigned', 'subject', 'teacher', 'day_of_week', 'start_time', 'end_time', 'room')
    list_filter = ('day_of_week', 'class_assigned')


@admin.register(AttendanceRecord)
class AttendanceRecordAdmin(ModelAdmin):
    list_display = ('student', 'class_assigned', 'date', 'status', 'marked_by', 'updated_at')
    list_filter = ('status', 'date', 'class_assigned')
    search_fields = ('student__email', 'student__full_name')
    date_hierarchy = 'date'
