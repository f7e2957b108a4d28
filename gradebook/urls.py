from django.urls import path
from . import views

app_name = 'gradebook'

urlpatterns = [
    # Marks entry
    path('exam-subjects/<uuid:pk>/marks/', views.marks_sheet_view, name='marks_sheet'),

    # Report cards
    path('exams/<int:pk>/report-cards/', views.report_card_list, name='report_card_list'),
    path('exams/<int:pk>/report-cards/export/', views.report_cards_export, name='report_cards_export'),
    path('exams/<int:pk>/report-cards/<int:student_id>/', views.report_card_detail, name='report_card_detail'),

    # Grading setup
    path('scales/<uuid:pk>/', views.grading_scale_detail, name='grading_scale_detail'),
]
