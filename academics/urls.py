from django.urls import path
from . import views

app_name = 'academics'

urlpatterns = [
    path('classes/<int:pk>/attendance/<str:date>/', views.attendance_register, name='attendance_register'),
    path('timetable/today/', views.timetable_today, name='timetable_today'),
]
