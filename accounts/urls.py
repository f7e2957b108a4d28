from django.urls import path

from . import views

app_name = 'accounts'

urlpatterns = [
    path('token/', views.obtain_token, name='token'),
    path('password/change/', views.password_change, name='password_change'),
    path('students/create/', views.create_student, name='create_student'),
    path('approvals/', views.approval_list, name='approval_list'),
    path('approvals/<int:pk>/review/', views.approval_review, name='approval_review'),
]
