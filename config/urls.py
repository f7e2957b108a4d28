from django.contrib import admin
from django.urls import path, include


urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('core.urls')),
    path('accounts/', include('accounts.urls')),
    path('academics/', include('academics.urls')),
    path('gradebook/', include('gradebook.urls')),
]
