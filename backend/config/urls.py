"""
URL configuration for the ProjectForge backend.

Every app contributes its routes under ``api/``; ``health/`` is the
liveness probe and unknown routes answer with a JSON 404.
"""
from django.contrib import admin
from django.urls import path, include

from backend.core.views import health

admin.site.site_header = "ProjectForge Admin Panel"
admin.site.site_title = "ProjectForge Admin Portal"
admin.site.index_title = "Welcome to ProjectForge Admin"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('health/', health, name='health'),
    path('api/', include('backend.core.urls')),
    path('api/', include('backend.teams.urls')),
    path('api/', include('backend.projects.urls')),
    path('api/', include('backend.planning.urls')),
    path('api/', include('backend.tasks.urls')),
    path('api/', include('backend.timelines.urls')),
    path('api/', include('backend.attachments.urls')),
    path('api/', include('backend.notifications.urls')),
]

handler404 = 'backend.core.views.not_found'
