"""
URL configuration for the MediFind backend.

Every app contributes its routes under /api/v1/. The Django admin is the
server-rendered management surface.
"""
from django.contrib import admin
from django.urls import path, include

admin.site.site_header = "MediFind Admin Panel"
admin.site.site_title = "MediFind Admin Portal"
admin.site.index_title = "Welcome to the MediFind Admin Portal"

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/', include('backend.core.urls')),
    path('api/v1/', include('backend.pharmacies.urls')),
    path('api/v1/', include('backend.catalog.urls')),
    path('api/v1/', include('backend.inventory.urls')),
    path('api/v1/', include('backend.reservations.urls')),
    path('api/v1/', include('backend.notifications.urls')),
    path('api/v1/', include('backend.reports.urls')),
]
