from django.urls import path
from . import views

urlpatterns = [
    path('analytics/admin/', views.admin_analytics, name='admin-analytics'),
    path('analytics/pharmacy/', views.pharmacy_analytics, name='pharmacy-analytics'),
]
