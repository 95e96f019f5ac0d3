from django.urls import path
from .views import pharmacy_list, pharmacy_detail, pharmacy_approve

urlpatterns = [
    path('pharmacies/', pharmacy_list, name='pharmacy-list'),
    path('pharmacies/<int:pk>/', pharmacy_detail, name='pharmacy-detail'),
    path('pharmacies/<int:pk>/approve/', pharmacy_approve, name='pharmacy-approve'),
]
