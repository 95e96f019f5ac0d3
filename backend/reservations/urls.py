from django.urls import path
from .views import (
    reservation_list_create, reservation_detail,
    reservation_accept, reservation_reject, reservation_cancel, reservation_provide_phone,
    check_timeouts, direct_call_create
)

urlpatterns = [
    # Reservation endpoints
    path('reservations/', reservation_list_create, name='reservation-list-create'),
    path('reservations/<int:pk>/', reservation_detail, name='reservation-detail'),
    path('reservations/<int:pk>/accept/', reservation_accept, name='reservation-accept'),
    path('reservations/<int:pk>/reject/', reservation_reject, name='reservation-reject'),
    path('reservations/<int:pk>/cancel/', reservation_cancel, name='reservation-cancel'),
    path('reservations/<int:pk>/provide-phone/', reservation_provide_phone, name='reservation-provide-phone'),

    # Scheduler hook for the timeout sweep
    path('cron/check-timeouts/', check_timeouts, name='check-timeouts'),

    # Direct call tracking
    path('direct-calls/', direct_call_create, name='direct-call-create'),
]
