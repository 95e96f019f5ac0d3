import django_filters
from .models import Reservation


class ReservationFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=Reservation.STATUS_CHOICES)

    class Meta:
        model = Reservation
        fields = ['status']
