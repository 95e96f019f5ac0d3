import logging
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.db.models.functions import TruncMonth
from django.utils import timezone
from datetime import timedelta

from backend.catalog.models import Medicine
from backend.core.permissions import IsAdminRole, IsApprovedPharmacy
from backend.core.utils import STOCK_LOW, STOCK_OUT
from backend.inventory.models import Inventory
from backend.inventory.serializers import InventorySerializer
from backend.pharmacies.models import Pharmacy
from backend.reservations.models import Reservation, DirectCall
from backend.reservations.serializers import ReservationSerializer

User = get_user_model()
logger = logging.getLogger('backend.reports')

PHARMACY_WINDOW_DAYS = 30
TIMELINE_MONTHS = 12
TOP_MEDICINES_LIMIT = 10
RECENT_RESERVATIONS_LIMIT = 10


def _status_counts(reservations):
    """Count reservations per status in a single aggregate query"""
    return reservations.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(status=Reservation.STATUS_PENDING)),
        accepted=Count('id', filter=Q(status=Reservation.STATUS_ACCEPTED)),
        rejected=Count('id', filter=Q(status=Reservation.STATUS_REJECTED)),
        cancelled=Count('id', filter=Q(status=Reservation.STATUS_CANCELLED)),
        no_response=Count('id', filter=Q(status=Reservation.STATUS_NO_RESPONSE)),
    )


def _month_keys(now, count=TIMELINE_MONTHS):
    """(year, month) tuples for the last ``count`` calendar months, oldest first"""
    year, month = now.year, now.month
    keys = []
    for _ in range(count):
        keys.append((year, month))
        month -= 1
        if month == 0:
            month = 12
            year -= 1
    return list(reversed(keys))


def _reservations_over_time(now):
    months = _month_keys(now)
    first_year, first_month = months[0]
    start = now.replace(year=first_year, month=first_month, day=1, hour=0, minute=0, second=0, microsecond=0)

    rows = Reservation.objects.filter(request_time__gte=start).annotate(
        month=TruncMonth('request_time')
    ).values('month').annotate(count=Count('id'))
    counts = {row['month'].strftime('%Y-%m'): row['count'] for row in rows if row['month']}

    timeline = []
    for year, month in months:
        key = f"{year:04d}-{month:02d}"
        timeline.append({'month': key, 'count': counts.get(key, 0)})
    return timeline


def _no_response_by_pharmacy():
    rows = Reservation.objects.filter(
        status=Reservation.STATUS_NO_RESPONSE
    ).values('pharmacy').annotate(count=Count('id')).order_by('-count', 'pharmacy')
    pharmacies = Pharmacy.objects.in_bulk([row['pharmacy'] for row in rows])

    result = []
    for row in rows:
        pharmacy = pharmacies.get(row['pharmacy'])
        if pharmacy is None:
            continue
        result.append({
            'pharmacy': {'id': pharmacy.id, 'name': pharmacy.name, 'address': pharmacy.address},
            'count': row['count'],
        })
    return result


def _top_medicines():
    rows = Reservation.objects.values('medicine').annotate(
        count=Count('id')
    ).order_by('-count', 'medicine')[:TOP_MEDICINES_LIMIT]
    rows = list(rows)
    medicines = Medicine.objects.in_bulk([row['medicine'] for row in rows])

    result = []
    for row in rows:
        medicine = medicines.get(row['medicine'])
        if medicine is None:
            continue
        result.append({
            'medicine': {
                'id': medicine.id,
                'name': medicine.name,
                'active_ingredient': medicine.active_ingredient,
                'category': medicine.category,
            },
            'count': row['count'],
        })
    return result


@api_view(['GET'])
@permission_classes([IsAdminRole])
def admin_analytics(request):
    """Platform-wide metrics for administrators"""
    now = timezone.now()
    logger.info(f"Admin analytics requested by {request.user.email}")

    user_counts = User.objects.aggregate(
        total=Count('id'),
        patients=Count('id', filter=Q(role=User.ROLE_PATIENT)),
    )
    pharmacy_counts = Pharmacy.objects.aggregate(
        total=Count('id'),
        pending=Count('id', filter=Q(is_approved=False)),
    )
    statuses = _status_counts(Reservation.objects.all())

    return Response({
        'total_users': user_counts['total'],
        'total_patients': user_counts['patients'],
        'total_pharmacies': pharmacy_counts['total'],
        'pending_approvals': pharmacy_counts['pending'],
        'total_medicines': Medicine.objects.count(),
        'total_reservations': statuses['total'],
        'reservations_by_status': {
            'pending': statuses['pending'],
            'accepted': statuses['accepted'],
            'rejected': statuses['rejected'],
            'cancelled': statuses['cancelled'],
            'no_response': statuses['no_response'],
        },
        'direct_calls': DirectCall.objects.count(),
        'no_response_by_pharmacy': _no_response_by_pharmacy(),
        'reservations_over_time': _reservations_over_time(now),
        'top_medicines': _top_medicines(),
    })


@api_view(['GET'])
@permission_classes([IsApprovedPharmacy])
def pharmacy_analytics(request):
    """Metrics for the caller's pharmacy over the last 30 days"""
    pharmacy = request.user.get_pharmacy()
    since = timezone.now() - timedelta(days=PHARMACY_WINDOW_DAYS)

    reservations = Reservation.objects.filter(pharmacy=pharmacy, request_time__gte=since)
    statuses = _status_counts(reservations)

    inventory = Inventory.objects.filter(pharmacy=pharmacy)
    inventory_stats = inventory.aggregate(
        total_items=Count('id'),
        low_stock=Count('id', filter=Q(status=STOCK_LOW)),
        out_of_stock=Count('id', filter=Q(status=STOCK_OUT)),
    )

    recent = reservations.select_related('user', 'pharmacy', 'medicine').order_by('-request_time', '-id')[:RECENT_RESERVATIONS_LIMIT]
    low_stock_items = inventory.filter(
        status__in=[STOCK_LOW, STOCK_OUT]
    ).select_related('medicine', 'pharmacy').order_by('quantity', 'medicine__name')

    return Response({
        'total_reservations': statuses['total'],
        'pending': statuses['pending'],
        'accepted': statuses['accepted'],
        'rejected': statuses['rejected'],
        'no_response': statuses['no_response'],
        'direct_calls': DirectCall.objects.filter(pharmacy=pharmacy, created_at__gte=since).count(),
        'inventory_stats': inventory_stats,
        'recent_reservations': ReservationSerializer(recent, many=True).data,
        'low_stock_items': InventorySerializer(low_stock_items, many=True).data,
    })
