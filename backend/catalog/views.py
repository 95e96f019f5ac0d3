import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny
from rest_framework.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from backend.core.permissions import IsAdminRoleOrReadOnly
from backend.core.utils import paginate_queryset, haversine_distance
from backend.inventory.models import Inventory
from .catalog_cache import get_cached_categories
from .filters import MedicineFilter
from .models import Medicine
from .serializers import MedicineSerializer

logger = logging.getLogger('backend.catalog')


def _parse_origin(query_params):
    """Read optional lat/lon query params; both or neither must be given"""
    lat = query_params.get('lat')
    lon = query_params.get('lon')
    if lat in (None, '') and lon in (None, ''):
        return None
    try:
        lat, lon = float(lat), float(lon)
    except (TypeError, ValueError):
        raise ValidationError({'coordinates': ['lat and lon must both be valid numbers']})
    if not (-90 <= lat <= 90) or not (-180 <= lon <= 180):
        raise ValidationError({'coordinates': ['lat must be within -90..90 and lon within -180..180']})
    return lat, lon


def get_medicine_availability(medicine, origin=None):
    """
    List approved pharmacies holding the medicine in stock.

    With an origin (lat, lon) each entry carries the distance in km and the
    list is sorted nearest first; otherwise it is ordered by pharmacy name.
    """
    items = Inventory.objects.filter(
        medicine=medicine,
        quantity__gt=0,
        pharmacy__is_approved=True,
    ).select_related('pharmacy').order_by('pharmacy__name')

    availability = []
    for item in items:
        pharmacy = item.pharmacy
        entry = {
            'pharmacy_id': pharmacy.id,
            'pharmacy_name': pharmacy.name,
            'address': pharmacy.address,
            'phone': pharmacy.phone,
            'latitude': pharmacy.latitude,
            'longitude': pharmacy.longitude,
            'rating': pharmacy.rating,
            'working_hours': pharmacy.working_hours,
            'stock_status': item.status,
            'quantity': item.quantity,
        }
        if origin is not None:
            distance = haversine_distance(origin[0], origin[1], pharmacy.latitude, pharmacy.longitude)
            entry['distance'] = round(distance, 2)
        availability.append(entry)

    if origin is not None:
        availability.sort(key=lambda entry: entry['distance'])
    return availability


@api_view(['GET', 'POST'])
@permission_classes([IsAdminRoleOrReadOnly])
def medicine_list_create(request):
    """Search the medicine catalog or create a medicine (create requires admin)"""
    if request.method == 'GET':
        queryset = Medicine.objects.all().order_by('name')
        filterset = MedicineFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)
        return Response(paginate_queryset(request, filterset.qs, MedicineSerializer))

    serializer = MedicineSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    medicine = serializer.save()
    logger.info(f"Medicine '{medicine.name}' created by {request.user.email}")
    return Response(MedicineSerializer(medicine).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAdminRoleOrReadOnly])
def medicine_detail(request, pk):
    """Retrieve a medicine with availability, or update/delete it (admin)"""
    medicine = get_object_or_404(Medicine, pk=pk)

    if request.method == 'GET':
        origin = _parse_origin(request.query_params)
        return Response({
            'medicine': MedicineSerializer(medicine).data,
            'availability': get_medicine_availability(medicine, origin),
        })

    if request.method in ('PUT', 'PATCH'):
        serializer = MedicineSerializer(medicine, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"Medicine {pk} updated by {request.user.email}: {list(serializer.validated_data.keys())}")
        return Response(serializer.data)

    # DELETE; ProtectedError from reservations or calls becomes a 409
    name = medicine.name
    medicine.delete()
    logger.info(f"Medicine '{name}' ({pk}) deleted by {request.user.email}")
    return Response({'success': True, 'message': 'Medicine deleted successfully'})


@api_view(['GET'])
@permission_classes([AllowAny])
def medicine_categories(request):
    """Distinct medicine categories for search filters"""
    return Response({'categories': get_cached_categories()})
