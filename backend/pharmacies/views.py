import logging
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticatedOrReadOnly
from rest_framework.exceptions import PermissionDenied, ValidationError
from django.db import transaction
from django.shortcuts import get_object_or_404
from backend.core.exceptions import Conflict
from backend.core.permissions import IsAdminRole
from backend.core.utils import paginate_queryset, parse_bool_param
from backend.notifications.services import notify_pharmacy_approved
from .filters import PharmacyFilter
from .models import Pharmacy
from .serializers import PharmacySerializer, PharmacyUpdateSerializer

logger = logging.getLogger('backend.pharmacies')


@api_view(['GET'])
@permission_classes([AllowAny])
def pharmacy_list(request):
    """List pharmacies with optional search and approval filter"""
    queryset = Pharmacy.objects.select_related('user').order_by('name')

    is_approved = parse_bool_param(request.query_params.get('is_approved'), 'is_approved')
    if is_approved is not None:
        queryset = queryset.filter(is_approved=is_approved)

    filterset = PharmacyFilter(request.query_params, queryset=queryset)
    if not filterset.is_valid():
        raise ValidationError(filterset.errors)

    return Response(paginate_queryset(request, filterset.qs, PharmacySerializer))


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticatedOrReadOnly])
def pharmacy_detail(request, pk):
    """Retrieve a pharmacy, update it (owner), or delete it with its user (admin)"""
    pharmacy = get_object_or_404(Pharmacy.objects.select_related('user'), pk=pk)

    if request.method == 'GET':
        return Response(PharmacySerializer(pharmacy).data)

    if request.method in ('PUT', 'PATCH'):
        if pharmacy.user_id != request.user.id:
            logger.warning(f"User {request.user.email} attempted to update pharmacy {pk} they do not own")
            raise PermissionDenied('You can only update your own pharmacy profile')

        serializer = PharmacyUpdateSerializer(pharmacy, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        logger.info(f"Pharmacy {pk} updated by owner: {list(serializer.validated_data.keys())}")
        return Response(PharmacySerializer(pharmacy).data)

    # DELETE
    if not request.user.is_admin:
        logger.warning(f"User {request.user.email} attempted to delete pharmacy {pk} without admin role")
        raise PermissionDenied('Only administrators can delete pharmacies')

    name = pharmacy.name
    with transaction.atomic():
        # Removing the owning account cascades to the pharmacy and its data
        pharmacy.user.delete()
    logger.info(f"Pharmacy '{name}' ({pk}) and its user deleted by {request.user.email}")
    return Response({'success': True, 'message': 'Pharmacy deleted successfully'})


@api_view(['POST'])
@permission_classes([IsAdminRole])
def pharmacy_approve(request, pk):
    """Approve a pending pharmacy and notify its owner"""
    pharmacy = get_object_or_404(Pharmacy.objects.select_related('user'), pk=pk)

    if pharmacy.is_approved:
        raise Conflict('Pharmacy is already approved')

    pharmacy.is_approved = True
    pharmacy.save(update_fields=['is_approved', 'updated_at'])
    notify_pharmacy_approved(pharmacy)
    logger.info(f"Pharmacy '{pharmacy.name}' ({pk}) approved by {request.user.email}")

    return Response({
        'success': True,
        'message': 'Pharmacy approved successfully',
        'pharmacy': PharmacySerializer(pharmacy).data,
    })
