import logging
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError
from django.db import IntegrityError, transaction
from django.shortcuts import get_object_or_404
from backend.catalog.models import Medicine
from backend.core.exceptions import Conflict
from backend.core.permissions import IsApprovedPharmacy
from backend.core.utils import paginate_queryset
from .filters import InventoryFilter
from .models import Inventory
from .serializers import InventorySerializer, InventoryCreateSerializer, InventoryUpdateSerializer

logger = logging.getLogger('backend.inventory')

DUPLICATE_MESSAGE = 'Medicine already exists in inventory. Use PUT to update quantity.'


@api_view(['GET', 'POST'])
@permission_classes([IsApprovedPharmacy])
def inventory_list_create(request):
    """List the caller's pharmacy inventory or add a medicine to it"""
    pharmacy = request.user.get_pharmacy()

    if request.method == 'GET':
        queryset = Inventory.objects.filter(pharmacy=pharmacy).select_related('medicine', 'pharmacy').order_by('-last_updated', '-id')
        filterset = InventoryFilter(request.query_params, queryset=queryset)
        if not filterset.is_valid():
            raise ValidationError(filterset.errors)
        return Response(paginate_queryset(request, filterset.qs, InventorySerializer))

    serializer = InventoryCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    medicine_id = serializer.validated_data['medicine']
    quantity = serializer.validated_data['quantity']

    medicine = Medicine.objects.filter(pk=medicine_id).first()
    if medicine is None:
        raise NotFound('Medicine not found')

    if Inventory.objects.filter(pharmacy=pharmacy, medicine=medicine).exists():
        logger.warning(f"Pharmacy {pharmacy.id} tried to add duplicate medicine {medicine.id}")
        raise Conflict(DUPLICATE_MESSAGE)

    try:
        with transaction.atomic():
            item = Inventory.objects.create(pharmacy=pharmacy, medicine=medicine, quantity=quantity)
    except IntegrityError:
        logger.warning(f"Concurrent duplicate inventory insert for pharmacy {pharmacy.id}, medicine {medicine.id}")
        raise Conflict(DUPLICATE_MESSAGE)

    logger.info(f"Pharmacy {pharmacy.id} added {medicine.name} x{quantity} ({item.status})")
    return Response(InventorySerializer(item).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsApprovedPharmacy])
def inventory_detail(request, pk):
    """Retrieve, update quantity of, or delete one of the caller's inventory items"""
    pharmacy = request.user.get_pharmacy()
    item = get_object_or_404(Inventory.objects.select_related('medicine', 'pharmacy'), pk=pk)

    if item.pharmacy_id != pharmacy.id:
        logger.warning(f"Pharmacy {pharmacy.id} attempted to access inventory item {pk} of pharmacy {item.pharmacy_id}")
        raise PermissionDenied('This inventory item does not belong to your pharmacy')

    if request.method == 'GET':
        return Response(InventorySerializer(item).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = InventoryUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        old_quantity = item.quantity
        item.quantity = serializer.validated_data['quantity']
        item.save(update_fields=['quantity'])
        logger.info(f"Inventory {pk} quantity {old_quantity} -> {item.quantity} ({item.status})")
        return Response(InventorySerializer(item).data)

    item.delete()
    logger.info(f"Inventory {pk} deleted by pharmacy {pharmacy.id}")
    return Response({'success': True, 'message': 'Inventory item deleted successfully'})
