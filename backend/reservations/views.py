import logging
from django.conf import settings
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.crypto import constant_time_compare
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, authentication_classes
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.exceptions import PermissionDenied, ValidationError
from backend.core.permissions import IsPatient, IsPharmacy
from backend.core.utils import paginate_queryset
from . import services
from .filters import ReservationFilter
from .models import Reservation
from .serializers import (
    ReservationSerializer, ReservationCreateSerializer, ReservationAcceptSerializer,
    ReservationRejectSerializer, ProvidePhoneSerializer, DirectCallCreateSerializer
)

logger = logging.getLogger('backend.reservations')


def _reservation_queryset():
    return Reservation.objects.select_related('user', 'pharmacy', 'medicine')


def _get_reservation(pk):
    return get_object_or_404(_reservation_queryset(), pk=pk)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def reservation_list_create(request):
    """List the caller's reservations, or create one (patients only)"""
    user = request.user

    if request.method == 'POST':
        if not user.is_patient:
            logger.warning(f"User {user.email} ({user.role}) attempted to create a reservation")
            raise PermissionDenied('Only patients can create reservations')

        serializer = ReservationCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reservation = services.create_reservation(
            patient=user,
            pharmacy_id=serializer.validated_data['pharmacy'],
            medicine_id=serializer.validated_data['medicine'],
            quantity=serializer.validated_data['quantity'],
        )
        return Response({
            'reservation': ReservationSerializer(reservation).data,
            'message': 'Reservation created successfully',
        }, status=status.HTTP_201_CREATED)

    if user.is_patient:
        queryset = _reservation_queryset().filter(user=user)
    elif user.is_pharmacy:
        pharmacy = user.get_pharmacy()
        if pharmacy is None:
            raise PermissionDenied('Pharmacy profile not found')
        queryset = _reservation_queryset().filter(pharmacy=pharmacy)
    else:
        raise PermissionDenied('Only patients and pharmacies can list reservations')

    filterset = ReservationFilter(request.query_params, queryset=queryset.order_by('-request_time', '-id'))
    if not filterset.is_valid():
        raise ValidationError(filterset.errors)
    return Response(paginate_queryset(request, filterset.qs, ReservationSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reservation_detail(request, pk):
    """Retrieve a reservation visible to its patient or its pharmacy"""
    reservation = _get_reservation(pk)
    user = request.user
    pharmacy = user.get_pharmacy()

    is_owner = reservation.user_id == user.id
    is_pharmacy = pharmacy is not None and reservation.pharmacy_id == pharmacy.id
    if not (is_owner or is_pharmacy):
        raise PermissionDenied('You do not have access to this reservation')

    return Response(ReservationSerializer(reservation).data)


@api_view(['PUT', 'PATCH'])
@permission_classes([IsPharmacy])
def reservation_accept(request, pk):
    """Pharmacy accepts a pending or unanswered reservation"""
    reservation = _get_reservation(pk)
    serializer = ReservationAcceptSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    services.accept_reservation(reservation, request.user.get_pharmacy(), serializer.validated_data.get('note'))
    return Response({
        'reservation': ReservationSerializer(reservation).data,
        'message': 'Reservation accepted successfully',
    })


@api_view(['PUT', 'PATCH'])
@permission_classes([IsPharmacy])
def reservation_reject(request, pk):
    """Pharmacy rejects a pending or unanswered reservation"""
    reservation = _get_reservation(pk)
    serializer = ReservationRejectSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    services.reject_reservation(reservation, request.user.get_pharmacy(), serializer.validated_data.get('reason'))
    return Response({
        'reservation': ReservationSerializer(reservation).data,
        'message': 'Reservation rejected successfully',
    })


@api_view(['PUT', 'PATCH'])
@permission_classes([IsPatient])
def reservation_cancel(request, pk):
    """Patient cancels their own reservation"""
    reservation = _get_reservation(pk)
    services.cancel_reservation(reservation, request.user)
    return Response({
        'reservation': ReservationSerializer(reservation).data,
        'message': 'Reservation cancelled successfully',
    })


@api_view(['PUT', 'PATCH'])
@permission_classes([IsPatient])
def reservation_provide_phone(request, pk):
    """Patient shares a phone number after the pharmacy failed to respond"""
    reservation = _get_reservation(pk)
    serializer = ProvidePhoneSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    services.provide_patient_phone(reservation, request.user, serializer.validated_data['phone'])
    return Response({
        'reservation': ReservationSerializer(reservation).data,
        'message': 'Phone number provided successfully. The pharmacy will contact you soon.',
    })


@api_view(['GET', 'POST'])
@authentication_classes([])
@permission_classes([AllowAny])
def check_timeouts(request):
    """
    Run the reservation timeout sweep.

    Meant to be hit by a scheduler. When CRON_SECRET is configured the
    caller must send ``Authorization: Bearer <CRON_SECRET>``.
    """
    secret = settings.CRON_SECRET
    if secret:
        header = request.META.get('HTTP_AUTHORIZATION', '')
        if not constant_time_compare(header, f'Bearer {secret}'):
            logger.warning("Rejected timeout sweep request with invalid cron secret")
            return Response({
                'error': 'UNAUTHORIZED',
                'message': 'Invalid cron secret',
                'status_code': status.HTTP_401_UNAUTHORIZED,
            }, status=status.HTTP_401_UNAUTHORIZED)

    updated_ids = services.check_reservation_timeouts()
    return Response({
        'success': True,
        'message': f"Processed {len(updated_ids)} timed-out reservations",
        'updated_reservation_ids': updated_ids,
        'timestamp': timezone.now().isoformat(),
    })


@api_view(['POST'])
@permission_classes([IsPatient])
def direct_call_create(request):
    """Record that a patient called a pharmacy and hand back its phone number"""
    serializer = DirectCallCreateSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    call = services.record_direct_call(
        patient=request.user,
        pharmacy_id=serializer.validated_data['pharmacy'],
        medicine_id=serializer.validated_data['medicine'],
    )
    return Response({
        'success': True,
        'phone_number': call.pharmacy.phone,
        'message': 'Direct call recorded successfully',
    }, status=status.HTTP_201_CREATED)
