"""
Reservation lifecycle.

Status flow:

    PENDING      -> ACCEPTED | REJECTED | CANCELLED | NO_RESPONSE (timeout)
    NO_RESPONSE  -> ACCEPTED | REJECTED | CANCELLED
    ACCEPTED     -> CANCELLED

Every status change is a conditional UPDATE filtered on the statuses the
transition may start from. When another request or the timeout sweep moved
the reservation first, zero rows match and the caller gets a 409.
"""
import logging
from datetime import timedelta
from django.conf import settings
from django.utils import timezone
from rest_framework.exceptions import NotFound, PermissionDenied
from backend.catalog.models import Medicine
from backend.core.exceptions import Conflict
from backend.inventory.models import Inventory
from backend.notifications.services import (
    notify_reservation_created, notify_reservation_accepted, notify_reservation_rejected,
    notify_reservation_no_response, notify_patient_phone_provided,
)
from backend.pharmacies.models import Pharmacy
from .models import Reservation, DirectCall

logger = logging.getLogger('backend.reservations')


def _transition(reservation, allowed_from, new_status, verb, **fields):
    """Move ``reservation`` to ``new_status`` if its current status allows it"""
    if reservation.status not in allowed_from:
        raise Conflict(f"Cannot {verb} reservation with status {reservation.status}")

    now = timezone.now()
    fields.update(status=new_status, updated_at=now)
    updated = Reservation.objects.filter(pk=reservation.pk, status__in=allowed_from).update(**fields)
    if not updated:
        reservation.refresh_from_db(fields=['status'])
        logger.warning(f"Reservation {reservation.pk} changed concurrently, now {reservation.status}")
        raise Conflict(f"Cannot {verb} reservation with status {reservation.status}")

    for name, value in fields.items():
        setattr(reservation, name, value)
    return reservation


def _ensure_pharmacy_owns(reservation, pharmacy):
    if pharmacy is None:
        raise NotFound('Pharmacy not found')
    if reservation.pharmacy_id != pharmacy.id:
        raise PermissionDenied('This reservation does not belong to your pharmacy')


def _ensure_patient_owns(reservation, patient):
    if reservation.user_id != patient.id:
        raise PermissionDenied('This reservation does not belong to you')


def create_reservation(patient, pharmacy_id, medicine_id, quantity):
    """Create a PENDING reservation after checking the pharmacy holds enough stock"""
    medicine = Medicine.objects.filter(pk=medicine_id).first()
    if medicine is None:
        raise NotFound('Medicine not found')

    pharmacy = Pharmacy.objects.select_related('user').filter(pk=pharmacy_id).first()
    if pharmacy is None:
        raise NotFound('Pharmacy not found')
    if not pharmacy.is_approved:
        raise Conflict('Pharmacy is not accepting reservations')

    item = Inventory.objects.filter(pharmacy=pharmacy, medicine=medicine).first()
    if item is None:
        raise Conflict('Medicine not available at this pharmacy')
    if quantity > item.quantity:
        raise Conflict(f"Insufficient stock. Only {item.quantity} unit(s) available")

    reservation = Reservation.objects.create(
        user=patient,
        pharmacy=pharmacy,
        medicine=medicine,
        quantity=quantity,
        status=Reservation.STATUS_PENDING,
        request_time=timezone.now(),
    )
    logger.info(f"Reservation {reservation.id} created: {patient.email} -> {pharmacy.name}, {medicine.name} x{quantity}")
    notify_reservation_created(reservation)
    return reservation


def accept_reservation(reservation, pharmacy, note=None):
    _ensure_pharmacy_owns(reservation, pharmacy)
    _transition(
        reservation, Reservation.RESPONDABLE_STATUSES, Reservation.STATUS_ACCEPTED, 'accept',
        accepted_time=timezone.now(), note=note or None,
    )
    logger.info(f"Reservation {reservation.id} accepted by pharmacy {pharmacy.id}")
    notify_reservation_accepted(reservation)
    return reservation


def reject_reservation(reservation, pharmacy, reason=None):
    _ensure_pharmacy_owns(reservation, pharmacy)
    _transition(
        reservation, Reservation.RESPONDABLE_STATUSES, Reservation.STATUS_REJECTED, 'reject',
        rejected_time=timezone.now(), note=reason or None,
    )
    logger.info(f"Reservation {reservation.id} rejected by pharmacy {pharmacy.id}")
    notify_reservation_rejected(reservation)
    return reservation


def cancel_reservation(reservation, patient):
    _ensure_patient_owns(reservation, patient)
    _transition(reservation, Reservation.CANCELLABLE_STATUSES, Reservation.STATUS_CANCELLED, 'cancel')
    logger.info(f"Reservation {reservation.id} cancelled by patient {patient.email}")
    return reservation


def provide_patient_phone(reservation, patient, phone):
    """Attach the patient's phone to an unanswered reservation and tell the pharmacy"""
    _ensure_patient_owns(reservation, patient)
    if reservation.status != Reservation.STATUS_NO_RESPONSE:
        raise Conflict('Phone number can only be provided for NO_RESPONSE reservations')

    reservation.patient_phone = phone
    reservation.save(update_fields=['patient_phone', 'updated_at'])
    logger.info(f"Patient phone provided for reservation {reservation.id}")
    notify_patient_phone_provided(reservation)
    return reservation


def check_reservation_timeouts(now=None):
    """
    Move PENDING reservations older than the timeout to NO_RESPONSE.

    Each overdue reservation is handled on its own: a failure is logged and
    the sweep continues. Returns the ids that were actually updated, so a
    second run over the same data returns an empty list.
    """
    now = now or timezone.now()
    cutoff = now - timedelta(minutes=settings.RESERVATION_TIMEOUT_MINUTES)

    overdue = list(
        Reservation.objects.filter(
            status=Reservation.STATUS_PENDING,
            request_time__lte=cutoff,
        ).select_related('user', 'pharmacy', 'medicine')
    )

    updated_ids = []
    for reservation in overdue:
        try:
            changed = Reservation.objects.filter(
                pk=reservation.pk, status=Reservation.STATUS_PENDING,
            ).update(status=Reservation.STATUS_NO_RESPONSE, no_response_time=now, updated_at=now)
            if not changed:
                logger.debug(f"Reservation {reservation.pk} left PENDING before the sweep reached it")
                continue

            reservation.status = Reservation.STATUS_NO_RESPONSE
            reservation.no_response_time = now
            notify_reservation_no_response(reservation)
            updated_ids.append(reservation.pk)
        except Exception as e:
            logger.error(f"Failed to time out reservation {reservation.pk}: {str(e)}", exc_info=True)

    if updated_ids:
        logger.info(f"Timed out {len(updated_ids)} reservations: {updated_ids}")
    return updated_ids


def record_direct_call(patient, pharmacy_id, medicine_id):
    """Log a patient's call to a pharmacy and return the call with the pharmacy"""
    pharmacy = Pharmacy.objects.filter(pk=pharmacy_id).first()
    if pharmacy is None:
        raise NotFound('Pharmacy not found')

    medicine = Medicine.objects.filter(pk=medicine_id).first()
    if medicine is None:
        raise NotFound('Medicine not found')

    call = DirectCall.objects.create(user=patient, pharmacy=pharmacy, medicine=medicine)
    logger.info(f"Direct call {call.id}: {patient.email} -> {pharmacy.name} about {medicine.name}")
    return call
