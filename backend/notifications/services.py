"""
Notification fan-out.

Each business event has a ``notify_*`` helper composing the title and message.
Delivery failures are logged and swallowed so that the operation which
triggered the notification still succeeds.
"""
import logging
from django.conf import settings
from django.db import transaction, DatabaseError
from .models import Notification

logger = logging.getLogger('backend.notifications')


def create_notification(user, type, title, message):
    """Persist a notification for ``user``; returns it, or None on failure"""
    try:
        with transaction.atomic():
            notification = Notification.objects.create(user=user, type=type, title=title, message=message)
    except DatabaseError as e:
        logger.error(f"Failed to create '{type}' notification for user {user.pk}: {str(e)}", exc_info=True)
        return None
    logger.debug(f"Notification '{type}' created for user {user.pk}")
    return notification


def notify_reservation_created(reservation):
    return create_notification(
        user=reservation.pharmacy.user,
        type=Notification.TYPE_RESERVATION_CREATED,
        title='New Reservation Request',
        message=(
            f"{reservation.user.name} has requested {reservation.quantity} unit(s) of "
            f"{reservation.medicine.name}. Please respond within {settings.RESERVATION_TIMEOUT_MINUTES} minutes."
        ),
    )


def notify_reservation_accepted(reservation):
    note = f"Note: {reservation.note}. " if reservation.note else ''
    return create_notification(
        user=reservation.user,
        type=Notification.TYPE_RESERVATION_ACCEPTED,
        title='Reservation Accepted',
        message=(
            f"{reservation.pharmacy.name} has accepted your reservation for "
            f"{reservation.medicine.name}. {note}Please pick up within 30 minutes."
        ),
    )


def notify_reservation_rejected(reservation):
    reason = f" Reason: {reservation.note}" if reservation.note else ''
    return create_notification(
        user=reservation.user,
        type=Notification.TYPE_RESERVATION_REJECTED,
        title='Reservation Rejected',
        message=(
            f"{reservation.pharmacy.name} has rejected your reservation for "
            f"{reservation.medicine.name}.{reason}"
        ),
    )


def notify_reservation_no_response(reservation):
    return create_notification(
        user=reservation.user,
        type=Notification.TYPE_RESERVATION_NO_RESPONSE,
        title='Pharmacy Response Needed',
        message=(
            f"{reservation.pharmacy.name} hasn't responded to your reservation for "
            f"{reservation.medicine.name} yet. Please provide your phone number so they can contact you."
        ),
    )


def notify_patient_phone_provided(reservation):
    return create_notification(
        user=reservation.pharmacy.user,
        type=Notification.TYPE_RESERVATION_NO_RESPONSE,
        title='Patient Phone Number Provided',
        message=(
            f"{reservation.user.name} has provided their phone number ({reservation.patient_phone}) "
            f"for the {reservation.medicine.name} reservation. Please contact them to complete the reservation."
        ),
    )


def notify_pharmacy_approved(pharmacy):
    return create_notification(
        user=pharmacy.user,
        type=Notification.TYPE_PHARMACY_APPROVED,
        title='Pharmacy Approved',
        message=f'Your pharmacy "{pharmacy.name}" has been approved and is now active on the platform.',
    )
