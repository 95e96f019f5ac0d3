"""
Test suite for the reservations module
Tests: Creation and stock checks, Listing, Accept/Reject/Cancel, Timeout sweep, Cron hook, Provide phone, Direct calls
"""
from datetime import timedelta
from io import StringIO
from unittest.mock import patch
from django.core.management import call_command
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from backend.core.exceptions import Conflict
from backend.core.models import User
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.notifications.models import Notification
from backend.reservations.models import Reservation, DirectCall
from backend.reservations.services import check_reservation_timeouts, accept_reservation


class ReservationTestMixin:
    """Shared fixtures: one patient, one approved pharmacy stocking one medicine"""

    def setUp(self):
        self.patient = TestDataFactory.create_patient(name='John Patient')
        self.pharmacy = TestDataFactory.create_pharmacy(name='HealthFirst Pharmacy')
        self.medicine = TestDataFactory.create_medicine(name='Panadol Advance')
        self.inventory = TestDataFactory.create_inventory(self.pharmacy, self.medicine, quantity=5)
        self.client = AuthenticatedAPIClient()

    def make_reservation(self, status=Reservation.STATUS_PENDING, minutes_ago=0):
        return TestDataFactory.create_reservation(
            user=self.patient,
            pharmacy=self.pharmacy,
            medicine=self.medicine,
            status=status,
            request_time=timezone.now() - timedelta(minutes=minutes_ago),
        )


class ReservationCreateTests(ReservationTestMixin, TestCase):
    """Test reservation creation"""

    def setUp(self):
        super().setUp()
        self.client.authenticate_user(self.patient)

    def post(self, **overrides):
        payload = {'pharmacy': self.pharmacy.id, 'medicine': self.medicine.id, 'quantity': 2}
        payload.update(overrides)
        return self.client.post('/api/v1/reservations/', payload, format='json')

    def test_create_reservation(self):
        """Test create reservation"""
        response = self.post()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        reservation = response.data['reservation']
        self.assertEqual(reservation['status'], Reservation.STATUS_PENDING)
        self.assertEqual(reservation['quantity'], 2)
        self.assertEqual(reservation['pharmacy']['id'], self.pharmacy.id)
        self.assertIsNone(reservation['accepted_time'])

        notification = Notification.objects.get(user=self.pharmacy.user)
        self.assertEqual(notification.type, Notification.TYPE_RESERVATION_CREATED)
        self.assertIn('John Patient', notification.message)

    def test_create_does_not_touch_stock(self):
        """Test create does not touch stock"""
        self.post(quantity=5)
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.quantity, 5)

    def test_insufficient_stock(self):
        """Test insufficient stock"""
        response = self.post(quantity=6)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Insufficient stock. Only 5 unit(s) available')
        self.assertFalse(Reservation.objects.exists())

    def test_medicine_not_stocked(self):
        """Test medicine not stocked"""
        other = TestDataFactory.create_medicine()
        response = self.post(medicine=other.id)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Medicine not available at this pharmacy')

    def test_unknown_pharmacy_and_medicine(self):
        """Test unknown pharmacy and medicine"""
        self.assertEqual(self.post(pharmacy=99999).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.post(medicine=99999).status_code, status.HTTP_404_NOT_FOUND)

    def test_unapproved_pharmacy(self):
        """Test unapproved pharmacy"""
        self.pharmacy.is_approved = False
        self.pharmacy.save()
        response = self.post()
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_non_positive_quantity(self):
        """Test non positive quantity"""
        response = self.post(quantity=0)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('quantity', response.data['details'])

    def test_pharmacy_cannot_create(self):
        """Test pharmacy cannot create"""
        self.client.authenticate_user(self.pharmacy.user)
        response = self.post()
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class ReservationListTests(ReservationTestMixin, TestCase):
    """Test reservation listing per role"""

    def test_patient_sees_own_reservations(self):
        """Test patient sees own reservations"""
        mine = self.make_reservation()
        TestDataFactory.create_reservation()
        self.client.authenticate_user(self.patient)
        response = self.client.get('/api/v1/reservations/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([r['id'] for r in response.data['results']], [mine.id])

    def test_pharmacy_sees_its_reservations_with_status_filter(self):
        """Test pharmacy sees its reservations with status filter"""
        pending = self.make_reservation()
        self.make_reservation(status=Reservation.STATUS_ACCEPTED)
        TestDataFactory.create_reservation()
        self.client.authenticate_user(self.pharmacy.user)

        response = self.client.get('/api/v1/reservations/')
        self.assertEqual(response.data['count'], 2)

        response = self.client.get(f'/api/v1/reservations/?status={Reservation.STATUS_PENDING}')
        self.assertEqual([r['id'] for r in response.data['results']], [pending.id])

    def test_newest_first(self):
        """Test newest first"""
        older = self.make_reservation(minutes_ago=30)
        newer = self.make_reservation(minutes_ago=1)
        self.client.authenticate_user(self.patient)
        response = self.client.get('/api/v1/reservations/')
        self.assertEqual([r['id'] for r in response.data['results']], [newer.id, older.id])

    def test_admin_cannot_list(self):
        """Test admin cannot list"""
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.get('/api/v1/reservations/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_detail_visibility(self):
        """Test detail visibility"""
        reservation = self.make_reservation()
        self.client.authenticate_user(self.pharmacy.user)
        self.assertEqual(self.client.get(f'/api/v1/reservations/{reservation.id}/').status_code, status.HTTP_200_OK)

        self.client.authenticate_user(TestDataFactory.create_patient())
        self.assertEqual(self.client.get(f'/api/v1/reservations/{reservation.id}/').status_code, status.HTTP_403_FORBIDDEN)


class ReservationTransitionTests(ReservationTestMixin, TestCase):
    """Test the reservation state machine"""

    def test_accept_with_note(self):
        """Test accept with note"""
        reservation = self.make_reservation()
        self.client.authenticate_user(self.pharmacy.user)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/accept/', {
            'note': 'Ready at the counter',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reservation']['status'], Reservation.STATUS_ACCEPTED)
        self.assertIsNotNone(response.data['reservation']['accepted_time'])

        reservation.refresh_from_db()
        self.assertEqual(reservation.note, 'Ready at the counter')
        notification = Notification.objects.get(user=self.patient)
        self.assertEqual(notification.type, Notification.TYPE_RESERVATION_ACCEPTED)
        self.assertIn('Ready at the counter', notification.message)

    def test_accept_does_not_decrement_stock(self):
        """Test accept does not decrement stock"""
        reservation = self.make_reservation()
        self.client.authenticate_user(self.pharmacy.user)
        self.client.put(f'/api/v1/reservations/{reservation.id}/accept/', {}, format='json')
        self.inventory.refresh_from_db()
        self.assertEqual(self.inventory.quantity, 5)

    def test_accept_after_no_response(self):
        """Test accept after no response"""
        reservation = self.make_reservation(status=Reservation.STATUS_NO_RESPONSE)
        self.client.authenticate_user(self.pharmacy.user)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_accept_twice_conflicts(self):
        """Test accept twice conflicts"""
        reservation = self.make_reservation(status=Reservation.STATUS_ACCEPTED)
        self.client.authenticate_user(self.pharmacy.user)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Cannot accept reservation with status ACCEPTED')

    def test_other_pharmacy_cannot_accept(self):
        """Test other pharmacy cannot accept"""
        reservation = self.make_reservation()
        other = TestDataFactory.create_pharmacy()
        self.client.authenticate_user(other.user)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.STATUS_PENDING)

    def test_pharmacy_user_without_pharmacy_cannot_accept(self):
        """Test a pharmacy account with no pharmacy record gets 404 on accept"""
        reservation = self.make_reservation()
        self.client.authenticate_user(TestDataFactory.create_user(role=User.ROLE_PHARMACY))
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/accept/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Pharmacy not found')
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.STATUS_PENDING)

    def test_reject_with_reason(self):
        """Test reject with reason"""
        reservation = self.make_reservation()
        self.client.authenticate_user(self.pharmacy.user)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/reject/', {
            'reason': 'Out of stock',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.STATUS_REJECTED)
        self.assertIsNotNone(reservation.rejected_time)
        self.assertEqual(reservation.note, 'Out of stock')
        self.assertTrue(Notification.objects.filter(
            user=self.patient, type=Notification.TYPE_RESERVATION_REJECTED
        ).exists())

    def test_reject_cancelled_conflicts(self):
        """Test reject cancelled conflicts"""
        reservation = self.make_reservation(status=Reservation.STATUS_CANCELLED)
        self.client.authenticate_user(self.pharmacy.user)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/reject/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_patient_cancels_accepted(self):
        """Test patient cancels accepted"""
        reservation = self.make_reservation(status=Reservation.STATUS_ACCEPTED)
        self.client.authenticate_user(self.patient)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reservation']['status'], Reservation.STATUS_CANCELLED)

    def test_cancel_rejected_conflicts(self):
        """Test cancel rejected conflicts"""
        reservation = self.make_reservation(status=Reservation.STATUS_REJECTED)
        self.client.authenticate_user(self.patient)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_other_patient_cannot_cancel(self):
        """Test other patient cannot cancel"""
        reservation = self.make_reservation()
        self.client.authenticate_user(TestDataFactory.create_patient())
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_stale_instance_cannot_overwrite(self):
        """A response racing the sweep sees the new status and gets a conflict"""
        reservation = self.make_reservation()
        Reservation.objects.filter(pk=reservation.pk).update(status=Reservation.STATUS_CANCELLED)
        with self.assertRaises(Conflict):
            accept_reservation(reservation, self.pharmacy)
        reservation.refresh_from_db()
        self.assertEqual(reservation.status, Reservation.STATUS_CANCELLED)
        self.assertIsNone(reservation.accepted_time)


class ReservationTimeoutTests(ReservationTestMixin, TestCase):
    """Test the timeout sweep"""

    def test_only_overdue_pending_reservations_time_out(self):
        """Test only overdue pending reservations time out"""
        overdue = self.make_reservation(minutes_ago=6)
        fresh = self.make_reservation(minutes_ago=1)
        accepted = self.make_reservation(status=Reservation.STATUS_ACCEPTED, minutes_ago=60)

        updated_ids = check_reservation_timeouts()

        self.assertEqual(updated_ids, [overdue.id])
        overdue.refresh_from_db()
        fresh.refresh_from_db()
        accepted.refresh_from_db()
        self.assertEqual(overdue.status, Reservation.STATUS_NO_RESPONSE)
        self.assertIsNotNone(overdue.no_response_time)
        self.assertEqual(fresh.status, Reservation.STATUS_PENDING)
        self.assertEqual(accepted.status, Reservation.STATUS_ACCEPTED)
        self.assertTrue(Notification.objects.filter(
            user=self.patient, type=Notification.TYPE_RESERVATION_NO_RESPONSE
        ).exists())

    def test_sweep_is_idempotent(self):
        """Test sweep is idempotent"""
        self.make_reservation(minutes_ago=10)
        self.assertEqual(len(check_reservation_timeouts()), 1)
        self.assertEqual(check_reservation_timeouts(), [])
        self.assertEqual(Notification.objects.filter(user=self.patient).count(), 1)

    @override_settings(RESERVATION_TIMEOUT_MINUTES=30)
    def test_timeout_is_configurable(self):
        """Test timeout is configurable"""
        self.make_reservation(minutes_ago=10)
        self.assertEqual(check_reservation_timeouts(), [])

    def test_cron_endpoint_without_secret(self):
        """Test cron endpoint without secret"""
        overdue = self.make_reservation(minutes_ago=6)
        response = self.client.post('/api/v1/cron/check-timeouts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['updated_reservation_ids'], [overdue.id])
        self.assertIn('timestamp', response.data)

    @override_settings(CRON_SECRET='s3cret')
    def test_cron_endpoint_requires_secret(self):
        """Test cron endpoint requires secret"""
        self.make_reservation(minutes_ago=6)
        response = self.client.get('/api/v1/cron/check-timeouts/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(Reservation.objects.filter(status=Reservation.STATUS_PENDING).count(), 1)

        self.client.credentials(HTTP_AUTHORIZATION='Bearer s3cret')
        response = self.client.get('/api/v1/cron/check-timeouts/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['updated_reservation_ids']), 1)

    def test_management_command(self):
        """Test management command"""
        self.make_reservation(minutes_ago=6)
        out = StringIO()
        call_command('check_reservation_timeouts', stdout=out)
        self.assertIn('Processed 1 timed-out reservations', out.getvalue())
        self.assertFalse(Reservation.objects.filter(status=Reservation.STATUS_PENDING).exists())

    def test_management_command_interval_until_interrupted(self):
        """Test the interval mode sweeps then stops cleanly on Ctrl+C"""
        self.make_reservation(minutes_ago=6)
        out = StringIO()
        with patch('backend.reservations.management.commands.check_reservation_timeouts.time.sleep',
                   side_effect=KeyboardInterrupt) as sleep:
            call_command('check_reservation_timeouts', interval=30, stdout=out)
        sleep.assert_called_once_with(30)
        self.assertIn('every 30s', out.getvalue())
        self.assertIn('Processed 1 timed-out reservations', out.getvalue())
        self.assertIn('Stopped', out.getvalue())
        self.assertFalse(Reservation.objects.filter(status=Reservation.STATUS_PENDING).exists())


class ProvidePhoneTests(ReservationTestMixin, TestCase):
    """Test the patient phone fallback"""

    def setUp(self):
        super().setUp()
        self.client.authenticate_user(self.patient)

    def test_provide_phone_after_no_response(self):
        """Test provide phone after no response"""
        reservation = self.make_reservation(status=Reservation.STATUS_NO_RESPONSE)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/provide-phone/', {
            'phone': '+1 555 1111',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['reservation']['patient_phone'], '+1 555 1111')
        notification = Notification.objects.get(user=self.pharmacy.user)
        self.assertIn('+1 555 1111', notification.message)

    def test_provide_phone_requires_no_response(self):
        """Test provide phone requires no response"""
        reservation = self.make_reservation()
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/provide-phone/', {
            'phone': '+1 555 1111',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_provide_phone_rejects_garbage(self):
        """Test provide phone rejects garbage"""
        reservation = self.make_reservation(status=Reservation.STATUS_NO_RESPONSE)
        response = self.client.put(f'/api/v1/reservations/{reservation.id}/provide-phone/', {
            'phone': 'call me',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class DirectCallTests(ReservationTestMixin, TestCase):
    """Test direct call tracking"""

    def test_unexpected_error_uses_envelope(self):
        """Test an unhandled error comes back as a 500 error envelope"""
        self.client.authenticate_user(self.patient)
        with patch('backend.reservations.services.record_direct_call', side_effect=RuntimeError('boom')):
            response = self.client.post('/api/v1/direct-calls/', {
                'pharmacy': self.pharmacy.id,
                'medicine': self.medicine.id,
            }, format='json')
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error'], 'INTERNAL_ERROR')
        self.assertEqual(response.data['message'], 'An unexpected error occurred')
        self.assertEqual(response.data['status_code'], 500)
        self.assertFalse(DirectCall.objects.exists())

    def test_record_direct_call(self):
        """Test record direct call"""
        self.client.authenticate_user(self.patient)
        response = self.client.post('/api/v1/direct-calls/', {
            'pharmacy': self.pharmacy.id,
            'medicine': self.medicine.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['phone_number'], self.pharmacy.phone)
        self.assertTrue(DirectCall.objects.filter(user=self.patient, pharmacy=self.pharmacy).exists())

    def test_direct_call_unknown_pharmacy(self):
        """Test direct call unknown pharmacy"""
        self.client.authenticate_user(self.patient)
        response = self.client.post('/api/v1/direct-calls/', {
            'pharmacy': 99999,
            'medicine': self.medicine.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_direct_call_requires_patient(self):
        """Test direct call requires patient"""
        self.client.authenticate_user(self.pharmacy.user)
        response = self.client.post('/api/v1/direct-calls/', {
            'pharmacy': self.pharmacy.id,
            'medicine': self.medicine.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
