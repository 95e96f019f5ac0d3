from rest_framework import serializers
from backend.catalog.serializers import MedicineBriefSerializer
from backend.core.models import User
from backend.core.utils import clean_text, sanitize_phone
from backend.pharmacies.serializers import PharmacyBriefSerializer
from .models import Reservation


class PatientSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['id', 'name', 'email', 'phone']


class ReservationSerializer(serializers.ModelSerializer):
    user = PatientSerializer(read_only=True)
    pharmacy = PharmacyBriefSerializer(read_only=True)
    medicine = MedicineBriefSerializer(read_only=True)

    class Meta:
        model = Reservation
        fields = ['id', 'user', 'pharmacy', 'medicine', 'quantity', 'status',
                  'request_time', 'accepted_time', 'rejected_time', 'no_response_time',
                  'note', 'patient_phone', 'created_at', 'updated_at']
        read_only_fields = fields


class ReservationCreateSerializer(serializers.Serializer):
    pharmacy = serializers.IntegerField(min_value=1)
    medicine = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, error_messages={'min_value': 'Quantity must be positive'})


class ReservationAcceptSerializer(serializers.Serializer):
    note = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)

    def validate_note(self, value):
        return clean_text(value) or None


class ReservationRejectSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)

    def validate_reason(self, value):
        return clean_text(value) or None


class ProvidePhoneSerializer(serializers.Serializer):
    phone = serializers.CharField(max_length=30)

    def validate_phone(self, value):
        phone = sanitize_phone(value)
        if sum(ch.isdigit() for ch in phone) < 7:
            raise serializers.ValidationError('Phone number is required')
        return phone


class DirectCallCreateSerializer(serializers.Serializer):
    pharmacy = serializers.IntegerField(min_value=1)
    medicine = serializers.IntegerField(min_value=1)
