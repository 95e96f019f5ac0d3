import re
from rest_framework import serializers
from django.contrib.auth.password_validation import validate_password as run_password_validators
from .models import User
from .utils import clean_text, sanitize_phone

AVATAR_URL_PATTERN = re.compile(r'\.(jpg|jpeg|png|gif|webp)', re.IGNORECASE)


def validate_not_blank_password(value):
    if not value or not value.strip():
        raise serializers.ValidationError('Password cannot be only whitespace')
    return value


class UserBriefSerializer(serializers.ModelSerializer):
    """Public-facing user summary used inside other resources"""
    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'phone', 'avatar', 'created_at']


class UserSerializer(serializers.ModelSerializer):
    pharmacy = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'email', 'name', 'phone', 'avatar', 'role', 'pharmacy', 'created_at', 'updated_at']
        read_only_fields = fields

    def get_pharmacy(self, obj):
        pharmacy = obj.get_pharmacy()
        if pharmacy is None:
            return None
        return {
            'id': pharmacy.id,
            'name': pharmacy.name,
            'is_approved': pharmacy.is_approved,
        }


class PharmacyRegistrationSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    address = serializers.CharField()
    phone = serializers.CharField(max_length=30)
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    working_hours = serializers.CharField(max_length=200)

    def validate_name(self, value):
        return clean_text(value)

    def validate_address(self, value):
        return clean_text(value)

    def validate_phone(self, value):
        return sanitize_phone(value)


class RegisterSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(write_only=True, min_length=8, trim_whitespace=False)
    name = serializers.CharField(max_length=200)
    phone = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    role = serializers.ChoiceField(choices=[User.ROLE_PATIENT, User.ROLE_PHARMACY], default=User.ROLE_PATIENT)
    pharmacy_data = PharmacyRegistrationSerializer(required=False)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_password(self, value):
        validate_not_blank_password(value)
        run_password_validators(value)
        return value

    def validate_name(self, value):
        value = clean_text(value)
        if not value:
            raise serializers.ValidationError('Name is required')
        return value

    def validate_phone(self, value):
        return sanitize_phone(value) or None

    def validate(self, attrs):
        if attrs.get('role') == User.ROLE_PHARMACY and not attrs.get('pharmacy_data'):
            raise serializers.ValidationError({'pharmacy_data': ['Pharmacy details are required for pharmacy registration']})
        return attrs


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField(trim_whitespace=False)

    def validate_email(self, value):
        return value.strip().lower()

    def validate_password(self, value):
        return validate_not_blank_password(value)


class ProfileUpdateSerializer(serializers.ModelSerializer):
    class Meta:
        model = User
        fields = ['name', 'phone', 'avatar']
        extra_kwargs = {
            'phone': {'allow_blank': True},
            'avatar': {'allow_blank': True},
        }

    def validate_name(self, value):
        value = clean_text(value)
        if not value:
            raise serializers.ValidationError('Name cannot be empty')
        return value

    def validate_phone(self, value):
        return sanitize_phone(value) or None

    def validate_avatar(self, value):
        if not value:
            return None
        return validate_avatar_url(value)


def validate_avatar_url(value):
    if not value.lower().startswith(('http://', 'https://')):
        raise serializers.ValidationError('Avatar must be an http(s) URL')
    if not AVATAR_URL_PATTERN.search(value):
        raise serializers.ValidationError('Invalid image URL. Must be a valid image URL (jpg, jpeg, png, gif, webp)')
    return value


class AvatarSerializer(serializers.Serializer):
    avatar_url = serializers.URLField(max_length=500)

    def validate_avatar_url(self, value):
        return validate_avatar_url(value)


class PasswordChangeSerializer(serializers.Serializer):
    current_password = serializers.CharField(trim_whitespace=False)
    new_password = serializers.CharField(min_length=8, trim_whitespace=False)

    def validate_new_password(self, value):
        validate_not_blank_password(value)
        run_password_validators(value, user=self.context.get('user'))
        return value
