from rest_framework import serializers
from backend.core.serializers import UserBriefSerializer
from backend.core.utils import clean_text, sanitize_phone
from .models import Pharmacy


class PharmacySerializer(serializers.ModelSerializer):
    user = UserBriefSerializer(read_only=True)

    class Meta:
        model = Pharmacy
        fields = ['id', 'name', 'address', 'phone', 'latitude', 'longitude', 'rating',
                  'working_hours', 'is_approved', 'user', 'created_at', 'updated_at']
        read_only_fields = fields


class PharmacyBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Pharmacy
        fields = ['id', 'name', 'address', 'phone', 'latitude', 'longitude', 'working_hours']


class PharmacyUpdateSerializer(serializers.ModelSerializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90, required=False)
    longitude = serializers.FloatField(min_value=-180, max_value=180, required=False)

    class Meta:
        model = Pharmacy
        fields = ['name', 'address', 'phone', 'latitude', 'longitude', 'working_hours']

    def validate(self, attrs):
        for field in ('name', 'address', 'working_hours'):
            if field in attrs:
                attrs[field] = clean_text(attrs[field])
                if not attrs[field]:
                    raise serializers.ValidationError({field: ['This field may not be blank.']})
        if 'phone' in attrs:
            attrs['phone'] = sanitize_phone(attrs['phone'])
            if not attrs['phone']:
                raise serializers.ValidationError({'phone': ['A valid phone number is required.']})
        return attrs
