from rest_framework import serializers
from backend.core.utils import clean_text
from .models import Medicine


class MedicineSerializer(serializers.ModelSerializer):
    class Meta:
        model = Medicine
        fields = ['id', 'name', 'active_ingredient', 'dosage', 'prescription_required',
                  'category', 'price_range', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']
        extra_kwargs = {
            'prescription_required': {'required': True},
        }

    def validate(self, attrs):
        for field in ('name', 'active_ingredient', 'dosage', 'category', 'price_range'):
            if field in attrs:
                attrs[field] = clean_text(attrs[field])
                if not attrs[field]:
                    raise serializers.ValidationError({field: ['This field may not be blank.']})
        return attrs


class MedicineBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Medicine
        fields = ['id', 'name', 'active_ingredient', 'dosage', 'category', 'prescription_required', 'price_range']
