from rest_framework import serializers
from backend.catalog.serializers import MedicineBriefSerializer
from .models import Inventory


class InventorySerializer(serializers.ModelSerializer):
    medicine = MedicineBriefSerializer(read_only=True)
    pharmacy_name = serializers.CharField(source='pharmacy.name', read_only=True)

    class Meta:
        model = Inventory
        fields = ['id', 'pharmacy', 'pharmacy_name', 'medicine', 'quantity', 'status', 'last_updated']
        read_only_fields = fields


class InventoryCreateSerializer(serializers.Serializer):
    medicine = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=0)


class InventoryUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=0)
