"""
Serializers for company endpoints.
"""
from rest_framework import serializers
from apps.tenants.models import Company


class CompanySerializer(serializers.ModelSerializer):
    """Serializer for Company."""

    class Meta:
        model = Company
        fields = [
            'id', 'name', 'slug', 'tax_id', 'email', 'phone', 'address',
            'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = ['id', 'slug', 'is_active', 'created_at', 'updated_at']


class CompanyWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    tax_id = serializers.CharField(max_length=20, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)


class ActiveCompanySerializer(serializers.Serializer):
    company_id = serializers.UUIDField()
