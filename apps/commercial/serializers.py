"""
Serializers for commercial endpoints.
"""
from django.core.exceptions import ObjectDoesNotExist
from rest_framework import serializers

from apps.commercial.models import Client, Contact, Lead


class ContactSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source='client.name', read_only=True, default=None)
    lead_name = serializers.CharField(source='lead.name', read_only=True, default=None)

    class Meta:
        model = Contact
        fields = [
            'id', 'first_name', 'last_name', 'email', 'phone', 'position', 'notes',
            'is_active', 'client', 'client_name', 'lead', 'lead_name',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields


class ContactInputSerializer(serializers.Serializer):
    """Inline contact data for client and lead writes."""
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    position = serializers.CharField(max_length=100, required=False, allow_blank=True)


class ContactWriteSerializer(ContactInputSerializer):
    notes = serializers.CharField(required=False, allow_blank=True)
    client_id = serializers.UUIDField(required=False, allow_null=True)
    lead_id = serializers.UUIDField(required=False, allow_null=True)


def _contact_of(obj):
    try:
        contact = obj.contact
    except ObjectDoesNotExist:
        return None
    return {
        'id': str(contact.id),
        'first_name': contact.first_name,
        'last_name': contact.last_name,
        'email': contact.email,
        'phone': contact.phone,
        'position': contact.position,
    }


class ClientSerializer(serializers.ModelSerializer):
    contact = serializers.SerializerMethodField()

    class Meta:
        model = Client
        fields = [
            'id', 'name', 'tax_id', 'email', 'phone', 'address', 'is_active',
            'termination_date', 'reason_for_termination', 'contact',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_contact(self, obj):
        return _contact_of(obj)


class ContactLinkMixin(serializers.Serializer):
    """``contact_id`` links an available contact, ``contact`` creates one."""
    contact_id = serializers.UUIDField(required=False, allow_null=True)
    contact = ContactInputSerializer(required=False, allow_null=True)
    unlink_contact = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        if attrs.get('contact_id') and attrs.get('contact'):
            raise serializers.ValidationError('Send either contact_id or contact, not both')
        return attrs


class ClientWriteSerializer(ContactLinkMixin):
    name = serializers.CharField(max_length=255)
    tax_id = serializers.CharField(max_length=20, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)


class DeactivateClientSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True)


class LeadSerializer(serializers.ModelSerializer):
    contact = serializers.SerializerMethodField()

    class Meta:
        model = Lead
        fields = [
            'id', 'name', 'tax_id', 'email', 'phone', 'address', 'status', 'notes',
            'converted_at', 'converted_to_client', 'is_active', 'contact',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_contact(self, obj):
        return _contact_of(obj)


class LeadWriteSerializer(ContactLinkMixin):
    name = serializers.CharField(max_length=255)
    tax_id = serializers.CharField(max_length=20, required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=Lead.STATUS_CHOICES, required=False)


class LeadStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Lead.STATUS_CHOICES)


class ConvertLeadSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
