"""
Serializers for documents and document types.
"""
from rest_framework import serializers

from apps.documents.models import Document, DocumentType, DocumentVersion
from apps.documents.services import CONDITION_RELATIONS, UPLOAD_ACTIONS
from apps.hr.constants import GENDER_CHOICES, COST_TYPE_CHOICES


def _ids(manager):
    return [str(pk) for pk in manager.values_list('id', flat=True)]


class DocumentTypeSerializer(serializers.ModelSerializer):
    conditions = serializers.SerializerMethodField()

    class Meta:
        model = DocumentType
        fields = [
            'id', 'name', 'slug', 'description', 'applies_to',
            'is_mandatory', 'has_expiration', 'is_monthly', 'is_multi_resource',
            'is_private', 'is_termination', 'is_active', 'is_conditional',
            'conditions', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_conditions(self, obj):
        if not obj.is_conditional:
            return None
        conditions = {
            key: _ids(getattr(obj, attr)) for key, (attr, _) in CONDITION_RELATIONS.items()
        }
        conditions['genders'] = obj.genders
        conditions['cost_types'] = obj.cost_types
        return conditions


class ConditionsSerializer(serializers.Serializer):
    genders = serializers.ListField(child=serializers.ChoiceField(choices=GENDER_CHOICES), required=False)
    cost_types = serializers.ListField(child=serializers.ChoiceField(choices=COST_TYPE_CHOICES), required=False)
    job_position_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    contract_type_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    job_category_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    union_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    collective_agreement_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    vehicle_brand_ids = serializers.ListField(child=serializers.UUIDField(), required=False)
    vehicle_type_ids = serializers.ListField(child=serializers.UUIDField(), required=False)


class DocumentTypeWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=150)
    description = serializers.CharField(required=False, allow_blank=True)
    applies_to = serializers.ChoiceField(choices=DocumentType.APPLIES_TO_CHOICES)
    is_mandatory = serializers.BooleanField(required=False)
    has_expiration = serializers.BooleanField(required=False)
    is_monthly = serializers.BooleanField(required=False)
    is_multi_resource = serializers.BooleanField(required=False)
    is_private = serializers.BooleanField(required=False)
    is_termination = serializers.BooleanField(required=False)
    is_active = serializers.BooleanField(required=False)
    is_conditional = serializers.BooleanField(required=False)
    conditions = ConditionsSerializer(required=False)


class DocumentVersionSerializer(serializers.ModelSerializer):
    changed_by = serializers.EmailField(source='changed_by.email', read_only=True, default=None)

    class Meta:
        model = DocumentVersion
        fields = [
            'id', 'number', 'action', 'state', 'file_name', 'file_size', 'mime_type',
            'expiration_date', 'period', 'reason', 'changed_by', 'created_at'
        ]
        read_only_fields = fields


class DocumentSerializer(serializers.ModelSerializer):
    document_type = serializers.SerializerMethodField()
    employee_id = serializers.UUIDField(read_only=True)
    vehicle_id = serializers.UUIDField(read_only=True)
    has_file = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = [
            'id', 'document_type', 'employee_id', 'vehicle_id', 'state', 'period',
            'expiration_date', 'file_name', 'file_size', 'mime_type', 'has_file',
            'review_notes', 'reviewed_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_document_type(self, obj):
        return {
            'id': str(obj.document_type_id),
            'name': obj.document_type.name,
            'applies_to': obj.document_type.applies_to,
            'is_mandatory': obj.document_type.is_mandatory,
        }

    def get_has_file(self, obj):
        return bool(obj.file_key)


class DocumentDetailSerializer(DocumentSerializer):
    history = DocumentVersionSerializer(many=True, read_only=True)

    class Meta(DocumentSerializer.Meta):
        fields = DocumentSerializer.Meta.fields + ['history']
        read_only_fields = fields


class DocumentUploadSerializer(serializers.Serializer):
    document_type_id = serializers.UUIDField()
    employee_id = serializers.UUIDField(required=False, allow_null=True)
    vehicle_id = serializers.UUIDField(required=False, allow_null=True)
    file = serializers.FileField()
    period = serializers.CharField(max_length=7, required=False, allow_blank=True)
    expiration_date = serializers.DateField(required=False, allow_null=True)
    action = serializers.ChoiceField(choices=UPLOAD_ACTIONS, required=False)
    submit = serializers.BooleanField(required=False, default=False)


class DocumentRequestSerializer(serializers.Serializer):
    document_type_id = serializers.UUIDField()
    employee_id = serializers.UUIDField(required=False, allow_null=True)
    vehicle_id = serializers.UUIDField(required=False, allow_null=True)
    period = serializers.CharField(max_length=7, required=False, allow_blank=True)


class DocumentReviewSerializer(serializers.Serializer):
    approve = serializers.BooleanField()
    notes = serializers.CharField(required=False, allow_blank=True)


class DocumentTypeRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = DocumentType
        fields = ['id', 'name', 'applies_to', 'is_mandatory', 'has_expiration', 'is_monthly']
        read_only_fields = fields
