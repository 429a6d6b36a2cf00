"""
Serializers for employees and HR catalogs.
"""
from rest_framework import serializers

from apps.hr.constants import GENDER_CHOICES, COST_TYPE_CHOICES
from apps.hr.models import (
    Employee, CostCenter, ContractType, JobPosition, Union,
    CollectiveAgreement, JobCategory,
)

CATALOG_FIELDS = ['id', 'name', 'description', 'is_active', 'created_at', 'updated_at']


class CatalogSerializer(serializers.ModelSerializer):
    """Base for plain catalogs; the company is set by the service."""

    class Meta:
        fields = CATALOG_FIELDS
        read_only_fields = ['id', 'created_at', 'updated_at']


class CostCenterSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = CostCenter


class ContractTypeSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = ContractType


class JobPositionSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = JobPosition


class UnionSerializer(CatalogSerializer):
    class Meta(CatalogSerializer.Meta):
        model = Union


class CompanyRelatedField(serializers.PrimaryKeyRelatedField):
    """Related catalog entry restricted to the company in the context."""

    def get_queryset(self):
        company = self.context.get('company')
        queryset = super().get_queryset()
        if company is None:
            return queryset.none()
        return queryset.for_company(company)


class CollectiveAgreementSerializer(CatalogSerializer):
    union = CompanyRelatedField(queryset=Union.objects.all())
    union_name = serializers.CharField(source='union.name', read_only=True)

    class Meta(CatalogSerializer.Meta):
        model = CollectiveAgreement
        fields = CATALOG_FIELDS + ['union', 'union_name']


class JobCategorySerializer(CatalogSerializer):
    agreement = CompanyRelatedField(queryset=CollectiveAgreement.objects.all())
    agreement_name = serializers.CharField(source='agreement.name', read_only=True)

    class Meta(CatalogSerializer.Meta):
        model = JobCategory
        fields = CATALOG_FIELDS + ['agreement', 'agreement_name']


def _ref(obj):
    if obj is None:
        return None
    return {'id': str(obj.id), 'name': obj.name}


class EmployeeSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(read_only=True)
    job_position = serializers.SerializerMethodField()
    contract_type = serializers.SerializerMethodField()
    job_category = serializers.SerializerMethodField()
    cost_center = serializers.SerializerMethodField()

    class Meta:
        model = Employee
        fields = [
            'id', 'employee_number', 'document_number', 'tax_id',
            'first_name', 'last_name', 'full_name', 'birth_date', 'gender', 'cost_type',
            'email', 'phone', 'address', 'hire_date', 'termination_date', 'termination_reason',
            'job_position', 'contract_type', 'job_category', 'cost_center',
            'status', 'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_job_position(self, obj):
        return _ref(obj.job_position)

    def get_contract_type(self, obj):
        return _ref(obj.contract_type)

    def get_job_category(self, obj):
        return _ref(obj.job_category)

    def get_cost_center(self, obj):
        return _ref(obj.cost_center)


class EmployeeWriteSerializer(serializers.Serializer):
    employee_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    document_number = serializers.CharField(max_length=20, required=False, allow_blank=True)
    tax_id = serializers.CharField(max_length=20, required=False, allow_blank=True)
    first_name = serializers.CharField(max_length=100)
    last_name = serializers.CharField(max_length=100)
    birth_date = serializers.DateField(required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=GENDER_CHOICES, required=False, allow_null=True)
    cost_type = serializers.ChoiceField(choices=COST_TYPE_CHOICES, required=False, allow_null=True)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=30, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    hire_date = serializers.DateField(required=False, allow_null=True)
    job_position_id = serializers.UUIDField(required=False, allow_null=True)
    contract_type_id = serializers.UUIDField(required=False, allow_null=True)
    job_category_id = serializers.UUIDField(required=False, allow_null=True)
    cost_center_id = serializers.UUIDField(required=False, allow_null=True)


class TerminateEmployeeSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True)
    termination_date = serializers.DateField(required=False)
