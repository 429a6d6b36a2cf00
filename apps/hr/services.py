"""
Employee services.
"""
import logging
from typing import Any, Dict, Optional

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from apps.core.catalog import CatalogService
from apps.core.exceptions import ConflictError, NotFoundError, ValidationError
from apps.core.persistence import persistence_errors
from apps.documents.services import DocumentService
from apps.hr.models import Employee, JobPosition, ContractType, JobCategory, CostCenter

logger = logging.getLogger(__name__)

EMPLOYEE_FIELDS = (
    'employee_number', 'document_number', 'tax_id', 'first_name', 'last_name',
    'birth_date', 'gender', 'cost_type', 'email', 'phone', 'address', 'hire_date',
)

# payload key -> (model attribute, catalog model)
EMPLOYEE_REFERENCES = {
    'job_position_id': ('job_position', JobPosition),
    'contract_type_id': ('contract_type', ContractType),
    'job_category_id': ('job_category', JobCategory),
    'cost_center_id': ('cost_center', CostCenter),
}

NULLABLE_FIELDS = {'birth_date', 'gender', 'cost_type', 'hire_date'}


class EmployeeService:
    """Employee records of a company."""

    @staticmethod
    def search_employees(company, search: Optional[str] = None, is_active: Optional[bool] = None,
                         status: Optional[str] = None):
        queryset = Employee.objects.for_company(company).select_related(
            'job_position', 'contract_type', 'job_category', 'cost_center'
        )
        if is_active is not None:
            queryset = queryset.filter(is_active=is_active)
        if status:
            queryset = queryset.filter(status=status)
        if search:
            queryset = queryset.filter(
                Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(employee_number__icontains=search)
                | Q(document_number__icontains=search)
                | Q(tax_id__icontains=search)
            )
        return queryset.order_by('last_name', 'first_name')

    @staticmethod
    def get_employee(company, employee_id) -> Employee:
        try:
            return Employee.objects.for_company(company).select_related(
                'job_category__agreement__union'
            ).get(id=employee_id)
        except (Employee.DoesNotExist, ValueError, TypeError):
            raise NotFoundError('Employee not found', {'employee_id': str(employee_id)})

    @staticmethod
    def next_employee_number(company) -> str:
        """Next free numeric employee number; non-numeric numbers are ignored."""
        numbers = Employee.objects_with_deleted.for_company(company).values_list('employee_number', flat=True)
        highest = max((int(n) for n in numbers if n.isdigit()), default=0)
        return str(highest + 1)

    @staticmethod
    def _check_unique(company, data: Dict[str, Any], exclude_id=None):
        queryset = Employee.objects_with_deleted.for_company(company)
        if exclude_id is not None:
            queryset = queryset.exclude(id=exclude_id)

        number = data.get('employee_number')
        if number and queryset.filter(employee_number=number).exists():
            raise ConflictError(
                'An employee with this employee number already exists',
                {'employee_number': number}
            )

        tax_id = data.get('tax_id')
        if tax_id and queryset.filter(tax_id=tax_id).exists():
            raise ConflictError('An employee with this tax id already exists', {'tax_id': tax_id})

    @staticmethod
    def _apply(employee: Employee, company, data: Dict[str, Any]):
        for field in EMPLOYEE_FIELDS:
            if field in data:
                value = data[field]
                if value is None and field not in NULLABLE_FIELDS:
                    value = ''
                setattr(employee, field, value)

        for key, (attr, model) in EMPLOYEE_REFERENCES.items():
            if key in data:
                setattr(employee, attr, CatalogService.resolve_reference(model, company, data[key], key))

    @classmethod
    def create_employee(cls, company, data: Dict[str, Any], actor=None) -> Employee:
        """
        Create an employee.

        Args:
            company: Active company
            data: Validated employee fields; catalog references as ``*_id``
            actor: User creating the record

        Returns:
            Employee: The new employee, status INCOMPLETE

        Raises:
            ValidationError: Missing name or unknown catalog reference
            ConflictError: Employee number or tax id already used in the company
        """
        if not (data.get('first_name') or '').strip() or not (data.get('last_name') or '').strip():
            raise ValidationError('First and last name are required')

        data = dict(data)
        if not data.get('employee_number'):
            data['employee_number'] = cls.next_employee_number(company)

        cls._check_unique(company, data)

        employee = Employee(
            company=company,
            created_by=actor if getattr(actor, 'is_authenticated', False) else None,
        )
        cls._apply(employee, company, data)

        with persistence_errors('create employee', company_id=str(company.id), input=data):
            with transaction.atomic():
                employee.save()

        # Compliance depends on the document types that apply to the new record
        DocumentService.recalculate_status(company, employee)

        logger.info(
            "Employee created",
            extra={'company_id': str(company.id), 'employee_id': str(employee.id)}
        )
        return employee

    @classmethod
    def update_employee(cls, company, employee_id, data: Dict[str, Any]) -> Employee:
        employee = cls.get_employee(company, employee_id)
        cls._check_unique(company, data, exclude_id=employee.id)
        cls._apply(employee, company, data)

        with persistence_errors('update employee', employee_id=str(employee.id), input=data):
            with transaction.atomic():
                employee.save()

        # Attributes that drive document conditions may have changed
        DocumentService.recalculate_status(company, employee)
        return employee

    @classmethod
    def terminate_employee(cls, company, employee_id, reason: Optional[str] = None,
                           termination_date=None) -> Employee:
        employee = cls.get_employee(company, employee_id)
        if not employee.is_active:
            raise ValidationError('Employee is already terminated', {'employee_id': str(employee.id)})

        employee.is_active = False
        employee.termination_date = termination_date or timezone.localdate()
        employee.termination_reason = reason or ''
        employee.save(update_fields=['is_active', 'termination_date', 'termination_reason', 'updated_at'])

        logger.info(
            "Employee terminated",
            extra={'company_id': str(company.id), 'employee_id': str(employee.id)}
        )
        return employee

    @classmethod
    def reactivate_employee(cls, company, employee_id) -> Employee:
        employee = cls.get_employee(company, employee_id)
        employee.is_active = True
        employee.termination_date = None
        employee.termination_reason = ''
        employee.save(update_fields=['is_active', 'termination_date', 'termination_reason', 'updated_at'])
        return employee
