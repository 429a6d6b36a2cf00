"""
Tests for employee records and HR catalogs.
"""
import pytest
from datetime import date

from apps.core.exceptions import ConflictError, NotFoundError, ValidationError
from apps.documents.models import DocumentType
from apps.hr.constants import ComplianceStatus
from apps.hr.models import CostCenter, Employee, JobPosition
from apps.hr.services import EmployeeService


@pytest.mark.django_db
class TestEmployeeService:

    def test_employee_number_is_assigned(self, company):
        first = EmployeeService.create_employee(company, {'first_name': 'Ana', 'last_name': 'Ruiz'})
        second = EmployeeService.create_employee(company, {'first_name': 'Juan', 'last_name': 'Paz'})

        assert first.employee_number == '1'
        assert second.employee_number == '2'

    def test_numbering_skips_non_numeric(self, company):
        EmployeeService.create_employee(
            company, {'first_name': 'Ana', 'last_name': 'Ruiz', 'employee_number': 'A-7'}
        )
        EmployeeService.create_employee(
            company, {'first_name': 'Juan', 'last_name': 'Paz', 'employee_number': '41'}
        )

        assert EmployeeService.next_employee_number(company) == '42'

    def test_numbers_are_per_company(self, company, other_company):
        EmployeeService.create_employee(company, {'first_name': 'Ana', 'last_name': 'Ruiz'})

        other = EmployeeService.create_employee(other_company, {'first_name': 'Eva', 'last_name': 'Sol'})

        assert other.employee_number == '1'

    def test_duplicate_number_conflicts(self, company):
        EmployeeService.create_employee(
            company, {'first_name': 'Ana', 'last_name': 'Ruiz', 'employee_number': '10'}
        )

        with pytest.raises(ConflictError):
            EmployeeService.create_employee(
                company, {'first_name': 'Juan', 'last_name': 'Paz', 'employee_number': '10'}
            )

    def test_duplicate_tax_id_conflicts_on_update(self, company):
        EmployeeService.create_employee(
            company, {'first_name': 'Ana', 'last_name': 'Ruiz', 'tax_id': '27-11111111-4'}
        )
        other = EmployeeService.create_employee(company, {'first_name': 'Juan', 'last_name': 'Paz'})

        with pytest.raises(ConflictError):
            EmployeeService.update_employee(company, other.id, {'tax_id': '27-11111111-4'})

    def test_names_are_required(self, company):
        with pytest.raises(ValidationError):
            EmployeeService.create_employee(company, {'first_name': 'Ana', 'last_name': ''})

    def test_catalog_reference_of_other_company(self, company, other_company):
        position = JobPosition.objects.create(company=other_company, name='Chofer')

        with pytest.raises(ValidationError):
            EmployeeService.create_employee(company, {
                'first_name': 'Ana', 'last_name': 'Ruiz', 'job_position_id': position.id,
            })

    def test_catalog_reference_can_be_cleared(self, company):
        center = CostCenter.objects.create(company=company, name='Taller')
        employee = EmployeeService.create_employee(company, {
            'first_name': 'Ana', 'last_name': 'Ruiz', 'cost_center_id': center.id,
        })

        employee = EmployeeService.update_employee(company, employee.id, {'cost_center_id': None})

        assert employee.cost_center is None

    def test_terminate_and_reactivate(self, company):
        employee = EmployeeService.create_employee(company, {'first_name': 'Ana', 'last_name': 'Ruiz'})

        employee = EmployeeService.terminate_employee(
            company, employee.id, reason='Resignation', termination_date=date(2024, 3, 31)
        )
        assert not employee.is_active
        assert employee.termination_date == date(2024, 3, 31)

        with pytest.raises(ValidationError):
            EmployeeService.terminate_employee(company, employee.id)

        employee = EmployeeService.reactivate_employee(company, employee.id)
        assert employee.is_active
        assert employee.termination_reason == ''

    def test_employee_of_other_company_is_not_found(self, company, other_company):
        foreign = EmployeeService.create_employee(other_company, {'first_name': 'Eva', 'last_name': 'Sol'})

        with pytest.raises(NotFoundError):
            EmployeeService.get_employee(company, foreign.id)

    def test_status_reflects_mandatory_types(self, company):
        assert EmployeeService.create_employee(
            company, {'first_name': 'Ana', 'last_name': 'Ruiz'}
        ).status == ComplianceStatus.COMPLETE

        DocumentType.objects.create(
            company=company, name='Driving license', slug='driving-license',
            applies_to=DocumentType.APPLIES_TO_EMPLOYEE, is_mandatory=True,
        )
        employee = EmployeeService.create_employee(company, {'first_name': 'Juan', 'last_name': 'Paz'})

        assert employee.status == ComplianceStatus.INCOMPLETE
        assert Employee.objects.get(id=employee.id).status == ComplianceStatus.INCOMPLETE


@pytest.mark.django_db
class TestEmployeeAPI:

    def test_create_requires_permission(self, company, make_member, auth_client):
        viewer = make_member(company, grants=[('employees', 'view')])

        response = auth_client(viewer.user).post(
            '/v1/employees', {'first_name': 'Ana', 'last_name': 'Ruiz'}, format='json'
        )

        assert response.status_code == 403

    def test_create_and_search(self, owner_client, company):
        response = owner_client.post(
            '/v1/employees', {'first_name': 'Ana', 'last_name': 'Ruiz', 'gender': 'FEMALE'}, format='json'
        )
        assert response.status_code == 201
        assert response.data['employee_number'] == '1'

        response = owner_client.get('/v1/employees', {'search': 'ruiz'})
        assert response.data['count'] == 1

    def test_invalid_gender(self, owner_client, company):
        response = owner_client.post(
            '/v1/employees', {'first_name': 'Ana', 'last_name': 'Ruiz', 'gender': 'OTHER'}, format='json'
        )

        assert response.status_code == 400
        assert 'gender' in response.data['details']

    def test_catalog_crud(self, owner_client, company):
        response = owner_client.post('/v1/hr/cost-centers', {'name': 'Taller'}, format='json')
        assert response.status_code == 201

        duplicate = owner_client.post('/v1/hr/cost-centers', {'name': 'Taller'}, format='json')
        assert duplicate.status_code == 409

        listing = owner_client.get('/v1/hr/cost-centers')
        assert [item['name'] for item in listing.data['results']] == ['Taller']
