"""
Tests for document type applicability rules.
"""
import pytest
from hypothesis import given, strategies as st

from apps.documents.conditions import (
    EMPLOYEE_ATTRIBUTES, EQUIPMENT_ATTRIBUTES, RuleSet, SubjectSnapshot, snapshot_for,
)
from apps.documents.models import DocumentType
from apps.documents.services import DocumentService
from apps.equipment.models import Vehicle, VehicleBrand
from apps.hr.models import CollectiveAgreement, Employee, JobCategory, JobPosition, Union


values = st.sampled_from(['a', 'b', 'c', 'd'])
employee_groups = st.dictionaries(st.sampled_from(EMPLOYEE_ATTRIBUTES), st.lists(values, max_size=3))
snapshots = st.builds(
    SubjectSnapshot,
    **{attribute: st.none() | values for attribute in EMPLOYEE_ATTRIBUTES}
)


class TestRuleSet:

    @given(employee_groups, snapshots)
    def test_non_conditional_applies_to_everyone(self, groups, snapshot):
        assert RuleSet.build(False, groups, EMPLOYEE_ATTRIBUTES).applies_to(snapshot)

    @given(snapshots)
    def test_empty_groups_restrict_nothing(self, snapshot):
        groups = {attribute: [] for attribute in EMPLOYEE_ATTRIBUTES}

        rules = RuleSet.build(True, groups, EMPLOYEE_ATTRIBUTES)

        assert not rules
        assert rules.applies_to(snapshot)

    @given(employee_groups, snapshots)
    def test_every_non_empty_group_must_match(self, groups, snapshot):
        expected = all(
            getattr(snapshot, attribute) in allowed
            for attribute, allowed in groups.items()
            if allowed
        )

        assert RuleSet.build(True, groups, EMPLOYEE_ATTRIBUTES).applies_to(snapshot) is expected

    @given(st.lists(values, min_size=1))
    def test_missing_attribute_fails_the_rule(self, allowed):
        rules = RuleSet.build(True, {'gender': allowed}, EMPLOYEE_ATTRIBUTES)

        assert not rules.applies_to(SubjectSnapshot(gender=None))

    def test_values_inside_a_group_are_alternatives(self):
        rules = RuleSet.build(True, {'gender': ['FEMALE', 'NOT_DECLARED']}, EMPLOYEE_ATTRIBUTES)

        assert rules.applies_to(SubjectSnapshot(gender='FEMALE'))
        assert rules.applies_to(SubjectSnapshot(gender='NOT_DECLARED'))
        assert not rules.applies_to(SubjectSnapshot(gender='MALE'))

    def test_groups_are_combined(self):
        rules = RuleSet.build(
            True, {'gender': ['FEMALE'], 'cost_type': ['DIRECT']}, EMPLOYEE_ATTRIBUTES
        )

        assert rules.applies_to(SubjectSnapshot(gender='FEMALE', cost_type='DIRECT'))
        assert not rules.applies_to(SubjectSnapshot(gender='FEMALE', cost_type='INDIRECT'))

    def test_groups_of_other_kind_are_ignored(self):
        rules = RuleSet.build(True, {'gender': ['FEMALE']}, EQUIPMENT_ATTRIBUTES)

        assert not rules
        assert rules.applies_to(SubjectSnapshot(vehicle_brand_id='x'))


@pytest.mark.django_db
class TestSnapshots:

    def test_employee_snapshot_follows_category_chain(self, company):
        union = Union.objects.create(company=company, name='Camioneros')
        agreement = CollectiveAgreement.objects.create(company=company, name='CCT 40/89', union=union)
        category = JobCategory.objects.create(company=company, name='1ra', agreement=agreement)
        employee = Employee.objects.create(
            company=company, employee_number='1', first_name='Ana', last_name='Ruiz',
            job_category=category, gender='FEMALE',
        )

        snapshot = snapshot_for(employee)

        assert snapshot.job_category_id == str(category.id)
        assert snapshot.collective_agreement_id == str(agreement.id)
        assert snapshot.union_id == str(union.id)
        assert snapshot.gender == 'FEMALE'
        assert snapshot.cost_type is None

    def test_vehicle_snapshot(self, company):
        brand = VehicleBrand.objects.create(company=company, name='Scania')
        vehicle = Vehicle.objects.create(company=company, domain='AB123CD', brand=brand)

        snapshot = snapshot_for(vehicle)

        assert snapshot.vehicle_brand_id == str(brand.id)
        assert snapshot.vehicle_type_id is None

    def test_company_has_no_snapshot(self):
        assert snapshot_for(None) is None


@pytest.mark.django_db
class TestApplicableTypes:

    @pytest.fixture
    def driver(self, company):
        return JobPosition.objects.create(company=company, name='Chofer')

    def _type(self, company, name, **fields):
        from django.utils.text import slugify
        fields.setdefault('applies_to', DocumentType.APPLIES_TO_EMPLOYEE)
        return DocumentType.objects.create(company=company, name=name, slug=slugify(name), **fields)

    def test_female_only_type_skips_male_employee(self, company):
        general = self._type(company, 'ID card', is_mandatory=True)
        maternity = self._type(
            company, 'Maternity certificate', is_mandatory=True, is_conditional=True, genders=['FEMALE']
        )
        male = Employee.objects.create(
            company=company, employee_number='1', first_name='Juan', last_name='Paz', gender='MALE'
        )
        female = Employee.objects.create(
            company=company, employee_number='2', first_name='Ana', last_name='Ruiz', gender='FEMALE'
        )

        assert DocumentService.applicable_types(company, male) == [general]
        assert set(DocumentService.applicable_types(company, female)) == {general, maternity}

    def test_relation_condition(self, company, driver):
        license_type = self._type(company, 'Driving license', is_conditional=True)
        license_type.condition_job_positions.add(driver)
        clerk = Employee.objects.create(
            company=company, employee_number='1', first_name='Juan', last_name='Paz'
        )
        chofer = Employee.objects.create(
            company=company, employee_number='2', first_name='Ana', last_name='Ruiz', job_position=driver
        )

        assert DocumentService.applicable_types(company, clerk) == []
        assert DocumentService.applicable_types(company, chofer) == [license_type]

    def test_conditions_are_ignored_when_type_is_not_conditional(self, company, driver):
        general = self._type(company, 'ID card', genders=['FEMALE'])
        employee = Employee.objects.create(
            company=company, employee_number='1', first_name='Juan', last_name='Paz', gender='MALE'
        )

        assert DocumentService.applicable_types(company, employee) == [general]

    def test_inactive_and_other_kind_types_are_excluded(self, company):
        self._type(company, 'Old form', is_active=False)
        self._type(company, 'VTV', applies_to=DocumentType.APPLIES_TO_EQUIPMENT)
        employee = Employee.objects.create(
            company=company, employee_number='1', first_name='Juan', last_name='Paz'
        )

        assert DocumentService.applicable_types(company, employee) == []
