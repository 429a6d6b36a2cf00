"""
Applicability rules of document types.

A document type that is conditional carries one rule per non-empty
condition group. A rule passes when the subject's attribute is one of
the rule's allowed values (OR inside the group); a rule set applies when
every rule passes (AND between groups). A subject missing the attribute
fails the rule. Non-conditional types and empty groups restrict nothing.

Rules are evaluated against a ``SubjectSnapshot`` so they can be tested
without the database.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Mapping, Optional, Tuple

from apps.documents.models import DocumentType
from apps.equipment.models import Vehicle
from apps.hr.models import Employee


EMPLOYEE_ATTRIBUTES = (
    'job_position_id',
    'contract_type_id',
    'job_category_id',
    'union_id',
    'collective_agreement_id',
    'gender',
    'cost_type',
)

EQUIPMENT_ATTRIBUTES = (
    'vehicle_brand_id',
    'vehicle_type_id',
)

# DocumentType relation or field holding the allowed values of each attribute
CONDITION_SOURCES = {
    'job_position_id': 'condition_job_positions',
    'contract_type_id': 'condition_contract_types',
    'job_category_id': 'condition_job_categories',
    'union_id': 'condition_unions',
    'collective_agreement_id': 'condition_collective_agreements',
    'gender': 'genders',
    'cost_type': 'cost_types',
    'vehicle_brand_id': 'condition_vehicle_brands',
    'vehicle_type_id': 'condition_vehicle_types',
}


def _key(value):
    return None if value is None else str(value)


@dataclass(frozen=True)
class SubjectSnapshot:
    """Attributes of an employee or a vehicle that conditions look at."""

    job_position_id: Optional[str] = None
    contract_type_id: Optional[str] = None
    job_category_id: Optional[str] = None
    union_id: Optional[str] = None
    collective_agreement_id: Optional[str] = None
    gender: Optional[str] = None
    cost_type: Optional[str] = None
    vehicle_brand_id: Optional[str] = None
    vehicle_type_id: Optional[str] = None

    @classmethod
    def from_employee(cls, employee) -> 'SubjectSnapshot':
        agreement = employee.collective_agreement
        return cls(
            job_position_id=_key(employee.job_position_id),
            contract_type_id=_key(employee.contract_type_id),
            job_category_id=_key(employee.job_category_id),
            union_id=_key(agreement.union_id) if agreement else None,
            collective_agreement_id=_key(agreement.id) if agreement else None,
            gender=employee.gender or None,
            cost_type=employee.cost_type or None,
        )

    @classmethod
    def from_vehicle(cls, vehicle) -> 'SubjectSnapshot':
        return cls(
            vehicle_brand_id=_key(vehicle.brand_id),
            vehicle_type_id=_key(vehicle.type_id),
        )


@dataclass(frozen=True)
class ConditionRule:
    attribute: str
    allowed: FrozenSet[str]

    def matches(self, snapshot: SubjectSnapshot) -> bool:
        value = getattr(snapshot, self.attribute)
        return value is not None and value in self.allowed


@dataclass(frozen=True)
class RuleSet:
    rules: Tuple[ConditionRule, ...] = field(default_factory=tuple)

    def applies_to(self, snapshot: SubjectSnapshot) -> bool:
        return all(rule.matches(snapshot) for rule in self.rules)

    def __bool__(self):
        return bool(self.rules)

    @classmethod
    def build(cls, is_conditional: bool, groups: Mapping[str, Iterable],
              attributes: Iterable[str]) -> 'RuleSet':
        """
        Build a rule set from condition groups.

        Only ``attributes`` are considered; groups for other subject kinds
        are ignored.
        """
        if not is_conditional:
            return cls()
        rules = []
        for attribute in attributes:
            allowed = frozenset(_key(value) for value in groups.get(attribute) or () if value is not None)
            if allowed:
                rules.append(ConditionRule(attribute, allowed))
        return cls(tuple(rules))

    @classmethod
    def for_document_type(cls, document_type) -> 'RuleSet':
        """Rule set of a DocumentType instance; company documents carry none."""
        if document_type.applies_to == DocumentType.APPLIES_TO_EMPLOYEE:
            attributes = EMPLOYEE_ATTRIBUTES
        elif document_type.applies_to == DocumentType.APPLIES_TO_EQUIPMENT:
            attributes = EQUIPMENT_ATTRIBUTES
        else:
            return cls()

        if not document_type.is_conditional:
            return cls()

        groups = {}
        for attribute in attributes:
            source = CONDITION_SOURCES[attribute]
            value = getattr(document_type, source)
            if isinstance(value, (list, tuple)):
                groups[attribute] = value
            else:
                groups[attribute] = [entry.pk for entry in value.all()]
        return cls.build(True, groups, attributes)


def snapshot_for(subject) -> Optional[SubjectSnapshot]:
    """Snapshot of an Employee or a Vehicle; None for company-level subjects."""
    if isinstance(subject, Employee):
        return SubjectSnapshot.from_employee(subject)
    if isinstance(subject, Vehicle):
        return SubjectSnapshot.from_vehicle(subject)
    return None
