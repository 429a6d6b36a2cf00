"""
Choice values shared by employees, equipment and document conditions.
"""

GENDER_MALE = 'MALE'
GENDER_FEMALE = 'FEMALE'
GENDER_NOT_DECLARED = 'NOT_DECLARED'

GENDER_CHOICES = [
    (GENDER_MALE, 'Male'),
    (GENDER_FEMALE, 'Female'),
    (GENDER_NOT_DECLARED, 'Not declared'),
]

COST_TYPE_DIRECT = 'DIRECT'
COST_TYPE_INDIRECT = 'INDIRECT'

COST_TYPE_CHOICES = [
    (COST_TYPE_DIRECT, 'Direct'),
    (COST_TYPE_INDIRECT, 'Indirect'),
]


class ComplianceStatus:
    """Document compliance of an employee or a vehicle."""

    COMPLETE = 'COMPLETE'
    COMPLETE_EXPIRED_DOCS = 'COMPLETE_EXPIRED_DOCS'
    INCOMPLETE = 'INCOMPLETE'

    CHOICES = [
        (COMPLETE, 'Complete'),
        (COMPLETE_EXPIRED_DOCS, 'Complete with expired documents'),
        (INCOMPLETE, 'Incomplete'),
    ]
