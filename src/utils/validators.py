from decimal import Decimal
from typing import List, Sequence

from models.payroll import PayrollInput, PayrollItem, PayrollItemType, ValidationError, ViolationKind
from models.payroll_config import PayrollConfig

MAX_WORK_DAYS = 31

SUPPLEMENTAL_FIELDS = {
    PayrollItemType.SENIORITY_BONUS: 'seniorityBonus',
    PayrollItemType.PERFORMANCE_BONUS: 'performanceBonus',
    PayrollItemType.MEAL_ALLOWANCE: 'mealAllowance',
    PayrollItemType.OVERTIME: 'overtime',
}

NON_NEGATIVE_FIELDS = (
    ('bonuses', 'bonuses'),
    ('transport_allowance', 'transportAllowance'),
    ('housing_allowance', 'housingAllowance'),
    ('retirement_fund', 'retirementFund'),
    ('professional_tax', 'professionalTax'),
    ('union_contribution', 'unionContribution'),
)


def validate_payroll_input(payroll_input: PayrollInput, config: PayrollConfig) -> List[ValidationError]:
    """Collect every violation in the input; an empty list means valid"""
    errors = []

    if payroll_input.base_salary < config.smig:
        errors.append(ValidationError(
            ViolationKind.BELOW_MINIMUM_WAGE,
            'baseSalary',
            f"Base salary must be at least the SMIG ({config.smig})"
        ))

    if not 0 <= payroll_input.work_days <= MAX_WORK_DAYS:
        errors.append(ValidationError(
            ViolationKind.INVALID_WORK_DAYS,
            'workDays',
            f"Work days must be between 0 and {MAX_WORK_DAYS}"
        ))

    for attr, field_name in NON_NEGATIVE_FIELDS:
        if getattr(payroll_input, attr) < Decimal('0'):
            errors.append(ValidationError(
                ViolationKind.NEGATIVE_AMOUNT,
                field_name,
                "Amount must not be negative"
            ))

    return errors


def validate_supplemental_earnings(earnings: Sequence[PayrollItem]) -> List[ValidationError]:
    """Itemized earnings added on top of bonuses must not be negative"""
    return [
        ValidationError(
            ViolationKind.NEGATIVE_AMOUNT,
            SUPPLEMENTAL_FIELDS.get(item.type, item.type.value),
            "Amount must not be negative"
        )
        for item in earnings
        if item.amount < 0
    ]
