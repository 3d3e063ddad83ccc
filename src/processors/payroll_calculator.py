import logging
from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence, Tuple

from models.payroll import PayrollInput, PayrollCalculation, PayrollItem, PayrollValidationError
from models.payroll_config import PayrollConfig, TaxBracket
from utils.validators import validate_payroll_input, validate_supplemental_earnings

logger = logging.getLogger(__name__)

ZERO = Decimal('0')
WHOLE_UNIT = Decimal('1')


def round_amount(amount: Decimal) -> Decimal:
    """Round to the nearest whole dinar, halves away from zero"""
    return amount.quantize(WHOLE_UNIT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class BracketShare:
    """Slice of taxable income falling inside one bracket"""
    bracket: TaxBracket
    portion: Decimal
    tax: Decimal


def aggregate_earnings(payroll_input: PayrollInput) -> Tuple[Decimal, Decimal]:
    """Return (total_allowances, gross_salary)"""
    total_allowances = payroll_input.transport_allowance + payroll_input.housing_allowance
    gross_salary = payroll_input.base_salary + payroll_input.bonuses + total_allowances
    return total_allowances, gross_salary


def calculate_contributions(gross_salary: Decimal, apply: bool,
                            config: PayrollConfig) -> Tuple[Decimal, Decimal]:
    """Return (employee, employer) CNAS contributions"""
    if not apply:
        return ZERO, ZERO
    return (
        round_amount(gross_salary * config.employee_rate),
        round_amount(gross_salary * config.employer_rate),
    )


def bracket_breakdown(taxable_income: Decimal,
                      brackets: Sequence[TaxBracket]) -> List[BracketShare]:
    """Split taxable income across the brackets, rounding each bracket's tax on its own"""
    shares = []
    for bracket in brackets:
        ceiling = taxable_income if bracket.upper_bound is None else min(taxable_income, bracket.upper_bound)
        portion = max(ZERO, ceiling - bracket.lower_bound)
        shares.append(BracketShare(bracket, portion, round_amount(portion * bracket.rate)))
    return shares


def calculate_income_tax(taxable_income: Decimal, apply: bool,
                         brackets: Sequence[TaxBracket]) -> Decimal:
    """Progressive IRG: sum of the per-bracket rounded amounts"""
    if not apply:
        return ZERO
    return sum((share.tax for share in bracket_breakdown(taxable_income, brackets)), ZERO)


def with_supplemental_earnings(payroll_input: PayrollInput,
                               earnings: Sequence[PayrollItem]) -> PayrollInput:
    """Fold itemized supplemental earnings into the input's bonuses"""
    if not earnings:
        return payroll_input
    extra = sum((item.amount for item in earnings), ZERO)
    return replace(payroll_input, bonuses=payroll_input.bonuses + extra)


def deductions_before_tax(payroll_input: PayrollInput, employee_contribution: Decimal) -> Decimal:
    return (
        employee_contribution
        + payroll_input.retirement_fund
        + payroll_input.professional_tax
        + payroll_input.union_contribution
    )


def compose_settlement(payroll_input: PayrollInput,
                       total_allowances: Decimal,
                       gross_salary: Decimal,
                       employee_contribution: Decimal,
                       employer_contribution: Decimal,
                       income_tax: Decimal) -> PayrollCalculation:
    total_deductions_before_tax = deductions_before_tax(payroll_input, employee_contribution)
    taxable_income = gross_salary - total_deductions_before_tax
    total_deductions = total_deductions_before_tax + income_tax

    return PayrollCalculation(
        base_salary=payroll_input.base_salary,
        bonuses=payroll_input.bonuses,
        transport_allowance=payroll_input.transport_allowance,
        housing_allowance=payroll_input.housing_allowance,
        total_allowances=total_allowances,
        gross_salary=gross_salary,
        employee_contribution=employee_contribution,
        retirement_fund=payroll_input.retirement_fund,
        professional_tax=payroll_input.professional_tax,
        union_contribution=payroll_input.union_contribution,
        total_deductions_before_tax=total_deductions_before_tax,
        taxable_income=taxable_income,
        income_tax=income_tax,
        total_deductions=total_deductions,
        net_salary=gross_salary - total_deductions,
        employer_contribution=employer_contribution,
        total_employer_cost=gross_salary + employer_contribution,
    )


class PayrollCalculator:
    """
    Algerian gross-to-net payroll engine.

    Runs validation, earnings aggregation, CNAS contributions, progressive IRG
    and settlement in a single pass. Holds nothing but its rate configuration,
    so one instance can serve any number of callers.
    """

    def __init__(self, config: Optional[PayrollConfig] = None):
        self.config = config or PayrollConfig()

    def validate(self, payroll_input: PayrollInput, earnings: Sequence[PayrollItem] = ()):
        return (
            validate_payroll_input(payroll_input, self.config)
            + validate_supplemental_earnings(earnings)
        )

    def calculate(self, payroll_input: PayrollInput,
                  earnings: Sequence[PayrollItem] = ()) -> PayrollCalculation:
        """
        Compute the full breakdown or raise PayrollValidationError with every violation.

        Itemized supplemental earnings are validated on their own and then
        added to the input's bonuses.
        """
        errors = self.validate(payroll_input, earnings)
        if errors:
            logger.info(
                "Rejected payroll input for %s: %s",
                payroll_input.employee_id or "<no employee>",
                ", ".join(e.field for e in errors)
            )
            raise PayrollValidationError(errors)

        payroll_input = with_supplemental_earnings(payroll_input, earnings)
        total_allowances, gross_salary = aggregate_earnings(payroll_input)

        employee_contribution, employer_contribution = calculate_contributions(
            gross_salary, payroll_input.apply_mandatory_contribution, self.config
        )

        taxable_income = gross_salary - deductions_before_tax(payroll_input, employee_contribution)
        income_tax = calculate_income_tax(
            taxable_income, payroll_input.apply_progressive_tax, self.config.brackets
        )

        calculation = compose_settlement(
            payroll_input, total_allowances, gross_salary,
            employee_contribution, employer_contribution, income_tax
        )

        if calculation.net_salary < 0:
            logger.warning(
                "Deductions exceed gross salary for %s: net %s",
                payroll_input.employee_id or "<no employee>", calculation.net_salary
            )

        logger.debug(
            "Payroll for %s: gross=%s net=%s employer_cost=%s",
            payroll_input.employee_id or "<no employee>",
            calculation.gross_salary, calculation.net_salary, calculation.total_employer_cost
        )
        return calculation


def calculate(payroll_input: PayrollInput, config: Optional[PayrollConfig] = None,
              earnings: Sequence[PayrollItem] = ()) -> PayrollCalculation:
    """Shortcut for PayrollCalculator(config).calculate(payroll_input, earnings)"""
    return PayrollCalculator(config).calculate(payroll_input, earnings)
