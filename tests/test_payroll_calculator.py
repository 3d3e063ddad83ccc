"""Tests for the gross-to-net payroll engine."""

import pytest
from decimal import Decimal

from models.payroll import PayrollInput, PayrollItem, PayrollItemType, PayrollValidationError, ViolationKind
from models.payroll_config import PayrollConfig, TaxBracket
from processors.payroll_calculator import (
    PayrollCalculator, calculate, calculate_income_tax, bracket_breakdown,
    calculate_contributions, aggregate_earnings
)

D = Decimal
BRACKETS = PayrollConfig().brackets


@pytest.fixture
def calculator(config):
    return PayrollCalculator(config)


# ─── End-to-end scenarios ────────────────────────────────────────────────────

def test_minimum_wage_with_transport(calculator):
    result = calculator.calculate(PayrollInput(base_salary=20000, transport_allowance=2500))
    assert result.gross_salary == D("22500")
    assert result.employee_contribution == D("2025")
    assert result.taxable_income == D("20475")
    assert result.income_tax == D("0")
    assert result.net_salary == D("20475")
    assert result.employer_contribution == D("5850")
    assert result.total_employer_cost == D("28350")


def test_second_bracket_salary(calculator):
    result = calculator.calculate(PayrollInput(base_salary=100000, transport_allowance=2500))
    assert result.gross_salary == D("102500")
    assert result.employee_contribution == D("9225")
    assert result.taxable_income == D("93275")
    assert result.income_tax == D("12655")
    assert result.net_salary == D("80620")
    assert result.total_employer_cost == D("129150")


def test_third_bracket_salary(calculator):
    result = calculator.calculate(PayrollInput(base_salary=200000))
    assert result.employee_contribution == D("18000")
    assert result.taxable_income == D("182000")
    # 0 + 90000 * 20% + 62000 * 30%
    assert result.income_tax == D("36600")
    assert result.net_salary == D("145400")


def test_below_minimum_wage_rejected(calculator):
    with pytest.raises(PayrollValidationError) as exc:
        calculator.calculate(PayrollInput(base_salary=19999, transport_allowance=2500))
    assert [e.kind for e in exc.value.errors] == [ViolationKind.BELOW_MINIMUM_WAGE]
    assert "baseSalary" in exc.value.to_dict()


def test_invalid_work_days_rejected(calculator):
    with pytest.raises(PayrollValidationError) as exc:
        calculator.calculate(PayrollInput(base_salary=30000, work_days=32))
    assert [e.kind for e in exc.value.errors] == [ViolationKind.INVALID_WORK_DAYS]


def test_both_toggles_off_net_equals_gross(calculator):
    result = calculator.calculate(PayrollInput(
        base_salary=50000, bonuses=1500, transport_allowance=2500, housing_allowance=4000,
        apply_mandatory_contribution=False, apply_progressive_tax=False
    ))
    assert result.gross_salary == D("58000")
    assert result.net_salary == result.gross_salary
    assert result.employer_contribution == D("0")
    assert result.total_employer_cost == result.gross_salary


# ─── Properties ──────────────────────────────────────────────────────────────

@pytest.mark.parametrize("payroll_input", [
    PayrollInput(base_salary=20000),
    PayrollInput(base_salary="33333.33", bonuses="1234.56", housing_allowance=7000),
    PayrollInput(base_salary=150000, retirement_fund=2000, professional_tax=500, union_contribution=300),
    PayrollInput(base_salary=20000, retirement_fund=30000),
    PayrollInput(base_salary=480000, apply_mandatory_contribution=False),
])
def test_conservation_and_earnings_invariants(calculator, payroll_input):
    result = calculator.calculate(payroll_input)
    assert result.total_allowances == result.transport_allowance + result.housing_allowance
    assert result.gross_salary == result.base_salary + result.bonuses + result.total_allowances
    assert result.gross_salary >= result.base_salary >= calculator.config.smig
    assert result.taxable_income == result.gross_salary - result.total_deductions_before_tax
    assert result.total_deductions == result.total_deductions_before_tax + result.income_tax
    assert result.gross_salary - result.total_deductions == result.net_salary
    assert result.total_employer_cost == result.gross_salary + result.employer_contribution


def test_calculation_is_idempotent(calculator):
    payroll_input = PayrollInput(base_salary="87654.32", bonuses=3210, transport_allowance=2500)
    assert calculator.calculate(payroll_input) == calculator.calculate(payroll_input)
    assert calculate(payroll_input) == calculator.calculate(payroll_input)


def test_disabling_contribution_only_drops_that_term(calculator):
    with_cnas = calculator.calculate(PayrollInput(base_salary=100000, transport_allowance=2500))
    without_cnas = calculator.calculate(PayrollInput(
        base_salary=100000, transport_allowance=2500, apply_mandatory_contribution=False
    ))
    assert without_cnas.employee_contribution == D("0")
    assert without_cnas.employer_contribution == D("0")
    assert without_cnas.gross_salary == with_cnas.gross_salary
    assert without_cnas.taxable_income == with_cnas.taxable_income + with_cnas.employee_contribution
    assert without_cnas.income_tax == D("14500")


def test_negative_net_is_returned_unclamped(calculator):
    result = calculator.calculate(PayrollInput(base_salary=20000, retirement_fund=30000))
    assert result.taxable_income == D("-11800")
    assert result.income_tax == D("0")
    assert result.net_salary == D("-11800")


def test_work_days_do_not_change_amounts(calculator):
    full = calculator.calculate(PayrollInput(base_salary=60000, work_days=31))
    none = calculator.calculate(PayrollInput(base_salary=60000, work_days=0))
    assert full == none


def test_custom_rates_are_used():
    config = PayrollConfig(smig=18000, employee_rate="0.10", employer_rate="0.20")
    result = PayrollCalculator(config).calculate(PayrollInput(base_salary=18000))
    assert result.employee_contribution == D("1800")
    assert result.employer_contribution == D("3600")


# ─── Stage functions ─────────────────────────────────────────────────────────

def test_aggregate_earnings_does_not_round():
    total_allowances, gross = aggregate_earnings(PayrollInput(
        base_salary="20000.25", bonuses="0.10", transport_allowance="0.05", housing_allowance="0.05"
    ))
    assert total_allowances == D("0.10")
    assert gross == D("20000.45")


def test_contributions_round_half_up(config):
    # 10050 * 9% = 904.5 and 10050 * 26% = 2613
    assert calculate_contributions(D("10050"), True, config) == (D("905"), D("2613"))
    assert calculate_contributions(D("10050"), False, config) == (D("0"), D("0"))


def test_tax_zero_at_first_bracket_ceiling():
    assert calculate_income_tax(D("30000"), True, BRACKETS) == D("0")
    assert calculate_income_tax(D("12000"), True, BRACKETS) == D("0")


def test_tax_starts_accruing_above_first_bracket():
    shares = bracket_breakdown(D("30000.01"), BRACKETS)
    assert shares[1].portion == D("0.01")
    assert shares[2].portion == D("0")
    # 2.50 * 20% = 0.50 rounds up to one dinar
    assert calculate_income_tax(D("30002.50"), True, BRACKETS) == D("1")


def test_tax_at_second_bracket_ceiling():
    assert calculate_income_tax(D("120000"), True, BRACKETS) == D("18000")


@pytest.mark.parametrize("income,lower", [
    (D("50000"), D("30000")),
    (D("119995"), D("30000")),
    (D("150000"), D("120000")),
    (D("1000000"), D("120000")),
])
def test_bracket_continuity(income, lower):
    rate = next(b.rate for b in BRACKETS if b.lower_bound == lower)
    expected = calculate_income_tax(lower, True, BRACKETS) + (income - lower) * rate
    assert calculate_income_tax(income, True, BRACKETS) == expected


def test_each_bracket_is_rounded_before_summing():
    brackets = (
        TaxBracket(D("0"), D("105"), D("0.1")),
        TaxBracket(D("105"), None, D("0.1")),
    )
    # 10.5 + 10.5 rounded per bracket is 22; rounding the 21.0 total once would give 21
    assert calculate_income_tax(D("210"), True, brackets) == D("22")


def test_negative_taxable_income_yields_zero_tax():
    assert calculate_income_tax(D("-5000"), True, BRACKETS) == D("0")
    assert all(share.portion == 0 for share in bracket_breakdown(D("-5000"), BRACKETS))


def test_tax_disabled():
    assert calculate_income_tax(D("500000"), False, BRACKETS) == D("0")


def test_supplemental_earnings_join_the_bonuses(calculator):
    earnings = [
        PayrollItem(PayrollItemType.SENIORITY_BONUS, 1000),
        PayrollItem(PayrollItemType.MEAL_ALLOWANCE, 6000),
    ]
    with_items = calculator.calculate(PayrollInput(base_salary=50000, bonuses=500), earnings)
    folded = calculator.calculate(PayrollInput(base_salary=50000, bonuses=7500))
    assert with_items == folded


def test_negative_bonuses_are_not_hidden_by_supplemental_earnings(calculator):
    earnings = [PayrollItem(PayrollItemType.MEAL_ALLOWANCE, 6000)]
    with pytest.raises(PayrollValidationError) as exc:
        calculator.calculate(PayrollInput(base_salary=50000, bonuses=-100), earnings)
    assert exc.value.to_dict() == {"bonuses": "Amount must not be negative"}
