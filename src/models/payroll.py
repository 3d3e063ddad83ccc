from dataclasses import dataclass, field, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from models.payroll_config import to_bool, to_decimal, to_whole_number

MONEY_FIELDS = (
    'base_salary', 'bonuses', 'transport_allowance', 'housing_allowance',
    'retirement_fund', 'professional_tax', 'union_contribution'
)


def _camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.capitalize() for part in rest)


@dataclass(frozen=True)
class PayrollInput:
    """Caller supplied compensation and elected options for one calculation"""
    base_salary: Decimal
    work_days: int = 22
    bonuses: Decimal = Decimal('0')
    transport_allowance: Decimal = Decimal('0')
    housing_allowance: Decimal = Decimal('0')
    apply_mandatory_contribution: bool = True
    apply_progressive_tax: bool = True
    retirement_fund: Decimal = Decimal('0')
    professional_tax: Decimal = Decimal('0')
    union_contribution: Decimal = Decimal('0')
    employee_id: Optional[str] = None

    def __post_init__(self):
        for attr in MONEY_FIELDS:
            object.__setattr__(self, attr, to_decimal(getattr(self, attr)))
        object.__setattr__(self, 'work_days', to_whole_number(self.work_days))
        for attr in ('apply_mandatory_contribution', 'apply_progressive_tax'):
            object.__setattr__(self, attr, to_bool(getattr(self, attr)))

    @classmethod
    def from_dict(cls, data: Dict) -> 'PayrollInput':
        """Build an input from a camelCase or snake_case mapping"""
        kwargs = {}
        for f in fields(cls):
            if f.name in data:
                kwargs[f.name] = data[f.name]
            elif _camel(f.name) in data:
                kwargs[f.name] = data[_camel(f.name)]
        return cls(**kwargs)


@dataclass(frozen=True)
class PayrollCalculation:
    """Itemized gross-to-net result; produced fresh for every input"""
    # Earnings
    base_salary: Decimal
    bonuses: Decimal
    transport_allowance: Decimal
    housing_allowance: Decimal
    total_allowances: Decimal
    gross_salary: Decimal

    # Deductions
    employee_contribution: Decimal
    retirement_fund: Decimal
    professional_tax: Decimal
    union_contribution: Decimal
    total_deductions_before_tax: Decimal
    taxable_income: Decimal
    income_tax: Decimal
    total_deductions: Decimal
    net_salary: Decimal

    # Employer side
    employer_contribution: Decimal
    total_employer_cost: Decimal

    def to_dict(self) -> Dict[str, str]:
        """camelCase mapping with decimals as strings"""
        return {_camel(f.name): str(getattr(self, f.name)) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict) -> 'PayrollCalculation':
        return cls(**{
            f.name: Decimal(str(data[_camel(f.name)])) for f in fields(cls)
        })


class ViolationKind(str, Enum):
    BELOW_MINIMUM_WAGE = "BelowMinimumWage"
    INVALID_WORK_DAYS = "InvalidWorkDays"
    NEGATIVE_AMOUNT = "NegativeAmount"


@dataclass(frozen=True)
class ValidationError:
    """Field level violation reported by the input validator"""
    kind: ViolationKind
    field: str
    message: str


class PayrollValidationError(ValueError):
    """Raised by calculate when the input has one or more violations"""

    def __init__(self, errors: List[ValidationError]):
        self.errors = list(errors)
        super().__init__("; ".join(f"{e.field}: {e.message}" for e in self.errors))

    def to_dict(self) -> Dict[str, str]:
        return {e.field: e.message for e in self.errors}


class MissingContextError(ValueError):
    """Raised when a calculation is persisted without employee or period context"""


class PayrollItemType(str, Enum):
    # Earnings
    BASE_SALARY = 'BASE_SALARY'
    SENIORITY_BONUS = 'SENIORITY_BONUS'
    PERFORMANCE_BONUS = 'PERFORMANCE_BONUS'
    MEAL_ALLOWANCE = 'MEAL_ALLOWANCE'
    OVERTIME = 'OVERTIME'
    OTHER_BONUS = 'OTHER_BONUS'
    TRANSPORT_ALLOWANCE = 'TRANSPORT_ALLOWANCE'
    HOUSING_ALLOWANCE = 'HOUSING_ALLOWANCE'

    # Deductions
    CNAS_CONTRIBUTION = 'CNAS_CONTRIBUTION'
    RETIREMENT_FUND = 'RETIREMENT_FUND'
    PROFESSIONAL_TAX = 'PROFESSIONAL_TAX'
    UNION_CONTRIBUTION = 'UNION_CONTRIBUTION'
    IRG_TAX = 'IRG_TAX'


@dataclass
class PayrollItem:
    """Single payslip line; deductions carry negative amounts"""
    type: PayrollItemType
    amount: Decimal
    description: str = ""

    def __post_init__(self):
        self.type = PayrollItemType(self.type)
        self.amount = to_decimal(self.amount)

    def to_dict(self) -> Dict[str, str]:
        return {'type': self.type.value, 'amount': str(self.amount), 'description': self.description}

    @classmethod
    def from_dict(cls, data: Dict) -> 'PayrollItem':
        return cls(data['type'], data['amount'], data.get('description', ''))


@dataclass
class Payslip:
    """Calculation plus the employee and period context printed on a payslip"""
    employee_id: str
    employee_name: str
    month: int
    year: int
    calculation: PayrollCalculation
    payment_date: Optional[date] = None
    payment_method: str = "Bank Transfer"
    reference: str = ""
    items: List[PayrollItem] = field(default_factory=list)
