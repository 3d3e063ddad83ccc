from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterable, List, Optional

from models.payroll import PayrollItem, PayrollItemType
from models.payroll_config import PayrollConfig, to_decimal, to_whole_number
from processors.payroll_calculator import round_amount, ZERO


class OvertimeRateType(str, Enum):
    REGULAR = "REGULAR"
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"


@dataclass
class OvertimeEntry:
    """Overtime hours worked on one attendance day"""
    hours: Decimal
    rate_type: OvertimeRateType = OvertimeRateType.REGULAR

    def __post_init__(self):
        self.hours = to_decimal(self.hours)
        if self.hours < 0:
            raise ValueError(f"Overtime hours must not be negative, got {self.hours}")
        self.rate_type = OvertimeRateType(self.rate_type)

    @classmethod
    def from_dict(cls, data: Dict) -> 'OvertimeEntry':
        return cls(
            data['hours'],
            data.get('rateType', data.get('rate_type', OvertimeRateType.REGULAR))
        )


@dataclass
class Attendance:
    """Days worked and overtime recorded for one employee over a month"""
    working_days: int = 0
    overtime: List[OvertimeEntry] = field(default_factory=list)

    def __post_init__(self):
        self.working_days = to_whole_number(self.working_days)
        if self.working_days < 0:
            raise ValueError(f"Working days must not be negative, got {self.working_days}")
        self.overtime = [
            e if isinstance(e, OvertimeEntry) else OvertimeEntry.from_dict(e)
            for e in self.overtime
        ]

    @classmethod
    def from_dict(cls, data: Dict) -> 'Attendance':
        return cls(
            working_days=data.get('workingDays', data.get('working_days', 0)),
            overtime=list(data.get('overtimeEntries', data.get('overtime', [])))
        )


def years_of_service(hire_date: date, on_date: date) -> int:
    """Calendar year difference, as used for seniority"""
    return on_date.year - hire_date.year


def seniority_rate(years: int, config: PayrollConfig) -> Decimal:
    """Highest table rate whose threshold the years of service reach"""
    rate = ZERO
    for entry in config.seniority_rates:
        if years >= entry.years:
            rate = entry.rate
    return rate


def calculate_seniority_bonus(base_salary, hire_date: Optional[date], on_date: date,
                              config: PayrollConfig) -> Decimal:
    """Prime d'ancienneté; zero without a hire date or under two years of service"""
    if hire_date is None:
        return ZERO

    years = years_of_service(hire_date, on_date)
    if years < 2:
        return ZERO

    return round_amount(to_decimal(base_salary) * seniority_rate(years, config))


def calculate_overtime_pay(entries: Iterable[OvertimeEntry], base_salary,
                           config: PayrollConfig) -> Decimal:
    """Overtime at +50%, or +100% on weekends and holidays, rounded once on the total"""
    hourly_rate = to_decimal(base_salary) / config.monthly_hours

    total = ZERO
    for entry in entries:
        if entry.hours <= 0:
            continue
        if entry.rate_type in (OvertimeRateType.WEEKEND, OvertimeRateType.HOLIDAY):
            multiplier = config.weekend_overtime_multiplier
        else:
            multiplier = config.overtime_multiplier
        total += entry.hours * hourly_rate * multiplier

    return round_amount(total)


def calculate_meal_allowance(working_days: int, config: PayrollConfig) -> Decimal:
    """Indemnité de repas: flat amount per day worked"""
    return round_amount(to_whole_number(working_days) * config.meal_allowance_per_day)


def supplemental_earnings(base_salary, config: PayrollConfig,
                          hire_date: Optional[date] = None,
                          on_date: Optional[date] = None,
                          attendance: Optional[Attendance] = None,
                          performance_bonus=ZERO) -> List[PayrollItem]:
    """
    Itemized earnings paid on top of the base salary.

    Zero amounts are left out. The items add up to the amount that goes into
    the calculation's bonuses, so the payslip can show where it came from.
    """
    attendance = attendance or Attendance()
    amounts = [
        (PayrollItemType.SENIORITY_BONUS,
         calculate_seniority_bonus(base_salary, hire_date, on_date or date.today(), config),
         "Prime d'ancienneté"),
        (PayrollItemType.PERFORMANCE_BONUS, to_decimal(performance_bonus), "Prime de rendement"),
        (PayrollItemType.MEAL_ALLOWANCE,
         calculate_meal_allowance(attendance.working_days, config),
         "Indemnité de repas"),
        (PayrollItemType.OVERTIME,
         calculate_overtime_pay(attendance.overtime, base_salary, config),
         "Heures supplémentaires"),
    ]
    return [
        PayrollItem(item_type, amount, description)
        for item_type, amount, description in amounts
        if amount
    ]
