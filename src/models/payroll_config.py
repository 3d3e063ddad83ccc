import json
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


def to_decimal(value) -> Decimal:
    """Coerce ints, floats and strings to a finite Decimal without float noise"""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if not value.is_finite():
        raise ValueError(f"Amount must be a finite number, got {value}")
    return value


def to_whole_number(value) -> int:
    """Coerce to int, refusing booleans and fractional values instead of truncating"""
    if isinstance(value, bool):
        raise ValueError(f"Expected a whole number, got {value!r}")
    if isinstance(value, int):
        return value
    number = to_decimal(value)
    if number != number.to_integral_value():
        raise ValueError(f"Expected a whole number, got {value}")
    return int(number)


def to_bool(value) -> bool:
    """Accept real booleans or the strings 'true' and 'false'"""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
        return value.strip().lower() == 'true'
    raise ValueError(f"Expected true or false, got {value!r}")


@dataclass(frozen=True)
class TaxBracket:
    """One IRG bracket; upper_bound None means open ended"""
    lower_bound: Decimal
    upper_bound: Optional[Decimal]
    rate: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'lower_bound', to_decimal(self.lower_bound))
        if self.upper_bound is not None:
            object.__setattr__(self, 'upper_bound', to_decimal(self.upper_bound))
        object.__setattr__(self, 'rate', to_decimal(self.rate))


@dataclass(frozen=True)
class SeniorityRate:
    """Seniority bonus rate granted from a number of years of service"""
    years: int
    rate: Decimal

    def __post_init__(self):
        object.__setattr__(self, 'rate', to_decimal(self.rate))


DEFAULT_BRACKETS = (
    TaxBracket(Decimal('0'), Decimal('30000'), Decimal('0')),
    TaxBracket(Decimal('30000'), Decimal('120000'), Decimal('0.20')),
    TaxBracket(Decimal('120000'), None, Decimal('0.30')),
)

DEFAULT_SENIORITY_RATES = (
    SeniorityRate(2, Decimal('0.01')),
    SeniorityRate(3, Decimal('0.02')),
    SeniorityRate(5, Decimal('0.03')),
    SeniorityRate(10, Decimal('0.05')),
    SeniorityRate(15, Decimal('0.07')),
    SeniorityRate(20, Decimal('0.10')),
)


def validate_brackets(brackets: Tuple[TaxBracket, ...]) -> None:
    """Raise ValueError unless brackets are sorted, contiguous from 0 and open ended"""
    if not brackets:
        raise ValueError("At least one tax bracket is required")

    if brackets[0].lower_bound != 0:
        raise ValueError(f"First bracket must start at 0, got {brackets[0].lower_bound}")

    for current, following in zip(brackets, brackets[1:]):
        if current.upper_bound is None:
            raise ValueError("Only the last bracket may be open ended")
        if current.upper_bound <= current.lower_bound:
            raise ValueError(
                f"Bracket upper bound {current.upper_bound} must exceed lower bound {current.lower_bound}"
            )
        if current.upper_bound != following.lower_bound:
            raise ValueError(
                f"Brackets are not contiguous: {current.upper_bound} != {following.lower_bound}"
            )

    if brackets[-1].upper_bound is not None:
        raise ValueError("Last bracket must be open ended")

    for bracket in brackets:
        if bracket.rate < 0:
            raise ValueError(f"Bracket rate must not be negative, got {bracket.rate}")


@dataclass(frozen=True)
class PayrollConfig:
    """Versionable rate configuration injected into the calculator"""
    smig: Decimal = Decimal('20000')
    employee_rate: Decimal = Decimal('0.09')
    employer_rate: Decimal = Decimal('0.26')
    brackets: Tuple[TaxBracket, ...] = DEFAULT_BRACKETS
    seniority_rates: Tuple[SeniorityRate, ...] = DEFAULT_SENIORITY_RATES
    monthly_hours: Decimal = Decimal('173.33')
    overtime_multiplier: Decimal = Decimal('1.5')
    weekend_overtime_multiplier: Decimal = Decimal('2.0')
    transport_allowance: Decimal = Decimal('2500')
    meal_allowance_per_day: Decimal = Decimal('300')

    def __post_init__(self):
        for attr in ('smig', 'employee_rate', 'employer_rate', 'monthly_hours',
                     'overtime_multiplier', 'weekend_overtime_multiplier',
                     'transport_allowance', 'meal_allowance_per_day'):
            object.__setattr__(self, attr, to_decimal(getattr(self, attr)))

        object.__setattr__(self, 'brackets', tuple(self.brackets))
        object.__setattr__(
            self, 'seniority_rates',
            tuple(sorted(self.seniority_rates, key=lambda r: r.years))
        )
        validate_brackets(self.brackets)

        if self.smig < 0:
            raise ValueError("SMIG must not be negative")
        for attr in ('employee_rate', 'employer_rate'):
            if not Decimal('0') <= getattr(self, attr) <= Decimal('1'):
                raise ValueError(f"{attr} must be between 0 and 1")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PayrollConfig':
        """Build a config from a plain mapping such as a parsed JSON file"""
        kwargs: Dict[str, Any] = {}
        mapping = {
            'smig': 'smig',
            'employeeRate': 'employee_rate',
            'employerRate': 'employer_rate',
            'monthlyHours': 'monthly_hours',
            'overtimeMultiplier': 'overtime_multiplier',
            'weekendOvertimeMultiplier': 'weekend_overtime_multiplier',
            'transportAllowance': 'transport_allowance',
            'mealAllowancePerDay': 'meal_allowance_per_day',
        }
        for key, attr in mapping.items():
            if key in data:
                kwargs[attr] = data[key]
            elif attr in data:
                kwargs[attr] = data[attr]

        if 'brackets' in data:
            kwargs['brackets'] = tuple(_parse_bracket(b) for b in data['brackets'])

        seniority = data.get('seniorityRates', data.get('seniority_rates'))
        if seniority is not None:
            kwargs['seniority_rates'] = tuple(
                SeniorityRate(int(r['years']), r['rate']) for r in seniority
            )

        return cls(**kwargs)

    @classmethod
    def from_file(cls, path) -> 'PayrollConfig':
        """Load a config from a JSON file"""
        with open(Path(path), encoding='utf-8') as f:
            return cls.from_dict(json.load(f))

    @classmethod
    def from_settings(cls) -> 'PayrollConfig':
        """Build the default config from config.settings"""
        from config import settings

        if settings.PAYROLL_CONFIG_FILE:
            return cls.from_file(settings.PAYROLL_CONFIG_FILE)

        return cls(
            smig=settings.SMIG,
            employee_rate=settings.CNAS_EMPLOYEE_RATE,
            employer_rate=settings.CNAS_EMPLOYER_RATE,
            brackets=tuple(_parse_bracket(b) for b in settings.IRG_BRACKETS),
            transport_allowance=settings.DEFAULT_TRANSPORT_ALLOWANCE,
            meal_allowance_per_day=settings.MEAL_ALLOWANCE_PER_DAY,
        )


def _parse_bracket(raw) -> TaxBracket:
    if isinstance(raw, TaxBracket):
        return raw
    if isinstance(raw, dict):
        upper = raw.get('upperBound', raw.get('upper_bound'))
        return TaxBracket(
            raw.get('lowerBound', raw.get('lower_bound')),
            upper,
            raw['rate']
        )
    lower, upper, rate = raw
    return TaxBracket(lower, upper, rate)


def brackets_to_list(brackets: Tuple[TaxBracket, ...]) -> List[Dict[str, Optional[str]]]:
    """Serialise brackets for JSON responses"""
    return [
        {
            'lowerBound': str(b.lower_bound),
            'upperBound': str(b.upper_bound) if b.upper_bound is not None else None,
            'rate': str(b.rate),
        }
        for b in brackets
    ]
