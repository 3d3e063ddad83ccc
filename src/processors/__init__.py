from .payroll_calculator import PayrollCalculator, calculate
from .payslip_generator import PayslipGenerator, build_payroll_items
from .cnas_declaration_generator import CNASDeclarationGenerator
from .das_generator import DASGenerator


__all__ = [
    'PayrollCalculator',
    'calculate',
    'PayslipGenerator',
    'build_payroll_items',
    'CNASDeclarationGenerator',
    'DASGenerator'
]
