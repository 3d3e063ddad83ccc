import openpyxl
from openpyxl.styles import Font, Border, Side, PatternFill
from pathlib import Path
from decimal import Decimal
from typing import List, Optional, Sequence
from models.payroll import PayrollCalculation, PayrollItem, PayrollItemType, Payslip
from config.settings import OUTPUT_DIR

MONEY_FORMAT = '#,##0.00'


def build_payroll_items(calculation: PayrollCalculation,
                        earnings: Sequence[PayrollItem] = ()) -> List[PayrollItem]:
    """
    Signed payslip lines for a calculation; they add up to the net salary.

    Itemized earnings are listed after the base salary and only what is left
    of the bonuses beyond them is printed as other bonuses.
    """
    items = [
        PayrollItem(PayrollItemType.BASE_SALARY, calculation.base_salary, "Salaire de base")
    ]
    items.extend(earnings)
    other_bonuses = calculation.bonuses - sum((item.amount for item in earnings), Decimal('0'))

    optional_earnings = [
        (PayrollItemType.OTHER_BONUS, other_bonuses, "Primes"),
        (PayrollItemType.TRANSPORT_ALLOWANCE, calculation.transport_allowance, "Indemnité de transport"),
        (PayrollItemType.HOUSING_ALLOWANCE, calculation.housing_allowance, "Indemnité de logement"),
    ]
    for item_type, amount, description in optional_earnings:
        if amount:
            items.append(PayrollItem(item_type, amount, description))

    deductions = [
        (PayrollItemType.CNAS_CONTRIBUTION, calculation.employee_contribution, "Cotisation CNAS"),
        (PayrollItemType.RETIREMENT_FUND, calculation.retirement_fund, "Caisse de retraite"),
        (PayrollItemType.PROFESSIONAL_TAX, calculation.professional_tax, "Taxe professionnelle"),
        (PayrollItemType.UNION_CONTRIBUTION, calculation.union_contribution, "Cotisation syndicale"),
        (PayrollItemType.IRG_TAX, calculation.income_tax, "Impôt sur le Revenu Global (IRG)"),
    ]
    for item_type, amount, description in deductions:
        if amount:
            items.append(PayrollItem(item_type, -amount, description))

    return items


class PayslipGenerator:
    """Generate individual payslip Excel files"""

    def __init__(self, output_dir: Optional[Path] = None):
        self.output_dir = Path(output_dir) if output_dir else OUTPUT_DIR / "payslips"
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate(self, payslip: Payslip) -> str:
        """Generate payslip Excel file"""
        calculation = payslip.calculation
        items = payslip.items or build_payroll_items(calculation)

        # Create workbook
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = "Bulletin de paie"

        # Set column widths
        ws.column_dimensions['A'].width = 25
        ws.column_dimensions['B'].width = 38
        ws.column_dimensions['C'].width = 18

        # Define styles
        header_font = Font(bold=True, size=12)
        bold_font = Font(bold=True)
        header_fill = PatternFill(start_color="B4C7E7", end_color="B4C7E7", fill_type="solid")
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        # Header section
        row = 1
        ws.merge_cells(f'A{row}:C{row}')
        ws[f'A{row}'] = "BULLETIN DE PAIE"
        ws[f'A{row}'].font = header_font

        row = 2
        ws[f'A{row}'] = "Employé"
        ws[f'B{row}'] = payslip.employee_name
        row = 3
        ws[f'A{row}'] = "Matricule"
        ws[f'B{row}'] = payslip.employee_id
        row = 4
        ws[f'A{row}'] = "Période"
        ws[f'B{row}'] = f"{payslip.month:02d}/{payslip.year}"
        row = 5
        ws[f'A{row}'] = "Date de paiement"
        ws[f'B{row}'] = payslip.payment_date.strftime('%d/%m/%Y') if payslip.payment_date else ""
        row = 6
        ws[f'A{row}'] = "Mode de paiement"
        ws[f'B{row}'] = payslip.payment_method
        row = 7
        ws[f'A{row}'] = "Référence"
        ws[f'B{row}'] = payslip.reference

        # Items table
        row = 9
        for col, title in zip('ABC', ("Rubrique", "Libellé", "Montant (DZD)")):
            ws[f'{col}{row}'] = title
            ws[f'{col}{row}'].font = bold_font
            ws[f'{col}{row}'].fill = header_fill
            ws[f'{col}{row}'].border = thin_border

        row += 1
        for item in items:
            ws[f'A{row}'] = item.type.value
            ws[f'B{row}'] = item.description
            ws[f'C{row}'] = float(item.amount)
            ws[f'C{row}'].number_format = MONEY_FORMAT
            for col in 'ABC':
                ws[f'{col}{row}'].border = thin_border
            row += 1

        # Totals section
        row += 1
        totals = [
            ("Salaire brut", calculation.gross_salary),
            ("Revenu imposable", calculation.taxable_income),
            ("Total retenues", calculation.total_deductions),
        ]
        for label, amount in totals:
            ws[f'B{row}'] = label
            ws[f'B{row}'].font = bold_font
            ws[f'C{row}'] = float(amount)
            ws[f'C{row}'].number_format = MONEY_FORMAT
            row += 1

        ws[f'B{row}'] = "NET À PAYER"
        ws[f'B{row}'].font = Font(bold=True, size=14)
        ws[f'C{row}'] = float(calculation.net_salary)
        ws[f'C{row}'].number_format = MONEY_FORMAT
        ws[f'C{row}'].font = Font(bold=True, size=14)
        row += 2

        # Employer side
        ws[f'A{row}'] = "Charges patronales"
        ws[f'A{row}'].font = bold_font
        row += 1
        ws[f'B{row}'] = "Cotisation CNAS employeur"
        ws[f'C{row}'] = float(calculation.employer_contribution)
        ws[f'C{row}'].number_format = MONEY_FORMAT
        row += 1
        ws[f'B{row}'] = "Coût total employeur"
        ws[f'C{row}'] = float(calculation.total_employer_cost)
        ws[f'C{row}'].number_format = MONEY_FORMAT

        # Generate filename
        filename = f"{payslip.employee_id}_{payslip.year}_{payslip.month:02d}_payslip.xlsx"
        filepath = self.output_dir / filename

        # Save workbook
        wb.save(filepath)

        return str(filepath)
