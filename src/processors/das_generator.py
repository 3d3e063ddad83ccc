import openpyxl
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from pathlib import Path
from decimal import Decimal
from typing import Optional
from database.repository import PayrollRepository
from config.settings import OUTPUT_DIR

MONEY_FORMAT = '#,##0.00'

# (header, PayrollRunDB attribute)
TOTAL_COLUMNS = [
    ('Salaire brut', 'gross_salary'),
    ('CNAS salarié', 'employee_contribution'),
    ('CNAS employeur', 'employer_contribution'),
    ('IRG retenu', 'income_tax'),
    ('Net versé', 'net_salary'),
]


class DASGenerator:
    """Generate the DAS (Déclaration Annuelle des Salaires) for all workers"""

    def __init__(self, repository: PayrollRepository, output_dir: Optional[Path] = None):
        self.repo = repository
        self.output_dir = Path(output_dir) if output_dir else OUTPUT_DIR / "declarations"
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate(self, year: int) -> str:
        """Generate yearly per-employee totals from the stored payroll runs"""

        employees = self.repo.get_all_employees()

        # Create workbook
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = f"DAS {year}"

        # Set column widths
        ws.column_dimensions['A'].width = 12
        ws.column_dimensions['B'].width = 28
        ws.column_dimensions['C'].width = 10
        for col in 'DEFGH':
            ws.column_dimensions[col].width = 18

        # Define styles
        bold_font = Font(bold=True)
        header_fill = PatternFill(start_color="B4C7E7", end_color="B4C7E7", fill_type="solid")
        total_fill = PatternFill(start_color="FFFF99", end_color="FFFF99", fill_type="solid")
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )

        # Title
        row = 1
        ws.merge_cells(f'A{row}:H{row}')
        ws[f'A{row}'] = f"DÉCLARATION ANNUELLE DES SALAIRES - {year}"
        ws[f'A{row}'].font = Font(bold=True, size=14)
        ws[f'A{row}'].alignment = Alignment(horizontal='center')

        # Header row
        row = 3
        headers = ['Matricule', 'Nom', 'Mois'] + [title for title, _ in TOTAL_COLUMNS]
        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=row, column=col_idx, value=header)
            cell.font = bold_font
            cell.fill = header_fill
            cell.border = thin_border
            cell.alignment = Alignment(horizontal='center', vertical='center', wrap_text=True)

        # Data rows
        row = 4
        grand_totals = {attr: Decimal('0') for _, attr in TOTAL_COLUMNS}

        for employee in employees:
            runs = self.repo.get_payroll_history(employee.id, year)

            if not runs:
                continue

            ws.cell(row=row, column=1, value=employee.id)
            ws.cell(row=row, column=2, value=employee.name)
            ws.cell(row=row, column=3, value=len(runs))

            for col_idx, (_, attr) in enumerate(TOTAL_COLUMNS, start=4):
                total = sum((Decimal(str(getattr(r, attr) or 0)) for r in runs), Decimal('0'))
                grand_totals[attr] += total
                ws.cell(row=row, column=col_idx, value=float(total)).number_format = MONEY_FORMAT

            for col_idx in range(1, 9):
                ws.cell(row=row, column=col_idx).border = thin_border

            row += 1

        if row == 4:
            raise ValueError(f"No payroll runs found for {year}")

        # Totals
        ws.cell(row=row, column=1, value="TOTAL")
        for col_idx, (_, attr) in enumerate(TOTAL_COLUMNS, start=4):
            ws.cell(row=row, column=col_idx, value=float(grand_totals[attr])).number_format = MONEY_FORMAT
        for col_idx in range(1, 9):
            cell = ws.cell(row=row, column=col_idx)
            cell.border = thin_border
            cell.fill = total_fill
            cell.font = bold_font

        # Generate filename
        filename = f"das_{year}.xlsx"
        filepath = self.output_dir / filename

        # Save workbook
        wb.save(filepath)

        return str(filepath)
