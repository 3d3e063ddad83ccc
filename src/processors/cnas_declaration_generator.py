import openpyxl
from openpyxl.styles import Font, Alignment, Border, Side, PatternFill
from pathlib import Path
from decimal import Decimal
from typing import Optional
from database.repository import PayrollRepository
from config.settings import OUTPUT_DIR

MONEY_FORMAT = '#,##0.00'


class CNASDeclarationGenerator:
    """Generate the monthly CNAS contribution declaration from stored payroll runs"""

    def __init__(self, repository: PayrollRepository, output_dir: Optional[Path] = None):
        self.repo = repository
        self.output_dir = Path(output_dir) if output_dir else OUTPUT_DIR / "declarations"
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate(self, year: int, month: int) -> str:
        """Generate CNAS declaration workbook for one month"""

        runs = self.repo.get_monthly_runs(year, month)

        if not runs:
            raise ValueError(f"No payroll runs found for {year}-{month:02d}")

        # Create workbook
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.title = f"CNAS {year}-{month:02d}"

        # Set column widths
        ws.column_dimensions['A'].width = 12
        ws.column_dimensions['B'].width = 28
        ws.column_dimensions['C'].width = 18
        ws.column_dimensions['D'].width = 18
        ws.column_dimensions['E'].width = 18
        ws.column_dimensions['F'].width = 18

        # Define styles
        header_font = Font(bold=True, size=14)
        bold_font = Font(bold=True)
        thin_border = Border(
            left=Side(style='thin'),
            right=Side(style='thin'),
            top=Side(style='thin'),
            bottom=Side(style='thin')
        )
        header_fill = PatternFill(start_color="CCE5FF", end_color="CCE5FF", fill_type="solid")
        total_fill = PatternFill(start_color="FFFF99", end_color="FFFF99", fill_type="solid")

        # Title
        row = 1
        ws.merge_cells(f'A{row}:F{row}')
        ws[f'A{row}'] = f"DÉCLARATION CNAS - {month:02d}/{year}"
        ws[f'A{row}'].font = header_font
        ws[f'A{row}'].alignment = Alignment(horizontal='center')

        # Headers
        row = 3
        headers = [
            'Matricule',
            'Nom',
            'Salaire brut',
            'CNAS salarié',
            'CNAS employeur',
            'Total CNAS'
        ]

        for col_idx, header in enumerate(headers, start=1):
            cell = ws.cell(row=row, column=col_idx)
            cell.value = header
            cell.font = bold_font
            cell.border = thin_border
            cell.fill = header_fill
            cell.alignment = Alignment(horizontal='center', vertical='center')

        # Data rows
        row = 4
        totals = {
            'gross': Decimal('0'),
            'employee': Decimal('0'),
            'employer': Decimal('0')
        }

        for run in runs:
            employee_share = Decimal(str(run.employee_contribution or 0))
            employer_share = Decimal(str(run.employer_contribution or 0))
            gross = Decimal(str(run.gross_salary))

            ws.cell(row=row, column=1, value=run.employee_id)
            ws.cell(row=row, column=2, value=run.employee.name if run.employee else "")
            ws.cell(row=row, column=3, value=float(gross))
            ws.cell(row=row, column=4, value=float(employee_share))
            ws.cell(row=row, column=5, value=float(employer_share))
            ws.cell(row=row, column=6, value=float(employee_share + employer_share))

            for col_idx in range(1, 7):
                ws.cell(row=row, column=col_idx).border = thin_border
            for col_idx in range(3, 7):
                ws.cell(row=row, column=col_idx).number_format = MONEY_FORMAT

            totals['gross'] += gross
            totals['employee'] += employee_share
            totals['employer'] += employer_share

            row += 1

        # Totals
        ws.cell(row=row, column=1, value="TOTAL")
        ws.cell(row=row, column=3, value=float(totals['gross']))
        ws.cell(row=row, column=4, value=float(totals['employee']))
        ws.cell(row=row, column=5, value=float(totals['employer']))
        ws.cell(row=row, column=6, value=float(totals['employee'] + totals['employer']))

        for col_idx in range(1, 7):
            cell = ws.cell(row=row, column=col_idx)
            cell.border = thin_border
            cell.fill = total_fill
            cell.font = bold_font
        for col_idx in range(3, 7):
            ws.cell(row=row, column=col_idx).number_format = MONEY_FORMAT

        # Generate filename
        filename = f"cnas_declaration_{year}_{month:02d}.xlsx"
        filepath = self.output_dir / filename

        # Save workbook
        wb.save(filepath)

        return str(filepath)
