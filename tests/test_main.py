import json
from datetime import date
from decimal import Decimal

from api.employee_directory import MockEmployeeDirectory
from main import load_attendance, run_monthly_payroll
from models.employee import Employee
from models.payroll import PayrollItemType
from processors.bonus_calculator import Attendance, OvertimeEntry


def test_monthly_run_stores_every_employee(repo, config):
    result = run_monthly_payroll(repo, MockEmployeeDirectory(), config, 2024, 1)

    assert result == {'saved': ['1', '2', '3', '4'], 'rejected': []}
    runs = repo.get_monthly_runs(2024, 1)
    assert len(runs) == 4

    # Hired 2020: four years of service earn the 2% seniority bonus
    michael = repo.load_calculation(repo.get_payroll_run('3', 2024, 1))
    assert michael.bonuses == Decimal('1300')
    assert michael.base_salary == Decimal('65000')


def test_monthly_run_skips_invalid_employees(repo, config):
    directory = MockEmployeeDirectory([
        Employee('A', 'Low', 'Pay', hire_date=date(2023, 1, 1), salary=Decimal('15000')),
        Employee('B', 'Fair', 'Pay', hire_date=date(2023, 1, 1), salary=Decimal('30000')),
    ])
    result = run_monthly_payroll(repo, directory, config, 2024, 5)

    assert result == {'saved': ['B'], 'rejected': ['A']}
    assert repo.get_payroll_run('A', 2024, 5) is None


def test_monthly_run_pays_attendance(repo, config):
    attendance = {'1': Attendance(20, [OvertimeEntry(4)])}
    run_monthly_payroll(repo, MockEmployeeDirectory(), config, 2024, 3, attendance=attendance)

    run = repo.get_payroll_run('1', 2024, 3)
    earnings = repo.load_earnings(run)
    # 75000 / 173.33 hours * 4 hours * 1.5 = 2596.20
    assert [(i.type, i.amount) for i in earnings] == [
        (PayrollItemType.SENIORITY_BONUS, Decimal('750')),
        (PayrollItemType.MEAL_ALLOWANCE, Decimal('6000')),
        (PayrollItemType.OVERTIME, Decimal('2596')),
    ]
    assert repo.load_calculation(run).bonuses == Decimal('9346')

    # No attendance recorded for the others
    assert repo.load_earnings(repo.get_payroll_run('4', 2024, 3)) == []


def test_load_attendance(tmp_path):
    path = tmp_path / 'attendance.json'
    path.write_text(json.dumps({
        '1': {'workingDays': 22, 'overtimeEntries': [{'hours': 3, 'rateType': 'WEEKEND'}]}
    }), encoding='utf-8')

    attendance = load_attendance(path)
    assert attendance['1'].working_days == 22
    assert attendance['1'].overtime[0].hours == Decimal('3')
