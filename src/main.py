import argparse
import json
import logging
from datetime import date
from typing import Dict, List, Optional
from config.settings import LOG_LEVEL
from api.employee_directory import MockEmployeeDirectory
from database.db import init_db, SessionLocal
from database.repository import PayrollRepository
from models.payroll import PayrollValidationError
from models.payroll_config import PayrollConfig
from processors.bonus_calculator import Attendance, supplemental_earnings
from processors.payroll_calculator import PayrollCalculator

logger = logging.getLogger(__name__)


def run_monthly_payroll(repo: PayrollRepository, directory: MockEmployeeDirectory,
                        config: PayrollConfig, year: int, month: int,
                        attendance: Optional[Dict[str, Attendance]] = None) -> Dict[str, List[str]]:
    """
    Calculate and store the month's payroll for every directory employee.

    attendance maps employee ids to the days worked and overtime recorded that
    month; employees without an entry get no meal allowance or overtime.
    """
    calculator = PayrollCalculator(config)
    attendance = attendance or {}
    period_date = date(year, month, 1)
    result = {'saved': [], 'rejected': []}

    for employee in directory.get_all_employees():
        repo.save_employee(employee)

        payroll_input = directory.default_payroll_input(employee.employee_id, config)
        earnings = supplemental_earnings(
            payroll_input.base_salary, config,
            hire_date=employee.hire_date,
            on_date=period_date,
            attendance=attendance.get(employee.employee_id)
        )

        try:
            calculation = calculator.calculate(payroll_input, earnings)
        except PayrollValidationError as e:
            logger.error("Skipping %s: %s", employee.employee_id, e)
            result['rejected'].append(employee.employee_id)
            continue

        repo.save_payroll_calculation(
            calculation, employee.employee_id, year, month,
            work_days=payroll_input.work_days,
            earnings=earnings
        )
        logger.info("Saved payroll for %s: net %s DZD", employee.name, calculation.net_salary)
        result['saved'].append(employee.employee_id)

    return result


def load_attendance(path) -> Dict[str, Attendance]:
    """Read {employeeId: {workingDays, overtimeEntries}} from a JSON file"""
    with open(path, encoding='utf-8') as f:
        data = json.load(f)
    return {employee_id: Attendance.from_dict(entry) for employee_id, entry in data.items()}


def main():
    """Main entry point for the monthly payroll batch"""
    logging.basicConfig(
        level=getattr(logging, LOG_LEVEL),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    today = date.today()
    parser = argparse.ArgumentParser(description="Run the monthly payroll batch")
    parser.add_argument("--year", type=int, default=today.year)
    parser.add_argument("--month", type=int, default=today.month)
    parser.add_argument("--attendance", help="JSON file with working days and overtime per employee")
    args = parser.parse_args()

    logger.info("Starting payroll run for %s-%02d", args.year, args.month)
    init_db()

    attendance = load_attendance(args.attendance) if args.attendance else None

    db = SessionLocal()
    try:
        result = run_monthly_payroll(
            PayrollRepository(db), MockEmployeeDirectory(),
            PayrollConfig.from_settings(), args.year, args.month,
            attendance=attendance
        )
    finally:
        db.close()

    logger.info("Payroll run finished: %d saved, %d rejected",
                len(result['saved']), len(result['rejected']))


if __name__ == "__main__":
    main()
