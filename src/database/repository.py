from sqlalchemy.orm import Session
from sqlalchemy import and_
from typing import List, Optional
from datetime import date
import json
import logging
from .models import EmployeeDB, PayrollRunDB
from models.payroll import PayrollCalculation, PayrollItem, MissingContextError
from models.employee import Employee

logger = logging.getLogger(__name__)


class PayrollRepository:
    """Repository for payroll history operations"""

    def __init__(self, db_session: Session):
        self.db = db_session

    # ========== Employee Operations ==========

    def save_employee(self, employee: Employee) -> EmployeeDB:
        """Save or update employee"""
        db_employee = self.db.query(EmployeeDB).filter_by(id=employee.employee_id).first()
        if not db_employee:
            db_employee = EmployeeDB(id=employee.employee_id)
            self.db.add(db_employee)
        db_employee.first_name = employee.first_name
        db_employee.last_name = employee.last_name
        db_employee.department = employee.department
        db_employee.position = employee.position
        db_employee.hire_date = employee.hire_date
        db_employee.salary = employee.salary
        self.db.commit()
        self.db.refresh(db_employee)
        return db_employee

    def get_employee(self, employee_id: str) -> Optional[EmployeeDB]:
        """Get employee by ID"""
        return self.db.query(EmployeeDB).filter_by(id=employee_id).first()

    def get_all_employees(self) -> List[EmployeeDB]:
        """Get all employees"""
        return self.db.query(EmployeeDB).order_by(EmployeeDB.id).all()

    # ========== Payroll Run Operations ==========

    def save_payroll_calculation(self, calculation: PayrollCalculation,
                                 employee_id: Optional[str],
                                 year: Optional[int],
                                 month: Optional[int],
                                 work_days: Optional[int] = None,
                                 payment_date: Optional[date] = None,
                                 payment_method: str = "Bank Transfer",
                                 reference: Optional[str] = None,
                                 earnings: Optional[List[PayrollItem]] = None) -> PayrollRunDB:
        """Store a calculation verbatim; replaces an existing run for the same period"""
        missing = [
            name for name, value in (('employeeId', employee_id), ('year', year), ('month', month))
            if value in (None, "")
        ]
        if missing:
            raise MissingContextError(f"Cannot save payroll run without {', '.join(missing)}")
        year, month = int(year), int(month)
        if not 1 <= month <= 12:
            raise MissingContextError(f"Invalid payroll month {month}")

        if not self.get_employee(employee_id):
            raise MissingContextError(f"Employee {employee_id} is not registered")

        run = self.get_payroll_run(employee_id, year, month)
        if run:
            logger.info("Replacing payroll run %s for %s %s-%02d", run.id, employee_id, year, month)
        else:
            run = PayrollRunDB(employee_id=employee_id, year=year, month=month)
            self.db.add(run)

        run.work_days = work_days
        run.payment_date = payment_date
        run.payment_method = payment_method
        run.reference = reference or f"PAY-{year}-{month:02d}-{employee_id}"
        run.base_salary = calculation.base_salary
        run.gross_salary = calculation.gross_salary
        run.net_salary = calculation.net_salary
        run.employee_contribution = calculation.employee_contribution
        run.employer_contribution = calculation.employer_contribution
        run.income_tax = calculation.income_tax
        run.total_employer_cost = calculation.total_employer_cost
        run.calculation_json = json.dumps(calculation.to_dict())
        run.earnings_json = json.dumps([item.to_dict() for item in earnings or []])

        self.db.commit()
        self.db.refresh(run)
        return run

    def get_payroll_run(self, employee_id: str, year: int, month: int) -> Optional[PayrollRunDB]:
        """Get specific payroll run"""
        return self.db.query(PayrollRunDB).filter(
            and_(
                PayrollRunDB.employee_id == employee_id,
                PayrollRunDB.year == year,
                PayrollRunDB.month == month
            )
        ).first()

    def get_payroll_run_by_id(self, run_id: int) -> Optional[PayrollRunDB]:
        return self.db.query(PayrollRunDB).filter_by(id=run_id).first()

    def get_payroll_history(self, employee_id: str, year: Optional[int] = None) -> List[PayrollRunDB]:
        """Get payroll runs for employee"""
        query = self.db.query(PayrollRunDB).filter_by(employee_id=employee_id)
        if year:
            query = query.filter_by(year=year)
        return query.order_by(PayrollRunDB.year, PayrollRunDB.month).all()

    def get_monthly_runs(self, year: int, month: int) -> List[PayrollRunDB]:
        """Get all payroll runs for a specific month"""
        return self.db.query(PayrollRunDB).filter(
            and_(
                PayrollRunDB.year == year,
                PayrollRunDB.month == month
            )
        ).order_by(PayrollRunDB.employee_id).all()

    @staticmethod
    def load_calculation(run: PayrollRunDB) -> PayrollCalculation:
        """Rebuild the stored calculation exactly as it was saved"""
        return PayrollCalculation.from_dict(json.loads(run.calculation_json))

    @staticmethod
    def load_earnings(run: PayrollRunDB) -> List[PayrollItem]:
        """Itemized supplemental earnings stored with the run"""
        if not run.earnings_json:
            return []
        return [PayrollItem.from_dict(item) for item in json.loads(run.earnings_json)]
