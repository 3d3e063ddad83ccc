from dataclasses import replace
from datetime import date
from decimal import Decimal
from typing import List, Optional

from models.employee import Employee
from models.payroll import PayrollInput
from models.payroll_config import PayrollConfig


class MockEmployeeDirectory:
    """Mock HR directory supplying employees and their base salary defaults"""

    # Sample employee data
    MOCK_EMPLOYEES = [
        Employee(
            employee_id="1",
            first_name="John",
            last_name="Doe",
            department="IT",
            position="Software Developer",
            hire_date=date(2022, 1, 15),
            salary=Decimal('75000')
        ),
        Employee(
            employee_id="2",
            first_name="Jane",
            last_name="Smith",
            department="Marketing",
            position="Marketing Manager",
            hire_date=date(2021, 6, 10),
            salary=Decimal('85000')
        ),
        Employee(
            employee_id="3",
            first_name="Michael",
            last_name="Johnson",
            department="Finance",
            position="Accountant",
            hire_date=date(2020, 3, 22),
            salary=Decimal('65000')
        ),
        Employee(
            employee_id="4",
            first_name="Amina",
            last_name="Benali",
            department="Warehouse",
            position="Storekeeper",
            hire_date=date(2024, 9, 1),
            salary=None
        ),
    ]

    def __init__(self, employees: Optional[List[Employee]] = None):
        source = employees if employees is not None else self.MOCK_EMPLOYEES
        self.employees = [replace(e) for e in source]

    def get_all_employees(self) -> List[Employee]:
        """Get list of all employees"""
        return self.employees.copy()

    def get_employee(self, employee_id: str) -> Employee:
        """Get a specific employee"""
        employee = next((e for e in self.employees if e.employee_id == employee_id), None)

        if not employee:
            raise ValueError(f"Employee {employee_id} not found")

        return employee

    def default_payroll_input(self, employee_id: str, config: PayrollConfig) -> PayrollInput:
        """Payroll input pre-filled from the directory; SMIG when no salary is on file"""
        employee = self.get_employee(employee_id)

        return PayrollInput(
            base_salary=employee.salary if employee.salary is not None else config.smig,
            transport_allowance=config.transport_allowance,
            employee_id=employee.employee_id
        )
