from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

@dataclass
class Employee:
    """Employee data model"""
    employee_id: str
    first_name: str
    last_name: str
    department: str = ""
    position: str = ""
    hire_date: Optional[date] = None
    salary: Optional[Decimal] = None

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __str__(self):
        return f"Employee({self.employee_id}, {self.name})"
