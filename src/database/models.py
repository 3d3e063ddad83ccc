from sqlalchemy import Column, Integer, String, Date, Numeric, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from .db import Base

class EmployeeDB(Base):
    """Employee database model"""
    __tablename__ = "employees"

    id = Column(String, primary_key=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    department = Column(String)
    position = Column(String)
    hire_date = Column(Date)
    salary = Column(Numeric(12, 2))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    payroll_runs = relationship("PayrollRunDB", back_populates="employee")

    @property
    def name(self):
        return f"{self.first_name} {self.last_name}"

    def __repr__(self):
        return f"<Employee(id={self.id}, name={self.name})>"


class PayrollRunDB(Base):
    """One stored payroll calculation for an employee and month"""
    __tablename__ = "payroll_runs"
    __table_args__ = (
        UniqueConstraint('employee_id', 'year', 'month', name='uq_payroll_run_period'),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(String, ForeignKey('employees.id'), nullable=False)

    # Period information
    year = Column(Integer, nullable=False, index=True)
    month = Column(Integer, nullable=False, index=True)
    work_days = Column(Integer)
    payment_date = Column(Date)
    payment_method = Column(String(50))
    reference = Column(String(100))

    # Financial totals
    base_salary = Column(Numeric(12, 2), nullable=False)
    gross_salary = Column(Numeric(12, 2), nullable=False)
    net_salary = Column(Numeric(12, 2), nullable=False)

    # CNAS and IRG
    employee_contribution = Column(Numeric(12, 2), default=0)
    employer_contribution = Column(Numeric(12, 2), default=0)
    income_tax = Column(Numeric(12, 2), default=0)
    total_employer_cost = Column(Numeric(12, 2), nullable=False)

    # Full calculation stored verbatim as JSON
    calculation_json = Column(Text, nullable=False)
    # Itemized supplemental earnings making up part of the bonuses
    earnings_json = Column(Text)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    employee = relationship("EmployeeDB", back_populates="payroll_runs")

    def __repr__(self):
        return f"<PayrollRun(id={self.id}, employee={self.employee_id}, period={self.year}-{self.month:02d})>"
