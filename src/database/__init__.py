from .db import engine, SessionLocal, Base, init_db
from .models import EmployeeDB, PayrollRunDB
from .repository import PayrollRepository

__all__ = [
    'engine',
    'SessionLocal',
    'Base',
    'init_db',
    'EmployeeDB',
    'PayrollRunDB',
    'PayrollRepository'
]
