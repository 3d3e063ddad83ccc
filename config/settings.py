import os
import json
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

# Base directory
BASE_DIR = Path(__file__).resolve().parent.parent

# Paths
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(BASE_DIR / "output")))
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))

# Ensure directories exist
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
(OUTPUT_DIR / "payslips").mkdir(exist_ok=True)
(OUTPUT_DIR / "declarations").mkdir(exist_ok=True)
DATA_DIR.mkdir(parents=True, exist_ok=True)

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'payroll.db'}")

# Application settings
DEBUG = os.getenv("DEBUG", "True").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Secret for Flask app
SECRET_KEY = os.getenv("SECRET_KEY", "dev-payroll-secret")

# Algerian payroll settings (DZD)
SMIG = os.getenv("SMIG", "20000")
CNAS_EMPLOYEE_RATE = os.getenv("CNAS_EMPLOYEE_RATE", "0.09")
CNAS_EMPLOYER_RATE = os.getenv("CNAS_EMPLOYER_RATE", "0.26")

# IRG brackets as [lower, upper, rate]; upper None is open ended
IRG_BRACKETS = json.loads(os.getenv(
    "IRG_BRACKETS",
    '[["0", "30000", "0"], ["30000", "120000", "0.20"], ["120000", null, "0.30"]]'
))

# Optional JSON file overriding all of the above rate settings
PAYROLL_CONFIG_FILE = os.getenv("PAYROLL_CONFIG_FILE")

# Fixed transport allowance handed out by default
DEFAULT_TRANSPORT_ALLOWANCE = os.getenv("DEFAULT_TRANSPORT_ALLOWANCE", "2500")

# Meal allowance per day worked
MEAL_ALLOWANCE_PER_DAY = os.getenv("MEAL_ALLOWANCE_PER_DAY", "300")
