import os
import sys
import tempfile
from pathlib import Path

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Point settings at throwaway locations before anything imports config.settings
_TMP = Path(tempfile.mkdtemp(prefix="payroll-tests-"))
os.environ["OUTPUT_DIR"] = str(_TMP / "output")
os.environ["DATA_DIR"] = str(_TMP / "data")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'payroll.db'}"
os.environ.pop("PAYROLL_CONFIG_FILE", None)

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(ROOT / "src"))

from database.db import init_db  # noqa: E402
from database.repository import PayrollRepository  # noqa: E402
from models.payroll_config import PayrollConfig  # noqa: E402


@pytest.fixture
def config():
    return PayrollConfig()


@pytest.fixture
def session(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'history.db'}")
    init_db(bind=engine)
    db = sessionmaker(bind=engine)()
    yield db
    db.close()
    engine.dispose()


@pytest.fixture
def repo(session):
    return PayrollRepository(session)
