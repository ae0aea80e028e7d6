import os
import sys
import tempfile
from pathlib import Path

# Isolated SQLite file and no background scheduler, set before the app imports settings
_TMP_DIR = Path(tempfile.mkdtemp(prefix="midgard-history-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["ENABLE_SCHEDULER"] = "false"

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))

import pytest  # noqa: E402

from midgard_history.db.session import Base, SessionLocal, engine  # noqa: E402
import midgard_history.models  # noqa: E402,F401
from midgard_history.services.data_quality import data_quality  # noqa: E402


@pytest.fixture
def session_factory():
    Base.metadata.create_all(engine)
    yield SessionLocal
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _reset_data_quality():
    data_quality.reset()
    yield
    data_quality.reset()
