"""
Test configuration and setup for EduGrade
"""

import json
import os
import shutil
import sys
import tempfile
from pathlib import Path

import pytest

# Add this repo's `src/` to path for imports
project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(src_path))

# Set test environment variables
os.environ["EDUGRADE_TEST_MODE"] = "1"

# Reset settings service to ensure it loads env-test.properties
from edugrade.core.services.settings_config_service import reset_settings_service

reset_settings_service()


@pytest.fixture(scope="function")
def test_data_dir():
    """Create a temporary test data directory"""
    temp_dir = tempfile.mkdtemp(prefix="edugrade_test_")
    yield Path(temp_dir)

    from edugrade.core.services.database import get_db_service

    get_db_service().close()
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def test_db_path(test_data_dir):
    """Create a test database path"""
    return test_data_dir / "test.db"


@pytest.fixture
def test_log_dir(test_data_dir):
    """Create a test logs directory"""
    log_dir = test_data_dir / "logs"
    log_dir.mkdir(exist_ok=True)
    return log_dir


@pytest.fixture(autouse=True)
def setup_test_env(test_db_path, test_log_dir):
    """Set up test environment"""
    os.environ["EDUGRADE_DB_PATH"] = str(test_db_path)
    os.environ["EDUGRADE_LOG_DIR"] = str(test_log_dir)

    from edugrade.core.services.database import init_db_service
    from edugrade.core.services.logging import reset_logging_service

    reset_logging_service()
    init_db_service(str(test_db_path))

    yield

    reset_logging_service()
    if "EDUGRADE_DB_PATH" in os.environ:
        del os.environ["EDUGRADE_DB_PATH"]
    if "EDUGRADE_LOG_DIR" in os.environ:
        del os.environ["EDUGRADE_LOG_DIR"]


@pytest.fixture
def db_service(test_db_path):
    """Provide a database service for tests"""
    from edugrade.core.services.database import get_db_service, init_db_service

    init_db_service(str(test_db_path))
    service = get_db_service()

    yield service

    service.close()


@pytest.fixture
def db_session(db_service):
    """SQLAlchemy session shared by the service under test and the assertions"""
    return db_service.session


@pytest.fixture
def client(db_service):
    """FastAPI TestClient wired to the same test DB session."""
    from fastapi.testclient import TestClient

    from edugrade.api.dependencies import get_db
    from edugrade.api.main import app

    def _override_get_db():
        yield db_service.session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


def gap_fill_block(block_id="b1", blanks=None, order=1, **data):
    """Build a raw gap-fill block the way authored content stores it"""
    if blanks is None:
        blanks = [{"id": "blank-1", "index": 0, "correctAnswer": "desk"}]
    return {
        "id": block_id,
        "type": "gapFill",
        "order": order,
        "data": {"answerType": "exact", "caseSensitive": False, "blanks": blanks, **data},
    }


@pytest.fixture
def gap_fill_block_factory():
    return gap_fill_block


@pytest.fixture
def schedule_item_factory(db_session):
    """Persist a schedule item holding the given blocks"""
    from edugrade.core.models import ScheduleItem

    def _create(blocks=None, title="Lesson 1", item_type="gapFill", content_json=None):
        if content_json is None:
            content_json = json.dumps(
                {"blocks": blocks if blocks is not None else [gap_fill_block()]},
                ensure_ascii=False,
            )
        item = ScheduleItem(title=title, type=item_type, content_json=content_json)
        db_session.add(item)
        db_session.commit()
        db_session.refresh(item)
        return item

    return _create


def pytest_configure(config):
    """Register custom markers used across tests"""
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "integration: tests using the database or API")
